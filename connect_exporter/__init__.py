"""Prometheus exporter for Kafka Connect connector task states."""

__version__ = "0.1.0"
