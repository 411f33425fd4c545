"""Kafka Connect REST access: the client protocol and its httpx implementation."""

from connect_exporter.upstream.base import ConnectClient
from connect_exporter.upstream.http_client import ConnectHttpClient

__all__ = ["ConnectClient", "ConnectHttpClient"]
