"""HTTP access to the replication service."""

from harness.remote.client import RemoteClient

__all__ = ["RemoteClient"]
