"""Store boundary: client protocol, REST transport and connection manager."""

from .base import StoreClient, generate_id
from .connection import ConnectionManager

__all__ = ["ConnectionManager", "StoreClient", "generate_id"]
