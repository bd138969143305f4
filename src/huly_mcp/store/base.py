"""Store client interface.

A store client is the handle the connection manager caches. Documents are
plain dicts as the Huly platform serializes them (``_id``, ``_class``,
``space``, ``modifiedOn`` ...). Queries use the platform's query syntax:
equality on attributes plus ``{"$in": [...]}``.
"""

import secrets
import time
from typing import Any, Dict, List, Optional, Protocol

Doc = Dict[str, Any]
Query = Dict[str, Any]


class StoreClient(Protocol):
    """Protocol for a connected Huly workspace."""

    async def find_all(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Doc]:
        """Find documents. ``options`` supports ``limit`` and ``sort``."""
        ...

    async def find_one(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Doc]:
        """Find the first matching document or None."""
        ...

    async def create_doc(
        self,
        _class: str,
        space: str,
        attributes: Dict[str, Any],
        obj_id: Optional[str] = None,
    ) -> str:
        """Create a document and return its id."""
        ...

    async def update_doc(
        self,
        _class: str,
        space: str,
        obj_id: str,
        operations: Dict[str, Any],
        retrieve: bool = False,
    ) -> Optional[Doc]:
        """Apply update operations (attribute sets, ``$inc``).

        With ``retrieve`` the store may return the updated document; None
        means the store did not report it.
        """
        ...

    async def add_collection(
        self,
        _class: str,
        space: str,
        attached_to: str,
        attached_to_class: str,
        collection: str,
        attributes: Dict[str, Any],
        obj_id: Optional[str] = None,
    ) -> str:
        """Create a document attached to ``attached_to`` and bump its counter."""
        ...

    async def remove_collection(
        self,
        _class: str,
        space: str,
        obj_id: str,
        attached_to: str,
        attached_to_class: str,
        collection: str,
    ) -> None:
        """Remove an attached document and decrement the owner's counter."""
        ...

    async def remove_doc(self, _class: str, space: str, obj_id: str) -> None:
        ...

    async def close(self) -> None:
        ...


_id_counter = secrets.randbelow(0xFFFFFF)
_random_part = secrets.token_hex(4)


def generate_id() -> str:
    """Generate a platform-style object id (timestamp, random, counter)."""
    global _id_counter
    _id_counter = (_id_counter + 1) % 0xFFFFFF
    timestamp = int(time.time()) & 0xFFFFFFFF
    return f"{timestamp:08x}{_random_part}{_id_counter:06x}"


def now_ms() -> int:
    return int(time.time() * 1000)
