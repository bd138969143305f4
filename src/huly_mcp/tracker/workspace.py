"""Reconnecting facade over the store handle.

Every call obtains the handle from the ConnectionManager and runs through
``with_reconnect``, so tracker components never hold a handle themselves.
"""

from typing import Any, Dict, List, Optional

from ..store.base import Doc, Query
from ..store.connection import ConnectionManager


class Workspace:
    """Store operations used by the tracker components."""

    def __init__(self, connections: ConnectionManager):
        self.connections = connections

    async def find_all(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Doc]:
        return await self.connections.with_reconnect(
            lambda client: client.find_all(_class, query, options)
        )

    async def find_one(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Doc]:
        return await self.connections.with_reconnect(
            lambda client: client.find_one(_class, query, options)
        )

    async def create_doc(
        self,
        _class: str,
        space: str,
        attributes: Dict[str, Any],
        obj_id: Optional[str] = None,
    ) -> str:
        return await self.connections.with_reconnect(
            lambda client: client.create_doc(_class, space, attributes, obj_id)
        )

    async def update_doc(
        self,
        _class: str,
        space: str,
        obj_id: str,
        operations: Dict[str, Any],
        retrieve: bool = False,
    ) -> Optional[Doc]:
        return await self.connections.with_reconnect(
            lambda client: client.update_doc(_class, space, obj_id, operations, retrieve)
        )

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
        return await self.connections.with_reconnect(
            lambda client: client.add_collection(
                _class, space, attached_to, attached_to_class, collection, attributes, obj_id
            )
        )

    async def remove_collection(
        self,
        _class: str,
        space: str,
        obj_id: str,
        attached_to: str,
        attached_to_class: str,
        collection: str,
    ) -> None:
        await self.connections.with_reconnect(
            lambda client: client.remove_collection(
                _class, space, obj_id, attached_to, attached_to_class, collection
            )
        )
