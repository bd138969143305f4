"""Test configuration and fixtures."""

import copy
import os
from collections import defaultdict
from typing import Any, Dict, List

import pytest

# Set test environment variables BEFORE importing the package
os.environ["ENVIRONMENT"] = "test"

from huly_mcp.exceptions import RemoteOperationError
from huly_mcp.store import classes
from huly_mcp.store.base import generate_id
from huly_mcp.store.connection import ConnectionManager
from huly_mcp.tracker.service import TrackerService


STATUS_NAMES = ["Backlog", "Todo", "In Progress", "Done", "Canceled"]


class InMemoryStore:
    """StoreClient fake with the query subset the tracker uses.

    Returned documents are copies, as they would be from a remote store.
    ``modifiedOn`` comes from a monotonically increasing clock so sorting is
    deterministic.
    """

    def __init__(self):
        self.docs: Dict[str, Dict[str, dict]] = defaultdict(dict)
        self.calls: List[tuple] = []
        self.closed = False
        self.honour_retrieve = True
        self._clock = 1_700_000_000_000

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def add(self, _class: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document directly, bypassing call recording."""
        stamp = self._tick()
        doc = {"_id": generate_id(), "_class": _class, "createdOn": stamp, "modifiedOn": stamp, **doc}
        self.docs[_class][doc["_id"]] = doc
        return doc

    def all(self, _class: str) -> List[dict]:
        return list(self.docs[_class].values())

    @staticmethod
    def _matches(doc: dict, query: dict) -> bool:
        for key, expected in query.items():
            value = doc.get(key)
            if isinstance(expected, dict) and "$in" in expected:
                if value not in expected["$in"]:
                    return False
            elif value != expected:
                return False
        return True

    async def find_all(self, _class, query, options=None):
        self.calls.append(("find_all", _class, query))
        docs = [copy.deepcopy(d) for d in self.docs[_class].values() if self._matches(d, query or {})]
        options = options or {}
        for key, direction in reversed(list((options.get("sort") or {}).items())):
            docs.sort(key=lambda d: d.get(key) or 0, reverse=direction < 0)
        if options.get("limit"):
            docs = docs[: options["limit"]]
        return docs

    async def find_one(self, _class, query, options=None):
        docs = await self.find_all(_class, query, {**(options or {}), "limit": 1})
        return docs[0] if docs else None

    async def create_doc(self, _class, space, attributes, obj_id=None):
        self.calls.append(("create_doc", _class, attributes))
        obj_id = obj_id or generate_id()
        stamp = self._tick()
        self.docs[_class][obj_id] = {
            **copy.deepcopy(attributes),
            "_id": obj_id,
            "_class": _class,
            "space": space,
            "createdOn": stamp,
            "modifiedOn": stamp,
        }
        return obj_id

    async def update_doc(self, _class, space, obj_id, operations, retrieve=False):
        self.calls.append(("update_doc", _class, operations))
        doc = self.docs[_class].get(obj_id)
        if doc is None:
            raise RemoteOperationError(f"Document not found: {obj_id}")
        for key, value in operations.items():
            if key == "$inc":
                for field, amount in value.items():
                    doc[field] = (doc.get(field) or 0) + amount
            else:
                doc[key] = copy.deepcopy(value)
        doc["modifiedOn"] = self._tick()
        if retrieve and self.honour_retrieve:
            return copy.deepcopy(doc)
        return None

    async def add_collection(self, _class, space, attached_to, attached_to_class, collection, attributes, obj_id=None):
        obj_id = await self.create_doc(
            _class,
            space,
            {
                **attributes,
                "attachedTo": attached_to,
                "attachedToClass": attached_to_class,
                "collection": collection,
            },
            obj_id,
        )
        if attached_to in self.docs[attached_to_class]:
            await self.update_doc(attached_to_class, space, attached_to, {"$inc": {collection: 1}})
        return obj_id

    async def remove_collection(self, _class, space, obj_id, attached_to, attached_to_class, collection):
        await self.remove_doc(_class, space, obj_id)
        if attached_to in self.docs[attached_to_class]:
            await self.update_doc(attached_to_class, space, attached_to, {"$inc": {collection: -1}})

    async def remove_doc(self, _class, space, obj_id):
        self.calls.append(("remove_doc", _class, obj_id))
        self.docs[_class].pop(obj_id, None)

    async def close(self):
        self.closed = True


@pytest.fixture
def store() -> InMemoryStore:
    """Store seeded with the default statuses and two projects."""
    store = InMemoryStore()
    for name in STATUS_NAMES:
        store.add(classes.ISSUE_STATUS, {"_id": f"status-{name.lower().replace(' ', '-')}", "name": name})
    store.add(classes.PROJECT, {
        "_id": "project-pryla",
        "space": classes.SPACE_SPACE,
        "identifier": "PRYLA",
        "name": "Pryla",
        "description": "Main product",
        "sequence": 0,
    })
    store.add(classes.PROJECT, {
        "_id": "project-ops",
        "space": classes.SPACE_SPACE,
        "identifier": "OPS",
        "name": "",
        "sequence": 10,
    })
    return store


@pytest.fixture
def connections(store) -> ConnectionManager:
    async def connect():
        return store

    return ConnectionManager(connect)


@pytest.fixture
def tracker(connections) -> TrackerService:
    return TrackerService(connections)


@pytest.fixture
def add_issue(store):
    """Insert an issue directly into the store."""
    def _add(project_id: str, number: int, title: str = "Issue", status: str = "status-todo",
             priority: int = 0, **extra) -> dict:
        return store.add(classes.ISSUE, {
            "space": project_id,
            "number": number,
            "title": title,
            "status": status,
            "priority": priority,
            "description": "",
            "relations": [],
            "blockedBy": [],
            "parents": [],
            "labels": 0,
            **extra,
        })

    return _add
