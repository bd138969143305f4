"""Test relation, dependency and parent edges."""

import pytest

from huly_mcp.exceptions import InvalidArgumentError, NotFoundError
from huly_mcp.store import classes


pytestmark = pytest.mark.asyncio


@pytest.fixture
def pair(add_issue):
    first = add_issue("project-pryla", 1, "First")
    second = add_issue("project-pryla", 2, "Second")
    return first, second


class TestAddRelation:
    async def test_adds_edge_on_first_issue_only(self, tracker, store, pair):
        first, second = pair

        result = await tracker.relations.add_relation("PRYLA-1", "PRYLA-2")

        assert result == {
            "message": "Added relation: PRYLA-1 is related to PRYLA-2",
            "issueId": "PRYLA-1",
            "relatedTo": "PRYLA-2",
        }
        issues = store.docs[classes.ISSUE]
        assert issues[first["_id"]]["relations"] == [{"_id": second["_id"], "_class": classes.ISSUE}]
        assert issues[second["_id"]]["relations"] == []

    async def test_idempotent(self, tracker, store, pair):
        first, _ = pair
        await tracker.relations.add_relation("PRYLA-1", "PRYLA-2")

        result = await tracker.relations.add_relation("pryla-1", "pryla-2")

        assert result["message"] == "PRYLA-1 is already related to PRYLA-2"
        assert len(store.docs[classes.ISSUE][first["_id"]]["relations"]) == 1

    async def test_across_projects(self, tracker, add_issue, pair):
        add_issue("project-ops", 11, "Ops")

        result = await tracker.relations.add_relation("PRYLA-1", "OPS-11")

        assert result["relatedTo"] == "OPS-11"

    async def test_self_edge_rejected(self, tracker, store, pair):
        with pytest.raises(InvalidArgumentError, match="cannot be related to itself"):
            await tracker.relations.add_relation("PRYLA-1", "pryla-1")
        assert not any(call[0] == "update_doc" for call in store.calls)

    async def test_unknown_target(self, tracker, store, pair):
        with pytest.raises(NotFoundError, match="Issue not found: PRYLA-9"):
            await tracker.relations.add_relation("PRYLA-1", "PRYLA-9")
        assert not any(call[0] == "update_doc" for call in store.calls)


class TestAddBlockedBy:
    async def test_adds_directed_edge(self, tracker, store, pair):
        first, second = pair

        result = await tracker.relations.add_blocked_by("PRYLA-1", "PRYLA-2")

        assert result == {
            "message": "Added dependency: PRYLA-1 is blocked by PRYLA-2",
            "issueId": "PRYLA-1",
            "blockedBy": "PRYLA-2",
        }
        issues = store.docs[classes.ISSUE]
        assert issues[first["_id"]]["blockedBy"] == [{"_id": second["_id"], "_class": classes.ISSUE}]
        assert issues[second["_id"]]["blockedBy"] == []

    async def test_idempotent(self, tracker, pair):
        await tracker.relations.add_blocked_by("PRYLA-1", "PRYLA-2")
        result = await tracker.relations.add_blocked_by("PRYLA-1", "PRYLA-2")

        assert result["message"] == "PRYLA-1 is already blocked by PRYLA-2"

    async def test_appends_to_existing_edges(self, tracker, store, add_issue, pair):
        first, second = pair
        third = add_issue("project-pryla", 3, "Third")

        await tracker.relations.add_blocked_by("PRYLA-1", "PRYLA-2")
        await tracker.relations.add_blocked_by("PRYLA-1", "PRYLA-3")

        edges = store.docs[classes.ISSUE][first["_id"]]["blockedBy"]
        assert [e["_id"] for e in edges] == [second["_id"], third["_id"]]


class TestSetParent:
    async def test_sets_parent(self, tracker, store, pair):
        first, second = pair

        result = await tracker.relations.set_parent("PRYLA-2", "PRYLA-1")

        assert result == {
            "message": "Set PRYLA-1 as parent of PRYLA-2",
            "issueId": "PRYLA-2",
            "parentId": "PRYLA-1",
        }
        child = store.docs[classes.ISSUE][second["_id"]]
        assert child["attachedTo"] == first["_id"]
        assert child["collection"] == "subIssues"
        assert child["parents"] == [{
            "parentId": first["_id"],
            "identifier": "PRYLA-1",
            "parentTitle": "First",
            "space": "project-pryla",
        }]

    async def test_replaces_previous_parent(self, tracker, store, add_issue, pair):
        _, second = pair
        third = add_issue("project-pryla", 3, "Third")

        await tracker.relations.set_parent("PRYLA-2", "PRYLA-1")
        await tracker.relations.set_parent("PRYLA-2", "PRYLA-3")

        child = store.docs[classes.ISSUE][second["_id"]]
        assert child["attachedTo"] == third["_id"]
        assert [p["identifier"] for p in child["parents"]] == ["PRYLA-3"]

    async def test_visible_in_get_issue(self, tracker, pair):
        await tracker.relations.set_parent("PRYLA-2", "PRYLA-1")

        issue = await tracker.issues.get_issue("PRYLA-2")

        assert issue["parent"] == "PRYLA-1"

    async def test_self_parent_rejected(self, tracker, pair):
        with pytest.raises(InvalidArgumentError):
            await tracker.relations.set_parent("PRYLA-1", "PRYLA-1")
