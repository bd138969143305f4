"""Test issue listing, creation, projection and update."""

import pytest
from unittest.mock import AsyncMock

from huly_mcp.exceptions import InvalidArgumentError, InvalidFormatError, NotFoundError
from huly_mcp.store import classes
from huly_mcp.tracker.service import TrackerService


pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# create_issue
# ---------------------------------------------------------------------------

class TestCreateIssue:
    async def test_round_trip(self, tracker):
        created = await tracker.issues.create_issue(
            "PRYLA", "Fix login", description="Steps to reproduce", priority="high",
            status="in progress", labels=["bug"],
        )

        assert created["id"] == "PRYLA-1"
        assert created["title"] == "Fix login"
        assert created["status"] == "In Progress"
        assert created["priority"] == "high"

        issue = await tracker.issues.get_issue("PRYLA-1")
        assert issue["id"] == "PRYLA-1"
        assert issue["internalId"] == created["internalId"]
        assert issue["title"] == "Fix login"
        assert issue["description"] == "Steps to reproduce"
        assert issue["status"] == "In Progress"
        assert issue["priority"] == "High"
        assert issue["labels"] == ["bug"]
        assert issue["parent"] is None
        assert issue["relations"] == []
        assert issue["blockedBy"] == []

    async def test_numbers_increase(self, tracker, store):
        first = await tracker.issues.create_issue("PRYLA", "One")
        second = await tracker.issues.create_issue("pryla", "Two")

        assert first["id"] == "PRYLA-1"
        assert second["id"] == "PRYLA-2"
        assert store.docs[classes.PROJECT]["project-pryla"]["sequence"] == 2

    async def test_number_continues_project_sequence(self, tracker):
        created = await tracker.issues.create_issue("OPS", "Ops task")
        assert created["id"] == "OPS-11"

    async def test_sequence_reread_when_store_returns_nothing(self, tracker, store):
        store.honour_retrieve = False

        first = await tracker.issues.create_issue("PRYLA", "One")
        second = await tracker.issues.create_issue("PRYLA", "Two")

        assert (first["id"], second["id"]) == ("PRYLA-1", "PRYLA-2")

    async def test_defaults(self, tracker, store):
        created = await tracker.issues.create_issue("PRYLA", "Plain")

        assert created["status"] == "Todo"
        assert created["priority"] == "none"
        doc = store.docs[classes.ISSUE][created["internalId"]]
        assert doc["status"] == "status-todo"
        assert doc["priority"] == 0
        assert doc["description"] == ""
        assert doc["identifier"] == "PRYLA-1"
        assert doc["kind"] == classes.ISSUE_TASK_TYPE

    async def test_unknown_status_and_priority_fall_back(self, tracker, store):
        created = await tracker.issues.create_issue(
            "PRYLA", "Odd", priority="critical", status="Someday"
        )

        assert created["status"] == "Todo"
        assert created["priority"] == "none"
        assert store.docs[classes.ISSUE][created["internalId"]]["status"] == "status-todo"

    async def test_unknown_project_creates_nothing(self, tracker, store):
        with pytest.raises(NotFoundError, match="Project not found: NOPE"):
            await tracker.issues.create_issue("NOPE", "Lost")
        assert store.all(classes.ISSUE) == []

    async def test_empty_title_rejected(self, tracker, store):
        with pytest.raises(InvalidArgumentError):
            await tracker.issues.create_issue("PRYLA", "   ")
        assert store.docs[classes.PROJECT]["project-pryla"]["sequence"] == 0

    async def test_uploads_description_through_markup(self, connections, store):
        markup = AsyncMock()
        markup.upload.return_value = "blob-ref-1"
        markup.fetch.return_value = "# Heading"
        tracker = TrackerService(connections, markup=markup)

        created = await tracker.issues.create_issue("PRYLA", "Doc", description="# Heading")

        assert store.docs[classes.ISSUE][created["internalId"]]["description"] == "blob-ref-1"
        markup.upload.assert_awaited_once_with(
            classes.ISSUE, created["internalId"], "description", "# Heading"
        )
        issue = await tracker.issues.get_issue("PRYLA-1")
        assert issue["description"] == "# Heading"


# ---------------------------------------------------------------------------
# list_issues
# ---------------------------------------------------------------------------

class TestListIssues:
    async def test_most_recent_first(self, tracker, add_issue):
        add_issue("project-pryla", 1, "Older")
        add_issue("project-pryla", 2, "Newer")

        issues = await tracker.issues.list_issues("PRYLA")

        assert [i["id"] for i in issues] == ["PRYLA-2", "PRYLA-1"]
        assert issues[0] == {
            "id": "PRYLA-2",
            "title": "Newer",
            "status": "Todo",
            "priority": "No Priority",
            "labels": [],
        }

    async def test_scoped_to_project(self, tracker, add_issue):
        add_issue("project-pryla", 1)
        add_issue("project-ops", 1)

        issues = await tracker.issues.list_issues("OPS")

        assert [i["id"] for i in issues] == ["OPS-1"]

    async def test_status_filter_case_insensitive(self, tracker, add_issue):
        add_issue("project-pryla", 1, status="status-done")
        add_issue("project-pryla", 2, status="status-todo")

        issues = await tracker.issues.list_issues("PRYLA", status="done")

        assert [i["id"] for i in issues] == ["PRYLA-1"]
        assert issues[0]["status"] == "Done"

    async def test_priority_filter(self, tracker, store, add_issue):
        add_issue("project-pryla", 1, priority=2)
        add_issue("project-pryla", 2, priority=4)

        issues = await tracker.issues.list_issues("PRYLA", priority="HIGH")

        assert [i["id"] for i in issues] == ["PRYLA-1"]
        assert issues[0]["priority"] == "High"

    async def test_label_filter(self, tracker, add_issue):
        add_issue("project-pryla", 1)
        add_issue("project-pryla", 2)
        await tracker.add_label("PRYLA-1", "bug")
        await tracker.add_label("PRYLA-2", "docs")

        issues = await tracker.issues.list_issues("PRYLA", label="bug")

        assert [i["id"] for i in issues] == ["PRYLA-1"]
        assert issues[0]["labels"] == ["bug"]

    async def test_unknown_label_matches_nothing(self, tracker, add_issue):
        add_issue("project-pryla", 1)

        assert await tracker.issues.list_issues("PRYLA", label="nope") == []

    async def test_limit_applied_before_status_filter(self, tracker, add_issue):
        """The page is cut before filtering, so matches can be missed."""
        add_issue("project-pryla", 1, status="status-done")
        add_issue("project-pryla", 2, status="status-todo")

        assert await tracker.issues.list_issues("PRYLA", status="Done", limit=1) == []
        assert len(await tracker.issues.list_issues("PRYLA", status="Done", limit=2)) == 1

    async def test_limit(self, tracker, add_issue):
        for number in range(1, 6):
            add_issue("project-pryla", number)

        assert len(await tracker.issues.list_issues("PRYLA", limit=3)) == 3
        assert len(await tracker.issues.list_issues("PRYLA", limit=3.0)) == 3

    @pytest.mark.parametrize("limit", [0, -1, 2.5, True, "10"])
    async def test_invalid_limit(self, tracker, limit):
        with pytest.raises(InvalidArgumentError, match="limit must be a positive integer"):
            await tracker.issues.list_issues("PRYLA", limit=limit)

    async def test_dangling_status_is_unknown(self, tracker, add_issue):
        add_issue("project-pryla", 1, status="status-deleted")

        [issue] = await tracker.issues.list_issues("PRYLA")

        assert issue["status"] == "Unknown"

    async def test_unknown_project(self, tracker):
        with pytest.raises(NotFoundError):
            await tracker.issues.list_issues("NOPE")


# ---------------------------------------------------------------------------
# get_issue
# ---------------------------------------------------------------------------

class TestGetIssue:
    async def test_invalid_format(self, tracker):
        with pytest.raises(InvalidFormatError, match="Invalid issue ID format: not-an-id-format"):
            await tracker.issues.get_issue("not-an-id-format")

    async def test_not_found(self, tracker):
        with pytest.raises(NotFoundError, match="Issue not found: PRYLA-99999"):
            await tracker.issues.get_issue("PRYLA-99999")

    async def test_description_failure_degrades_to_empty(self, connections, add_issue):
        markup = AsyncMock()
        markup.fetch.side_effect = RuntimeError("blob store unavailable")
        tracker = TrackerService(connections, markup=markup)
        add_issue("project-pryla", 1, "Broken", description="blob-ref-9")

        issue = await tracker.issues.get_issue("PRYLA-1")

        assert issue["title"] == "Broken"
        assert issue["description"] == ""

    async def test_edges_rendered_as_composite_ids(self, tracker, add_issue):
        add_issue("project-pryla", 1)
        add_issue("project-ops", 11)
        add_issue("project-pryla", 2)
        await tracker.relations.add_relation("PRYLA-2", "OPS-11")
        await tracker.relations.add_blocked_by("PRYLA-2", "PRYLA-1")

        issue = await tracker.issues.get_issue("PRYLA-2")

        assert issue["relations"] == ["OPS-11"]
        assert issue["blockedBy"] == ["PRYLA-1"]

    async def test_dangling_edges_skipped(self, tracker, add_issue):
        target = add_issue("project-pryla", 1)
        add_issue("project-pryla", 2, relations=[
            {"_id": target["_id"], "_class": classes.ISSUE},
            {"_id": "deleted-issue", "_class": classes.ISSUE},
        ])

        issue = await tracker.issues.get_issue("PRYLA-2")

        assert issue["relations"] == ["PRYLA-1"]


# ---------------------------------------------------------------------------
# update_issue
# ---------------------------------------------------------------------------

class TestUpdateIssue:
    async def test_updates_supplied_fields_only(self, tracker, store, add_issue):
        created = add_issue("project-pryla", 1, "Old title", priority=3)

        result = await tracker.issues.update_issue("pryla-1", title="New title", status="done")

        assert result == {"id": "PRYLA-1", "updated": ["title", "status"]}
        doc = store.docs[classes.ISSUE][created["_id"]]
        assert doc["title"] == "New title"
        assert doc["status"] == "status-done"
        assert doc["priority"] == 3

    async def test_priority_and_description(self, tracker, add_issue):
        add_issue("project-pryla", 1)

        result = await tracker.issues.update_issue("PRYLA-1", priority="urgent", description="New body")

        assert sorted(result["updated"]) == ["description", "priority"]
        issue = await tracker.issues.get_issue("PRYLA-1")
        assert issue["priority"] == "Urgent"
        assert issue["description"] == "New body"

    async def test_unknown_status_skipped(self, tracker, store, add_issue):
        created = add_issue("project-pryla", 1)

        result = await tracker.issues.update_issue("PRYLA-1", title="Renamed", status="Someday")

        assert result["updated"] == ["title"]
        assert store.docs[classes.ISSUE][created["_id"]]["status"] == "status-todo"

    async def test_nothing_to_update(self, tracker, store, add_issue):
        add_issue("project-pryla", 1)

        result = await tracker.issues.update_issue("PRYLA-1")

        assert result == {"id": "PRYLA-1", "updated": []}
        assert not any(call[0] == "update_doc" for call in store.calls)

    async def test_not_found(self, tracker):
        with pytest.raises(NotFoundError):
            await tracker.issues.update_issue("PRYLA-5", title="x")
