"""Issue listing, projection, creation and update."""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidArgumentError
from ..store import classes
from ..store.base import Doc, generate_id
from .identifiers import IdentifierResolver, composite_id
from .labels import LabelManager
from .markup import MarkupCodec
from .vocabulary import (
    StatusVocabulary,
    priority_key,
    priority_name,
    priority_value,
    resolve_status_name,
)
from .workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


class IssueService:
    """Issue queries and mutations."""

    def __init__(
        self,
        workspace: Workspace,
        resolver: IdentifierResolver,
        labels: LabelManager,
        markup: MarkupCodec,
    ):
        self.workspace = workspace
        self.resolver = resolver
        self.labels = labels
        self.markup = markup

    async def list_issues(
        self,
        project: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        label: Optional[str] = None,
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> List[Dict[str, Any]]:
        """List a project's issues, most recently modified first.

        ``limit`` is applied by the store before the status and label filters
        run, so a filtered page can hold fewer than ``limit`` matches even
        when more exist.
        """
        limit = DEFAULT_LIMIT if limit is None else limit
        if isinstance(limit, float) and limit.is_integer():
            limit = int(limit)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgumentError(f"limit must be a positive integer, got {limit!r}")

        proj = await self.resolver.resolve_project(project)

        query: Dict[str, Any] = {"space": proj["_id"]}
        if priority:
            query["priority"] = priority_value(priority)

        issues = await self.workspace.find_all(
            classes.ISSUE, query, {"limit": limit, "sort": {"modifiedOn": -1}}
        )

        vocabulary = await StatusVocabulary.load(self.workspace)
        if status:
            wanted = status.lower()
            issues = [i for i in issues if vocabulary.name_of(i.get("status")).lower() == wanted]

        label_ref = None
        if label:
            tag = await self.labels.find_label(label)
            if not tag:
                logger.debug("Label %r does not exist; no issue can match", label)
                return []
            label_ref = tag["_id"]

        result = []
        for issue in issues:
            attachments = await self.labels.attachments(issue["_id"])
            if label_ref and not any(a.get("tag") == label_ref for a in attachments):
                continue
            result.append({
                "id": composite_id(proj, issue),
                "title": issue.get("title", ""),
                "status": vocabulary.name_of(issue.get("status")),
                "priority": priority_name(issue.get("priority")),
                "labels": [a.get("title", "") for a in attachments],
            })
        return result

    async def _read_description(self, issue: Doc) -> str:
        content_ref = issue.get("description") or ""
        if not content_ref:
            return ""
        try:
            return await self.markup.fetch(classes.ISSUE, issue["_id"], "description", content_ref)
        except Exception as e:
            logger.warning("Could not resolve description of %s: %s", issue["_id"], e)
            return ""

    async def _composite_ids(self, edges: List[Dict[str, Any]]) -> List[str]:
        """Render relation edges as composite ids, skipping dangling refs."""
        refs = [edge["_id"] for edge in edges or [] if edge.get("_id")]
        if not refs:
            return []

        issues = await self.workspace.find_all(classes.ISSUE, {"_id": {"$in": refs}})
        spaces = sorted({i["space"] for i in issues})
        projects = await self.workspace.find_all(classes.PROJECT, {"_id": {"$in": spaces}}) if spaces else []
        keys = {p["_id"]: p["identifier"] for p in projects}

        by_id = {i["_id"]: i for i in issues}
        result = []
        for ref in refs:
            issue = by_id.get(ref)
            if issue and issue["space"] in keys:
                result.append(f"{keys[issue['space']]}-{issue['number']}")
        return result

    async def get_issue(self, issue_id: str) -> Dict[str, Any]:
        project, issue = await self.resolver.resolve_issue(issue_id)

        parents = issue.get("parents") or []
        return {
            "id": composite_id(project, issue),
            "internalId": issue["_id"],
            "title": issue.get("title", ""),
            "description": await self._read_description(issue),
            "status": await resolve_status_name(self.workspace, issue.get("status")),
            "priority": priority_name(issue.get("priority")),
            "labels": await self.labels.label_titles(issue["_id"]),
            "parent": parents[0].get("identifier") if parents else None,
            "relations": await self._composite_ids(issue.get("relations")),
            "blockedBy": await self._composite_ids(issue.get("blockedBy")),
            "createdOn": issue.get("createdOn"),
            "modifiedOn": issue.get("modifiedOn"),
        }

    async def _next_number(self, project: Doc) -> int:
        """Increment the project's sequence and return the new value.

        Uses the store's ``$inc``. When the store does not report the updated
        project the sequence is re-read, which can race with another writer.
        """
        updated = await self.workspace.update_doc(
            classes.PROJECT,
            project.get("space") or classes.SPACE_SPACE,
            project["_id"],
            {"$inc": {"sequence": 1}},
            retrieve=True,
        )
        if updated and isinstance(updated.get("sequence"), int):
            return updated["sequence"]

        fresh = await self.workspace.find_one(classes.PROJECT, {"_id": project["_id"]})
        if fresh and isinstance(fresh.get("sequence"), int):
            logger.debug("Sequence for %s re-read after increment", project["identifier"])
            return fresh["sequence"]
        return (project.get("sequence") or 0) + 1

    async def create_issue(
        self,
        project: str,
        title: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        if not title or not title.strip():
            raise InvalidArgumentError("title must not be empty")

        proj = await self.resolver.resolve_project(project)

        vocabulary = await StatusVocabulary.load(self.workspace)
        status_doc = vocabulary.find(status) if status else None
        if status and status_doc is None:
            logger.info("Unknown status %r, using default", status)
        status_doc = status_doc or vocabulary.default()

        number = await self._next_number(proj)
        issue_ref = generate_id()
        priority_number = priority_value(priority)
        identifier = f"{proj['identifier']}-{number}"

        await self.workspace.create_doc(
            classes.ISSUE,
            proj["_id"],
            {
                "title": title,
                "description": await self.markup.upload(
                    classes.ISSUE, issue_ref, "description", description or ""
                ),
                "status": status_doc["_id"] if status_doc else None,
                "priority": priority_number,
                "number": number,
                "identifier": identifier,
                "assignee": None,
                "component": None,
                "milestone": None,
                "dueDate": None,
                "estimation": 0,
                "remainingTime": 0,
                "reportedTime": 0,
                "childInfo": [],
                "parents": [],
                "relations": [],
                "blockedBy": [],
                "subIssues": 0,
                "comments": 0,
                "labels": 0,
                "kind": classes.ISSUE_TASK_TYPE,
            },
            issue_ref,
        )
        logger.info("Created issue %s", identifier)

        issue = {"_id": issue_ref, "space": proj["_id"]}
        for label_title in labels or []:
            await self.labels.attach_label(proj, issue, label_title)

        return {
            "id": identifier,
            "internalId": issue_ref,
            "title": title,
            "status": status_doc["name"] if status_doc else (status or "Todo"),
            "priority": priority_key(priority_number),
        }

    async def update_issue(
        self,
        issue_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Apply only the supplied fields.

        An unrecognized status is skipped rather than failing the update.
        """
        project, issue = await self.resolver.resolve_issue(issue_id)

        updates: Dict[str, Any] = {}
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = await self.markup.upload(
                classes.ISSUE, issue["_id"], "description", description
            )
        if priority is not None:
            updates["priority"] = priority_value(priority)
        if status is not None:
            vocabulary = await StatusVocabulary.load(self.workspace)
            found = vocabulary.find(status)
            if found:
                updates["status"] = found["_id"]
            else:
                logger.info("Skipping unknown status %r for %s", status, issue_id)

        if updates:
            await self.workspace.update_doc(classes.ISSUE, project["_id"], issue["_id"], updates)

        return {"id": composite_id(project, issue), "updated": list(updates)}
