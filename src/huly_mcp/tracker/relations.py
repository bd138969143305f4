"""Issue relation edges: related-to, blocked-by and parent.

Edges live on the owning issue only. ``relations`` is meant to be symmetric
but is written on the first issue alone; ``blockedBy`` is directed
(blocked -> blocker); the parent is a single overwriting record. Lists are
read-modify-write without a concurrency check.
"""

import logging
from typing import Any, Dict, List

from ..exceptions import InvalidArgumentError
from ..store import classes
from ..store.base import Doc
from .identifiers import IdentifierResolver, composite_id
from .workspace import Workspace

logger = logging.getLogger(__name__)


def _edge(issue: Doc) -> Dict[str, str]:
    return {"_id": issue["_id"], "_class": classes.ISSUE}


def _has_edge(edges: List[Dict[str, Any]], ref: str) -> bool:
    return any(edge.get("_id") == ref for edge in edges or [])


class RelationManager:
    """Idempotent edge insertion on the issue graph."""

    def __init__(self, workspace: Workspace, resolver: IdentifierResolver):
        self.workspace = workspace
        self.resolver = resolver

    async def _resolve_pair(self, issue_id: str, other_id: str, kind: str):
        project, issue = await self.resolver.resolve_issue(issue_id)
        other_project, other = await self.resolver.resolve_issue(other_id)
        if issue["_id"] == other["_id"]:
            raise InvalidArgumentError(f"An issue cannot be {kind} itself: {issue_id}")
        return project, issue, other_project, other

    async def _append_edge(self, project: Doc, issue: Doc, attribute: str, target: Doc) -> bool:
        """Append an edge to ``issue[attribute]``; False if already present."""
        edges = list(issue.get(attribute) or [])
        if _has_edge(edges, target["_id"]):
            return False
        edges.append(_edge(target))
        await self.workspace.update_doc(
            classes.ISSUE, project["_id"], issue["_id"], {attribute: edges}
        )
        return True

    async def add_relation(self, issue_id: str, related_id: str) -> Dict[str, str]:
        project, issue, other_project, other = await self._resolve_pair(
            issue_id, related_id, "related to"
        )
        source, target = composite_id(project, issue), composite_id(other_project, other)

        if not await self._append_edge(project, issue, "relations", other):
            message = f"{source} is already related to {target}"
        else:
            logger.info("Related %s -> %s", source, target)
            message = f"Added relation: {source} is related to {target}"
        return {"message": message, "issueId": source, "relatedTo": target}

    async def add_blocked_by(self, issue_id: str, blocker_id: str) -> Dict[str, str]:
        project, issue, other_project, other = await self._resolve_pair(
            issue_id, blocker_id, "blocked by"
        )
        blocked, blocker = composite_id(project, issue), composite_id(other_project, other)

        if not await self._append_edge(project, issue, "blockedBy", other):
            message = f"{blocked} is already blocked by {blocker}"
        else:
            logger.info("Blocked %s by %s", blocked, blocker)
            message = f"Added dependency: {blocked} is blocked by {blocker}"
        return {"message": message, "issueId": blocked, "blockedBy": blocker}

    async def set_parent(self, issue_id: str, parent_id: str) -> Dict[str, str]:
        """Make ``parent_id`` the parent, replacing any previous parent.

        The parent's sub-issue aggregates are left to the store.
        """
        project, issue, parent_project, parent = await self._resolve_pair(
            issue_id, parent_id, "the parent of"
        )
        child, parent_key = composite_id(project, issue), composite_id(parent_project, parent)

        await self.workspace.update_doc(
            classes.ISSUE,
            project["_id"],
            issue["_id"],
            {
                "attachedTo": parent["_id"],
                "attachedToClass": classes.ISSUE,
                "collection": classes.SUB_ISSUES_COLLECTION,
                "parents": [
                    {
                        "parentId": parent["_id"],
                        "identifier": parent_key,
                        "parentTitle": parent.get("title", ""),
                        "space": parent_project["_id"],
                    }
                ],
            },
        )
        logger.info("Set parent of %s to %s", child, parent_key)
        return {
            "message": f"Set {parent_key} as parent of {child}",
            "issueId": child,
            "parentId": parent_key,
        }
