"""Composite issue identifiers (``PROJECT-NUMBER``) and entity lookup."""

import re
from typing import Tuple

from ..exceptions import InvalidFormatError, NotFoundError
from ..store import classes
from ..store.base import Doc
from .workspace import Workspace

ISSUE_ID_PATTERN = re.compile(r"^([A-Z0-9]+)-(\d+)$", re.IGNORECASE | re.ASCII)


def parse_issue_id(value: str) -> Tuple[str, int]:
    """Split ``"pryla-42"`` into ``("PRYLA", 42)``.

    Raises:
        InvalidFormatError: If the value is not ``<alnum key>-<number>``.
    """
    match = ISSUE_ID_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidFormatError(
            f"Invalid issue ID format: {value}. Expected format: PROJECT-NUMBER"
        )
    return match.group(1).upper(), int(match.group(2))


def composite_id(project: Doc, issue: Doc) -> str:
    return f"{project['identifier']}-{issue['number']}"


class IdentifierResolver:
    """Resolves human-facing keys to project and issue documents."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    async def resolve_project(self, identifier: str) -> Doc:
        project = await self.workspace.find_one(
            classes.PROJECT, {"identifier": identifier.strip().upper()}
        )
        if not project:
            raise NotFoundError("project", identifier)
        return project

    async def resolve_issue(self, issue_id: str) -> Tuple[Doc, Doc]:
        """Return ``(project, issue)`` for a composite id."""
        project_key, number = parse_issue_id(issue_id)
        project = await self.resolve_project(project_key)

        issue = await self.workspace.find_one(
            classes.ISSUE, {"space": project["_id"], "number": number}
        )
        if not issue:
            raise NotFoundError("issue", issue_id)
        return project, issue
