"""Project listing and lookup."""

from typing import Any, Dict, List

from ..store import classes
from ..store.base import Doc
from .identifiers import IdentifierResolver
from .workspace import Workspace


class ProjectService:
    def __init__(self, workspace: Workspace, resolver: IdentifierResolver):
        self.workspace = workspace
        self.resolver = resolver

    async def _issue_count(self, project: Doc) -> int:
        issues = await self.workspace.find_all(
            classes.ISSUE, {"space": project["_id"]}, {"projection": {"_id": 1}}
        )
        return len(issues)

    async def list_projects(self) -> List[Dict[str, Any]]:
        result = []
        for project in await self.workspace.find_all(classes.PROJECT, {}):
            result.append({
                "id": project["_id"],
                "identifier": project["identifier"],
                "name": project.get("name") or project["identifier"],
                "issueCount": await self._issue_count(project),
            })
        return result

    async def get_project(self, identifier: str) -> Dict[str, Any]:
        project = await self.resolver.resolve_project(identifier)
        return {
            "id": project["_id"],
            "identifier": project["identifier"],
            "name": project.get("name") or project["identifier"],
            "description": project.get("description") or "",
            "issueCount": await self._issue_count(project),
        }
