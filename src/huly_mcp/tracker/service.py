"""Wires the tracker components around one ConnectionManager."""

from typing import Optional

from ..config import Settings
from ..store.connection import ConnectionManager
from ..store.rest import connect_rest
from .identifiers import IdentifierResolver
from .issues import IssueService
from .labels import LabelManager
from .markup import InlineMarkupCodec, MarkupCodec
from .projects import ProjectService
from .relations import RelationManager
from .workspace import Workspace


class TrackerService:
    """All tracker operations exposed as tools."""

    def __init__(self, connections: ConnectionManager, markup: Optional[MarkupCodec] = None):
        self.connections = connections
        self.workspace = Workspace(connections)
        self.resolver = IdentifierResolver(self.workspace)
        self.labels = LabelManager(self.workspace)
        self.relations = RelationManager(self.workspace, self.resolver)
        self.projects = ProjectService(self.workspace, self.resolver)
        self.issues = IssueService(
            self.workspace, self.resolver, self.labels, markup or InlineMarkupCodec()
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrackerService":
        return cls(ConnectionManager(lambda: connect_rest(settings)))

    async def add_label(self, issue_id: str, label: str):
        project, issue = await self.resolver.resolve_issue(issue_id)
        return await self.labels.attach_label(project, issue, label)

    async def remove_label(self, issue_id: str, label: str):
        _, issue = await self.resolver.resolve_issue(issue_id)
        return await self.labels.detach_label(issue, label)

    async def close(self) -> None:
        await self.connections.close()
