"""Tracker integration layer."""

from .identifiers import IdentifierResolver, parse_issue_id
from .service import TrackerService

__all__ = ["IdentifierResolver", "TrackerService", "parse_issue_id"]
