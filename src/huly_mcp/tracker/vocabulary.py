"""Priority and status vocabulary.

Huly priority values: 0=No priority, 1=Urgent, 2=High, 3=Medium, 4=Low.
"""

from typing import Dict, List, Optional

from ..store import classes
from ..store.base import Doc
from .workspace import Workspace

PRIORITY_MAP: Dict[str, int] = {
    "none": 0,
    "urgent": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
}

PRIORITY_NAMES: List[str] = ["No Priority", "Urgent", "High", "Medium", "Low"]

DEFAULT_STATUS = "Todo"
UNKNOWN = "Unknown"


def priority_value(name: Optional[str]) -> int:
    """Map a priority name to its value; anything unrecognized is ``none``."""
    if not isinstance(name, str):
        return 0
    return PRIORITY_MAP.get(name.strip().lower(), 0)


def priority_key(value: int) -> str:
    """Inverse of ``priority_value``: 2 -> ``"high"``."""
    for key, number in PRIORITY_MAP.items():
        if number == value:
            return key
    return "none"


def priority_name(value) -> str:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < len(PRIORITY_NAMES):
        return PRIORITY_NAMES[value]
    return UNKNOWN


class StatusVocabulary:
    """The workspace's issue statuses, loaded once per operation."""

    def __init__(self, statuses: List[Doc]):
        self.statuses = statuses
        self._names = {s["_id"]: s.get("name", "") for s in statuses}

    @classmethod
    async def load(cls, workspace: Workspace) -> "StatusVocabulary":
        return cls(await workspace.find_all(classes.ISSUE_STATUS, {}))

    def find(self, name: Optional[str]) -> Optional[Doc]:
        """Case-insensitive exact match on status name."""
        if not name:
            return None
        wanted = name.strip().lower()
        for status in self.statuses:
            if (status.get("name") or "").lower() == wanted:
                return status
        return None

    def name_of(self, ref: Optional[str]) -> str:
        return self._names.get(ref) or UNKNOWN

    def default(self) -> Optional[Doc]:
        """``Todo`` if defined, else the first status."""
        for status in self.statuses:
            if status.get("name") == DEFAULT_STATUS:
                return status
        return self.statuses[0] if self.statuses else None


async def resolve_status_name(workspace: Workspace, ref: Optional[str]) -> str:
    if not ref:
        return UNKNOWN
    status = await workspace.find_one(classes.ISSUE_STATUS, {"_id": ref})
    return (status or {}).get("name") or UNKNOWN
