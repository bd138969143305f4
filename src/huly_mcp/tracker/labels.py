"""Label definitions (TagElement) and their attachments to issues (TagReference)."""

import logging
from typing import Any, Dict, List, Optional, Union

from ..exceptions import InvalidArgumentError
from ..store import classes
from ..store.base import Doc
from .workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_LABEL_COLOR = 0x4ECDC4


def parse_color(value: Union[int, str, None]) -> Optional[int]:
    """Accept an RGB integer or a ``#RRGGBB`` / ``0xRRGGBB`` string."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid color: {value}")
    if isinstance(value, (int, float)):
        color = int(value)
    else:
        text = str(value).strip().lower()
        if text.startswith("#"):
            text = text[1:]
        elif text.startswith("0x"):
            text = text[2:]
        try:
            color = int(text, 16)
        except ValueError:
            raise InvalidArgumentError(f"Invalid color: {value}") from None
    if not 0 <= color <= 0xFFFFFF:
        raise InvalidArgumentError(f"Color out of range: {value}")
    return color


def format_color(color: Optional[int]) -> Optional[str]:
    return f"#{color:06x}" if color else None


class LabelManager:
    """Find-or-create label definitions and idempotent attach/detach."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    async def find_label(self, title: str) -> Optional[Doc]:
        return await self.workspace.find_one(
            classes.TAG_ELEMENT, {"title": title, "targetClass": classes.ISSUE}
        )

    async def _create_definition(self, title: str, space: str, color: Optional[int] = None) -> Doc:
        attributes = {
            "title": title,
            "targetClass": classes.ISSUE,
            "description": "",
            "color": color or DEFAULT_LABEL_COLOR,
            "category": classes.LABEL_CATEGORY_OTHER,
        }
        label_id = await self.workspace.create_doc(classes.TAG_ELEMENT, space, attributes)
        logger.info("Created label %r (%s)", title, label_id)
        return {"_id": label_id, "space": space, **attributes}

    async def find_or_create_label(self, title: str, space: str) -> Doc:
        label = await self.find_label(title)
        if label:
            return label
        return await self._create_definition(title, space)

    async def attach_label(self, project: Doc, issue: Doc, title: str) -> Dict[str, str]:
        """Attach ``title`` to the issue, creating the definition if needed."""
        label = await self.find_or_create_label(title, project["_id"])

        existing = await self.workspace.find_one(
            classes.TAG_REFERENCE, {"attachedTo": issue["_id"], "tag": label["_id"]}
        )
        if existing:
            return {"message": f'Label "{title}" already attached'}

        await self.workspace.add_collection(
            classes.TAG_REFERENCE,
            project["_id"],
            issue["_id"],
            classes.ISSUE,
            classes.LABELS_COLLECTION,
            {
                "title": label["title"],
                "color": label.get("color") or 0,
                "tag": label["_id"],
            },
        )
        return {"message": f'Label "{title}" added'}

    async def detach_label(self, issue: Doc, title: str) -> Dict[str, str]:
        wanted = title.lower()
        for ref in await self.attachments(issue["_id"]):
            if (ref.get("title") or "").lower() == wanted:
                await self.workspace.remove_collection(
                    classes.TAG_REFERENCE,
                    ref.get("space") or issue["space"],
                    ref["_id"],
                    issue["_id"],
                    classes.ISSUE,
                    classes.LABELS_COLLECTION,
                )
                return {"message": f'Label "{title}" removed'}
        return {"message": f'Label "{title}" not found on issue'}

    async def attachments(self, issue_ref: str) -> List[Doc]:
        return await self.workspace.find_all(classes.TAG_REFERENCE, {"attachedTo": issue_ref})

    async def label_titles(self, issue_ref: str) -> List[str]:
        return [ref.get("title", "") for ref in await self.attachments(issue_ref)]

    async def list_labels(self) -> List[Dict[str, Any]]:
        labels = await self.workspace.find_all(
            classes.TAG_ELEMENT, {"targetClass": classes.ISSUE}
        )
        return [{"name": t.get("title"), "color": format_color(t.get("color"))} for t in labels]

    async def create_label(self, title: str, color: Union[int, str, None] = None) -> Dict[str, Any]:
        existing = await self.find_label(title)
        if existing:
            return {"message": f'Label "{title}" already exists', "id": existing["_id"]}

        projects = await self.workspace.find_all(classes.PROJECT, {}, {"limit": 1})
        space = projects[0]["_id"] if projects else classes.DEFAULT_PROJECT_SPACE

        label = await self._create_definition(title, space, parse_color(color))
        return {"message": f'Label "{title}" created', "id": label["_id"]}
