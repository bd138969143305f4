"""Description content boundary.

Issue descriptions are opaque content references. A MarkupCodec turns
markdown into a storable reference and back; the tracker never interprets
the reference itself.
"""

from typing import Protocol


class MarkupCodec(Protocol):
    """Protocol for the rich-text collaborator."""

    async def upload(self, object_class: str, object_id: str, attribute: str, markdown: str) -> str:
        """Store ``markdown`` for the attribute and return the content reference."""
        ...

    async def fetch(self, object_class: str, object_id: str, attribute: str, content_ref: str) -> str:
        """Resolve a stored content reference to markdown."""
        ...


class InlineMarkupCodec:
    """Stores markdown verbatim in the attribute."""

    async def upload(self, object_class: str, object_id: str, attribute: str, markdown: str) -> str:
        return markdown or ""

    async def fetch(self, object_class: str, object_id: str, attribute: str, content_ref: str) -> str:
        return content_ref or ""
