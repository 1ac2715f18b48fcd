"""Value types exchanged with the Confluence XML-RPC API.

Confluence sends 64-bit ids as strings; every ``from_struct`` constructor
normalizes them to ``int`` so the rest of the package never deals with
the wire representation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class RemotePage:
    """A full page as returned by ``getPage`` / ``storePage``."""

    id: int
    space: str
    title: str
    version: int
    url: str
    parent_id: int | None = None
    content: str = ""

    @classmethod
    def from_struct(cls, struct: dict[str, Any]) -> RemotePage:
        return cls(
            id=int(struct["id"]),
            space=struct["space"],
            title=struct.get("title", ""),
            version=int(struct.get("version", 0)),
            url=struct.get("url", ""),
            parent_id=_optional_int(struct.get("parentId")) or None,
            content=struct.get("content") or "",
        )


@dataclass(frozen=True)
class RemotePageSummary:
    """Lightweight page entry returned by ``getChildren``."""

    id: int
    space: str
    title: str
    url: str
    parent_id: int | None = None

    @classmethod
    def from_struct(cls, struct: dict[str, Any]) -> RemotePageSummary:
        return cls(
            id=int(struct["id"]),
            space=struct["space"],
            title=struct.get("title", ""),
            url=struct.get("url", ""),
            parent_id=_optional_int(struct.get("parentId")) or None,
        )


@dataclass(frozen=True)
class ParentContext:
    """The page new children are created under: its id and space."""

    id: int
    space: str

    @classmethod
    def from_page(
        cls, page: RemotePage | RemotePageSummary
    ) -> ParentContext:
        return cls(id=page.id, space=page.space)


@dataclass(frozen=True)
class PageUpdate:
    """Payload for ``storePage``.

    Without ``id`` and ``version`` Confluence creates a new page; with
    both it updates the page, rejecting the store when ``version`` is no
    longer the current one.
    """

    space: str
    title: str
    content: str
    parent_id: int | None = None
    id: int | None = None
    version: int | None = None

    def to_struct(self) -> dict[str, Any]:
        struct: dict[str, Any] = {
            "space": self.space,
            "title": self.title,
            "content": self.content,
        }
        if self.parent_id is not None:
            struct["parentId"] = str(self.parent_id)
        if self.id is not None:
            struct["id"] = str(self.id)
        if self.version is not None:
            struct["version"] = self.version
        return struct


@dataclass(frozen=True)
class AttachmentDescriptor:
    """Metadata sent alongside an attachment's bytes."""

    file_name: str
    content_type: str
    title: str | None = None
    comment: str | None = None

    def to_struct(self) -> dict[str, Any]:
        struct: dict[str, Any] = {
            "fileName": self.file_name,
            "contentType": self.content_type,
        }
        if self.title:
            struct["title"] = self.title
        if self.comment:
            struct["comment"] = self.comment
        return struct


@dataclass(frozen=True)
class UploadedAttachment:
    """Result of ``addAttachment``. Only ``url`` is used by the renderer."""

    url: str | None = None
    creator: str | None = None
    file_size: int | None = None
    created: str | None = None

    @classmethod
    def from_struct(cls, struct: dict[str, Any]) -> UploadedAttachment:
        created = struct.get("created")
        return cls(
            url=struct.get("url") or None,
            creator=struct.get("creator"),
            file_size=_optional_int(struct.get("fileSize")),
            created=str(created) if created is not None else None,
        )
