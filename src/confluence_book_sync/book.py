"""Read the book mdBook hands to an alternative renderer.

mdBook runs each ``[output.*]`` renderer as a subprocess and writes a JSON
render context to its stdin. This module turns that document into a tree
of ``ChapterNode`` values plus the few settings the publisher needs.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import semver

logger = logging.getLogger(__name__)

SUPPORTED_MDBOOK_VERSION = "0.4.0"


@dataclass(frozen=True)
class ChapterNode:
    """One chapter of the book.

    ``path`` is the chapter's source file relative to the book's source
    directory; draft chapters have none. Children keep document order.
    """

    title: str
    content: str = ""
    path: Path | None = None
    children: tuple[ChapterNode, ...] = field(default_factory=tuple)

    def directory(self, src_dir: Path) -> Path:
        """Directory relative image references are resolved against."""
        if self.path is None:
            return src_dir
        return src_dir / self.path.parent


@dataclass(frozen=True)
class RenderContext:
    version: str
    root: Path
    src_dir: Path
    chapters: tuple[ChapterNode, ...]
    output_config: dict[str, Any]


def parse_items(items: list[Any]) -> tuple[ChapterNode, ...]:
    """Convert serialized ``BookItem`` values into chapter nodes.

    Separators and part titles carry no page of their own and are skipped.
    """
    chapters = []
    for item in items:
        if isinstance(item, dict) and "Chapter" in item:
            chapters.append(_parse_chapter(item["Chapter"]))
        else:
            logger.debug("Skipping non-chapter book item: %r", item)
    return tuple(chapters)


def _parse_chapter(data: dict[str, Any]) -> ChapterNode:
    path = data.get("path")
    return ChapterNode(
        title=data["name"],
        content=data.get("content") or "",
        path=Path(path) if path else None,
        children=parse_items(data.get("sub_items") or []),
    )


def _check_mdbook_version(version: str) -> None:
    try:
        actual = semver.Version.parse(version)
    except ValueError:
        logger.warning("Unrecognized mdbook version: %s", version)
        return
    supported = semver.Version.parse(SUPPORTED_MDBOOK_VERSION)
    if (actual.major, actual.minor) != (supported.major, supported.minor):
        logger.warning(
            "Warning: The confluence renderer was built against version %s "
            "of mdbook, but we're being called from version %s",
            SUPPORTED_MDBOOK_VERSION,
            version,
        )


def parse_render_context(data: dict[str, Any]) -> RenderContext:
    """Build a ``RenderContext`` from the decoded JSON document.

    Raises:
        ValueError: If the document is not an mdBook render context.
    """
    try:
        sections = data["book"]["sections"]
        root = Path(data["root"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid mdbook render context: missing {e}") from e

    config = data.get("config") or {}
    src = (config.get("book") or {}).get("src") or "src"
    version = str(data.get("version", ""))
    _check_mdbook_version(version)

    return RenderContext(
        version=version,
        root=root,
        src_dir=root / src,
        chapters=parse_items(sections),
        output_config=(config.get("output") or {}).get("confluence") or {},
    )


def load_render_context(stream: IO[str]) -> RenderContext:
    """Read and parse a render context from a text stream (usually stdin).

    Raises:
        ValueError: If the stream is not valid JSON or not a render context.
    """
    try:
        data = json.load(stream)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid mdbook render context: {e}") from e
    return parse_render_context(data)
