"""Chapter markdown to Confluence storage format.

Confluence renders the chapter through its ``markdown`` macro, so the
markdown itself is kept. The pipeline only rewrites image references to
point at uploaded attachments and makes the text safe for the macro's
CDATA body and for the server's character support.
"""

import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import mistune
import regex
from mistune.renderers.markdown import MarkdownRenderer

from ..book import ChapterNode
from ..config import Config
from ..core.models import PageUpdate, ParentContext, RemotePage
from ..detection import VersionGate
from .attachments import AttachmentUploader

logger = logging.getLogger(__name__)

# Links with a URI scheme (http:, data:, ...) are never uploaded
SCHEME_LINK = re.compile(r"^[a-z][a-z0-9+.-]*:")

UNSUPPORTED_CHAR_PLACEHOLDER = "⸮"

_GRAPHEME = regex.compile(r"\X")

# Punctuation that means something inline when left unescaped
_INLINE_SPECIAL = re.compile(r"([\\`*_\[\]<>])")

MARKDOWN_MACRO = (
    '<ac:structured-macro ac:name="markdown" ac:schema-version="1" '
    'ac:macro-id="249327eb-2c99-42ca-a7a7-487e1c0c7e04">\n'
    "  <ac:plain-text-body>{body}</ac:plain-text-body>\n"
    "</ac:structured-macro>"
)


def downgrade_extended_text(text: str) -> str:
    """Replace every grapheme cluster of 4+ UTF-8 bytes with a placeholder."""
    parts = []
    for grapheme in _GRAPHEME.findall(text):
        if len(grapheme.encode("utf-8")) >= 4:
            logger.warning("Removed unsupported char: %s", grapheme)
            parts.append(UNSUPPORTED_CHAR_PLACEHOLDER)
        else:
            parts.append(grapheme)
    return "".join(parts)


def to_cdata(text: str, gate: VersionGate) -> str:
    """Wrap ``text`` in a CDATA section the server will accept.

    Servers without extended text support get their 4-byte clusters
    replaced first. Any ``]]>`` in the text is split across two CDATA
    sections so it cannot end the section early.
    """
    if not gate.supports_extended_text():
        text = downgrade_extended_text(text)

    escaped = text.replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{escaped}]]>"


def to_page_content(markdown: str, gate: VersionGate) -> str:
    """Wrap rendered markdown in the Confluence markdown macro."""
    return MARKDOWN_MACRO.format(body=to_cdata(markdown, gate))


class LiteralTextRenderer(MarkdownRenderer):
    """``MarkdownRenderer`` that keeps literal text literal.

    The parser strips the backslash from escaped punctuation, so ``\\<T\\>``
    reaches the renderer as ``<T>``. Plain text is escaped again on output.
    """

    def text(self, token: dict[str, Any], state: Any) -> str:
        return _INLINE_SPECIAL.sub(r"\\\1", token["raw"])


def iter_images(tokens: list[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    """Yield every image token, depth first, in document order."""
    for token in tokens:
        if token.get("type") == "image":
            yield token
        children = token.get("children")
        if isinstance(children, list):
            yield from iter_images(children)


class ContentTransformer:
    """Turns a chapter into the storage-format body of its page.

    Args:
        config: Run configuration (for the effective page title).
        gate: Capabilities of the target server.
        uploader: Uploads local images as attachments.
        src_dir: The book's source directory.
    """

    def __init__(
        self,
        config: Config,
        gate: VersionGate,
        uploader: AttachmentUploader,
        src_dir: Path,
    ) -> None:
        self.config = config
        self.gate = gate
        self.uploader = uploader
        self.src_dir = src_dir

    async def render_markdown(self, node: ChapterNode, page_id: int) -> str:
        """Re-render the chapter's markdown with image links rewritten.

        Local images are uploaded to ``page_id`` one after another; each
        successful upload swaps the image URL for the attachment URL. When
        no URL changed the chapter source is returned as is.
        """
        markdown = mistune.create_markdown(renderer=None)
        tokens, state = markdown.parse(node.content)

        chapter_dir = node.directory(self.src_dir)
        rewritten = False
        for image in iter_images(tokens):
            attrs = image.setdefault("attrs", {})
            url = attrs.get("url", "")
            if not url or SCHEME_LINK.match(url):
                continue

            new_url = await self.uploader.upload(
                page_id, chapter_dir / unquote(url), attrs.get("title")
            )
            if new_url is not None:
                attrs["url"] = new_url
                # A reference-style image would still print its old target
                image.pop("label", None)
                image.pop("ref", None)
                rewritten = True

        if not rewritten:
            return node.content
        return LiteralTextRenderer()(tokens, state)

    async def render_content(self, node: ChapterNode, page_id: int) -> str:
        """Full storage-format body for the chapter's page."""
        markdown = await self.render_markdown(node, page_id)
        return to_page_content(markdown, self.gate)

    async def transform(
        self,
        node: ChapterNode,
        stub: RemotePage,
        parent: ParentContext,
    ) -> PageUpdate:
        """Build the update that stores the chapter into ``stub``.

        The update carries the stub's id and version, so storing it is an
        optimistic-locked update of exactly the page that was fetched or
        just created.
        """
        return PageUpdate(
            id=stub.id,
            space=parent.space,
            title=self.config.chapter_title(node.title),
            content=await self.render_content(node, stub.id),
            version=stub.version,
            parent_id=parent.id,
        )
