"""Tree synchronizer that mirrors the book's chapter tree onto Confluence.

For every group of sibling chapters the ``TreeSynchronizer``:

1. Lists the remote children of the parent page.
2. Matches each chapter to a remote child by effective title.
3. Publishes all chapters of the group concurrently, each one creating or
   updating its page and then recursing into its own children.
4. Deletes the remote children no chapter claimed.
5. Returns one ``PageResult`` per chapter and per deleted orphan.

Error handling is per-page: a failed chapter (and with it its subtree)
does not abort its siblings or the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from confluence_book_sync.book import ChapterNode
from confluence_book_sync.config import Config
from confluence_book_sync.converters.storage_format import ContentTransformer
from confluence_book_sync.core.async_utils import run_sync
from confluence_book_sync.core.client import ConfluenceClient
from confluence_book_sync.core.models import (
    PageUpdate,
    ParentContext,
    RemotePage,
    RemotePageSummary,
)
from confluence_book_sync.errors import PageError
from confluence_book_sync.sync.models import PageAction, PageResult, SyncReport

logger = logging.getLogger(__name__)


def take_match(
    remaining: list[RemotePageSummary], title: str
) -> RemotePageSummary | None:
    """Remove and return the last page in ``remaining`` titled ``title``.

    Scanning from the end means that when Confluence reports duplicate
    titles the later one is reused and the earlier one becomes an orphan.
    """
    for index in range(len(remaining) - 1, -1, -1):
        if remaining[index].title == title:
            return remaining.pop(index)
    return None


class TreeSynchronizer:
    """Publish chapter trees under a parent page.

    Args:
        client: Logged-in ConfluenceClient.
        transformer: Renders chapters into page updates.
        config: Run configuration (for effective titles).
    """

    def __init__(
        self,
        client: ConfluenceClient,
        transformer: ContentTransformer,
        config: Config,
    ) -> None:
        self.client = client
        self.transformer = transformer
        self.config = config

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(
        self, chapters: Sequence[ChapterNode], root: RemotePage
    ) -> SyncReport:
        """Publish the whole book under ``root``.

        Raises:
            Exception: Whatever listing the root page's children raised;
                nothing can be published without it.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        results = await self.sync_group(chapters, ParentContext.from_page(root))
        return SyncReport(
            root_page=root.id,
            server_version=str(self.transformer.gate),
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Sibling groups
    # ------------------------------------------------------------------

    async def sync_group(
        self, nodes: Sequence[ChapterNode], parent: ParentContext
    ) -> list[PageResult]:
        """Make the children of ``parent`` mirror ``nodes``.

        Only the initial child listing can raise; every page failure is
        logged and recorded as a failed result.
        """
        remaining = await run_sync(self.client.get_children, parent.id)

        matches = []
        for node in nodes:
            existing = take_match(remaining, self.config.chapter_title(node.title))
            matches.append((node, existing))

        outcomes = await asyncio.gather(
            *(
                self.render_page(
                    node, parent, existing.id if existing else None
                )
                for node, existing in matches
            ),
            return_exceptions=True,
        )

        results: list[PageResult] = []
        for (node, existing), outcome in zip(matches, outcomes):
            if isinstance(outcome, PageResult):
                logger.info("%s", outcome.summary())
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.error("%s", outcome)
                page_id = existing.id if existing else None
                url = existing.url if existing else None
                if isinstance(outcome, PageError) and outcome.page_id is not None:
                    page_id, url = outcome.page_id, outcome.url
                results.append(
                    PageResult(
                        title=self.config.chapter_title(node.title),
                        action=(
                            PageAction.UPDATE if existing else PageAction.CREATE
                        ),
                        success=False,
                        page_id=page_id,
                        url=url,
                        error=str(outcome),
                    )
                )
            else:
                raise outcome

        for orphan in remaining:
            results.append(await self._delete_orphan(orphan))

        return results

    async def _delete_orphan(self, page: RemotePageSummary) -> PageResult:
        try:
            await run_sync(self.client.remove_page, page.id)
        except Exception as exc:
            logger.error("Failed to delete page '%s': %s", page.title, exc)
            return PageResult(
                title=page.title,
                action=PageAction.DELETE,
                success=False,
                page_id=page.id,
                url=page.url,
                error=str(exc),
            )
        logger.info("Deleted page '%s' (%s)", page.title, page.id)
        return PageResult(
            title=page.title,
            action=PageAction.DELETE,
            page_id=page.id,
            url=page.url,
        )

    # ------------------------------------------------------------------
    # Single page
    # ------------------------------------------------------------------

    async def render_page(
        self,
        node: ChapterNode,
        parent: ParentContext,
        existing_page_id: int | None = None,
    ) -> PageResult:
        """Publish one chapter and, once it is stored, its children.

        Raises:
            PageError: If any step for this page failed. Children are
                never published under a page that could not be stored.
        """
        title = self.config.chapter_title(node.title)
        stub: RemotePage | None = None
        try:
            if existing_page_id is None:
                action = PageAction.CREATE
                stub = await run_sync(
                    self.client.store_page,
                    PageUpdate(
                        space=parent.space,
                        title=title,
                        content="",
                        parent_id=parent.id,
                    ),
                )
            else:
                action = PageAction.UPDATE
                stub = await run_sync(self.client.get_page, existing_page_id)

            update = await self.transformer.transform(node, stub, parent)
            stored = await run_sync(self.client.store_page, update)
            children = await self.sync_group(
                node.children, ParentContext.from_page(stored)
            )
        except Exception as exc:
            # Once stored, even an empty stub is a real page
            raise PageError(
                title,
                exc,
                page_id=stub.id if stub else None,
                url=stub.url if stub else None,
            ) from exc

        return PageResult(
            title=title,
            action=action,
            page_id=stored.id,
            url=stored.url,
            children=children,
        )
