"""Pydantic models describing the outcome of a publish run.

- ``PageAction``: What was attempted for a page.
- ``PageResult``: Outcome for one page, with its children's outcomes.
- ``SyncReport``: Aggregate results for a full run.

All models are frozen (immutable).
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel


class PageAction(str, Enum):
    """Operations the synchronizer performs on remote pages."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


_PAST_TENSE = {
    PageAction.CREATE: "Created",
    PageAction.UPDATE: "Updated",
    PageAction.DELETE: "Deleted",
}


class PageResult(BaseModel):
    """Result of publishing (or deleting) one page.

    Attributes:
        title: Effective page title.
        action: Operation that was attempted.
        success: Whether the operation succeeded.
        page_id: Remote page id, when one is known.
        url: Remote page URL, when one is known.
        error: Error message if the operation failed.
        children: Results for the page's child chapters and orphans.
    """

    title: str
    action: PageAction
    success: bool = True
    page_id: int | None = None
    url: str | None = None
    error: str | None = None
    children: list[PageResult] = []

    model_config = {"frozen": True}

    def summary(self) -> str:
        """One-line description, e.g. ``Created 'Intro' https://...``."""
        if not self.success:
            return (
                f"Failed to {self.action.value} '{self.title}': {self.error}"
            )
        if self.action == PageAction.DELETE:
            return f"Deleted '{self.title}' ({self.page_id})"
        verb = _PAST_TENSE[self.action]
        return f"{verb} '{self.title}' {self.url or ''}".rstrip()

    def walk(self) -> Iterator[PageResult]:
        """Yield this result and every descendant, parents first."""
        yield self
        for child in self.children:
            yield from child.walk()


class SyncReport(BaseModel):
    """Aggregate report for a full publish run.

    Attributes:
        root_page: Id of the page the book was published under.
        server_version: Version reported by Confluence.
        results: Results for the top-level chapters (and root orphans).
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    root_page: int
    server_version: str | None = None
    results: list[PageResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def all_results(self) -> list[PageResult]:
        """Every result in the tree, parents before children."""
        return [r for top in self.results for r in top.walk()]

    def _successful(self, action: PageAction) -> list[PageResult]:
        return [
            r for r in self.all_results if r.success and r.action == action
        ]

    @property
    def created(self) -> list[PageResult]:
        """Pages created during the run."""
        return self._successful(PageAction.CREATE)

    @property
    def updated(self) -> list[PageResult]:
        """Existing pages that were overwritten."""
        return self._successful(PageAction.UPDATE)

    @property
    def deleted(self) -> list[PageResult]:
        """Orphaned pages that were removed."""
        return self._successful(PageAction.DELETE)

    @property
    def errors(self) -> list[PageResult]:
        """Results where success is False."""
        return [r for r in self.all_results if not r.success]
