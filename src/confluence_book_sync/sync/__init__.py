"""Chapter tree synchronization.

Public API for publishing a book's chapter tree under a Confluence page.

Modules:

- ``engine``    -- ``TreeSynchronizer``: matches, publishes and prunes
  pages one sibling group at a time.
- ``models``    -- ``PageAction``, ``PageResult``, ``SyncReport``.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from confluence_book_sync.sync import TreeSynchronizer, format_sync_report

    synchronizer = TreeSynchronizer(client, transformer, config)
    report = await synchronizer.run(context.chapters, root_page)
    print(format_sync_report(report))
"""

from .engine import TreeSynchronizer, take_match
from .models import PageAction, PageResult, SyncReport
from .reporter import format_sync_report, report_to_json

__all__ = [
    "PageAction",
    "PageResult",
    "SyncReport",
    "TreeSynchronizer",
    "format_sync_report",
    "report_to_json",
    "take_match",
]
