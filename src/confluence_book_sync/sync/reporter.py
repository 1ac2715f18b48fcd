"""Publish report formatting functions.

- ``format_sync_report`` -- human-readable tree of page outcomes.
- ``report_to_json`` -- structured dict for ``--report json``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PageResult, SyncReport

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _format_tree(results: list[PageResult], depth: int) -> list[str]:
    lines = []
    for r in results:
        marker = "  " * depth + ("- " if r.success else "! ")
        lines.append(marker + r.summary())
        lines.extend(_format_tree(r.children, depth + 1))
    return lines


def format_sync_report(report: SyncReport) -> str:
    """Format a complete publish report as human-readable text.

    Pages are listed as an indented tree mirroring the book. Failed pages
    are marked with ``!`` and repeated in an ``Errors`` section.

    Args:
        report: The completed report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Publish report for root page {report.root_page}"
    if report.server_version:
        header += f" (Confluence {report.server_version})"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Published {len(report.all_results)} pages: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.deleted)} deleted, {len(report.errors)} errors"
    )
    lines.append("")

    if report.results:
        lines.extend(_format_tree(report.results, 0))
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.title}: {r.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def _result_to_json(result: PageResult) -> dict:
    entry: dict = {
        "title": result.title,
        "action": result.action.value,
        "success": result.success,
    }
    if result.page_id is not None:
        entry["page_id"] = result.page_id
    if result.url:
        entry["url"] = result.url
    if result.error:
        entry["error"] = result.error
    if result.children:
        entry["children"] = [_result_to_json(c) for c in result.children]
    return entry


def report_to_json(report: SyncReport) -> dict:
    """Convert a report to a structured dict for JSON serialisation.

    Args:
        report: The publish report.

    Returns:
        Dict with run info, counts, and the nested per-page results.
    """
    return {
        "root_page": report.root_page,
        "server_version": report.server_version,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.all_results),
            "created": len(report.created),
            "updated": len(report.updated),
            "deleted": len(report.deleted),
            "errors": len(report.errors),
        },
        "results": [_result_to_json(r) for r in report.results],
    }
