"""Tests for publish report models and formatting.

Covers:
- PageResult.summary lines and tree walking
- SyncReport counts across nested results
- format_sync_report text layout
- report_to_json structure
"""

from __future__ import annotations

import json

from confluence_book_sync.sync.models import PageAction, PageResult, SyncReport
from confluence_book_sync.sync.reporter import format_sync_report, report_to_json

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _report(results: list[PageResult] | None = None) -> SyncReport:
    return SyncReport(
        root_page=42,
        server_version="7.4.1",
        results=results or [],
        started_at="2026-02-07T10:00:00Z",
        completed_at="2026-02-07T10:01:00Z",
    )


def _tree() -> list[PageResult]:
    return [
        PageResult(
            title="Guide",
            action=PageAction.CREATE,
            page_id=1001,
            url="https://wiki/1001",
            children=[
                PageResult(
                    title="Install",
                    action=PageAction.UPDATE,
                    page_id=7,
                    url="https://wiki/7",
                ),
                PageResult(
                    title="Stale",
                    action=PageAction.DELETE,
                    page_id=8,
                    url="https://wiki/8",
                ),
            ],
        ),
        PageResult(
            title="Broken",
            action=PageAction.CREATE,
            success=False,
            error="Failed to render page 'Broken': boom",
        ),
    ]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestPageResult:
    def test_created_summary(self):
        result = PageResult(
            title="Intro", action=PageAction.CREATE, url="https://wiki/1"
        )
        assert result.summary() == "Created 'Intro' https://wiki/1"

    def test_updated_summary(self):
        result = PageResult(
            title="Intro", action=PageAction.UPDATE, url="https://wiki/1"
        )
        assert result.summary() == "Updated 'Intro' https://wiki/1"

    def test_deleted_summary(self):
        result = PageResult(title="Old", action=PageAction.DELETE, page_id=9)
        assert result.summary() == "Deleted 'Old' (9)"

    def test_failed_summary(self):
        result = PageResult(
            title="Bad",
            action=PageAction.UPDATE,
            success=False,
            error="denied",
        )
        assert result.summary() == "Failed to update 'Bad': denied"

    def test_walk_is_depth_first(self):
        [guide, broken] = _tree()
        assert [r.title for r in guide.walk()] == ["Guide", "Install", "Stale"]
        assert [r.title for r in broken.walk()] == ["Broken"]


class TestSyncReport:
    def test_counts_include_nested_results(self):
        report = _report(_tree())

        assert [r.title for r in report.all_results] == [
            "Guide",
            "Install",
            "Stale",
            "Broken",
        ]
        assert [r.title for r in report.created] == ["Guide"]
        assert [r.title for r in report.updated] == ["Install"]
        assert [r.title for r in report.deleted] == ["Stale"]
        assert [r.title for r in report.errors] == ["Broken"]


# ---------------------------------------------------------------------------
# format_sync_report
# ---------------------------------------------------------------------------


class TestFormatSyncReport:
    def test_header_and_counts(self):
        text = format_sync_report(_report(_tree()))

        assert text.startswith(
            "Publish report for root page 42 (Confluence 7.4.1)"
        )
        assert "Started: 2026-02-07T10:00:00Z" in text
        assert (
            "Published 4 pages: 1 created, 1 updated, 1 deleted, 1 errors"
            in text
        )

    def test_tree_is_indented(self):
        lines = format_sync_report(_report(_tree())).splitlines()

        assert "- Created 'Guide' https://wiki/1001" in lines
        assert "  - Updated 'Install' https://wiki/7" in lines
        assert "  - Deleted 'Stale' (8)" in lines
        assert "! Failed to create 'Broken': Failed to render page 'Broken': boom" in lines

    def test_errors_section(self):
        text = format_sync_report(_report(_tree()))
        assert "Errors:\n  Broken: Failed to render page 'Broken': boom" in text

    def test_empty_report(self):
        text = format_sync_report(_report())
        assert "Published 0 pages" in text
        assert "Errors:" not in text


# ---------------------------------------------------------------------------
# report_to_json
# ---------------------------------------------------------------------------


class TestReportToJson:
    def test_structure(self):
        data = report_to_json(_report(_tree()))

        assert data["root_page"] == 42
        assert data["server_version"] == "7.4.1"
        assert data["counts"] == {
            "total": 4,
            "created": 1,
            "updated": 1,
            "deleted": 1,
            "errors": 1,
        }
        guide, broken = data["results"]
        assert guide["title"] == "Guide"
        assert guide["action"] == "create"
        assert guide["page_id"] == 1001
        assert [c["title"] for c in guide["children"]] == ["Install", "Stale"]
        assert broken["success"] is False
        assert "error" in broken
        assert "children" not in broken

    def test_serializable(self):
        json.dumps(report_to_json(_report(_tree())))
