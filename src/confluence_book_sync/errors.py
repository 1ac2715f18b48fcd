"""Exception hierarchy for a publishing run.

Two severities matter to the caller:

- ``SessionError`` aborts the whole run (login, server version, root page).
- ``PageError`` aborts one page and its subtree; siblings carry on.

Attachment upload failures never surface as exceptions, and orphan
deletion failures are only logged.
"""


class SyncError(Exception):
    """Base exception for all confluence-book-sync errors."""


class SessionError(SyncError):
    """Raised when the Confluence session cannot be set up or used."""


class VersionParseError(SessionError):
    """Raised when the server reports a version that is not semver-parsable."""

    def __init__(self, version: str, reason: str):
        super().__init__(
            f"Failed to parse Confluence version '{version}': {reason}"
        )
        self.version = version


class PageError(SyncError):
    """Raised when rendering a single chapter's page fails.

    ``page_id`` and ``url`` name the remote page when one exists, such as
    a freshly created stub whose content could not be stored.
    """

    def __init__(
        self,
        title: str,
        cause: Exception,
        page_id: int | None = None,
        url: str | None = None,
    ):
        super().__init__(f"Failed to render page '{title}': {cause}")
        self.title = title
        self.cause = cause
        self.page_id = page_id
        self.url = url
