"""
Capability detection for Confluence servers.

The reported server version decides how page bodies are encoded, so it is
read once when the session starts and shared read-only by every page
render afterwards.
"""

import logging

import semver

from ..errors import VersionParseError

logger = logging.getLogger(__name__)

# Confluence releases before 7.3 cannot store 4-byte UTF-8 sequences
# (emoji and the like) in page bodies.
EXTENDED_TEXT_VERSION = semver.Version(7, 3, 0)


class VersionGate:
    """Answers capability questions from the server's semantic version."""

    def __init__(self, version: semver.Version):
        self.version = version

    @classmethod
    def parse(cls, version_string: str) -> "VersionGate":
        """
        Parse a ``major.minor.patch`` version string.

        Raises:
            VersionParseError: If the string is not a valid semantic version.
                There is no safe default since the version changes the
                output encoding.
        """
        try:
            version = semver.Version.parse(version_string.strip())
        except (ValueError, TypeError) as e:
            raise VersionParseError(version_string, str(e)) from e
        return cls(version)

    def supports_extended_text(self) -> bool:
        """True if the server accepts 4-byte code points in page bodies."""
        return self.version >= EXTENDED_TEXT_VERSION

    def __str__(self) -> str:
        return str(self.version)

    def __repr__(self) -> str:
        return f"VersionGate({self.version})"
