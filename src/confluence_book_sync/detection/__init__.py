"""
Confluence capability detection.

Derives feature flags from the version the server reports at login.
"""

from .capabilities import EXTENDED_TEXT_VERSION, VersionGate

__all__ = ["EXTENDED_TEXT_VERSION", "VersionGate"]
