"""Configuration schema for confluence_book_sync.

Defines Pydantic models for the two structured config sources: the
``[output.confluence]`` table mdBook passes along in its render context,
and the YAML config files found by ``config_loader``.

Usage:
    from confluence_book_sync.config_schema import (
        ConfluenceSettings, UnifiedConfig, build_config,
    )

    book = ConfluenceSettings.model_validate(context.output_config)
    unified = build_config(load_hierarchical_config())
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ConfluenceSettings(BaseModel):
    """Confluence connection and publishing settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead. Unknown keys (mdBook's own
    ``command`` and ``optional``) are ignored.
    """

    enabled: bool | None = Field(
        default=None, description="Publish the book when true"
    )
    url: str | None = Field(
        default=None, description="Confluence base URL"
    )
    username: str | None = Field(
        default=None, description="Confluence username"
    )
    password: str | None = Field(
        default=None, description="Confluence password"
    )
    title_prefix: str | None = Field(
        default=None,
        description="Prefix prepended to every chapter title",
    )
    root_page: int | None = Field(
        default=None,
        gt=0,
        description="Id of the page the book is published under",
    )
    insecure: bool | None = Field(
        default=None,
        description="Disable SSL verification (development only)",
    )
    debug: bool | None = Field(
        default=None, description="Enable debug mode"
    )

    model_config = {"frozen": True, "extra": "ignore"}

    def fallbacks(self) -> dict:
        """Return only the values that were actually set."""
        return {
            k: v for k, v in self.model_dump().items() if v is not None
        }


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level YAML configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    confluence: ConfluenceSettings = Field(
        default_factory=ConfluenceSettings
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
