"""Session lifecycle for one publish run.

On startup:
- Load .env (so values are available for env var lookups and YAML
  interpolation)
- Load YAML config files and the book's ``[output.confluence]`` table
- Merge all sources via load_config(): CLI > env vars > book.toml > YAML
- Log in, read the server version and fetch the root page; any failure
  here is fatal for the run

On shutdown:
- Log out; failures are only warned about
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .book import RenderContext
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import ConfluenceSettings, UnifiedConfig, build_config
from .converters import AttachmentUploader, ContentTransformer
from .core.async_utils import run_sync
from .core.client import ConfluenceClient
from .core.models import RemotePage
from .detection import VersionGate
from .errors import SessionError, SyncError
from .sync import SyncReport, TreeSynchronizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Everything shared read-only by the pages of one run."""

    client: ConfluenceClient
    gate: VersionGate
    root: RemotePage


def load_yaml_config(book_root: Path | None = None) -> UnifiedConfig:
    """Load .env and the YAML config files (zero-config when none exist).

    ``book_root`` adds the book's own ``.env`` and project config file to
    the search; existing environment variables are never overridden.
    """
    # .env first so ${VAR} interpolation can use its values
    if book_root is not None:
        load_dotenv(book_root / ".env")
    load_dotenv()

    config_files = discover_config_files(book_root)
    if not config_files:
        return UnifiedConfig()
    logger.debug("Loading config files: %s", config_files)
    try:
        raw = load_hierarchical_config(book_root)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML config: {e}") from e
    return build_config(raw)


def load_settings(
    context: RenderContext,
    overrides: dict[str, Any] | None = None,
    unified: UnifiedConfig | None = None,
) -> Config:
    """Resolve the run configuration from every source.

    Raises:
        ValueError: If a source is malformed or required values are
            missing (pydantic's ValidationError is a ValueError).
    """
    if unified is None:
        unified = load_yaml_config(context.root)
    book_settings = ConfluenceSettings(**context.output_config)

    overrides = overrides or {}
    return load_config(
        url=overrides.get("url"),
        username=overrides.get("username"),
        password=overrides.get("password"),
        root_page=overrides.get("root_page"),
        title_prefix=overrides.get("title_prefix"),
        insecure=overrides.get("insecure", False),
        debug=overrides.get("debug", False),
        book_settings=book_settings.fallbacks(),
        yaml_fallbacks=unified.confluence.fallbacks(),
    )


async def _logout(client: ConfluenceClient) -> None:
    try:
        confirmed = await run_sync(client.logout)
    except Exception as e:
        logger.warning("Failed to log out of Confluence: %s", e)
        return
    if not confirmed:
        logger.warning("Confluence did not confirm the logout")


@asynccontextmanager
async def confluence_session(config: Config) -> AsyncIterator[Session]:
    """
    Log in and yield the session shared by every page of the run.

    Raises:
        SessionError: If login, version detection or the root page fetch
            fails. Nothing has been written to Confluence at that point.
    """
    client = ConfluenceClient(config)
    logger.info("Logging into %s as %s", config.url, config.username)
    try:
        await run_sync(client.login)
    except Exception as e:
        raise SessionError(
            f"Failed to log into Confluence at {config.url}: {e}"
        ) from e

    try:
        try:
            version = await run_sync(client.get_server_version)
        except Exception as e:
            raise SessionError(f"Failed to read server info: {e}") from e
        gate = VersionGate.parse(version)
        logger.info(
            "Connected to Confluence %s (extended text: %s)",
            gate,
            "yes" if gate.supports_extended_text() else "no",
        )

        try:
            root = await run_sync(client.get_page, config.root_page)
        except Exception as e:
            raise SessionError(
                f"Failed to fetch root page {config.root_page}: {e}"
            ) from e

        yield Session(client=client, gate=gate, root=root)
    finally:
        await _logout(client)


async def publish(config: Config, context: RenderContext) -> SyncReport:
    """Publish the book in ``context`` under the configured root page.

    Raises:
        SessionError: On any fatal session error, including a failure to
            list the root page's children. Page failures are reported in
            the returned report instead.
    """
    async with confluence_session(config) as session:
        uploader = AttachmentUploader(session.client)
        transformer = ContentTransformer(
            config, session.gate, uploader, context.src_dir
        )
        synchronizer = TreeSynchronizer(session.client, transformer, config)
        try:
            return await synchronizer.run(context.chapters, session.root)
        except SyncError:
            raise
        except Exception as e:
            raise SessionError(
                f"Failed to list pages under root page {session.root.id}: {e}"
            ) from e
