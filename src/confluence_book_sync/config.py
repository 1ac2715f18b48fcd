"""Configuration for a publishing run.

Reads Confluence connection settings from CLI args, environment variables,
.env files, the ``[output.confluence]`` table of ``book.toml`` and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > book.toml > YAML config > Built-in defaults

Environment variables:
    CONFLUENCE_ENABLED: Publish the book (optional, default: false)
    CONFLUENCE_URL: Confluence base URL (required)
    CONFLUENCE_USERNAME: Confluence username (required)
    CONFLUENCE_PASSWORD: Confluence password (required)
    CONFLUENCE_ROOT_PAGE: Id of the page the book is published under (required)
    CONFLUENCE_TITLE_PREFIX: Prefix prepended to every chapter title (optional)
    CONFLUENCE_INSECURE: Skip SSL verification (optional, default: false)
    CONFLUENCE_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass
class Config:
    url: str
    username: str
    password: str
    root_page: int
    title_prefix: str | None = None
    enabled: bool = True
    insecure: bool = False
    debug: bool = False

    def chapter_title(self, name: str) -> str:
        """Return the effective title of a chapter: prefix + name."""
        return f"{self.title_prefix or ''}{name}"


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If URL format is invalid, credentials are empty or
            the root page id is not positive.
    """
    config.url = config.url.strip()

    if not config.url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid Confluence URL '{config.url}': must start with http:// or https://"
        )

    parsed = urlparse(config.url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid Confluence URL '{config.url}': URL must include a hostname"
        )

    config.url = config.url.removesuffix("/")

    if not config.username.strip():
        raise ValueError(
            "Confluence username cannot be empty. Set CONFLUENCE_USERNAME environment variable."
        )

    if not config.password.strip():
        raise ValueError(
            "Confluence password cannot be empty. Set CONFLUENCE_PASSWORD environment variable."
        )

    if config.root_page <= 0:
        raise ValueError(
            f"Invalid root page id {config.root_page}: must be a positive page id"
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_bool(
    cli_value: bool, env_key: str, fallbacks: dict[str, Any], key: str
) -> bool:
    if cli_value:
        return True
    env_value = _get_bool_env(env_key)
    if env_value is not None:
        return env_value
    return bool(fallbacks.get(key, False))


def load_config(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    root_page: int | None = None,
    title_prefix: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    book_settings: dict[str, Any] | None = None,
    yaml_fallbacks: dict[str, Any] | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > book.toml > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override Confluence URL.
        username: Override username.
        password: Override password.
        root_page: Override the root page id.
        title_prefix: Override the chapter title prefix.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        book_settings: Non-None values of the ``[output.confluence]`` table.
        yaml_fallbacks: Non-None values of the YAML ``confluence`` section.

    Returns:
        Config instance. Only validated when ``enabled`` is true, so a
        disabled renderer never complains about missing credentials.

    Raises:
        ValueError: If required config (URL, username, password, root page)
            is missing after checking all sources.
    """
    # book.toml sits above YAML
    fb: dict[str, Any] = {**(yaml_fallbacks or {}), **(book_settings or {})}

    # Disabled unless explicitly enabled
    enabled = _resolve_bool(False, "CONFLUENCE_ENABLED", fb, "enabled")
    if not enabled:
        return Config(
            url=fb.get("url") or "",
            username=fb.get("username") or "",
            password=fb.get("password") or "",
            root_page=int(fb.get("root_page") or 0),
            enabled=False,
        )

    # --- String fields: CLI > env > book.toml > YAML > error ---

    final_url = url or os.getenv("CONFLUENCE_URL") or fb.get("url")
    if not final_url:
        raise ValueError(
            "Confluence URL not found. Set CONFLUENCE_URL environment variable, "
            "pass --url CLI argument, or add 'url' to [output.confluence] in book.toml."
        )

    final_username = (
        username or os.getenv("CONFLUENCE_USERNAME") or fb.get("username")
    )
    if not final_username:
        raise ValueError(
            "Confluence username not found. Set CONFLUENCE_USERNAME environment variable, "
            "pass --username CLI argument, or add 'username' to [output.confluence] in book.toml."
        )

    final_password = (
        password or os.getenv("CONFLUENCE_PASSWORD") or fb.get("password")
    )
    if not final_password:
        raise ValueError(
            "Confluence password not found. Set CONFLUENCE_PASSWORD environment variable, "
            "pass --password CLI argument, or add 'password' to [output.confluence] in book.toml."
        )

    final_prefix = (
        title_prefix
        if title_prefix is not None
        else os.getenv("CONFLUENCE_TITLE_PREFIX", fb.get("title_prefix"))
    )

    # --- Numeric fields: CLI > env > book.toml > YAML > error ---

    if root_page is not None:
        final_root_page = root_page
    else:
        root_page_raw = os.getenv("CONFLUENCE_ROOT_PAGE")
        if root_page_raw is not None:
            try:
                final_root_page = int(root_page_raw)
            except ValueError:
                raise ValueError(
                    f"Invalid CONFLUENCE_ROOT_PAGE '{root_page_raw}': must be a numeric page id"
                ) from None
        elif fb.get("root_page"):
            final_root_page = int(fb["root_page"])
        else:
            raise ValueError(
                "Confluence root page not found. Set CONFLUENCE_ROOT_PAGE environment variable, "
                "pass --root-page CLI argument, or add 'root_page' to [output.confluence] in book.toml."
            )

    config = Config(
        url=final_url.strip(),
        username=final_username.strip(),
        password=final_password.strip(),
        root_page=final_root_page,
        title_prefix=final_prefix or None,
        enabled=True,
        insecure=_resolve_bool(
            insecure, "CONFLUENCE_INSECURE", fb, "insecure"
        ),
        debug=_resolve_bool(debug, "CONFLUENCE_DEBUG", fb, "debug"),
    )

    validate_config(config)

    return config
