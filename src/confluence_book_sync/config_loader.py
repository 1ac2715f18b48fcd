"""
YAML files holding connection settings outside ``book.toml``.

``book.toml`` is usually committed next to the book, so passwords and
per-user URLs are better kept in a YAML file. Files are looked up in this
order, earlier ones taking precedence:

1. the file named by ``CONFLUENCE_BOOK_CONFIG``
2. ``.confluence_book/config.yml`` in the book root
3. ``.confluence_book/config.yml`` in the working directory
4. ``~/.config/confluence_book/config.yml``

mdBook starts a renderer inside the build output directory, which is why
the book root is searched separately from the working directory.

String values may reference the environment as ``${VAR}`` or
``${VAR:-fallback}``.

Usage:
    from confluence_book_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config(context.root)
"""

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "CONFLUENCE_BOOK_CONFIG"
PROJECT_CONFIG = Path(".confluence_book") / "config.yml"
USER_CONFIG = Path(".config") / "confluence_book" / "config.yml"

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` references in ``value``.

    Unset and empty variables both expand to the fallback, or to nothing
    without one. An unterminated ``${`` is kept as written.
    """
    return _ENV_REFERENCE.sub(
        lambda m: os.environ.get(m["name"]) or m["fallback"] or "", value
    )


def expand_env_references(data: Any) -> Any:
    """Apply ``interpolate_env_vars`` to every string in a YAML document."""
    if isinstance(data, str):
        return interpolate_env_vars(data)
    if isinstance(data, dict):
        return {key: expand_env_references(item) for key, item in data.items()}
    if isinstance(data, list):
        return [expand_env_references(item) for item in data]
    return data


def _candidate_paths(book_root: Path | None) -> Iterator[Path]:
    explicit = os.environ.get(CONFIG_PATH_ENV)
    if explicit:
        yield Path(explicit).expanduser().resolve()
    if book_root is not None:
        yield book_root / PROJECT_CONFIG
    yield Path.cwd() / PROJECT_CONFIG
    yield Path.home() / USER_CONFIG


def discover_config_files(book_root: Path | None = None) -> list[Path]:
    """Existing config files, highest precedence first.

    A file reachable through more than one location is listed once.
    """
    found: list[Path] = []
    seen: set[Path] = set()
    for path in _candidate_paths(book_root):
        if not path.is_file():
            continue
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            found.append(path)
    return found


def _read_mapping(path: Path) -> dict[str, Any]:
    logger.debug("Loading config: %s", path)
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring config file %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config(book_root: Path | None = None) -> dict[str, Any]:
    """Merge every discovered config file into one mapping.

    A top-level section (``confluence``, ``logging``) from a file with
    higher precedence replaces the whole section of a lower one; sections
    are not merged key by key. Environment references are expanded once
    the merge is done. Without any file the result is ``{}``.

    Raises:
        yaml.YAMLError: If a file is not valid YAML.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files(book_root)):
        merged.update(_read_mapping(path))
    return expand_env_references(merged)
