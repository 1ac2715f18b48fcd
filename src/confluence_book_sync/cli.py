"""Command line entry point, run by mdBook as an alternative renderer."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from . import __version__
from .book import RenderContext, load_render_context
from .errors import SessionError
from .logger import setup_logging
from .renderer import load_settings, load_yaml_config, publish
from .sync import format_sync_report, report_to_json

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confluence-book-sync",
        description="Publish an mdBook to Confluence as a tree of pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # As an mdBook renderer (book.toml)
  [output.confluence]
  command = "confluence-book-sync"
  enabled = true
  url = "https://confluence.example.com"
  root_page = 123456

  # Standalone, from a saved render context
  confluence-book-sync --context context.json --username admin

  # Override the root page and prefix every chapter title
  confluence-book-sync --root-page 42 --title-prefix "Handbook: "

Note: The render context is read from stdin unless --context is given.
All messages and the run report are written to stderr.
        """,
    )

    parser.add_argument(
        "--context",
        metavar="FILE",
        help="Read the mdBook render context from FILE instead of stdin",
    )
    parser.add_argument(
        "--url",
        help="Override Confluence URL (takes precedence over CONFLUENCE_URL env var and config files)",
    )
    parser.add_argument(
        "--username",
        help="Override Confluence username (takes precedence over CONFLUENCE_USERNAME env var and config files)",
    )
    parser.add_argument(
        "--password",
        help="Override Confluence password (takes precedence over CONFLUENCE_PASSWORD env var and config files)"
        " (visible in process list -- prefer CONFLUENCE_PASSWORD env var for security)",
    )
    parser.add_argument(
        "--root-page",
        type=int,
        help="Id of the page the book is published under",
    )
    parser.add_argument(
        "--title-prefix",
        help="Prefix prepended to every chapter title",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--report",
        choices=["text", "json", "none"],
        default="text",
        help="Format of the run report printed to stderr (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"confluence-book-sync version {__version__}",
    )
    return parser


def _config_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.url:
        overrides["url"] = args.url
    if args.username:
        overrides["username"] = args.username
    if args.password:
        overrides["password"] = args.password
    if args.root_page is not None:
        overrides["root_page"] = args.root_page
    if args.title_prefix is not None:
        overrides["title_prefix"] = args.title_prefix
    if args.insecure:
        overrides["insecure"] = True
    if args.debug:
        overrides["debug"] = True
    return overrides


def _read_context(path: str | None) -> RenderContext:
    if path:
        with open(path, encoding="utf-8") as f:
            return load_render_context(f)
    return load_render_context(sys.stdin)


def main(argv: list[str] | None = None) -> int:
    """Run one publish and return the process exit code."""
    args = build_parser().parse_args(argv)

    # The YAML search needs the book root, so the context comes first
    try:
        context = _read_context(args.context)
        unified = load_yaml_config(context.root)
    except (OSError, ValueError) as e:
        setup_logging(debug=args.debug, debug_format=args.log_format)
        logger.error("Configuration error: %s", e)
        return 1

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format,
        level=unified.logging.level,
    )

    overrides = _config_overrides(args)
    if overrides:
        override_keys = [k for k in overrides if k != "password"]
        logger.info("Config overrides from CLI: %s", ", ".join(override_keys))

    try:
        config = load_settings(context, overrides, unified)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if not config.enabled:
        logger.info("Confluence renderer is disabled")
        return 0

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        report = asyncio.run(publish(config, context))
    except SessionError as e:
        logger.error("%s", e)
        return 1

    if args.report == "json":
        print(json.dumps(report_to_json(report), indent=2), file=sys.stderr)
    elif args.report == "text":
        print(format_sync_report(report), file=sys.stderr)
    return 0


def run() -> None:
    """Entry point that handles errors gracefully."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
