"""Confluence XML-RPC client and async bridge."""

from .async_utils import run_sync
from .client import ConfluenceClient

__all__ = ["ConfluenceClient", "run_sync"]
