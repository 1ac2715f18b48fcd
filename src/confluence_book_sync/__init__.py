"""Publish an mdBook to Confluence as a tree of pages."""

__version__ = "0.1.0"
