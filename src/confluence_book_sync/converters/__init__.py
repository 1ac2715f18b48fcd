"""Conversion of chapters into Confluence page bodies."""

from .attachments import AttachmentUploader, guess_content_type
from .storage_format import (
    SCHEME_LINK,
    UNSUPPORTED_CHAR_PLACEHOLDER,
    ContentTransformer,
    downgrade_extended_text,
    to_cdata,
    to_page_content,
)

__all__ = [
    "SCHEME_LINK",
    "UNSUPPORTED_CHAR_PLACEHOLDER",
    "AttachmentUploader",
    "ContentTransformer",
    "downgrade_extended_text",
    "guess_content_type",
    "to_cdata",
    "to_page_content",
]
