"""Upload local images referenced by a chapter as page attachments."""

import logging
import mimetypes
from pathlib import Path

from ..core.async_utils import run_sync
from ..core.client import ConfluenceClient
from ..core.models import AttachmentDescriptor

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(path: Path) -> str:
    """Guess a MIME type from the file extension, defaulting to binary."""
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


class AttachmentUploader:
    """Attaches files to pages and reports where Confluence serves them.

    Failures are never raised: a missing or unreadable image leaves the
    original link in place instead of failing the whole page.
    """

    def __init__(self, client: ConfluenceClient):
        self.client = client

    async def upload(
        self, page_id: int, local_path: Path, title: str | None = None
    ) -> str | None:
        """Upload ``local_path`` to page ``page_id``.

        Returns:
            The attachment's download URL, or None if anything went wrong.
        """
        logger.info("Attempting to upload file: %s", local_path)
        descriptor = AttachmentDescriptor(
            file_name=local_path.name,
            content_type=guess_content_type(local_path),
            title=title or None,
        )

        try:
            data = await run_sync(local_path.read_bytes)
            attachment = await run_sync(
                self.client.add_attachment, page_id, descriptor, data
            )
        except Exception as e:
            logger.error(
                "Attempted to upload file %s but hit an error: %s",
                local_path,
                e,
            )
            return None

        if attachment.url is None:
            logger.error(
                "Uploaded an attachment but couldn't find a url for it: %s",
                local_path,
            )
            return None

        logger.info("Uploaded file at: %s", attachment.url)
        return attachment.url
