import logging
import threading
import xmlrpc.client
from typing import Any

import requests

from ..config import Config
from ..errors import SessionError
from .models import (
    AttachmentDescriptor,
    PageUpdate,
    RemotePage,
    RemotePageSummary,
    UploadedAttachment,
)

logger = logging.getLogger(__name__)


class ConfluenceClient:
    """Token-authenticated client for Confluence's ``confluence2`` XML-RPC API.

    Calls are blocking; the sync engine runs them through ``run_sync``.
    Each worker thread gets its own ``requests.Session`` while the login
    token is shared, so one client can serve every concurrent page render.
    """

    API_VERSION = "confluence2"

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.rpc_url = self._get_rpc_url()
        self._token: str | None = None

    @property
    def session(self) -> requests.Session:
        """The current thread's HTTP session."""
        return self._get_session()

    @property
    def logged_in(self) -> bool:
        return self._token is not None

    def _get_rpc_url(self) -> str:
        return f"{self.config.url.rstrip('/')}/rpc/xmlrpc"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = not self.config.insecure
        return session

    def _rpc_request(self, method: str, *params: Any) -> Any:
        """
        Make an XML-RPC request to the Confluence server.

        Raises:
            requests.HTTPError: On a non-2xx HTTP status
            xmlrpc.client.Fault: If the server answers with a fault
        """
        payload = xmlrpc.client.dumps(
            params, methodname=f"{self.API_VERSION}.{method}"
        )

        headers = {"Content-Type": "text/xml"}
        response = self._get_session().post(
            self.rpc_url,
            data=payload,
            headers=headers,
            timeout=(10, 60),
        )
        response.raise_for_status()

        # loads() raises Fault for <fault> responses
        (result,), _ = xmlrpc.client.loads(response.content)
        return result

    def _call(self, method: str, *params: Any) -> Any:
        """Make an authenticated call, passing the login token first."""
        if self._token is None:
            raise SessionError(
                f"Cannot call {method}: not logged into Confluence"
            )
        return self._rpc_request(method, self._token, *params)

    def login(self) -> None:
        """
        Log in with the configured credentials and keep the session token.

        Raises:
            xmlrpc.client.Fault: If the credentials are rejected
        """
        self._token = self._rpc_request(
            "login", self.config.username, self.config.password
        )
        logger.debug("Logged into %s as %s", self.rpc_url, self.config.username)

    def logout(self) -> bool:
        """
        Invalidate the session token.

        Returns:
            True if the server confirmed the logout
        """
        if self._token is None:
            return False
        result = self._call("logout")
        self._token = None
        return bool(result)

    def get_server_version(self) -> str:
        """
        Get the server version as ``major.minor.patch``.

        Built from the ``majorVersion``, ``minorVersion`` and ``patchLevel``
        fields of ``getServerInfo``; parsing is left to the caller.
        """
        info = self._call("getServerInfo")
        return (
            f"{info.get('majorVersion')}."
            f"{info.get('minorVersion')}."
            f"{info.get('patchLevel')}"
        )

    def get_page(self, page_id: int) -> RemotePage:
        """
        Get a page, including its current version number.

        Raises:
            xmlrpc.client.Fault: If page not found or permissions denied
        """
        return RemotePage.from_struct(self._call("getPage", str(page_id)))

    def get_children(self, page_id: int) -> list[RemotePageSummary]:
        """
        List the direct children of a page, in the server's order.

        Raises:
            xmlrpc.client.Fault: If page not found or permissions denied
        """
        result = self._call("getChildren", str(page_id))
        return [RemotePageSummary.from_struct(s) for s in result or []]

    def store_page(self, update: PageUpdate) -> RemotePage:
        """
        Create or update a page.

        An update must carry the version the page currently has; Confluence
        rejects the store with a fault otherwise.

        Args:
            update: Page payload; without id/version a page is created

        Returns:
            The stored page with its new version

        Raises:
            xmlrpc.client.Fault: On version conflict, duplicate title or
                permissions denied
        """
        return RemotePage.from_struct(
            self._call("storePage", update.to_struct())
        )

    def remove_page(self, page_id: int) -> None:
        """
        Remove a page (it goes to the space trash).

        Raises:
            xmlrpc.client.Fault: If page not found or permissions denied
        """
        self._call("removePage", str(page_id))

    def add_attachment(
        self,
        page_id: int,
        attachment: AttachmentDescriptor,
        data: bytes,
    ) -> UploadedAttachment:
        """
        Attach a file to a page.

        The file body is sent as an XML-RPC ``base64`` value. Uploading a
        file name that already exists adds a new version of it.

        Args:
            page_id: Page to attach to
            attachment: File name, content type and optional title/comment
            data: Raw file contents

        Returns:
            The stored attachment, including its download URL when given

        Raises:
            xmlrpc.client.Fault: If page not found or permissions denied
        """
        result = self._call(
            "addAttachment",
            str(page_id),
            attachment.to_struct(),
            xmlrpc.client.Binary(data),
        )
        return UploadedAttachment.from_struct(result)
