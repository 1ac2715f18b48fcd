"""Shared pytest fixtures for confluence-book-sync tests."""

import itertools
import threading
import xmlrpc.client
from unittest.mock import MagicMock, Mock

import pytest
from dotenv import load_dotenv

from confluence_book_sync.config import Config
from confluence_book_sync.core.models import (
    PageUpdate,
    RemotePage,
    RemotePageSummary,
    UploadedAttachment,
)

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Confluence instance",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Confluence instance"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeConfluenceClient:
    """In-memory stand-in for ``ConfluenceClient``.

    Pages live in a dict keyed by id; children are listed in creation
    order. Updates must carry the current version, like the real server.
    Failures are injected by title (stores, or updates only) or id
    (listings, removals).
    """

    def __init__(self, space="DOC"):
        self.space = space
        self.pages: dict[int, dict] = {}
        self.attachments: list[tuple[int, str, bytes]] = []
        self.calls: list[tuple] = []
        self.fail_store_titles: set[str] = set()
        self.fail_update_titles: set[str] = set()
        self.fail_children_ids: set[int] = set()
        self.fail_remove_ids: set[int] = set()
        self.fail_attachment_names: set[str] = set()
        self.server_version = "7.4.0"
        self.logged_in = False
        self._ids = itertools.count(1000)
        self._lock = threading.RLock()

    # -- test helpers -------------------------------------------------

    def add_page(self, title, parent_id=None, page_id=None, content=""):
        with self._lock:
            page_id = page_id if page_id is not None else next(self._ids)
            self.pages[page_id] = {
                "id": page_id,
                "space": self.space,
                "title": title,
                "version": 1,
                "parent_id": parent_id,
                "content": content,
            }
        return page_id

    def children_of(self, page_id):
        with self._lock:
            pages = list(self.pages.values())
        return [p for p in pages if p["parent_id"] == page_id]

    def titles_under(self, page_id):
        return [p["title"] for p in self.children_of(page_id)]

    def _page(self, page_id):
        page = self.pages[page_id]
        return RemotePage(
            id=page["id"],
            space=page["space"],
            title=page["title"],
            version=page["version"],
            url=f"https://wiki.example.com/pages/{page['id']}",
            parent_id=page["parent_id"],
            content=page["content"],
        )

    # -- client API ---------------------------------------------------

    def login(self):
        self.calls.append(("login",))
        self.logged_in = True

    def logout(self):
        self.calls.append(("logout",))
        self.logged_in = False
        return True

    def get_server_version(self):
        self.calls.append(("get_server_version",))
        return self.server_version

    def get_page(self, page_id):
        self.calls.append(("get_page", page_id))
        if page_id not in self.pages:
            raise xmlrpc.client.Fault(0, f"No page with id {page_id}")
        return self._page(page_id)

    def get_children(self, page_id):
        self.calls.append(("get_children", page_id))
        if page_id in self.fail_children_ids:
            raise xmlrpc.client.Fault(0, f"Cannot list children of {page_id}")
        return [
            RemotePageSummary(
                id=p["id"],
                space=p["space"],
                title=p["title"],
                url=f"https://wiki.example.com/pages/{p['id']}",
                parent_id=p["parent_id"],
            )
            for p in self.children_of(page_id)
        ]

    def store_page(self, update: PageUpdate):
        self.calls.append(("store_page", update))
        if update.title in self.fail_store_titles:
            raise xmlrpc.client.Fault(0, f"Cannot store {update.title}")
        if update.id is None:
            page_id = self.add_page(
                update.title, update.parent_id, content=update.content
            )
            return self._page(page_id)

        with self._lock:
            if update.title in self.fail_update_titles:
                raise xmlrpc.client.Fault(0, f"Cannot update {update.title}")
            return self._update(update)

    def _update(self, update):
        page = self.pages[update.id]
        if update.version != page["version"]:
            raise xmlrpc.client.Fault(
                0, f"Version mismatch for page {update.id}"
            )
        page.update(
            title=update.title,
            content=update.content,
            parent_id=update.parent_id,
            version=page["version"] + 1,
        )
        return self._page(update.id)

    def remove_page(self, page_id):
        self.calls.append(("remove_page", page_id))
        if page_id in self.fail_remove_ids:
            raise xmlrpc.client.Fault(0, f"Cannot remove {page_id}")
        with self._lock:
            del self.pages[page_id]

    def add_attachment(self, page_id, attachment, data):
        self.calls.append(("add_attachment", page_id, attachment))
        if attachment.file_name in self.fail_attachment_names:
            raise xmlrpc.client.Fault(0, "Attachment rejected")
        self.attachments.append((page_id, attachment.file_name, data))
        return UploadedAttachment(
            url=f"https://wiki.example.com/download/{page_id}/{attachment.file_name}",
            file_size=len(data),
        )


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        url="https://wiki.example.com",
        username="testuser",
        password="testpass",
        root_page=42,
        insecure=False,
    )


@pytest.fixture
def fake_client():
    """In-memory Confluence with root page 42 in space DOC."""
    client = FakeConfluenceClient()
    client.add_page("Book Root", page_id=42)
    return client


@pytest.fixture
def mock_confluence_client(mock_config):
    """Create a mock ConfluenceClient instance for testing."""
    from confluence_book_sync.core.client import ConfluenceClient

    client = MagicMock(spec=ConfluenceClient)
    client.config = mock_config
    return client


@pytest.fixture
def mock_xml_response():
    """Factory fixture for creating XML-RPC response mocks."""

    def _create_response(content):
        """Create a mock response with given XML content."""
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.content = (
            content.encode() if isinstance(content, str) else content
        )
        return mock_response

    return _create_response


@pytest.fixture
def xml_result(mock_xml_response):
    """Factory for a successful response wrapping one marshalled value."""

    def _create(value):
        body = xmlrpc.client.dumps((value,), methodresponse=True)
        return mock_xml_response(body)

    return _create
