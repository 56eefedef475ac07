"""Shared pytest fixtures for the lifebook test suite."""

import pytest
import pytest_asyncio
from unittest.mock import MagicMock, AsyncMock


# ---------------------------------------------------------------------------
# Settings & stores
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        sqlite_db_path=tmp_path / "lifebook.db",
        session_db_path=tmp_path / "sessions.db",
        documents_dir=tmp_path / "blobs",
        log_dir=tmp_path / "logs",
        completion_timeout_seconds=5,
        interview_max_iterations=5,
    )


@pytest.fixture
def db(settings):
    """Return an initialized Database instance backed by a temp file."""
    from models.database import Database
    return Database(settings.sqlite_db_path)


@pytest.fixture
def storage(settings):
    from models.session_storage import SessionStorage
    return SessionStorage(settings.session_db_path)


@pytest.fixture
def documents(settings):
    from models.document_store import DocumentStore
    return DocumentStore(settings.documents_dir)


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_user(db):
    """Insert and return a user with a small timeline."""
    from models.book import Location, UserProfile
    user = UserProfile(id="user-1", name="Ada Byron", dob="1990-03-14", created_at=1700000000)
    db.create_user(user)
    db.add_location(Location(id="loc-2", user_id=user.id, lat=40.7128, lng=-74.006,
                             label="New York", date_start="2008-09-01"))
    db.add_location(Location(id="loc-1", user_id=user.id, lat=41.8781, lng=-87.6298,
                             label="Chicago", date_start="1990-03-14"))
    return user


@pytest.fixture
def sample_outline():
    from models.book import ChapterPlan, Outline
    return Outline(title="My Life", chapters=[
        ChapterPlan(index=1, title="Roots", summary="Early years in Chicago."),
        ChapterPlan(index=2, title="School Days", summary="Growing up and leaving home."),
    ])


@pytest.fixture
def sample_book(db, sample_user, sample_outline):
    """Insert and return a two-chapter book owned by sample_user."""
    from models.book import Book
    book = Book(id="book-1", user_id=sample_user.id, title="My Life", outline=sample_outline)
    db.create_book(book)
    return book


# ---------------------------------------------------------------------------
# Completion client mocks
# ---------------------------------------------------------------------------

def fake_stream(chunks, error=None):
    """Return a ``stream`` side effect yielding ``chunks`` then raising ``error``."""
    async def _stream(*args, **kwargs):
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error
    return _stream


@pytest.fixture
def mock_llm():
    """Return a MagicMock replacing AgentSDKClient.

    ``complete`` answers with a plain follow-up question and ``stream``
    yields nothing until a test configures them.
    """
    from tools.agent_sdk_client import Completion
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=Completion(text="What do you remember most?"))
    llm.stream = MagicMock(side_effect=fake_stream([]))
    llm.get_usage_summary.return_value = {"total_calls": 1}
    return llm


# ---------------------------------------------------------------------------
# Viewers & sessions
# ---------------------------------------------------------------------------

class FakeViewer:
    """Records every message sent to it, or fails every send."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def types(self) -> list:
        return [m["type"] for m in self.sent]

    def of_type(self, msg_type: str) -> list:
        return [m for m in self.sent if m["type"] == msg_type]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def make_viewer():
    return FakeViewer


@pytest.fixture
def viewer():
    return FakeViewer()


@pytest_asyncio.fixture
async def session(storage, db, documents, settings, mock_llm, sample_book):
    """A loaded BookSession for sample_book wired to mock_llm."""
    from session.actor import BookSession
    s = BookSession(sample_book.id, storage, db, documents, settings, llm=mock_llm)
    s.load()
    yield s
    await s.close()


@pytest.fixture
def stream_of():
    return fake_stream
