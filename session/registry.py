"""One live BookSession per book id."""

import asyncio
import logging
from typing import Callable, Optional

from config.settings import Settings
from models.database import Database
from models.document_store import DocumentStore
from models.session_config import SessionConfig
from models.session_storage import SessionStorage
from session.actor import BookSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates, loads and caches sessions by book id.

    Sessions for different books share nothing but the backing stores and
    run fully in parallel.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[SessionStorage] = None,
        db: Optional[Database] = None,
        documents: Optional[DocumentStore] = None,
        session_factory: Optional[Callable[[str], BookSession]] = None,
    ):
        self.settings = settings or Settings()
        self.storage = storage or SessionStorage(self.settings.session_db_path)
        self.db = db or Database(self.settings.sqlite_db_path)
        self.documents = documents or DocumentStore(self.settings.documents_dir)
        self._factory = session_factory or self._new_session
        self._sessions: dict[str, BookSession] = {}
        self._lock = asyncio.Lock()

    def _new_session(self, book_id: str) -> BookSession:
        return BookSession(book_id, self.storage, self.db, self.documents, self.settings)

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, book_id: str) -> Optional[BookSession]:
        return self._sessions.get(book_id)

    async def get_or_create(self, book_id: str, config: Optional[SessionConfig] = None) -> BookSession:
        """Return the session for ``book_id``, loading it on first use."""
        async with self._lock:
            session = self._sessions.get(book_id)
            if session is None:
                session = self._factory(book_id)
                session.load()
                self._sessions[book_id] = session
                logger.info("Session %s started (%d live)", book_id, len(self._sessions))
        session.configure(config)
        return session

    async def close_all(self):
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
        logger.info("Closed %d sessions", len(sessions))
