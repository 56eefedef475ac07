"""Models package: data records, enums and the stores behind a session."""

from models.database import Database
from models.session_storage import SessionStorage
from models.document_store import DocumentStore, user_documents_prefix
from models.book import (
    ArchivedChapter,
    Book,
    ChapterPlan,
    Location,
    Outline,
    UserProfile,
)
from models.note import Note, Turn
from models.session_config import SessionConfig
from models.enums import Phase, Role, ChapterStatus

__all__ = [
    "Database",
    "SessionStorage",
    "DocumentStore",
    "user_documents_prefix",
    "ArchivedChapter",
    "Book",
    "ChapterPlan",
    "Location",
    "Outline",
    "UserProfile",
    "Note",
    "Turn",
    "SessionConfig",
    "Phase",
    "Role",
    "ChapterStatus",
]
