"""SQLite database for the records a session reads and archives into."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from config.exceptions import StorageError
from models.book import ArchivedChapter, Book, Location, Outline, UserProfile
from models.enums import ChapterStatus

logger = logging.getLogger(__name__)

# SQL for creating all tables
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    dob TEXT NOT NULL,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS locations (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id),
    lat REAL NOT NULL,
    lng REAL NOT NULL,
    label TEXT NOT NULL,
    date_start TEXT
);

CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id),
    title TEXT NOT NULL,
    outline_json TEXT
);

CREATE TABLE IF NOT EXISTS chapters (
    id TEXT PRIMARY KEY,
    book_id TEXT NOT NULL REFERENCES books(id),
    chapter_index INTEGER NOT NULL,
    title TEXT NOT NULL,
    content TEXT,
    status TEXT DEFAULT 'planned'
);
"""

# Indexes added via migration (idempotent)
_MIGRATION_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_locations_user ON locations(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_books_user ON books(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_chapters_book_index ON chapters(book_id, chapter_index)",
]


class Database:
    """SQLite manager for users, timelines, books and the chapter archive.

    The session layer only reads identity, timeline and outline records and
    appends to the archive; the create_* helpers exist for seeding.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = self._get_conn()
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StorageError(f"Database operation failed: {e}", {"db": str(self.db_path)}) from e
        finally:
            if conn is not None:
                conn.close()

    def _init_db(self):
        with self._transaction() as conn:
            conn.executescript(_CREATE_TABLES_SQL)
        self._migrate()

    def _migrate(self):
        """Apply idempotent schema migrations (indexes)."""
        with self._transaction() as conn:
            for sql in _MIGRATION_SQL:
                try:
                    conn.execute(sql)
                except sqlite3.OperationalError as e:
                    logger.debug("Migration skipped (already applied): %s", e)

    # ---- Users & timeline ----

    def create_user(self, user: UserProfile) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO users (id, name, dob, created_at) VALUES (?, ?, ?, ?)",
                (user.id, user.name, user.dob, user.created_at or 0),
            )
        return user.id

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                return None
            return UserProfile(
                id=row["id"], name=row["name"], dob=row["dob"],
                created_at=row["created_at"],
            )

    def add_location(self, location: Location) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO locations (id, user_id, lat, lng, label, date_start) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (location.id, location.user_id, location.lat, location.lng,
                 location.label, location.date_start),
            )
        return location.id

    def get_locations(self, user_id: str) -> list[Location]:
        """Return a user's locations, dated ones first in date order."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM locations WHERE user_id = ? "
                "ORDER BY date_start IS NULL, date_start, rowid",
                (user_id,),
            ).fetchall()
            return [
                Location(
                    id=r["id"], user_id=r["user_id"], lat=r["lat"], lng=r["lng"],
                    label=r["label"], date_start=r["date_start"],
                )
                for r in rows
            ]

    # ---- Books & outline ----

    def create_book(self, book: Book) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO books (id, user_id, title, outline_json) VALUES (?, ?, ?, ?)",
                (book.id, book.user_id, book.title, json.dumps(book.outline.to_dict())),
            )
        return book.id

    def get_book(self, book_id: str) -> Optional[Book]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
            if not row:
                return None
            outline = Outline()
            if row["outline_json"]:
                try:
                    outline = Outline.from_dict(json.loads(row["outline_json"]))
                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    logger.warning("Book %s has an unreadable outline: %s", book_id, e)
            return Book(id=row["id"], user_id=row["user_id"], title=row["title"], outline=outline)

    def update_outline(self, book_id: str, outline: Outline):
        with self._transaction() as conn:
            conn.execute(
                "UPDATE books SET outline_json = ? WHERE id = ?",
                (json.dumps(outline.to_dict()), book_id),
            )

    # ---- Chapter archive ----

    def archive_chapter(self, chapter: ArchivedChapter) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO chapters (id, book_id, chapter_index, title, content, status) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (chapter.id, chapter.book_id, chapter.chapter_index, chapter.title,
                 chapter.content, chapter.status.value),
            )
        logger.info("Archived chapter %d of book %s", chapter.chapter_index, chapter.book_id)
        return chapter.id

    def get_archived_chapters(self, book_id: str) -> list[ArchivedChapter]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM chapters WHERE book_id = ? AND status = ? ORDER BY chapter_index",
                (book_id, ChapterStatus.COMPLETED.value),
            ).fetchall()
            return [
                ArchivedChapter(
                    id=r["id"], book_id=r["book_id"], chapter_index=r["chapter_index"],
                    title=r["title"], content=r["content"] or "",
                    status=ChapterStatus(r["status"]),
                )
                for r in rows
            ]
