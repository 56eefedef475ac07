"""Durable state of one book session and its storage layout."""

from dataclasses import dataclass, field
from typing import Optional

from models.book import ChapterPlan, Outline
from models.enums import Phase
from models.session_config import SessionConfig
from session.notes import NotesStore
from session.transcript import Transcript

STORAGE_KEYS = (
    "history",
    "book_id",
    "user_id",
    "notes",
    "phase",
    "current_draft",
    "manuscript",
    "current_chapter_index",
    "outline",
    "config",
)

MANUSCRIPT_SEPARATOR = "\n\n"


@dataclass
class SessionState:
    """Everything a session persists, exclusively owned by its actor."""
    book_id: str = ""
    user_id: str = ""
    phase: Phase = Phase.INTERVIEW
    current_chapter_index: int = 1
    transcript: Transcript = field(default_factory=Transcript)
    notes: NotesStore = field(default_factory=NotesStore)
    current_draft: str = ""
    manuscript: str = ""
    outline: Optional[Outline] = None
    config: SessionConfig = field(default_factory=SessionConfig)

    @property
    def current_chapter(self) -> Optional[ChapterPlan]:
        if self.outline is None:
            return None
        return self.outline.chapter(self.current_chapter_index)

    @property
    def manuscript_prefix(self) -> str:
        """The manuscript followed by a separator, ready for a new draft."""
        return self.manuscript + (MANUSCRIPT_SEPARATOR if self.manuscript else "")

    @property
    def full_text(self) -> str:
        """Manuscript plus the current draft, as shown in the book view."""
        if self.manuscript and self.current_draft:
            return self.manuscript + MANUSCRIPT_SEPARATOR + self.current_draft
        return self.manuscript or self.current_draft

    def archive_draft(self) -> str:
        """Move the draft into the manuscript and advance the chapter pointer."""
        draft = self.current_draft
        self.manuscript = self.manuscript_prefix + draft
        self.current_draft = ""
        self.current_chapter_index += 1
        self.reset_ephemeral()
        return draft

    def summary(self) -> dict:
        """Non-secret status fields; credentials are never included."""
        return {
            "book_id": self.book_id,
            "user_id": self.user_id,
            "phase": self.phase.value,
            "current_chapter_index": self.current_chapter_index,
            "chapters": len(self.outline.chapters) if self.outline else 0,
            "notes": len(self.notes),
            "turns": len(self.transcript),
            "draft_chars": len(self.current_draft),
            "manuscript_chars": len(self.manuscript),
        }

    def reset_ephemeral(self):
        self.transcript.clear()
        self.notes.clear()
        self.current_draft = ""
        self.phase = Phase.INTERVIEW

    def to_storage(self, *keys: str) -> dict:
        values = {
            "history": self.transcript.to_payload,
            "book_id": lambda: self.book_id,
            "user_id": lambda: self.user_id,
            "notes": self.notes.to_payload,
            "phase": lambda: self.phase.value,
            "current_draft": lambda: self.current_draft,
            "manuscript": lambda: self.manuscript,
            "current_chapter_index": lambda: self.current_chapter_index,
            "outline": lambda: self.outline.to_dict() if self.outline else None,
            "config": self.config.to_dict,
        }
        return {key: values[key]() for key in (keys or STORAGE_KEYS)}

    @classmethod
    def from_storage(cls, book_id: str, data: dict) -> "SessionState":
        try:
            phase = Phase(data.get("phase") or Phase.INTERVIEW.value)
        except ValueError:
            phase = Phase.INTERVIEW
        outline = data.get("outline")
        return cls(
            book_id=data.get("book_id") or book_id,
            user_id=data.get("user_id") or "",
            phase=phase,
            current_chapter_index=int(data.get("current_chapter_index") or 1),
            transcript=Transcript.from_payload(data.get("history")),
            notes=NotesStore.from_payload(data.get("notes")),
            current_draft=data.get("current_draft") or "",
            manuscript=data.get("manuscript") or "",
            outline=Outline.from_dict(outline) if outline else None,
            config=SessionConfig.from_dict(data.get("config")),
        )
