"""Book, outline, identity and chapter archive data models."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import ChapterStatus


@dataclass
class ChapterPlan:
    """One planned chapter of the outline."""
    index: int
    title: str = ""
    summary: str = ""

    def to_dict(self) -> dict:
        return {"index": self.index, "title": self.title, "summary": self.summary}


@dataclass
class Outline:
    """Ordered chapter plan of a book. Indices are contiguous from 1."""
    title: str = ""
    chapters: list[ChapterPlan] = field(default_factory=list)

    @property
    def next_index(self) -> int:
        return len(self.chapters) + 1

    def chapter(self, index: int) -> Optional[ChapterPlan]:
        for chapter in self.chapters:
            if chapter.index == index:
                return chapter
        return None

    def appended(self, drafts: list[tuple[str, str]]) -> "Outline":
        """Return a new outline with (title, summary) drafts appended.

        Existing chapters are carried over unchanged; new chapters are
        numbered from ``next_index`` onward.
        """
        start = self.next_index
        new_chapters = [
            ChapterPlan(index=start + offset, title=title, summary=summary)
            for offset, (title, summary) in enumerate(drafts)
        ]
        return Outline(title=self.title, chapters=[*self.chapters, *new_chapters])

    def to_dict(self) -> dict:
        return {"title": self.title, "chapters": [c.to_dict() for c in self.chapters]}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Outline":
        data = data or {}
        chapters = []
        for position, raw in enumerate(data.get("chapters") or [], start=1):
            chapters.append(ChapterPlan(
                index=int(raw.get("index") or position),
                title=str(raw.get("title") or ""),
                summary=str(raw.get("summary") or ""),
            ))
        chapters.sort(key=lambda c: c.index)
        return cls(title=str(data.get("title") or ""), chapters=chapters)


@dataclass
class UserProfile:
    """Identity record of the book's subject."""
    id: str
    name: str = ""
    dob: str = ""
    created_at: Optional[int] = None


@dataclass
class Location:
    """A place on the subject's timeline."""
    id: str
    user_id: str
    lat: float = 0.0
    lng: float = 0.0
    label: str = ""
    date_start: Optional[str] = None


@dataclass
class Book:
    """Book metadata owned by the external store."""
    id: str
    user_id: str
    title: str = ""
    outline: Outline = field(default_factory=Outline)


@dataclass
class ArchivedChapter:
    """A finalized chapter written to the archive."""
    id: str
    book_id: str
    chapter_index: int
    title: str
    content: str = ""
    status: ChapterStatus = ChapterStatus.COMPLETED
