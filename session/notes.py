"""Ordered note cards with reconciliation for concurrent AI and user edits."""

import logging
import uuid
from typing import Callable, Iterable, Iterator, Optional

from config.exceptions import NoteNotFoundError
from models.note import Note
from tools.text_utils import join_with_space

logger = logging.getLogger(__name__)

DEFAULT_NOTE_TEXT = "New Note"


def _new_note_id() -> str:
    return str(uuid.uuid4())


class NotesStore:
    """The notes side-document of one session.

    Mutation paths:
      - ``create`` / ``append``: AI tool calls.
      - ``patch``: single-note user edit.
      - ``merge``: bulk client resync. Updates and adds, never deletes.
      - ``delete``: explicit, id-addressed removal.
    """

    def __init__(
        self,
        notes: Optional[Iterable[Note]] = None,
        id_factory: Callable[[], str] = _new_note_id,
    ):
        self._notes: list[Note] = [Note(id=n.id, content=n.content) for n in notes or []]
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(self.snapshot())

    def __contains__(self, note_id: str) -> bool:
        return self._find(note_id) is not None

    def _find(self, note_id: str) -> Optional[Note]:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def get(self, note_id: str) -> Optional[Note]:
        note = self._find(note_id)
        return Note(id=note.id, content=note.content) if note else None

    def create(self, content: str) -> Note:
        """Append a note with a fresh id."""
        note_id = self._id_factory()
        while note_id in self:
            note_id = self._id_factory()
        note = Note(id=note_id, content=content or DEFAULT_NOTE_TEXT)
        self._notes.append(note)
        return Note(id=note.id, content=note.content)

    def append(self, note_id: str, text: str) -> Note:
        """Add ``text`` to an existing note, separated by a single space.

        Raises:
            NoteNotFoundError: If ``note_id`` is unknown.
        """
        note = self._find(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        note.content = join_with_space(note.content, text)
        return Note(id=note.id, content=note.content)

    def patch(self, note_id: str, content: str) -> bool:
        """Replace one note's text. Returns False if the id is unknown."""
        note = self._find(note_id)
        if note is None:
            logger.debug("Patch for unknown note %s ignored", note_id)
            return False
        if note.content == content:
            return False
        note.content = content
        return True

    def merge(self, client_notes: Iterable[Note]) -> bool:
        """Reconcile a client's full notes list into the store.

        Client text wins for ids both sides know; ids only the client knows
        are appended in client order; ids the client omitted are kept.
        Returns True if anything changed.
        """
        changed = False
        for incoming in client_notes:
            note = self._find(incoming.id)
            if note is None:
                self._notes.append(Note(id=incoming.id, content=incoming.content))
                changed = True
            elif note.content != incoming.content:
                note.content = incoming.content
                changed = True
        return changed

    def delete(self, note_id: str) -> Note:
        """Remove exactly one note.

        Raises:
            NoteNotFoundError: If ``note_id`` is unknown.
        """
        note = self._find(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        self._notes.remove(note)
        return note

    def clear(self):
        self._notes.clear()

    def snapshot(self) -> list[Note]:
        return [Note(id=n.id, content=n.content) for n in self._notes]

    def to_payload(self) -> list[dict]:
        return [n.to_dict() for n in self._notes]

    @classmethod
    def from_payload(cls, payload: Optional[list]) -> "NotesStore":
        notes = [Note.from_dict(item) for item in payload or [] if isinstance(item, dict) and "id" in item]
        return cls(notes)
