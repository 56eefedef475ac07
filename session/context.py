"""Context assembly for every completion call of a session."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from config.exceptions import StorageError
from config.settings import Settings
from models.book import Location, UserProfile
from models.database import Database
from models.document_store import DocumentStore, user_documents_prefix
from models.note import Note, Turn
from session.transcript import render_turn
from tools.text_utils import join_sections, keep_tail

logger = logging.getLogger(__name__)

MISSING_USER_TEXT = "User ID not found."


@dataclass
class Background:
    """External reads backing the context: identity, timeline, documents."""
    profile: Optional[UserProfile] = None
    locations: list[Location] = field(default_factory=list)
    documents: list[tuple[str, str]] = field(default_factory=list)


def _identity_section(profile: Optional[UserProfile], locations: list[Location]) -> str:
    lines = ["=== IDENTITY ==="]
    if profile is not None:
        lines.append(f"Name: {profile.name}, DOB: {profile.dob}")

    dated = sorted((loc for loc in locations if loc.date_start), key=lambda loc: loc.date_start)
    undated = [loc for loc in locations if not loc.date_start]
    trail = dated + undated
    if trail:
        birthplace, rest = trail[0], trail[1:]
        lines.append(f"Birthplace: {birthplace.label} ({birthplace.lat:.4f}, {birthplace.lng:.4f})")
        if rest:
            lines.append("Places lived, in order:")
            for loc in rest:
                when = loc.date_start or "undated"
                lines.append(f"- {when}: {loc.label} ({loc.lat:.4f}, {loc.lng:.4f})")
    return "\n".join(lines) if len(lines) > 1 else ""


def _documents_section(documents: list[tuple[str, str]]) -> str:
    if not documents:
        return ""
    blocks = ["=== DOCUMENTS ==="]
    for name, text in documents:
        blocks.append(f"--- Document: {name} ---\n{text}")
    return "\n".join(blocks)


def _notes_section(notes: list[Note]) -> str:
    lines = ["=== NOTES ==="]
    if not notes:
        lines.append("(No notes yet)")
    for note in notes:
        lines.append(f"- [{note.id}] {note.content}")
    return "\n".join(lines)


def _transcript_section(turns: list[Turn]) -> str:
    if not turns:
        return ""
    return "\n".join(["=== CONVERSATION ===", *(render_turn(t) for t in turns)])


def assemble_context(
    background: Background,
    notes: Iterable[Note],
    transcript: Iterable[Turn],
    max_chars: Optional[int] = None,
) -> str:
    """Flatten identity, documents, notes and transcript into one string.

    Sections appear in that order. With ``max_chars`` unset nothing is
    truncated; otherwise documents shrink first, then the oldest turns.
    """
    identity = _identity_section(background.profile, background.locations)
    documents = _documents_section(background.documents)
    notes_text = _notes_section(list(notes))
    conversation = _transcript_section(list(transcript))

    full = join_sections(identity, documents, notes_text, conversation)
    if max_chars is None or len(full) <= max_chars:
        return full

    fixed = join_sections(identity, notes_text, conversation)
    budget = max_chars - len(fixed) - 2
    documents = documents[:budget] if budget > 0 else ""
    full = join_sections(identity, documents, notes_text, conversation)
    if len(full) <= max_chars:
        return full

    head = join_sections(identity, notes_text)
    conversation = keep_tail(conversation, max_chars - len(head) - 2)
    return join_sections(head, conversation)[:max_chars]


class ContextAssembler:
    """Reads a session's background from the external stores."""

    def __init__(self, db: Database, documents: DocumentStore, settings: Optional[Settings] = None):
        self.db = db
        self.documents = documents
        self.settings = settings or Settings()

    def load_background(self, user_id: str) -> Optional[Background]:
        """Return the user's background, or None if the user is unknown."""
        if not user_id:
            return None
        try:
            profile = self.db.get_user(user_id)
            locations = self.db.get_locations(user_id)
            docs = []
            for key in self.documents.list(user_documents_prefix(user_id)):
                docs.append((key.rsplit("/", 1)[-1], self.documents.read(key)))
        except StorageError as e:
            logger.warning("Background read failed for user %s: %s", user_id, e)
            return Background()
        return Background(profile=profile, locations=locations, documents=docs)

    def assemble(self, background: Optional[Background], notes: Iterable[Note], transcript: Iterable[Turn]) -> str:
        if background is None:
            return join_sections(MISSING_USER_TEXT, assemble_context(Background(), notes, transcript))
        return assemble_context(background, notes, transcript, self.settings.context_max_chars)
