"""Session package: the per-book actor and the pieces of state it owns."""

from session.actor import BookSession, opening_message
from session.broadcaster import Broadcaster
from session.context import Background, ContextAssembler, assemble_context
from session.notes import NotesStore
from session.registry import SessionRegistry
from session.state import SessionState
from session.transcript import Transcript, render_turn

__all__ = [
    "BookSession",
    "opening_message",
    "Broadcaster",
    "Background",
    "ContextAssembler",
    "assemble_context",
    "NotesStore",
    "SessionRegistry",
    "SessionState",
    "Transcript",
    "render_turn",
]
