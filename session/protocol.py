"""Inbound and outbound message shapes of the per-book viewer channel."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from config.exceptions import InvalidMessageError
from models.book import Outline
from models.enums import Phase
from models.note import Note

# ---- Inbound types ----

INIT = "init"
MESSAGE = "message"
PATCH_NOTE = "patch_note"
UPDATE_NOTES = "update_notes"
DELETE_NOTE = "delete_note"
RETRY_CHAPTER = "retry_chapter"
CANCEL_GENERATION = "cancel_generation"
NEXT_CHAPTER = "next_chapter"
EXPAND_OUTLINE = "expand_outline"

INBOUND_TYPES = frozenset({
    INIT, MESSAGE, PATCH_NOTE, UPDATE_NOTES, DELETE_NOTE,
    RETRY_CHAPTER, CANCEL_GENERATION, NEXT_CHAPTER, EXPAND_OUTLINE,
})


@dataclass
class InboundMessage:
    """A validated client message."""
    type: str
    content: Optional[str] = None
    id: Optional[str] = None
    instruction: str = ""
    notes: list[Note] = field(default_factory=list)


def _require_str(data: dict, key: str, msg_type: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise InvalidMessageError(f"'{msg_type}' requires a string '{key}'", {"type": msg_type})
    return value


def _parse_notes(raw: Any) -> list[Note]:
    # Non-list payloads resync nothing; items without an id are ignored.
    if not isinstance(raw, list):
        return []
    notes = []
    for item in raw:
        if isinstance(item, dict) and item.get("id") not in (None, ""):
            notes.append(Note.from_dict(item))
    return notes


def parse_inbound(raw: str | bytes | dict) -> InboundMessage:
    """Decode and validate one client message.

    Raises:
        InvalidMessageError: On bad JSON, unknown type or missing fields.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidMessageError(f"Message is not valid JSON: {e.msg}") from e
    if not isinstance(raw, dict):
        raise InvalidMessageError("Message must be a JSON object")

    msg_type = raw.get("type")
    if msg_type not in INBOUND_TYPES:
        raise InvalidMessageError(f"Unknown message type: {msg_type!r}", {"type": msg_type})

    if msg_type == MESSAGE:
        return InboundMessage(type=msg_type, content=_require_str(raw, "content", msg_type))
    if msg_type == PATCH_NOTE:
        return InboundMessage(
            type=msg_type,
            id=_require_str(raw, "id", msg_type),
            content=_require_str(raw, "content", msg_type),
        )
    if msg_type == DELETE_NOTE:
        return InboundMessage(type=msg_type, id=_require_str(raw, "id", msg_type))
    if msg_type == UPDATE_NOTES:
        return InboundMessage(type=msg_type, notes=_parse_notes(raw.get("content")))
    if msg_type == EXPAND_OUTLINE:
        instruction = raw.get("instruction")
        return InboundMessage(type=msg_type, instruction=instruction if isinstance(instruction, str) else "")
    return InboundMessage(type=msg_type)


# ---- Outbound builders ----

def outline_msg(outline: Optional[Outline]) -> dict:
    return {"type": "outline", "content": outline.to_dict() if outline else None}


def notes_sync(notes: list[dict]) -> dict:
    return {"type": "notes_sync", "content": notes}


def mode_sync(phase: Phase) -> dict:
    return {"type": "mode_sync", "content": phase.value}


def chapter_index_sync(index: int) -> dict:
    return {"type": "chapter_index_sync", "content": index}


def response(text: str) -> dict:
    return {"type": "response", "content": text, "role": "assistant"}


def history(turns: list[dict]) -> dict:
    return {"type": "history", "content": turns}


def draft_chunk(content: str, reset: bool) -> dict:
    return {"type": "draft_chunk", "content": content, "reset": reset}


def draft_complete() -> dict:
    return {"type": "draft_complete"}


def error(code: str, content: str) -> dict:
    return {"type": "error", "code": code, "content": content}


def debug_log(text: str) -> dict:
    return {"type": "debug_log", "content": f"[Server] {text}"}
