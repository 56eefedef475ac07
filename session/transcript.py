"""Append-only conversation transcript with compare-to-last duplicate suppression."""

from typing import Iterator, Optional

from models.enums import Role
from models.note import Turn


class Transcript:
    """Ordered turns of the current chapter's interview.

    ``append`` refuses a turn equal to the current last turn. This only
    guards against a repeated greeting racing with a fresh ``init``; it is
    not general content de-duplication.
    """

    def __init__(self, turns: Optional[list[Turn]] = None):
        self._turns: list[Turn] = list(turns or [])

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))

    @property
    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def append(self, turn: Turn) -> bool:
        """Append ``turn`` unless it repeats the last turn. Returns True if appended."""
        if self._turns and self._turns[-1] == turn:
            return False
        self._turns.append(turn)
        return True

    def visible(self) -> list[dict]:
        """User and assistant text turns, as sent in a ``history`` message."""
        return [
            {"role": t.role.value, "content": t.content}
            for t in self._turns
            if t.is_visible
        ]

    def clear(self):
        self._turns.clear()

    def to_payload(self) -> list[dict]:
        return [t.to_dict() for t in self._turns]

    @classmethod
    def from_payload(cls, payload: Optional[list]) -> "Transcript":
        turns = []
        for item in payload or []:
            try:
                turns.append(Turn.from_dict(item))
            except (KeyError, ValueError, TypeError):
                continue
        return cls(turns)


def render_turn(turn: Turn) -> str:
    """Flatten one turn for a completion prompt."""
    if turn.tool_call is not None:
        return f"[tool call] {turn.tool_call.get('name', '?')} {turn.tool_call.get('arguments', {})}"
    if turn.tool_result is not None:
        return f"[tool result] {turn.tool_result.get('name', '?')} {turn.tool_result.get('response', {})}"
    speaker = "Subject" if turn.role == Role.USER else "Interviewer"
    return f"{speaker}: {turn.content or ''}"
