"""Note and transcript turn data models."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import Role


@dataclass
class Note:
    """A fact card used as writing material for the current chapter."""
    id: str
    content: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        return cls(id=str(data["id"]), content=str(data.get("content") or ""))


@dataclass
class Turn:
    """One transcript entry.

    User and assistant turns carry display text in ``content``; tool turns
    carry an opaque ``tool_call`` or ``tool_result`` payload instead.
    """
    role: Role
    content: Optional[str] = None
    tool_call: Optional[dict] = field(default=None)
    tool_result: Optional[dict] = field(default=None)

    @property
    def is_visible(self) -> bool:
        return self.role in (Role.USER, Role.ASSISTANT) and bool(self.content)

    def to_dict(self) -> dict:
        data: dict = {"role": self.role.value}
        if self.content is not None:
            data["content"] = self.content
        if self.tool_call is not None:
            data["tool_call"] = self.tool_call
        if self.tool_result is not None:
            data["tool_result"] = self.tool_result
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Turn":
        return cls(
            role=Role(data["role"]),
            content=data.get("content"),
            tool_call=data.get("tool_call"),
            tool_result=data.get("tool_result"),
        )
