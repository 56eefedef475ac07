"""Enumerations for session phase, transcript roles and chapter status."""

from enum import Enum


class Phase(str, Enum):
    INTERVIEW = "interview"
    WRITING = "writing"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ChapterStatus(str, Enum):
    PLANNED = "planned"
    COMPLETED = "completed"
