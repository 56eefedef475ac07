"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    LifebookError,
    LLMError,
    LLMTimeoutError,
    ToolCallError,
    StorageError,
    SessionError,
    InvalidMessageError,
    PhaseError,
    OutlineError,
    NoteNotFoundError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "LifebookError",
    "LLMError",
    "LLMTimeoutError",
    "ToolCallError",
    "StorageError",
    "SessionError",
    "InvalidMessageError",
    "PhaseError",
    "OutlineError",
    "NoteNotFoundError",
]
