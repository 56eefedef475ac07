"""Custom exception hierarchy for the interview and drafting service."""

from typing import Optional


class LifebookError(Exception):
    """Base exception for all lifebook errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(LifebookError):
    """Base exception for completion call errors."""


class LLMTimeoutError(LLMError):
    """Completion call exceeded its timeout."""

    def __init__(self, timeout: float, message: str = ""):
        super().__init__(message or f"Completion timed out after {timeout:g}s", {"timeout": timeout})
        self.timeout = timeout


class ToolCallError(LLMError):
    """The model produced a tool call with unusable arguments."""

    def __init__(self, tool_name: str, message: str = ""):
        super().__init__(message or f"Malformed arguments for tool '{tool_name}'", {"tool": tool_name})
        self.tool_name = tool_name


# ---- Storage Errors ----

class StorageError(LifebookError):
    """Database, session storage or document store operation failed."""


# ---- Session Errors ----

class SessionError(LifebookError):
    """Base exception for session protocol and state machine errors."""


class InvalidMessageError(SessionError):
    """Inbound client message could not be understood."""


class PhaseError(SessionError):
    """Operation is not legal in the session's current state."""

    def __init__(self, operation: str, phase: str, message: str = ""):
        super().__init__(
            message or f"'{operation}' is not allowed right now",
            {"operation": operation, "phase": phase},
        )
        self.operation = operation
        self.phase = phase


class OutlineError(SessionError):
    """Outline expansion produced no valid chapters."""


# ---- Notes Errors ----

class NoteNotFoundError(LifebookError):
    """A note id did not match any note in the store."""

    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}", {"id": note_id})
        self.note_id = note_id
