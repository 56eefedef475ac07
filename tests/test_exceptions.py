"""Tests for the custom exception hierarchy."""

import pytest
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


class TestExceptionHierarchy:
    def test_all_inherit_from_lifebook_error(self):
        leaf_classes = [
            LLMError, LLMTimeoutError, ToolCallError,
            StorageError,
            SessionError, InvalidMessageError, PhaseError, OutlineError,
            NoteNotFoundError,
        ]
        for cls in leaf_classes:
            assert issubclass(cls, LifebookError), f"{cls.__name__} must inherit LifebookError"

    def test_llm_subclasses(self):
        assert issubclass(LLMTimeoutError, LLMError)
        assert issubclass(ToolCallError, LLMError)

    def test_session_subclasses(self):
        assert issubclass(InvalidMessageError, SessionError)
        assert issubclass(PhaseError, SessionError)
        assert issubclass(OutlineError, SessionError)

    def test_note_not_found_is_not_a_session_error(self):
        assert not issubclass(NoteNotFoundError, SessionError)


class TestExceptionMessages:
    def test_str_without_details(self):
        assert str(LifebookError("boom")) == "boom"

    def test_str_with_details(self):
        err = LifebookError("boom", {"book": "b1", "step": 2})
        assert str(err) == "boom (book=b1, step=2)"

    def test_timeout_message(self):
        err = LLMTimeoutError(60)
        assert "60s" in err.message
        assert err.details["timeout"] == 60

    def test_tool_call_error_names_tool(self):
        err = ToolCallError("create_note")
        assert err.tool_name == "create_note"
        assert "create_note" in str(err)

    def test_phase_error_default_message(self):
        err = PhaseError("expand_outline", "writing")
        assert err.message == "'expand_outline' is not allowed right now"
        assert err.operation == "expand_outline"
        assert err.phase == "writing"

    def test_note_not_found_message(self):
        err = NoteNotFoundError("n-42")
        assert err.note_id == "n-42"
        assert "n-42" in str(err)

    def test_can_be_raised_and_caught_as_base(self):
        with pytest.raises(LifebookError):
            raise OutlineError("no chapters")
