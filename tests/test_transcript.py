"""Tests for the transcript and its compare-to-last duplicate suppression."""

from models.enums import Role
from models.note import Turn


class TestAppend:
    def test_identical_consecutive_turn_is_suppressed(self):
        from session.transcript import Transcript
        transcript = Transcript()
        greeting = Turn(role=Role.ASSISTANT, content="Hello!")
        assert transcript.append(greeting) is True
        assert transcript.append(Turn(role=Role.ASSISTANT, content="Hello!")) is False
        assert len(transcript) == 1

    def test_same_text_different_role_is_kept(self):
        from session.transcript import Transcript
        transcript = Transcript()
        transcript.append(Turn(role=Role.ASSISTANT, content="Yes"))
        assert transcript.append(Turn(role=Role.USER, content="Yes")) is True

    def test_only_last_turn_is_compared(self):
        from session.transcript import Transcript
        transcript = Transcript()
        transcript.append(Turn(role=Role.USER, content="a"))
        transcript.append(Turn(role=Role.ASSISTANT, content="b"))
        assert transcript.append(Turn(role=Role.USER, content="a")) is True
        assert len(transcript) == 3


class TestVisible:
    def test_hides_tool_turns(self):
        from session.transcript import Transcript
        transcript = Transcript([
            Turn(role=Role.USER, content="I was born in 1990"),
            Turn(role=Role.ASSISTANT, tool_call={"id": "t1", "name": "create_note", "arguments": {}}),
            Turn(role=Role.TOOL, tool_result={"id": "t1", "name": "create_note", "response": {"success": True}}),
            Turn(role=Role.ASSISTANT, content="Where?"),
        ])
        assert transcript.visible() == [
            {"role": "user", "content": "I was born in 1990"},
            {"role": "assistant", "content": "Where?"},
        ]

    def test_payload_roundtrip(self):
        from session.transcript import Transcript
        original = Transcript([
            Turn(role=Role.USER, content="hi"),
            Turn(role=Role.TOOL, tool_result={"id": "t1", "name": "x", "response": {}}),
        ])
        restored = Transcript.from_payload(original.to_payload() + [{"role": "bogus"}])
        assert list(restored) == list(original)


class TestRenderTurn:
    def test_speakers(self):
        from session.transcript import render_turn
        assert render_turn(Turn(role=Role.USER, content="hi")) == "Subject: hi"
        assert render_turn(Turn(role=Role.ASSISTANT, content="hello")) == "Interviewer: hello"

    def test_tool_turns(self):
        from session.transcript import render_turn
        call = Turn(role=Role.ASSISTANT, tool_call={"id": "t1", "name": "create_note", "arguments": {"content": "x"}})
        result = Turn(role=Role.TOOL, tool_result={"id": "t1", "name": "create_note", "response": {"success": True}})
        assert render_turn(call).startswith("[tool call] create_note")
        assert render_turn(result).startswith("[tool result] create_note")
