"""Tests for inbound message parsing and outbound builders."""

import json

import pytest


class TestParseInbound:
    def test_message(self):
        from session.protocol import parse_inbound
        msg = parse_inbound('{"type": "message", "content": "I was born in 1990"}')
        assert msg.type == "message"
        assert msg.content == "I was born in 1990"

    def test_accepts_bytes_and_dicts(self):
        from session.protocol import parse_inbound
        assert parse_inbound(b'{"type": "init"}').type == "init"
        assert parse_inbound({"type": "next_chapter"}).type == "next_chapter"

    def test_patch_note_requires_id_and_content(self):
        from config.exceptions import InvalidMessageError
        from session.protocol import parse_inbound
        msg = parse_inbound({"type": "patch_note", "id": "n1", "content": "new"})
        assert (msg.id, msg.content) == ("n1", "new")
        with pytest.raises(InvalidMessageError):
            parse_inbound({"type": "patch_note", "id": "n1"})

    def test_update_notes_skips_items_without_id(self):
        from session.protocol import parse_inbound
        msg = parse_inbound({"type": "update_notes", "content": [
            {"id": "n1", "content": "a"}, {"content": "no id"}, {"id": "", "content": "blank"},
        ]})
        assert [n.id for n in msg.notes] == ["n1"]

    def test_update_notes_non_list_is_empty(self):
        from session.protocol import parse_inbound
        assert parse_inbound({"type": "update_notes", "content": "oops"}).notes == []

    def test_expand_outline_instruction_optional(self):
        from session.protocol import parse_inbound
        assert parse_inbound({"type": "expand_outline"}).instruction == ""
        assert parse_inbound({"type": "expand_outline", "instruction": "Add my 30s"}).instruction == "Add my 30s"

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"type": "dance"}', '{"content": "x"}'])
    def test_rejects_bad_messages(self, raw):
        from config.exceptions import InvalidMessageError
        from session.protocol import parse_inbound
        with pytest.raises(InvalidMessageError):
            parse_inbound(raw)


class TestOutbound:
    def test_draft_chunk(self):
        from session.protocol import draft_chunk
        assert draft_chunk("text", reset=True) == {"type": "draft_chunk", "content": "text", "reset": True}

    def test_mode_sync_uses_phase_value(self):
        from models.enums import Phase
        from session.protocol import mode_sync
        assert mode_sync(Phase.WRITING) == {"type": "mode_sync", "content": "writing"}

    def test_outline_none(self):
        from session.protocol import outline_msg
        assert outline_msg(None) == {"type": "outline", "content": None}

    def test_debug_log_prefix(self):
        from session.protocol import debug_log
        assert debug_log("Writing chapter 1...")["content"] == "[Server] Writing chapter 1..."

    def test_messages_are_json_serializable(self, sample_outline):
        from models.enums import Phase
        from session import protocol
        messages = [
            protocol.outline_msg(sample_outline),
            protocol.notes_sync([{"id": "n1", "content": "a"}]),
            protocol.mode_sync(Phase.INTERVIEW),
            protocol.chapter_index_sync(2),
            protocol.response("hi"),
            protocol.history([{"role": "user", "content": "x"}]),
            protocol.draft_complete(),
            protocol.error("PhaseError", "nope"),
        ]
        for message in messages:
            json.dumps(message)
