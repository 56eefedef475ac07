"""Tests for the notes store and its reconciliation rules."""

import pytest


def _store(*pairs):
    from models.note import Note
    from session.notes import NotesStore
    return NotesStore([Note(id=i, content=c) for i, c in pairs])


def _notes(*pairs):
    from models.note import Note
    return [Note(id=i, content=c) for i, c in pairs]


class TestCreateAndAppend:
    def test_create_assigns_fresh_ids(self):
        store = _store()
        a = store.create("Born in Chicago")
        b = store.create("Has a sister")
        assert a.id != b.id
        assert [n.content for n in store] == ["Born in Chicago", "Has a sister"]

    def test_create_never_reuses_an_existing_id(self):
        from session.notes import NotesStore
        ids = iter(["n1", "n1", "n2"])
        store = NotesStore(id_factory=lambda: next(ids))
        store.create("first")
        second = store.create("second")
        assert second.id == "n2"

    def test_create_with_empty_text_uses_placeholder(self):
        assert _store().create("").content == "New Note"

    def test_append_joins_with_single_space(self):
        store = _store(("n1", "Born in Chicago."))
        store.append("n1", "Moved at six.")
        assert store.get("n1").content == "Born in Chicago. Moved at six."

    def test_append_avoids_double_space(self):
        store = _store(("n1", "Born in Chicago. "))
        store.append("n1", "Moved at six.")
        assert store.get("n1").content == "Born in Chicago. Moved at six."

    def test_append_unknown_id_raises(self):
        from config.exceptions import NoteNotFoundError
        with pytest.raises(NoteNotFoundError):
            _store().append("nope", "text")


class TestPatch:
    def test_patch_replaces_text(self):
        store = _store(("n1", "old"))
        assert store.patch("n1", "new") is True
        assert store.get("n1").content == "new"

    def test_patch_unknown_id_is_noop(self):
        store = _store(("n1", "old"))
        assert store.patch("n2", "new") is False
        assert len(store) == 1

    def test_patch_same_text_reports_no_change(self):
        assert _store(("n1", "same")).patch("n1", "same") is False


class TestMerge:
    def test_client_text_wins_for_shared_ids(self):
        store = _store(("n1", "server"), ("n2", "keep"))
        assert store.merge(_notes(("n1", "client"))) is True
        assert store.get("n1").content == "client"

    def test_client_only_ids_are_appended_in_order(self):
        store = _store(("n1", "a"))
        store.merge(_notes(("n3", "c"), ("n2", "b")))
        assert [n.id for n in store] == ["n1", "n3", "n2"]

    def test_empty_resync_deletes_nothing(self):
        store = _store(("n1", "a"), ("n2", "b"))
        assert store.merge([]) is False
        assert len(store) == 2

    def test_partial_resync_keeps_omitted_notes(self):
        store = _store(("n1", "a"), ("n2", "b"), ("n3", "c"))
        store.merge(_notes(("n2", "B")))
        assert [(n.id, n.content) for n in store] == [("n1", "a"), ("n2", "B"), ("n3", "c")]

    def test_merge_result_is_union_with_client_text(self):
        server = [("a", "1"), ("b", "2"), ("c", "3")]
        client = [("b", "two"), ("d", "4")]
        store = _store(*server)
        store.merge(_notes(*client))
        merged = {n.id: n.content for n in store}
        assert set(merged) == {"a", "b", "c", "d"}
        assert merged["b"] == "two"
        assert merged["a"] == "1"


class TestDelete:
    def test_delete_removes_exactly_one(self):
        store = _store(("n1", "a"), ("n2", "b"))
        removed = store.delete("n1")
        assert removed.id == "n1"
        assert [n.id for n in store] == ["n2"]

    def test_delete_unknown_raises(self):
        from config.exceptions import NoteNotFoundError
        with pytest.raises(NoteNotFoundError):
            _store().delete("nope")


class TestSnapshots:
    def test_snapshot_is_a_copy(self):
        store = _store(("n1", "a"))
        snap = store.snapshot()
        snap[0].content = "changed"
        assert store.get("n1").content == "a"

    def test_payload_roundtrip_skips_bad_items(self):
        from session.notes import NotesStore
        store = NotesStore.from_payload([{"id": "n1", "content": "a"}, {"content": "no id"}, "junk"])
        assert store.to_payload() == [{"id": "n1", "content": "a"}]

    def test_clear(self):
        store = _store(("n1", "a"))
        store.clear()
        assert len(store) == 0
        assert "n1" not in store
