"""Tests for context assembly."""

from models.enums import Role
from models.note import Note, Turn


def _background(db, documents, user_id="user-1"):
    from session.context import ContextAssembler
    return ContextAssembler(db, documents).load_background(user_id)


class TestAssembleContext:
    def test_sections_in_order(self, db, documents, sample_user):
        from session.context import assemble_context
        documents.put("documents/user-1/diary.txt", "Dear diary")
        background = _background(db, documents)
        text = assemble_context(
            background,
            [Note(id="n1", content="Born in Chicago")],
            [Turn(role=Role.USER, content="I was born in 1990")],
        )
        positions = [text.index(h) for h in ("=== IDENTITY ===", "=== DOCUMENTS ===", "=== NOTES ===", "=== CONVERSATION ===")]
        assert positions == sorted(positions)
        assert "Name: Ada Byron, DOB: 1990-03-14" in text
        assert "--- Document: diary.txt ---\nDear diary" in text
        assert "- [n1] Born in Chicago" in text
        assert "Subject: I was born in 1990" in text

    def test_earliest_location_is_birthplace(self, db, documents, sample_user):
        from session.context import assemble_context
        text = assemble_context(_background(db, documents), [], [])
        assert "Birthplace: Chicago (41.8781, -87.6298)" in text
        assert "- 2008-09-01: New York (40.7128, -74.0060)" in text

    def test_undated_locations_follow_trail(self, db, documents, sample_user):
        from models.book import Location
        from session.context import assemble_context
        db.add_location(Location(id="loc-9", user_id="user-1", lat=1.0, lng=2.0, label="Cabin"))
        text = assemble_context(_background(db, documents), [], [])
        assert "- undated: Cabin (1.0000, 2.0000)" in text
        assert text.index("New York") < text.index("Cabin")

    def test_empty_notes_placeholder(self):
        from session.context import Background, assemble_context
        text = assemble_context(Background(), [], [])
        assert text == "=== NOTES ===\n(No notes yet)"

    def test_no_truncation_by_default(self):
        from session.context import Background, assemble_context
        background = Background(documents=[("big.txt", "x" * 50_000)])
        assert len(assemble_context(background, [], [])) > 50_000

    def test_documents_truncated_first(self):
        from session.context import Background, assemble_context
        background = Background(documents=[("big.txt", "x" * 10_000)])
        turns = [Turn(role=Role.USER, content="the last thing I said")]
        text = assemble_context(background, [Note(id="n1", content="fact")], turns, max_chars=2000)
        assert len(text) <= 2000
        assert "- [n1] fact" in text
        assert "Subject: the last thing I said" in text

    def test_transcript_keeps_most_recent_turns(self):
        from session.context import Background, assemble_context
        turns = [Turn(role=Role.USER, content=f"answer number {i:03d}") for i in range(200)]
        text = assemble_context(Background(), [], turns, max_chars=1500)
        assert len(text) <= 1500
        assert "answer number 199" in text
        assert "answer number 000" not in text
        assert "=== NOTES ===" in text


class TestContextAssembler:
    def test_no_user_id_means_no_background(self, db, documents):
        from session.context import ContextAssembler
        assert ContextAssembler(db, documents).load_background("") is None

    def test_missing_user_is_flagged(self, db, documents):
        from session.context import ContextAssembler, MISSING_USER_TEXT
        assembler = ContextAssembler(db, documents)
        text = assembler.assemble(None, [], [])
        assert text.startswith(MISSING_USER_TEXT)

    def test_unknown_user_yields_empty_identity(self, db, documents):
        background = _background(db, documents, user_id="nobody")
        assert background.profile is None
        assert background.locations == []
        assert background.documents == []

    def test_documents_listed_in_key_order(self, db, documents, sample_user):
        documents.put("documents/user-1/b.txt", "B")
        documents.put("documents/user-1/a.txt", "A")
        background = _background(db, documents)
        assert background.documents == [("a.txt", "A"), ("b.txt", "B")]

    def test_settings_limit_applies(self, db, documents, settings, sample_user):
        from session.context import ContextAssembler
        settings.context_max_chars = 300
        documents.put("documents/user-1/big.txt", "y" * 5000)
        assembler = ContextAssembler(db, documents, settings)
        text = assembler.assemble(assembler.load_background("user-1"), [], [])
        assert len(text) <= 300
