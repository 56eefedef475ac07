"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    def test_settings_created_with_test_paths(self, settings, tmp_path):
        assert settings.sqlite_db_path == tmp_path / "lifebook.db"
        assert settings.session_db_path == tmp_path / "sessions.db"

    def test_default_interview_cap(self, settings):
        assert settings.interview_max_iterations == 5

    def test_default_model_names(self, tmp_path):
        from config.settings import Settings
        # Use _env_file=None to test code defaults without .env overrides
        s = Settings(
            _env_file=None,
            sqlite_db_path=tmp_path / "a.db",
            session_db_path=tmp_path / "b.db",
            documents_dir=tmp_path / "blobs",
            log_dir=tmp_path / "logs",
        )
        assert s.llm_model_interview == "claude-sonnet-4-6"
        assert s.llm_model_writing == "claude-sonnet-4-6"
        assert s.llm_model_outline == "claude-sonnet-4-6"
        assert s.completion_timeout_seconds == 60.0
        assert s.context_max_chars is None
        assert s.port == 8787

    def test_parent_dirs_created(self, tmp_path):
        from config.settings import Settings
        Settings(
            _env_file=None,
            sqlite_db_path=tmp_path / "nested" / "lifebook.db",
            session_db_path=tmp_path / "state" / "sessions.db",
            documents_dir=tmp_path / "blobs",
            log_dir=tmp_path / "logs",
        )
        assert (tmp_path / "nested").is_dir()
        assert (tmp_path / "state").is_dir()


class TestSettingsValidation:
    def _make(self, tmp_path, **kwargs):
        from config.settings import Settings
        return Settings(
            _env_file=None,
            sqlite_db_path=tmp_path / "lifebook.db",
            session_db_path=tmp_path / "sessions.db",
            documents_dir=tmp_path / "blobs",
            log_dir=tmp_path / "logs",
            **kwargs,
        )

    def test_zero_timeout_raises(self, tmp_path):
        with pytest.raises(ValidationError, match="completion_timeout_seconds"):
            self._make(tmp_path, completion_timeout_seconds=0)

    def test_negative_timeout_raises(self, tmp_path):
        with pytest.raises(ValidationError, match="completion_timeout_seconds"):
            self._make(tmp_path, completion_timeout_seconds=-5)

    def test_zero_iterations_raises(self, tmp_path):
        with pytest.raises(ValidationError, match="interview_max_iterations"):
            self._make(tmp_path, interview_max_iterations=0)

    def test_context_max_chars_must_be_positive(self, tmp_path):
        with pytest.raises(ValidationError, match="context_max_chars"):
            self._make(tmp_path, context_max_chars=0)

    def test_context_max_chars_accepts_positive(self, tmp_path):
        assert self._make(tmp_path, context_max_chars=5000).context_max_chars == 5000

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LLM_MODEL_WRITING", "claude-opus-4-6")
        monkeypatch.setenv("INTERVIEW_MAX_ITERATIONS", "3")
        s = self._make(tmp_path)
        assert s.llm_model_writing == "claude-opus-4-6"
        assert s.interview_max_iterations == 3
