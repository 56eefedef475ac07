"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Completion credentials are not configured here: each book session
    receives its own API key / model on first connect and keeps them in
    its durable storage.
    """

    # LLM models, one per agent role (session config may override)
    llm_model_interview: str = "claude-sonnet-4-6"   # InterviewAgent
    llm_model_writing: str = "claude-sonnet-4-6"     # WriterAgent
    llm_model_outline: str = "claude-sonnet-4-6"     # OutlineExpander

    # Completion behaviour
    completion_timeout_seconds: float = 60.0
    interview_max_iterations: int = 5
    context_max_chars: Optional[int] = None  # None = no truncation

    # Storage
    sqlite_db_path: Path = Path("./data/lifebook.db")
    session_db_path: Path = Path("./data/sessions.db")
    documents_dir: Path = Path("./data/blobs")

    # Logging
    log_dir: Path = Path("./data/logs")

    # Server
    host: str = "127.0.0.1"
    port: int = 8787

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("completion_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("completion_timeout_seconds must be > 0")
        return v

    @field_validator("interview_max_iterations")
    @classmethod
    def validate_max_iterations(cls, v: int) -> int:
        if v < 1:
            raise ValueError("interview_max_iterations must be >= 1")
        return v

    @field_validator("context_max_chars")
    @classmethod
    def validate_context_max_chars(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("context_max_chars must be positive when set")
        return v

    @field_validator("sqlite_db_path", "session_db_path", "log_dir", "documents_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
