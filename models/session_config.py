"""Per-session completion credentials."""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class SessionConfig:
    """Connection parameters for the completion backend.

    Supplied by the first viewer to connect, persisted with the session and
    never sent back to any viewer.
    """
    api_key: str = ""
    model: str = ""
    base_url: str = ""

    def merged(self, other: Optional["SessionConfig"]) -> "SessionConfig":
        """Return a copy where non-empty fields of ``other`` win."""
        if other is None:
            return SessionConfig(**asdict(self))
        return SessionConfig(
            api_key=other.api_key or self.api_key,
            model=other.model or self.model,
            base_url=other.base_url or self.base_url,
        )

    def env(self) -> dict[str, str]:
        """Environment overrides for the completion subprocess."""
        env = {}
        if self.api_key:
            env["ANTHROPIC_API_KEY"] = self.api_key
        if self.base_url:
            env["ANTHROPIC_BASE_URL"] = self.base_url
        return env

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SessionConfig":
        data = data or {}
        return cls(
            api_key=str(data.get("api_key") or ""),
            model=str(data.get("model") or ""),
            base_url=str(data.get("base_url") or ""),
        )
