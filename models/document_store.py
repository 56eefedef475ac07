"""Filesystem blob store for uploaded background document text."""

import logging
from pathlib import Path

from config.exceptions import StorageError

logger = logging.getLogger(__name__)


def user_documents_prefix(user_id: str) -> str:
    return f"documents/{user_id}/"


class DocumentStore:
    """Text blobs addressed by slash-separated keys under a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError("Document key escapes the store root", {"key": key})
        return path

    def put(self, key: str, text: str) -> str:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return key

    def list(self, prefix: str) -> list[str]:
        """Return every key under ``prefix``, sorted."""
        base = self._path_for(prefix)
        if not base.is_dir():
            return []
        root = self.root.resolve()
        return sorted(
            p.relative_to(root).as_posix()
            for p in base.rglob("*")
            if p.is_file()
        )

    def read(self, key: str) -> str:
        try:
            return self._path_for(key).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise StorageError(f"Document read failed: {e}", {"key": key}) from e
