"""Key-value store backed by JSON files on local disk."""

import re
from dataclasses import dataclass
from pathlib import Path

from food_logger.services.key_value import KeyValueStore

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores each key as a file under a root directory."""

    root: Path

    @classmethod
    def create(cls, directory: str) -> "FileKeyValueStore":
        """Create a store rooted at a directory, creating it if needed."""
        root = Path(directory)
        root.mkdir(parents=True, exist_ok=True)
        return cls(root=root)

    async def get_item(self, key: str) -> str | None:
        """Return the stored value for a key."""
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    async def set_item(self, key: str, value: str) -> None:
        """Write a value atomically by replacing the key's file."""
        path = self._path_for(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    async def remove_item(self, key: str) -> None:
        """Remove a key's file if present."""
        self._path_for(key).unlink(missing_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"
