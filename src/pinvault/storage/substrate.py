"""Key-value persistence substrate.

The stores never touch the filesystem directly; they go through a
`KeyValueStore` so tests can hand in a `MemoryStore`.
"""
import logging
import os
import re

from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pinvault.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def check_key(key: str) -> str:
    if not _KEY_RE.match(key or "") or key in (".", ".."):
        raise StorageError(f"Invalid storage key: {key!r}")
    return key


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> List[str]: ...


class MemoryStore:
    """In-memory substrate. `quota_bytes` mimics a browser storage quota."""

    def __init__(self, quota_bytes: int | None = None):
        self.data: Dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self.data.get(check_key(key))

    def set(self, key: str, value: str) -> None:
        check_key(key)
        if self.quota_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self.data.items() if k != key)
            if used + len(key) + len(value) > self.quota_bytes:
                raise StorageError("Storage quota exceeded")
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(check_key(key), None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self.data if k.startswith(prefix))


class DirectoryStore:
    """One UTF-8 file per key under `root`, written via tmp + os.replace."""

    def __init__(self, root: Path):
        self.root = Path(root)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create store directory {self.root}: {e}") from e

    def _path(self, key: str) -> Path:
        return self.root / check_key(key)

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        # "~" is outside the key alphabet, so temp files never shadow a key
        tmp = path.with_name(path.name + "~tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.warning("Write of %s failed: %s", key, type(e).__name__)
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_file() and _KEY_RE.match(p.name) and p.name.startswith(prefix)
        )
