import json
import struct

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_T_COST = 2
DEFAULT_M_COST_KiB = 19456  # 19 MiB, cheap enough to run per blob
DEFAULT_PARALLELISM = 1

MAX_T_COST = 64
MAX_M_COST_KiB = 1048576  # refuse headers asking for more than 1 GiB

ENVELOPE_MAGIC = b"PVC1"
ENVELOPE_VERSION = 1
ENVELOPE_HDR_FMT = ">4sBIII16s12s"  # magic, ver, t, m, p, salt(16), nonce(12)
ENVELOPE_HDR_SIZE = struct.calcsize(ENVELOPE_HDR_FMT)
SALT_SIZE = 16
NONCE_SIZE = 12

INDEX_VERSION = 2
CONTENT_VERSION = 2
BUNDLE_VERSION = 1

PURPOSE_METADATA = "metadata"
PURPOSE_CONTENT = "content"
PURPOSE_FILENAME = "filename"


@dataclass(frozen=True)
class KdfParams:
    t_cost: int = DEFAULT_T_COST
    m_cost_kib: int = DEFAULT_M_COST_KiB
    parallelism: int = DEFAULT_PARALLELISM


@dataclass
class IndexEntry:
    title: str
    created_at: int
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "createdAt": self.created_at, "updatedAt": self.updated_at}

    @staticmethod
    def from_obj(obj: Any) -> "IndexEntry":
        # Legacy documents stored the bare title string.
        if isinstance(obj, str):
            return IndexEntry(title=obj, created_at=0, updated_at=0)
        if not isinstance(obj, dict):
            raise ValueError(f"Unexpected index entry: {type(obj).__name__}")
        created = int(obj.get("createdAt", 0) or 0)
        return IndexEntry(
            title=str(obj.get("title", "")),
            created_at=created,
            updated_at=int(obj.get("updatedAt", created) or created),
        )


@dataclass
class Index:
    files: Dict[str, IndexEntry] = field(default_factory=dict)

    def to_bytes(self) -> bytes:
        body = {"version": INDEX_VERSION, "files": {fid: e.to_dict() for fid, e in self.files.items()}}
        return json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def from_bytes(b: bytes) -> "Index":
        obj = json.loads(b.decode("utf-8"))
        if not isinstance(obj, dict):
            raise ValueError("Index document is not an object")
        if "version" in obj:
            if obj["version"] != INDEX_VERSION:
                raise ValueError(f"Unsupported index version: {obj['version']}")
            raw = obj.get("files", {})
        else:
            raw = obj  # v1: bare id -> entry mapping
        return Index(files={fid: IndexEntry.from_obj(e) for fid, e in raw.items()})

    def titles(self, exclude_id: Optional[str] = None) -> List[str]:
        return [e.title for fid, e in self.files.items() if fid != exclude_id]


def encode_content(content: str) -> str:
    return json.dumps({"version": CONTENT_VERSION, "content": content}, ensure_ascii=False, separators=(",", ":"))


def decode_content(doc: str) -> str:
    """Return file text from a decrypted content document, migrating older shapes."""
    try:
        obj = json.loads(doc)
    except ValueError:
        return doc
    if isinstance(obj, dict):
        if obj.get("version") == CONTENT_VERSION and isinstance(obj.get("content"), str):
            return obj["content"]
        if "version" not in obj and isinstance(obj.get("content"), str):
            return obj["content"]
    return doc


@dataclass
class FileRecord:
    id: str
    title: str
    content: str
    created_at: int
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class RemoteEntry:
    filename: str
    content_id: str
    pinned_at: str = ""


@dataclass
class IntegrityReport:
    orphan_content: List[str] = field(default_factory=list)
    missing_content: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.orphan_content and not self.missing_content
