import re
import secrets
import time

from typing import Dict, Iterable

KEY_PREFIX = "pinvault."
CONTENT_PREFIX = KEY_PREFIX + "content."

_SUFFIX_RE = re.compile(r"^(?P<base>.*?) \((?P<n>\d+)\)$")


def storage_keys() -> Dict[str, str]:
    return {
        "index": KEY_PREFIX + "index",
        "pointer": KEY_PREFIX + "remote_pointer",
        "session": KEY_PREFIX + "session",
    }


def content_key(fid: str) -> str:
    return CONTENT_PREFIX + fid


def now_ms() -> int:
    return int(time.time() * 1000)


def ms_to_iso(ms: int) -> str:
    import datetime as _dt
    ts = _dt.datetime.fromtimestamp(ms / 1000, tz=_dt.timezone.utc)
    return ts.replace(microsecond=0, tzinfo=None).isoformat() + "Z"


def new_file_id(ts: int | None = None) -> str:
    """Timestamp prefix plus random suffix; not checked against existing ids."""
    if ts is None:
        ts = now_ms()
    return f"{ts:x}-{secrets.token_hex(6)}"


def next_available_title(title: str, taken: Iterable[str]) -> str:
    """First "Name (n)" variant, n >= 1, not present in `taken`."""
    taken = set(taken)
    m = _SUFFIX_RE.match(title)
    base = m.group("base") if m and m.group("base") in taken else title
    n = 1
    while f"{base} ({n})" in taken:
        n += 1
    return f"{base} ({n})"
