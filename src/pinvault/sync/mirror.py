"""Remote mirror: one JSON bundle per identity on the remote blob store.

Bundle layout (UTF-8 JSON):
    version    : bundle schema version
    identity   : SHA-256 of the master secret
    generation : fencing token, increases with every sync attempt
    createdAt  : ms timestamp of the sync
    index      : encrypted index document, as stored locally
    files      : [{id, createdAt, content}] newest first, content still encrypted

Titles only travel inside the encrypted index.
"""
import json
import logging
import threading

from typing import Callable, List, Optional

from pinvault.storage.content import ContentStore
from pinvault.storage.index import IndexStore
from pinvault.storage.substrate import KeyValueStore
from pinvault.sync.pinata import RemoteBlobStore
from pinvault.utils.dataModels import BUNDLE_VERSION
from pinvault.utils.exceptions import (
    IntegrityError, NotFoundError, RemoteStoreError, RemoteSyncError,
    StaleSyncError, StorageError, ValidationError,
)
from pinvault.utils.helper import now_ms, storage_keys

logger = logging.getLogger(__name__)


class MirrorSynchronizer:
    def __init__(
        self,
        remote: RemoteBlobStore,
        index_store: IndexStore,
        content_store: ContentStore,
        store: KeyValueStore,
        clock: Callable[[], int] = now_ms,
    ):
        self.remote = remote
        self.index_store = index_store
        self.content_store = content_store
        self.store = store
        self.clock = clock
        self.identity = index_store.cipher.identity
        self.pointer_key = storage_keys()["pointer"]
        self._lock = threading.Lock()
        self._issued = 0
        self._committed = 0
        self._committed_id: Optional[str] = None

    @property
    def bundle_name(self) -> str:
        return f"{self.identity}.json"

    def current_pointer(self) -> Optional[str]:
        return self.store.get(self.pointer_key)

    def build_bundle(self, generation: int) -> bytes:
        index = self.index_store.read_index()
        files = []
        for fid, entry in sorted(index.files.items(), key=lambda kv: kv[1].created_at, reverse=True):
            blob = self.content_store.read_raw(fid)
            if blob is None:
                logger.warning("Skipping %s in bundle: no content blob", fid)
                continue
            files.append({"id": fid, "createdAt": entry.created_at, "content": blob})
        bundle = {
            "version": BUNDLE_VERSION,
            "identity": self.identity,
            "generation": generation,
            "createdAt": self.clock(),
            "index": self.index_store.read_raw(),
            "files": files,
        }
        return json.dumps(bundle, separators=(",", ":")).encode("utf-8")

    def sync_all(self, current_remote_id: Optional[str]) -> str:
        """Upload a fresh bundle and retire `current_remote_id`.

        Raises RemoteSyncError if the upload fails; the caller keeps its
        old pointer in that case.
        """
        return self._sync(current_remote_id, persist=False)

    def push(self) -> str:
        """sync_all() against the stored pointer, then store the new one."""
        return self._sync(self.current_pointer(), persist=True)

    def _sync(self, current_remote_id: Optional[str], persist: bool) -> str:
        with self._lock:
            self._issued += 1
            generation = self._issued

        try:
            payload = self.build_bundle(generation)
        except StorageError as e:
            raise RemoteSyncError(f"Could not read local state for sync: {e}") from e
        try:
            new_id = self.remote.upload(payload, self.bundle_name)
        except RemoteStoreError as e:
            logger.warning("Bundle upload failed; keeping pointer %s", current_remote_id)
            raise RemoteSyncError(f"Upload failed: {e}") from e
        except Exception as e:
            logger.exception("Remote store raised during upload; keeping pointer %s", current_remote_id)
            raise RemoteSyncError(f"Upload failed: {e!r}") from e

        with self._lock:
            if generation < self._committed:
                stale = True
            else:
                stale = False
                if persist:
                    try:
                        self.store.set(self.pointer_key, new_id)
                    except StorageError as e:
                        self._discard(new_id)
                        raise RemoteSyncError(f"Could not store remote pointer: {e}") from e
                previous = {current_remote_id}
                # sync_all() leaves the stored pointer alone, so it must not retire what it names
                if persist or self._committed_id != self.current_pointer():
                    previous.add(self._committed_id)
                self._committed = generation
                self._committed_id = new_id

        if stale:
            logger.warning("Sync generation %d lost to %d; discarding %s", generation, self._committed, new_id)
            if new_id != self._committed_id:
                self._discard(new_id)
            raise StaleSyncError(f"Generation {generation} superseded by {self._committed}")

        for old_id in previous:
            if old_id and old_id != new_id:
                self._discard(old_id)
        logger.info("Synced %s (generation %d)", new_id, generation)
        return new_id

    def _discard(self, content_id: str) -> None:
        try:
            self.remote.unpin(content_id)
        except Exception as e:
            logger.warning("Could not unpin %s: %r", content_id, e)

    def identity_exists(self) -> bool:
        """True if a bundle named after this identity is pinned.

        Anyone who knows the identity hash gets the same answer, so this
        is a lookup, not authentication.
        """
        return bool(self.remote.list(self.bundle_name))

    def restore(self, force: bool = False) -> List[str]:
        """Replace local state with the latest remote bundle; return its ids."""
        if self.index_store.read_index().files and not force:
            raise ValidationError("Local vault is not empty; use force to overwrite it")

        entries = self.remote.list(self.bundle_name)
        if not entries:
            raise NotFoundError(f"No remote bundle named {self.bundle_name}")
        latest = max(entries, key=lambda e: e.pinned_at)

        try:
            bundle = json.loads(self.remote.fetch(latest.content_id).decode("utf-8"))
        except ValueError as e:
            raise IntegrityError(f"Remote bundle {latest.content_id} is not valid JSON") from e
        if not isinstance(bundle, dict) or bundle.get("version") != BUNDLE_VERSION:
            raise IntegrityError("Unsupported remote bundle version")
        if bundle.get("identity") != self.identity:
            raise IntegrityError("Remote bundle belongs to a different identity")

        files = bundle.get("files") or []
        if not all(isinstance(f, dict) and isinstance(f.get("id"), str) and isinstance(f.get("content"), str) for f in files):
            raise IntegrityError("Remote bundle has malformed file entries")
        for fid in self.content_store.ids():
            self.content_store.remove_content(fid)
        for item in files:
            self.content_store.write_raw(item["id"], item["content"])
        if bundle.get("index") is None:
            self.store.delete(self.index_store.key)
        else:
            self.index_store.write_raw(bundle["index"])
        self.store.set(self.pointer_key, latest.content_id)
        with self._lock:
            self._committed_id = latest.content_id

        restored = [item["id"] for item in files]
        logger.info("Restored %d files from %s", len(restored), latest.content_id)
        return restored
