import logging

from concurrent.futures import Executor, Future
from typing import Callable, List, Optional

from pinvault.crypto.cipher import SymmetricCipher
from pinvault.storage.content import ContentStore
from pinvault.storage.index import IndexStore
from pinvault.storage.substrate import KeyValueStore
from pinvault.sync.mirror import MirrorSynchronizer
from pinvault.sync.pinata import RemoteBlobStore
from pinvault.utils.dataModels import FileRecord, Index, IndexEntry
from pinvault.utils.exceptions import (
    DecryptionError, DuplicateTitleError, IntegrityError, NotFoundError,
    RemoteSyncError, StaleSyncError, StorageError, ValidationError, VaultError,
)
from pinvault.utils.helper import new_file_id, next_available_title, now_ms

logger = logging.getLogger(__name__)


def clean_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title must not be empty")
    return title


class FileManager:
    """Create/read/update/rename/delete over the index and content stores.

    The two stores are kept in lockstep here: every id in one is in the
    other. Content-changing operations kick the remote mirror when one is
    configured; mirror failures are logged and kept in `last_sync_error`.

    Without `sync_executor` the mirror runs inline, after the local write
    has committed, so the call returns only once the upload finishes or
    fails. The CLI relies on that: it exits right after one operation. Long
    running callers should pass an executor to keep mutations from waiting
    on the network.
    """

    def __init__(
        self,
        store: KeyValueStore,
        cipher: SymmetricCipher,
        remote: RemoteBlobStore | None = None,
        clock: Callable[[], int] = now_ms,
        sync_executor: Executor | None = None,
    ):
        self.store = store
        self.cipher = cipher
        self.clock = clock
        self.index_store = IndexStore(store, cipher)
        self.content_store = ContentStore(store, cipher)
        self.mirror = None
        if remote is not None:
            self.mirror = MirrorSynchronizer(remote, self.index_store, self.content_store, store, clock)
        self.sync_executor = sync_executor
        self.last_sync_error: Optional[VaultError] = None

    def title_exists(self, title: str, exclude_id: str | None = None) -> bool:
        return title.strip() in self.index_store.read_index().titles(exclude_id)

    def create_file(self, title: str, content: str = "", auto_suffix: bool = False) -> FileRecord:
        title = clean_title(title)
        index = self.index_store.read_index(strict=True)
        taken = index.titles()
        if title in taken:
            suggestion = next_available_title(title, taken)
            if not auto_suffix:
                raise DuplicateTitleError(title, suggestion)
            title = suggestion

        ts = self.clock()
        fid = new_file_id(ts)
        self.content_store.write_content(fid, content)
        index.files[fid] = IndexEntry(title=title, created_at=ts, updated_at=ts)
        try:
            self.index_store.write_index(index)
        except StorageError:
            self._drop_content(fid)
            raise
        logger.info("Created %s", fid)
        self._trigger_sync()
        return FileRecord(id=fid, title=title, content=content, created_at=ts, updated_at=ts)

    def get_file(self, fid: str) -> Optional[FileRecord]:
        entry = self.index_store.read_index().files.get(fid)
        if entry is None:
            return None
        return self._resolve(fid, entry)

    def list_files(self) -> List[FileRecord]:
        records = []
        for fid, entry in self.index_store.read_index().files.items():
            try:
                records.append(self._resolve(fid, entry))
            except (IntegrityError, DecryptionError, StorageError) as e:
                logger.warning("Skipping %s in listing: %s", fid, type(e).__name__)
        records.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return records

    def update_content(self, fid: str, new_content: str) -> FileRecord:
        index = self.index_store.read_index(strict=True)
        entry = self._entry(index, fid)

        previous_blob = self.content_store.read_raw(fid)
        self.content_store.write_content(fid, new_content)
        entry.updated_at = self._next_stamp(entry)
        try:
            self.index_store.write_index(index)
        except StorageError:
            if previous_blob is None:
                self._drop_content(fid)
            else:
                self.content_store.write_raw(fid, previous_blob)
            raise
        self._trigger_sync()
        return FileRecord(fid, entry.title, new_content, entry.created_at, entry.updated_at)

    def rename_file(self, fid: str, new_title: str) -> FileRecord:
        new_title = clean_title(new_title)
        index = self.index_store.read_index(strict=True)
        entry = self._entry(index, fid)
        taken = index.titles(exclude_id=fid)
        if new_title in taken:
            raise DuplicateTitleError(new_title, next_available_title(new_title, taken))

        entry.title = new_title
        entry.updated_at = self._next_stamp(entry)
        self.index_store.write_index(index)
        logger.info("Renamed %s", fid)
        return self._resolve(fid, entry)

    def delete_file(self, fid: str) -> None:
        index = self.index_store.read_index(strict=True)
        entry = self._entry(index, fid)

        del index.files[fid]
        self.index_store.write_index(index)
        try:
            self.content_store.remove_content(fid)
        except StorageError:
            index.files[fid] = entry
            self.index_store.write_index(index)
            raise
        logger.info("Deleted %s", fid)
        self._trigger_sync()

    def sync(self) -> str:
        """Mirror now and return the new remote id; raises on failure."""
        if self.mirror is None:
            raise ValidationError("No remote store configured")
        new_id = self.mirror.push()
        self.last_sync_error = None
        return new_id

    def _trigger_sync(self) -> None:
        if self.mirror is None:
            return
        if self.sync_executor is not None:
            future = self.sync_executor.submit(self._sync_best_effort)
            future.add_done_callback(self._sync_done)
        else:
            self._sync_best_effort()

    def _sync_best_effort(self) -> None:
        try:
            self.sync()
        except StaleSyncError as e:
            logger.info("Mirror superseded by a newer sync: %s", e)
        except VaultError as e:
            logger.warning("Remote mirror failed, local change kept: %s", e)
            self.last_sync_error = e
        except Exception as e:
            logger.exception("Remote mirror raised unexpectedly, local change kept")
            self.last_sync_error = RemoteSyncError(f"Mirror failed: {e!r}")

    def _sync_done(self, future: Future) -> None:
        if future.cancelled():
            logger.warning("Remote mirror was cancelled before it ran")
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Remote mirror task failed: %r", exc)
            self.last_sync_error = RemoteSyncError(f"Mirror failed: {exc!r}")

    def _entry(self, index: Index, fid: str) -> IndexEntry:
        entry = index.files.get(fid)
        if entry is None:
            raise NotFoundError(f"No such id: {fid}")
        return entry

    def _resolve(self, fid: str, entry: IndexEntry) -> FileRecord:
        content = self.content_store.read_content(fid)
        if content is None:
            raise IntegrityError(f"Index lists {fid} but its content is missing")
        return FileRecord(fid, entry.title, content, entry.created_at, entry.updated_at)

    def _next_stamp(self, entry: IndexEntry) -> int:
        return max(self.clock(), entry.updated_at + 1)

    def _drop_content(self, fid: str) -> None:
        try:
            self.content_store.remove_content(fid)
        except StorageError as e:
            logger.warning("Rollback of %s content failed: %s", fid, e)
