import logging

from pinvault.crypto.cipher import SymmetricCipher
from pinvault.storage.substrate import KeyValueStore
from pinvault.utils.dataModels import PURPOSE_METADATA, Index
from pinvault.utils.exceptions import DecryptionError, IntegrityError, StorageError
from pinvault.utils.helper import storage_keys

logger = logging.getLogger(__name__)

INDEX_AAD = "index"


class IndexStore:
    """The encrypted id -> {title, createdAt, updatedAt} directory."""

    def __init__(self, store: KeyValueStore, cipher: SymmetricCipher):
        self.store = store
        self.cipher = cipher
        self.key = storage_keys()["index"]
        self._metadata_key = cipher.derive_key(PURPOSE_METADATA)

    def read_raw(self) -> str | None:
        return self.store.get(self.key)

    def write_raw(self, document: str) -> None:
        self.store.set(self.key, document)

    def read_index(self, strict: bool = False) -> Index:
        """Load the index, or an empty one if it is missing or unreadable.

        With `strict`, an existing but unreadable document raises instead,
        so a writer never replaces it with an empty index.
        """
        try:
            raw = self.read_raw()
        except StorageError as e:
            if strict:
                raise
            logger.warning("Index read failed, treating as empty: %s", e)
            return Index()
        if raw is None:
            return Index()
        try:
            plain = self.cipher.decrypt(raw, self._metadata_key, INDEX_AAD)
            return Index.from_bytes(plain.encode("utf-8"))
        except DecryptionError:
            if strict:
                raise
            logger.warning("Index could not be decrypted, treating as empty")
            return Index()
        except (ValueError, TypeError, AttributeError) as e:
            if strict:
                raise IntegrityError(f"Index document is malformed: {e}") from e
            logger.warning("Index could not be parsed, treating as empty (%s)", type(e).__name__)
            return Index()

    def write_index(self, index: Index) -> None:
        plain = index.to_bytes().decode("utf-8")
        self.write_raw(self.cipher.encrypt(plain, self._metadata_key, INDEX_AAD))
