from typing import List, Optional

from pinvault.crypto.cipher import SymmetricCipher
from pinvault.storage.substrate import KeyValueStore
from pinvault.utils.dataModels import PURPOSE_CONTENT, decode_content, encode_content
from pinvault.utils.helper import CONTENT_PREFIX, content_key


class ContentStore:
    """One encrypted blob per file id, independent of the index."""

    def __init__(self, store: KeyValueStore, cipher: SymmetricCipher):
        self.store = store
        self.cipher = cipher
        self._content_key = cipher.derive_key(PURPOSE_CONTENT)

    def read_raw(self, fid: str) -> Optional[str]:
        return self.store.get(content_key(fid))

    def write_raw(self, fid: str, blob: str) -> None:
        self.store.set(content_key(fid), blob)

    def read_content(self, fid: str) -> Optional[str]:
        """Return the plaintext, or None if no blob exists.

        Raises DecryptionError if the blob exists but cannot be opened.
        """
        blob = self.read_raw(fid)
        if blob is None:
            return None
        doc = self.cipher.decrypt(blob, self._content_key, _aad(fid))
        return decode_content(doc)

    def write_content(self, fid: str, plaintext: str) -> None:
        blob = self.cipher.encrypt(encode_content(plaintext), self._content_key, _aad(fid))
        self.write_raw(fid, blob)

    def remove_content(self, fid: str) -> None:
        self.store.delete(content_key(fid))

    def ids(self) -> List[str]:
        return [k[len(CONTENT_PREFIX):] for k in self.store.keys(CONTENT_PREFIX)]


def _aad(fid: str) -> str:
    return f"content:{fid}"
