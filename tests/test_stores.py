import json

import pytest

from conftest import FAST_KDF
from pinvault.crypto.cipher import SymmetricCipher
from pinvault.storage.content import ContentStore
from pinvault.storage.index import INDEX_AAD, IndexStore
from pinvault.storage.substrate import MemoryStore
from pinvault.utils.dataModels import Index, IndexEntry
from pinvault.utils.exceptions import DecryptionError, IntegrityError, StorageError
from pinvault.utils.helper import content_key, storage_keys


def test_missing_index_reads_empty(store, cipher):
    assert IndexStore(store, cipher).read_index().files == {}


def test_index_write_then_read(store, cipher):
    idx = IndexStore(store, cipher)
    idx.write_index(Index(files={"f1": IndexEntry("notes", 10, 12)}))
    loaded = idx.read_index()
    assert loaded.files["f1"] == IndexEntry("notes", 10, 12)
    assert "notes" not in store.get(storage_keys()["index"])


def test_unreadable_index_fails_open_but_not_in_strict_mode(store, cipher):
    IndexStore(store, cipher).write_index(Index(files={"f1": IndexEntry("notes", 1, 1)}))
    other = IndexStore(store, SymmetricCipher("wrong-secret", FAST_KDF))
    assert other.read_index().files == {}
    with pytest.raises(DecryptionError):
        other.read_index(strict=True)


def test_garbage_index_document(store, cipher):
    store.set(storage_keys()["index"], "garbage")
    idx = IndexStore(store, cipher)
    assert idx.read_index().files == {}
    with pytest.raises(DecryptionError):
        idx.read_index(strict=True)


def test_malformed_index_plaintext_is_integrity_error_in_strict_mode(store, cipher):
    key = cipher.derive_key("metadata")
    store.set(storage_keys()["index"], cipher.encrypt("[1, 2]", key, INDEX_AAD))
    idx = IndexStore(store, cipher)
    assert idx.read_index().files == {}
    with pytest.raises(IntegrityError):
        idx.read_index(strict=True)


def test_legacy_index_is_migrated_on_read(store, cipher):
    legacy = {"a": "old title", "b": {"title": "with time", "createdAt": 42}}
    key = cipher.derive_key("metadata")
    store.set(storage_keys()["index"], cipher.encrypt(json.dumps(legacy), key, INDEX_AAD))
    files = IndexStore(store, cipher).read_index().files
    assert files["a"] == IndexEntry("old title", 0, 0)
    assert files["b"] == IndexEntry("with time", 42, 42)


def test_index_write_failure_raises_storage_error(cipher):
    idx = IndexStore(MemoryStore(quota_bytes=10), cipher)
    with pytest.raises(StorageError):
        idx.write_index(Index(files={"f1": IndexEntry("notes", 1, 1)}))


def test_content_not_found_vs_undecryptable(store, cipher):
    contents = ContentStore(store, cipher)
    assert contents.read_content("nope") is None
    contents.write_content("f1", "hello")
    assert contents.read_content("f1") == "hello"
    with pytest.raises(DecryptionError):
        ContentStore(store, SymmetricCipher("wrong-secret", FAST_KDF)).read_content("f1")


def test_content_blob_is_bound_to_its_id(store, cipher):
    contents = ContentStore(store, cipher)
    contents.write_content("f1", "hello")
    contents.write_raw("f2", contents.read_raw("f1"))
    with pytest.raises(DecryptionError):
        contents.read_content("f2")


def test_write_content_overwrites_and_remove_is_idempotent(store, cipher):
    contents = ContentStore(store, cipher)
    contents.write_content("f1", "one")
    contents.write_content("f1", "two")
    assert contents.read_content("f1") == "two"
    contents.remove_content("f1")
    contents.remove_content("f1")
    assert store.get(content_key("f1")) is None
    assert contents.ids() == []


@pytest.mark.parametrize("legacy, expected", [
    ("plain old text", "plain old text"),
    ('{"content": "wrapped", "createdAt": 5}', "wrapped"),
    ("[1, 2, 3]", "[1, 2, 3]"),
])
def test_legacy_content_shapes(store, cipher, legacy, expected):
    key = cipher.derive_key("content")
    store.set(content_key("f1"), cipher.encrypt(legacy, key, "content:f1"))
    assert ContentStore(store, cipher).read_content("f1") == expected
