import pytest

from pinvault.crypto.cipher import SymmetricCipher
from pinvault.storage.substrate import MemoryStore
from pinvault.utils.core import FileManager
from pinvault.utils.dataModels import KdfParams, RemoteEntry
from pinvault.utils.exceptions import RemoteStoreError, StorageError

FAST_KDF = KdfParams(t_cost=1, m_cost_kib=8, parallelism=1)
SECRET = "test-master-secret"


class FakeClock:
    """Returns start+1, start+2, ... on successive calls."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


class FailingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.fail_set = set()
        self.fail_delete = set()

    def set(self, key, value):
        if key in self.fail_set:
            raise StorageError(f"refusing to write {key}")
        super().set(key, value)

    def delete(self, key):
        if key in self.fail_delete:
            raise StorageError(f"refusing to delete {key}")
        super().delete(key)


class FakeRemote:
    def __init__(self):
        self.blobs = {}
        self.uploads = []
        self.unpinned = []
        self.fail_upload = False
        self.fail_unpin = False
        self.on_upload = None
        self._n = 0

    def upload(self, data, filename):
        if self.fail_upload:
            raise RemoteStoreError("upload unavailable")
        self._n += 1
        cid = f"cid-{self._n}"
        hook, self.on_upload = self.on_upload, None
        if hook:
            hook()
        self.blobs[cid] = (filename, data, self._n)
        self.uploads.append(cid)
        return cid

    def unpin(self, content_id):
        self.unpinned.append(content_id)
        if self.fail_unpin:
            raise RemoteStoreError("unpin unavailable")
        self.blobs.pop(content_id, None)

    def list(self, name_filter):
        return [
            RemoteEntry(filename=name, content_id=cid, pinned_at=f"{seq:06d}")
            for cid, (name, _, seq) in self.blobs.items()
            if name == name_filter
        ]

    def fetch(self, content_id):
        if content_id not in self.blobs:
            raise RemoteStoreError(f"{content_id} not pinned")
        return self.blobs[content_id][1]


@pytest.fixture
def cipher():
    return SymmetricCipher(SECRET, FAST_KDF)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def manager(store, cipher, clock):
    return FileManager(store, cipher, clock=clock)


@pytest.fixture
def mirrored(store, cipher, clock, remote):
    return FileManager(store, cipher, remote=remote, clock=clock)


ENV_VARS = [
    "PINATA_JWT", "PINATA_API_KEY", "PINATA_SECRET_KEY", "PINATA_API_URL", "PINATA_GATEWAY_URL",
    "PINVAULT_HOME", "PINVAULT_KDF_T", "PINVAULT_KDF_M", "PINVAULT_KDF_P",
    "PINVAULT_HTTP_TIMEOUT", "PINVAULT_LOG_LEVEL", "PINVAULT_KEY",
]


def clear_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        # setenv first so teardown also removes anything load_dotenv adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
