class VaultError(Exception):
    """Base class for every error raised by pinvault."""


class ValidationError(VaultError):
    pass


class NotFoundError(VaultError):
    pass


class DuplicateTitleError(VaultError):
    """A live record already uses this title.

    `suggestion` is the first free "Name (n)" variant, for callers that
    want to auto-suffix instead of aborting.
    """

    def __init__(self, title: str, suggestion: str):
        super().__init__(f"A file titled '{title}' already exists")
        self.title = title
        self.suggestion = suggestion


class DecryptionError(VaultError):
    """Wrong key or corrupt ciphertext. Never means "empty"."""


class IntegrityError(VaultError):
    """Index and content store disagree about a record."""


class StorageError(VaultError):
    pass


class RemoteStoreError(VaultError):
    """The remote blob store could not be reached or answered badly."""


class RemoteSyncError(VaultError):
    pass


class StaleSyncError(RemoteSyncError):
    """A newer sync committed first; this bundle was discarded."""
