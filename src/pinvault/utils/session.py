"""Session gate: keeps the caller-supplied master secret between runs.

Nothing here checks that the secret is "right". Any non-empty secret
opens its own (possibly empty) vault.
"""
from typing import Optional

from pinvault.storage.substrate import KeyValueStore
from pinvault.utils.exceptions import ValidationError
from pinvault.utils.helper import storage_keys


def login(store: KeyValueStore, secret: str) -> str:
    secret = (secret or "").strip()
    if not secret:
        raise ValidationError("Secret must not be empty")
    store.set(storage_keys()["session"], secret)
    return secret


def logout(store: KeyValueStore) -> None:
    store.delete(storage_keys()["session"])


def current_secret(store: KeyValueStore) -> Optional[str]:
    return store.get(storage_keys()["session"]) or None
