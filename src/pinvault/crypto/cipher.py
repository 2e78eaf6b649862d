from pinvault.crypto.aead import open_text, seal_text
from pinvault.crypto.hash import hmac_sha256_hex, sha256_hex
from pinvault.utils.dataModels import KdfParams
from pinvault.utils.exceptions import ValidationError


class SymmetricCipher:
    """Password-based text cipher bound to one master secret.

    `encrypt`/`decrypt` take the key explicitly so callers can pass a
    purpose-scoped key from `derive_key`. Each call to `encrypt` uses a
    fresh salt and nonce, so equal inputs give different ciphertexts.
    """

    def __init__(self, master_secret: str, params: KdfParams | None = None):
        if not master_secret:
            raise ValidationError("Master secret must not be empty")
        self._master = master_secret
        self.params = params or KdfParams()

    def encrypt(self, plaintext: str, key: str, aad: str | None = None) -> str:
        return seal_text(plaintext, key, self.params, aad)

    def decrypt(self, ciphertext: str, key: str, aad: str | None = None) -> str:
        return open_text(ciphertext, key, aad)

    def derive_key(self, purpose: str) -> str:
        return hmac_sha256_hex(self._master, purpose)

    @staticmethod
    def hash(value: str) -> str:
        return sha256_hex(value)

    @property
    def identity(self) -> str:
        """Deterministic identity tag of the master secret (the "public key")."""
        return sha256_hex(self._master)
