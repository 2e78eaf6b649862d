import secrets

from argon2.low_level import hash_secret_raw, Type as Argon2Type
from cryptography.hazmat.primitives import hashes, hmac

from pinvault.utils.dataModels import KdfParams


def sha3_512_bytes(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA3_512())
    digest.update(data)
    return digest.finalize()


def sha256_hex(data: str) -> str:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data.encode("utf-8"))
    return digest.finalize().hex()


def hmac_sha256_hex(key: str, message: str) -> str:
    h = hmac.HMAC(key.encode("utf-8"), hashes.SHA256())
    h.update(message.encode("utf-8"))
    return h.finalize().hex()


def derive_text_key(passphrase: str, salt: bytes, params: KdfParams) -> bytes:
    """Argon2id(SHA3-512(passphrase)) -> 32 bytes"""
    prehash = sha3_512_bytes(passphrase.encode("utf-8"))
    return hash_secret_raw(
        secret=prehash,
        salt=salt,
        time_cost=params.t_cost,
        memory_cost=params.m_cost_kib,
        parallelism=params.parallelism,
        hash_len=32,
        type=Argon2Type.ID,
    )


def generate_key_pair() -> tuple[str, str]:
    """Return (private, public) where public = SHA-256(private).

    Not asymmetric cryptography: the "public key" is only a stable
    identity tag for the private one.
    """
    private = secrets.token_hex(32)
    return private, sha256_hex(private)
