import base64
import binascii
import os
import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from typing import Tuple

from pinvault.crypto.hash import derive_text_key
from pinvault.utils.dataModels import (
    ENVELOPE_HDR_FMT, ENVELOPE_HDR_SIZE, ENVELOPE_MAGIC, ENVELOPE_VERSION,
    MAX_M_COST_KiB, MAX_T_COST, NONCE_SIZE, SALT_SIZE, KdfParams,
)
from pinvault.utils.exceptions import DecryptionError


def aead_encrypt(key: bytes, plaintext: bytes, aad: bytes | None = None) -> Tuple[bytes, bytes]:
    nonce = os.urandom(NONCE_SIZE)
    aesgcm = AESGCM(key)
    ct = aesgcm.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes, nonce: bytes, ct: bytes, aad: bytes | None = None) -> bytes:
    aesgcm = AESGCM(key)
    return aesgcm.decrypt(nonce, ct, aad)


def seal_text(plaintext: str, passphrase: str, params: KdfParams, aad: str | None = None) -> str:
    """Encrypt `plaintext` under a key stretched from `passphrase`.

    Output is base64 of one binary envelope (big-endian):
        magic   : 4 bytes -> b"PVC1"
        version : 1 byte
        t, m, p : u32 each (Argon2id params)
        salt    : 16 bytes
        nonce   : 12 bytes
        ct      : AES-256-GCM ciphertext with tag
    """
    salt = os.urandom(SALT_SIZE)
    key = derive_text_key(passphrase, salt, params)
    nonce, ct = aead_encrypt(key, plaintext.encode("utf-8"), _aad(aad))
    header = struct.pack(
        ENVELOPE_HDR_FMT, ENVELOPE_MAGIC, ENVELOPE_VERSION,
        params.t_cost, params.m_cost_kib, params.parallelism, salt, nonce,
    )
    return base64.b64encode(header + ct).decode("ascii")


def open_text(token: str, passphrase: str, aad: str | None = None) -> str:
    try:
        data = base64.b64decode(token.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError) as e:
        raise DecryptionError("Ciphertext is not valid base64") from e
    if len(data) < ENVELOPE_HDR_SIZE + 16:
        raise DecryptionError("Ciphertext is too small or truncated")
    magic, ver, t, m, p, salt, nonce = struct.unpack(ENVELOPE_HDR_FMT, data[:ENVELOPE_HDR_SIZE])
    if magic != ENVELOPE_MAGIC:
        raise DecryptionError("Invalid envelope magic")
    if ver != ENVELOPE_VERSION:
        raise DecryptionError("Unsupported envelope version")
    if not (1 <= t <= MAX_T_COST) or not (1 <= p <= 64) or not (8 * p <= m <= MAX_M_COST_KiB):
        raise DecryptionError("Envelope carries invalid KDF parameters")

    key = derive_text_key(passphrase, salt, KdfParams(t, m, p))
    try:
        plaintext = aead_decrypt(key, nonce, data[ENVELOPE_HDR_SIZE:], _aad(aad))
    except InvalidTag as e:
        raise DecryptionError("Wrong key or corrupted data") from e
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Decrypted payload is not UTF-8") from e


def _aad(aad: str | None) -> bytes | None:
    return aad.encode("utf-8") if aad is not None else None
