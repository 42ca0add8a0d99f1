from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


SALT_LENGTH = 16
IV_LENGTH = 12
KEY_LENGTH = 32  # AES-256
TAG_LENGTH = 16
HEADER_LENGTH = SALT_LENGTH + IV_LENGTH

# PBKDF2-HMAC-SHA256 work factor. Treat as a floor, raise it as guidance moves.
KDF_ITERATIONS = 600_000


class CryptoUnavailableError(RuntimeError):
    pass


class InvalidPasswordOrCorruptFile(ValueError):
    def __init__(self) -> None:
        super().__init__("Invalid password or corrupt file.")


@dataclass(frozen=True)
class Container:
    """
    Unpacked backup container.

    Layout: [salt (16)][iv (12)][AES-GCM ciphertext + tag]
    No magic bytes, no header. Format detection happens on the decrypted payload.
    """

    salt: bytes
    iv: bytes
    ciphertext: bytes


def _random_bytes(n: int) -> bytes:
    try:
        return secrets.token_bytes(n)
    except NotImplementedError as e:
        raise CryptoUnavailableError("Secure random source unavailable.") from e


def _password_bytes(password: str) -> bytes:
    # Lone surrogates become U+FFFD, the way browser TextEncoder treats them,
    # so any str is a usable password and paired surrogates still join.
    return password.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace").encode("utf-8")


def derive_key(password: str, salt: bytes, *, iterations: int = KDF_ITERATIONS) -> bytes:
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be {SALT_LENGTH} bytes.")
    if int(iterations) < 1:
        raise ValueError("iterations must be >= 1.")
    try:
        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, iterations=int(iterations))
        return kdf.derive(_password_bytes(password))
    except UnsupportedAlgorithm as e:
        raise CryptoUnavailableError("PBKDF2-HMAC-SHA256 unavailable.") from e


def _cipher(key: bytes) -> AESGCM:
    try:
        return AESGCM(key)
    except UnsupportedAlgorithm as e:
        raise CryptoUnavailableError("AES-GCM unavailable.") from e


def pack_container(salt: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    if len(salt) != SALT_LENGTH or len(iv) != IV_LENGTH:
        raise ValueError("pack_container: bad salt/iv length.")
    return bytes(salt) + bytes(iv) + bytes(ciphertext)


def unpack_container(blob: bytes) -> Container:
    b = bytes(blob)
    return Container(salt=b[:SALT_LENGTH], iv=b[SALT_LENGTH:HEADER_LENGTH], ciphertext=b[HEADER_LENGTH:])


def encrypted_size(plaintext_len: int) -> int:
    return HEADER_LENGTH + int(plaintext_len) + TAG_LENGTH


def serialize_payload(data: Any) -> bytes:
    return json.dumps(data, ensure_ascii=False, allow_nan=False).encode("utf-8")


def encrypt_data(data: Any, password: str, *, iterations: int = KDF_ITERATIONS) -> bytes:
    """
    Serialize `data` as UTF-8 JSON and seal it under a password-derived AES-256-GCM key.

    Salt and iv are fresh for every call, so two backups of the same data with the
    same password share nothing but their length.
    """
    plaintext = serialize_payload(data)
    salt = _random_bytes(SALT_LENGTH)
    iv = _random_bytes(IV_LENGTH)
    key = derive_key(password, salt, iterations=iterations)
    ct = _cipher(key).encrypt(iv, plaintext, None)
    return pack_container(salt, iv, ct)


def decrypt_data(blob: bytes, password: str, *, iterations: int = KDF_ITERATIONS) -> Any:
    """
    Inverse of encrypt_data.

    Wrong password, truncation, tampering and undecodable plaintext all raise the same
    InvalidPasswordOrCorruptFile; callers must not be able to tell them apart.
    """
    c = unpack_container(blob)
    if len(c.salt) != SALT_LENGTH or len(c.iv) != IV_LENGTH or len(c.ciphertext) < TAG_LENGTH:
        raise InvalidPasswordOrCorruptFile()
    key = derive_key(password, c.salt, iterations=iterations)
    try:
        pt = _cipher(key).decrypt(c.iv, c.ciphertext, None)
    except InvalidTag:
        raise InvalidPasswordOrCorruptFile() from None
    try:
        return json.loads(pt.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidPasswordOrCorruptFile() from None
