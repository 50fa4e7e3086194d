"""Key material: the immutable ``Key`` value and password-based derivation."""

from __future__ import annotations

import binascii
import hashlib
import os
from dataclasses import dataclass, field

from argon2.low_level import Type, hash_secret_raw

from ..core.exceptions import ValidationError


KEY_SIZE = 32  # 256 bits
KEY_HEX_LENGTH = KEY_SIZE * 2

# Argon2id defaults, same cost profile as interactive logins
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536
ARGON2_PARALLELISM = 1


@dataclass(frozen=True)
class Key:
    """A 256-bit symmetric key. Immutable; safe to pass between callers."""

    raw: bytes = field(repr=False)

    def __post_init__(self):
        if not isinstance(self.raw, bytes) or len(self.raw) != KEY_SIZE:
            raise ValidationError(f"Key must be {KEY_SIZE} raw bytes")

    @classmethod
    def random(cls) -> "Key":
        return cls(os.urandom(KEY_SIZE))

    @classmethod
    def from_hex(cls, value: str) -> "Key":
        """
        Build a key from its 64-character hex form.

        The length is checked on the encoded string first, so a 32-char
        string is rejected even though it would decode to 16 bytes.
        """
        if not isinstance(value, str):
            raise ValidationError("Key must be a hex string")
        if len(value) != KEY_HEX_LENGTH:
            raise ValidationError(f"Key must be {KEY_HEX_LENGTH} characters long")
        try:
            raw = bytes.fromhex(value)
        except ValueError as exc:
            raise ValidationError("Key must be a valid hex string") from exc
        return cls(raw)

    def hex(self) -> str:
        return binascii.hexlify(self.raw).decode("ascii")


def _check_password(password) -> str:
    if not isinstance(password, str) or len(password) == 0:
        raise ValidationError("Password must be a non-empty string")
    return password


def generate_salt(length: int = 16) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_key_sha256(password: str) -> Key:
    """Derive a key as the SHA-256 digest of the UTF-8 password bytes."""
    password = _check_password(password)
    return Key(hashlib.sha256(password.encode("utf-8")).digest())


def derive_key_argon2id(
    password: str,
    salt: bytes,
    time_cost: int = ARGON2_TIME_COST,
    memory_cost: int = ARGON2_MEMORY_COST,
    parallelism: int = ARGON2_PARALLELISM,
) -> Key:
    """
    Derive a key from a password using Argon2id.

    The caller is responsible for storing ``salt`` alongside the ciphertext;
    the same password and salt always give the same key.
    """
    password = _check_password(password)
    if not isinstance(salt, bytes) or len(salt) < 8:
        raise ValidationError("Salt must be at least 8 bytes")

    raw = hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=KEY_SIZE,
        type=Type.ID,
    )
    return Key(raw)
