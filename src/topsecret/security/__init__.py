"""Security helpers: key material, buffer ciphers and the SecretBox facade.

This package provides:
- the immutable ``Key`` value with SHA-256 and Argon2id password derivation
- AES-256-CBC (default) and AES-256-GCM (opt-in) buffer transforms
- ``SecretBox``, which wraps both with JSON and file adapters
"""

from .kdf import Key, generate_salt, derive_key_sha256, derive_key_argon2id
from .crypto import (
    encrypt_buffer,
    decrypt_buffer,
    encrypt_buffer_gcm,
    decrypt_buffer_gcm,
)
from .box import SecretBox

__all__ = [
    "Key",
    "generate_salt",
    "derive_key_sha256",
    "derive_key_argon2id",
    "encrypt_buffer",
    "decrypt_buffer",
    "encrypt_buffer_gcm",
    "decrypt_buffer_gcm",
    "SecretBox",
]
