"""
SecretBox: a single-key encryption helper for buffers, JSON values and files.

The box owns at most one :class:`~topsecret.security.kdf.Key`. It is set
directly (hex), generated at random, or derived from a password. Every
operation that needs the key goes through :meth:`SecretBox._require_key`
and raises ``PreconditionError`` if none is set.

A single instance is meant to be owned by one caller; it does no locking.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..core.exceptions import (
    DecryptionError,
    FileOperationError,
    ParseError,
    PreconditionError,
    SerializationError,
    TopSecretError,
)
from . import crypto
from .kdf import (
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
    ARGON2_TIME_COST,
    Key,
    derive_key_argon2id,
    derive_key_sha256,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SecretBox:
    """
    Symmetric encryption with a single 256-bit key.

    By default buffers are encrypted with AES-256-CBC and PKCS#7 padding into
    ``IV || ciphertext`` envelopes. Pass ``authenticated=True`` to use
    AES-256-GCM instead; the two envelope formats are not interchangeable.
    """

    def __init__(self, authenticated: bool = False):
        self.authenticated = authenticated
        self._key: Optional[Key] = None
        self._password: Optional[str] = None

    def __repr__(self) -> str:
        mode = "gcm" if self.authenticated else "cbc"
        state = "set" if self._key is not None else "unset"
        return f"SecretBox(mode={mode}, key={state})"

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------

    def _require_key(self) -> Key:
        if self._key is None:
            raise PreconditionError("Key is not set")
        return self._key

    def generate_random_key(self) -> str:
        """Replace the active key with 32 random bytes and return it as hex."""
        self._key = Key.random()
        logger.debug("Generated random key")
        return self._key.hex()

    def get_key_hex(self) -> str:
        return self._require_key().hex()

    def set_key(self, value: str) -> None:
        self._key = Key.from_hex(value)
        logger.debug("Key set from hex")

    def set_password(self, password: str) -> None:
        """Derive the key as SHA-256 of ``password`` and remember the password."""
        self._key = derive_key_sha256(password)
        self._password = password
        logger.debug("Key derived from password (sha256)")

    def set_password_argon2id(
        self,
        password: str,
        salt: bytes,
        time_cost: int = ARGON2_TIME_COST,
        memory_cost: int = ARGON2_MEMORY_COST,
        parallelism: int = ARGON2_PARALLELISM,
    ) -> None:
        """
        Derive the key from ``password`` with Argon2id.

        Unlike :meth:`set_password` this needs a salt, which the caller must
        keep to derive the same key again.
        """
        self._key = derive_key_argon2id(
            password,
            salt,
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        self._password = password
        logger.debug("Key derived from password (argon2id)")

    @property
    def random_key(self) -> str:
        return self.generate_random_key()

    @property
    def key(self) -> str:
        return self.get_key_hex()

    @key.setter
    def key(self, value: str) -> None:
        self.set_key(value)

    @property
    def password(self) -> Optional[str]:
        return self._password

    @password.setter
    def password(self, value: str) -> None:
        self.set_password(value)

    # ------------------------------------------------------------------
    # Buffers
    # ------------------------------------------------------------------

    def encrypt_buffer(self, plaintext: bytes) -> bytes:
        key = self._require_key()
        if self.authenticated:
            return crypto.encrypt_buffer_gcm(key, plaintext)
        return crypto.encrypt_buffer(key, plaintext)

    def decrypt_buffer(self, envelope: bytes) -> bytes:
        key = self._require_key()
        if self.authenticated:
            return crypto.decrypt_buffer_gcm(key, envelope)
        return crypto.decrypt_buffer(key, envelope)

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def encrypt_json(self, value: Any) -> str:
        """
        Serialize ``value`` as compact JSON, encrypt it and return base64 text.

        Raises ``SerializationError`` for values ``json`` cannot encode,
        including cycles and NaN / Infinity.
        """
        self._require_key()
        try:
            text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as exc:
            raise SerializationError(f"Value is not JSON serializable: {exc}") from exc

        envelope = self.encrypt_buffer(text.encode("utf-8"))
        return base64.b64encode(envelope).decode("ascii")

    def decrypt_json(self, text: Union[str, bytes]) -> Any:
        self._require_key()
        try:
            envelope = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise DecryptionError("Encrypted JSON is not valid base64") from exc

        raw = self.decrypt_buffer(envelope)
        try:
            return json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise ParseError("Decrypted data is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            raise ParseError(f"Decrypted data is not valid JSON: {exc.msg}") from exc
        except RecursionError as exc:
            raise ParseError("Decrypted JSON is nested too deeply") from exc

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _run_file_op(self, operation: str, func: Callable[[], Any]) -> Any:
        # key errors surface unchanged; everything below the key is wrapped
        self._require_key()
        try:
            return func()
        except (OSError, TopSecretError) as exc:
            logger.error("%s failed: %s", operation, exc)
            raise FileOperationError(operation, str(exc) or type(exc).__name__) from exc

    def encrypt_file(self, src_path: PathLike, dst_path: PathLike) -> None:
        def run():
            data = Path(src_path).read_bytes()
            _atomic_write(dst_path, self.encrypt_buffer(data))

        self._run_file_op("encrypt_file", run)

    def decrypt_file(self, src_path: PathLike, dst_path: PathLike) -> None:
        def run():
            envelope = Path(src_path).read_bytes()
            _atomic_write(dst_path, self.decrypt_buffer(envelope))

        self._run_file_op("decrypt_file", run)

    def encrypt_json_to_file(self, value: Any, path: PathLike) -> None:
        def run():
            _atomic_write(path, self.encrypt_json(value).encode("ascii"))

        self._run_file_op("encrypt_json_to_file", run)

    def decrypt_json_from_file(self, path: PathLike) -> Any:
        def run():
            # bytes, so non-ASCII content fails base64 validation
            return self.decrypt_json(Path(path).read_bytes().strip())

        return self._run_file_op("decrypt_json_from_file", run)

    def save_buffer_to_file(self, path: PathLike, buffer: bytes) -> None:
        self._run_file_op(
            "save_buffer_to_file",
            lambda: _atomic_write(path, self.encrypt_buffer(buffer)),
        )

    def load_buffer_from_file(self, path: PathLike) -> bytes:
        return self._run_file_op(
            "load_buffer_from_file",
            lambda: self.decrypt_buffer(Path(path).read_bytes()),
        )


def _atomic_write(path: PathLike, data: bytes) -> None:
    """
    Write ``data`` to a temp file beside ``path`` and move it into place.

    The result is owner-only (0600), including when it replaces an existing file.
    """
    destination = Path(path).expanduser()
    with tempfile.NamedTemporaryFile(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp", delete=False
    ) as tmpf:
        tmp_path = Path(tmpf.name)
        try:
            tmpf.write(data)
            tmpf.flush()
            os.fsync(tmpf.fileno())
        except BaseException:
            tmpf.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, destination)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
