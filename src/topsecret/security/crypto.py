"""Buffer cipher transforms with an explicit key argument.

Envelope layouts:
- CBC (default): IV (16 bytes) || AES-256-CBC ciphertext, PKCS#7 padded.
  No MAC: a tampered envelope either fails the padding check or decrypts
  to different plaintext.
- GCM (opt-in): nonce (12 bytes) || ciphertext || tag (16 bytes).
"""
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.exceptions import DecryptionError, ValidationError
from .kdf import Key


IV_SIZE = 16
BLOCK_SIZE = 16
GCM_NONCE_SIZE = 12
GCM_TAG_SIZE = 16


def _as_bytes(data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise ValidationError(f"Expected bytes or str, got {type(data).__name__}")


def encrypt_buffer(key: Key, plaintext) -> bytes:
    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(_as_bytes(plaintext)) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key.raw), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(padded) + encryptor.finalize()


def decrypt_buffer(key: Key, envelope) -> bytes:
    envelope = _as_bytes(envelope)
    if len(envelope) < IV_SIZE:
        raise DecryptionError("Envelope too short to contain IV")

    iv, ct = envelope[:IV_SIZE], envelope[IV_SIZE:]
    if len(ct) == 0 or len(ct) % BLOCK_SIZE != 0:
        raise DecryptionError(
            f"Ciphertext length {len(ct)} is not a positive multiple of {BLOCK_SIZE}"
        )

    decryptor = Cipher(algorithms.AES(key.raw), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ct) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        # wrong key and tampering both end up here
        raise DecryptionError("Invalid padding after decryption") from exc


def encrypt_buffer_gcm(key: Key, plaintext) -> bytes:
    nonce = os.urandom(GCM_NONCE_SIZE)
    return nonce + AESGCM(key.raw).encrypt(nonce, _as_bytes(plaintext), None)


def decrypt_buffer_gcm(key: Key, envelope) -> bytes:
    envelope = _as_bytes(envelope)
    if len(envelope) < GCM_NONCE_SIZE + GCM_TAG_SIZE:
        raise DecryptionError("Envelope too short to contain nonce and tag")

    nonce, ct = envelope[:GCM_NONCE_SIZE], envelope[GCM_NONCE_SIZE:]
    try:
        return AESGCM(key.raw).decrypt(nonce, ct, None)
    except InvalidTag as exc:
        raise DecryptionError("Authentication failed (tag mismatch)") from exc
