"""AES-256-GCM helpers for provider API keys stored in the settings table.

Ciphertext format: ``base64(iv):base64(auth_tag):base64(ciphertext)`` with a
12-byte IV, so values written by the web application decrypt here unchanged.
"""

import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from rag_engine.config import get_settings
from rag_engine.utils.errors import EncryptionError

IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32


def _load_key(raw_key: Optional[str] = None) -> bytes:
    """Resolve the 32-byte key from base64 or raw utf-8 text."""
    raw_key = raw_key if raw_key is not None else get_settings().security.encryption_key
    if not raw_key:
        raise EncryptionError("ENCRYPTION_KEY is not set")

    try:
        key = base64.b64decode(raw_key, validate=True)
        if len(key) == KEY_LENGTH:
            return key
    except (binascii.Error, ValueError):
        pass

    key = raw_key.encode("utf-8")
    if len(key) == KEY_LENGTH:
        return key

    raise EncryptionError("ENCRYPTION_KEY must be a 32-byte key (base64 or utf8)")


def encrypt(plaintext: str, key: Optional[str] = None) -> str:
    """Encrypt a secret for storage."""
    if not plaintext:
        raise EncryptionError("Plaintext is required")

    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(_load_key(key)).encrypt(iv, plaintext.encode("utf-8"), None)
    # cryptography appends the tag to the ciphertext
    encrypted, auth_tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

    return ":".join(
        base64.b64encode(part).decode("ascii") for part in (iv, auth_tag, encrypted)
    )


def decrypt(ciphertext: str, key: Optional[str] = None) -> str:
    """Decrypt a stored secret."""
    if not ciphertext:
        raise EncryptionError("Ciphertext is required")

    parts = ciphertext.split(":")
    if len(parts) != 3:
        raise EncryptionError("Invalid ciphertext format")

    try:
        iv, auth_tag, encrypted = (base64.b64decode(part) for part in parts)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError("Invalid ciphertext encoding") from e

    try:
        plaintext = AESGCM(_load_key(key)).decrypt(iv, encrypted + auth_tag, None)
    except (InvalidTag, ValueError) as e:
        raise EncryptionError("Failed to decrypt ciphertext") from e

    return plaintext.decode("utf-8")
