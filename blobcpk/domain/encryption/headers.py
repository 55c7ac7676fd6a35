"""Customer-Provided Encryption Key (CPEK) headers.

Builds the x-ms-encryption-* header values for a caller-supplied AES-256 key
and applies them to outgoing blob storage requests. A key of None means the
request does not use customer-provided encryption.
"""
import base64
import hashlib
from collections.abc import MutableMapping
from typing import Any, Optional, Union

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from blobcpk.domain.encryption.models import (
    ENCRYPTION_HEADER_NAMES,
    KEY_SIZE_BYTES,
    EncryptionHeaderSet,
)
from blobcpk.errors import InvalidKeyLength
from blobcpk.settings import Settings, settings as default_settings

KeyBytes = Union[bytes, bytearray, memoryview]


def build_encryption_headers(key: Optional[KeyBytes]) -> Optional[EncryptionHeaderSet]:
    """Derive the encryption header values for a key.

    Args:
        key: Raw 32-byte AES-256 key, or None when encryption is not requested.

    Returns:
        EncryptionHeaderSet with the base64 key and base64 SHA-256 of the key,
        or None if no key was given.

    Raises:
        InvalidKeyLength: If the key is present but not exactly 32 bytes.
            An empty key is present and fails with length 0.
        TypeError: If the key is not a byte sequence.
    """
    if key is None:
        return None

    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise TypeError(f"Encryption key must be bytes, got {type(key).__name__}")

    raw = bytes(key)
    if len(raw) != KEY_SIZE_BYTES:
        raise InvalidKeyLength(len(raw))

    return EncryptionHeaderSet(
        key_base64=base64.b64encode(raw).decode("ascii"),
        key_hash_base64=base64.b64encode(hashlib.sha256(raw).digest()).decode("ascii"),
    )


def apply_encryption_headers(request: Any, header_set: Optional[EncryptionHeaderSet]) -> Any:
    """Set the encryption headers on a request, if a header set is given.

    `request` is anything with a mutable `headers` mapping (httpx.Request,
    for instance) or a header mapping itself. Existing values for the three
    headers are overwritten, so applying the same set twice is a no-op.
    The same object is returned.
    """
    if header_set is None:
        return request

    headers = request if isinstance(request, MutableMapping) else request.headers

    # Plain dicts are case-sensitive; drop differently-cased copies first
    if isinstance(headers, dict):
        stale = [
            name for name in headers
            if isinstance(name, str) and name.lower() in ENCRYPTION_HEADER_NAMES
        ]
        for name in stale:
            del headers[name]

    for name, value in header_set.as_headers().items():
        headers[name] = value

    return request


def generate_encryption_key() -> bytes:
    """Generate a fresh random 32-byte AES-256 key."""
    return AESGCM.generate_key(bit_length=256)


def get_encryption_headers(settings: Optional[Settings] = None) -> Optional[EncryptionHeaderSet]:
    """Factory returning the header set for the configured key, if any."""
    settings = settings or default_settings
    return build_encryption_headers(settings.encryption_key())
