"""Customer-Provided Encryption Key Domain Models."""
import base64
import hashlib
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

ENCRYPTION_ALGORITHM = "AES256"
KEY_SIZE_BYTES = 32

HEADER_ENCRYPTION_KEY = "x-ms-encryption-key"
HEADER_ENCRYPTION_KEY_SHA256 = "x-ms-encryption-key-sha256"
HEADER_ENCRYPTION_ALGORITHM = "x-ms-encryption-algorithm"

ENCRYPTION_HEADER_NAMES = (
    HEADER_ENCRYPTION_KEY,
    HEADER_ENCRYPTION_KEY_SHA256,
    HEADER_ENCRYPTION_ALGORITHM,
)

# Standard padded base64 of exactly 32 bytes
BASE64_256_PATTERN = r"^[A-Za-z0-9+/]{43}=$"


class EncryptionHeaderSet(BaseModel):
    """
    Derived header values for one customer-provided AES-256 key.

    Immutable and compared by value. Both fields are standard base64 of
    32 bytes, and key_hash_base64 is always the SHA-256 of the decoded key.
    The raw key is kept out of repr().
    """
    model_config = ConfigDict(frozen=True)

    key_base64: str = Field(..., pattern=BASE64_256_PATTERN, repr=False)
    key_hash_base64: str = Field(..., pattern=BASE64_256_PATTERN)

    @model_validator(mode="after")
    def validate_key_hash(self) -> "EncryptionHeaderSet":
        key = base64.b64decode(self.key_base64, validate=True)
        digest = base64.b64decode(self.key_hash_base64, validate=True)
        if hashlib.sha256(key).digest() != digest:
            raise ValueError("key_hash_base64 is not the SHA-256 of key_base64")
        # Unused trailing bits must be zero so each key has one spelling
        if base64.b64encode(key).decode("ascii") != self.key_base64:
            raise ValueError("key_base64 is not canonical base64")
        if base64.b64encode(digest).decode("ascii") != self.key_hash_base64:
            raise ValueError("key_hash_base64 is not canonical base64")
        return self

    @property
    def algorithm(self) -> str:
        return ENCRYPTION_ALGORITHM

    def as_headers(self) -> Dict[str, str]:
        return {
            HEADER_ENCRYPTION_KEY: self.key_base64,
            HEADER_ENCRYPTION_KEY_SHA256: self.key_hash_base64,
            HEADER_ENCRYPTION_ALGORITHM: ENCRYPTION_ALGORITHM,
        }
