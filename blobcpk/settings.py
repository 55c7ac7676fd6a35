"""Settings and configuration."""
import base64
import binascii
import re
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from blobcpk.errors import InvalidKeyEncoding

# Load .env file if it exists
load_dotenv()

HEX_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def decode_encryption_key(value: Optional[str]) -> Optional[bytes]:
    """Decode a configured encryption key string into raw bytes.

    64 hex characters are read as hex, anything else must be standard
    base64. Unset or blank values mean no key is configured.

    The decoded length is checked later, by build_encryption_headers.
    """
    if value is None or not value.strip():
        return None

    value = value.strip()
    if HEX_KEY_PATTERN.match(value):
        return binascii.unhexlify(value)

    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise InvalidKeyEncoding(
            "Encryption key must be standard base64 or 64 hex characters"
        ) from e


class Settings(BaseSettings):
    # Customer-provided encryption (base64 or hex, 32 bytes once decoded)
    BLOB_ENCRYPTION_KEY: Optional[str] = Field(default=None, repr=False)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_REDACTION_ENABLED: bool = True

    model_config = {
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore"
    }

    def encryption_key(self) -> Optional[bytes]:
        return decode_encryption_key(self.BLOB_ENCRYPTION_KEY)


settings = Settings()
