"""Errors raised while preparing customer-provided encryption headers."""


class BlobEncryptionError(Exception):
    """Base error for customer-provided encryption key handling."""
    pass


class InvalidKeyLength(BlobEncryptionError, ValueError):
    """A non-absent key was not exactly 32 bytes (AES-256).

    The observed length is kept on the exception so callers can report it
    without ever touching the key bytes themselves.
    """

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Invalid key length, must be 32 bytes: {length}")


class InvalidKeyEncoding(BlobEncryptionError, ValueError):
    """A configured key string was neither standard base64 nor 64 hex chars."""
    pass
