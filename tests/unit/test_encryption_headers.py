"""Tests for customer-provided encryption key header derivation."""
import base64
import hashlib
import os

import httpx
import pytest

from blobcpk.domain.encryption.headers import (
    apply_encryption_headers,
    build_encryption_headers,
    generate_encryption_key,
    get_encryption_headers,
)
from blobcpk.domain.encryption.models import EncryptionHeaderSet
from blobcpk.errors import BlobEncryptionError, InvalidKeyLength
from blobcpk.settings import Settings

ZERO_KEY = b"\x00" * 32


def test_absent_key_builds_nothing():
    assert build_encryption_headers(None) is None


@pytest.mark.parametrize("length", [0, 1, 16, 31, 33, 64])
def test_invalid_key_length_reports_length(length):
    with pytest.raises(InvalidKeyLength) as exc_info:
        build_encryption_headers(os.urandom(length))

    assert exc_info.value.length == length
    assert str(exc_info.value) == f"Invalid key length, must be 32 bytes: {length}"


def test_invalid_key_length_is_a_value_error():
    with pytest.raises(ValueError):
        build_encryption_headers(b"short")
    with pytest.raises(BlobEncryptionError):
        build_encryption_headers(b"short")


def test_empty_key_is_not_absent():
    """An empty key is a present key of length 0, not 'no encryption'."""
    with pytest.raises(InvalidKeyLength) as exc_info:
        build_encryption_headers(b"")
    assert exc_info.value.length == 0


def test_non_bytes_key_rejected():
    with pytest.raises(TypeError):
        build_encryption_headers("a" * 32)


def test_zero_key_headers():
    header_set = build_encryption_headers(ZERO_KEY)

    assert header_set.key_base64 == "A" * 43 + "="
    assert header_set.key_base64 == base64.b64encode(ZERO_KEY).decode()
    assert header_set.key_hash_base64 == base64.b64encode(hashlib.sha256(ZERO_KEY).digest()).decode()
    assert header_set.algorithm == "AES256"


def test_round_trip_for_random_keys():
    for _ in range(20):
        key = os.urandom(32)
        header_set = build_encryption_headers(key)

        assert base64.b64decode(header_set.key_base64) == key
        digest = base64.b64decode(header_set.key_hash_base64)
        assert len(digest) == 32
        assert digest == hashlib.sha256(key).digest()


def test_build_accepts_bytearray_and_memoryview():
    key = os.urandom(32)
    expected = build_encryption_headers(key)

    assert build_encryption_headers(bytearray(key)) == expected
    assert build_encryption_headers(memoryview(key)) == expected


def test_build_is_deterministic():
    key = os.urandom(32)
    first = build_encryption_headers(key)
    second = build_encryption_headers(key)

    assert first == second
    assert hash(first) == hash(second)


def test_apply_sets_three_headers():
    header_set = build_encryption_headers(ZERO_KEY)
    request = httpx.Request("PUT", "https://account.blob.core.windows.net/c/b")

    result = apply_encryption_headers(request, header_set)

    assert result is request
    assert request.headers["x-ms-encryption-key"] == header_set.key_base64
    assert request.headers["x-ms-encryption-key-sha256"] == header_set.key_hash_base64
    assert request.headers["x-ms-encryption-algorithm"] == "AES256"


def test_apply_without_header_set_leaves_request_untouched():
    request = httpx.Request(
        "GET",
        "https://account.blob.core.windows.net/c/b",
        headers={"x-ms-version": "2021-08-06", "x-ms-encryption-algorithm": "other"},
    )
    before = list(request.headers.raw)

    result = apply_encryption_headers(request, build_encryption_headers(None))

    assert result is request
    assert list(request.headers.raw) == before


def test_apply_overwrites_existing_values():
    header_set = build_encryption_headers(ZERO_KEY)
    request = httpx.Request(
        "PUT",
        "https://account.blob.core.windows.net/c/b",
        headers={"X-MS-Encryption-Key": "stale", "x-ms-version": "2021-08-06"},
    )

    apply_encryption_headers(request, header_set)

    assert request.headers.get_list("x-ms-encryption-key") == [header_set.key_base64]
    assert request.headers["x-ms-version"] == "2021-08-06"


def test_apply_is_idempotent():
    header_set = build_encryption_headers(os.urandom(32))
    once = httpx.Request("PUT", "https://account.blob.core.windows.net/c/b")
    twice = httpx.Request("PUT", "https://account.blob.core.windows.net/c/b")

    apply_encryption_headers(once, header_set)
    apply_encryption_headers(twice, header_set)
    apply_encryption_headers(twice, header_set)

    assert list(once.headers.multi_items()) == list(twice.headers.multi_items())


def test_apply_to_plain_dict_replaces_other_casings():
    header_set = build_encryption_headers(ZERO_KEY)
    headers = {"X-MS-ENCRYPTION-ALGORITHM": "stale", "Content-Type": "text/plain"}

    result = apply_encryption_headers(headers, header_set)

    assert result is headers
    assert headers == {
        "Content-Type": "text/plain",
        "x-ms-encryption-key": header_set.key_base64,
        "x-ms-encryption-key-sha256": header_set.key_hash_base64,
        "x-ms-encryption-algorithm": "AES256",
    }


def test_generate_encryption_key_builds_valid_headers():
    key = generate_encryption_key()

    assert len(key) == 32
    assert isinstance(build_encryption_headers(key), EncryptionHeaderSet)
    assert generate_encryption_key() != key


def test_get_encryption_headers_from_settings():
    key = os.urandom(32)
    settings = Settings(BLOB_ENCRYPTION_KEY=base64.b64encode(key).decode())

    assert get_encryption_headers(settings) == build_encryption_headers(key)


def test_get_encryption_headers_without_configured_key():
    assert get_encryption_headers(Settings(BLOB_ENCRYPTION_KEY=None)) is None


def test_get_encryption_headers_short_configured_key():
    settings = Settings(BLOB_ENCRYPTION_KEY=base64.b64encode(b"x" * 16).decode())

    with pytest.raises(InvalidKeyLength) as exc_info:
        get_encryption_headers(settings)
    assert exc_info.value.length == 16
