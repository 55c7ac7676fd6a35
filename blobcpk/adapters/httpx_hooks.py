"""httpx integration for customer-provided encryption keys.

Installs request event hooks so every request a client sends to the blob
service carries the x-ms-encryption-* headers.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from blobcpk.domain.encryption.headers import (
    KeyBytes,
    apply_encryption_headers,
    build_encryption_headers,
)
from blobcpk.domain.encryption.models import EncryptionHeaderSet

logger = logging.getLogger(__name__)


class EncryptionHeaderHook:
    """Request event hook for httpx.Client."""

    def __init__(self, header_set: EncryptionHeaderSet):
        self.header_set = header_set

    def __call__(self, request: httpx.Request) -> None:
        apply_encryption_headers(request, self.header_set)
        logger.debug(
            f"Applied encryption headers to {request.method} {request.url} "
            f"(key sha256 {self.header_set.key_hash_base64})"
        )


class AsyncEncryptionHeaderHook(EncryptionHeaderHook):
    """Request event hook for httpx.AsyncClient."""

    async def __call__(self, request: httpx.Request) -> None:  # type: ignore[override]
        super().__call__(request)


def _with_request_hook(kwargs: Dict[str, Any], hook: Optional[EncryptionHeaderHook]) -> Dict[str, Any]:
    if hook is None:
        return kwargs

    event_hooks: Dict[str, List[Any]] = {
        name: list(hooks) for name, hooks in (kwargs.get("event_hooks") or {}).items()
    }
    event_hooks.setdefault("request", []).append(hook)
    return {**kwargs, "event_hooks": event_hooks}


def create_client(key: Optional[KeyBytes] = None, **kwargs: Any) -> httpx.Client:
    """Create an httpx.Client that sends encryption headers when a key is given.

    The key is validated before the client exists, so a malformed key raises
    InvalidKeyLength without opening anything.
    """
    header_set = build_encryption_headers(key)
    hook = EncryptionHeaderHook(header_set) if header_set is not None else None
    return httpx.Client(**_with_request_hook(kwargs, hook))


def create_async_client(key: Optional[KeyBytes] = None, **kwargs: Any) -> httpx.AsyncClient:
    """Async counterpart of create_client."""
    header_set = build_encryption_headers(key)
    hook = AsyncEncryptionHeaderHook(header_set) if header_set is not None else None
    return httpx.AsyncClient(**_with_request_hook(kwargs, hook))
