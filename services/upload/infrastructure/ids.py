from __future__ import annotations

import secrets

from services.upload.application.interfaces import TokenProvider

DEFAULT_TOKEN_BYTES = 32


class RandomTokenProvider(TokenProvider):
    """URL-safe tokens drawn from the OS CSPRNG."""

    def __init__(self, num_bytes: int = DEFAULT_TOKEN_BYTES) -> None:
        if num_bytes < DEFAULT_TOKEN_BYTES:
            raise ValueError(f"Tokens need at least {DEFAULT_TOKEN_BYTES} random bytes")
        self._num_bytes = num_bytes

    def generate(self) -> str:
        return secrets.token_urlsafe(self._num_bytes)
