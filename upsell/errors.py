"""Error kinds and exceptions."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Recoverable failure categories reported by the core."""

    FETCH_FAILURE = "fetch_failure"
    STALE_RESPONSE = "stale_response"
    KEY_RESOLUTION_FAILURE = "key_resolution_failure"
    UNSUPPORTED_MOVE = "unsupported_move"


class UpsellError(Exception):
    """Base exception for upsell-builder errors."""


class FetchFailure(UpsellError):
    """Raised when a catalog page cannot be fetched or decoded."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message)
