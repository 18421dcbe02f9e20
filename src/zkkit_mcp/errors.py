"""Error types raised by the network collaborator and surfaced by tools."""

from __future__ import annotations

import json
from enum import StrEnum


class ErrorCode(StrEnum):
    GITHUB_RATE_LIMITED = "GITHUB_RATE_LIMITED"
    GITHUB_NOT_FOUND = "GITHUB_NOT_FOUND"
    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    FETCH_FAILED = "FETCH_FAILED"


class ZkKitError(Exception):
    """Failure with a machine-readable code.

    ``recoverable`` tells the caller whether retrying the same request later
    may succeed (rate limits, 5xx, timeouts) or not (4xx, bad input).
    """

    def __init__(self, code: ErrorCode, message: str, *, recoverable: bool) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_payload(self) -> str:
        return json.dumps(
            {
                "error": {
                    "code": self.code.value,
                    "message": self.message,
                    "recoverable": self.recoverable,
                }
            }
        )
