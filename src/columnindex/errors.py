from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    PAGE_REJECTED = "PAGE_REJECTED"
    PAYLOAD_INVALID = "PAYLOAD_INVALID"


class ColumnIndexError(Exception):
    """Raised by the listing fetcher for every per-page failure.

    The aggregator catches it at its boundary and degrades the page to an
    empty slice, so it never reaches the host page. Callers using
    ``PagedListFetcher.fetch_page`` directly see it as-is.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }
