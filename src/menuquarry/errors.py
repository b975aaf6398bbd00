"""
Error taxonomy for menu extraction.

Every failure that crosses a component boundary is an ``ExtractionError``
subclass carrying a machine-checkable ``kind``. Per-candidate failures are
caught by the orchestrator; only ``MenuNotFoundError`` reaches the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Machine-checkable failure categories."""

    FETCH = "fetch_error"
    UNSUPPORTED_FORMAT = "unsupported_format"
    EXTRACTION_EMPTY = "extraction_empty"
    STRUCTURING_UNREACHABLE = "structuring_unreachable"
    STRUCTURING_MALFORMED = "structuring_malformed"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"


class ExtractionError(Exception):
    """Base class for all menu extraction failures."""

    kind: ErrorKind = ErrorKind.NOT_FOUND
    status_code: int = 500

    def __init__(self, message: str, *, detail: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.url = url

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for the request-handling layer."""
        payload: Dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.detail:
            payload["details"] = self.detail
        return payload

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class FetchError(ExtractionError):
    """Network failure, timeout, DNS error or non-success status."""

    kind = ErrorKind.FETCH
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[str] = None,
        url: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message, detail=detail, url=url)
        self.status = status


class UnsupportedFormat(ExtractionError):
    """Content type is neither PDF nor HTML."""

    kind = ErrorKind.UNSUPPORTED_FORMAT
    status_code = 415


class ExtractionEmpty(ExtractionError):
    """Extracted text fell below the minimum useful length."""

    kind = ErrorKind.EXTRACTION_EMPTY
    status_code = 422


class StructuringUnreachable(ExtractionError):
    """The structuring service could not be reached or refused the request."""

    kind = ErrorKind.STRUCTURING_UNREACHABLE
    status_code = 503


class StructuringMalformed(ExtractionError):
    """The structuring service answered with something that is not a menu object."""

    kind = ErrorKind.STRUCTURING_MALFORMED
    status_code = 502


class ValidationFailed(ExtractionError):
    """A structured menu did not meet the validator thresholds."""

    kind = ErrorKind.VALIDATION_FAILED
    status_code = 422


class MenuNotFoundError(ExtractionError):
    """No strategy produced a valid menu."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        message: str = (
            "Searched the entire site but could not find a valid, complete menu. "
            "The site might not have one or it is in a very unusual format."
        ),
        *,
        detail: Optional[str] = None,
        url: Optional[str] = None,
        attempts: int = 0,
        failures: Optional[Dict[str, int]] = None,
    ) -> None:
        super().__init__(message, detail=detail, url=url)
        self.attempts = attempts
        self.failures = dict(failures or {})

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["attempts"] = self.attempts
        payload["failures"] = self.failures
        return payload
