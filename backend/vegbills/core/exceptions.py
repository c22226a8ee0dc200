"""Domain error taxonomy.

Each error carries the HTTP status the boundary handler maps it to and a
short ``error`` label used in the response body.  ``UniqueConstraintRace``
and ``CacheUnavailable`` never reach a client: the reconciler recovers from
the former and the cache layer degrades on the latter.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class VegbillsError(Exception):
    """Base class for errors raised by the bill service."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            content["details"] = self.details
        return content


class ValidationError(VegbillsError):
    """Malformed or constraint-violating input.

    ``violations`` enumerates every offending field, not just the first.
    """

    status_code = 400
    error = "Validation error"

    def __init__(self, violations: Iterable[dict[str, str]], message: Optional[str] = None):
        self.violations = list(violations)
        super().__init__(message or "Request failed validation", details=self.violations)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class NotFoundError(VegbillsError):
    status_code = 404
    error = "Not found"


class ConflictError(VegbillsError):
    """Catalogue integrity fault: a lookup returned a row for another name."""

    status_code = 500
    error = "Catalogue integrity fault"


class UniqueConstraintRace(VegbillsError):
    """A concurrent writer inserted one of the names we tried to insert."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(f"Concurrent insert for {', '.join(self.names)}")


class StoreUnavailable(VegbillsError):
    status_code = 500
    error = "Store unavailable"


class CacheUnavailable(VegbillsError):
    status_code = 503
    error = "Cache unavailable"


__all__ = [
    "VegbillsError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "UniqueConstraintRace",
    "StoreUnavailable",
    "CacheUnavailable",
]
