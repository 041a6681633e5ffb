# Overview: Closed error taxonomy raised by the service layer.

"""
Stockroom error kinds (authoritative)

Every failure a service can report belongs to exactly one ErrorKind.
Services raise the matching StockroomError subclass with structured details;
the HTTP boundary (create_app) maps kinds to status codes, so the services
never decide transport outcomes themselves.

Only low-stock alert delivery failures are caught and logged instead of
being raised (see alert_service).
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    VALIDATION = "VALIDATION"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DATABASE = "DATABASE"


class StockroomError(Exception):
    """Base for all typed service errors."""

    kind: ErrorKind = ErrorKind.DATABASE

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "kind": self.kind.value,
            "details": self.details,
        }


class NotFound(StockroomError):
    """Referenced entity does not exist."""
    kind = ErrorKind.NOT_FOUND


class InsufficientStock(StockroomError):
    """Mutation would drive a product quantity below zero."""
    kind = ErrorKind.INSUFFICIENT_STOCK


class InvalidReference(StockroomError):
    """One or more foreign-key targets are missing."""
    kind = ErrorKind.INVALID_REFERENCE

    def __init__(self, violations: list[dict]):
        fields = ", ".join(v["field"] for v in violations)
        super().__init__(f"Invalid references: {fields}", details={"violations": violations})
        self.violations = violations


class ValidationError(StockroomError, ValueError):
    """400-level input problem."""
    kind = ErrorKind.VALIDATION


class DuplicateEntry(StockroomError):
    """Unique constraint would be violated (e.g. barcode collision)."""
    kind = ErrorKind.DUPLICATE_ENTRY


class DatabaseError(StockroomError):
    """Unexpected persistence failure; the cause is chained, never exposed."""
    kind = ErrorKind.DATABASE

    def __init__(self, message: str = "Database operation failed", details: dict | None = None):
        super().__init__(message, details)

