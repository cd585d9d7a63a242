"""Domain error taxonomy.

Services raise these; the global handlers in ``appdedupe.middleware.error_handler``
turn them into JSON responses with the matching HTTP status.
"""

from __future__ import annotations

from typing import Any

import pydantic


class DedupeError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(DedupeError):
    """Malformed input. Carries a machine-readable list of problems."""

    status_code = 400

    def __init__(self, detail: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(detail)
        self.errors = errors or []


class CsvFormatError(ValidationError):
    """The uploaded buffer could not be parsed as a clusters CSV."""


class AuthError(DedupeError):
    """Missing, invalid, or revoked credential."""

    status_code = 401


class AuthorizationError(DedupeError):
    """Valid credential lacking the required role."""

    status_code = 403


class NotFoundError(DedupeError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(DedupeError):
    """Uniqueness violation, e.g. an already registered email."""

    status_code = 409


class StorageError(DedupeError):
    """The data store failed. The detail is logged, never sent to the client."""

    status_code = 500


def validation_error_from(exc: pydantic.ValidationError, detail: str = "Validation error") -> ValidationError:
    """Wrap a pydantic validation failure as a domain ``ValidationError``."""
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return ValidationError(detail, errors=errors)
