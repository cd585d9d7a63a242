"""Administrative authorization policy.

Admin membership is a configured set of email addresses
(``DEDUPE_ADMIN_EMAILS``), matched after trimming and lower-casing.
"""

from __future__ import annotations

from collections.abc import Iterable

from appdedupe.config import get_settings


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class AdminPolicy:
    """Decides whether a principal may run administrative operations."""

    def __init__(self, admin_emails: Iterable[str]) -> None:
        self._emails = frozenset(normalize_email(e) for e in admin_emails if normalize_email(e))

    def is_admin(self, email: str | None) -> bool:
        return normalize_email(email) in self._emails

    def expected_role(self, email: str | None, current_role: str) -> str:
        """Role the user should hold. Allow-listed emails are always admin."""
        return "admin" if self.is_admin(email) else current_role


def get_admin_policy() -> AdminPolicy:
    """FastAPI dependency: policy built from current settings."""
    return AdminPolicy(get_settings().admin_emails)
