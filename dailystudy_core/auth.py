"""Access decisions for refund reports, injected into the service layer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from .config import StudySettings
from .validation import InputSanitizer


@dataclass(frozen=True)
class Viewer:
    """Identity taken from the host's session (either field may be missing)."""

    email: str | None = None
    github_username: str | None = None

    @property
    def normalized_email(self) -> str | None:
        return InputSanitizer.normalize_email(self.email)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.normalized_email or self.github_username)


class AuthorizationPolicy(Protocol):
    def is_authenticated(self, viewer: Viewer | None) -> bool:
        ...

    def is_admin(self, viewer: Viewer | None) -> bool:
        ...


class AdminEmailPolicy:
    """Any signed-in viewer may read reports; admins are an e-mail allow-list."""

    def __init__(self, admin_emails: Iterable[str]):
        self._admin_emails = frozenset(
            e for e in map(InputSanitizer.normalize_email, admin_emails) if e
        )

    @classmethod
    def from_settings(cls, settings: StudySettings) -> "AdminEmailPolicy":
        return cls(settings.admin_emails)

    def is_authenticated(self, viewer: Viewer | None) -> bool:
        return viewer is not None and viewer.is_authenticated

    def is_admin(self, viewer: Viewer | None) -> bool:
        if viewer is None or viewer.normalized_email is None:
            return False
        return viewer.normalized_email in self._admin_emails
