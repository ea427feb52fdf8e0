from __future__ import annotations

from typing import Any


class CRMUpstreamError(RuntimeError):
    """Raised when the CRM rejects a request or cannot be reached."""

    def __init__(self, message: str, status: int | None = None, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.data = data or {}

    @property
    def is_duplicate(self) -> bool:
        if self.status == 409:
            return True
        return "duplicat" in str(self).lower()

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class ContactResolutionError(RuntimeError):
    """Raised when no contact id could be obtained for an attendee."""
    pass


class AppointmentCommitError(RuntimeError):
    """Raised when a direct appointment create fails. Carries a message safe to show attendees."""

    def __init__(self, message: str, user_message: str) -> None:
        super().__init__(message)
        self.user_message = user_message


class ConfigurationError(RuntimeError):
    """Raised when required settings (API token) are missing outside dev."""
    pass
