from __future__ import annotations


class TrackerError(RuntimeError):
    """Base class for errors raised by the attendance pipeline."""


class ExtractionError(TrackerError):
    """Raised when the portal attendance table could not be extracted."""


class AuthError(ExtractionError):
    """Raised when the portal rejects the credentials or the login never completes."""


class NavigationTimeout(ExtractionError):
    """Raised when a portal page or element did not appear within its time bound."""


class LayoutMismatch(ExtractionError):
    """Raised when the portal markup no longer matches the expected layout."""


class UserNotFound(TrackerError):
    """Raised when a user id has no matching record."""


class IneligibleUser(TrackerError):
    """Raised when a user has no portal credentials on file."""


class NoEligibleUsers(TrackerError):
    """Raised when a sweep finds no user with portal credentials."""


class SweepInProgress(TrackerError):
    """Raised when processing is requested while another run holds the worker."""


class InvalidPresentTotal(ValueError):
    """Raised when a present/total cell is not of the form ``attended/total``."""
