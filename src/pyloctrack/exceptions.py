"""Custom exception hierarchy for pyloctrack."""

from __future__ import annotations


class LocTrackError(Exception):
    """Base exception for all pyloctrack errors."""


class LocTrackConfigError(LocTrackError):
    """Invalid or missing configuration."""


class LocationSourceError(LocTrackError):
    """The location provider rejected or failed a request."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)


class LocationUnauthorizedError(LocationSourceError):
    """The platform denied access to location data.

    Raised by :meth:`LocationSource.start_updates` when credentials or
    permissions are missing.  The controller rolls tracking back to
    ``STOPPED`` when it sees this.
    """


class LocationTransientError(LocationSourceError):
    """The location provider is temporarily unreachable.

    Callers may retry later; the tracking state is left untouched.
    """


class StorageUnavailableError(LocTrackError):
    """A preference or log write could not be completed."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
