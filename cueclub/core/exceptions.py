"""
Error taxonomy shared by the lifecycle, bracket and match services.

Validation errors are raised synchronously to the caller and never retried.
DependencyFailure wraps data store / notification sink failures and is the
only retryable error.
"""
from typing import Optional


class CueClubError(Exception):
    status_code = 400
    retryable = False

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": type(self).__name__,
            "step": self.step,
            "retryable": self.retryable,
        }


class NotFound(CueClubError, LookupError):
    status_code = 404


class InvalidState(CueClubError):
    status_code = 409


class InvalidWinner(CueClubError, ValueError):
    status_code = 422


class InvalidRoster(CueClubError, ValueError):
    status_code = 422


class AlreadyExists(CueClubError):
    status_code = 409


class DependencyFailure(CueClubError):
    status_code = 503
    retryable = True
