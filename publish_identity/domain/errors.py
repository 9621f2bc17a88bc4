"""Typed failures raised by the auth core and its collaborators."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for failures surfaced to callers of the auth flows."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(AuthError):
    status_code = 403


class EmailExists(AuthError):
    status_code = 500


class NotFound(AuthError):
    status_code = 403


class WrongAuthMethod(AuthError):
    status_code = 403


class InvalidCredentials(AuthError):
    status_code = 403


class InvalidAssertion(AuthError):
    status_code = 500


class DependencyFailure(AuthError):
    status_code = 500


class StoreError(Exception):
    """Raised by the account store; never leaves the orchestrator."""


class DuplicateEmail(StoreError):
    pass


class DuplicateUsername(StoreError):
    pass
