# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain exceptions raised by services and repositories.
Controllers translate them to HTTP status codes.
"""


class ReliefError(Exception):
    """Base class for every error the service raises on purpose."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(ReliefError, ValueError):
    """A required field is missing or malformed."""


class NotFoundError(ReliefError, KeyError):
    """The referenced record does not exist."""


class AlreadyAcceptedError(ReliefError, ValueError):
    """The volunteer is already on the emergency."""


class NotAcceptedError(ReliefError, ValueError):
    """The volunteer is not on the emergency, so there is nothing to decline."""


class DuplicateAccountError(ReliefError, ValueError):
    """An account with the same email already exists for the role."""


class AuthenticationError(ReliefError):
    """Credentials or session token rejected."""


class StorageError(ReliefError, RuntimeError):
    """The document store could not be read or written."""


class UpstreamError(ReliefError, RuntimeError):
    """An upstream HTTP service failed or returned an unusable response."""
