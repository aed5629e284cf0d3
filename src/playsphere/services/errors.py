"""Domain errors raised by the persistence gateway.

The HTTP layer renders them with :attr:`StorageError.status_code`; the relay
logs them or answers with an error frame.
"""


class StorageError(Exception):
    """Base class for gateway failures that are the caller's fault."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(StorageError, LookupError):
    """The referenced row does not exist."""

    status_code = 404


class PermissionDeniedError(StorageError, PermissionError):
    """The acting user may not perform the operation."""

    status_code = 403


class ConflictError(StorageError, ValueError):
    """The operation would violate a uniqueness rule."""

    status_code = 409


class InvalidOperationError(StorageError, ValueError):
    """The operation is not allowed in the current state."""
