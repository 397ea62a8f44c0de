"""
Service-level error taxonomy.

Every failure a caller can act on is one of these; the HTTP layer renders
them as ``{"kind": ..., "msg": ...}`` with the matching status code.
Anything else is an internal error.
"""


class LibraryError(Exception):
    """Base class for errors surfaced to callers."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(LibraryError):
    """A required field is missing or blank."""

    kind = "validation"
    status_code = 422


class NotFoundError(LibraryError):
    """A referenced category, book, member, loan or fine does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(LibraryError):
    """Duplicate key, unavailable book, borrowing limit or active loans in the way."""

    kind = "conflict"
    status_code = 409
