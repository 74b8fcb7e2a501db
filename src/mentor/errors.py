"""Exceptions raised by the tracker operations.

- MentorError: base for everything below
- NotFoundError: a subscription or subject plan does not exist
- ValidationError: creation or update input is missing or invalid
- StorageError: any SQLite failure, on reads and writes alike
"""


class MentorError(Exception):
    """Base exception for tracker errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class NotFoundError(MentorError):
    """Referenced subscription or subject plan does not exist."""


class ValidationError(MentorError):
    """Required fields missing or a field holds an unsupported value."""

    def __init__(self, message: str, fields: list[str] | None = None):
        self.fields = fields or []
        super().__init__(message, {"fields": self.fields} if self.fields else None)


class StorageError(MentorError):
    """Persistence failure surfaced to the caller. Never retried."""
