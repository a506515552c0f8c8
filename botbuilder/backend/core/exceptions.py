"""
Application Exceptions.

Services raise these; exception_handlers.py turns them into the error
envelope. Each class carries the machine-readable `code` clients see in
`error.code`.
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    code = "SYS_INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """A bot (or other record) with the given id or token does not exist."""

    code = "RES_NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ApplicationError):
    """The write would duplicate a unique value, e.g. an already registered token."""

    code = "RES_CONFLICT"
    default_message = "Resource conflict"


class ValidationError(ApplicationError):
    """Input passed request parsing but breaks a business rule."""

    code = "VAL_VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidMenuError(ValidationError):
    """
    A menu tree submitted by the editor cannot be saved.

    `problems` lists every defect found, each prefixed with the address
    of the offending item.
    """

    code = "VAL_MENU_INVALID"

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid menu structure", details={"menu_errors": problems})


class DatabaseError(ApplicationError):
    """The database failed or refused an operation."""

    code = "SYS_DATABASE_ERROR"
    default_message = "Database error"
