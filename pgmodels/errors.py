"""
Exception types raised by pgmodels.

Every error carries ``thrown_at``, the name of the public method that raised it.
"""

from typing import Optional


class PgModelError(Exception):
    """Base class for all pgmodels errors."""

    def __init__(self, message: str, thrown_at: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.thrown_at = thrown_at


class ParameterTypeError(PgModelError, TypeError):
    """A public method received an argument of the wrong shape."""

    def __init__(self, method_name: str, param_name: str, expected: str):
        super().__init__(
            f"{param_name} must be of type {expected} in {method_name}",
            thrown_at=method_name,
        )
        self.method_name = method_name
        self.param_name = param_name
        self.expected = expected


class ValidationError(PgModelError):
    """Raised by column validators and hooks to reject input."""


class ConfigurationError(PgModelError):
    """The model is configured in a way that cannot serve the request."""


class SchemaOperationError(PgModelError):
    """Creating, introspecting or altering a table failed."""

    def __init__(self, message: str, table_name: str, operation: str):
        super().__init__(message, thrown_at=operation)
        self.table_name = table_name
        self.operation = operation


class ConstraintError(PgModelError):
    """A foreign key could not be added."""

    def __init__(self, message: str, constraint_name: str, thrown_at: str = "add_foreign_key"):
        super().__init__(message, thrown_at=thrown_at)
        self.constraint_name = constraint_name
