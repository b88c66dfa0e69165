"""Exception types raised by the warehouse session and data operations.

- ConfigError: missing or invalid local configuration.
- AuthError: the identity provider rejected the service-account assertion.
- RemoteError: BigQuery returned a failure for an operation.
- PartialFailureError: a streaming insert succeeded but rows were rejected.
- EmptyResultError: a query completed with zero rows.
- NotInitializedError: the client has no session (never opened or closed).

None of these are retried by ``bq_store``.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthError",
    "ConfigError",
    "EmptyResultError",
    "NotInitializedError",
    "PartialFailureError",
    "RemoteError",
    "WarehouseError",
]


class WarehouseError(Exception):
    """Base class for all ``bq_store`` errors."""


class ConfigError(WarehouseError, ValueError):
    """Local configuration is missing, invalid, or unreadable."""


class AuthError(WarehouseError):
    """Credentials were rejected or the service handle could not be built."""


class RemoteError(WarehouseError):
    """BigQuery reported a failure for *operation*.

    Args:
        operation: Name of the attempted operation (e.g. ``create_table``).
        message: Message reported by the service.
        code: HTTP status code, when the service reported one.
    """

    def __init__(self, operation: str, message: str, code: int | None = None) -> None:
        self.operation = operation
        self.message = message
        self.code = code
        prefix = f"{operation} failed"
        if code is not None:
            prefix += f" ({code})"
        super().__init__(f"{prefix}: {message}")

    @classmethod
    def from_api_error(cls, operation: str, exc: Exception) -> RemoteError:
        """Wrap a ``google.api_core`` exception raised during *operation*."""
        code = getattr(exc, "code", None)
        message = getattr(exc, "message", None) or str(exc)
        return cls(operation, message, int(code) if isinstance(code, int) else None)


class PartialFailureError(WarehouseError):
    """The insert request succeeded but the service rejected rows."""

    def __init__(self, operation: str, errors: list[dict[str, Any]]) -> None:
        self.operation = operation
        self.errors = errors
        super().__init__(f"{operation} failed for {len(errors)} row(s): {errors}")


class EmptyResultError(WarehouseError):
    """A query completed without returning any rows."""


class NotInitializedError(WarehouseError, RuntimeError):
    """An operation was attempted without an open session."""
