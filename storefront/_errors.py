"""
Error taxonomy shared by every storefront component.

Errors are values: operations return ``Result[T, StorefrontError]`` and
callers branch with ``match``.

    match await session.login(credentials):
        case Ok(outcome):
            navigate(outcome.redirect)
        case Error(err) if err.kind is ErrorKind.INVALID_CREDENTIALS:
            show("Wrong email or password")
        case Error(err):
            show(err.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# Error Kind
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    """Kinds of storefront errors."""

    INVALID_CREDENTIALS = auto()  # 401 on login
    VALIDATION = auto()  # 400 / 422
    CONFLICT = auto()  # 409, duplicate identity on register
    UNAUTHENTICATED = auto()  # No valid session for an operation that needs one
    SESSION_EXPIRED = auto()  # 401 on an authorized call
    INCOMPLETE_SELECTION = auto()  # No active checkout selection
    EMPTY_CART = auto()
    SUBMISSION_IN_PROGRESS = auto()  # Concurrent finalize
    REMOTE_UNAVAILABLE = auto()  # Network failure or 5xx
    REJECTED = auto()  # Any other non-2xx answer


@dataclass(frozen=True, slots=True)
class StorefrontError:
    """
    A typed failure.

    message is surfaced verbatim to the user, status is the HTTP status
    when the error came from the backend.
    """

    kind: ErrorKind
    message: str
    status: int | None = None
    cause: Exception | None = None

    @property
    def is_auth_failure(self) -> bool:
        return self.kind in (
            ErrorKind.SESSION_EXPIRED,
            ErrorKind.UNAUTHENTICATED,
            ErrorKind.INVALID_CREDENTIALS,
        )

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"


# ═══════════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════════


class Errors:
    """Factory for common errors."""

    @staticmethod
    def invalid_credentials(message: str = "Invalid credentials") -> StorefrontError:
        return StorefrontError(ErrorKind.INVALID_CREDENTIALS, message, 401)

    @staticmethod
    def validation(message: str, status: int | None = None) -> StorefrontError:
        return StorefrontError(ErrorKind.VALIDATION, message, status)

    @staticmethod
    def conflict(message: str) -> StorefrontError:
        return StorefrontError(ErrorKind.CONFLICT, message, 409)

    @staticmethod
    def unauthenticated(message: str = "Sign in to continue") -> StorefrontError:
        return StorefrontError(ErrorKind.UNAUTHENTICATED, message)

    @staticmethod
    def session_expired(message: str = "Session expired") -> StorefrontError:
        return StorefrontError(ErrorKind.SESSION_EXPIRED, message, 401)

    @staticmethod
    def incomplete_selection(message: str = "No active checkout") -> StorefrontError:
        return StorefrontError(ErrorKind.INCOMPLETE_SELECTION, message)

    @staticmethod
    def empty_cart() -> StorefrontError:
        return StorefrontError(ErrorKind.EMPTY_CART, "Cart is empty")

    @staticmethod
    def submission_in_progress(checkout_id: str) -> StorefrontError:
        return StorefrontError(
            ErrorKind.SUBMISSION_IN_PROGRESS,
            f"Order submission already in progress: {checkout_id}",
        )

    @staticmethod
    def unreachable(exc: Exception) -> StorefrontError:
        return StorefrontError(
            ErrorKind.REMOTE_UNAVAILABLE,
            f"Remote unavailable: {exc}",
            cause=exc,
        )

    @staticmethod
    def server(status: int, message: str) -> StorefrontError:
        return StorefrontError(ErrorKind.REMOTE_UNAVAILABLE, message, status)

    @staticmethod
    def rejected(status: int, message: str) -> StorefrontError:
        return StorefrontError(ErrorKind.REJECTED, message, status)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ErrorKind",
    "StorefrontError",
    "Errors",
)
