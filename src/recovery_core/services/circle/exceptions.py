"""Error taxonomy for circle roster operations."""

from __future__ import annotations

from recovery_core.services.milestones.calculator import InvalidInputError


class CircleError(RuntimeError):
    """Base exception for roster persistence failures."""


class ValidationError(InvalidInputError):
    """Raised before any write when a submitted member field is rejected."""


class ConcurrentModificationError(CircleError):
    """Raised when the roster document changed between read and write."""

    def __init__(
        self,
        key: str,
        *,
        expected_version: int | None,
        actual_version: int | None = None,
    ) -> None:
        message = f"Roster document {key} changed since version {expected_version}"
        if actual_version is not None:
            message = f"{message} (now at version {actual_version})"
        super().__init__(message)
        self.key = key
        self.expected_version = expected_version
        self.actual_version = actual_version


class StoreUnavailableError(CircleError):
    """Raised when the document store fails or cannot be reached."""


class StoreTimeoutError(StoreUnavailableError):
    """Raised when a document store call exceeds its timeout."""


__all__ = [
    "CircleError",
    "ConcurrentModificationError",
    "InvalidInputError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    "ValidationError",
]
