"""
Success/failure result values returned by service operations.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import LeadScoringException

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Outcome of an operation: either a value or a typed error."""
    value: Optional[T] = None
    error: Optional[LeadScoringException] = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LeadScoringException) -> "OperationResult[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value
