"""
Shared error handling for the Lead Scoring engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from .logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class LeadScoringException(Exception):
    """Base exception for Lead Scoring components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        self.request_id = get_request_id()
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=self.request_id or get_request_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(LeadScoringException):
    """A rule or record does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class FetchFailedError(LeadScoringException):
    """Reading from a store failed."""

    def __init__(self, message: str = "Fetch failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("FETCH_FAILED", message, details)


class PersistenceError(LeadScoringException):
    """Writing to a store failed."""

    def __init__(self, message: str = "Persistence failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_FAILED", message, details)


class ValidationError(LeadScoringException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class EvaluationError(LeadScoringException):
    """Scoring a record failed unexpectedly."""

    def __init__(self, message: str = "Evaluation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("EVALUATION_FAILED", message, details)
