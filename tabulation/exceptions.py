"""
tabulation/exceptions.py
Domain exceptions raised by the scoring, ranking and advancement engine.

Provides typed exceptions for:
- Validation failures (bad scores, weight sums, duplicate tuples)
- Unknown entities
- Illegal lifecycle transitions
- Policy misconfiguration
- Consistency hazards that need a human decision
- Partial failure of the segment lock sequence
"""
from typing import Any, Dict, List, Optional


class TabulationException(Exception):
    """Base exception for the tabulation engine"""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    error: str = "Internal Error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(TabulationException):
    """
    Raised when input is rejected.

    Examples:
    - Score outside the allowed range for the scoring mode
    - Category locked or not part of the segment
    - Duplicate (participant, category, judge, segment) score
    """
    status_code = 400
    code = "VALIDATION_ERROR"
    error = "Bad Request"


class WeightValidationError(ValidationError):
    """
    Raised when an event fails its activation checks.

    ``message`` is the first violation; every violation is kept in
    ``violations`` and in ``details``.
    """
    code = "WEIGHT_VALIDATION_FAILED"

    def __init__(self, violations: List[Any]):
        self.violations = list(violations)
        message = self.violations[0].message if self.violations else "Event validation failed"
        super().__init__(
            message,
            details={"violations": [v.to_dict() for v in self.violations]},
        )


class NotFoundError(TabulationException):
    """
    Raised when requested resource doesn't exist.
    """
    status_code = 404
    code = "NOT_FOUND"
    error = "Not Found"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found."
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found."
        self.resource = resource
        self.identifier = identifier
        super().__init__(message)


class InvalidStateError(TabulationException):
    """Raised when a lifecycle transition is not allowed from the current status."""
    status_code = 400
    code = "STATE_TRANSITION_INVALID"
    error = "Invalid State"


class ConfigurationError(TabulationException):
    """
    Raised when a segment's policy cannot be applied as configured.

    Examples:
    - Unknown advancement_type
    - Missing advancement_value for top_n or threshold
    """
    status_code = 500
    code = "CONFIGURATION_ERROR"
    error = "Configuration Error"


class ConsistencyHazard(TabulationException):
    """Base for results that must be confirmed by an administrator."""
    status_code = 409
    code = "CONFIRMATION_REQUIRED"
    error = "Confirmation Required"


class TieConfirmationRequired(ConsistencyHazard):
    """Raised when a top_n cutoff tie pushes the advance set above N."""
    code = "TIE_CONFIRMATION_REQUIRED"

    def __init__(self, message: str, resolution: Any = None, details: Optional[Dict[str, Any]] = None):
        self.resolution = resolution
        super().__init__(message, details)


class ManualInterventionRequired(ConsistencyHazard):
    """Raised when a threshold would eliminate every participant of a group."""
    code = "MANUAL_INTERVENTION_REQUIRED"


class ConcurrentModificationError(TabulationException):
    """Raised when a guarded status change finds the row already changed."""
    status_code = 409
    code = "CONCURRENT_MODIFICATION"
    error = "Conflict"


class PartialLockError(TabulationException):
    """
    Raised when the segment lock sequence fails after it started writing.

    The lock is not atomic. Nothing is retried or rolled back: participants
    listed in ``applied`` may already be eliminated while the segment is
    still active. The caller must inspect and repair the segment.
    """
    status_code = 500
    code = "PARTIAL_LOCK_FAILURE"
    error = "Internal Error"

    def __init__(self, message: str, applied: List[Any], pending: List[Any]):
        self.applied = list(applied)
        self.pending = list(pending)
        super().__init__(
            message,
            details={
                "applied": [intent.to_dict() for intent in self.applied],
                "pending": [intent.to_dict() for intent in self.pending],
            },
        )
