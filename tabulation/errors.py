"""
tabulation/errors.py
Centralized API error handling

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "ErrorType",
    "message": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 200: Successful, valid request
- 400: Invalid input, rejected score, illegal transition
- 404: Resource does not exist
- 409: Needs administrator confirmation, or concurrent change
- 422: Validation error (Pydantic)
- 500: Misconfiguration or partial failure, never caused by user input
"""

import logging
import uuid
from typing import Optional, Dict, Any
from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tabulation.exceptions import TabulationException

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    error: str
    message: str
    code: str
    details: Optional[Dict[str, Any]] = None


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        response = ErrorResponse(
            error=self.error,
            message=self.message,
            code=self.code,
            details=self.details or None
        )
        result = response.model_dump()
        if result["details"] is None:
            result.pop("details")
        return result

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())

    @classmethod
    def from_domain(cls, exc: TabulationException) -> "APIError":
        """Wrap an engine exception so it renders like every other API error."""
        return cls(
            status_code=exc.status_code,
            error=exc.error,
            message=exc.message,
            code=exc.code,
            details=exc.details
        )


class InternalError(APIError):
    """500 Internal Server Error - Use sparingly, only for true internal failures"""
    def __init__(self, message: str = "An internal error occurred", log_id: Optional[str] = None):
        details = {"log_id": log_id} if log_id else None
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="Internal Error",
            message=message,
            code=ErrorCode.INTERNAL_ERROR,
            details=details
        )


def new_log_id() -> str:
    return str(uuid.uuid4())[:8]


def http_error_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    if status_code >= 500:
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.INVALID_INPUT


def domain_error_response(exc: TabulationException, path: str = "") -> JSONResponse:
    """Render an engine exception, logging server-side failures with a log id."""
    error = APIError.from_domain(exc)
    if error.status_code >= 500:
        log_id = new_log_id()
        logger.error(f"[{log_id}] {type(exc).__name__} on {path}: {exc.message}")
        error.details = {**(error.details or {}), "log_id": log_id}
    else:
        logger.warning(f"{type(exc).__name__} on {path}: {error.code} - {error.message}")
    return error.to_response()
