"""
Shared error handling for the Cryptofolio market data gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class PortfolioError(Exception):
    """Base exception for gateway and portfolio operations."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidArgumentError(PortfolioError):
    """Malformed caller input."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ARGUMENT", message, details)


class FetchFailedError(PortfolioError):
    """Transport failure or non-success response from the market data provider."""

    def __init__(
        self,
        operation: str,
        message: str = "Fetch failed",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.status_code = status_code
        payload = {"operation": operation, "status_code": status_code}
        payload.update(details or {})
        super().__init__("FETCH_FAILED", f"{operation}: {message}", payload)


class NotFoundError(PortfolioError):
    """The provider reports that the requested entity does not exist."""

    def __init__(self, operation: str, resource: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.resource = resource
        payload = {"operation": operation, "resource": resource}
        payload.update(details or {})
        super().__init__("NOT_FOUND", f"{operation}: {resource} not found", payload)
