"""
Custom exceptions for FloodGuard.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class AppException(Exception):
    """Base exception for FloodGuard."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SourceUnavailableException(AppException):
    """External data provider could not deliver a usable reading."""

    pass


class ModelLoadException(AppException):
    """Predictive model artifact is missing or malformed."""

    pass


class InferenceException(AppException):
    """Predictive model failed while scoring a single input."""

    pass


class PersistenceException(AppException):
    """Risk record store operation exception."""

    pass


class BroadcastException(AppException):
    """Broadcast channel operation exception."""

    pass


class DeliveryException(AppException):
    """Push notification delivery exception."""

    pass


class ConfigurationException(AppException):
    """Configuration exception."""

    pass


class ResourceNotFoundException(AppException):
    """Resource not found exception."""

    pass


# HTTP Exception mappings
def create_http_exception(exc: AppException) -> HTTPException:
    """Convert custom exceptions to HTTP exceptions."""

    if isinstance(exc, ResourceNotFoundException):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
            headers={"X-Error-Details": str(exc.details)},
        )

    elif isinstance(exc, PersistenceException):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.message or "Database operation failed",
            headers={"X-Error-Details": str(exc.details)},
        )

    elif isinstance(exc, (BroadcastException, DeliveryException)):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.message or "Downstream service unavailable",
            headers={"X-Error-Details": str(exc.details)},
        )

    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.message,
            headers={"X-Error-Details": str(exc.details)},
        )
