"""
Application errors. Each carries the HTTP status it maps to; main.py renders
them through core.response.error_body.
"""
from typing import Any, Dict, Optional
from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = dict(details or {})
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return type(self).__name__


class BusinessLogicError(AppError):
    """A request that is well formed but conflicts with stored data (duplicates, self-lockout)"""
    status_code = status.HTTP_400_BAD_REQUEST


class ResourceNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier: Any, details: Optional[Dict[str, Any]] = None):
        self.resource = resource
        super().__init__(f"{resource} with identifier '{identifier}' not found", details)


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class ValidationError(AppError):
    """Input rejected by a service; `field` names the offending input when known"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field
        if field:
            self.details["field"] = field


class InvalidCouponError(ValidationError):
    def __init__(self, message: str = "Invalid coupon code", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, field="coupon_code", details=details)


class PaymentNotConfiguredError(AppError):
    """The seller has not set a PayPal email, so a checkout cannot be paid"""
    status_code = status.HTTP_409_CONFLICT
    default_message = "PayPal is not configured for this seller"


class RemoteStoreError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__(f"Data store error while trying to {operation}", details)


class ExternalServiceError(AppError):
    """A call out to a third party (PayPal) failed; the caller may retry"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__(f"External service '{service}' error: {message}", details)
