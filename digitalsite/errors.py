"""Application exceptions, rendered to JSON by the handler in ``digitalsite.main``."""

from typing import Any


class AppError(Exception):
    """Base exception for all Digitalsite errors."""

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class ValidationError(AppError):
    """Raised when a webhook payload or request body is malformed."""

    def __init__(self, message: str, code: str = "validation_error", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=400, details=details)


class BusinessRuleViolation(AppError):
    """Raised when a well-formed request conflicts with existing state."""

    def __init__(self, message: str, code: str = "business_rule_violation", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=409, details=details)


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str, code: str = "not_found", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=404, details=details)


class ForbiddenError(AppError):
    """Raised when the caller does not own the resource."""

    def __init__(self, message: str, code: str = "forbidden", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=403, details=details)


class ExternalServiceError(AppError):
    """Raised when the payment gateway or the email provider fails."""

    def __init__(self, message: str, code: str = "external_service_error", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=502, details=details)
