# app/core/exceptions.py
"""
Application error taxonomy.

Every error the service raises on purpose is an AppError subclass carrying
its category and HTTP status. The handlers in app.middleware.error_handler
turn them into structured JSON responses.
"""

from typing import Optional


class ErrorCategory:
    """Error categories for structured error handling"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL = "internal"


class AppError(Exception):
    """Base application error with structured information"""

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[dict] = None,
        retry_after: Optional[int] = None,
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.retry_after = retry_after
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input or a request the domain rules reject"""
    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details=details,
        )


class NotFoundError(AppError):
    def __init__(self, message: str, resource: Optional[str] = None):
        details = {"resource": resource} if resource else {}
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details=details,
        )


class ContentNotFoundError(NotFoundError):
    """An entity has no translation in any language."""
    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(message="Content not found", resource="content")


class ConflictError(AppError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFLICT,
            status_code=409,
            details=details,
        )


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            category=ErrorCategory.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(AppError):
    def __init__(self, message: str = "Not enough permissions"):
        super().__init__(
            message=message,
            category=ErrorCategory.FORBIDDEN,
            status_code=403,
        )


class ServiceUnavailableError(AppError):
    """A collaborator (payment provider, storage, identity) is unreachable"""
    def __init__(self, message: str, service: Optional[str] = None, retry_after: int = 30):
        details = {"service": service} if service else {}
        super().__init__(
            message=message,
            category=ErrorCategory.SERVICE_UNAVAILABLE,
            status_code=503,
            details=details,
            retry_after=retry_after,
        )


class InternalError(AppError):
    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(
            message=message,
            category=ErrorCategory.INTERNAL,
            status_code=500,
        )


class WebhookSignatureError(AppError):
    """Inbound webhook failed authentication. Never retried by the provider."""
    def __init__(self, message: str = "Invalid signature"):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=400,
        )
