from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error rendered as ``{"error": {"code", "message", "details"}}``."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message safe to return to API callers."""
        return self.message


class ValidationFailed(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input data"


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Access to this resource is forbidden"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Request conflicts with the current state of the resource"


class RateLimitExceededError(AppError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, limit: int, retry_after: int):
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(
            message=f"Daily generation limit exceeded. You can generate {limit} times per day.",
            details={"limit": limit, "resetIn": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


class ServiceUnavailableError(AppError):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Service temporarily unavailable. Please try again later."


class PersistenceError(AppError):
    """Storage failure. The message shown to callers never includes storage details."""

    @property
    def public_message(self) -> str:
        return self.default_message


class GenerationError(AppError):
    """AI output could not be turned into a valid set of flashcards."""

    default_message = "An unexpected error occurred during generation"

    @property
    def public_message(self) -> str:
        return self.default_message


class LLMException(ServiceUnavailableError):
    default_message = "AI service temporarily unavailable. Please try again later."

    @property
    def public_message(self) -> str:
        return self.default_message


class LLMConnectionError(LLMException):
    pass


class LLMTimeoutError(LLMException):
    default_message = "AI service timeout. Please try again with shorter text."
