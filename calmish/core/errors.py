"""Error Hierarchy - typed, categorized exceptions for Calmish failure modes.

Invariants:
    - Every error class fixes its code, category, severity and HTTP status
    - Validation errors are raised to the caller before any mutation
    - Persistence, handler and restore failures are logged by their owners,
      never raised past the state store
    - to_response() shows user_message when set, never debug_info

Design Decisions:
    - Classification lives on the class, instance data in ErrorContext
      (ADR: one envelope shape for the API handlers and the app shell)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    PERSISTENCE = "persistence"
    EXTERNAL_API = "external_api"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where a failure happened and what the user may be told about it."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    domain: str | None = None
    operation: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class CalmishError(Exception):
    """Base for every error the app raises on purpose."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        ctx = self.context
        return {
            "error": {
                "code": self.code,
                "message": ctx.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": ctx.timestamp.isoformat(),
                "context": {
                    "domain": ctx.domain,
                    "operation": ctx.operation,
                    "retry_after_ms": ctx.retry_after_ms,
                },
            }
        }


# --- Caller errors ------------------------------------------------------------

class StateValidationError(CalmishError):
    """Out-of-domain value for a store operation. Nothing was mutated."""
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.WARNING
    http_status = 400

    def __init__(
        self, message: str, field: str, value: Any = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message, context)
        self.field = field
        self.value = value


class LifecycleError(CalmishError):
    """init/flush called from the wrong lifecycle state."""
    code = "LIFECYCLE_ERROR"
    category = ErrorCategory.BUSINESS_RULE
    http_status = 409


class RateLimitExceededError(CalmishError):
    code = "RATE_LIMITED"
    category = ErrorCategory.RATE_LIMIT
    severity = ErrorSeverity.WARNING
    http_status = 429

    def __init__(self, retry_after_ms: int, context: ErrorContext | None = None):
        context = context or ErrorContext()
        context.retry_after_ms = retry_after_ms
        if context.user_message is None:
            context.user_message = (
                "Too many requests from this IP, please try again later."
            )
        super().__init__("Chat rate limit exceeded", context)


# --- Dependency errors --------------------------------------------------------

class PersistenceError(CalmishError):
    """Storage backend failed (unavailable, quota, driver error)."""
    code = "PERSISTENCE_ERROR"
    category = ErrorCategory.PERSISTENCE
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        context = context or ErrorContext()
        context.operation = operation
        super().__init__(f"Storage {operation} failed: {message}", context)
        self.operation = operation


class AnthropicAPIError(CalmishError):
    """Model call failed after the client's retries."""
    code = "ANTHROPIC_API_ERROR"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        context = context or ErrorContext()
        context.retry_after_ms = retry_after_ms
        super().__init__(f"Anthropic API error ({api_error_type}): {message}", context)
        self.api_error_type = api_error_type


class ChatServiceError(CalmishError):
    """Companion chat failed. user_message is safe to show verbatim."""
    code = "CHAT_SERVICE_ERROR"
    category = ErrorCategory.EXTERNAL_API
    http_status = 503

    def __init__(
        self, message: str, user_message: str, context: ErrorContext | None = None,
    ):
        context = context or ErrorContext()
        context.user_message = user_message
        super().__init__(message, context)

    @property
    def user_message(self) -> str:
        return self.context.user_message or self.message
