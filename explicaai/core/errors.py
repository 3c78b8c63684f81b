"""Error Hierarchy — typed, categorized exceptions for all ExplicaAI failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Pure components (classifier, prompt builder, validator) never raise these
    - Only the services (orchestrator, collection lifecycle, problem library,
      study stats) raise these to callers
    - to_response() produces the REST envelope; no internal details in messages

Design Decisions:
    - Single hierarchy with ExplicaError base: FastAPI global handler catches all
    - Cancellation is an ExplicaError with INFO severity so callers can tell
      "gave up" from "failed" by category, not by message
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    CANCELLED = "cancelled"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    problem_id: str | None = None
    collection_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ExplicaError(Exception):
    """Base exception for all ExplicaAI errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "request_id": self.context.request_id,
                    "problem_id": self.context.problem_id,
                    "collection_id": self.context.collection_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class CollectionValidationError(ExplicaError):
    """Collection input failed a field rule (name, description, update set)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ProblemValidationError(ExplicaError):
    """Problem update failed a field rule (status, difficulty, tags)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class DuplicateCollectionError(ExplicaError):
    """Another collection already uses this name (case-insensitive)."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Já existe uma coleção com o nome '{name}'",
            "COLLECTION_NAME_TAKEN", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.name = name


class ProtectedCollectionError(ExplicaError):
    """Deletion of the default (Favoritos) collection was attempted."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"A coleção '{name}' é protegida e não pode ser excluída",
            "PROTECTED_COLLECTION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 403,
        )
        self.name = name


class ResourceNotFoundError(ExplicaError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class RequestInFlightError(ExplicaError):
    """Another explanation with the same request_id is still running."""
    def __init__(self, request_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.request_id = request_id
        super().__init__(
            f"Request '{request_id}' is already in flight",
            "REQUEST_IN_FLIGHT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )


class ExplanationCancelled(ExplicaError):
    """Caller withdrew the explanation request. Terminal, not a failure."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Explanation cancelled by the caller",
            "EXPLANATION_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.INFO, context, 499,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ExplicaError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class MigrationTransactionError(ExplicaError):
    """Delete-with-migration transaction failed and was rolled back."""
    def __init__(
        self, collection_id: str, original: Exception, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.collection_id = collection_id
        super().__init__(
            f"Collection deletion rolled back: {original}",
            "MIGRATION_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.original = original


class GenerationUnavailableError(ExplicaError):
    """Generative model transport failed (network, timeout, service down)."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Generation unavailable ({api_error_type}): {message}",
            "GENERATION_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type
