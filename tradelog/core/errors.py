"""
Tradelog Error Handling Module

Structured error codes with user-friendly messages and HTTP mappings.
Analysis code raises these at its internal seams and recovers from the
recoverable ones (external service failures) before results reach callers.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    VALIDATION = "VALIDATION"
    EXTERNAL = "EXTERNAL"
    SYSTEM = "SYSTEM"


class ErrorSeverity(Enum):
    """Error severity levels for monitoring and alerting."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    http_status: int
    retryable: bool = False
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of all Tradelog error codes."""

    # Data Errors (2xxx)
    DATA_INVALID_TRADE = ErrorCode(
        code="2001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Trade record could not be validated",
        user_message="One of your trades has an unexpected format.",
        http_status=422,
        recovery_hint="Check the symbol and timestamps of the imported trade.",
    )

    # Validation Errors (4xxx)
    VALIDATION_INVALID_VALUE = ErrorCode(
        code="4001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Invalid parameter value",
        user_message="One of the values provided is not valid.",
        http_status=422,
        recovery_hint="Check the allowed range for the parameter.",
    )

    VALIDATION_INVALID_TRANSITION = ErrorCode(
        code="4002",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Invalid status transition",
        user_message="This advice can no longer change status.",
        http_status=409,
        recovery_hint="Only active advice can be implemented or dismissed.",
    )

    # External Service Errors (6xxx)
    EXTERNAL_LLM_ERROR = ErrorCode(
        code="6001",
        category=ErrorCategory.EXTERNAL,
        severity=ErrorSeverity.WARNING,
        message="Text generation service returned an error",
        user_message="AI insights are temporarily unavailable.",
        http_status=502,
        retryable=True,
        recovery_hint="Rule-based advice is shown instead.",
    )

    EXTERNAL_LLM_TIMEOUT = ErrorCode(
        code="6002",
        category=ErrorCategory.EXTERNAL,
        severity=ErrorSeverity.WARNING,
        message="Text generation service timed out",
        user_message="AI insights took too long to generate.",
        http_status=504,
        retryable=True,
        recovery_hint="Rule-based advice is shown instead.",
    )

    EXTERNAL_LLM_PARSE_ERROR = ErrorCode(
        code="6003",
        category=ErrorCategory.EXTERNAL,
        severity=ErrorSeverity.WARNING,
        message="Text generation reply was not valid advice JSON",
        user_message="AI insights could not be read.",
        http_status=502,
        recovery_hint="Rule-based advice is shown instead.",
    )

    # System Errors (9xxx)
    SYSTEM_INTERNAL_ERROR = ErrorCode(
        code="9001",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.CRITICAL,
        message="Internal system error",
        user_message="An unexpected error occurred.",
        http_status=500,
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class TradelogError(Exception):
    """
    Base exception for all Tradelog errors.

    Provides structured error information including error codes,
    user-friendly messages, and recovery suggestions.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.debug_info: Dict[str, Any] = {}
        self.timestamp = datetime.now(timezone.utc)

        if original_error:
            self.debug_info["original_traceback"] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def http_status(self) -> int:
        return self.error_code.http_status

    @property
    def is_retryable(self) -> bool:
        return self.error_code.retryable

    @property
    def user_message(self) -> str:
        """User-friendly error message."""
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """
        Convert error to dictionary for API responses.

        Args:
            include_debug: Include debug information (for dev mode only)
        """
        result = {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recoveryHint": self.recovery_hint,
            "retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

        if include_debug:
            result["debug"] = {
                "technicalMessage": self.technical_message,
                "context": self.context,
                "debugInfo": self.debug_info,
            }

        return result

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            self.technical_message,
            extra={
                "ctx_error_code": self.code,
                "ctx_retryable": self.is_retryable,
            },
        )


class DataError(TradelogError):
    """Data-related errors."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_INVALID_TRADE,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ValidationError(TradelogError):
    """Validation-related errors."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.VALIDATION_INVALID_VALUE,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ExternalAPIError(TradelogError):
    """External API-related errors."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.EXTERNAL_LLM_ERROR,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)
