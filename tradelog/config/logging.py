"""
Tradelog Logging Configuration

Structured logging with JSON format support, request correlation,
performance tracking, and configurable log levels.
"""

import asyncio
import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

# Context variables for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Aggregation steps, prompt sizes, skipped records
# INFO    - Analysis complete, advice source chosen, component initialization
# WARNING - Fallback to rule-based advice, malformed trade records, slow calls
# ERROR   - Unexpected failures inside a request
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter for production log aggregation."""

    def __init__(self, service_name: str = "tradelog-api", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = os.uname().nodename

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
            "user_id": user_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Context fields prefixed with ctx_ are included
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_data[key[4:]] = value

        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        request_id = request_id_var.get()
        req_str = f"[{request_id[:8]}]" if request_id else ""

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET} "
            f"{req_str} {record.name} - {record.getMessage()}"
        )

        extras = [
            f"{key[4:]}={value}"
            for key, value in record.__dict__.items()
            if key.startswith("ctx_")
        ]
        if extras:
            formatted += f" | {', '.join(extras)}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    service_name: str = "tradelog-api",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the Tradelog application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (for production)
        service_name: Service name for structured logs
        environment: Environment name (development, staging, production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = StructuredFormatter(service_name, environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


# =============================================================================
# Context Management
# =============================================================================


def set_request_context(request_id: Optional[str] = None, user_id: Optional[str] = None) -> str:
    """
    Set request context for correlation.

    Returns:
        The request ID being used
    """
    req_id = request_id or str(uuid.uuid4())
    request_id_var.set(req_id)
    if user_id:
        user_id_var.set(user_id)
    return req_id


def clear_request_context() -> None:
    """Clear request context after request completion."""
    request_id_var.set(None)
    user_id_var.set(None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(threshold_ms: float = 1000.0) -> Callable:
    """
    Decorator to log function duration, warning above a threshold.

    Example:
        @log_performance(threshold_ms=500)
        async def analyze(trades):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        def _report(start_time: float, status: str) -> None:
            duration_ms = (time.perf_counter() - start_time) * 1000
            extra: Dict[str, Any] = {
                "ctx_function": func.__name__,
                "ctx_duration_ms": round(duration_ms, 2),
                "ctx_status": status,
            }
            if status == "error":
                logger.error(f"Operation failed: {func.__name__}", extra=extra)
            elif duration_ms > threshold_ms:
                logger.warning(
                    f"Slow operation: {func.__name__} took {duration_ms:.2f}ms",
                    extra=extra,
                )
            else:
                logger.debug(
                    f"Operation completed: {func.__name__} in {duration_ms:.2f}ms",
                    extra=extra,
                )

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                _report(start_time, "error")
                raise
            _report(start_time, "success")
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _report(start_time, "error")
                raise
            _report(start_time, "success")
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


# =============================================================================
# Business Event Logging
# =============================================================================


class BusinessLogger:
    """Logger for business-level events with structured context."""

    def __init__(self, logger_name: str = "tradelog.business"):
        self.logger = logging.getLogger(logger_name)

    def log_api_request(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        """Log API request completion."""
        extra = {
            "ctx_event": "api_request",
            "ctx_endpoint": endpoint,
            "ctx_method": method,
            "ctx_status_code": status_code,
            "ctx_duration_ms": round(duration_ms, 2),
        }
        level = logging.INFO if status_code < 400 else logging.ERROR
        self.logger.log(
            level,
            f"{method} {endpoint} -> {status_code} ({duration_ms:.2f}ms)",
            extra=extra,
        )

    def log_analysis_complete(
        self,
        analysis_type: str,
        trade_count: int,
        duration_ms: float,
        result_count: Optional[int] = None,
    ) -> None:
        """Log analysis operation completion."""
        extra = {
            "ctx_event": "analysis_complete",
            "ctx_analysis_type": analysis_type,
            "ctx_trade_count": trade_count,
            "ctx_duration_ms": round(duration_ms, 2),
        }
        if result_count is not None:
            extra["ctx_result_count"] = result_count

        self.logger.info(
            f"Analysis complete: {analysis_type} over {trade_count} trades",
            extra=extra,
        )

    def log_external_api_call(
        self,
        service: str,
        endpoint: str,
        duration_ms: float,
        error: Optional[str] = None,
    ) -> None:
        """Log external API call."""
        extra = {
            "ctx_event": "external_api_call",
            "ctx_service": service,
            "ctx_endpoint": endpoint,
            "ctx_duration_ms": round(duration_ms, 2),
        }
        if error:
            extra["ctx_error"] = error

        level = logging.INFO if error is None else logging.WARNING
        outcome = "ok" if error is None else "failed"
        self.logger.log(
            level,
            f"External API: {service} {endpoint} -> {outcome}",
            extra=extra,
        )


business_logger = BusinessLogger()
