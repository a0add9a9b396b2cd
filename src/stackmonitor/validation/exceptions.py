"""
Exception types and error handling helpers.

This module provides the error taxonomy shared by the profiler, the thread
monitor and the configuration layer, together with a small helper that logs
an error at a given severity and optionally re-raises it.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used by the configuration validators.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class StackMonitorError(Exception):
    """Base class for errors raised while talking to a monitored process."""


class ProcessUnreachableError(StackMonitorError):
    """
    The introspection service cannot reach the monitored process.

    Raised from a sampling tick or a thread refresh; the periodic task that
    ran it suspends itself and waits for an explicit resume.
    """


class MalformedSampleError(StackMonitorError):
    """A stack frame or resource entry failed a structural expectation."""


def handle_error(
    error: BaseException,
    context: str,
    severity: Union[ErrorSeverity, str, None] = None,
    reraise: bool = True,
    include_traceback: bool = False,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log an error in a uniform format and optionally re-raise it.

    Args:
        error: The exception that occurred
        context: What was being done, e.g. "sampling tick"
        severity: Log level; defaults to the error's own severity for a
            ValidationError and to ERROR otherwise
        reraise: Whether to re-raise the exception after logging
        include_traceback: Attach the traceback; always attached at DEBUG
            and CRITICAL
        logger: Logger instance to use (defaults to this module's logger)
    """
    if severity is None:
        severity = getattr(error, "severity", ErrorSeverity.ERROR)
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())

    effective_logger = logger or globals()["logger"]
    message = f"Error in {context}: {error}"
    field_name = getattr(error, "field_name", None)
    if field_name:
        message += f" (field: {field_name})"

    exc_info = include_traceback or severity in (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL)
    # Severity values are logger method names.
    getattr(effective_logger, severity.value)(message, exc_info=exc_info)

    if reraise:
        raise error


def handle_config_error(error: BaseException, context: str, **kwargs) -> None:
    """Log a configuration error; re-raises unless ``reraise=False``."""
    handle_error(error, f"config {context}", **kwargs)


def handle_task_error(error: BaseException, task_name: str, **kwargs) -> None:
    """Log the failure that stopped a periodic task. Never re-raises."""
    kwargs.setdefault("include_traceback", not isinstance(error, ProcessUnreachableError))
    handle_error(error, f"{task_name} task", reraise=False, **kwargs)


def handle_cli_error(error: BaseException, context: str, **kwargs) -> None:
    """Log an error at the command line and exit with ``exit_code`` (default 1)."""
    exit_code = kwargs.pop("exit_code", 1)
    handle_error(error, f"CLI {context}", reraise=False, **kwargs)
    sys.exit(exit_code)
