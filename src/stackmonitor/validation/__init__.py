"""
Validation and error handling for the stackmonitor package.

This module provides input validation for configuration values and the error
taxonomy used when talking to a monitored process.
"""

from .exceptions import (
    ErrorSeverity,
    MalformedSampleError,
    ProcessUnreachableError,
    StackMonitorError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_task_error,
)
from .validators import (
    parse_package_list,
    validate_enum_choice,
    validate_package_spec,
    validate_package_specs,
    validate_positive_integer,
    validate_thread_prefixes,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "MalformedSampleError",
    "ProcessUnreachableError",
    "StackMonitorError",
    "ValidationError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_task_error",
    # Validators
    "parse_package_list",
    "validate_enum_choice",
    "validate_package_spec",
    "validate_package_specs",
    "validate_positive_integer",
    "validate_thread_prefixes",
]
