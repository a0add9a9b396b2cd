"""
Access to the monitored process: thread dumps, CPU times, deadlock and
lock-wait telemetry.
"""

from .base import AbstractIntrospectionService
from .local import LocalIntrospectionService, describe_code_location

__all__ = [
    "AbstractIntrospectionService",
    "LocalIntrospectionService",
    "describe_code_location",
]
