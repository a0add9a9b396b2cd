"""
Sampling CPU profiler.

This package provides frame filtering by profiled package, the sampling
engine building the hot-spot and call-tree models, the periodic task driving
it and the profiler controller.
"""

from .cpu_profiler import ProfilerState, SamplingProfiler
from .engine import SamplingEngine
from .frame_filter import DEFAULT_PACKAGE, clear_filter_cache, get_package_name, is_profiled
from .periodic_task import THREAD_NAME_PREFIX, PeriodicTask
from .stack_utils import filter_profiled_frames, format_signature, invert_stack

__all__ = [
    "DEFAULT_PACKAGE",
    "PeriodicTask",
    "ProfilerState",
    "SamplingEngine",
    "SamplingProfiler",
    "THREAD_NAME_PREFIX",
    "clear_filter_cache",
    "filter_profiled_frames",
    "format_signature",
    "get_package_name",
    "invert_stack",
    "is_profiled",
]
