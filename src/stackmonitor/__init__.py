"""
stackmonitor: sampling CPU profiler and thread dependency monitor.

The package periodically samples the thread stacks of a running program and
builds, per thread, a call tree and a hot-spot table. A second periodic task
refreshes the thread records and infers which thread owns a resource another
thread is waiting on.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Samples, aggregate nodes, snapshots and thread records
- validation: Input validation and error handling
- introspection: Access to the monitored process
- profiler: Frame filtering, sampling engine and profiler controller
- dependency: Resource ownership inference
- monitoring: Periodic thread-state refresh
- storage: Tabular export of snapshots
- cli: Command-line interface

Usage:
    From command line:
        stackmonitor myscript.py -p "myapp.*"

    Programmatically:
        from stackmonitor import LocalIntrospectionService, SamplingProfiler
        profiler = SamplingProfiler(LocalIntrospectionService(), ["myapp.*"])
        profiler.resume_sampling()
        ...
        profiler.suspend_sampling()
        snapshot = profiler.model.snapshot()
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .dependency import resolve, search_owner
from .introspection import AbstractIntrospectionService, LocalIntrospectionService
from .monitoring import ThreadMonitor
from .profiler import ProfilerState, SamplingEngine, SamplingProfiler, is_profiled
from .publication import MonitorModel, PublicationSink

# Model classes for external use
from .models import (
    AppConfig,
    CallTreeNode,
    MethodNode,
    MonitorConfig,
    OwnerResolution,
    OwnerStatus,
    ProfilerConfig,
    ProfileSnapshot,
    StackFrame,
    ThreadElement,
    ThreadNode,
    ThreadSnapshot,
)

# Validation utilities
from .validation import (
    ProcessUnreachableError,
    StackMonitorError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "AbstractIntrospectionService",
    "LocalIntrospectionService",
    "MonitorModel",
    "ProfilerState",
    "PublicationSink",
    "SamplingEngine",
    "SamplingProfiler",
    "ThreadMonitor",
    "is_profiled",
    "resolve",
    "search_owner",
    # Models
    "AppConfig",
    "CallTreeNode",
    "MethodNode",
    "MonitorConfig",
    "OwnerResolution",
    "OwnerStatus",
    "ProfilerConfig",
    "ProfileSnapshot",
    "StackFrame",
    "ThreadElement",
    "ThreadNode",
    "ThreadSnapshot",
    # Errors
    "ProcessUnreachableError",
    "StackMonitorError",
    "ValidationError",
]
