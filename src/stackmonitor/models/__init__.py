"""
Data models for the monitoring system.

Configuration Models:
- Profiler, thread monitor and storage settings

Sample Models:
- Stack frames and per-thread snapshots delivered by introspection

Aggregate Models:
- Hot-spot (flat) and call-tree (hierarchical) nodes and their thread roots
- Immutable profile snapshots published after each tick

Dependency Models:
- Thread records annotated with waited/held resources and owner resolution
"""

from .config import AppConfig, MonitorConfig, ProfilerConfig
from .frames import StackFrame, ThreadSnapshot
from .nodes import CallTreeNode, MethodNode, ThreadNode
from .snapshot import ProfileSnapshot
from .threads import OwnerResolution, OwnerStatus, ThreadElement

__all__ = [
    # Configuration
    "AppConfig",
    "MonitorConfig",
    "ProfilerConfig",
    # Samples
    "StackFrame",
    "ThreadSnapshot",
    # Aggregates
    "CallTreeNode",
    "MethodNode",
    "ThreadNode",
    "ProfileSnapshot",
    # Dependencies
    "OwnerResolution",
    "OwnerStatus",
    "ThreadElement",
]
