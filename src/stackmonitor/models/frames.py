"""
Stack sample data models.

These are the shapes the introspection service hands to the profiler: one
ThreadSnapshot per live thread, each carrying its frames innermost-first
(the currently executing frame at index 0, the thread's entry point last).
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


def format_signature(class_name: str, method_name: str) -> str:
    """Method signature used to key nodes, e.g. "com.foo.Bar.run()"."""
    return f"{class_name}.{method_name}()"


@dataclass(frozen=True)
class StackFrame:
    """
    A single frame of a sampled stack.

    Attributes:
        class_name: Fully qualified class (or module) name, e.g. "com.foo.Bar"
        method_name: Method (or function) name, e.g. "run"
        file_name: Source file, informational only
        line_number: Source line, informational only
    """

    class_name: str
    method_name: str
    file_name: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def signature(self) -> str:
        """Method signature used as the node key, e.g. "com.foo.Bar.run()"."""
        return format_signature(self.class_name, self.method_name)


@dataclass
class ThreadSnapshot:
    """
    One thread as captured by a single call to the introspection service.

    Attributes:
        thread_name: Thread name; the key for every per-thread model
        thread_id: Identifier used for CPU time lookups
        frames: Frames innermost-first
        state: Thread state as reported by the monitored process
        cpu_time_ns: Accumulated CPU time in nanoseconds, if known
    """

    thread_name: str
    thread_id: int
    frames: Tuple[StackFrame, ...] = field(default_factory=tuple)
    state: str = "RUNNABLE"
    cpu_time_ns: Optional[int] = None

    def __post_init__(self):
        # Accept any sequence but keep an immutable copy.
        self.frames = tuple(self.frames)
