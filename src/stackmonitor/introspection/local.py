"""
In-process introspection of the running Python interpreter.

Stacks come from ``sys._current_frames()``, thread names from
``threading.enumerate()`` and per-thread CPU times from psutil, matched on
the native thread id. Python exposes no lock-wait telemetry, so
``get_lock_wait_graph`` keeps the base class default (None).

Frames are mapped onto class/method names by treating the module as the
class: a method ``Worker.run`` or a function ``run_worker`` defined in
``myapp.workers`` becomes class ``myapp.workers`` with method ``Worker.run``
or ``run_worker``, in package ``myapp``. For nested functions only the part
after the last ``<locals>`` is kept. Code run as a script lives in the
``__main__`` module, which has no package: it is profiled with the
``<default>`` spec.
"""

import logging
import sys
import threading
import traceback
from collections import Counter
from types import FrameType
from typing import Dict, List, Optional, Tuple

import psutil

from ..models.frames import StackFrame, ThreadSnapshot
from ..validation import ProcessUnreachableError
from .base import AbstractIntrospectionService

logger = logging.getLogger(__name__)

_LOCALS_MARKER = "<locals>."


def describe_code_location(frame: FrameType) -> Tuple[str, str]:
    """Class name and method name for a Python frame."""
    code = frame.f_code
    module = frame.f_globals.get("__name__") or "<unknown>"
    qualname = getattr(code, "co_qualname", code.co_name)

    if _LOCALS_MARKER in qualname:
        qualname = qualname.rsplit(_LOCALS_MARKER, 1)[1]
    return module, qualname


class LocalIntrospectionService(AbstractIntrospectionService):
    """
    Introspection service for the current interpreter.

    The thread calling ``dump_threads`` is left out by default: it is the
    sampler itself.
    """

    def __init__(self, include_calling_thread: bool = False, max_depth: Optional[int] = None):
        """
        Args:
            include_calling_thread: Also report the thread doing the dump
            max_depth: Keep at most this many innermost frames per thread
        """
        self.include_calling_thread = include_calling_thread
        self.max_depth = max_depth
        self._process = psutil.Process()
        logger.debug(
            f"LocalIntrospectionService for PID {self._process.pid} "
            f"(max_depth={max_depth})"
        )

    def dump_threads(self) -> List[ThreadSnapshot]:
        try:
            current_frames = sys._current_frames()
        except Exception as e:
            raise ProcessUnreachableError(f"Cannot capture interpreter frames: {e}") from e

        threads_by_ident = {t.ident: t for t in threading.enumerate()}
        cpu_times = self._native_thread_cpu_times()
        calling_ident = threading.get_ident()

        names = {}
        for ident in current_frames:
            thread = threads_by_ident.get(ident)
            names[ident] = thread.name if thread is not None else f"Thread-{ident}"
        name_counts = Counter(names.values())

        snapshots = []
        for ident, frame in current_frames.items():
            if ident == calling_ident and not self.include_calling_thread:
                continue
            thread = threads_by_ident.get(ident)
            thread_name = names[ident]
            if name_counts[thread_name] > 1:
                # Models are keyed by thread name.
                thread_name = f"{thread_name} ({ident})"
            native_id = getattr(thread, "native_id", None)
            snapshots.append(
                ThreadSnapshot(
                    thread_name=thread_name,
                    thread_id=ident,
                    frames=self._extract_frames(frame),
                    state="RUNNABLE",
                    cpu_time_ns=cpu_times.get(native_id) if native_id is not None else None,
                )
            )
        return snapshots

    def get_thread_cpu_time(self, thread_id: int) -> Optional[int]:
        for thread in threading.enumerate():
            if thread.ident == thread_id:
                native_id = getattr(thread, "native_id", None)
                if native_id is None:
                    return None
                return self._native_thread_cpu_times().get(native_id)
        return None

    def is_reachable(self) -> bool:
        return self._process.is_running()

    def _extract_frames(self, frame: FrameType) -> Tuple[StackFrame, ...]:
        frames = []
        for f, lineno in traceback.walk_stack(frame):
            class_name, method_name = describe_code_location(f)
            frames.append(
                StackFrame(
                    class_name=class_name,
                    method_name=method_name,
                    file_name=f.f_code.co_filename,
                    line_number=lineno,
                )
            )
            if self.max_depth is not None and len(frames) >= self.max_depth:
                break
        return tuple(frames)

    def _native_thread_cpu_times(self) -> Dict[int, int]:
        """Native thread id -> user + system CPU time in nanoseconds."""
        try:
            return {
                t.id: int((t.user_time + t.system_time) * 1_000_000_000)
                for t in self._process.threads()
            }
        except psutil.NoSuchProcess as e:
            raise ProcessUnreachableError(f"Process {self._process.pid} is gone") from e
        except psutil.AccessDenied:
            logger.debug(f"Access denied reading thread CPU times of PID {self._process.pid}")
            return {}
