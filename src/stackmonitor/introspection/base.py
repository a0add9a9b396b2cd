"""
Defines the interface of the process introspection service.

The profiler and the thread monitor never talk to the monitored process
directly; they go through an AbstractIntrospectionService, which supplies:

- the live threads with their stacks (innermost frame first),
- per-thread CPU time,
- the ids of deadlocked threads,
- an optional lock-wait-graph payload, when the monitored process exposes
  scheduling-rule telemetry.

Implementations raise ProcessUnreachableError when the monitored process can
no longer be reached.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

from ..models.frames import ThreadSnapshot

logger = logging.getLogger(__name__)


class AbstractIntrospectionService(ABC):
    """
    Abstract base class for introspection services.

    Subclasses implement the actual access to a monitored process (the
    current interpreter, a remote agent, a recorded trace, ...).
    """

    @abstractmethod
    def dump_threads(self) -> List[ThreadSnapshot]:
        """
        Capture every live thread at the current instant.

        Returns:
            One ThreadSnapshot per thread, frames innermost-first

        Raises:
            ProcessUnreachableError: If the monitored process is gone
        """
        pass

    @abstractmethod
    def get_thread_cpu_time(self, thread_id: int) -> Optional[int]:
        """
        CPU time consumed by a thread, in nanoseconds.

        Returns:
            The CPU time, or None if the thread is unknown or the
            information is not available
        """
        pass

    def find_deadlocked_threads(self) -> Set[int]:
        """Ids of threads the monitored process reports as deadlocked."""
        return set()

    def get_lock_wait_graph(self) -> Optional[Dict[str, Any]]:
        """
        Raw lock-wait-graph payload.

        Returns:
            A mapping with ``graph`` (rows of ints, one row per thread),
            ``locks`` (resource identifiers, one per column) and
            ``lockThreads`` (thread names, one per row), or None when the
            monitored process does not expose the telemetry
        """
        return None

    def is_reachable(self) -> bool:
        """Whether the monitored process can currently be reached."""
        return True
