"""
Publication sinks for profile snapshots and thread records.

The sampling engine publishes a new ProfileSnapshot after every tick and the
thread monitor publishes its thread cache after every refresh. MonitorModel
is the in-memory sink readers query; any other PublicationSink (for instance
an exporter) can be attached next to it.
"""

import logging
import threading
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from .models.nodes import CallTreeNode, MethodNode, ThreadNode
from .models.snapshot import ProfileSnapshot
from .models.threads import ThreadElement

logger = logging.getLogger(__name__)

# Listener signature: (event, model) with event "profile" or "threads".
ModelListener = Callable[[str, "MonitorModel"], None]


class PublicationSink(ABC):
    """Receiver of published monitoring data."""

    @abstractmethod
    def publish_profile(self, snapshot: ProfileSnapshot) -> None:
        """Receive the hot-spot and call-tree roots after a sampling tick."""
        pass

    @abstractmethod
    def publish_threads(self, threads: Mapping[str, ThreadElement]) -> None:
        """Receive the enriched thread records after a thread refresh."""
        pass


class MonitorModel(PublicationSink):
    """
    Latest published profile and thread records.

    Publication swaps a reference under a lock; readers get the current
    snapshot object and can keep using it while newer ones are published.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._profile = ProfileSnapshot()
        self._threads: Mapping[str, ThreadElement] = MappingProxyType({})
        self._listeners: List[ModelListener] = []

    def publish_profile(self, snapshot: ProfileSnapshot) -> None:
        with self._lock:
            self._profile = snapshot
        self._fire("profile")

    def publish_threads(self, threads: Mapping[str, ThreadElement]) -> None:
        with self._lock:
            self._threads = MappingProxyType(dict(threads))
        self._fire("threads")

    def snapshot(self) -> ProfileSnapshot:
        with self._lock:
            return self._profile

    def threads(self) -> Mapping[str, ThreadElement]:
        with self._lock:
            return self._threads

    def get_hot_spot_thread(self, thread_name: str) -> Optional[ThreadNode[MethodNode]]:
        return self.snapshot().hot_spot_threads.get(thread_name)

    def get_call_tree_thread(self, thread_name: str) -> Optional[ThreadNode[CallTreeNode]]:
        return self.snapshot().call_tree_threads.get(thread_name)

    def get_thread(self, thread_name: str) -> Optional[ThreadElement]:
        return self.threads().get(thread_name)

    def clear(self) -> None:
        """Drop all published data."""
        with self._lock:
            self._profile = ProfileSnapshot(version=self._profile.version)
            self._threads = MappingProxyType({})
        self._fire("profile")
        self._fire("threads")

    def add_listener(self, listener: ModelListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ModelListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _fire(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception as e:
                logger.warning(f"Model listener failed on '{event}' event: {e}")
