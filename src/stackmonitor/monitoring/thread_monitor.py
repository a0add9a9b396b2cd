"""
Periodic refresh of the thread records of a monitored process.

Each refresh dumps all threads, computes their CPU usage since the previous
refresh, flags deadlocked threads and, when the process exposes lock-wait
telemetry, annotates every record with the resource it waits on, the
resources it holds and the inferred owner. The new cache replaces the old one
in a single assignment and is then published to the attached sinks.
"""

import dataclasses
import logging
import threading
import time
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..config.validators import MAX_UPDATE_PERIOD_MS, MIN_UPDATE_PERIOD_MS
from ..dependency import parse_wait_graph, resolve
from ..introspection.base import AbstractIntrospectionService
from ..models.config import DEFAULT_EXCLUDED_THREAD_PREFIXES, DEFAULT_UPDATE_PERIOD_MS, MonitorConfig
from ..models.frames import ThreadSnapshot
from ..models.threads import ThreadElement
from ..profiler.periodic_task import PeriodicTask
from ..publication import PublicationSink
from ..validation import ProcessUnreachableError, handle_task_error, validate_positive_integer

logger = logging.getLogger(__name__)

_NANOS_PER_MILLI = 1_000_000
_MAX_CPU_USAGE = 100.0


class ThreadMonitor:
    """
    Keeps an up-to-date cache of ThreadElement records keyed by thread name.
    """

    def __init__(
        self,
        service: AbstractIntrospectionService,
        update_period_ms: int = DEFAULT_UPDATE_PERIOD_MS,
        excluded_thread_prefixes: Iterable[str] = DEFAULT_EXCLUDED_THREAD_PREFIXES,
        sinks: Iterable[PublicationSink] = (),
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        self.service = service
        self.excluded_thread_prefixes = tuple(excluded_thread_prefixes)
        self.sinks: List[PublicationSink] = list(sinks)
        self.on_error = on_error
        self.last_error: Optional[BaseException] = None

        self._update_period_ms = self._validate_period(update_period_ms)
        self._refresh_lock = threading.Lock()
        self._thread_cache: Mapping[str, ThreadElement] = MappingProxyType({})
        # Thread id -> CPU time in ns at the previous refresh.
        self._previous_cpu_times: Dict[int, int] = {}
        self._previous_refresh_time: Optional[float] = None
        self._task: Optional[PeriodicTask] = None

    @classmethod
    def from_config(
        cls,
        service: AbstractIntrospectionService,
        config: MonitorConfig,
        excluded_thread_prefixes: Iterable[str] = DEFAULT_EXCLUDED_THREAD_PREFIXES,
        sinks: Iterable[PublicationSink] = (),
    ) -> "ThreadMonitor":
        return cls(
            service,
            update_period_ms=config.update_period_ms,
            excluded_thread_prefixes=excluded_thread_prefixes,
            sinks=sinks,
        )

    @staticmethod
    def _validate_period(period_ms: int) -> int:
        return validate_positive_integer(
            period_ms,
            min_value=MIN_UPDATE_PERIOD_MS,
            max_value=MAX_UPDATE_PERIOD_MS,
            field_name="update_period",
        )

    @property
    def update_period(self) -> int:
        """Refresh period in milliseconds."""
        return self._update_period_ms

    @update_period.setter
    def update_period(self, period_ms: int) -> None:
        self._update_period_ms = self._validate_period(period_ms)
        if self.is_running:
            self.start()

    @property
    def is_running(self) -> bool:
        return self._task is not None and self._task.is_running

    def add_sink(self, sink: PublicationSink) -> None:
        if sink not in self.sinks:
            self.sinks.append(sink)

    def get_thread_cache(self) -> Mapping[str, ThreadElement]:
        """The thread records of the latest refresh."""
        return self._thread_cache

    def start(self) -> None:
        """Refresh now and then every ``update_period`` ms."""
        if self._task is not None:
            self._task.stop()
        self.last_error = None
        self._task = PeriodicTask(
            "threads",
            self.refresh_thread_cache,
            self._update_period_ms,
            on_error=self._on_task_error,
        )
        self._task.start()

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.stop()

    def reset(self) -> None:
        """Drop the cache and the CPU-time history."""
        with self._refresh_lock:
            self._thread_cache = MappingProxyType({})
            self._previous_cpu_times = {}
            self._previous_refresh_time = None

    def refresh_thread_cache(self) -> Mapping[str, ThreadElement]:
        """
        Rebuild the thread cache from a fresh thread dump.

        Returns:
            The new cache

        Raises:
            ProcessUnreachableError: If the monitored process cannot be reached
        """
        with self._refresh_lock:
            if not self.service.is_reachable():
                raise ProcessUnreachableError("monitored process is not reachable")
            thread_snapshots = self.service.dump_threads()
            deadlocked_ids = self.service.find_deadlocked_threads()
            now = time.monotonic()
            if self._previous_refresh_time is None:
                interval_ms = float(self._update_period_ms)
            else:
                interval_ms = max(1.0, (now - self._previous_refresh_time) * 1000)

            previous_cache = self._thread_cache
            cache: Dict[str, ThreadElement] = {}
            cpu_times: Dict[int, int] = {}

            for thread_snapshot in reversed(thread_snapshots):
                thread_name = thread_snapshot.thread_name
                if not thread_snapshot.frames or thread_name.startswith(self.excluded_thread_prefixes):
                    continue

                cpu_usage = self._cpu_usage(thread_snapshot, interval_ms, cpu_times)
                deadlocked = thread_snapshot.thread_id in deadlocked_ids

                previous = previous_cache.get(thread_name)
                if previous is None:
                    element = ThreadElement(thread_snapshot, deadlocked=deadlocked, cpu_usage=cpu_usage)
                else:
                    element = dataclasses.replace(previous)
                    element.update(thread_snapshot, deadlocked, cpu_usage)
                    element.reset_dependencies()
                cache[thread_name] = element

            wait_graph = parse_wait_graph(self._lock_wait_payload())
            if wait_graph is not None:
                resolve(
                    cache,
                    wait_graph.graph,
                    wait_graph.resource_names,
                    wait_graph.owner_thread_names,
                )
            else:
                logger.debug("Lock-wait telemetry not supported, skipping dependency resolution")

            self._thread_cache = MappingProxyType(cache)
            self._previous_cpu_times = cpu_times
            self._previous_refresh_time = now
            published = self._thread_cache

        logger.debug(f"Thread cache refreshed: {len(published)} threads")
        for sink in list(self.sinks):
            sink.publish_threads(published)
        return published

    def _lock_wait_payload(self) -> Optional[Mapping[str, Any]]:
        try:
            return self.service.get_lock_wait_graph()
        except ProcessUnreachableError:
            raise
        except Exception as e:
            logger.debug(f"Lock-wait telemetry unavailable: {e}")
            return None

    def _cpu_usage(
        self,
        thread_snapshot: ThreadSnapshot,
        interval_ms: float,
        cpu_times: Dict[int, int],
    ) -> float:
        cpu_time_ns = thread_snapshot.cpu_time_ns
        if cpu_time_ns is None:
            cpu_time_ns = self.service.get_thread_cpu_time(thread_snapshot.thread_id)
        if cpu_time_ns is None:
            return 0.0

        thread_id = thread_snapshot.thread_id
        cpu_times[thread_id] = cpu_time_ns
        previous = self._previous_cpu_times.get(thread_id)
        if previous is None:
            return 0.0
        delta_ms = max(0, cpu_time_ns - previous) / _NANOS_PER_MILLI
        return min(delta_ms / interval_ms * 100, _MAX_CPU_USAGE)

    def _on_task_error(self, error: BaseException) -> None:
        self.last_error = error
        handle_task_error(error, "thread refresh", logger=logger)
        if self.on_error is not None:
            self.on_error(error)
