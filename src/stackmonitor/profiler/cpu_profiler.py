"""
Controller of the sampling profiler.

SamplingProfiler binds a SamplingEngine to an introspection service and a
periodic timer. Sampling is resumed and suspended explicitly; a tick that
cannot reach the monitored process suspends sampling and is reported through
``last_error`` and the ``on_error`` callback. Resuming after such a fault is
again an explicit ``resume_sampling()``.
"""

import logging
import threading
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from ..introspection.base import AbstractIntrospectionService
from ..models.config import DEFAULT_EXCLUDED_THREAD_PREFIXES, DEFAULT_SAMPLING_PERIOD_MS, ProfilerConfig
from ..models.snapshot import ProfileSnapshot
from ..publication import MonitorModel
from ..config.validators import validate_sampling_period
from ..validation import handle_task_error, validate_package_specs
from .engine import SamplingEngine
from .periodic_task import PeriodicTask

logger = logging.getLogger(__name__)


class ProfilerState(Enum):
    """Sampling state of a profiler."""
    READY = "ready"
    RUNNING = "running"


class SamplingProfiler:
    """
    Periodic CPU sampling of a monitored process.

    Example:
        profiler = SamplingProfiler(LocalIntrospectionService(), ["myapp.*"])
        profiler.resume_sampling()
        ...
        profiler.suspend_sampling()
        snapshot = profiler.model.snapshot()
    """

    def __init__(
        self,
        service: AbstractIntrospectionService,
        profiled_packages: Iterable[str] = (),
        sampling_period_ms: int = DEFAULT_SAMPLING_PERIOD_MS,
        excluded_thread_prefixes: Iterable[str] = DEFAULT_EXCLUDED_THREAD_PREFIXES,
        model: Optional[MonitorModel] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        self.service = service
        self.model = model if model is not None else MonitorModel()
        self.engine = SamplingEngine(sink=self.model, excluded_thread_prefixes=excluded_thread_prefixes)
        self.on_error = on_error
        self.last_error: Optional[BaseException] = None

        self._sampling_period_ms = validate_sampling_period(sampling_period_ms, field_name="sampling_period")
        self._profiled_packages: FrozenSet[str] = frozenset(
            validate_package_specs(list(profiled_packages))
        )
        self._lock = threading.Lock()
        self._task: Optional[PeriodicTask] = None

    @classmethod
    def from_config(
        cls,
        service: AbstractIntrospectionService,
        config: ProfilerConfig,
        model: Optional[MonitorModel] = None,
    ) -> "SamplingProfiler":
        return cls(
            service,
            profiled_packages=config.profiled_packages,
            sampling_period_ms=config.sampling_period_ms,
            excluded_thread_prefixes=config.excluded_thread_prefixes,
            model=model,
        )

    @property
    def state(self) -> ProfilerState:
        with self._lock:
            task = self._task
        if task is not None and task.is_running:
            return ProfilerState.RUNNING
        return ProfilerState.READY

    @property
    def sampling_period(self) -> int:
        """Sampling period in milliseconds."""
        return self._sampling_period_ms

    @sampling_period.setter
    def sampling_period(self, period_ms: int) -> None:
        self._sampling_period_ms = validate_sampling_period(period_ms, field_name="sampling_period")
        if self.state is ProfilerState.RUNNING:
            logger.info(f"Sampling period changed to {self._sampling_period_ms}ms, restarting sampling")
            self.resume_sampling()

    @property
    def profiled_packages(self) -> FrozenSet[str]:
        return self._profiled_packages

    @profiled_packages.setter
    def profiled_packages(self, packages: Iterable[str]) -> None:
        self._profiled_packages = frozenset(validate_package_specs(list(packages)))

    def resume_sampling(self) -> None:
        """Cancel any running timer and sample at the current period, starting now."""
        with self._lock:
            if self._task is not None:
                self._task.stop()
            self.last_error = None
            self.engine.restart_clock()
            self._task = PeriodicTask(
                "sampler",
                self.sample_now,
                self._sampling_period_ms,
                on_error=self._on_task_error,
            )
            self._task.start()
        logger.info(f"Sampling resumed at {self._sampling_period_ms}ms")

    def suspend_sampling(self) -> None:
        """Stop the sampling timer; a tick in flight completes."""
        with self._lock:
            task = self._task
            self._task = None
        if task is None:
            return
        task.stop()
        logger.info("Sampling suspended")

    def sample_now(self) -> ProfileSnapshot:
        """Run one sampling tick on the calling thread."""
        return self.engine.tick(self.service, self._profiled_packages, self._sampling_period_ms)

    def clear(self) -> None:
        """Drop the collected profile."""
        self.engine.clear()

    def reset(self) -> None:
        """Forget per-thread sampling state after the connection was re-established."""
        self.engine.reset_session()
        logger.debug("Sampling session state reset")

    def _on_task_error(self, error: BaseException) -> None:
        self.last_error = error
        handle_task_error(error, "sampling", logger=logger)
        logger.info("Sampling suspended until resume_sampling() is called")
        if self.on_error is not None:
            self.on_error(error)
