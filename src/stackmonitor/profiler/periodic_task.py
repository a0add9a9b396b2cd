"""
Cancellable periodic task running on a dedicated daemon thread.

Both the sampling profiler and the thread monitor are driven by a
PeriodicTask. The task runs its target immediately on start and then again
after each period. An exception escaping the target stops the task and is
reported through ``on_error``; it never reaches the scheduling thread's
caller. Restarting is always an explicit ``start()``.
"""

import logging
import threading
from typing import Callable, Optional

from ..validation import handle_task_error

logger = logging.getLogger(__name__)

THREAD_NAME_PREFIX = "stackmonitor-"


class PeriodicTask:
    """
    A handle on a periodic callback.

    Each ``start()`` creates a fresh stop event and thread, so a run that is
    still finishing after ``stop()`` can never be revived by a later start.
    """

    def __init__(
        self,
        name: str,
        target: Callable[[], None],
        period_ms: int,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        """
        Args:
            name: Short name, used for the thread name and log messages
            target: Callable run once per period
            period_ms: Delay between the end of one run and the next, in ms
            on_error: Called with the exception that stopped the task
        """
        self.name = name
        self.target = target
        self.period_ms = period_ms
        self.on_error = on_error
        self.last_error: Optional[BaseException] = None
        self.runs_completed = 0

        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """Schedule the target at ``period_ms``, first run immediately."""
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            stop_event = threading.Event()
            self._stop_event = stop_event
            self.last_error = None
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event, self.period_ms),
                name=f"{THREAD_NAME_PREFIX}{self.name}",
                daemon=True,
            )
            self._thread.start()
        logger.info(f"Periodic task '{self.name}' started with period {self.period_ms}ms")

    def stop(self, wait: bool = False, timeout: float = 5.0) -> None:
        """
        Cancel further runs. Calling stop on a stopped task is a no-op.

        Args:
            wait: Block until a run in progress has finished
            timeout: Maximum time to wait, in seconds
        """
        with self._lock:
            stop_event = self._stop_event
            thread = self._thread
            if stop_event is None or stop_event.is_set():
                return
            stop_event.set()

        logger.info(f"Periodic task '{self.name}' stopped")

        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Periodic task '{self.name}' did not finish within {timeout}s")

    def _run_loop(self, stop_event: threading.Event, period_ms: int) -> None:
        period_seconds = period_ms / 1000.0
        while not stop_event.is_set():
            try:
                self.target()
                self.runs_completed += 1
            except Exception as e:
                self.last_error = e
                stop_event.set()
                if self.on_error is None:
                    handle_task_error(e, self.name, logger=logger)
                else:
                    try:
                        self.on_error(e)
                    except Exception as callback_error:
                        logger.warning(
                            f"Error callback of periodic task '{self.name}' failed: {callback_error}"
                        )
                return

            if stop_event.wait(period_seconds):
                break
        logger.debug(f"Periodic task '{self.name}' loop finished")
