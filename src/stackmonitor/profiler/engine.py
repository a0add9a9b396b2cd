"""
Sampling engine: turns periodic thread-stack samples into the hot-spot and
call-tree models.

One call to ``sample`` is one tick. For every sampled thread the stack is
inverted (outermost caller first), reduced to the profiled frames and compared
with the stack kept from the previous tick to decide, frame by frame, whether
a new invocation started. Every surviving frame then receives the elapsed time
of the tick in both models; the deepest one also receives it as self time.

The engine owns its working trees. After each tick it publishes a
ProfileSnapshot of cloned roots, so readers never see a tick half applied.
"""

import logging
import threading
import time
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from ..models.config import DEFAULT_EXCLUDED_THREAD_PREFIXES, DEFAULT_SAMPLING_PERIOD_MS
from ..models.frames import StackFrame, ThreadSnapshot
from ..models.nodes import CallTreeNode, MethodNode, ThreadNode
from ..models.snapshot import ProfileSnapshot
from ..publication import PublicationSink
from ..validation import MalformedSampleError, ProcessUnreachableError
from .stack_utils import filter_profiled_frames, invert_stack

logger = logging.getLogger(__name__)

_NANOS_PER_MILLI = 1_000_000


class SamplingEngine:
    """
    Aggregates stack samples into per-thread hot-spot and call-tree roots.

    Ticks are serialized by an internal lock, so per-thread state is always
    updated in tick order.
    """

    def __init__(
        self,
        sink: Optional[PublicationSink] = None,
        excluded_thread_prefixes: Iterable[str] = DEFAULT_EXCLUDED_THREAD_PREFIXES,
    ):
        """
        Args:
            sink: Receives a ProfileSnapshot after every tick
            excluded_thread_prefixes: Threads whose name starts with one of
                these prefixes are never sampled
        """
        self.sink = sink
        self.excluded_thread_prefixes = tuple(excluded_thread_prefixes)

        self._lock = threading.RLock()
        self._hot_spot_threads: Dict[str, ThreadNode[MethodNode]] = {}
        self._call_tree_threads: Dict[str, ThreadNode[CallTreeNode]] = {}
        # Thread name -> signatures of the filtered inverted stack of the last tick.
        self._previous_stacks: Dict[str, Tuple[str, ...]] = {}
        # Thread id -> CPU time in ns at the last tick.
        self._previous_cpu_times: Dict[int, int] = {}
        self._previous_sampling_time: Optional[float] = None
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def is_infrastructure_thread(self, thread_name: str) -> bool:
        """Whether a thread belongs to the monitoring infrastructure."""
        return thread_name.startswith(self.excluded_thread_prefixes)

    def tick(
        self,
        service,
        profiled_packages: Iterable[str],
        sampling_period_ms: int = DEFAULT_SAMPLING_PERIOD_MS,
    ) -> ProfileSnapshot:
        """
        Dump the threads of ``service`` and sample them.

        The first tick, and the first one after ``restart_clock``, is charged
        the configured period; later ticks are charged the wall-clock time
        elapsed since the previous one.

        Raises:
            ProcessUnreachableError: If the threads cannot be dumped
        """
        with self._lock:
            if not service.is_reachable():
                raise ProcessUnreachableError("monitored process is not reachable")
            thread_stacks = service.dump_threads()
            now = time.monotonic()
            if self._previous_sampling_time is None:
                elapsed_ms = sampling_period_ms
            else:
                elapsed_ms = max(0, round((now - self._previous_sampling_time) * 1000))
            self._previous_sampling_time = now
            return self.sample(thread_stacks, profiled_packages, elapsed_ms)

    def sample(
        self,
        thread_stacks: Sequence[ThreadSnapshot],
        profiled_packages: Iterable[str],
        elapsed_ms: int,
    ) -> ProfileSnapshot:
        """
        Apply one tick of samples to the models and publish the result.

        Args:
            thread_stacks: Thread snapshots, frames innermost-first
            profiled_packages: Package specs selecting the frames to keep
            elapsed_ms: Time charged to every surviving frame

        Returns:
            The snapshot published for this tick
        """
        specs: FrozenSet[str] = frozenset(profiled_packages)

        with self._lock:
            previous_stacks: Dict[str, Tuple[str, ...]] = {}
            cpu_times: Dict[int, int] = {}

            for thread_snapshot in thread_stacks:
                thread_name = thread_snapshot.thread_name
                if not thread_snapshot.frames or self.is_infrastructure_thread(thread_name):
                    continue

                try:
                    signatures = self._profiled_signatures(thread_snapshot, specs)
                except MalformedSampleError as e:
                    logger.debug(f"Skipping sample of thread '{thread_name}': {e}")
                    continue

                if signatures:
                    self._update_model(thread_name, signatures, elapsed_ms)
                    previous_stacks[thread_name] = signatures
                self._update_cpu_time(thread_snapshot, bool(signatures), cpu_times)

            # Threads missing from this tick are forgotten.
            self._previous_stacks = previous_stacks
            self._previous_cpu_times = cpu_times
            self._version += 1
            snapshot = ProfileSnapshot.build(
                self._version, self._hot_spot_threads, self._call_tree_threads
            )
            logger.debug(
                f"Tick {self._version}: {len(previous_stacks)} profiled threads, "
                f"{elapsed_ms}ms"
            )
            if self.sink is not None:
                self.sink.publish_profile(snapshot)
            return snapshot

    def clear(self) -> None:
        """Drop both models and the per-thread previous state."""
        with self._lock:
            self._hot_spot_threads.clear()
            self._call_tree_threads.clear()
            self._previous_stacks.clear()
            self._previous_cpu_times.clear()
            self._version += 1
            snapshot = ProfileSnapshot(version=self._version)
            if self.sink is not None:
                self.sink.publish_profile(snapshot)
        logger.info("Profile data cleared")

    def reset_session(self) -> None:
        """
        Forget the previous stacks and sampling time, keeping the models.

        Used when the connection to the monitored process is re-established:
        the next tick counts every frame as a new invocation.
        """
        with self._lock:
            self._previous_stacks.clear()
            self._previous_cpu_times.clear()
            self._previous_sampling_time = None

    def restart_clock(self) -> None:
        """Charge the next tick the configured period instead of the wall-clock gap."""
        with self._lock:
            self._previous_sampling_time = None

    def previous_stack(self, thread_name: str) -> Optional[Tuple[str, ...]]:
        with self._lock:
            return self._previous_stacks.get(thread_name)

    def _profiled_signatures(
        self, thread_snapshot: ThreadSnapshot, specs: FrozenSet[str]
    ) -> Tuple[str, ...]:
        for frame in thread_snapshot.frames:
            if not isinstance(frame, StackFrame):
                raise MalformedSampleError(f"unexpected frame {frame!r}")
            if not isinstance(frame.class_name, str) or not isinstance(frame.method_name, str):
                raise MalformedSampleError(f"frame without class or method name: {frame!r}")
        inverted = invert_stack(thread_snapshot.frames)
        return tuple(frame.signature for frame in filter_profiled_frames(inverted, specs))

    def _update_model(self, thread_name: str, signatures: Tuple[str, ...], elapsed_ms: int) -> None:
        hot_spot_root = self._hot_spot_threads.get(thread_name)
        if hot_spot_root is None:
            hot_spot_root = ThreadNode(thread_name)
            self._hot_spot_threads[thread_name] = hot_spot_root
        call_tree_root = self._call_tree_threads.get(thread_name)
        if call_tree_root is None:
            call_tree_root = ThreadNode(thread_name)
            self._call_tree_threads[thread_name] = call_tree_root

        previous = self._previous_stacks.get(thread_name)
        is_new_invocation = False
        # A recursive method appears several times in one stack; its hot-spot
        # node is charged once per tick.
        timed_methods: List[str] = []
        counted_methods: List[str] = []
        cursor: Union[ThreadNode[CallTreeNode], CallTreeNode] = call_tree_root
        leaf_index = len(signatures) - 1

        for i, signature in enumerate(signatures):
            if not is_new_invocation:
                is_new_invocation = (
                    previous is None or len(previous) < i + 1 or previous[i] != signature
                )

            if i == 0:
                hot_spot_root.total_time += elapsed_ms
                call_tree_root.total_time += elapsed_ms

            method_node = hot_spot_root.get_child(signature)
            if method_node is None:
                method_node = MethodNode(signature, thread_name)
                hot_spot_root.add_child(method_node)
            if signature not in timed_methods:
                timed_methods.append(signature)
                method_node.increment_time(elapsed_ms)
            if is_new_invocation and signature not in counted_methods:
                counted_methods.append(signature)
                method_node.increment_count()

            node = cursor.get_child(signature)
            created = node is None
            if node is None:
                parent = cursor if isinstance(cursor, CallTreeNode) else None
                node = CallTreeNode(signature, thread_name, parent)
                cursor.add_child(node)
            node.total_time += elapsed_ms
            if is_new_invocation or created:
                node.invocation_count += 1
            if i == leaf_index:
                node.self_time += elapsed_ms
            cursor = node

    def _update_cpu_time(
        self, thread_snapshot: ThreadSnapshot, profiled: bool, cpu_times: Dict[int, int]
    ) -> None:
        cpu_time_ns = thread_snapshot.cpu_time_ns
        if cpu_time_ns is None:
            return
        thread_id = thread_snapshot.thread_id
        previous = self._previous_cpu_times.get(thread_id)
        cpu_times[thread_id] = cpu_time_ns
        if previous is None or not profiled:
            return

        delta_ms = max(0, cpu_time_ns - previous) // _NANOS_PER_MILLI
        thread_name = thread_snapshot.thread_name
        for roots in (self._hot_spot_threads, self._call_tree_threads):
            root = roots.get(thread_name)
            if root is not None:
                root.cpu_time += delta_ms
