"""
Thread records published by the thread monitor.

A ThreadElement is the dependency view of one thread: its latest snapshot,
CPU usage, deadlock flag, and the lock annotations filled in by the
dependency resolver.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .frames import ThreadSnapshot


class OwnerStatus(Enum):
    """Outcome of an owner lookup for a waited resource."""
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class OwnerResolution:
    """
    Owner of the resource a thread is waiting on.

    Exactly one of three outcomes: a single owner (``RESOLVED``), several
    candidate owners (``AMBIGUOUS``), or no owner at all (``UNKNOWN``).
    A resolved owner found through the class-name fallback is flagged with
    ``exact=False``.
    """

    status: OwnerStatus
    owner: Optional[str] = None
    candidates: Tuple[str, ...] = ()
    exact: bool = False

    @classmethod
    def resolved(cls, owner: str, exact: bool = True) -> "OwnerResolution":
        return cls(OwnerStatus.RESOLVED, owner=owner, candidates=(owner,), exact=exact)

    @classmethod
    def ambiguous(cls, candidates: List[str]) -> "OwnerResolution":
        return cls(OwnerStatus.AMBIGUOUS, candidates=tuple(candidates))

    @classmethod
    def unknown(cls) -> "OwnerResolution":
        return cls(OwnerStatus.UNKNOWN)

    @property
    def is_resolved(self) -> bool:
        return self.status is OwnerStatus.RESOLVED

    def describe(self) -> str:
        """Human readable form, e.g. "Worker-1", "candidates: [a, b]" or "unknown"."""
        if self.status is OwnerStatus.RESOLVED:
            return self.owner or ""
        if self.status is OwnerStatus.AMBIGUOUS:
            return f"candidates: [{', '.join(self.candidates)}]"
        return "unknown"


@dataclass
class ThreadElement:
    """
    Dependency view of a single thread, keyed by thread name.

    Attributes:
        snapshot: Latest thread snapshot
        deadlocked: Whether the monitored process reports the thread as deadlocked
        cpu_usage: CPU usage in percent since the previous refresh
        waited_resource: Resource identifier the thread waits on, if any
        held_resources: Resource identifiers the thread holds
        owner: Resolved owner of ``waited_resource``
    """

    snapshot: ThreadSnapshot
    deadlocked: bool = False
    cpu_usage: float = 0.0
    waited_resource: Optional[str] = None
    held_resources: List[str] = field(default_factory=list)
    owner: Optional[OwnerResolution] = None

    @property
    def thread_name(self) -> str:
        return self.snapshot.thread_name

    @property
    def thread_id(self) -> int:
        return self.snapshot.thread_id

    @property
    def state(self) -> str:
        return self.snapshot.state

    def update(self, snapshot: ThreadSnapshot, deadlocked: bool, cpu_usage: float) -> None:
        self.snapshot = snapshot
        self.deadlocked = deadlocked
        self.cpu_usage = cpu_usage

    def reset_dependencies(self) -> None:
        """Drop lock annotations from a previous refresh."""
        self.waited_resource = None
        self.held_resources = []
        self.owner = None
