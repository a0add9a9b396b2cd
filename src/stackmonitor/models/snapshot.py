"""
Published profile snapshots.

Each sampling tick produces a new ProfileSnapshot. The mappings it holds are
read-only views over freshly cloned thread roots, so a reader keeping an old
snapshot never sees later ticks mutate it.
"""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

from .nodes import CallTreeNode, MethodNode, ThreadNode

def _empty_view() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class ProfileSnapshot:
    """
    Immutable view of the profile after one tick.

    Attributes:
        version: Tick counter, 0 for the empty snapshot
        timestamp: Wall-clock time the snapshot was built (epoch seconds)
        hot_spot_threads: Thread name -> hot-spot root
        call_tree_threads: Thread name -> call-tree root
    """

    version: int = 0
    timestamp: float = field(default_factory=time.time)
    hot_spot_threads: Mapping[str, ThreadNode[MethodNode]] = field(default_factory=_empty_view)
    call_tree_threads: Mapping[str, ThreadNode[CallTreeNode]] = field(default_factory=_empty_view)

    @classmethod
    def build(
        cls,
        version: int,
        hot_spot_threads: Dict[str, ThreadNode[MethodNode]],
        call_tree_threads: Dict[str, ThreadNode[CallTreeNode]],
    ) -> "ProfileSnapshot":
        """Clone the given working roots into a new snapshot."""
        return cls(
            version=version,
            hot_spot_threads=MappingProxyType(
                {name: root.clone() for name, root in hot_spot_threads.items()}
            ),
            call_tree_threads=MappingProxyType(
                {name: root.clone() for name, root in call_tree_threads.items()}
            ),
        )

    @property
    def thread_names(self):
        return sorted(set(self.hot_spot_threads) | set(self.call_tree_threads))

    def is_empty(self) -> bool:
        return not self.hot_spot_threads and not self.call_tree_threads
