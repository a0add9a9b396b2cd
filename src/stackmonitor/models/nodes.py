"""
Aggregate node types for the hot-spot and call-tree models.

Two concrete node kinds exist:

- MethodNode: a flat record (one per method and thread) used by the hot-spot
  table. It never has children.
- CallTreeNode: a hierarchical record used by the call tree. Children are
  keyed by method signature and owned by their parent; the parent link is a
  weak reference used only to walk back up.

Both are held by a ThreadNode, the per-thread root. The two kinds share the
container contract (get_child/add_child/has_children plus time and invocation
counters) but not a base class.

All times are in milliseconds.
"""

import weakref
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, List, Optional, TypeVar


@dataclass
class MethodNode:
    """Per-method aggregate for one thread's hot-spot table."""

    name: str
    thread_name: str
    total_time: int = 0
    invocation_count: int = 0

    def increment_time(self, period: int) -> None:
        self.total_time += period

    def increment_count(self, count: int = 1) -> None:
        self.invocation_count += count

    def clone(self) -> "MethodNode":
        return MethodNode(
            name=self.name,
            thread_name=self.thread_name,
            total_time=self.total_time,
            invocation_count=self.invocation_count,
        )


class CallTreeNode:
    """
    A frame in one thread's call tree.

    The identity of a node is its path from the thread root, so the same
    method reached through different callers yields distinct nodes.
    """

    def __init__(
        self,
        name: str,
        thread_name: str,
        parent: Optional["CallTreeNode"] = None,
    ):
        self.name = name
        self.thread_name = thread_name
        self.total_time = 0
        self.self_time = 0
        self.invocation_count = 0
        self.children: Dict[str, "CallTreeNode"] = {}
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    def __repr__(self) -> str:
        return (
            f"CallTreeNode(name={self.name!r}, total_time={self.total_time}, "
            f"self_time={self.self_time}, invocation_count={self.invocation_count}, "
            f"children={len(self.children)})"
        )

    @property
    def parent(self) -> Optional["CallTreeNode"]:
        """The parent frame, or None for a root-level frame."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def path(self) -> List[str]:
        """Signatures from the root-level frame down to this node."""
        names = []
        node: Optional[CallTreeNode] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        names.reverse()
        return names

    def get_child(self, name: str) -> Optional["CallTreeNode"]:
        return self.children.get(name)

    def add_child(self, child: "CallTreeNode") -> None:
        self.children[child.name] = child

    def has_children(self) -> bool:
        return bool(self.children)

    def iter_nodes(self) -> Iterator["CallTreeNode"]:
        """Depth-first walk over this node and its descendants."""
        yield self
        for child in self.children.values():
            yield from child.iter_nodes()

    def clone(self, parent: Optional["CallTreeNode"] = None) -> "CallTreeNode":
        """Deep copy of this subtree, re-parented under ``parent``."""
        copy = CallTreeNode(self.name, self.thread_name, parent)
        copy.total_time = self.total_time
        copy.self_time = self.self_time
        copy.invocation_count = self.invocation_count
        for name, child in self.children.items():
            copy.children[name] = child.clone(copy)
        return copy


NodeT = TypeVar("NodeT", MethodNode, CallTreeNode)


@dataclass
class ThreadNode(Generic[NodeT]):
    """
    Root of one thread's hot-spot table or call tree.

    Attributes:
        name: Thread name
        total_time: Time sampled while the thread had at least one profiled frame
        cpu_time: CPU time consumed by the thread while it was sampled
        children: Root-level nodes keyed by method signature
    """

    name: str
    total_time: int = 0
    cpu_time: int = 0
    children: Dict[str, NodeT] = field(default_factory=dict)

    def get_child(self, name: str) -> Optional[NodeT]:
        return self.children.get(name)

    def add_child(self, child: NodeT) -> None:
        self.children[child.name] = child

    def has_children(self) -> bool:
        return bool(self.children)

    def clone(self) -> "ThreadNode[NodeT]":
        copy: ThreadNode[NodeT] = ThreadNode(
            name=self.name, total_time=self.total_time, cpu_time=self.cpu_time
        )
        for name, child in self.children.items():
            copy.children[name] = child.clone()
        return copy
