"""
Unit tests for the hot-spot and call-tree node types.
"""

import gc

import pytest

from stackmonitor.models.nodes import CallTreeNode, MethodNode, ThreadNode
from stackmonitor.models.snapshot import ProfileSnapshot


@pytest.mark.unit
class TestMethodNode:
    """Test cases for flat hot-spot nodes."""

    def test_counters(self):
        node = MethodNode("app.A.m1()", "T1")
        node.increment_time(50)
        node.increment_time(30)
        node.increment_count()

        assert node.total_time == 80
        assert node.invocation_count == 1

    def test_clone_is_independent(self):
        node = MethodNode("app.A.m1()", "T1", total_time=10, invocation_count=2)
        copy = node.clone()
        node.increment_time(5)

        assert copy == MethodNode("app.A.m1()", "T1", total_time=10, invocation_count=2)


@pytest.mark.unit
class TestCallTreeNode:
    """Test cases for hierarchical call-tree nodes."""

    def build_chain(self):
        a = CallTreeNode("app.A.m1()", "T1")
        b = CallTreeNode("app.B.m2()", "T1", parent=a)
        a.add_child(b)
        c = CallTreeNode("app.C.m3()", "T1", parent=b)
        b.add_child(c)
        return a, b, c

    def test_parent_links_and_paths(self):
        a, b, c = self.build_chain()

        assert a.parent is None
        assert c.parent is b
        assert c.depth == 2
        assert c.path() == ["app.A.m1()", "app.B.m2()", "app.C.m3()"]

    def test_children_keyed_by_signature(self):
        a, b, _ = self.build_chain()

        assert a.get_child("app.B.m2()") is b
        assert a.get_child("app.C.m3()") is None
        assert a.has_children()

    def test_parent_link_does_not_keep_parent_alive(self):
        a, b, _ = self.build_chain()
        del a
        gc.collect()
        assert b.parent is None

    def test_iter_nodes_is_depth_first(self):
        a, _, _ = self.build_chain()
        d = CallTreeNode("app.D.m4()", "T1", parent=a)
        a.add_child(d)

        assert [n.name for n in a.iter_nodes()] == [
            "app.A.m1()", "app.B.m2()", "app.C.m3()", "app.D.m4()",
        ]

    def test_clone_copies_subtree_with_new_parents(self):
        a, b, c = self.build_chain()
        c.total_time = c.self_time = 50
        c.invocation_count = 1

        copy = a.clone()
        copy_b = copy.get_child("app.B.m2()")
        copy_c = copy_b.get_child("app.C.m3()")

        assert copy_b is not b
        assert copy_c.parent is copy_b
        assert copy_b.parent is copy
        assert (copy_c.total_time, copy_c.self_time, copy_c.invocation_count) == (50, 50, 1)

        c.total_time = 999
        assert copy_c.total_time == 50


@pytest.mark.unit
class TestThreadNode:
    """Test cases for per-thread roots."""

    def test_root_container_contract(self):
        root: ThreadNode[MethodNode] = ThreadNode("T1")
        assert not root.has_children()

        node = MethodNode("app.A.m1()", "T1")
        root.add_child(node)
        assert root.get_child("app.A.m1()") is node

    def test_clone_of_call_tree_root(self):
        root: ThreadNode[CallTreeNode] = ThreadNode("T1", total_time=100, cpu_time=7)
        top = CallTreeNode("app.A.m1()", "T1")
        root.add_child(top)

        copy = root.clone()

        assert copy.total_time == 100
        assert copy.cpu_time == 7
        assert copy.get_child("app.A.m1()") is not top
        assert copy.get_child("app.A.m1()").parent is None


@pytest.mark.unit
class TestProfileSnapshot:
    """Test cases for published snapshots."""

    def test_empty_snapshot(self):
        snapshot = ProfileSnapshot()
        assert snapshot.version == 0
        assert snapshot.is_empty()
        assert snapshot.thread_names == []

    def test_build_clones_roots(self):
        root = ThreadNode("T1", total_time=50)
        root.add_child(MethodNode("app.A.m1()", "T1", total_time=50))

        snapshot = ProfileSnapshot.build(3, {"T1": root}, {})
        root.total_time = 100

        assert snapshot.version == 3
        assert snapshot.hot_spot_threads["T1"].total_time == 50
        assert snapshot.thread_names == ["T1"]
