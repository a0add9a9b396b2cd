"""
Unit tests for thread records and owner resolutions.
"""

import pytest

from stackmonitor.models.frames import ThreadSnapshot
from stackmonitor.models.threads import OwnerResolution, OwnerStatus, ThreadElement


@pytest.mark.unit
class TestOwnerResolution:
    """Test cases for the tri-state owner resolution."""

    def test_resolved(self):
        resolution = OwnerResolution.resolved("Worker-1")

        assert resolution.status is OwnerStatus.RESOLVED
        assert resolution.is_resolved
        assert resolution.exact is True
        assert resolution.describe() == "Worker-1"

    def test_ambiguous(self):
        resolution = OwnerResolution.ambiguous(["Worker-1", "Worker-2"])

        assert resolution.status is OwnerStatus.AMBIGUOUS
        assert not resolution.is_resolved
        assert resolution.candidates == ("Worker-1", "Worker-2")
        assert resolution.describe() == "candidates: [Worker-1, Worker-2]"

    def test_unknown(self):
        resolution = OwnerResolution.unknown()

        assert resolution.status is OwnerStatus.UNKNOWN
        assert resolution.owner is None
        assert resolution.describe() == "unknown"


@pytest.mark.unit
class TestThreadElement:
    """Test cases for thread records."""

    def test_properties_follow_snapshot(self):
        element = ThreadElement(ThreadSnapshot("main", 7, state="BLOCKED"))

        assert element.thread_name == "main"
        assert element.thread_id == 7
        assert element.state == "BLOCKED"

    def test_update_and_reset_dependencies(self):
        element = ThreadElement(ThreadSnapshot("main", 7))
        element.waited_resource = "Rule@1"
        element.held_resources = ["Rule@2"]
        element.owner = OwnerResolution.unknown()

        element.update(ThreadSnapshot("main", 7, state="WAITING"), deadlocked=True, cpu_usage=12.5)
        element.reset_dependencies()

        assert element.state == "WAITING"
        assert element.deadlocked is True
        assert element.cpu_usage == 12.5
        assert element.waited_resource is None
        assert element.held_resources == []
        assert element.owner is None
