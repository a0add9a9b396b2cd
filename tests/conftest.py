"""
Pytest configuration and shared fixtures for the stackmonitor test suite.

This module provides common fixtures, a scriptable introspection service and
helpers to build stack samples.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stackmonitor.introspection.base import AbstractIntrospectionService  # noqa: E402
from stackmonitor.models.frames import StackFrame, ThreadSnapshot  # noqa: E402
from stackmonitor.validation import ProcessUnreachableError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "profiler": {
            "sampling_period_ms": 20,
            "profiled_packages": ["app", "lib.*"],
            "excluded_thread_prefixes": ["RMI ", "JMX ", "stackmonitor-"],
        },
        "monitor": {
            "update_period_ms": 500,
            "log_root_dir": "logs",
        },
        "storage": {
            "format": "parquet",
            "compression": "snappy",
        },
    }


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary config.toml for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {"config": config_file, "dir": temp_dir}


# ============================================================================
# Sample Helpers
# ============================================================================


class FakeIntrospectionService(AbstractIntrospectionService):
    """Introspection service returning scripted thread dumps."""

    def __init__(self, threads: Optional[List[ThreadSnapshot]] = None):
        self.threads: List[ThreadSnapshot] = list(threads or [])
        self.cpu_times: Dict[int, int] = {}
        self.deadlocked: Set[int] = set()
        self.lock_wait_graph: Optional[Dict[str, Any]] = None
        self.unreachable = False
        self.reachable = True
        self.lock_wait_error: Optional[Exception] = None
        self.dump_count = 0

    def dump_threads(self) -> List[ThreadSnapshot]:
        if self.unreachable:
            raise ProcessUnreachableError("monitored process is gone")
        self.dump_count += 1
        return list(self.threads)

    def get_thread_cpu_time(self, thread_id: int) -> Optional[int]:
        return self.cpu_times.get(thread_id)

    def find_deadlocked_threads(self) -> Set[int]:
        return set(self.deadlocked)

    def get_lock_wait_graph(self) -> Optional[Dict[str, Any]]:
        if self.lock_wait_error is not None:
            raise self.lock_wait_error
        return self.lock_wait_graph

    def is_reachable(self) -> bool:
        return self.reachable


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def frame(qualified_method: str) -> StackFrame:
        """StackFrame for "pkg.Class.method"."""
        class_name, _, method_name = qualified_method.rpartition(".")
        return StackFrame(class_name=class_name, method_name=method_name)

    @staticmethod
    def thread(
        name: str,
        calls: Iterable[str],
        thread_id: int = 1,
        cpu_time_ns: Optional[int] = None,
        state: str = "RUNNABLE",
    ) -> ThreadSnapshot:
        """
        ThreadSnapshot for a call chain given outermost caller first.

        The snapshot frames are innermost-first, as introspection delivers them.
        """
        frames = [TestUtils.frame(call) for call in calls]
        frames.reverse()
        return ThreadSnapshot(
            thread_name=name,
            thread_id=thread_id,
            frames=frames,
            state=state,
            cpu_time_ns=cpu_time_ns,
        )


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture
def fake_service():
    """A scriptable introspection service with no threads."""
    return FakeIntrospectionService()


@pytest.fixture(autouse=True)
def clear_caches_after_test():
    """Automatically clear configuration and filter caches after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from stackmonitor.config import clear_config_cache, set_config_path
    from stackmonitor.profiler.frame_filter import clear_filter_cache

    clear_config_cache()
    clear_filter_cache()

    set_config_path(original_config_path)


@pytest.fixture
def service_factory():
    """Factory building FakeIntrospectionService instances."""
    return FakeIntrospectionService
