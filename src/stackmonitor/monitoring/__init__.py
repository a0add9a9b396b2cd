"""
Thread-state monitoring: CPU usage, deadlocks and resource dependencies.
"""

from .thread_monitor import ThreadMonitor

__all__ = ["ThreadMonitor"]
