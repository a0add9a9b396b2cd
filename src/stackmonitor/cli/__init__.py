"""
Command-line interface for the stackmonitor package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
