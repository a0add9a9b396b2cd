"""
Dependency resolution between threads waiting on and holding resources.
"""

from .resolver import (
    MULTI_RULE_HEADER,
    LockWaitGraph,
    expand_resource,
    parse_wait_graph,
    resolve,
    search_owner,
)

__all__ = [
    "MULTI_RULE_HEADER",
    "LockWaitGraph",
    "expand_resource",
    "parse_wait_graph",
    "resolve",
    "search_owner",
]
