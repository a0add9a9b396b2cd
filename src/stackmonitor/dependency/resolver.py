"""
Resource ownership inference from a lock-wait graph.

The monitored process may expose, for its scheduling rules (or any other
mutual-exclusion resource), a matrix with one row per thread and one column
per resource: ``-1`` means the thread waits on the resource, a positive value
means it holds it. Which holder actually blocks a waiter is not reported, so
the owner is inferred:

1. a holder of the identical resource is the owner;
2. otherwise the holders of any resource of the same class
   (``<Class>@<hash>``) are the candidates: one candidate is taken as the
   owner, several are reported as ambiguous, none as unknown.

A held resource may be a composite ``MultiRule[r1,r2,...]``; its members are
registered individually.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.threads import OwnerResolution, ThreadElement

logger = logging.getLogger(__name__)

MULTI_RULE_HEADER = "MultiRule["
WAITING = -1


@dataclass(frozen=True)
class LockWaitGraph:
    """
    Validated lock-wait telemetry.

    Attributes:
        graph: One row per thread, one column per resource
        resource_names: Resource identifiers, one per column
        owner_thread_names: Thread names, one per row
    """

    graph: Tuple[Tuple[int, ...], ...]
    resource_names: Tuple[str, ...]
    owner_thread_names: Tuple[str, ...]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def parse_wait_graph(payload: Any) -> Optional[LockWaitGraph]:
    """
    Validate a raw lock-wait payload (``graph``, ``locks``, ``lockThreads``).

    Returns:
        The parsed graph, or None when the payload is missing or has
        unexpected types, which means the telemetry is not supported
    """
    if not isinstance(payload, Mapping):
        return None

    graph = payload.get("graph")
    locks = payload.get("locks")
    lock_threads = payload.get("lockThreads")

    if not isinstance(graph, (list, tuple)) or not graph:
        logger.debug("Lock-wait payload has no graph rows")
        return None
    for row in graph:
        if not isinstance(row, (list, tuple)) or not all(_is_int(cell) for cell in row):
            logger.debug(f"Lock-wait payload has a malformed row: {row!r}")
            return None
    if not _is_string_list(locks) or not _is_string_list(lock_threads):
        logger.debug("Lock-wait payload has malformed lock or thread names")
        return None

    return LockWaitGraph(
        graph=tuple(tuple(row) for row in graph),
        resource_names=tuple(locks),
        owner_thread_names=tuple(lock_threads),
    )


def expand_resource(resource: str) -> List[str]:
    """
    Member resources of a held resource.

    A plain resource is its own single member. A composite
    ``MultiRule[a,b]`` yields ``["a", "b"]``; a composite without its closing
    bracket yields nothing.
    """
    if not resource.startswith(MULTI_RULE_HEADER):
        return [resource]
    if not resource.endswith("]"):
        logger.debug(f"Ignoring malformed composite resource: {resource}")
        return []
    body = resource[len(MULTI_RULE_HEADER):-1]
    return [member.strip() for member in body.split(",") if member.strip()]


def _class_part(resource: str) -> str:
    return resource.split("@")[0]


def search_owner(resource_owners: Mapping[str, str], waited_resource: str) -> OwnerResolution:
    """
    Infer the owner of ``waited_resource`` from a resource -> holder map.

    Returns:
        RESOLVED for an exact match or a single same-class holder,
        AMBIGUOUS with the holders (each listed once) for several same-class
        holders, UNKNOWN otherwise
    """
    owner = resource_owners.get(waited_resource)
    if owner is not None:
        return OwnerResolution.resolved(owner, exact=True)

    class_name = _class_part(waited_resource)
    candidates: List[str] = []
    for resource, holder in resource_owners.items():
        if _class_part(resource) == class_name and holder not in candidates:
            candidates.append(holder)

    if len(candidates) == 1:
        return OwnerResolution.resolved(candidates[0], exact=False)
    if candidates:
        return OwnerResolution.ambiguous(candidates)
    return OwnerResolution.unknown()


def resolve(
    thread_records: Mapping[str, ThreadElement],
    graph: Sequence[Sequence[Any]],
    resource_names: Sequence[Any],
    owner_thread_names: Sequence[str],
) -> bool:
    """
    Annotate thread records with waited/held resources and owners.

    Nothing is touched when the graph is empty or its dimensions do not match
    the name lists. Cells that are not integers and columns whose resource
    name is not a string are skipped.

    Args:
        thread_records: Thread name -> record to annotate
        graph: One row per entry of ``owner_thread_names``
        resource_names: One entry per graph column
        owner_thread_names: One entry per graph row

    Returns:
        True if the graph was applied
    """
    if not graph or len(graph) != len(owner_thread_names):
        logger.debug(
            f"Skipping dependency resolution: {len(graph) if graph else 0} graph rows "
            f"for {len(owner_thread_names)} threads"
        )
        return False
    if any(not isinstance(row, (list, tuple)) for row in graph):
        logger.debug("Skipping dependency resolution: graph rows must be sequences")
        return False
    if any(len(row) != len(resource_names) for row in graph):
        logger.debug(
            f"Skipping dependency resolution: graph columns do not match "
            f"{len(resource_names)} resources"
        )
        return False

    resource_owners: Dict[str, str] = {}
    waiting_records: List[ThreadElement] = []

    for row, thread_name in zip(graph, owner_thread_names):
        record = thread_records.get(thread_name)
        waited_resource: Optional[str] = None
        held_resources: List[str] = []

        for cell, resource in zip(row, resource_names):
            if not _is_int(cell) or not isinstance(resource, str):
                continue
            if cell == WAITING:
                waited_resource = resource
            elif cell > 0:
                held_resources.append(resource)
                for member in expand_resource(resource):
                    resource_owners[member] = thread_name

        if record is None:
            continue
        if waited_resource is not None:
            record.waited_resource = waited_resource
            waiting_records.append(record)
        if held_resources:
            record.held_resources = held_resources

    for record in waiting_records:
        record.owner = search_owner(resource_owners, record.waited_resource)
        logger.debug(
            f"Thread '{record.thread_name}' waits on {record.waited_resource}, "
            f"owner: {record.owner.describe()}"
        )
    return True
