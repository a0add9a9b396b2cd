"""
Profiled-package filtering for stack frames.

A frame is profiled when the package of its class matches one of the
configured package specs. Specs are either an exact package ("com.foo.bar")
or a wildcard suffix ("com.foo.*"), where "P*" matches any package whose name
with a trailing "." starts with "P".
"""

import logging
from typing import AbstractSet, Dict, FrozenSet, Iterable, Tuple

logger = logging.getLogger(__name__)

# Package name used for classes without a "." in their name.
DEFAULT_PACKAGE = "<default>"

# Verdicts are cached per (class name, spec set); a profiling session sees the
# same few hundred classes over and over.
_MAX_CACHE_SIZE = 16384
_filter_cache: Dict[Tuple[str, FrozenSet[str]], bool] = {}


def get_package_name(class_name: str) -> str:
    """Package of a class: the text before its last "." or DEFAULT_PACKAGE."""
    if "." in class_name:
        return class_name[:class_name.rindex(".")]
    return DEFAULT_PACKAGE


def is_profiled(class_name: str, profiled_packages: Iterable[str]) -> bool:
    """Check whether the given class belongs to one of the profiled packages.

    Args:
        class_name: Fully qualified class name (e.g. "java.lang.String" or
            "myapp.workers.Worker").
        profiled_packages: Package specs; exact names or "prefix*" wildcards.

    Returns:
        True if the class belongs to a profiled package. Always False for an
        empty spec set and for synthetic classes whose name starts with "$".

    Examples:
        >>> is_profiled("com.foo.Bar", {"com.foo"})
        True
        >>> is_profiled("com.foo.sub.Bar", {"com.foo.*"})
        True
        >>> is_profiled("$Proxy0", {"*"})
        False
    """
    specs = profiled_packages if isinstance(profiled_packages, frozenset) else frozenset(profiled_packages)
    if not specs:
        return False

    cache_key = (class_name, specs)
    cached = _filter_cache.get(cache_key)
    if cached is not None:
        return cached

    result = _match(class_name, specs)
    if len(_filter_cache) < _MAX_CACHE_SIZE:
        _filter_cache[cache_key] = result
    return result


def _match(class_name: str, specs: AbstractSet[str]) -> bool:
    if class_name.startswith("$"):
        return False  # e.g. $Proxy0

    package_name = get_package_name(class_name)

    for spec in specs:
        if spec.endswith("*"):
            if (package_name + ".").startswith(spec[:-1]):
                return True
        elif package_name == spec:
            return True
    return False


def clear_filter_cache() -> None:
    """Clear the cached filter verdicts."""
    _filter_cache.clear()
    logger.debug("Frame filter cache cleared")
