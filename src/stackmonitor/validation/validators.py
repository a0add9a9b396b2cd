"""
Validation functions for configuration values.

Each validator returns the normalized value or raises ValidationError with the
name of the offending field, so the config layer can report precisely what
is wrong in config.toml.
"""

import re
from typing import Any, Iterable, List, Optional

from .exceptions import ValidationError

# A package spec is a dotted name, optionally ending in ".*" or "*".
_PACKAGE_SPEC_PATTERN = re.compile(r"^(<default>|[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*)(\.?\*)?$|^\*$")


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value"
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of accepted values
        field_name: Name of the field being validated

    Returns:
        Validated value

    Raises:
        ValidationError: If the value is not an accepted choice
    """
    if value not in valid_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_package_spec(spec: Any, field_name: str = "package_spec") -> str:
    """
    Validate a single profiled-package spec.

    Accepted forms are an exact package (``com.foo.bar``), a wildcard suffix
    (``com.foo.*``), the bare wildcard ``*`` and the default package
    ``<default>``.

    Raises:
        ValidationError: If the package spec is not a well-formed package name
    """
    if not isinstance(spec, str) or not spec.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=spec
        )
    spec = spec.strip()
    if not _PACKAGE_SPEC_PATTERN.match(spec):
        raise ValidationError(
            f"{field_name} is not a valid package spec: {spec}",
            field_name=field_name,
            value=spec
        )
    return spec


def validate_package_specs(specs: Any, field_name: str = "profiled_packages") -> List[str]:
    """
    Validate a list of profiled-package specs, dropping duplicates.

    Returns:
        The validated specs in their original order
    """
    if not isinstance(specs, (list, tuple, set, frozenset)):
        raise ValidationError(
            f"{field_name} must be a list of package specs",
            field_name=field_name,
            value=specs
        )
    validated: List[str] = []
    for i, spec in enumerate(specs):
        checked = validate_package_spec(spec, field_name=f"{field_name}[{i}]")
        if checked not in validated:
            validated.append(checked)
    return validated


def validate_thread_prefixes(prefixes: Any, field_name: str = "excluded_thread_prefixes") -> List[str]:
    """
    Validate the list of thread-name prefixes excluded from sampling.

    Prefixes are kept verbatim, trailing spaces included ("RMI " must not
    exclude a thread named "RMIWorker").
    """
    if not isinstance(prefixes, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of strings",
            field_name=field_name,
            value=prefixes
        )
    validated: List[str] = []
    for i, prefix in enumerate(prefixes):
        if not isinstance(prefix, str) or not prefix:
            raise ValidationError(
                f"{field_name}[{i}] must be a non-empty string",
                field_name=f"{field_name}[{i}]",
                value=prefix
            )
        validated.append(prefix)
    return validated


def parse_package_list(text: str, field_name: str = "packages") -> List[str]:
    """Parse a comma separated package list, e.g. from the command line."""
    items: Iterable[str] = (part.strip() for part in text.split(","))
    return validate_package_specs([item for item in items if item], field_name=field_name)
