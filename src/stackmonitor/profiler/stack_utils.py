"""
Helpers shared by the sampling engine: stack inversion, signature
formatting and profiled-frame filtering.
"""

from typing import FrozenSet, Sequence, Tuple, TypeVar

from ..models.frames import StackFrame, format_signature
from .frame_filter import is_profiled

__all__ = ["filter_profiled_frames", "format_signature", "invert_stack"]

T = TypeVar("T")


def invert_stack(stack: Sequence[T]) -> Tuple[T, ...]:
    """
    Reverse a stack so the outermost caller comes first and the leaf last.

    Inverting twice yields the original order.
    """
    return tuple(reversed(stack))


def filter_profiled_frames(
    inverted_stack: Sequence[StackFrame],
    profiled_packages: FrozenSet[str],
) -> Tuple[StackFrame, ...]:
    """Keep only the frames whose class is in a profiled package, order preserved."""
    return tuple(
        frame for frame in inverted_stack
        if is_profiled(frame.class_name, profiled_packages)
    )
