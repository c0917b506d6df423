"""Checks that the identifier ranges of sub-manifests do not overlap."""

from collections.abc import Sequence
from itertools import pairwise

from devour.errors import RangeError
from devour.models.manifests import SubFileDeclaration


def describe(index: int, declaration: SubFileDeclaration) -> str:
    """Name a declaration for error messages."""
    return f"sub-file #{index} ({declaration.path}) [{declaration.start}, {declaration.end}]"


def check_ranges(declarations: Sequence[SubFileDeclaration]) -> None:
    """Check that every declared range is well formed and that no two overlap.

    Declarations are sorted by start (stably, so ties keep declaration order)
    and adjacent pairs compared; the outcome does not depend on the order
    the sub-files are declared in.

    Args:
        declarations (Sequence[SubFileDeclaration]): The sub-file declarations.

    Raises:
        RangeError: If a range has start > end, or two ranges overlap.
    """
    for i, declaration in enumerate(declarations):
        if declaration.start > declaration.end:
            msg = f"Malformed range for {describe(i, declaration)}: start is greater than end"
            raise RangeError(msg)
    ordered = sorted(enumerate(declarations), key=lambda pair: pair[1].start)
    for (i, current), (j, following) in pairwise(ordered):
        if current.end >= following.start:
            msg = f"Overlapping ranges: {describe(i, current)} overlaps {describe(j, following)}"
            raise RangeError(msg)
