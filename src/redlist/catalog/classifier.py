"""Derive the bounded mammal and critically-endangered views of a species list."""

from collections.abc import Callable, Iterable
from itertools import islice
from typing import NamedTuple

from redlist.catalog.models import Species


class Classification(NamedTuple):
    """Both derived lists, always computed from the same source list."""

    mammals: list[Species]
    critically_endangered: list[Species]


def take_matching(
    species: Iterable[Species], predicate: Callable[[Species], bool], limit: int
) -> list[Species]:
    """Return the first ``limit`` species satisfying ``predicate``, in source order."""
    if limit <= 0:
        return []
    return list(islice((item for item in species if predicate(item)), limit))


def classify(species: list[Species], limit: int) -> Classification:
    """Split a species list into its mammal and critically-endangered views.

    The two filters are independent: a species may appear in both lists,
    either one, or neither.

    Args:
        species: Species list exactly as loaded for the region
        limit: Maximum length of each resulting list

    Returns:
        Classification with both lists truncated to ``limit``
    """
    return Classification(
        mammals=take_matching(species, lambda item: item.is_mammal, limit),
        critically_endangered=take_matching(
            species, lambda item: item.is_critically_endangered, limit
        ),
    )
