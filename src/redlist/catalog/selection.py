"""Uniform random selection of a region."""

import random
from collections.abc import Sequence
from typing import Protocol, TypeVar

from redlist.catalog.models import Region

T = TypeVar("T")


class Chooser(Protocol):
    """Source of uniformly distributed indices."""

    def choose_index(self, size: int) -> int:
        """Return an index in ``range(size)``; ``size`` is always positive."""
        ...


class RandomChooser:
    """Chooser backed by ``random.Random``."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def choose_index(self, size: int) -> int:
        return self._random.randrange(size)


class RegionSelector:
    """Pick one region with equal probability for every element."""

    def __init__(self, chooser: Chooser | None = None) -> None:
        self.chooser = chooser or RandomChooser()

    def select_random(self, regions: Sequence[Region]) -> Region | None:
        """Select a region, or ``None`` when there is nothing to choose from."""
        return pick_uniform(regions, self.chooser)


def pick_uniform(items: Sequence[T], chooser: Chooser) -> T | None:
    if not items:
        return None
    index = chooser.choose_index(len(items))
    if not 0 <= index < len(items):
        raise IndexError(f"Chooser returned index {index} for {len(items)} items")
    return items[index]
