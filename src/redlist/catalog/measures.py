"""Concurrent per-species fetching of conservation measures.

One fetch is issued per critically-endangered species. Each fetch resolves
on its own: a failure is recorded against that species only and never
delays, cancels or overwrites any sibling.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Protocol

from redlist.catalog.exceptions import CatalogError, DuplicateMeasuresError
from redlist.catalog.models import Species

logger = logging.getLogger(__name__)

MEASURES_ERROR_MESSAGE = "Something happened."
MEASURES_SEPARATOR = ", "


class MeasuresSource(Protocol):
    async def fetch_measures(self, taxon_id: int) -> list[str]: ...


@dataclass(frozen=True)
class MeasuresOutcome:
    """Terminal result of one measures fetch: joined titles or an error message."""

    measures: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, titles: Sequence[str]) -> "MeasuresOutcome":
        return cls(measures=MEASURES_SEPARATOR.join(titles))

    @classmethod
    def failure(cls, message: str = MEASURES_ERROR_MESSAGE) -> "MeasuresOutcome":
        return cls(error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        """True for a successful fetch that returned no measures."""
        return self.ok and not self.measures


class MeasuresIndex:
    """Per-taxon measures outcomes owned by a single coordinator.

    A key is added by ``mark_pending`` when its fetch is issued (value
    ``None``) and receives exactly one terminal value through ``record``.
    Keys are never removed.
    """

    def __init__(self) -> None:
        self._entries: dict[int, MeasuresOutcome | None] = {}

    def __contains__(self, taxon_id: object) -> bool:
        return taxon_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def get(self, taxon_id: int) -> MeasuresOutcome | None:
        return self._entries.get(taxon_id)

    def mark_pending(self, taxon_id: int) -> None:
        if taxon_id in self._entries:
            raise DuplicateMeasuresError(taxon_id, "fetch already issued")
        self._entries[taxon_id] = None

    def record(self, taxon_id: int, outcome: MeasuresOutcome) -> None:
        if taxon_id not in self._entries:
            raise DuplicateMeasuresError(taxon_id, "no fetch was issued")
        if self._entries[taxon_id] is not None:
            raise DuplicateMeasuresError(taxon_id, "outcome already recorded")
        self._entries[taxon_id] = outcome

    def pending(self) -> list[int]:
        return [taxon_id for taxon_id, outcome in self._entries.items() if outcome is None]

    def is_complete(self) -> bool:
        return all(outcome is not None for outcome in self._entries.values())

    def snapshot(self) -> Mapping[int, MeasuresOutcome | None]:
        """Read-only copy of the current entries."""
        return MappingProxyType(dict(self._entries))


class MeasuresFanoutCoordinator:
    """Issue one measures fetch per species and accumulate the outcomes."""

    def __init__(
        self,
        source: MeasuresSource,
        on_update: Callable[[int, MeasuresOutcome], None] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            source: Object providing ``fetch_measures(taxon_id)``
            on_update: Optional callback invoked after each outcome is recorded
        """
        self.source = source
        self.on_update = on_update
        self.index = MeasuresIndex()
        self.stats = {"issued": 0, "succeeded": 0, "failed": 0}

    async def fan_out(self, species: Sequence[Species]) -> MeasuresIndex:
        """Fetch measures for every species concurrently.

        The species list is expected to be limited already; every entry
        receives a fetch, except repeated taxon ids which are fetched once.

        Returns:
            The coordinator's index, with every issued key resolved
        """
        tasks = []
        for item in species:
            if item.taxon_id in self.index:
                logger.debug("Skipping duplicate measures fetch for taxon %d", item.taxon_id)
                continue
            self.index.mark_pending(item.taxon_id)
            self.stats["issued"] += 1
            tasks.append(asyncio.create_task(self._fetch_one(item.taxon_id)))

        if not tasks:
            logger.debug("No species require measures")
            return self.index

        logger.info("Fetching measures for %d species", len(tasks))

        # Each task records its own outcome; gather only waits for all of them.
        # Anything surfacing here is a broken index invariant or a listener bug.
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        logger.info(
            "Measures fan-out finished (%d succeeded, %d failed)",
            self.stats["succeeded"],
            self.stats["failed"],
        )
        return self.index

    async def _fetch_one(self, taxon_id: int) -> None:
        try:
            titles = await self.source.fetch_measures(taxon_id)
        except CatalogError as e:
            logger.warning("Measures fetch failed for taxon %d: %s", taxon_id, e)
            outcome = MeasuresOutcome.failure()
            self.stats["failed"] += 1
        except Exception as e:
            logger.exception("Unexpected measures error for taxon %d: %s", taxon_id, e)
            outcome = MeasuresOutcome.failure()
            self.stats["failed"] += 1
        else:
            logger.debug("Received %d measures for taxon %d", len(titles), taxon_id)
            outcome = MeasuresOutcome.success(titles)
            self.stats["succeeded"] += 1

        self.index.record(taxon_id, outcome)
        if self.on_update is not None:
            self.on_update(taxon_id, outcome)
