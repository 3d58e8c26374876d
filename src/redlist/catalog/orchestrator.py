"""Cascading catalog pipeline.

The pipeline runs four dependent stages followed by a fan-out:

1. load the region list
2. select one region at random
3. load the species list for that region
4. classify species into the mammal and critically-endangered views
5. fetch conservation measures for each critically-endangered species

Every stage stores its result as a ``RequestState`` on the orchestrator. A
failed stage is terminal and only affects the stages after it. Catalog errors
never propagate out of ``run``; they are represented as ``FAILED`` states for
the presentation layer to render.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from redlist.catalog.classifier import Classification, classify
from redlist.catalog.exceptions import CatalogError
from redlist.catalog.measures import MeasuresFanoutCoordinator, MeasuresOutcome
from redlist.catalog.models import Region, Species
from redlist.catalog.request_state import RequestState
from redlist.catalog.selection import Chooser, RegionSelector
from redlist.config.models import DEFAULT_VIEW_LIMIT

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    async def fetch_regions(self) -> list[Region]: ...

    async def fetch_species(self, region_id: str) -> list[Species]: ...

    async def fetch_measures(self, taxon_id: int) -> list[str]: ...


class PipelineOutcome(str, Enum):
    """Where the cascade currently stands or where it stopped."""

    NOT_RUN = "not_run"
    RUNNING = "running"
    COMPLETED = "completed"
    NO_REGION = "no_region"
    REGIONS_FAILED = "regions_failed"
    SPECIES_FAILED = "species_failed"


@dataclass(frozen=True)
class CatalogView:
    """Everything the presentation layer needs, detached from network state."""

    regions: RequestState[list[Region]]
    selected_region: RequestState[Region]
    mammals: RequestState[list[Species]]
    critically_endangered: RequestState[list[Species]]
    measures: Mapping[int, MeasuresOutcome | None] = field(default_factory=dict)
    outcome: PipelineOutcome = PipelineOutcome.NOT_RUN

    def to_dict(self) -> dict[str, Any]:
        """Serialise the view to plain JSON-compatible data."""

        def state(request_state: RequestState[Any], on_ready: Callable[[Any], Any]) -> dict:
            data: dict[str, Any] = {"status": request_state.status.value}
            if request_state.is_ready:
                data["value"] = on_ready(request_state.value)
            return data

        def species_list(items: list[Species]) -> list[dict[str, Any]]:
            return [item._asdict() for item in items]

        return {
            "outcome": self.outcome.value,
            "regions": state(self.regions, lambda items: [item._asdict() for item in items]),
            "selected_region": state(self.selected_region, lambda region: region._asdict()),
            "mammals": state(self.mammals, species_list),
            "critically_endangered": state(self.critically_endangered, species_list),
            "measures": {
                str(taxon_id): None
                if outcome is None
                else {"measures": outcome.measures, "error": outcome.error}
                for taxon_id, outcome in self.measures.items()
            },
        }


class CatalogOrchestrator:
    """Run the region → species → measures cascade and own its state."""

    def __init__(
        self,
        source: CatalogSource,
        view_limit: int = DEFAULT_VIEW_LIMIT,
        chooser: Chooser | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            source: Catalog client used for every fetch
            view_limit: Maximum size of each surfaced list and of the measures fan-out
            chooser: Index source for region selection; random when omitted
        """
        self.source = source
        self.view_limit = view_limit
        self.selector = RegionSelector(chooser)
        self.coordinator = MeasuresFanoutCoordinator(source, on_update=self._on_measures)

        self.regions: RequestState[list[Region]] = RequestState.not_started()
        self.selected_region: RequestState[Region] = RequestState.not_started()
        self.species: RequestState[list[Species]] = RequestState.not_started()
        self.mammals: RequestState[list[Species]] = RequestState.not_started()
        self.critically_endangered: RequestState[list[Species]] = RequestState.not_started()
        self.outcome = PipelineOutcome.NOT_RUN

        self._listeners: list[Callable[[CatalogView], None]] = []

    def add_listener(self, listener: Callable[[CatalogView], None]) -> None:
        """Register a callback receiving a fresh snapshot after every change."""
        self._listeners.append(listener)

    def snapshot(self) -> CatalogView:
        return CatalogView(
            regions=self.regions,
            selected_region=self.selected_region,
            mammals=self.mammals,
            critically_endangered=self.critically_endangered,
            measures=self.coordinator.index.snapshot(),
            outcome=self.outcome,
        )

    async def run(self) -> CatalogView:
        """Run the whole cascade once and return the final view.

        Raises:
            RuntimeError: If the pipeline has already been run on this instance
        """
        if self.outcome is not PipelineOutcome.NOT_RUN:
            raise RuntimeError("Catalog pipeline can only be run once per orchestrator")
        self.outcome = PipelineOutcome.RUNNING

        regions = await self.load_regions()
        if not regions.is_ready:
            return self._finish(PipelineOutcome.REGIONS_FAILED)

        region = self.select_region(regions.value or [])
        if region is None:
            return self._finish(PipelineOutcome.NO_REGION)

        species = await self.load_species(region.identifier)
        if not species.is_ready:
            return self._finish(PipelineOutcome.SPECIES_FAILED)

        classification = self.classify(species.value or [])
        await self.coordinator.fan_out(classification.critically_endangered)
        return self._finish(PipelineOutcome.COMPLETED)

    async def load_regions(self) -> RequestState[list[Region]]:
        """Fetch the region list; on failure the selected region fails with it."""
        self._set("regions", RequestState.pending())
        self._notify()
        try:
            regions = await self.source.fetch_regions()
        except CatalogError as e:
            logger.warning("Region list failed to load: %s", e)
            self._set("regions", RequestState.failed())
            self._set("selected_region", RequestState.failed())
        else:
            logger.info("Loaded %d regions", len(regions))
            self._set("regions", RequestState.ready(regions))
        self._notify()
        return self.regions

    def select_region(self, regions: list[Region]) -> Region | None:
        """Pick the region to display; ``None`` leaves the selection not started."""
        region = self.selector.select_random(regions)
        if region is None:
            logger.info("Region list is empty, nothing to select")
            return None
        logger.info("Selected region %s", region)
        self._set("selected_region", RequestState.ready(region))
        self._notify()
        return region

    async def load_species(self, region_id: str) -> RequestState[list[Species]]:
        """Fetch species for a region; on failure both derived views fail together."""
        self._set("species", RequestState.pending())
        self._set("mammals", RequestState.pending())
        self._set("critically_endangered", RequestState.pending())
        self._notify()
        try:
            species = await self.source.fetch_species(region_id)
        except CatalogError as e:
            logger.warning("Species list for region %s failed to load: %s", region_id, e)
            self._set("species", RequestState.failed())
            self._set("mammals", RequestState.failed())
            self._set("critically_endangered", RequestState.failed())
            self._notify()
        else:
            logger.info("Loaded %d species for region %s", len(species), region_id)
            self._set("species", RequestState.ready(species))
        return self.species

    def classify(self, species: list[Species]) -> Classification:
        """Derive both bounded views and publish them in one step."""
        classification = classify(species, self.view_limit)
        self._set("mammals", RequestState.ready(classification.mammals))
        self._set(
            "critically_endangered", RequestState.ready(classification.critically_endangered)
        )
        logger.info(
            "Classified species: %d mammals, %d critically endangered (limit %d)",
            len(classification.mammals),
            len(classification.critically_endangered),
            self.view_limit,
        )
        self._notify()
        return classification

    def _set(self, name: str, state: RequestState[Any]) -> None:
        current: RequestState[Any] = getattr(self, name)
        # Synchronous stages resolve without an observable pending phase.
        if current.is_not_started and state.is_terminal:
            current = current.advance(RequestState.pending())
        setattr(self, name, current.advance(state))

    def _finish(self, outcome: PipelineOutcome) -> CatalogView:
        self.outcome = outcome
        logger.info("Catalog pipeline finished: %s", outcome.value)
        self._notify()
        return self.snapshot()

    def _on_measures(self, taxon_id: int, outcome: MeasuresOutcome) -> None:
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        view = self.snapshot()
        for listener in self._listeners:
            listener(view)
