"""Tests for the CatalogOrchestrator cascade."""

import asyncio

import httpx
import pytest
from catalog_helpers import FakeCatalogSource, FixedChooser, make_species

from redlist.catalog.client import CatalogClient
from redlist.catalog.models import Region
from redlist.catalog.orchestrator import CatalogOrchestrator, CatalogView, PipelineOutcome
from redlist.catalog.request_state import RequestState, RequestStatus
from redlist.config.models import DEFAULT_VIEW_LIMIT, RedListConfig


@pytest.fixture
def orchestrator(fake_source):
    """Create an orchestrator that always selects the second region."""
    return CatalogOrchestrator(fake_source, view_limit=10, chooser=FixedChooser(1))


class TestCatalogOrchestratorScenarios:
    """End-to-end runs of the cascade against a fake catalog."""

    @pytest.mark.asyncio
    async def test_forced_selection_and_classification(self, orchestrator, fake_source, regions):
        """Should select R2, classify its species and fetch measures for the CR list."""
        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.COMPLETED
        assert view.regions == RequestState.ready(regions)
        assert view.selected_region == RequestState.ready(regions[1])
        assert fake_source.species_calls == ["mediterranean"]
        assert [s.taxon_id for s in view.mammals.value] == [1, 4]
        assert [s.taxon_id for s in view.critically_endangered.value] == [2, 4, 5]
        assert sorted(fake_source.measures_calls) == [2, 4, 5]
        assert view.measures[2].measures == "Site/area protection, Species recovery"
        assert view.measures[4].measures == "Awareness & communications"
        assert view.measures[5].measures == "Harvest management"

    @pytest.mark.asyncio
    async def test_species_failure_fails_both_views(self, regions):
        """Should fail mammals and critically endangered together, with no fan-out."""
        source = FakeCatalogSource(regions=regions, failing_species=True)
        orchestrator = CatalogOrchestrator(source, chooser=FixedChooser(0))

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.SPECIES_FAILED
        assert view.selected_region == RequestState.ready(regions[0])
        assert view.mammals.is_failed is True
        assert view.critically_endangered.is_failed is True
        assert orchestrator.species.is_failed is True
        assert source.measures_calls == []
        assert dict(view.measures) == {}

    @pytest.mark.asyncio
    async def test_view_limit_bounds_fan_out(self, regions):
        """Should fetch measures only for the first three CR species when the limit is "3"."""
        cr_species = [make_species(100 + i, category="CR") for i in range(7)]
        source = FakeCatalogSource(
            regions=regions,
            species={"europe": cr_species},
            measures={taxon.taxon_id: ["Measure"] for taxon in cr_species},
        )
        config = RedListConfig(api_url="https://api.example.org", token="t", view_limit="3")
        orchestrator = CatalogOrchestrator(
            source, view_limit=config.view_limit, chooser=FixedChooser(0)
        )

        view = await orchestrator.run()

        assert source.measures_calls == [100, 101, 102]
        assert [s.taxon_id for s in view.critically_endangered.value] == [100, 101, 102]
        assert list(view.measures) == [100, 101, 102]

    @pytest.mark.asyncio
    async def test_empty_measures_distinct_from_failure(self, regions):
        """Should store an empty string for no measures and an error for a failed fetch."""
        species = [make_species(1, category="CR"), make_species(2, category="CR")]
        source = FakeCatalogSource(
            regions=regions,
            species={"europe": species},
            measures={1: []},
            failing_measures={2},
        )
        orchestrator = CatalogOrchestrator(source, chooser=FixedChooser(0))

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.COMPLETED
        assert view.measures[1].ok is True
        assert view.measures[1].measures == ""
        assert view.measures[2].ok is False
        assert view.measures[2].error == "Something happened."

    @pytest.mark.asyncio
    async def test_empty_region_list_halts_without_failure(self):
        """Should stop after selection without loading species or failing."""
        source = FakeCatalogSource(regions=[])
        orchestrator = CatalogOrchestrator(source)

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.NO_REGION
        assert view.regions == RequestState.ready([])
        assert view.selected_region.is_not_started is True
        assert view.mammals.is_not_started is True
        assert view.critically_endangered.is_not_started is True
        assert source.species_calls == []
        assert source.measures_calls == []

    @pytest.mark.asyncio
    async def test_region_failure_halts_pipeline(self):
        """Should fail the region stage and its selection, and go no further."""
        source = FakeCatalogSource(failing_regions=True)
        orchestrator = CatalogOrchestrator(source)

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.REGIONS_FAILED
        assert view.regions.is_failed is True
        assert view.selected_region.is_failed is True
        assert view.mammals.is_not_started is True
        assert [name for name, _ in source.calls] == ["regions"]

    @pytest.mark.asyncio
    async def test_no_critically_endangered_species(self, regions):
        """Should complete with no measures fetches when nothing is CR."""
        source = FakeCatalogSource(
            regions=regions, species={"europe": [make_species(1, class_name="MAMMALIA")]}
        )
        orchestrator = CatalogOrchestrator(source, chooser=FixedChooser(0))

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.COMPLETED
        assert view.critically_endangered == RequestState.ready([])
        assert [s.taxon_id for s in view.mammals.value] == [1]
        assert source.measures_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,cr_count", [(0, 4), (1, 4), (4, 4), (10, 4), (2, 0)])
    async def test_fan_out_count_is_min_of_limit_and_cr(self, regions, limit, cr_count):
        """Should issue exactly min(limit, CR count) measures fetches."""
        species = [make_species(i, category="CR") for i in range(cr_count)]
        species += [make_species(50 + i, category="LC") for i in range(3)]
        source = FakeCatalogSource(regions=regions, species={"europe": species})
        orchestrator = CatalogOrchestrator(source, view_limit=limit, chooser=FixedChooser(0))

        await orchestrator.run()

        assert len(source.measures_calls) == min(limit, cr_count)
        assert len(set(source.measures_calls)) == len(source.measures_calls)


class TestCatalogOrchestratorState:
    """Test state transitions and the produced view."""

    @pytest.mark.asyncio
    async def test_run_only_once(self, orchestrator):
        """Should refuse to run the cascade a second time."""
        await orchestrator.run()

        with pytest.raises(RuntimeError):
            await orchestrator.run()

    def test_default_view_limit_matches_config(self):
        """Should share the configuration default view limit."""
        orchestrator = CatalogOrchestrator(FakeCatalogSource())

        assert orchestrator.view_limit == DEFAULT_VIEW_LIMIT == RedListConfig(
            api_url="https://api.example.org", token="t"
        ).view_limit

    def test_initial_snapshot(self, orchestrator):
        """Should report every stage as not started before running."""
        view = orchestrator.snapshot()

        assert view.outcome is PipelineOutcome.NOT_RUN
        assert view.regions.is_not_started is True
        assert view.selected_region.is_not_started is True
        assert view.mammals.is_not_started is True
        assert view.critically_endangered.is_not_started is True
        assert dict(view.measures) == {}

    @pytest.mark.asyncio
    async def test_listener_sees_monotonic_progress(self, orchestrator):
        """Should publish snapshots whose stage statuses only move forward."""
        views: list[CatalogView] = []
        orchestrator.add_listener(views.append)

        await orchestrator.run()

        order = [
            RequestStatus.NOT_STARTED,
            RequestStatus.PENDING,
            RequestStatus.READY,
        ]
        for attribute in ("regions", "selected_region", "mammals", "critically_endangered"):
            statuses = [getattr(view, attribute).status for view in views]
            positions = [order.index(status) for status in statuses]
            assert positions == sorted(positions), attribute

        assert views[0].regions.is_pending is True
        assert views[-1].outcome is PipelineOutcome.COMPLETED

    @pytest.mark.asyncio
    async def test_derived_views_change_together(self, orchestrator):
        """Should never publish mammals and critically endangered in different statuses."""
        views: list[CatalogView] = []
        orchestrator.add_listener(views.append)

        await orchestrator.run()

        for view in views:
            assert view.mammals.status is view.critically_endangered.status

    @pytest.mark.asyncio
    async def test_listener_sees_each_measures_result(self, orchestrator):
        """Should publish a snapshot after every measures outcome."""
        views: list[CatalogView] = []
        orchestrator.add_listener(views.append)

        await orchestrator.run()

        resolved_counts = [
            sum(outcome is not None for outcome in view.measures.values()) for view in views
        ]
        assert {1, 2, 3} <= set(resolved_counts)

    @pytest.mark.asyncio
    async def test_in_flight_measures_visible_in_snapshot(self, fake_source):
        """Should expose pending measures as None while their fetch is outstanding."""
        fake_source.measure_gates = {4: asyncio.Event()}
        orchestrator = CatalogOrchestrator(fake_source, chooser=FixedChooser(0))

        task = asyncio.create_task(orchestrator.run())
        for _ in range(10):
            await asyncio.sleep(0)

        view = orchestrator.snapshot()
        assert view.outcome is PipelineOutcome.RUNNING
        assert view.measures[4] is None
        assert view.measures[2] is not None
        assert view.measures[5] is not None

        fake_source.measure_gates[4].set()
        view = await task

        assert view.measures[4].measures == "Awareness & communications"

    @pytest.mark.asyncio
    async def test_selected_region_is_member_of_regions(self, fake_source, regions):
        """Should only ever select a loaded region."""
        orchestrator = CatalogOrchestrator(fake_source)

        view = await orchestrator.run()

        assert view.selected_region.value in view.regions.value

    @pytest.mark.asyncio
    async def test_to_dict(self, orchestrator):
        """Should serialise the view to JSON-compatible data."""
        view = await orchestrator.run()

        data = view.to_dict()

        assert data["outcome"] == "completed"
        assert data["selected_region"] == {
            "status": "ready",
            "value": {"name": "Mediterranean", "identifier": "mediterranean"},
        }
        assert [item["taxon_id"] for item in data["mammals"]["value"]] == [1, 4]
        assert data["measures"]["5"] == {"measures": "Harvest management", "error": None}

    def test_to_dict_failed_state_has_no_value(self):
        """Should omit the value for non-ready states."""
        view = CatalogView(
            regions=RequestState.failed(),
            selected_region=RequestState.failed(),
            mammals=RequestState.not_started(),
            critically_endangered=RequestState.not_started(),
            outcome=PipelineOutcome.REGIONS_FAILED,
        )

        data = view.to_dict()

        assert data["regions"] == {"status": "failed"}
        assert data["measures"] == {}


class TestCatalogOrchestratorWithClient:
    """Run the cascade against a real CatalogClient on a mocked transport."""

    @pytest.mark.asyncio
    async def test_malformed_api_url_fails_region_stage(self):
        """Should record a malformed base URL as a failed region load."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"results": []}))
        client = CatalogClient(
            "http://[::1/", "t", client=httpx.AsyncClient(transport=transport)
        )
        orchestrator = CatalogOrchestrator(client)

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.REGIONS_FAILED
        assert view.regions.is_failed is True
        assert view.selected_region.is_failed is True

    @pytest.mark.asyncio
    async def test_unusable_region_identifier_fails_species_stage(self):
        """Should record a species load for an identifier that cannot form a URL as failed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"results": [{"name": "Broken", "identifier": "broken\x01"}]}
            )

        client = CatalogClient(
            "https://api.example.org/v3/",
            "t",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        orchestrator = CatalogOrchestrator(client)

        view = await orchestrator.run()

        assert view.outcome is PipelineOutcome.SPECIES_FAILED
        assert view.mammals.is_failed is True
        assert view.critically_endangered.is_failed is True


@pytest.mark.asyncio
async def test_selection_uses_region_identifier():
    """Should request species using the selected region's identifier, not its name."""
    region = Region(name="Pan Africa", identifier="pan-africa")
    source = FakeCatalogSource(regions=[region])
    orchestrator = CatalogOrchestrator(source)

    await orchestrator.run()

    assert source.species_calls == ["pan-africa"]
