"""Plain-text rendering of a catalog view for terminal output."""

from collections.abc import Mapping

import click

from redlist.catalog.measures import MeasuresOutcome
from redlist.catalog.models import Region, Species
from redlist.catalog.orchestrator import CatalogView, PipelineOutcome
from redlist.catalog.request_state import FAILED_TEXT, PENDING_TEXT, RequestState

NO_REGION_TEXT = "No region available."
NO_SPECIES_TEXT = "None found."
NO_MEASURES_TEXT = "No measures found."


def render_measures(outcome: MeasuresOutcome | None) -> str:
    """Render one measures entry; empty results and failures read differently."""
    if outcome is None:
        return PENDING_TEXT
    if not outcome.ok:
        return click.style(outcome.error or FAILED_TEXT, fg="red")
    if outcome.is_empty:
        return click.style(NO_MEASURES_TEXT, dim=True)
    return outcome.measures or ""


def render_region(state: RequestState[Region], outcome: PipelineOutcome) -> str:
    return state.render(
        on_failed=lambda: click.style(FAILED_TEXT, fg="red"),
        on_not_started=lambda: NO_REGION_TEXT if outcome is PipelineOutcome.NO_REGION else "",
        on_pending=lambda: PENDING_TEXT,
        on_ready=lambda region: click.style(region.name, bold=True),
    )


def render_species_list(
    title: str,
    state: RequestState[list[Species]],
    measures: Mapping[int, MeasuresOutcome | None] | None = None,
) -> list[str]:
    """Render a titled species list, optionally with each species' measures."""

    def ready(items: list[Species]) -> list[str]:
        if not items:
            return [f"  {NO_SPECIES_TEXT}"]
        lines = []
        for item in items:
            lines.append(f"  - {click.style(item.scientific_name, italic=True)}")
            if measures is not None and item.taxon_id in measures:
                lines.append(f"      Measures: {render_measures(measures[item.taxon_id])}")
        return lines

    body = state.render_default(ready)
    if isinstance(body, str):
        body = [f"  {body}"] if body else []
    return [click.style(title, underline=True), *body]


def render_view(view: CatalogView) -> str:
    """Render the complete view as multi-line text."""
    lines = [f"Region: {render_region(view.selected_region, view.outcome)}", ""]
    lines.extend(render_species_list("Mammals", view.mammals))
    lines.append("")
    lines.extend(
        render_species_list("Critically endangered", view.critically_endangered, view.measures)
    )
    return "\n".join(lines)
