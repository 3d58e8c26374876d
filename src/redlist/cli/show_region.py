"""CLI for showing the conservation status of a randomly chosen region.

Loads the catalog configuration, runs the region → species → measures
pipeline once and prints the resulting view.
"""

import asyncio
import json
import sys

import click
from dependency_injector import providers

from redlist.catalog.orchestrator import CatalogView
from redlist.catalog.selection import RandomChooser
from redlist.config import ConfigManager, ConfigurationError
from redlist.core.container import Container
from redlist.display.console import render_view
from redlist.system.structlog_configurator import configure_structlog


async def _run_pipeline(container: Container) -> CatalogView:
    """Run the orchestrator and release the HTTP client afterwards."""
    orchestrator = container.orchestrator()
    try:
        return await orchestrator.run()
    finally:
        await container.catalog_client().aclose()


@click.command()
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for region selection, for repeatable output",
)
@click.option(
    "--view-limit",
    type=str,
    default=None,
    help="Maximum number of species per list (overrides VIEW_LIMIT)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the view as JSON instead of formatted text",
)
def show_region(seed: int | None, view_limit: str | None, as_json: bool) -> None:
    """Show mammals and critically endangered species for a random region.

    Examples:
        # Random region using API_URL and TOKEN from the environment
        redlist-show

        # Repeatable selection, at most 5 species per list
        redlist-show --seed 42 --view-limit 5
    """
    container = Container()

    try:
        config = ConfigManager(container.path_resolver()).load(view_limit=view_limit)
    except ConfigurationError as e:
        click.echo(click.style(f"✗ Error: {e}", fg="red", bold=True), err=True)
        sys.exit(1)

    configure_structlog(config)
    container.config.override(providers.Object(config))
    if seed is not None:
        container.chooser.override(providers.Factory(RandomChooser, seed=seed))

    view = asyncio.run(_run_pipeline(container))

    if as_json:
        click.echo(json.dumps(view.to_dict(), indent=2))
    else:
        click.echo(render_view(view))


def main() -> None:
    """Entry point for the redlist-show CLI."""
    show_region()


if __name__ == "__main__":
    main()
