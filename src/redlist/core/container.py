"""Dependency injection container for the redlist-pi application."""

from dependency_injector import containers, providers

from redlist.catalog.client import CatalogClient
from redlist.catalog.orchestrator import CatalogOrchestrator
from redlist.catalog.selection import RandomChooser
from redlist.config import ConfigManager, RedListConfig
from redlist.system.path_resolver import PathResolver


def load_config(path_resolver: PathResolver) -> RedListConfig:
    """Load configuration through a ConfigManager bound to the given resolver."""
    return ConfigManager(path_resolver).load()


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Configuration and the HTTP client are singletons; every orchestrator is a
    fresh instance since a pipeline runs only once.
    """

    path_resolver = providers.Singleton(PathResolver)

    config = providers.Singleton(
        load_config,
        path_resolver=path_resolver,
    )

    catalog_client = providers.Singleton(
        CatalogClient,
        api_url=config.provided.api_url,
        token=config.provided.token,
        timeout=config.provided.request_timeout,
    )

    chooser = providers.Factory(RandomChooser)

    orchestrator = providers.Factory(
        CatalogOrchestrator,
        source=catalog_client,
        view_limit=config.provided.view_limit,
        chooser=chooser,
    )
