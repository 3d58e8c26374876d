"""Catalog domain package.

This package contains the conservation catalog pipeline:
- CatalogClient: Async HTTP access to the catalog endpoints
- RequestState: Lifecycle wrapper for each fetched quantity
- RegionSelector / classify: Pure selection and filtering stages
- MeasuresFanoutCoordinator: Concurrent per-species measures fetching
- CatalogOrchestrator: Runs the cascade and produces a CatalogView
"""

from redlist.catalog.classifier import Classification, classify
from redlist.catalog.client import CatalogClient
from redlist.catalog.exceptions import CatalogError, DecodeError, TransportError
from redlist.catalog.measures import MeasuresFanoutCoordinator, MeasuresIndex, MeasuresOutcome
from redlist.catalog.models import Region, Species
from redlist.catalog.orchestrator import CatalogOrchestrator, CatalogView, PipelineOutcome
from redlist.catalog.request_state import RequestState, RequestStatus
from redlist.catalog.selection import RegionSelector

__all__ = [
    "CatalogClient",
    "CatalogError",
    "CatalogOrchestrator",
    "CatalogView",
    "Classification",
    "DecodeError",
    "MeasuresFanoutCoordinator",
    "MeasuresIndex",
    "MeasuresOutcome",
    "PipelineOutcome",
    "Region",
    "RegionSelector",
    "RequestState",
    "RequestStatus",
    "Species",
    "TransportError",
    "classify",
]
