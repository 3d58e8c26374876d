"""Async HTTP client for the conservation catalog service.

All endpoints are plain GET requests authenticated with a ``token`` query
parameter. Transport problems surface as ``TransportError`` and unexpected
payloads as ``DecodeError``; callers never see raw httpx exceptions.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from redlist.catalog.exceptions import DecodeError, TransportError
from redlist.catalog.models import (
    MeasuresResponse,
    Region,
    RegionListResponse,
    Species,
    SpeciesListResponse,
)

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

REGIONS_PATH = "region/list"
SPECIES_PATH = "species/region/{identifier}/page/0"
MEASURES_PATH = "measures/species/id/{taxon_id}"


class CatalogClient:
    """Thin typed wrapper around ``httpx.AsyncClient`` for catalog endpoints."""

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the catalog client.

        Args:
            api_url: Base URL of the catalog API, e.g. ``https://apiv3.iucnredlist.org/api/v3/``
            token: API token sent as the ``token`` query parameter
            timeout: Request timeout in seconds when this client owns the connection pool
            client: Optional pre-built httpx client; the caller keeps ownership of it
        """
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying connection pool if this instance created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_regions(self) -> list[Region]:
        """Fetch every region known to the catalog."""
        body = await self._get(REGIONS_PATH, RegionListResponse)
        return [entry.to_region() for entry in body.results]

    async def fetch_species(self, region_id: str) -> list[Species]:
        """Fetch the first page of assessed species for a region."""
        body = await self._get(SPECIES_PATH.format(identifier=region_id), SpeciesListResponse)
        return [entry.to_species() for entry in body.result]

    async def fetch_measures(self, taxon_id: int) -> list[str]:
        """Fetch conservation measure titles for a species."""
        body = await self._get(MEASURES_PATH.format(taxon_id=taxon_id), MeasuresResponse)
        return [measure.title for measure in body.result]

    async def _get(self, path: str, model: type[ResponseModel]) -> ResponseModel:
        url = f"{self.api_url}{path}"
        logger.debug("GET %s", path)
        try:
            response = await self.client.get(url, params={"token": self.token})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"GET {path} returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"GET {path} failed: {e}") from e

        try:
            return model.model_validate(response.json())
        except ValueError as e:  # JSONDecodeError and ValidationError
            raise DecodeError(f"Unexpected response body from {path}: {e}") from e
