"""Catalog data models.

``Region`` and ``Species`` are the lightweight runtime records used by the
pipeline. The ``*Response`` pydantic models describe the JSON documents
returned by the catalog service and are only used at the client boundary.
"""

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

MAMMAL_CLASS = "MAMMALIA"
CRITICALLY_ENDANGERED = "CR"


class Region(NamedTuple):
    """A region listed by the catalog service."""

    name: str  # Display name, e.g., "Mediterranean"
    identifier: str  # Catalog key, e.g., "mediterranean"

    def __str__(self) -> str:
        return f"{self.name} ({self.identifier})"


class Species(NamedTuple):
    """Assessed species record for a region."""

    scientific_name: str  # e.g., "Monachus monachus"
    taxon_id: int  # Catalog primary key
    class_name: str  # Taxonomic class, e.g., "MAMMALIA"
    category: str  # Red List category code, e.g., "CR"

    @property
    def is_mammal(self) -> bool:
        return self.class_name == MAMMAL_CLASS

    @property
    def is_critically_endangered(self) -> bool:
        return self.category == CRITICALLY_ENDANGERED

    def __str__(self) -> str:
        return f"{self.scientific_name} [{self.category}]"


class RegionPayload(BaseModel):
    """Single entry of the ``region/list`` response."""

    model_config = ConfigDict(extra="ignore")

    name: str
    identifier: str

    def to_region(self) -> Region:
        return Region(name=self.name, identifier=self.identifier)


class RegionListResponse(BaseModel):
    """Body of ``region/list``."""

    model_config = ConfigDict(extra="ignore")

    results: list[RegionPayload]


class SpeciesPayload(BaseModel):
    """Single entry of the ``species/region/{identifier}/page/0`` response."""

    model_config = ConfigDict(extra="ignore")

    scientific_name: str
    taxonid: int
    class_name: str
    category: str

    def to_species(self) -> Species:
        return Species(
            scientific_name=self.scientific_name,
            taxon_id=self.taxonid,
            class_name=self.class_name,
            category=self.category,
        )


class SpeciesListResponse(BaseModel):
    """Body of ``species/region/{identifier}/page/0``."""

    model_config = ConfigDict(extra="ignore")

    result: list[SpeciesPayload]


class MeasurePayload(BaseModel):
    """Single conservation measure."""

    model_config = ConfigDict(extra="ignore")

    title: str


class MeasuresResponse(BaseModel):
    """Body of ``measures/species/id/{taxonid}``."""

    model_config = ConfigDict(extra="ignore")

    result: list[MeasurePayload]
