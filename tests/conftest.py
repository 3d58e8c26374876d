from pathlib import Path

import pytest
from catalog_helpers import FakeCatalogSource, make_species

from redlist.catalog.models import Region, Species
from redlist.config.models import RedListConfig
from redlist.system.path_resolver import PathResolver


@pytest.fixture(autouse=True)
def clear_catalog_env(monkeypatch):
    """Keep the developer's API_URL/TOKEN/VIEW_LIMIT out of every test."""
    for name in ("API_URL", "TOKEN", "VIEW_LIMIT", "REDLIST_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver that keeps config and data inside a temp directory."""
    resolver = PathResolver()
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    resolver.data_dir = tmp_path / "data"
    resolver.get_redlist_config_path = lambda: config_dir / "redlist.yaml"
    resolver.get_data_dir = lambda: tmp_path / "data"
    return resolver


@pytest.fixture
def test_config() -> RedListConfig:
    """Provide a valid configuration pointing at a fake API."""
    return RedListConfig(api_url="https://api.example.org/v3", token="test-token")


@pytest.fixture
def regions() -> list[Region]:
    """Three regions, in catalog order."""
    return [
        Region(name="Europe", identifier="europe"),
        Region(name="Mediterranean", identifier="mediterranean"),
        Region(name="Pan-Africa", identifier="pan-africa"),
    ]


@pytest.fixture
def mixed_species() -> list[Species]:
    """Two mammals and three critically endangered species, interleaved."""
    return [
        make_species(1, class_name="MAMMALIA", category="LC", scientific_name="Lynx pardinus"),
        make_species(2, class_name="AVES", category="CR", scientific_name="Numenius tenuirostris"),
        make_species(3, class_name="REPTILIA", category="EN"),
        make_species(4, class_name="MAMMALIA", category="CR", scientific_name="Monachus monachus"),
        make_species(5, class_name="ACTINOPTERYGII", category="CR", scientific_name="Huso huso"),
        make_species(6, class_name="AMPHIBIA", category="VU"),
    ]


@pytest.fixture
def fake_source(regions, mixed_species) -> FakeCatalogSource:
    """Provide a FakeCatalogSource serving the mixed species list for every region."""
    return FakeCatalogSource(
        regions=regions,
        species={region.identifier: mixed_species for region in regions},
        measures={
            2: ["Site/area protection", "Species recovery"],
            4: ["Awareness & communications"],
            5: ["Harvest management"],
        },
    )
