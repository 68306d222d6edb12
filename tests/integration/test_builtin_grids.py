"""
Integration tests: bundled grid files and the default registry.

Loads the real YAML files shipped in ``geofacet_grid/grids/`` and checks
the structural invariants hold for every one of them.
"""

from __future__ import annotations

from collections import Counter

import pytest

import geofacet_grid
from geofacet_grid.grid import load_grid
from geofacet_grid.registry import BUILTIN_GRIDS_DIR, get_default_registry
from geofacet_grid.validator import validate

pytestmark = pytest.mark.integration


@pytest.fixture()
def default_registry(fresh_default_registry):
    return get_default_registry()


class TestBundledGrids:

    def test_all_bundled_grids_registered(self, default_registry, builtin_grid_names):
        assert default_registry.list_names() == builtin_grid_names

    def test_list_grids_api(self, fresh_default_registry, builtin_grid_names):
        assert geofacet_grid.list_grids() == builtin_grid_names

    @pytest.mark.parametrize("path", sorted(BUILTIN_GRIDS_DIR.glob("*.yaml")), ids=lambda p: p.stem)
    def test_file_name_matches_grid_name(self, path):
        assert load_grid(path).name == path.stem

    def test_no_shared_positions(self, default_registry):
        for name in default_registry:
            grid = default_registry.get(name)
            counts = Counter(c.position for c in grid.cells)
            assert max(counts.values()) == 1, name

    def test_bundled_grids_are_not_sparse(self, default_registry):
        for name in default_registry:
            result = validate(default_registry.get(name))
            assert result.ok, name
            assert result.warnings == [], name

    def test_us_state_grid(self, fresh_default_registry):
        grid = geofacet_grid.get_grid("us_state_grid1")
        assert len(grid.cells) == 51
        assert "DC" in grid.codes
        assert grid.cell_for("CA").position == (5, 2)
        assert (grid.n_rows, grid.n_cols) == (8, 12)

    def test_london_grid(self, fresh_default_registry):
        grid = geofacet_grid.get_grid("london_boroughs_grid")
        assert len(grid.cells) == 33
        assert sorted(grid.codes) == [f"E090000{i:02d}" for i in range(1, 34)]
        assert grid.cell_for("E09000001").name == "City of London"

    def test_aus_grid(self, fresh_default_registry):
        grid = geofacet_grid.get_grid("aus_grid1")
        assert set(grid.codes) == {"ACT", "NSW", "NT", "QLD", "SA", "TAS", "VIC", "WA"}

    def test_unknown_name(self, fresh_default_registry):
        with pytest.raises(geofacet_grid.UnknownGridError):
            geofacet_grid.get_grid("mars_grid1")
