"""
Unit tests for the grid registry (geofacet_grid.registry).
"""

from __future__ import annotations

import pytest

from geofacet_grid.config import GeofacetConfig
from geofacet_grid.exceptions import (
    DuplicateGridError,
    GridValidationError,
    UnknownGridError,
)
from geofacet_grid.grid import save_grid
from geofacet_grid.registry import (
    GridRegistry,
    build_registry,
    get_default_registry,
    reset_default_registry,
)


class TestRegister:

    def test_register_and_get(self, ab_grid):
        reg = GridRegistry()
        reg.register(ab_grid)
        assert reg.get("ab") is ab_grid
        assert "ab" in reg
        assert len(reg) == 1

    def test_duplicate_name_rejected(self, registry, grid_factory):
        other = grid_factory("ab", [("Z", "Zeta", 1, 1)])
        with pytest.raises(DuplicateGridError, match="already registered"):
            registry.register(other)
        # Original grid untouched
        assert registry.get("ab").codes == ("A", "B")

    def test_invalid_grid_rejected(self, grid_factory):
        reg = GridRegistry()
        bad = grid_factory("bad", [("A", "Alpha", 1, 1), ("B", "Beta", 1, 1)])
        with pytest.raises(GridValidationError, match="share position"):
            reg.register(bad)
        assert "bad" not in reg

    def test_validation_can_be_skipped(self, grid_factory):
        reg = GridRegistry()
        bad = grid_factory("bad", [("A", "Alpha", 1, 1), ("B", "Beta", 1, 1)])
        result = reg.register(bad, validate_grid=False)
        assert result.ok
        assert "bad" in reg

    def test_sparse_warnings_returned(self, grid_factory):
        reg = GridRegistry()
        far = grid_factory("far", [("A", "Alpha", 1, 1), ("B", "Beta", 1, 20)])
        result = reg.register(far)
        assert result.ok
        assert {w.reason for w in result.warnings} == {"low_density", "isolated_cell"}
        assert "far" in reg

    def test_registry_config_drives_validation(self, grid_factory):
        reg = GridRegistry(GeofacetConfig(check_sparsity=False))
        far = grid_factory("far", [("A", "Alpha", 1, 1), ("B", "Beta", 1, 20)])
        assert reg.register(far).warnings == []


class TestLookup:

    def test_unknown_grid(self, registry):
        with pytest.raises(UnknownGridError, match="Unknown grid 'nope'"):
            registry.get("nope")

    def test_unknown_grid_lists_available(self, registry):
        with pytest.raises(UnknownGridError, match=r"\['ab', 'square'\]"):
            registry.get("nope")

    def test_unknown_grid_is_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.get("nope")

    def test_list_names_sorted(self, grid_factory):
        reg = GridRegistry()
        for name in ["zulu", "alpha", "Mike"]:
            reg.register(grid_factory(name, [("A", "Alpha", 1, 1)]))
        assert reg.list_names() == ["Mike", "alpha", "zulu"]
        assert list(reg) == ["Mike", "alpha", "zulu"]

    def test_repr(self, registry):
        assert repr(registry) == "GridRegistry(grids=['ab', 'square'])"


class TestLoadDirectory:

    def test_loads_grid_files(self, tmp_path, ab_grid, square_grid):
        save_grid(ab_grid, tmp_path / "b.yaml")
        save_grid(square_grid, tmp_path / "a.yaml")
        (tmp_path / "c.csv").write_text("code,name,row,col\nX,Ex,1,1\n")
        (tmp_path / "README.txt").write_text("not a grid")

        reg = GridRegistry()
        names = reg.load_directory(tmp_path)
        # Filename order: a.yaml, b.yaml, c.csv
        assert names == ["square", "ab", "c"]
        assert reg.list_names() == ["ab", "c", "square"]

    def test_unreadable_file_skipped(self, tmp_path, ab_grid):
        save_grid(ab_grid, tmp_path / "good.yaml")
        (tmp_path / "broken.yaml").write_text('name: "broken"\n')
        reg = GridRegistry()
        assert reg.load_directory(tmp_path) == ["ab"]

    def test_duplicate_across_files_raises(self, tmp_path, ab_grid):
        save_grid(ab_grid, tmp_path / "one.yaml")
        save_grid(ab_grid, tmp_path / "two.yaml")
        with pytest.raises(DuplicateGridError):
            GridRegistry().load_directory(tmp_path)

    def test_invalid_grid_file_raises(self, tmp_path):
        (tmp_path / "bad.csv").write_text("code,name,row,col\nA,Alpha,1,1\nB,Beta,1,1\n")
        with pytest.raises(GridValidationError):
            GridRegistry().load_directory(tmp_path)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GridRegistry().load_directory(tmp_path / "missing")


class TestDefaultRegistry:

    def test_cached(self, fresh_default_registry):
        assert get_default_registry() is get_default_registry()

    def test_reset(self, fresh_default_registry):
        first = get_default_registry()
        reset_default_registry()
        assert get_default_registry() is not first

    def test_extra_grid_dirs(self, tmp_path, ab_grid):
        save_grid(ab_grid, tmp_path / "ab.yaml")
        reg = build_registry(GeofacetConfig(grid_dirs=[str(tmp_path)]))
        assert "ab" in reg
        assert "us_state_grid1" in reg
