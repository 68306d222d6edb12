"""
Shared test fixtures for geofacet-grid tests.

Small synthetic grids live here so every test module builds them the
same way. Bundled grid names are defined as constants for easy
discovery.
"""

from __future__ import annotations

import pytest

from geofacet_grid.config import GeofacetConfig
from geofacet_grid.grid import GridCell, GridDefinition
from geofacet_grid.registry import GridRegistry, reset_default_registry

# ---------------------------------------------------------------------------
# Bundled grid names -- edit here if grids are renamed or added
# ---------------------------------------------------------------------------
BUILTIN_GRIDS = ["aus_grid1", "london_boroughs_grid", "us_state_grid1"]


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs against bundled grid files)",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def make_grid(name: str, cells: list[tuple[str, str, int, int]], **kwargs) -> GridDefinition:
    """Build a grid from ``(code, name, row, col)`` tuples."""
    return GridDefinition(
        name=name,
        cells=tuple(GridCell(code=c, name=n, row=r, col=k) for c, n, r, k in cells),
        **kwargs,
    )


@pytest.fixture()
def grid_factory():
    """The ``make_grid`` helper, for tests that need their own cells."""
    return make_grid


@pytest.fixture()
def builtin_grid_names() -> list[str]:
    return list(BUILTIN_GRIDS)


@pytest.fixture()
def ab_grid() -> GridDefinition:
    """Two-cell grid: A/Alpha at (1, 1), B/Beta at (1, 2)."""
    return make_grid("ab", [("A", "Alpha", 1, 1), ("B", "Beta", 1, 2)])


@pytest.fixture()
def square_grid() -> GridDefinition:
    """Solid 2x2 grid with cells stored out of layout order."""
    return make_grid(
        "square",
        [
            ("SE", "South East", 2, 2),
            ("NW", "North West", 1, 1),
            ("SW", "South West", 2, 1),
            ("NE", "North East", 1, 2),
        ],
    )


@pytest.fixture()
def registry(ab_grid, square_grid) -> GridRegistry:
    reg = GridRegistry(GeofacetConfig())
    reg.register(ab_grid)
    reg.register(square_grid)
    return reg


@pytest.fixture()
def fresh_default_registry():
    """Rebuild the process-wide registry for the test and drop it afterwards."""
    reset_default_registry()
    yield
    reset_default_registry()
