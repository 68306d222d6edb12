"""
geofacet-grid: lay out small-multiple facets on a geographic grid.

A geofacet arranges one small chart per region in a grid that
approximates real-world adjacency, without any map projection. This
package resolves the layout only; drawing is left to whatever plotting
library consumes the result.

Public API surface:

- ``facet_geo(data, key_field, grid, ...)`` -- **recommended entry point**.
  Joins a dataset against a named or ad hoc grid and returns a
  ``FacetAssignment`` (cells ordered by ``(row, col)``, each with its
  matching records, plus any unmatched-key warnings).

- ``get_grid(name)`` / ``list_grids()`` -- look up the bundled grids
  (``us_state_grid1``, ``london_boroughs_grid``, ``aus_grid1``) and any
  grids added through ``GeofacetConfig.grid_dirs``.

- ``validate(grid)`` -- check a grid's structural invariants.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from geofacet_grid.config import GeofacetConfig, load_config, save_config
from geofacet_grid.exceptions import (
    DuplicateGridError,
    GeofacetGridError,
    GridValidationError,
    MissingKeyFieldError,
    SparseGridWarning,
    UnknownGridError,
    UnmatchedKeyError,
    UnmatchedKeyWarning,
)
from geofacet_grid.grid import GridCell, GridDefinition, grid_from_frame, load_grid
from geofacet_grid.registry import GridRegistry, get_default_registry
from geofacet_grid.resolver import FacetAssignment, FacetCell, FacetResolver
from geofacet_grid.validator import ValidationResult, validate

__all__ = [
    "facet_geo",
    "get_grid",
    "list_grids",
    "validate",
    "load_grid",
    "grid_from_frame",
    "load_config",
    "save_config",
    "GeofacetConfig",
    "GridCell",
    "GridDefinition",
    "GridRegistry",
    "FacetAssignment",
    "FacetCell",
    "FacetResolver",
    "ValidationResult",
    "GeofacetGridError",
    "DuplicateGridError",
    "UnknownGridError",
    "MissingKeyFieldError",
    "UnmatchedKeyError",
    "GridValidationError",
    "UnmatchedKeyWarning",
    "SparseGridWarning",
]

logger = logging.getLogger(__name__)

DEFAULT_GRID = "us_state_grid1"


def facet_geo(
    data: pd.DataFrame | Iterable[Mapping[str, Any]],
    key_field: str,
    grid: str | GridDefinition = DEFAULT_GRID,
    *,
    policy: str | None = None,
    label_field: str | None = None,
    registry: GridRegistry | None = None,
) -> FacetAssignment:
    """Assign each record of *data* to its grid cell.

    Args:
        data: DataFrame (or iterable of mappings) with a key column.
        key_field: Column holding region codes, matched exactly against
            the grid's ``code`` values.
        grid: A registered grid name or an ad hoc ``GridDefinition``.
        policy: Unmatched-key policy (``ignore`` | ``warn`` | ``strict``).
            Defaults to the registry config's ``unmatched_policy``.
        label_field: Optional column whose values replace grid names as
            facet labels.
        registry: Registry for name lookup. Defaults to the process-wide
            registry with the bundled grids.

    Returns:
        A ``FacetAssignment``.

    Examples::

        df = pd.DataFrame({"state": ["CA", "NY"], "rate": [4.1, 3.9]})
        layout = geofacet_grid.facet_geo(df, "state")
        layout["CA"].row, layout["CA"].col   # (5, 2)
        layout.to_long_frame()               # records + facet_row/col/label
    """
    resolver = FacetResolver(registry)
    return resolver.resolve(
        data, key_field, grid, policy=policy, label_field=label_field
    )


def get_grid(name: str) -> GridDefinition:
    """Return a grid from the default registry.

    Raises:
        UnknownGridError: If *name* is not registered.
    """
    return get_default_registry().get(name)


def list_grids() -> list[str]:
    """Names of all grids in the default registry, sorted."""
    return get_default_registry().list_names()
