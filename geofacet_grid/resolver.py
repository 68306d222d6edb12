"""
Facet resolver: join a dataset against a layout grid.

Given a dataset with a key column and a grid, produce a
``FacetAssignment``: one ``FacetCell`` per grid cell, ordered by
``(row, col)``, each holding the dataset rows whose key equals the
cell's code.

Matching rules:
- Exact, case-sensitive equality between the key value and the cell
  code. No trimming, case folding or type coercion is applied.
- Matching never looks at positions. Two transposed grid entries
  (e.g., Richmond and Kingston swapped) move where data is drawn, not
  which rows each code receives.
- Grid cells with no data are kept as empty cells.
- Data keys with no grid cell follow the unmatched policy:
  ``ignore`` drops them, ``warn`` drops them and records one
  ``UnmatchedKeyWarning`` per key, ``strict`` raises ``UnmatchedKeyError``.

The resolver reads no geometry. It is a relational join plus a
deterministic ordering, and it holds no mutable state between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from geofacet_grid.config import GeofacetConfig
from geofacet_grid.exceptions import (
    GridValidationError,
    MissingKeyFieldError,
    UnmatchedKeyError,
    UnmatchedKeyWarning,
)
from geofacet_grid.grid import GridDefinition
from geofacet_grid.registry import GridRegistry, get_default_registry
from geofacet_grid.validator import validate

logger = logging.getLogger(__name__)

_POLICIES = ("ignore", "warn", "strict")

LAYOUT_COLUMNS = ["code", "name", "display_name", "row", "col", "n_records"]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class FacetCell:
    """One grid cell and the dataset rows assigned to it.

    Attributes:
        code: Grid cell code.
        name: Grid cell display name.
        display_name: Label for the facet (``name`` unless overridden).
        row: 1-based grid row.
        col: 1-based grid column.
        records: Matching dataset rows, original index preserved. Empty
            (with the dataset's columns) when no rows match.
    """

    code: str
    name: str
    display_name: str
    row: int
    col: int
    records: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return self.records.empty

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FacetCell):
            return NotImplemented
        return (
            (self.code, self.name, self.display_name, self.row, self.col)
            == (other.code, other.name, other.display_name, other.row, other.col)
            and self.records.equals(other.records)
        )


@dataclass(eq=False)
class FacetAssignment:
    """Resolved layout: every grid cell with its data subset.

    Attributes:
        grid_name: Name of the grid used.
        key_field: Dataset column matched against cell codes.
        cells: One ``FacetCell`` per grid cell, ordered by ``(row, col)``.
        warnings: ``UnmatchedKeyWarning`` per dropped key (``warn`` policy).
        unmatched_keys: Data keys absent from the grid, first-seen order.
    """

    grid_name: str
    key_field: str
    cells: list[FacetCell] = field(default_factory=list)
    warnings: list[UnmatchedKeyWarning] = field(default_factory=list)
    unmatched_keys: tuple = ()

    @property
    def n_rows(self) -> int:
        return max((c.row for c in self.cells), default=0)

    @property
    def n_cols(self) -> int:
        return max((c.col for c in self.cells), default=0)

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[FacetCell]:
        return iter(self.cells)

    def __contains__(self, code: object) -> bool:
        return any(c.code == code for c in self.cells)

    def __getitem__(self, code: str) -> FacetCell:
        for cell in self.cells:
            if cell.code == code:
                return cell
        raise KeyError(code)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FacetAssignment):
            return NotImplemented
        return (
            self.grid_name == other.grid_name
            and self.key_field == other.key_field
            and self.cells == other.cells
            and self.warnings == other.warnings
            and self.unmatched_keys == other.unmatched_keys
        )

    def layout_frame(self) -> pd.DataFrame:
        """One row per cell: position, labels and record count."""
        rows = [
            {
                "code": c.code,
                "name": c.name,
                "display_name": c.display_name,
                "row": c.row,
                "col": c.col,
                "n_records": len(c.records),
            }
            for c in self.cells
        ]
        return pd.DataFrame(rows, columns=LAYOUT_COLUMNS)

    def to_long_frame(self) -> pd.DataFrame:
        """Concatenate matched records in layout order with facet position columns.

        Adds ``facet_row``, ``facet_col`` and ``facet_label``. Empty cells
        contribute no rows; use ``layout_frame()`` to draw their panels.
        """
        parts = []
        for cell in self.cells:
            if cell.is_empty:
                continue
            part = cell.records.copy()
            part["facet_row"] = cell.row
            part["facet_col"] = cell.col
            part["facet_label"] = cell.display_name
            parts.append(part)

        if not parts:
            columns = [*self._record_columns(), "facet_row", "facet_col", "facet_label"]
            return pd.DataFrame(columns=columns)
        return pd.concat(parts)

    def _record_columns(self) -> list[str]:
        if self.cells:
            return list(self.cells[0].records.columns)
        return [self.key_field]


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def _as_frame(data: pd.DataFrame | Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        return data
    return pd.DataFrame(list(data))


class FacetResolver:
    """Assigns dataset rows to grid cells.

    Stateless apart from the registry used to resolve grid names and the
    config providing the default unmatched policy; ``resolve()`` may be
    called concurrently.
    """

    def __init__(
        self,
        registry: GridRegistry | None = None,
        config: GeofacetConfig | None = None,
    ) -> None:
        self.config = config or (registry.config if registry is not None else GeofacetConfig())
        self._registry = registry

    @property
    def registry(self) -> GridRegistry:
        if self._registry is None:
            self._registry = get_default_registry(self.config)
        return self._registry

    def resolve(
        self,
        data: pd.DataFrame | Iterable[Mapping[str, Any]],
        key_field: str,
        grid: str | GridDefinition,
        *,
        policy: str | None = None,
        label_field: str | None = None,
    ) -> FacetAssignment:
        """Join *data* against *grid* and lay the result out by ``(row, col)``.

        Args:
            data: DataFrame or iterable of record mappings.
            key_field: Column whose values are matched against cell codes.
            grid: A ``GridDefinition`` or the name of a registered grid.
            policy: ``ignore`` | ``warn`` | ``strict``. Defaults to
                ``config.unmatched_policy``.
            label_field: Optional column supplying facet labels; the first
                non-null value within a cell overrides the grid name.

        Returns:
            A fresh ``FacetAssignment``.

        Raises:
            MissingKeyFieldError: If *key_field* or *label_field* is not a column.
            UnknownGridError: If *grid* names an unregistered grid.
            GridValidationError: If an ad hoc grid is structurally invalid.
            UnmatchedKeyError: Under ``strict``, if any key has no cell.
            ValueError: If *policy* is not a known policy.
        """
        if policy is None:
            policy = self.config.unmatched_policy
        if policy not in _POLICIES:
            raise ValueError(f"Unknown unmatched-key policy '{policy}'. Expected one of {_POLICIES}")

        df = _as_frame(data)
        if key_field not in df.columns:
            raise MissingKeyFieldError(
                f"Key field '{key_field}' not found in dataset. "
                f"Available columns: {list(df.columns)}"
            )
        if label_field is not None and label_field not in df.columns:
            raise MissingKeyFieldError(
                f"Label field '{label_field}' not found in dataset. "
                f"Available columns: {list(df.columns)}"
            )

        grid_def = self._resolve_grid(grid)
        cell_codes = set(grid_def.codes)

        # -- Group by key, first-seen order --------------------------------
        groups: dict[Any, pd.DataFrame] = {}
        # observed=True: unused categories of a categorical key are not keys.
        for key, group in df.groupby(key_field, sort=False, dropna=False, observed=True):
            if pd.isna(key):
                key = None
            groups[key] = group

        unmatched = [k for k in groups if k not in cell_codes]

        # -- Unmatched keys ------------------------------------------------
        warnings: list[UnmatchedKeyWarning] = []
        if unmatched:
            if policy == "strict":
                raise UnmatchedKeyError(
                    f"{len(unmatched)} key(s) in '{key_field}' not found in grid "
                    f"'{grid_def.name}': {unmatched}",
                    key=unmatched[0],
                    keys=unmatched,
                )
            if policy == "warn":
                for key in unmatched:
                    w = UnmatchedKeyWarning(key, grid_def.name)
                    logger.warning("%s", w)
                    warnings.append(w)
            else:
                logger.debug(
                    "Ignoring %d unmatched key(s) for grid '%s': %s",
                    len(unmatched), grid_def.name, unmatched,
                )

        # -- Build cells in layout order -----------------------------------
        cells: list[FacetCell] = []
        for gc in grid_def.sorted_cells():
            records = groups.get(gc.code)
            if records is None:
                # A fresh frame per empty cell; cells never share records.
                records = df.iloc[0:0].copy()
            cells.append(
                FacetCell(
                    code=gc.code,
                    name=gc.name,
                    display_name=self._display_name(gc.name, records, label_field),
                    row=gc.row,
                    col=gc.col,
                    records=records,
                )
            )

        n_filled = sum(1 for c in cells if not c.is_empty)
        logger.info(
            "Resolved %d key(s) onto grid '%s': %d/%d cells filled, %d unmatched",
            len(groups), grid_def.name, n_filled, len(cells), len(unmatched),
        )

        return FacetAssignment(
            grid_name=grid_def.name,
            key_field=key_field,
            cells=cells,
            warnings=warnings,
            unmatched_keys=tuple(unmatched),
        )

    # -- Private helpers ----------------------------------------------------

    def _resolve_grid(self, grid: str | GridDefinition) -> GridDefinition:
        if isinstance(grid, GridDefinition):
            # Ad hoc grids have not passed through registration.
            result = validate(grid, check_sparsity=False, config=self.config)
            if not result.ok:
                first = result.errors[0]
                raise GridValidationError(
                    f"Grid '{grid.name}' is invalid: {first}",
                    kind=first.kind,
                    grid_name=grid.name,
                    errors=result.errors,
                )
            return grid
        return self.registry.get(grid)

    @staticmethod
    def _display_name(
        default: str,
        records: pd.DataFrame,
        label_field: str | None,
    ) -> str:
        if label_field is None or records.empty:
            return default
        labels = records[label_field].dropna()
        if labels.empty:
            return default
        return str(labels.iloc[0])
