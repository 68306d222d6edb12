"""
Grid models and grid-file I/O for geofacet-grid.

A grid is a static lookup table: one row per entity with its ``code``,
display ``name`` and 1-based ``row`` / ``col`` position. Grids are read
from:

- YAML files: ``name``, optional ``description``, and a ``cells`` list of
  ``{code, name, row, col}`` mappings (the format of the bundled grids).
- CSV / Parquet tables with ``code, name, row, col`` columns, where the
  grid name defaults to the file stem.
- In-memory records or DataFrames supplied ad hoc by the caller.

The models carry *types* only. Structural rules (unique codes, unique
positions, positive coordinates) are enforced by ``validator.validate()``
so that a broken grid can still be constructed, inspected and reported.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from geofacet_grid.exceptions import GridLoadError

logger = logging.getLogger(__name__)

GRID_COLUMNS = ["code", "name", "row", "col"]

_YAML_SUFFIXES = {".yaml", ".yml"}
_TABLE_SUFFIXES = {".csv", ".parquet"}
GRID_FILE_SUFFIXES = _YAML_SUFFIXES | _TABLE_SUFFIXES


class GridCell(BaseModel):
    """One entity's position in a grid."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    row: int
    col: int

    @property
    def position(self) -> tuple[int, int]:
        return (self.row, self.col)


class GridDefinition(BaseModel):
    """A named, immutable layout grid.

    Attributes:
        name: Unique identifier used by the registry.
        description: Free-form note (source, coverage).
        cells: Grid cells in storage order.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    cells: tuple[GridCell, ...] = Field(default_factory=tuple)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(c.code for c in self.cells)

    @property
    def n_rows(self) -> int:
        return max((c.row for c in self.cells), default=0)

    @property
    def n_cols(self) -> int:
        return max((c.col for c in self.cells), default=0)

    def cell_for(self, code: str) -> GridCell | None:
        """Return the cell whose code equals *code* exactly, or ``None``."""
        for cell in self.cells:
            if cell.code == code:
                return cell
        return None

    def sorted_cells(self) -> list[GridCell]:
        """Cells ordered by ``(row, col)`` ascending."""
        return sorted(self.cells, key=lambda c: (c.row, c.col))

    def to_frame(self) -> pd.DataFrame:
        """Return the grid as a ``code, name, row, col`` DataFrame in layout order."""
        rows = [c.model_dump() for c in self.sorted_cells()]
        return pd.DataFrame(rows, columns=GRID_COLUMNS)


# ---------------------------------------------------------------------------
# Construction from in-memory data
# ---------------------------------------------------------------------------

def grid_from_records(
    records: Iterable[Mapping[str, Any]],
    name: str,
    description: str = "",
) -> GridDefinition:
    """Build a GridDefinition from mappings with code/name/row/col keys.

    Raises:
        GridLoadError: If a record is missing a key or has a non-integer
            position.
    """
    cells: list[GridCell] = []
    for i, rec in enumerate(records):
        missing = [k for k in GRID_COLUMNS if k not in rec]
        if missing:
            raise GridLoadError(f"Grid '{name}' cell #{i} is missing {missing}: {dict(rec)}")
        # Raw values go straight to pydantic: 1.7 or a null code is an error,
        # never a truncated or stringified cell.
        try:
            cells.append(
                GridCell(
                    code=rec["code"],
                    name=rec["name"],
                    row=rec["row"],
                    col=rec["col"],
                )
            )
        except ValidationError as exc:
            raise GridLoadError(f"Grid '{name}' cell #{i} is malformed: {exc}") from exc
    return GridDefinition(name=name, description=description, cells=tuple(cells))


def grid_from_frame(
    df: pd.DataFrame,
    name: str,
    description: str = "",
) -> GridDefinition:
    """Build a GridDefinition from a DataFrame with ``code, name, row, col`` columns."""
    missing = [c for c in GRID_COLUMNS if c not in df.columns]
    if missing:
        raise GridLoadError(
            f"Grid '{name}' table is missing required columns {missing}. "
            f"Found: {list(df.columns)}"
        )
    return grid_from_records(df[GRID_COLUMNS].to_dict("records"), name, description)


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def _load_yaml_grid(path: Path, name: str | None) -> GridDefinition:
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise GridLoadError(f"Grid file {path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise GridLoadError(f"Grid file {path} must contain a mapping, got {type(raw).__name__}")
    cells = raw.get("cells")
    if not isinstance(cells, list):
        raise GridLoadError(f"Grid file {path} has no 'cells' list")
    return grid_from_records(
        cells,
        name=name or raw.get("name") or path.stem,
        description=raw.get("description", ""),
    )


def load_grid(path: str | Path, name: str | None = None) -> GridDefinition:
    """Load a single grid file.

    Args:
        path: A ``.yaml``/``.yml``, ``.csv`` or ``.parquet`` grid file.
        name: Override the grid name. Defaults to the YAML ``name`` field,
            or the file stem for tables.

    Raises:
        FileNotFoundError: If *path* does not exist.
        GridLoadError: If the suffix is unsupported or the content malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Grid file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in _YAML_SUFFIXES:
        grid = _load_yaml_grid(path, name)
    elif suffix == ".csv":
        df = pd.read_csv(path, dtype={"code": str, "name": str}, keep_default_na=False)
        grid = grid_from_frame(df, name or path.stem)
    elif suffix == ".parquet":
        df = pd.read_parquet(path, engine="pyarrow")
        grid = grid_from_frame(df, name or path.stem)
    else:
        raise GridLoadError(
            f"Unsupported grid file type '{path.suffix}'. "
            f"Supported: {sorted(GRID_FILE_SUFFIXES)}"
        )

    logger.debug("Loaded grid '%s' (%d cells) from %s", grid.name, len(grid.cells), path)
    return grid


def save_grid(grid: GridDefinition, path: str | Path) -> None:
    """Write a grid to YAML in the bundled-grid format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "name": grid.name,
        "description": grid.description,
        "cells": [c.model_dump() for c in grid.cells],
    }
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
    logger.info("Saved grid '%s' to %s", grid.name, path)
