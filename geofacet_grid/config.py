"""
Configuration model and YAML I/O for geofacet-grid.

``GeofacetConfig`` holds the knobs that change resolver and validator
behaviour without code changes:

- unmatched_policy: what happens to data keys that have no grid cell
  (``ignore`` | ``warn`` | ``strict``).
- check_sparsity / min_density / max_gap: thresholds for the non-fatal
  ``SparseGridWarning`` diagnostic.
- grid_dirs: extra directories of grid files merged into the default
  registry alongside the bundled grids.

Why Pydantic + YAML:
- Pydantic gives strict validation and clear error messages for bad values.
- YAML is human-editable and round-trips cleanly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from geofacet_grid.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

UnmatchedPolicy = Literal["ignore", "warn", "strict"]


class GeofacetConfig(BaseModel):
    """Settings shared by the registry, validator and resolver."""

    unmatched_policy: UnmatchedPolicy = Field(
        "warn",
        description="Handling of data keys absent from the grid",
    )
    check_sparsity: bool = Field(
        True, description="If True, emit SparseGridWarning for pathological grids"
    )
    min_density: float = Field(
        0.25,
        gt=0,
        le=1,
        description="Minimum ratio of cells to the grid's bounding-box area",
    )
    max_gap: int = Field(
        2,
        ge=1,
        description="A cell with no neighbour within this Chebyshev distance is isolated",
    )
    grid_dirs: list[str] = Field(
        default_factory=list,
        description="Extra directories of grid files for the default registry",
    )


def load_config(path: str | Path) -> GeofacetConfig:
    """Load and validate a YAML config file into a GeofacetConfig.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    logger.info("Loaded config from %s", path)
    return GeofacetConfig.model_validate(raw)


def save_config(config: GeofacetConfig, path: str | Path) -> None:
    """Serialize a GeofacetConfig to YAML."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# geofacet-grid configuration\n\n")
        yaml.dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
    logger.info("Saved config to %s", path)
