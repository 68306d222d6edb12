"""
Structural validation for layout grids.

Two tiers of checks:

1. **Structural** (errors): a grid must have at least one cell, unique
   codes, unique ``(row, col)`` positions, and positions >= 1. A grid
   failing any of these cannot be laid out unambiguously.
2. **Sparsity** (warnings, optional): a grid need not be a solid
   rectangle, but one whose cells fill only a small fraction of their
   bounding box, or that has cells stranded far from every other cell,
   is probably a data-entry mistake. These produce ``SparseGridWarning``
   and never fail validation.

``validate()`` always collects every problem it finds. In strict mode it
then raises the first error, carrying the full list on ``.errors``.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from geofacet_grid.config import GeofacetConfig
from geofacet_grid.exceptions import GridValidationError, SparseGridWarning
from geofacet_grid.grid import GridDefinition

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of ``validate()``.

    Attributes:
        grid_name: Name of the validated grid.
        errors: Structural errors; empty when the grid is valid.
        warnings: Non-fatal sparsity diagnostics.
    """

    grid_name: str
    errors: list[GridValidationError] = field(default_factory=list)
    warnings: list[SparseGridWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _structural_errors(grid: GridDefinition) -> list[GridValidationError]:
    errors: list[GridValidationError] = []

    if not grid.cells:
        errors.append(
            GridValidationError(f"Grid '{grid.name}' has no cells", "empty", grid.name)
        )
        return errors

    code_counts = Counter(c.code for c in grid.cells)
    for code, n in code_counts.items():
        if n > 1:
            errors.append(
                GridValidationError(
                    f"Grid '{grid.name}': code '{code}' appears {n} times",
                    "duplicate_code",
                    grid.name,
                )
            )

    by_position: dict[tuple[int, int], list[str]] = {}
    for cell in grid.cells:
        by_position.setdefault(cell.position, []).append(cell.code)
    for (row, col), codes in by_position.items():
        if len(codes) > 1:
            errors.append(
                GridValidationError(
                    f"Grid '{grid.name}': cells {codes} share position (row={row}, col={col})",
                    "duplicate_position",
                    grid.name,
                )
            )

    for cell in grid.cells:
        if cell.row < 1 or cell.col < 1:
            errors.append(
                GridValidationError(
                    f"Grid '{grid.name}': cell '{cell.code}' has non-positive "
                    f"position (row={cell.row}, col={cell.col})",
                    "non_positive_position",
                    grid.name,
                )
            )

    return errors


def _sparsity_warnings(
    grid: GridDefinition,
    min_density: float,
    max_gap: int,
) -> list[SparseGridWarning]:
    cells = grid.cells
    if len(cells) < 2:
        return []

    warnings: list[SparseGridWarning] = []

    rows = [c.row for c in cells]
    cols = [c.col for c in cells]
    area = (max(rows) - min(rows) + 1) * (max(cols) - min(cols) + 1)
    density = len(cells) / area
    if density < min_density:
        warnings.append(
            SparseGridWarning(
                f"Grid '{grid.name}' fills {density:.0%} of its "
                f"{area}-slot bounding box (minimum {min_density:.0%})",
                grid_name=grid.name,
                reason="low_density",
            )
        )

    for cell in cells:
        has_neighbour = any(
            other is not cell
            and max(abs(other.row - cell.row), abs(other.col - cell.col)) <= max_gap
            for other in cells
        )
        if not has_neighbour:
            warnings.append(
                SparseGridWarning(
                    f"Grid '{grid.name}': cell '{cell.code}' at "
                    f"(row={cell.row}, col={cell.col}) has no neighbour within {max_gap}",
                    grid_name=grid.name,
                    reason="isolated_cell",
                    code=cell.code,
                )
            )

    return warnings


def validate(
    grid: GridDefinition,
    *,
    strict: bool = False,
    check_sparsity: bool | None = None,
    config: GeofacetConfig | None = None,
) -> ValidationResult:
    """Check a grid's structural invariants and, optionally, its sparsity.

    Args:
        grid: The grid to check.
        strict: If True, raise on the first structural error instead of
            returning it.
        check_sparsity: Override ``config.check_sparsity``.
        config: Thresholds; defaults to ``GeofacetConfig()``.

    Returns:
        ``ValidationResult`` with all errors and warnings found.

    Raises:
        GridValidationError: In strict mode, if any structural error exists.
    """
    config = config or GeofacetConfig()
    if check_sparsity is None:
        check_sparsity = config.check_sparsity

    result = ValidationResult(grid_name=grid.name)
    result.errors = _structural_errors(grid)

    if result.errors:
        for err in result.errors:
            logger.debug("Grid '%s' invalid: %s", grid.name, err)
        if strict:
            details = "\n".join(f"  - {e}" for e in result.errors)
            raise GridValidationError(
                f"Grid '{grid.name}' failed validation with "
                f"{len(result.errors)} error(s):\n{details}",
                kind=result.errors[0].kind,
                grid_name=grid.name,
                errors=result.errors,
            )
        return result

    if check_sparsity:
        result.warnings = _sparsity_warnings(grid, config.min_density, config.max_gap)
        for w in result.warnings:
            logger.warning("%s", w)

    return result
