"""
Grid registry for geofacet-grid.

The registry owns every named grid for the lifetime of the process. It
is written during an explicit registration phase (normally once, at
startup, from the bundled ``grids/`` directory plus any configured
``grid_dirs``) and is read-only afterwards, so concurrent readers need
no locking.

Why YAML files instead of hardcoded tables:
- New grids are added by dropping a file into a directory, no code changes.
- Transposed or mistyped entries are easy to spot and fix in a diff.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from geofacet_grid.config import GeofacetConfig
from geofacet_grid.exceptions import DuplicateGridError, GridLoadError, UnknownGridError
from geofacet_grid.grid import GRID_FILE_SUFFIXES, GridDefinition, load_grid
from geofacet_grid.validator import ValidationResult, validate

logger = logging.getLogger(__name__)

# Directory containing the bundled grid YAML files (sibling package)
BUILTIN_GRIDS_DIR = Path(__file__).parent / "grids"


class GridRegistry:
    """Name -> GridDefinition store with validated registration."""

    def __init__(self, config: GeofacetConfig | None = None) -> None:
        self.config = config or GeofacetConfig()
        self._grids: dict[str, GridDefinition] = {}

    def __repr__(self) -> str:
        return f"GridRegistry(grids={self.list_names()})"

    def __contains__(self, name: object) -> bool:
        return name in self._grids

    def __len__(self) -> int:
        return len(self._grids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_names())

    def register(self, grid: GridDefinition, *, validate_grid: bool = True) -> ValidationResult:
        """Add a grid under its name.

        Args:
            grid: The grid to register.
            validate_grid: If True (default), validate in strict mode first.

        Returns:
            The ``ValidationResult`` (carries any ``SparseGridWarning``).
            Empty when validation is skipped.

        Raises:
            DuplicateGridError: If a grid with the same name is registered.
            GridValidationError: If the grid violates a structural invariant.
        """
        if grid.name in self._grids:
            raise DuplicateGridError(f"Grid '{grid.name}' is already registered")

        if validate_grid:
            result = validate(grid, strict=True, config=self.config)
        else:
            result = ValidationResult(grid_name=grid.name)

        self._grids[grid.name] = grid
        logger.debug("Registered grid '%s' (%d cells)", grid.name, len(grid.cells))
        return result

    def get(self, name: str) -> GridDefinition:
        """Look up a grid by name.

        Raises:
            UnknownGridError: If *name* is not registered.
        """
        try:
            return self._grids[name]
        except KeyError:
            raise UnknownGridError(
                f"Unknown grid '{name}'. Available grids: {self.list_names()}"
            ) from None

    def list_names(self) -> list[str]:
        """Registered grid names in lexicographic order."""
        return sorted(self._grids)

    def load_directory(self, directory: str | Path) -> list[str]:
        """Register every grid file in *directory*, in filename order.

        Files that cannot be read are logged and skipped. Duplicate names
        and structurally invalid grids raise, since they mean the stored
        grid data itself is wrong.

        Returns:
            Names of the grids registered from this directory.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Grid directory not found: {directory}")

        registered: list[str] = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in GRID_FILE_SUFFIXES:
                continue
            try:
                grid = load_grid(path)
            except (GridLoadError, OSError, ValueError) as e:
                logger.warning("Failed to load grid from %s: %s", path, e)
                continue
            self.register(grid)
            registered.append(grid.name)

        logger.info("Loaded %d grid(s) from %s", len(registered), directory)
        return registered


# ---------------------------------------------------------------------------
# Process-wide default registry
# ---------------------------------------------------------------------------

_DEFAULT_REGISTRY: GridRegistry | None = None


def build_registry(config: GeofacetConfig | None = None) -> GridRegistry:
    """Create a registry holding the bundled grids plus ``config.grid_dirs``."""
    config = config or GeofacetConfig()
    registry = GridRegistry(config)
    registry.load_directory(BUILTIN_GRIDS_DIR)
    for extra in config.grid_dirs:
        registry.load_directory(extra)
    return registry


def get_default_registry(config: GeofacetConfig | None = None) -> GridRegistry:
    """Return the lazily-built process-wide registry.

    *config* is only used the first time; later calls return the cached
    registry unchanged.
    """
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_registry(config)
    return _DEFAULT_REGISTRY


def reset_default_registry() -> None:
    """Drop the cached default registry so the next call rebuilds it."""
    global _DEFAULT_REGISTRY
    _DEFAULT_REGISTRY = None
