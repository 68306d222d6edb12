"""
Custom exception and warning hierarchy for geofacet-grid.

Why a custom hierarchy:
- Callers can catch specific failures (e.g., UnknownGridError vs
  UnmatchedKeyError) without relying on generic ValueError/KeyError.
- Warnings are ordinary values: the resolver and validator collect them
  on their result objects so a caller can inspect them after a
  successful call instead of losing them to a log stream.
"""

from __future__ import annotations


class GeofacetGridError(Exception):
    """Base exception for all geofacet-grid errors."""


class ConfigValidationError(GeofacetGridError):
    """Raised when a geofacet config file is empty or malformed."""


class GridLoadError(GeofacetGridError):
    """Raised when a grid file cannot be read or has the wrong shape.

    For example, a CSV grid missing the ``row`` column, or a YAML grid
    without a ``cells`` list.
    """


class GridValidationError(GeofacetGridError):
    """Raised (or collected) when a grid violates a structural invariant.

    Attributes:
        kind: One of ``empty``, ``duplicate_code``, ``duplicate_position``,
            ``non_positive_position``.
        grid_name: Name of the offending grid.
        errors: In strict mode, the full list of errors found; the raised
            instance is the first one.
    """

    def __init__(
        self,
        message: str,
        kind: str = "",
        grid_name: str = "",
        errors: list[GridValidationError] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.grid_name = grid_name
        self.errors = errors if errors is not None else [self]


class DuplicateGridError(GeofacetGridError):
    """Raised when a grid name is registered twice."""


class UnknownGridError(GeofacetGridError, KeyError):
    """Raised when a grid name is not present in the registry."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class MissingKeyFieldError(GeofacetGridError):
    """Raised when the key (or label) field is not a column of the dataset."""


class UnmatchedKeyError(GeofacetGridError):
    """Raised under the ``strict`` policy when a data key has no grid cell.

    Attributes:
        key: The first unmatched key, in first-seen data order.
        keys: Every unmatched key.
    """

    def __init__(self, message: str, key: object = None, keys: list | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.keys = keys if keys is not None else [key]


# ---------------------------------------------------------------------------
# Warnings (non-fatal diagnostics, returned alongside results)
# ---------------------------------------------------------------------------

class GeofacetGridWarning(UserWarning):
    """Base class for non-fatal geofacet-grid diagnostics."""

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.args == other.args and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class UnmatchedKeyWarning(GeofacetGridWarning):
    """A data key had no matching grid cell and its records were dropped."""

    def __init__(self, key: object, grid_name: str = "") -> None:
        super().__init__(f"Key {key!r} not found in grid '{grid_name}'; records dropped")
        self.key = key
        self.grid_name = grid_name


class SparseGridWarning(GeofacetGridWarning):
    """A grid is structurally valid but looks pathological.

    Attributes:
        grid_name: Name of the grid.
        reason: ``low_density`` or ``isolated_cell``.
        code: The isolated cell's code (``None`` for ``low_density``).
    """

    def __init__(
        self,
        message: str,
        grid_name: str = "",
        reason: str = "",
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.grid_name = grid_name
        self.reason = reason
        self.code = code
