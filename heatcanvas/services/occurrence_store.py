from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import logging
import math

from ..domain.models import PointUpdate

logger = logging.getLogger(__name__)

Grid = Dict[int, Dict[int, float]]


def _coerce_coords(x: Any, y: Any) -> Optional[Tuple[int, int]]:
    try:
        xi = int(math.floor(float(x)))
        yi = int(math.floor(float(y)))
    except (TypeError, ValueError):
        return None
    if xi < 0 or yi < 0:
        return None
    return xi, yi


def _coerce_point(x: Any, y: Any, count: Any) -> Optional[Tuple[int, int, float]]:
    coords = _coerce_coords(x, y)
    try:
        c = float(count)
    except (TypeError, ValueError):
        return None
    if coords is None or not c > 0:
        return None
    return coords[0], coords[1], c


def _is_zero_count(count: Any) -> bool:
    if count is None:
        return True
    try:
        return float(count) == 0.0
    except (TypeError, ValueError):
        return False


def _positive_finite(value: Any) -> float:
    """``value`` as a float when it is a usable max, else 0.0 (auto)."""
    try:
        result = float(value) if value else 0.0
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(result) or result <= 0.0:
        return 0.0
    return result


class OccurrenceStore:
    """
    Sparse per-coordinate occurrence counts plus the running maximum.

    Pure bookkeeping: no drawing state. Mutators report what changed and the
    owner decides what to repaint.
    """

    def __init__(self, initial_max: float = 1.0) -> None:
        self._initial_max = float(initial_max)
        self._grid: Grid = {}
        # Points loaded without a count: painted faintly, never counted
        self._marks: List[Tuple[int, int]] = []
        self.max: float = self._initial_max

    @property
    def initial_max(self) -> float:
        return self._initial_max

    def __len__(self) -> int:
        return sum(len(col) for col in self._grid.values())

    def get(self, x: int, y: int) -> float:
        return self._grid.get(x, {}).get(y, 0)

    def add_point(self, x: Any, y: Any, count: Any = 1) -> Optional[PointUpdate]:
        """Accumulate ``count`` at (x, y). Returns None when the point is rejected."""
        point = _coerce_point(x, y, count)
        if point is None:
            logger.debug("Rejected point (%r, %r, %r)", x, y, count)
            return None
        xi, yi, c = point
        col = self._grid.setdefault(xi, {})
        value = col.get(yi, 0) + c
        col[yi] = value
        rescaled = value > self.max
        if rescaled:
            self.max = value
        return PointUpdate(xi, yi, value, rescaled)

    def replace_all(self, points: Iterable[Any], new_max: Any = None) -> None:
        """
        Replace the grid from flat ``[x, y, count]`` triples; duplicates accumulate.

        Rows with a missing or zero count (``[x, y]``, ``[x, y, 0]``) are kept as
        marks: drawn at the minimum alpha but not stored in the grid.
        """
        grid: Grid = {}
        marks: List[Tuple[int, int]] = []
        skipped = 0
        for row in points:
            try:
                values = list(row)
            except TypeError:
                skipped += 1
                continue
            if len(values) == 2 or (len(values) == 3 and _is_zero_count(values[2])):
                coords = _coerce_coords(values[0], values[1])
                if coords is None:
                    skipped += 1
                else:
                    marks.append(coords)
                continue
            if len(values) != 3:
                skipped += 1
                continue
            x, y, count = values
            point = _coerce_point(x, y, count)
            if point is None:
                skipped += 1
                continue
            xi, yi, c = point
            col = grid.setdefault(xi, {})
            col[yi] = col.get(yi, 0) + c
        if skipped:
            logger.debug("Skipped %d invalid data points", skipped)
        self._marks = marks
        self._set(grid, new_max)

    def replace_grid(self, grid: Mapping[Any, Mapping[Any, Any]], new_max: Any = None) -> None:
        """Replace the grid from a nested ``{x: {y: count}}`` mapping."""
        self.replace_all(
            ((x, y, count) for x, col in grid.items() for y, count in col.items()),
            new_max,
        )

    def _set(self, grid: Grid, new_max: Any) -> None:
        self._grid = grid
        largest = max((c for col in grid.values() for c in col.values()), default=0)
        # NaN, infinite and non-positive maxima fall back to auto
        requested = _positive_finite(new_max)
        if not requested and not largest:
            requested = self._initial_max
        # Keep the max at or above every stored count
        self.max = max(requested, largest)

    def marks(self) -> List[Tuple[int, int]]:
        return list(self._marks)

    def cells(self) -> Iterator[Tuple[int, int, float]]:
        for x, col in self._grid.items():
            for y, count in col.items():
                yield x, y, count

    def to_triples(self) -> List[List[float]]:
        return [[x, y, count] for x, y, count in self.cells()]

    def grid(self) -> Grid:
        return {x: dict(col) for x, col in self._grid.items()}

    def clear(self, reset_max: bool = True) -> None:
        self._grid = {}
        self._marks = []
        if reset_max:
            self.max = self._initial_max
