from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple, Union
import math

from .. import config
from .errors import HeatmapConfigError

ColorSpec = Union[str, Sequence[int]]
GradientStops = Tuple[Tuple[float, ColorSpec], ...]

# --- Helper Functions ---
def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise HeatmapConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_float(name: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise HeatmapConfigError(f"{name} must be a number, got {value!r}") from exc
    if math.isnan(result):
        raise HeatmapConfigError(f"{name} must be a number, got NaN")
    return result


def parse_gradient(gradient: Any) -> GradientStops:
    """Normalize gradient stops into a position-ordered tuple of (position, color).

    Accepts a mapping ``{position: color}`` or a sequence of ``(position, color)`` pairs.
    Positions may be numeric strings (``"0.55"``) and must lie in [0, 1].
    """
    if isinstance(gradient, Mapping):
        items = list(gradient.items())
    else:
        try:
            items = [tuple(pair) for pair in gradient]
        except TypeError as exc:
            raise HeatmapConfigError(f"gradient must be a mapping or a sequence of stops, got {gradient!r}") from exc
    if not items:
        raise HeatmapConfigError("gradient needs at least one color stop")

    stops = []
    for pair in items:
        if len(pair) != 2:
            raise HeatmapConfigError(f"gradient stop must be (position, color), got {pair!r}")
        position = _as_float("gradient position", pair[0])
        if position < 0.0 or position > 1.0:
            raise HeatmapConfigError(f"gradient position {position} is outside [0, 1]")
        stops.append((position, pair[1]))
    stops.sort(key=lambda s: s[0])
    return tuple(stops)


# --- Geometry ---

@dataclass(frozen=True)
class Rect:
    """Pixel rectangle with exclusive right/bottom edges."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return max(0, self.right - self.left)

    @property
    def height(self) -> int:
        return max(0, self.bottom - self.top)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def clamped(self, width: int, height: int) -> "Rect":
        return Rect(
            max(0, min(self.left, width)),
            max(0, min(self.top, height)),
            max(0, min(self.right, width)),
            max(0, min(self.bottom, height)),
        )

    @classmethod
    def full(cls, width: int, height: int) -> "Rect":
        return cls(0, 0, int(width), int(height))


# --- Occurrence Models ---

@dataclass(frozen=True)
class PointUpdate:
    """Result of an accepted point: the cell's new accumulated value and whether the max moved."""
    x: int
    y: int
    value: float
    rescaled: bool = False


# --- Configuration ---

@dataclass
class HeatmapConfig:
    radius: int = config.DEFAULT_RADIUS
    visible: bool = True
    max: Optional[float] = None  # None = auto
    gradient: GradientStops = field(default_factory=lambda: parse_gradient(config.DEFAULT_GRADIENT))
    opacity: int = config.DEFAULT_OPACITY_ALPHA  # 0..255 ceiling
    width: int = config.DEFAULT_WIDTH
    height: int = config.DEFAULT_HEIGHT
    debug: bool = False

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> "HeatmapConfig":
        """Build a config from user options; unrecognized keys are ignored.

        ``opacity`` is given as a 0..100 percentage and stored on the 0..255 scale.
        A falsy ``max`` means "auto" (grow from 1 as counts arrive).
        """
        opts = dict(options or {})
        cfg = cls()

        if opts.get("radius") is not None:
            cfg.radius = _as_int("radius", opts["radius"])
            if cfg.radius <= 0:
                raise HeatmapConfigError(f"radius must be positive, got {cfg.radius}")

        if opts.get("visible") is not None:
            cfg.visible = bool(opts["visible"])

        if opts.get("max") and opts["max"] != "auto":
            cfg.max = _as_float("max", opts["max"])
            if cfg.max <= 0:
                raise HeatmapConfigError(f"max must be positive, got {cfg.max}")

        if opts.get("gradient") is not None:
            cfg.gradient = parse_gradient(opts["gradient"])

        if opts.get("opacity") is not None:
            pct = _as_float("opacity", opts["opacity"])
            if pct < 0.0 or pct > 100.0:
                raise HeatmapConfigError(f"opacity must be within 0..100, got {pct}")
            cfg.opacity = int(round(255 * pct / 100.0))

        for key in ("width", "height"):
            if opts.get(key) is not None:
                value = _as_int(key, opts[key])
                if value < 0:
                    raise HeatmapConfigError(f"{key} must not be negative, got {value}")
                setattr(cfg, key, value)

        cfg.debug = bool(opts.get("debug", False))
        return cfg
