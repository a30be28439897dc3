from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
import logging
import time

from .domain.errors import HeatmapConfigError
from .domain.models import HeatmapConfig
from .services.alpha_compositor import AlphaCompositor
from .services.bounds_tracker import BoundsTracker
from .services.colorizer import Colorizer
from .services.occurrence_store import OccurrenceStore
from .services.palette import Palette, PaletteBuilder
from .services.surface import RasterSurface, resolve_format

logger = logging.getLogger(__name__)


class HeatmapEngine:
    """
    Owns the occurrence store, both surfaces and the rendering stages, and decides
    between the incremental (single point) and full (replay) redraw paths.

    Single-threaded: callers must serialize their calls.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> None:
        opts: Dict[str, Any] = dict(options or {})
        opts.update(overrides)
        self._config = HeatmapConfig.from_mapping(opts)
        cfg = self._config
        self._log_level = logging.INFO if cfg.debug else logging.DEBUG

        fmt = resolve_format()
        self._visible_surface = RasterSurface(cfg.width, cfg.height, fmt)
        self._alpha_surface = RasterSurface(cfg.width, cfg.height, fmt)

        builder = PaletteBuilder(fmt)
        self._palette: Palette = builder.build(cfg.gradient)
        self._premultiply_alpha: bool = builder.probe_premultiply()

        self._store = OccurrenceStore(initial_max=cfg.max or 1.0)
        self._bounds = BoundsTracker()
        self._compositor = AlphaCompositor(cfg.radius)
        self._colorizer = Colorizer(
            self._alpha_surface,
            self._visible_surface,
            self._palette,
            cfg.opacity,
            self._premultiply_alpha,
            self._bounds,
        )
        self._visible: bool = cfg.visible
        logger.log(
            self._log_level,
            "Heatmap %dx%d radius=%d opacity=%d premultiply_alpha=%s",
            cfg.width, cfg.height, cfg.radius, cfg.opacity, self._premultiply_alpha,
        )

    # --- Properties ---

    @property
    def width(self) -> int:
        return self._visible_surface.width

    @property
    def height(self) -> int:
        return self._visible_surface.height

    @property
    def radius(self) -> int:
        return self._config.radius

    @property
    def opacity(self) -> int:
        return self._config.opacity

    @property
    def max(self) -> float:
        return self._store.max

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def premultiply_alpha(self) -> bool:
        return self._premultiply_alpha

    @property
    def store(self) -> OccurrenceStore:
        return self._store

    @property
    def visible_surface(self) -> RasterSurface:
        return self._visible_surface

    @property
    def alpha_surface(self) -> RasterSurface:
        return self._alpha_surface

    @property
    def visible(self) -> bool:
        return self._visible

    # --- Public operations ---

    def add_point(self, x: Any, y: Any, count: Any = 1) -> None:
        update = self._store.add_point(x, y, count)
        if update is None:
            return
        if update.rescaled:
            logger.log(self._log_level, "New max %s at (%d, %d); replaying %d cells", update.value, update.x, update.y, len(self._store))
            self._redraw()
            return
        rect = self._compositor.paint_point(self._alpha_surface, update.x, update.y, update.value, self._store.max)
        if self._visible:
            self._colorizer.colorize(rect)
        else:
            self._bounds.expand(rect)

    def load_data_set(self, data_set: Mapping[str, Any]) -> None:
        """Replace all data with ``{"max": m, "data": [[x, y, count], ...]}``."""
        if not isinstance(data_set, Mapping):
            raise TypeError(f"data set must be a mapping with 'max' and 'data', got {type(data_set).__name__}")
        self._store.replace_all(data_set.get("data") or [], data_set.get("max"))
        self._redraw()

    def load_grid(self, grid: Mapping[Any, Mapping[Any, Any]], max_value: Any = None) -> None:
        """Replace all data with a nested ``{x: {y: count}}`` grid and its max."""
        self._store.replace_grid(grid, max_value)
        self._redraw()

    def clear(self) -> None:
        self._store.clear()
        self._bounds.reset()
        self._visible_surface.clear()
        self._alpha_surface.clear()

    def resize(self, width: int, height: int) -> None:
        """Reallocate both surfaces; their contents are discarded, occurrence data is kept."""
        width, height = int(width), int(height)
        if width < 0 or height < 0:
            raise HeatmapConfigError(f"size must not be negative, got {width}x{height}")
        self._visible_surface.resize(width, height)
        self._alpha_surface.resize(width, height)
        self._config.width = width
        self._config.height = height
        self._bounds.reset()
        logger.log(self._log_level, "Resized heatmap to %dx%d", width, height)

    def set_visible(self, visible: bool) -> None:
        visible = bool(visible)
        if visible and not self._visible:
            # Catch up on everything painted while hidden
            self._visible_surface.clear()
            self._colorizer.colorize_full()
        self._visible = visible

    def data_set(self) -> Dict[str, Any]:
        return {"max": self._store.max, "data": self._store.to_triples()}

    def export_data_url(self) -> str:
        return self._visible_surface.to_data_url()

    def export_buffer(self) -> bytes:
        return self._visible_surface.to_png_bytes()

    # --- Internals ---

    def _redraw(self) -> None:
        t0 = time.perf_counter()
        self._visible_surface.clear()
        self._alpha_surface.clear()
        self._bounds.reset()
        running_max = self._store.max
        for x, y, count in self._store.cells():
            rect = self._compositor.paint_point(self._alpha_surface, x, y, count, running_max)
            self._bounds.expand(rect)
        for x, y in self._store.marks():
            # count 0 paints at the minimum alpha
            rect = self._compositor.paint_point(self._alpha_surface, x, y, 0, running_max)
            self._bounds.expand(rect)
        if self._visible:
            self._colorizer.colorize_full()
        logger.log(
            self._log_level,
            "Redrew %d cells (max=%s) in %.1f ms",
            len(self._store), running_max, (time.perf_counter() - t0) * 1000.0,
        )
