from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging
import re

import numpy as np
from PySide6 import QtCore, QtGui

from .. import config
from ..domain.errors import HeatmapConfigError
from ..domain.models import ColorSpec, GradientStops, Rect, parse_gradient
from .surface import RasterSurface, resolve_format

logger = logging.getLogger(__name__)

_CSS_RGB = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)


def parse_color(spec: ColorSpec) -> QtGui.QColor:
    """
    Turn a color spec into a QColor.

    Accepts ``(r, g, b)`` / ``(r, g, b, a)`` tuples (0..255 channels), CSS style
    ``"rgb(r,g,b)"`` / ``"rgba(r,g,b,a)"`` strings (alpha 0..1) and any name or hex
    string QColor understands (``"yellow"``, ``"#ff8800"``).
    """
    if isinstance(spec, QtGui.QColor):
        return QtGui.QColor(spec)
    if isinstance(spec, str):
        text = spec.strip()
        m = _CSS_RGB.match(text)
        if m:
            parts = [p.strip() for p in m.group(1).split(",")]
            try:
                if len(parts) == 3:
                    r, g, b = (int(float(p)) for p in parts)
                    color = QtGui.QColor(r, g, b)
                elif len(parts) == 4:
                    r, g, b = (int(float(p)) for p in parts[:3])
                    color = QtGui.QColor(r, g, b)
                    color.setAlphaF(float(parts[3]))
                else:
                    raise ValueError(text)
            except ValueError as exc:
                raise HeatmapConfigError(f"Invalid color {spec!r}") from exc
        else:
            color = QtGui.QColor(text)
    else:
        try:
            channels = [int(c) for c in spec]
        except (TypeError, ValueError) as exc:
            raise HeatmapConfigError(f"Invalid color {spec!r}") from exc
        if len(channels) not in (3, 4) or any(c < 0 or c > 255 for c in channels):
            raise HeatmapConfigError(f"Color tuple must have 3 or 4 channels in 0..255, got {spec!r}")
        color = QtGui.QColor(*channels)
    if not color.isValid():
        raise HeatmapConfigError(f"Invalid color {spec!r}")
    return color


@dataclass(frozen=True)
class Palette:
    """256-entry RGBA lookup table indexed by alpha level."""
    table: np.ndarray  # shape (256, 4), uint8

    def __len__(self) -> int:
        return int(self.table.shape[0])

    def __getitem__(self, level: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self.table[int(level)]
        return int(r), int(g), int(b), int(a)


class PaletteBuilder:
    """Rasterizes gradient stops into a Palette and probes the surface's alpha handling."""

    def __init__(self, image_format: Optional[QtGui.QImage.Format] = None) -> None:
        self._format = image_format if image_format is not None else resolve_format()

    def build(self, gradient: GradientStops | Sequence) -> Palette:
        stops = parse_gradient(gradient)
        size = config.PALETTE_SIZE
        # The lookup table itself always stores straight alpha
        strip = RasterSurface(1, size, QtGui.QImage.Format_RGBA8888)
        # Pixel i is sampled at its center (i + 0.5), which maps to position i / (size - 1)
        grad = QtGui.QLinearGradient(QtCore.QPointF(0.0, 0.5), QtCore.QPointF(0.0, size - 0.5))
        for position, color in stops:
            grad.setColorAt(float(position), parse_color(color))
        with strip.painter() as p:
            p.fillRect(0, 0, 1, size, QtGui.QBrush(grad))
        table = strip.read_region(Rect(0, 0, 1, size)).reshape(size, 4)
        return Palette(table=table)

    def probe_premultiply(self) -> bool:
        """
        Paint a 25% red / 25% alpha pixel through the surface and read the raw bytes back.
        A surface that keeps straight alpha returns red close to 64; a premultiplying one
        returns it scaled down, and the colorizer must compensate.
        """
        scratch = RasterSurface(1, 1, self._format)
        scratch.draw_pixels(0, 0, np.array([[config.PREMULTIPLY_PROBE_PIXEL]], dtype=np.uint8))
        red = scratch.pixel(0, 0)[0]
        lo, hi = config.PREMULTIPLY_PROBE_RANGE
        premultiply = red < lo or red > hi
        logger.debug("Premultiply probe read red=%d -> premultiply_alpha=%s", red, premultiply)
        return premultiply
