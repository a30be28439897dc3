from __future__ import annotations
import math

from PySide6 import QtCore, QtGui

from .. import config
from ..domain.models import Rect
from .surface import RasterSurface


class AlphaCompositor:
    """Paints one radial alpha blob per point into the hidden alpha surface."""

    def __init__(self, radius: int) -> None:
        self.radius = int(radius)

    def point_bounds(self, x: int, y: int) -> Rect:
        """Square of half-extent 1.5 * radius around the point, floored to pixels."""
        reach = config.BOUNDS_RADIUS_FACTOR * self.radius
        return Rect(
            math.floor(x - reach),
            math.floor(y - reach),
            math.floor(x + reach),
            math.floor(y + reach),
        )

    @staticmethod
    def clamp_square(rect: Rect, width: int, height: int) -> Rect:
        # Past the high edge the square is shifted back rather than shrunk
        size_x = rect.right - rect.left
        size_y = rect.bottom - rect.top
        left, top = rect.left, rect.top
        if left + size_x > width:
            left = width - size_x
        if left < 0:
            left = 0
        if top + size_y > height:
            top = height - size_y
        if top < 0:
            top = 0
        return Rect(left, top, min(left + size_x, width), min(top + size_y, height))

    def paint_point(self, surface: RasterSurface, x: int, y: int, count: float, running_max: float) -> Rect:
        """Composite the point's gradient into ``surface`` and return its clamped dirty square."""
        rect = self.clamp_square(self.point_bounds(x, y), surface.width, surface.height)
        if surface.is_empty:
            return rect

        if count:
            alpha = min(1.0, float(count) / float(running_max)) if running_max else 1.0
        else:
            alpha = config.MIN_POINT_ALPHA
        r = float(self.radius)
        grad = QtGui.QRadialGradient(QtCore.QPointF(x, y), r)
        grad.setColorAt(0.0, QtGui.QColor.fromRgbF(0.0, 0.0, 0.0, alpha))
        grad.setColorAt(1.0, QtGui.QColor(0, 0, 0, 0))

        with surface.painter() as p:
            p.setCompositionMode(QtGui.QPainter.CompositionMode_SourceOver)
            p.fillRect(QtCore.QRectF(x - r, y - r, 2.0 * r, 2.0 * r), QtGui.QBrush(grad))
        return rect
