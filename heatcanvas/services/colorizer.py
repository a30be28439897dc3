from __future__ import annotations
from typing import Optional

import numpy as np

from ..domain.models import Rect
from .bounds_tracker import BoundsTracker
from .palette import Palette
from .surface import RasterSurface


class Colorizer:
    """
    Maps accumulated alpha through the palette into the visible surface.

    For every pixel of the region with alpha ``a > 0``:
        final = min(a, opacity)
        rgb   = palette[a].rgb          (divided by 255 / final on premultiplying surfaces)
        out   = (rgb, final)
    Pixels with ``a == 0`` are left untouched.
    """

    def __init__(
        self,
        alpha_surface: RasterSurface,
        visible_surface: RasterSurface,
        palette: Palette,
        opacity: int,
        premultiply_alpha: bool,
        bounds: BoundsTracker,
    ) -> None:
        self._alpha = alpha_surface
        self._visible = visible_surface
        self._palette = palette
        self.opacity = int(opacity)
        self.premultiply_alpha = bool(premultiply_alpha)
        self._bounds = bounds

    def colorize(self, rect: Optional[Rect] = None) -> Optional[Rect]:
        """Colorize ``rect``, or the pending dirty bounds when omitted. Returns the region touched."""
        if rect is None:
            rect = self._bounds.consume(self._visible.width, self._visible.height)
        else:
            rect = rect.clamped(self._visible.width, self._visible.height)
        if rect is None or rect.is_empty:
            return None

        alpha = self._alpha.read_region(rect)[..., 3]
        mask = alpha > 0
        if not mask.any():
            return rect

        out = self._visible.read_region(rect)
        final = np.minimum(alpha, self.opacity)
        rgb = self._palette.table[alpha, :3].astype(np.float64)
        if self.premultiply_alpha:
            # Same as dividing by 255 / final, without the division by zero at final == 0
            rgb *= (final.astype(np.float64) / 255.0)[..., None]
        out[mask, :3] = np.clip(np.rint(rgb[mask]), 0, 255).astype(np.uint8)
        out[mask, 3] = final[mask]
        self._visible.write_region(rect, out)
        return rect

    def colorize_full(self) -> Optional[Rect]:
        self._bounds.reset()
        return self.colorize(Rect.full(self._visible.width, self._visible.height))
