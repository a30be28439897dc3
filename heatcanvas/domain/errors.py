from __future__ import annotations


class HeatmapConfigError(ValueError):
    """Raised when heatmap options (radius, opacity, gradient, size) are malformed."""


class SurfaceError(RuntimeError):
    """Raised when the drawing surface cannot be created or used."""
