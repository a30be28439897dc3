"""Density heatmaps rendered from weighted point observations.

The engine is UI-free apart from its QImage surfaces; ``heatcanvas.ui`` holds the
optional viewer widget.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .engine import HeatmapEngine


def create(options: Optional[Mapping[str, Any]] = None) -> HeatmapEngine:
    return HeatmapEngine(options)
