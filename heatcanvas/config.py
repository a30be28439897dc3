import os
from typing import Dict, Tuple


# Point rendering defaults
DEFAULT_RADIUS: int = int(os.environ.get("HEATMAP_RADIUS", "40"))
DEFAULT_WIDTH: int = int(os.environ.get("HEATMAP_WIDTH", "0"))
DEFAULT_HEIGHT: int = int(os.environ.get("HEATMAP_HEIGHT", "0"))
# Opacity ceiling on the 0..255 scale, used when no opacity percentage is configured
DEFAULT_OPACITY_ALPHA: int = int(os.environ.get("HEATMAP_OPACITY", "180"))
# Center alpha for points painted with a zero/missing count
MIN_POINT_ALPHA: float = 0.1
# Dirty square half-extent as a multiple of the radius (margin for the falloff tail)
BOUNDS_RADIUS_FACTOR: float = 1.5


# Default blue -> red gradient (position -> RGB)
DEFAULT_GRADIENT: Dict[float, Tuple[int, int, int]] = {
    0.55: (0, 0, 255),
    0.65: (0, 255, 255),
    0.75: (0, 255, 0),
    0.95: (255, 255, 0),
    1.0: (255, 0, 0),
}
PALETTE_SIZE: int = 256


# Drawing surface
# RGBA8888 stores straight alpha; RGBA8888_Premultiplied exercises the colorizer's compensation path
SURFACE_FORMAT: str = os.environ.get("HEATMAP_SURFACE_FORMAT", "RGBA8888")
# Premultiply probe: a 25% red / 25% alpha pixel should read back with red inside this range
PREMULTIPLY_PROBE_PIXEL: Tuple[int, int, int, int] = (64, 0, 0, 64)
PREMULTIPLY_PROBE_RANGE: Tuple[int, int] = (60, 70)


# Logging
LOG_LEVEL: str = os.environ.get("HEATMAP_LOG_LEVEL", "INFO")
