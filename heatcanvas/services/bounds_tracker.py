from __future__ import annotations
from typing import Optional
import math

from ..domain.models import Rect


class BoundsTracker:
    """Union of the dirty squares painted since the last colorize pass."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        # Inverted rectangle: the first expand() sets every edge
        self.left = math.inf
        self.top = math.inf
        self.right = -math.inf
        self.bottom = -math.inf

    @property
    def is_empty(self) -> bool:
        return self.left >= self.right or self.top >= self.bottom

    def expand(self, rect: Rect) -> None:
        if rect.left < self.left:
            self.left = rect.left
        if rect.top < self.top:
            self.top = rect.top
        if rect.right > self.right:
            self.right = rect.right
        if rect.bottom > self.bottom:
            self.bottom = rect.bottom

    def consume(self, width: int, height: int) -> Optional[Rect]:
        """Return the pending bounds clamped to the buffer and reset to empty."""
        if self.is_empty:
            self.reset()
            return None
        rect = Rect(
            int(max(0, self.left)),
            int(max(0, self.top)),
            int(min(width, self.right)),
            int(min(height, self.bottom)),
        )
        self.reset()
        return None if rect.is_empty else rect
