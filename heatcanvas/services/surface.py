from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import numpy as np
from PySide6 import QtCore, QtGui

from .. import config
from ..domain.errors import SurfaceError
from ..domain.models import Rect

# Byte order is R, G, B, A for both formats regardless of platform endianness
_FORMATS = {
    "RGBA8888": QtGui.QImage.Format_RGBA8888,
    "RGBA8888_Premultiplied": QtGui.QImage.Format_RGBA8888_Premultiplied,
}


def resolve_format(name: Optional[str] = None) -> QtGui.QImage.Format:
    key = (name or config.SURFACE_FORMAT or "RGBA8888").strip()
    try:
        return _FORMATS[key]
    except KeyError as exc:
        raise SurfaceError(f"Unsupported surface format {key!r}; expected one of {sorted(_FORMATS)}") from exc


class RasterSurface:
    """
    W x H RGBA raster backed by a QImage.

    Painting goes through QPainter (gradients, fills, image blits); pixel regions are
    read and written as raw RGBA bytes through numpy views of the image memory.
    """

    def __init__(self, width: int, height: int, image_format: Optional[QtGui.QImage.Format] = None) -> None:
        self._format = image_format if image_format is not None else resolve_format()
        self._image = self._allocate(width, height)

    def _allocate(self, width: int, height: int) -> QtGui.QImage:
        width = max(0, int(width))
        height = max(0, int(height))
        image = QtGui.QImage(width, height, self._format)
        if width > 0 and height > 0 and image.isNull():
            raise SurfaceError(f"Failed to allocate a {width}x{height} surface")
        if not image.isNull():
            image.fill(QtCore.Qt.transparent)
        return image

    @property
    def width(self) -> int:
        return self._image.width()

    @property
    def height(self) -> int:
        return self._image.height()

    @property
    def is_empty(self) -> bool:
        return self._image.isNull()

    @property
    def image(self) -> QtGui.QImage:
        return self._image

    @property
    def image_format(self) -> QtGui.QImage.Format:
        return self._format

    def resize(self, width: int, height: int) -> None:
        # Destructive: contents are discarded
        self._image = self._allocate(width, height)

    def clear(self) -> None:
        if not self.is_empty:
            self._image.fill(QtCore.Qt.transparent)

    @contextmanager
    def painter(self) -> Iterator[QtGui.QPainter]:
        if self.is_empty:
            raise SurfaceError("Cannot paint on an empty surface")
        p = QtGui.QPainter(self._image)
        try:
            yield p
        finally:
            p.end()

    def _view(self, writable: bool = False) -> np.ndarray:
        image = self._image
        if image.isNull():
            return np.zeros((self.height, self.width, 4), dtype=np.uint8)
        buf = image.bits() if writable else image.constBits()
        flat = np.frombuffer(buf, dtype=np.uint8, count=image.sizeInBytes())
        rows = flat.reshape(image.height(), image.bytesPerLine())
        return rows[:, : image.width() * 4].reshape(image.height(), image.width(), 4)

    def read_region(self, rect: Rect) -> np.ndarray:
        """Copy of the raw RGBA bytes inside ``rect`` (clamped to the surface), shape (h, w, 4)."""
        r = rect.clamped(self.width, self.height)
        return self._view()[r.top:r.bottom, r.left:r.right].copy()

    def write_region(self, rect: Rect, pixels: np.ndarray) -> None:
        """Store raw RGBA bytes at ``rect``; ``pixels`` must match the clamped rect's shape."""
        r = rect.clamped(self.width, self.height)
        if r.is_empty:
            return
        self._view(writable=True)[r.top:r.bottom, r.left:r.right] = pixels

    def to_array(self) -> np.ndarray:
        return self.read_region(Rect.full(self.width, self.height))

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self._view()[int(y), int(x)]
        return int(r), int(g), int(b), int(a)

    def draw_pixels(self, x: int, y: int, pixels: np.ndarray) -> None:
        """Put straight-alpha RGBA pixels through the paint path (format conversion included)."""
        h, w = pixels.shape[:2]
        data = np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()
        src = QtGui.QImage(data, w, h, w * 4, QtGui.QImage.Format_RGBA8888)
        with self.painter() as p:
            p.setCompositionMode(QtGui.QPainter.CompositionMode_Source)
            p.drawImage(int(x), int(y), src)

    # --- Encoders ---

    def to_png_bytes(self) -> bytes:
        if self.is_empty:
            raise SurfaceError("Cannot encode an empty surface")
        buf = QtCore.QBuffer()
        buf.open(QtCore.QIODevice.WriteOnly)
        try:
            if not self._image.save(buf, "PNG"):
                raise SurfaceError("PNG encoding failed")
        finally:
            buf.close()
        return bytes(buf.data().data())

    def to_data_url(self) -> str:
        encoded = QtCore.QByteArray(self.to_png_bytes()).toBase64()
        return "data:image/png;base64," + bytes(encoded.data()).decode("ascii")
