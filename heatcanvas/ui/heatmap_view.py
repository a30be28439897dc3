from __future__ import annotations

from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from ..engine import HeatmapEngine


class HeatmapView(QtWidgets.QWidget):
    """Shows the engine's visible surface; left clicks add a point at the cursor."""
    point_added = QtCore.Signal(int, int)  # x, y in surface pixels

    def __init__(self, engine: HeatmapEngine, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.engine = engine
        self.setFixedSize(max(1, engine.width), max(1, engine.height))
        self.setAutoFillBackground(True)
        pal = self.palette()
        pal.setColor(QtGui.QPalette.Window, QtGui.QColor(18, 18, 20))
        self.setPalette(pal)

    def add_point_at(self, x: int, y: int, count: float = 1) -> None:
        self.engine.add_point(x, y, count)
        self.point_added.emit(int(x), int(y))
        self.update()

    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # noqa: N802
        if event.button() == QtCore.Qt.LeftButton:
            pos = event.position().toPoint()
            self.add_point_at(pos.x(), pos.y())
            return
        super().mousePressEvent(event)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # noqa: N802
        surface = self.engine.visible_surface
        if surface.is_empty:
            return
        p = QtGui.QPainter(self)
        try:
            p.drawImage(0, 0, surface.image)
        finally:
            p.end()
