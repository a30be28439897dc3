import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6 import QtWidgets

from heatcanvas.engine import HeatmapEngine


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def make_engine():
    def _make(**options):
        opts = {"radius": 10, "width": 100, "height": 100}
        opts.update(options)
        return HeatmapEngine(opts)
    return _make
