from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import config
from .data_io import data_extent, read_data_set
from .domain.errors import HeatmapConfigError, SurfaceError

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%H:%M:%S'
)
_logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="heatcanvas", description="Render a density heatmap from point data.")
    parser.add_argument("input", help="CSV (x,y[,count]) or JSON ({max, data}) point file")
    parser.add_argument("-o", "--output", default="heatmap.png", help="PNG output path")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--radius", type=int, default=config.DEFAULT_RADIUS)
    parser.add_argument("--opacity", type=float, default=None, help="opacity ceiling, 0..100")
    parser.add_argument("--max", type=float, default=None, help="normalization max (default: auto)")
    parser.add_argument("--data-url", action="store_true", help="print the PNG as a data URL")
    parser.add_argument("--show", action="store_true", help="open a window with the result")
    parser.add_argument("--debug", action="store_true")
    return parser


def run_qt(engine) -> int:
    from PySide6 import QtWidgets  # type: ignore
    from .ui.heatmap_view import HeatmapView

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(sys.argv)
    win = HeatmapView(engine)
    win.setWindowTitle("heatcanvas")
    win.show()
    rc = app.exec()
    return int(rc)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    # Qt provides the drawing surface; raise a clear error if unavailable
    try:
        import PySide6  # noqa: F401
    except Exception as exc:
        raise RuntimeError("PySide6 is required to render heatmaps.") from exc
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        data_set = read_data_set(args.input)
    except (OSError, ValueError) as exc:
        _logger.error(f"Failed to read {args.input}: {exc}")
        return 1
    if args.max is not None:
        data_set["max"] = args.max

    # Default canvas covers the data plus one radius of margin
    ext_x, ext_y = data_extent(data_set["data"])
    width = args.width if args.width is not None else max(1, ext_x + args.radius)
    height = args.height if args.height is not None else max(1, ext_y + args.radius)

    try:
        from .engine import HeatmapEngine

        engine = HeatmapEngine(
            radius=args.radius,
            opacity=args.opacity,
            width=width,
            height=height,
            debug=args.debug,
        )
        engine.load_data_set(data_set)
        png = engine.export_buffer()
    except (HeatmapConfigError, SurfaceError) as exc:
        _logger.error(f"Cannot render heatmap: {exc}")
        return 1

    out_path = os.path.abspath(args.output)
    parent = os.path.dirname(out_path)
    if parent and not os.path.isdir(parent):
        os.makedirs(parent, exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(png)
    _logger.info(f"Wrote {engine.width}x{engine.height} heatmap with {len(engine.store)} cells to {out_path}")

    if args.data_url:
        print(engine.export_data_url())
    if args.show:
        return run_qt(engine)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
