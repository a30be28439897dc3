from __future__ import annotations

import csv
import json
import os
from typing import Any, Dict, List


def _parse_row(row: List[str], line_no: int) -> List[float]:
    cells = [c.strip() for c in row]
    if len(cells) not in (2, 3):
        raise ValueError(f"line {line_no}: expected x,y[,count], got {row!r}")
    try:
        values = [float(c) for c in cells]
    except ValueError as exc:
        raise ValueError(f"line {line_no}: non-numeric value in {row!r}") from exc
    if len(values) == 2:
        values.append(1.0)
    return values


def read_points_csv(path: str) -> List[List[float]]:
    """Read ``x,y[,count]`` rows. A non-numeric first row is treated as a header."""
    points: List[List[float]] = []
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        for line_no, row in enumerate(reader, start=1):
            if not row or not any(c.strip() for c in row):
                continue
            if line_no == 1:
                try:
                    float(row[0])
                except ValueError:
                    continue
            points.append(_parse_row(row, line_no))
    return points


def read_data_set_json(path: str) -> Dict[str, Any]:
    """Read ``{"max": m, "data": [[x, y, count], ...]}`` or a bare list of triples."""
    with open(path, mode="r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, list):
        return {"max": None, "data": payload}
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return {"max": payload.get("max"), "data": payload["data"]}
    raise ValueError(f"{path}: expected a list of points or an object with a 'data' list")


def read_data_set(path: str) -> Dict[str, Any]:
    ext = os.path.splitext(path)[1].lower()
    if ext == ".json":
        return read_data_set_json(path)
    return {"max": None, "data": read_points_csv(path)}


def data_extent(data: List[Any]) -> tuple:
    """Largest (x, y) in the data, or (0, 0) when empty."""
    max_x = 0
    max_y = 0
    for point in data:
        try:
            max_x = max(max_x, int(float(point[0])))
            max_y = max(max_y, int(float(point[1])))
        except (TypeError, ValueError, IndexError):
            continue
    return max_x, max_y
