"""
Occupancy heatmap.

The plan's bounding box (over every shape, booth or not) is cut into square
cells of ``grid_size``.  Each booth adds its status weight to the cell that
holds its centre.
"""

import math
from typing import Any, Dict, List

from expo_floor.core.constants import STATUS_WEIGHTS
from expo_floor.domain.enums import BoothStatus
from expo_floor.domain.models import FloorPlan


def compute_occupancy_heatmap(plan: FloorPlan) -> Dict[str, Any]:
    size = plan.grid_size
    booths = plan.booths()
    if not booths:
        return {
            "gridSize": size,
            "origin": {"x": 0.0, "y": 0.0},
            "rows": 0,
            "cols": 0,
            "cells": [],
            "maxWeight": 0.0,
        }

    min_x = min(s.x for s in plan.shapes)
    min_y = min(s.y for s in plan.shapes)
    max_x = max(s.x + s.width for s in plan.shapes)
    max_y = max(s.y + s.height for s in plan.shapes)

    cols = max(1, math.ceil((max_x - min_x) / size))
    rows = max(1, math.ceil((max_y - min_y) / size))
    cells: List[List[float]] = [[0.0] * cols for _ in range(rows)]

    for booth in booths:
        cx, cy = booth.center
        # A centre on the far edge belongs to the last cell.
        col = min(int((cx - min_x) // size), cols - 1)
        row = min(int((cy - min_y) // size), rows - 1)
        status = (booth.metadata.status or BoothStatus.AVAILABLE).value
        cells[row][col] += STATUS_WEIGHTS[status]

    return {
        "gridSize": size,
        "origin": {"x": min_x, "y": min_y},
        "rows": rows,
        "cols": cols,
        "cells": cells,
        "maxWeight": max(max(r) for r in cells),
    }
