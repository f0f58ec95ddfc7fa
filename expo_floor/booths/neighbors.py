"""
Spatial neighbor finder: booths whose centres lie within K grid cells of a
target booth.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from expo_floor import config
from expo_floor.core.errors import NotFound, ValidationError
from expo_floor.domain.models import BoothShape, FloorPlan


@dataclass
class Neighbor:
    shape: BoothShape
    distance: float


def _distance(a: BoothShape, b: BoothShape) -> float:
    ax, ay = a.center
    bx, by = b.center
    return math.hypot(ax - bx, ay - by)


def get_neighboring_booths(
    plan: FloorPlan,
    target_booth_number: str,
    radius_cells: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Neighbor]:
    """Booths within ``grid_size * radius_cells`` of the target, nearest first.

    The target is the first booth in array order carrying the number; it is
    never its own neighbor.  Ties on distance are broken by shape id.
    """
    k = config.NEIGHBOR_RADIUS_CELLS if radius_cells is None else radius_cells
    if k <= 0:
        raise ValidationError("Neighbor radius must be a positive number of grid cells")
    if limit is not None and limit < 0:
        raise ValidationError("Neighbor limit cannot be negative")

    booths = plan.booths()
    target = next((b for b in booths if b.metadata.booth_number == target_booth_number), None)
    if target is None:
        raise NotFound(f"Booth {target_booth_number} not found on floor plan {plan.id}")

    threshold = plan.grid_size * k
    found = []
    for booth in booths:
        if booth.id == target.id:
            continue
        d = _distance(target, booth)
        if d <= threshold:
            found.append(Neighbor(shape=booth, distance=d))

    found.sort(key=lambda n: (n.distance, n.shape.id))
    if limit is not None:
        found = found[:limit]
    return found
