from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from catalog.models import ForbiddenZone, FurnitureKind, Placement, RoomSpec


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle stored by its corner coordinates."""

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def from_origin(cls, x: float, y: float, w: float, h: float) -> "Rect":
        return cls(x, y, x + w, y + h)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.x_min, self.y_min, self.x_max, self.y_max)


def overlaps(a: Rect, b: Rect) -> bool:
    """Return ``True`` if two rectangles share interior area.

    Rectangles that only touch along an edge or at a corner do not overlap,
    so furniture may sit flush against a wall or against another piece.
    """
    ax1, ay1, ax2, ay2 = a.bounds
    bx1, by1, bx2, by2 = b.bounds
    return ax2 > bx1 and ax1 < bx2 and ay2 > by1 and ay1 < by2


def contains(outer: Rect, inner: Rect) -> bool:
    """Return ``True`` if ``inner`` lies within ``outer`` (edges inclusive)."""
    ox1, oy1, ox2, oy2 = outer.bounds
    ix1, iy1, ix2, iy2 = inner.bounds
    return ix1 >= ox1 and iy1 >= oy1 and ix2 <= ox2 and iy2 <= oy2


def footprint(placement: "Placement", kind: "FurnitureKind") -> Rect:
    # Rotation is metadata only; the footprint is always width x depth.
    return Rect.from_origin(
        float(placement.x), float(placement.y), float(kind.width), float(kind.depth)
    )


def zone_rect(zone: "ForbiddenZone") -> Rect:
    return Rect(float(zone.xMin), float(zone.yMin), float(zone.xMax), float(zone.yMax))


def room_rect(room: "RoomSpec") -> Rect:
    return Rect(0.0, 0.0, float(room.width), float(room.depth))
