"""Geometry and inventory validators for furniture layouts.

A layout is admissible only if it keeps every piece out of the room's
no-go zones, inside the room, clear of every other piece, and uses exactly
the furniture the room requires.  Each check raises the first
:class:`~evaluation.violations.LayoutViolation` it finds, in a fixed order,
so the same candidate always produces the same error.
:func:`collect_violations` reports everything at once for diagnostics.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from catalog.models import FurnitureKind, LayoutCandidate, RoomSpec
from evaluation.violations import (
    CollisionViolation,
    ForbiddenZoneViolation,
    LayoutViolation,
    OutOfBoundsViolation,
    QuantityMismatchViolation,
    UnknownItemViolation,
)
from geometry.kernel import Rect, contains, footprint, overlaps, room_rect, zone_rect

logger = logging.getLogger(__name__)

Catalog = Mapping[str, FurnitureKind]


class IncompleteCatalogError(ValueError):
    """Raised when the room requires furniture the catalog has no dimensions for."""


def ensure_catalog_covers(room: RoomSpec, catalog: Catalog) -> None:
    missing = [item_id for item_id in room.requiredFurniture if item_id not in catalog]
    if missing:
        raise IncompleteCatalogError(
            f"Required furniture missing from catalog: {', '.join(missing)}"
        )


def _footprints(
    layout: LayoutCandidate, room: RoomSpec, catalog: Catalog
) -> List[Tuple[int, FurnitureKind, Rect]]:
    """Return ``(index, kind, rect)`` for every placement with a known kind.

    Every required kind must be in the catalog.  Placements of unrequested
    ids outside the catalog have no footprint; the inventory check reports
    them instead.
    """
    ensure_catalog_covers(room, catalog)
    out: List[Tuple[int, FurnitureKind, Rect]] = []
    for idx, placement in enumerate(layout.placements):
        kind = catalog.get(placement.furnitureId)
        if kind is None:
            continue
        out.append((idx, kind, footprint(placement, kind)))
    return out


def iter_zone_violations(
    layout: LayoutCandidate, room: RoomSpec, catalog: Catalog
) -> Iterator[ForbiddenZoneViolation]:
    zones = [(zone.id, zone_rect(zone)) for zone in room.noGoZones]
    for idx, kind, rect in _footprints(layout, room, catalog):
        for zone_id, zrect in zones:
            if overlaps(rect, zrect):
                yield ForbiddenZoneViolation(idx, zone_id, kind.name)


def iter_bounds_and_collision_violations(
    layout: LayoutCandidate, room: RoomSpec, catalog: Catalog
) -> Iterator[LayoutViolation]:
    bounds = room_rect(room)
    placed = _footprints(layout, room, catalog)
    for pos, (i, kind_i, rect_i) in enumerate(placed):
        if not contains(bounds, rect_i):
            yield OutOfBoundsViolation(i, kind_i.name)
        # Pairwise comparison; n is bounded by the room's inventory.
        for j, kind_j, rect_j in placed[pos + 1 :]:
            if overlaps(rect_i, rect_j):
                yield CollisionViolation(i, j, kind_i.name, kind_j.name)


def iter_inventory_violations(
    layout: LayoutCandidate, room: RoomSpec
) -> Iterator[LayoutViolation]:
    placed_counts: Dict[str, int] = Counter(p.furnitureId for p in layout.placements)
    required = room.requiredFurniture
    # Counter preserves first-seen order
    for item_id in placed_counts:
        if item_id not in required:
            yield UnknownItemViolation(item_id)
    for item_id, required_count in required.items():
        found = placed_counts.get(item_id, 0)
        if found != required_count:
            yield QuantityMismatchViolation(item_id, required_count, found)


def _raise_first(violations: Iterator[LayoutViolation]) -> None:
    first: Optional[LayoutViolation] = next(violations, None)
    if first is not None:
        raise first


def check_forbidden_zones(layout: LayoutCandidate, room: RoomSpec, catalog: Catalog) -> None:
    """Raise :class:`ForbiddenZoneViolation` if any piece enters a no-go zone.

    Placements are scanned in order, and for each placement the zones are
    scanned in the room's order.
    """
    _raise_first(iter_zone_violations(layout, room, catalog))


def check_bounds_and_collisions(layout: LayoutCandidate, room: RoomSpec, catalog: Catalog) -> None:
    """Raise on the first piece outside the room or overlapping another.

    For placement ``i`` the room boundary is tested first, then every later
    placement ``j > i``.  Pieces touching along an edge are allowed.
    """
    _raise_first(iter_bounds_and_collision_violations(layout, room, catalog))


def check_inventory(layout: LayoutCandidate, room: RoomSpec) -> None:
    """Raise if the layout's furniture multiset differs from the room's requirement.

    Unrequested ids are reported first, in the order they appear in the
    layout.  Count mismatches follow in the order of ``requiredFurniture``.
    """
    _raise_first(iter_inventory_violations(layout, room))


def validate_layout(layout: LayoutCandidate, room: RoomSpec, catalog: Catalog) -> bool:
    """Run all validators and raise on the first violation.

    Order: no-go zones, then bounds and collisions, then inventory.

    Returns:
        ``True`` when the layout passes every check.
    """
    check_forbidden_zones(layout, room, catalog)
    check_bounds_and_collisions(layout, room, catalog)
    check_inventory(layout, room)
    logger.debug("Layout %s by %s passed validation", layout.layoutId, layout.creator)
    return True


def collect_violations(
    layout: LayoutCandidate, room: RoomSpec, catalog: Catalog
) -> List[LayoutViolation]:
    """Return every violation of ``layout`` instead of stopping at the first.

    The order matches :func:`validate_layout`, so the first item of a
    non-empty result is the violation :func:`validate_layout` would raise.
    """
    issues: List[LayoutViolation] = []
    issues.extend(iter_zone_violations(layout, room, catalog))
    issues.extend(iter_bounds_and_collision_violations(layout, room, catalog))
    issues.extend(iter_inventory_violations(layout, room))
    return issues


class LayoutValidator:
    """Validators bound to one room and its furniture catalog."""

    def __init__(self, room: RoomSpec, catalog: Catalog) -> None:
        ensure_catalog_covers(room, catalog)
        self.room = room
        self.catalog = dict(catalog)

    def check_forbidden_zones(self, layout: LayoutCandidate) -> None:
        check_forbidden_zones(layout, self.room, self.catalog)

    def check_bounds_and_collisions(self, layout: LayoutCandidate) -> None:
        check_bounds_and_collisions(layout, self.room, self.catalog)

    def check_inventory(self, layout: LayoutCandidate) -> None:
        check_inventory(layout, self.room)

    def validate(self, layout: LayoutCandidate) -> bool:
        return validate_layout(layout, self.room, self.catalog)

    def collect(self, layout: LayoutCandidate) -> List[LayoutViolation]:
        return collect_violations(layout, self.room, self.catalog)
