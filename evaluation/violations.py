"""Violation types raised by the layout validators.

Every violation is a :class:`ValueError` carrying the structured fields
needed to point the submitter at the offending placement, plus a stable
``code`` used by the HTTP layer and in JSON reports.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LayoutViolation(ValueError):
    """Base class for a layout that breaks a room or inventory constraint."""

    code = "layout_violation"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details()}


class ForbiddenZoneViolation(LayoutViolation):
    code = "forbidden_zone"

    def __init__(self, placement_index: int, zone_id: str, furniture_name: Optional[str] = None) -> None:
        label = furniture_name or f"placement #{placement_index}"
        super().__init__(f"Furniture '{label}' (placement {placement_index}) is placed in no-go zone '{zone_id}'")
        self.placement_index = placement_index
        self.zone_id = zone_id

    def details(self) -> Dict[str, Any]:
        return {"placementIndex": self.placement_index, "zoneId": self.zone_id}


class OutOfBoundsViolation(LayoutViolation):
    code = "out_of_bounds"

    def __init__(self, placement_index: int, furniture_name: Optional[str] = None) -> None:
        label = furniture_name or f"placement #{placement_index}"
        super().__init__(f"Furniture '{label}' (placement {placement_index}) is placed outside the room boundaries")
        self.placement_index = placement_index

    def details(self) -> Dict[str, Any]:
        return {"placementIndex": self.placement_index}


class CollisionViolation(LayoutViolation):
    code = "collision"

    def __init__(
        self,
        placement_index_a: int,
        placement_index_b: int,
        name_a: Optional[str] = None,
        name_b: Optional[str] = None,
    ) -> None:
        a = name_a or f"placement #{placement_index_a}"
        b = name_b or f"placement #{placement_index_b}"
        super().__init__(
            f"Furniture '{a}' (placement {placement_index_a}) overlaps with "
            f"'{b}' (placement {placement_index_b})"
        )
        self.placement_index_a = placement_index_a
        self.placement_index_b = placement_index_b

    def details(self) -> Dict[str, Any]:
        return {"placementIndexA": self.placement_index_a, "placementIndexB": self.placement_index_b}


class UnknownItemViolation(LayoutViolation):
    code = "unknown_item"

    def __init__(self, furniture_id: str) -> None:
        super().__init__(f"Layout contains unrequested furniture id: {furniture_id}")
        self.furniture_id = furniture_id

    def details(self) -> Dict[str, Any]:
        return {"furnitureId": self.furniture_id}


class QuantityMismatchViolation(LayoutViolation):
    code = "quantity_mismatch"

    def __init__(self, furniture_id: str, required: int, found: int) -> None:
        super().__init__(
            f"Layout must contain exactly {required} of item {furniture_id}, but found {found}"
        )
        self.furniture_id = furniture_id
        self.required = required
        self.found = found

    def details(self) -> Dict[str, Any]:
        return {"furnitureId": self.furniture_id, "required": self.required, "found": self.found}
