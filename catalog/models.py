from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from catalog.constants import PENDING_LAYOUT_ID


class User(BaseModel):
    name: str = Field(min_length=1)


class Comment(BaseModel):
    user: User
    text: str
    timestamp: float


class FurnitureKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    width: float = Field(gt=0, allow_inf_nan=False)
    depth: float = Field(gt=0, allow_inf_nan=False)
    isMovable: bool = True


class ForbiddenZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    xMin: float = Field(allow_inf_nan=False)
    yMin: float = Field(allow_inf_nan=False)
    xMax: float = Field(allow_inf_nan=False)
    yMax: float = Field(allow_inf_nan=False)

    @model_validator(mode="after")
    def _ordered_corners(self) -> "ForbiddenZone":
        if not (self.xMin < self.xMax and self.yMin < self.yMax):
            raise ValueError(f"Zone '{self.id}' must satisfy xMin < xMax and yMin < yMax")
        return self


class RoomSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    width: float = Field(gt=0, allow_inf_nan=False)
    depth: float = Field(gt=0, allow_inf_nan=False)
    requiredFurniture: Dict[str, int] = Field(default_factory=dict)
    noGoZones: List[ForbiddenZone] = Field(default_factory=list)

    @field_validator("requiredFurniture")
    @classmethod
    def _non_negative(cls, value: Dict[str, int]) -> Dict[str, int]:
        for item_id, count in value.items():
            if count < 0:
                raise ValueError(f"Required count for '{item_id}' cannot be negative")
        return value

    @field_validator("noGoZones")
    @classmethod
    def _unique_zone_ids(cls, value: List[ForbiddenZone]) -> List[ForbiddenZone]:
        seen: set[str] = set()
        for zone in value:
            if zone.id in seen:
                raise ValueError(f"Duplicate no-go zone id '{zone.id}'")
            seen.add(zone.id)
        return value


class Placement(BaseModel):
    furnitureId: str
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)
    # Stored and echoed back, but never used to compute footprints.
    rotation: float = Field(default=0.0, allow_inf_nan=False)


class LayoutCandidate(BaseModel):
    layoutId: str = PENDING_LAYOUT_ID
    placements: List[Placement] = Field(default_factory=list)
    creator: str


class SuggestionResult(BaseModel):
    """Decoded answer of a suggestion source."""

    model_config = ConfigDict(extra="forbid")

    placements: List[Placement]
    rationale: str


class RoomBundle(BaseModel):
    """A room together with the furniture catalog its layouts draw from."""

    room: RoomSpec
    furniture: List[FurnitureKind]

    @model_validator(mode="after")
    def _catalog_covers_room(self) -> "RoomBundle":
        ids = [f.id for f in self.furniture]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"Duplicate furniture ids in catalog: {', '.join(dupes)}")
        missing = [i for i in self.room.requiredFurniture if i not in ids]
        if missing:
            raise ValueError(f"Required furniture missing from catalog: {', '.join(missing)}")
        return self

    @property
    def catalog(self) -> Dict[str, FurnitureKind]:
        return {f.id: f for f in self.furniture}
