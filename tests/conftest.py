import json
from copy import deepcopy

import pytest

from catalog.models import LayoutCandidate, RoomBundle

DORM_BUNDLE = {
    "room": {
        "id": "EC_Dbl_12x15",
        "width": 12.0,
        "depth": 15.0,
        "requiredFurniture": {"bed_twin_xl": 2, "desk_mit": 2, "dresser_mit": 2},
        "noGoZones": [
            {"id": "door_swing", "xMin": 0.0, "yMin": 0.0, "xMax": 3.0, "yMax": 3.0},
            {"id": "window_wall", "xMin": 0.0, "yMin": 14.5, "xMax": 12.0, "yMax": 15.0},
        ],
    },
    "furniture": [
        {"id": "bed_twin_xl", "name": "Bed (Twin XL)", "width": 3.25, "depth": 6.67},
        {"id": "desk_mit", "name": "MIT Desk", "width": 2.0, "depth": 4.0},
        {"id": "dresser_mit", "name": "Dresser (3-Drawer)", "width": 2.0, "depth": 2.5},
    ],
}

VALID_PLACEMENTS = [
    {"furnitureId": "bed_twin_xl", "x": 3.5, "y": 0.5, "rotation": 0},
    {"furnitureId": "bed_twin_xl", "x": 8.0, "y": 0.5, "rotation": 0},
    {"furnitureId": "dresser_mit", "x": 0.5, "y": 3.5, "rotation": 0},
    {"furnitureId": "dresser_mit", "x": 3.5, "y": 8.0, "rotation": 0},
    {"furnitureId": "desk_mit", "x": 0.5, "y": 10.0, "rotation": 0},
    {"furnitureId": "desk_mit", "x": 9.0, "y": 10.0, "rotation": 90},
]

# 10x10 room with 3x3 boxes; integer coordinates keep edge cases exact.
BOX_BUNDLE = {
    "room": {
        "id": "box_room",
        "width": 10,
        "depth": 10,
        "requiredFurniture": {"box": 2},
        "noGoZones": [{"id": "door", "xMin": 0, "yMin": 0, "xMax": 3, "yMax": 3}],
    },
    "furniture": [{"id": "box", "name": "Box", "width": 3, "depth": 3}],
}


def make_layout(placements, creator="tester"):
    return LayoutCandidate.model_validate({"placements": deepcopy(placements), "creator": creator})


def box(x, y, furniture_id="box"):
    return {"furnitureId": furniture_id, "x": x, "y": y, "rotation": 0}


@pytest.fixture
def dorm_bundle():
    return RoomBundle.model_validate(deepcopy(DORM_BUNDLE))


@pytest.fixture
def box_bundle():
    return RoomBundle.model_validate(deepcopy(BOX_BUNDLE))


@pytest.fixture
def valid_placements():
    return deepcopy(VALID_PLACEMENTS)


@pytest.fixture
def ai_response():
    """Build source text that wraps a suggestion object in prose."""

    def _build(placements, rationale="Both desks get window light."):
        body = json.dumps({"placements": placements, "rationale": rationale}, indent=2)
        return f"Here is the compromise layout:\n```json\n{body}\n```\nLet me know!"

    return _build
