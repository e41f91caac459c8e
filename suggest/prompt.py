"""Build the context a suggestion source sees and render it as a prompt."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Mapping

from catalog.models import Comment, FurnitureKind, LayoutCandidate, RoomSpec


def build_context(
    room: RoomSpec,
    catalog: Mapping[str, FurnitureKind],
    layouts: Iterable[LayoutCandidate],
    comments: Iterable[Comment],
) -> Dict[str, Any]:
    """Collect everything a source needs to propose a compromise layout."""
    return {
        "room": {"id": room.id, "width": room.width, "depth": room.depth},
        "noGoZones": [zone.model_dump() for zone in room.noGoZones],
        "furniture": [
            {
                "id": item_id,
                "name": catalog[item_id].name,
                "width": catalog[item_id].width,
                "depth": catalog[item_id].depth,
                "required": count,
            }
            for item_id, count in room.requiredFurniture.items()
        ],
        "comments": [f"{c.user.name}: {c.text}" for c in comments],
        "layouts": [layout.model_dump() for layout in layouts],
    }


PROMPT_TEMPLATE = """\
You are an AI layout optimizer for a shared dorm room. Analyze the proposals \
and comments below and produce ONE new compromise layout that is physically \
sound and resolves the conflicts between roommates.

ROOM: {room_id}, {width}x{depth} ft. The origin (0, 0) is the lower-left \
corner; x grows along the width and y along the depth. Each placement's \
(x, y) is the lower-left corner of the piece, which occupies width x depth.

NO-GO ZONES (no furniture may overlap these):
{zones}

FURNITURE (use exactly these quantities, no more, no less, no other ids):
{furniture}

COMMENTS:
{comments}

PROPOSED LAYOUTS:
{layouts}

REQUIREMENTS:
1. Include every required piece in the exact quantity listed.
2. Keep every piece inside the room and clear of every other piece; touching is allowed.
3. Synthesize the priorities stated in the comments and respect any veto.

Return a single JSON object with exactly this structure and no extra text:
{{
  "placements": [
    {{"furnitureId": "exact_id_from_list", "x": 0.5, "y": 8.0, "rotation": 0}}
  ],
  "rationale": "A brief explanation of how this layout resolves the conflict."
}}
"""


def render_prompt(context: Mapping[str, Any]) -> str:
    room = context["room"]
    zones = "\n".join(
        f"- {z['id']}: x {z['xMin']}..{z['xMax']}, y {z['yMin']}..{z['yMax']}"
        for z in context["noGoZones"]
    ) or "- none"
    furniture = "\n".join(
        f"- {f['name']} ({f['id']}): {f['width']}x{f['depth']} ft, quantity {f['required']}"
        for f in context["furniture"]
    )
    comments = "\n".join(f"- {line}" for line in context["comments"]) or "- none"
    return PROMPT_TEMPLATE.format(
        room_id=room["id"],
        width=room["width"],
        depth=room["depth"],
        zones=zones,
        furniture=furniture,
        comments=comments,
        layouts=json.dumps(context["layouts"], indent=2),
    )
