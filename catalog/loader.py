"""Read room bundles and layouts from JSON files."""

import json
import logging
from pathlib import Path
from typing import Union

from catalog.constants import VERSION
from catalog.models import LayoutCandidate, RoomBundle, SuggestionResult

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_room_bundle(path: PathLike) -> RoomBundle:
    """Load a :class:`RoomBundle` from ``path``.

    The file holds an object with a ``room`` entry and a ``furniture`` list.
    The furniture list may also be given as a mapping of id to entry, the
    shape the board front-end exports.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    furniture = data.get("furniture")
    if isinstance(furniture, dict):
        data = {**data, "furniture": list(furniture.values())}
    bundle = RoomBundle.model_validate(data)
    log.info(
        "Loaded room %s (%sx%s) with %d catalog entries",
        bundle.room.id,
        bundle.room.width,
        bundle.room.depth,
        len(bundle.furniture),
    )
    return bundle


def load_layout(path: PathLike, creator: str = "cli") -> LayoutCandidate:
    """Load a layout file: either a full layout object or a bare placement list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"placements": data, "creator": creator}
    else:
        data.setdefault("creator", creator)
    return LayoutCandidate.model_validate(data)


def emit_suggestion_schema(path: PathLike) -> None:
    """Write the versioned JSON Schema a suggestion source must answer with."""
    schema = SuggestionResult.model_json_schema()
    schema["$id"] = f"urn:dormcraft:suggestion:{VERSION}"
    schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2)
