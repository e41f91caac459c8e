import json
import logging
from pathlib import Path
import sys

# Ensure repo root on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from board.board import CollaborationBoard
from catalog.loader import load_room_bundle
from catalog.models import LayoutCandidate, User
from suggest.sources import StaticSource, source_from_env

# Smoke run of a two-person board
# 1) Two conflicting proposals and comments
# 2) AI compromise (real source when SUGGEST_API_KEY is set, canned answer otherwise)
# 3) A proposal blocking the door swing
# 4) A proposal missing a bed

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

ROOT = Path(__file__).resolve().parents[1]
bundle = load_room_bundle(ROOT / "sample_room.json")
base = json.loads((ROOT / "sample_layout.json").read_text())["placements"]

selena = User(name="Selena")
alex = User(name="Alex")

canned = {
    "placements": base,
    "rationale": "Desks sit on opposite sides of the window wall so both get light.",
}
source = source_from_env() or StaticSource(json.dumps(canned))
board = CollaborationBoard("DORM_EC_301", bundle, source)
board.join(selena)
board.join(alex)

print("--- SCENARIO 1: window access conflict ---")
selena_layout = [dict(p) for p in base]
alex_layout = [dict(p) for p in base]
alex_layout[4], alex_layout[5] = dict(alex_layout[5]), dict(alex_layout[4])
board.add_layout(LayoutCandidate(placements=selena_layout, creator=selena.name))
board.add_layout(LayoutCandidate(placements=alex_layout, creator=alex.name))
board.comment(selena, "I need my desk by the window for my plants and sun for studying.")
board.comment(alex, "I want my desk by the sun because that's how I work best!")

outcome = board.run_suggestion()
print("Suggestion:", outcome.state.value, outcome.layout.layoutId if outcome.layout else outcome.error)
print("Layouts on board:", list(board.layouts))

print("--- SCENARIO 2: door block ---")
door_block = [dict(p) for p in base]
door_block[4] = {"furnitureId": "desk_mit", "x": 1.5, "y": 1.5, "rotation": 0}
print("Accepted:", board.add_layout(LayoutCandidate(placements=door_block, creator=selena.name)))

print("--- SCENARIO 3: missing bed ---")
print("Accepted:", board.add_layout(LayoutCandidate(placements=base[1:], creator=selena.name)))

print("Share link:", board.share_link())
