"""Evaluate a furniture layout against a room bundle.

Loads the room and catalog, runs every validator, and reports all
violations found.  With ``--strict`` the script exits non-zero when the
layout would be rejected by the board.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path


# Ensure repository root is on ``sys.path`` when running as a script
current_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = os.path.abspath(os.path.join(current_dir, ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from catalog.loader import load_layout, load_room_bundle
from evaluation.validators import collect_violations


class LayoutRejectedError(RuntimeError):
    """Raised in strict mode when the layout has at least one violation."""


log = logging.getLogger(__name__)


def evaluate(room_path: str, layout_path: str) -> dict:
    """Return a JSON-serializable report for the layout at ``layout_path``."""
    bundle = load_room_bundle(room_path)
    layout = load_layout(layout_path)
    violations = collect_violations(layout, bundle.room, bundle.catalog)
    return {
        "room_id": bundle.room.id,
        "creator": layout.creator,
        "placements": len(layout.placements),
        "valid": not violations,
        "violations": [v.to_dict() for v in violations],
    }


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--room", required=True, help="Path to room bundle JSON")
    ap.add_argument("--layout", required=True, help="Path to layout JSON")
    ap.add_argument(
        "--strict",
        action="store_true",
        help="Exit with a non-zero status if any violation is found",
    )
    ap.add_argument("--json-report", help="Optional path to write a JSON report")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    report = evaluate(args.room, args.layout)

    if args.json_report:
        Path(args.json_report).write_text(json.dumps(report, indent=2), encoding="utf-8")
        log.info("Wrote report to %s", Path(args.json_report).resolve())

    if report["violations"]:
        log_func = log.error if args.strict else log.warning
        for item in report["violations"]:
            log_func("[%s] %s", item["code"], item["message"])
        if args.strict:
            raise LayoutRejectedError("; ".join(v["message"] for v in report["violations"]))
    else:
        log.info("No violations detected")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI entry point
        log.error("%s", exc)
        sys.exit(1)
