import argparse
import json
import logging
import sys
import requests
from requests.exceptions import RequestException

log = logging.getLogger(__name__)


def _load_json(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.error("Failed to read %s: %s", path, e)
        sys.exit(1)


def _call(method, url, headers, payload=None):
    """Send one request and return ``(status_code, body)``; exit on transport failure."""
    try:
        resp = requests.request(method, url, json=payload, headers=headers, timeout=120)
    except RequestException as e:
        print(f"Request to {url} failed: {e}")
        sys.exit(1)
    try:
        body = resp.json()
    except ValueError:
        body = {"message": resp.text}
    return resp.status_code, body


def _report(status, body):
    if status >= 400:
        print(f"Error {status} [{body.get('code', 'error')}]: {body.get('message')}")
        if body.get("details"):
            print(json.dumps(body["details"], indent=2))
        return 1
    print(json.dumps(body, indent=2))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Work with a DormCraft layout board via the API")
    parser.add_argument(
        "--api",
        default="http://localhost:8000",
        help="Base URL of the board API",
    )
    parser.add_argument("--api-key", default="testkey", help="API key for authentication")
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create", help="Create a board from a room bundle JSON file")
    p_create.add_argument("--room", default="sample_room.json", help="Path to room bundle JSON")
    p_create.add_argument("--board", help="Board id (generated when omitted)")

    p_join = sub.add_parser("join", help="Add a user to a board")
    p_join.add_argument("board")
    p_join.add_argument("name")

    p_submit = sub.add_parser("submit", help="Propose a layout")
    p_submit.add_argument("board")
    p_submit.add_argument("--layout", required=True, help="Path to layout JSON")
    p_submit.add_argument("--creator", help="Creator name (overrides the file)")

    p_comment = sub.add_parser("comment", help="Comment on a board")
    p_comment.add_argument("board")
    p_comment.add_argument("user")
    p_comment.add_argument("text")

    p_suggest = sub.add_parser("suggest", help="Ask the AI for a compromise layout")
    p_suggest.add_argument("board")

    p_layouts = sub.add_parser("layouts", help="List accepted layouts")
    p_layouts.add_argument("board")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    headers = {"X-API-Key": args.api_key}
    base = args.api.rstrip("/")

    if args.command == "create":
        payload = _load_json(args.room)
        if isinstance(payload.get("furniture"), dict):
            payload["furniture"] = list(payload["furniture"].values())
        if args.board:
            payload["board_id"] = args.board
        status, body = _call("POST", f"{base}/boards", headers, payload)
    elif args.command == "join":
        status, body = _call("POST", f"{base}/boards/{args.board}/users", headers, {"name": args.name})
    elif args.command == "submit":
        layout = _load_json(args.layout)
        if isinstance(layout, list):
            layout = {"placements": layout}
        creator = args.creator or layout.get("creator")
        if not creator:
            log.error("A creator is required (in the layout file or via --creator)")
            return 1
        payload = {"creator": creator, "placements": layout.get("placements", [])}
        status, body = _call("POST", f"{base}/boards/{args.board}/layouts", headers, payload)
    elif args.command == "comment":
        payload = {"user": args.user, "text": args.text}
        status, body = _call("POST", f"{base}/boards/{args.board}/comments", headers, payload)
    elif args.command == "suggest":
        status, body = _call("POST", f"{base}/boards/{args.board}/suggest", headers)
    else:
        status, body = _call("GET", f"{base}/boards/{args.board}/layouts", headers)

    return _report(status, body)


if __name__ == "__main__":
    sys.exit(main())
