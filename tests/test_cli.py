import json
from unittest.mock import patch

from conftest import DORM_BUNDLE, VALID_PLACEMENTS
from interface import cli


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = json.dumps(body)

    def json(self):
        return self._body


def test_create_posts_room_bundle(tmp_path, capsys):
    room = tmp_path / "room.json"
    room.write_text(json.dumps(DORM_BUNDLE))
    with patch("interface.cli.requests.request", return_value=FakeResponse(200, {"board_id": "b1"})) as req:
        code = cli.main(["--api", "http://svc/", "create", "--room", str(room), "--board", "b1"])
    assert code == 0
    method, url = req.call_args.args
    assert (method, url) == ("POST", "http://svc/boards")
    payload = req.call_args.kwargs["json"]
    assert payload["board_id"] == "b1"
    assert payload["room"]["id"] == "EC_Dbl_12x15"
    assert '"board_id": "b1"' in capsys.readouterr().out


def test_submit_uses_creator_from_file(tmp_path):
    layout = tmp_path / "layout.json"
    layout.write_text(json.dumps({"creator": "Selena", "placements": VALID_PLACEMENTS}))
    with patch("interface.cli.requests.request", return_value=FakeResponse(200, {"layoutId": "L1"})) as req:
        code = cli.main(["submit", "b1", "--layout", str(layout)])
    assert code == 0
    assert req.call_args.args[1] == "http://localhost:8000/boards/b1/layouts"
    assert req.call_args.kwargs["json"]["creator"] == "Selena"
    assert req.call_args.kwargs["headers"] == {"X-API-Key": "testkey"}


def test_error_response_returns_non_zero(capsys):
    body = {"code": "malformed_suggestion", "message": "Suggestion could not be decoded", "details": {"reason": "x"}}
    with patch("interface.cli.requests.request", return_value=FakeResponse(422, body)):
        code = cli.main(["suggest", "b1"])
    assert code == 1
    out = capsys.readouterr().out
    assert "Error 422 [malformed_suggestion]" in out
