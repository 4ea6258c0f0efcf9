import io
import json
import urllib.error

import pytest

from toneshare import client as client_mod
from toneshare.client import SetupClient
from toneshare.errors import ExternalServiceFailure


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def calls(monkeypatch):
    """Record requests and answer from a queue of canned replies."""
    seen = []
    replies = []

    def fake_urlopen(req, timeout=None):
        seen.append(req)
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(reply)

    monkeypatch.setattr(client_mod.urllib.request, "urlopen", fake_urlopen)
    return seen, replies


def test_list_setups(calls):
    seen, replies = calls
    replies.append(json.dumps([{"id": "setup-1"}]).encode())

    result = SetupClient("http://example.test/").list_setups()

    assert result == [{"id": "setup-1"}]
    assert seen[0].full_url == "http://example.test/api/setups"
    assert seen[0].get_method() == "GET"


def test_publish_posts_json(calls):
    seen, replies = calls
    replies.append(b'{"success": true}')

    SetupClient("http://example.test").publish({"id": "setup-1", "chain": []})

    req = seen[0]
    assert req.get_method() == "POST"
    assert req.get_header("Content-type") == "application/json"
    assert json.loads(req.data) == {"id": "setup-1", "chain": []}


def test_http_error_carries_server_message(calls):
    _, replies = calls
    body = io.BytesIO(b'{"error": "missing field(s): title"}')
    replies.append(urllib.error.HTTPError("http://x/api/setups", 400, "Bad Request", {}, body))

    with pytest.raises(ExternalServiceFailure, match="missing field"):
        SetupClient("http://x").publish({})


def test_unreachable_server(calls):
    _, replies = calls
    replies.append(urllib.error.URLError("connection refused"))

    with pytest.raises(ExternalServiceFailure, match="cannot reach"):
        SetupClient("http://x").list_setups()


def test_invalid_json(calls):
    _, replies = calls
    replies.append(b"<html>")
    with pytest.raises(ExternalServiceFailure):
        SetupClient("http://x").list_setups()


def test_install_returns_message(calls):
    _, replies = calls
    replies.append(b'{"success": true, "message": "Tables created"}')
    assert SetupClient("http://x").install() == "Tables created"
