import pytest

from toneshare import records
from toneshare import chain as ops
from toneshare.models import User
from toneshare.server import create_app
from toneshare.store import SetupStore


@pytest.fixture
def store(tmp_path):
    return SetupStore(tmp_path / "toneshare.db")


@pytest.fixture
def client(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app.test_client()


def _record():
    return records.setup_record(ops.default_chain(), User("user-1", "Ana"), "Numb", "Pink Floyd")


def test_setups_before_install_is_500(client):
    resp = client.get("/api/setups")
    assert resp.status_code == 500
    assert "not installed" in resp.get_json()["error"]


def test_install_then_publish_and_list(client):
    resp = client.post("/api/install")
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True

    record = _record()
    resp = client.post("/api/setups", json=record)
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}

    listed = client.get("/api/setups").get_json()
    assert [s["id"] for s in listed] == [record["id"]]
    assert listed[0]["chain"] == record["chain"]


def test_publish_invalid_record_is_400(client):
    client.post("/api/install")
    resp = client.post("/api/setups", json={"title": "no id"})
    assert resp.status_code == 400
    assert "missing" in resp.get_json()["error"]


def test_publish_non_json_is_400(client):
    client.post("/api/install")
    resp = client.post("/api/setups", data="nope", content_type="text/plain")
    assert resp.status_code == 400


def test_install_failure_reports_error(store, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    broken = SetupStore(blocker / "sub" / "toneshare.db")
    app = create_app(broken)
    resp = app.test_client().post("/api/install")
    assert resp.status_code == 500
    assert resp.get_json()["success"] is False


def test_catalog_endpoint(client):
    data = client.get("/api/catalog").get_json()
    assert data["pedals"][0]["name"] == "Dyna Comp"
    assert {a["brand"] for a in data["amplifiers"]} >= {"Marshall", "Vox"}


@pytest.mark.parametrize("field", ["title", "artist", "genre", "coverImage"])
def test_publish_non_text_field_is_400(client, field):
    client.post("/api/install")
    record = _record()
    record[field] = {"nested": 1}
    resp = client.post("/api/setups", json=record)
    assert resp.status_code == 400
    assert field in resp.get_json()["error"]
    assert client.get("/api/setups").get_json() == []
