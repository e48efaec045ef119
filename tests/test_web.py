"""
Tests for the Flask JSON API.
"""

import pytest

from factorio_mod_tool.web.app import create_app

from conftest import read_mod_list, write_mod_list, write_mod_zip


@pytest.fixture
def client(game_dir):
    write_mod_zip(game_dir / "mods", "foo", "0.3.1")
    write_mod_list(game_dir / "mods", [("base", True), ("foo", False)])
    app = create_app(settings_path=game_dir / "factoriomodtool.settings")
    app.config["TESTING"] = True
    return app.test_client()


def test_list_mods(client):
    response = client.get("/api/mods")
    assert response.status_code == 200
    mods = response.get_json()["mods"]
    assert [m["name"] for m in mods] == ["base", "foo"]
    assert mods[1] == {
        "name": "foo",
        "enabled": False,
        "version": "0.3.1",
        "archive": "foo_0.3.1.zip",
    }


def test_enabled(client):
    assert client.get("/api/mods/enabled").get_json() == {"enabled": ["base"]}


def test_apply(client, game_dir):
    response = client.post("/api/apply", json={"enable": ["foo"], "disable": "missing"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["enabled"] == ["foo"]
    assert data["error_count"] == 1
    assert data["errors"][0]["kind"] == "UnknownMod"
    assert read_mod_list(game_dir / "mods") == [("base", True), ("foo", True)]


def test_apply_nothing(client):
    assert client.post("/api/apply", json={}).status_code == 400


@pytest.mark.parametrize("body", [["foo"], {"enable": 5}, {"disable": {"foo": True}}])
def test_apply_malformed_body(client, game_dir, body):
    before = (game_dir / "mods" / "mod-list.json").read_text()
    response = client.post("/api/apply", json=body)
    assert response.status_code == 400
    assert "error" in response.get_json()
    assert (game_dir / "mods" / "mod-list.json").read_text() == before


def test_fatal_error(client, game_dir):
    (game_dir / "mods" / "mod-list.json").unlink()
    response = client.post("/api/apply", json={"enable": ["foo"]})
    assert response.status_code == 400
    assert response.get_json()["code"] == 7


def test_missing_settings(tmp_path):
    app = create_app(settings_path=tmp_path / "missing.settings")
    response = app.test_client().get("/api/mods")
    assert response.status_code == 400
    assert response.get_json()["code"] == 8


def test_mods_dir_override(mods_dir):
    write_mod_zip(mods_dir, "bar")
    write_mod_list(mods_dir, [("bar", True)])
    app = create_app(mods_dir=mods_dir)
    response = app.test_client().get("/api/mods/enabled")
    assert response.get_json() == {"enabled": ["base", "bar"]}
