"""
Tests for the mod portal client and the downloader.
"""

from unittest.mock import MagicMock

import pytest
import requests

from factorio_mod_tool.api import ModNotFound, ModPortalAPI, ModPortalError
from factorio_mod_tool.downloader import DownloadError, Downloader
from factorio_mod_tool.settings import ServiceCredentials


def _response(status=200, json_data=None, chunks=None, url="https://mods.test/x"):
    response = MagicMock()
    response.status_code = status
    response.url = url
    response.headers = {"content-length": str(sum(len(c) for c in chunks or []))}
    response.json.return_value = json_data
    response.iter_content.return_value = chunks or []
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


def _api(*responses):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return ModPortalAPI(base_url="https://mods.test/", session=session), session


BAR = {
    "name": "bar",
    "releases": [
        {"version": "0.1.0", "file_name": "bar_0.1.0.zip", "download_url": "/download/bar/1"},
        {"version": "0.2.0", "file_name": "bar_0.2.0.zip", "download_url": "/download/bar/2"},
    ],
}


class TestModPortalAPI:

    def test_full_endpoint(self):
        api, session = _api(_response(json_data=BAR))
        assert api.get_mod_full("bar") == BAR
        session.get.assert_called_once_with("https://mods.test/api/mods/bar/full")

    def test_last_release_selected(self):
        api, _ = _api()
        assert api.latest_release(BAR)["file_name"] == "bar_0.2.0.zip"

    def test_last_release_even_when_not_highest(self):
        api, _ = _api()
        data = {"releases": list(reversed(BAR["releases"]))}
        assert api.latest_release(data)["file_name"] == "bar_0.1.0.zip"

    def test_not_found(self):
        api, _ = _api(_response(status=404))
        with pytest.raises(ModNotFound):
            api.get_mod_full("missing")

    def test_server_error(self):
        api, _ = _api(_response(status=500))
        with pytest.raises(ModPortalError):
            api.get_mod_full("bar")

    def test_network_failure(self):
        api, _ = _api(requests.ConnectionError("offline"))
        with pytest.raises(ModPortalError):
            api.get_mod_full("bar")

    def test_no_releases(self):
        api, _ = _api()
        with pytest.raises(ModPortalError):
            api.latest_release({"name": "bar", "releases": []})

    def test_url_join(self):
        api, _ = _api()
        assert api.url_for("/download/bar/2") == "https://mods.test/download/bar/2"
        assert api.url_for("download/bar/2") == "https://mods.test/download/bar/2"


class TestDownloader:

    def test_streams_to_declared_file_name(self, tmp_path):
        api, session = _api(_response(chunks=[b"PK", b"data"]))
        creds = ServiceCredentials("engineer", "secret")

        path = Downloader(api).download_release(BAR["releases"][1], creds, tmp_path)

        assert path == tmp_path / "bar_0.2.0.zip"
        assert path.read_bytes() == b"PKdata"
        session.get.assert_called_once_with(
            "https://mods.test/download/bar/2",
            params={"username": "engineer", "token": "secret"},
            stream=True,
        )

    def test_progress_callback(self, tmp_path):
        api, _ = _api(_response(chunks=[b"abc", b"de"]))
        seen = []
        Downloader(api).download_release(
            BAR["releases"][0],
            ServiceCredentials("u", "t"),
            tmp_path,
            on_progress=lambda done, total: seen.append((done, total)),
        )
        assert seen == [(3, 5), (5, 5)]

    def test_failure_leaves_no_file(self, tmp_path):
        api, _ = _api(_response(status=403))
        with pytest.raises(DownloadError):
            Downloader(api).download_release(
                BAR["releases"][0], ServiceCredentials("u", "t"), tmp_path
            )
        assert not (tmp_path / "bar_0.1.0.zip").exists()

    def test_failed_request_keeps_existing_file(self, tmp_path):
        existing = tmp_path / "bar_0.1.0.zip"
        existing.write_bytes(b"not ours")
        api, session = _api()
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(DownloadError):
            Downloader(api).download_release(
                BAR["releases"][0], ServiceCredentials("u", "t"), tmp_path
            )
        assert existing.read_bytes() == b"not ours"

    def test_interrupted_transfer_removes_partial_file(self, tmp_path):
        def broken_stream(chunk_size):
            yield b"partial"
            raise requests.ConnectionError("reset")

        response = _response()
        response.iter_content.side_effect = broken_stream
        api, _ = _api(response)

        with pytest.raises(DownloadError):
            Downloader(api).download_release(
                BAR["releases"][0], ServiceCredentials("u", "t"), tmp_path
            )
        assert not (tmp_path / "bar_0.1.0.zip").exists()
