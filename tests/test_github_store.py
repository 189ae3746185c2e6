import base64

import pytest
import requests

from remote import github_store
from remote.github_store import GitHubFileStore
from usergate.config import StoreConfig
from usergate.errors import StaleContentError, TransportError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


@pytest.fixture
def gh():
    cfg = StoreConfig(github_token="tok", repo_owner="me", repo_name="site", file_path="js/script.js", branch="dev")
    return GitHubFileStore(cfg)


def test_url_is_built_from_config(gh):
    assert gh.url == "https://api.github.com/repos/me/site/contents/js/script.js"


def test_get_file_decodes_content(gh, monkeypatch):
    calls = {}
    encoded = base64.b64encode("const USERS = [];\n// ñ".encode("utf-8")).decode("ascii")
    wrapped = "\n".join(encoded[i:i + 8] for i in range(0, len(encoded), 8))

    def fake_get(url, headers, params, timeout):
        calls.update(url=url, headers=headers, params=params, timeout=timeout)
        return FakeResponse(payload={"content": wrapped, "sha": "abc"})

    monkeypatch.setattr(github_store.requests, "get", fake_get)

    remote = gh.get_file()

    assert remote.content == "const USERS = [];\n// ñ"
    assert remote.sha == "abc"
    assert calls["params"] == {"ref": "dev"}
    assert calls["headers"]["Authorization"] == "Bearer tok"
    assert calls["headers"]["X-GitHub-Api-Version"] == "2022-11-28"
    assert calls["timeout"] is None


def test_get_file_http_error(gh, monkeypatch):
    monkeypatch.setattr(github_store.requests, "get", lambda *a, **kw: FakeResponse(404, text="Not Found"))

    with pytest.raises(TransportError, match="404"):
        gh.get_file()


def test_get_file_network_error(gh, monkeypatch):
    def boom(*a, **kw):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(github_store.requests, "get", boom)

    with pytest.raises(TransportError):
        gh.get_file()


def test_get_file_unexpected_body(gh, monkeypatch):
    monkeypatch.setattr(github_store.requests, "get", lambda *a, **kw: FakeResponse(payload={"sha": "abc"}))

    with pytest.raises(TransportError):
        gh.get_file()


def test_put_file_sends_conditional_commit(gh, monkeypatch):
    calls = {}

    def fake_put(url, headers, json, timeout):
        calls.update(url=url, json=json)
        return FakeResponse(200, payload={"commit": {"sha": "def"}})

    monkeypatch.setattr(github_store.requests, "put", fake_put)

    result = gh.put_file("new content ✓", "abc", "msg")

    assert result == {"commit": {"sha": "def"}}
    body = calls["json"]
    assert body["message"] == "msg"
    assert body["sha"] == "abc"
    assert body["branch"] == "dev"
    assert base64.b64decode(body["content"]).decode("utf-8") == "new content ✓"


def test_put_file_stale_sha(gh, monkeypatch):
    monkeypatch.setattr(github_store.requests, "put", lambda *a, **kw: FakeResponse(409, text="sha mismatch"))

    with pytest.raises(StaleContentError):
        gh.put_file("x", "old", "msg")


def test_put_file_server_error(gh, monkeypatch):
    monkeypatch.setattr(github_store.requests, "put", lambda *a, **kw: FakeResponse(502, text="bad gateway"))

    with pytest.raises(TransportError, match="502"):
        gh.put_file("x", "abc", "msg")


def test_put_file_validation_error_is_not_stale(gh, monkeypatch):
    monkeypatch.setattr(github_store.requests, "put", lambda *a, **kw: FakeResponse(422, text="sha wasn't supplied"))

    with pytest.raises(TransportError, match="422") as exc_info:
        gh.put_file("x", "", "msg")

    assert not isinstance(exc_info.value, StaleContentError)
