from pathlib import Path

import pytest

from usergate.config import StoreConfig

ENV = ("GITHUB_TOKEN", "REPO_OWNER", "REPO_NAME", "FILE_PATH", "BRANCH")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV:
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    cfg = StoreConfig()

    assert cfg.file_path == "script.js"
    assert cfg.branch == "main"
    assert cfg.block_name == "USERS"
    assert cfg.admin_username == "admin"
    assert cfg.request_timeout_s is None
    assert cfg.commit_message("edit") == "Update USERS via admin web - action: edit"


def test_from_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "secret")
    monkeypatch.setenv("BRANCH", "gh-pages")

    cfg = StoreConfig.from_env(repo_name="other")

    assert cfg.github_token == "secret"
    assert cfg.branch == "gh-pages"
    assert cfg.repo_name == "other"


def test_load_yaml_with_env_precedence(tmp_path, monkeypatch):
    path = tmp_path / "usergate.yaml"
    path.write_text(
        "repo_owner: acme\n"
        "branch: staging\n"
        "max_login_attempts: 3\n"
        "attempts_path: /tmp/attempts.json\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BRANCH", "main")

    cfg = StoreConfig.load(path)

    assert cfg.repo_owner == "acme"
    assert cfg.branch == "main"
    assert cfg.max_login_attempts == 3
    assert cfg.attempts_path == Path("/tmp/attempts.json")


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        StoreConfig.load(path)
