from __future__ import annotations

from datetime import datetime, timezone

import pytest

from remote.github_store import RemoteFile
from usergate.config import StoreConfig
from usergate.errors import TransportError
from usergate.handler import UsersRequestHandler

USERS_BLOCK = """const USERS = [
    { username: "admin", password: "p", expiresAt: new Date("2099-01-01") },
    { username: "lord", password: "1111", expiresAt: new Date("2025-11-28") },
    { username: "codigos", password: "3602", expiresAt: new Date("2025-12-02") }
];"""

SOURCE = (
    "// ========== AUTHORIZED USERS ==========\n"
    "// <USERS_DATA>\n"
    + USERS_BLOCK
    + "\n// </USERS_DATA>\n\n"
    "const MAX_ATTEMPTS = 5;\n"
    "const BLOCK_HOURS = 24;\n"
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeStore:
    """In-memory stand-in for the remote file store."""

    def __init__(self, content: str = SOURCE, sha: str = "sha-1", fail_put: Exception | None = None) -> None:
        self.content = content
        self.sha = sha
        self.fail_put = fail_put
        self.gets = 0
        self.puts: list[dict] = []

    def get_file(self) -> RemoteFile:
        self.gets += 1
        return RemoteFile(content=self.content, sha=self.sha)

    def put_file(self, content: str, sha: str, message: str) -> dict:
        if self.fail_put:
            raise self.fail_put
        if sha != self.sha:
            raise TransportError("sha mismatch")
        self.puts.append({"content": content, "sha": sha, "message": message})
        self.content = content
        self.sha = f"sha-{len(self.puts) + 1}"
        return {"commit": {"sha": self.sha, "message": message}}


@pytest.fixture
def cfg() -> StoreConfig:
    return StoreConfig(github_token="test-token")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def handler(store, cfg) -> UsersRequestHandler:
    return UsersRequestHandler(store, cfg, clock=lambda: NOW)


def admin_request(action: str, payload: dict | None = None, password: str = "p") -> dict:
    return {"action": action, "adminUser": "admin", "adminPass": password, "payload": payload or {}}
