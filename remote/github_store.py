"""
Client for the hosting platform's file contents API.
Reads and writes one file; writes are conditional on the content hash (sha) read earlier.
"""
from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from typing import Any

import requests

from usergate.config import StoreConfig
from usergate.errors import StaleContentError, TransportError

log = logging.getLogger(__name__)

# status the contents API uses when the sha we send no longer matches the branch head
STALE_STATUS = 409


@dataclass
class RemoteFile:
    content: str
    sha: str


class GitHubFileStore:
    """Reads and commits `cfg.file_path` on `cfg.branch` of `cfg.repo_owner/cfg.repo_name`."""

    def __init__(self, cfg: StoreConfig) -> None:
        self.cfg = cfg
        self.url = (
            f"{cfg.api_base_url.rstrip('/')}/repos/{cfg.repo_owner}/{cfg.repo_name}"
            f"/contents/{cfg.file_path}"
        )
        log.info(
            "GitHub store init: repo=%s/%s file=%s branch=%s",
            cfg.repo_owner, cfg.repo_name, cfg.file_path, cfg.branch,
            extra={"log_type": "REMOTE"},
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.cfg.github_token}",
            "X-GitHub-Api-Version": self.cfg.api_version,
            "Content-Type": "application/json",
        }

    def get_file(self) -> RemoteFile:
        t0 = time.time()
        try:
            resp = requests.get(
                self.url,
                headers=self._headers(),
                params={"ref": self.cfg.branch},
                timeout=self.cfg.request_timeout_s,
            )
        except requests.RequestException as e:
            log.exception("GitHub GET failed: %s", e)
            raise TransportError(f"GitHub GET failed: {e}") from e

        log.info("GitHub GET: status=%s time=%.2fs", resp.status_code, time.time() - t0, extra={"log_type": "REMOTE"})
        if not resp.ok:
            raise TransportError(f"GitHub GET failed: {resp.status_code} {resp.text[:1000]}")

        data = resp.json()
        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
            sha = data["sha"]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"GitHub GET returned an unexpected body: {e}") from e

        return RemoteFile(content=content, sha=sha)

    def put_file(self, content: str, sha: str, message: str) -> dict[str, Any]:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.cfg.branch,
            "sha": sha,
        }

        t0 = time.time()
        try:
            resp = requests.put(
                self.url,
                headers=self._headers(),
                json=body,
                timeout=self.cfg.request_timeout_s,
            )
        except requests.RequestException as e:
            log.exception("GitHub PUT failed: %s", e)
            raise TransportError(f"GitHub PUT failed: {e}") from e

        log.info("GitHub PUT: status=%s time=%.2fs", resp.status_code, time.time() - t0, extra={"log_type": "REMOTE"})
        if resp.status_code == STALE_STATUS:
            raise StaleContentError(f"GitHub PUT rejected, file changed since it was read: {resp.status_code} {resp.text[:1000]}")
        if not resp.ok:
            raise TransportError(f"GitHub PUT failed: {resp.status_code} {resp.text[:1000]}")

        return resp.json()
