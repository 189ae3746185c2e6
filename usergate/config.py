"""
This module defines the configuration for the user store using Pydantic.
It centralizes the remote repository coordinates, the layout of the users block
and the login gate limits, so they can be managed from one place.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel

log = logging.getLogger(__name__)

ENV_VARS = {
    "github_token": "GITHUB_TOKEN",
    "repo_owner": "REPO_OWNER",
    "repo_name": "REPO_NAME",
    "file_path": "FILE_PATH",
    "branch": "BRANCH",
}


class StoreConfig(BaseModel):
    """
    A Pydantic model that holds the configuration for the user store.
    Values can come from defaults, a YAML file, or environment variables.
    """
    github_token: str | None = None
    """Token used to authenticate against the contents API."""

    repo_owner: str = "virtualformacion"
    """Owner (user or organisation) of the repository that hosts the source file."""

    repo_name: str = "store-molano"
    """Name of the repository that hosts the source file."""

    file_path: str = "script.js"
    """Path of the source file that contains the users block."""

    branch: str = "main"
    """Branch the file is read from and committed to."""

    api_base_url: str = "https://api.github.com"
    """Base URL of the hosting platform API."""

    api_version: str = "2022-11-28"
    """Value sent in the X-GitHub-Api-Version header."""

    request_timeout_s: float | None = None
    """Timeout for remote calls. None keeps the network client's default."""

    block_name: str = "USERS"
    """Name of the array constant that holds the user records."""

    admin_username: str = "admin"
    """Username of the privileged record."""

    record_indent: str = "    "
    """Indentation placed before each serialized record line."""

    commit_message_template: str = "Update USERS via admin web - action: {action}"
    """Commit message for writes; `{action}` is replaced by the request action."""

    max_login_attempts: int = 5
    """Failed logins allowed before the login gate locks a username."""

    lockout_hours: float = 24
    """How long a locked username stays locked."""

    attempts_path: Path = Path("data/login_attempts.json")
    """Where the login gate persists its failed-attempt counters."""

    def model_post_init(self, __context):
        if not self.github_token:
            log.warning("GITHUB_TOKEN is not set; remote calls will be rejected.", extra={"log_type": "WARNING"})

    def commit_message(self, action: str) -> str:
        return self.commit_message_template.format(action=action)

    @classmethod
    def from_env(cls, **overrides) -> "StoreConfig":
        """Builds a config from environment variables, on top of the given overrides."""
        values = dict(overrides)
        for field, var in ENV_VARS.items():
            env_value = os.getenv(var)
            if env_value:
                values[field] = env_value
        return cls(**values)

    @classmethod
    def load(cls, path: Path) -> "StoreConfig":
        """Reads a YAML file of settings. Environment variables still take precedence."""
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

        log.info(f"Loaded config from {path}", extra={"log_type": "INFO"})
        return cls.from_env(**data)
