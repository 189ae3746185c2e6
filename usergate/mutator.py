"""
Applies list/create/edit/delete to an in-memory set of user records.
Nothing here touches the remote store: the caller gets back a new list and decides
whether to commit it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from support_function.dates import day_start, parse_date
from usergate.errors import Conflict, Forbidden, NotFound, ValidationError
from usergate.records import UserRecord

log = logging.getLogger(__name__)

ACTIONS = ("list", "create", "edit", "delete")


@dataclass
class MutationResult:
    records: list[UserRecord]
    changed: bool = False
    users: Optional[list[UserRecord]] = None
    """Only set for `list`: the records visible to the admin."""
    detail: dict[str, Any] = field(default_factory=dict)


def _field(payload: dict[str, Any], name: str) -> str | None:
    value = payload.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")
    return value


def _day(value: str) -> datetime:
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"'expiresAt' is not a valid date: {value!r}")
    return day_start(parsed.date())


def _index_of(records: list[UserRecord], username: str) -> int:
    for i, r in enumerate(records):
        if r.username == username:
            return i
    return -1


class RecordMutator:
    """Enforces the privileged record's protection and username uniqueness."""

    def __init__(self, admin_username: str = "admin") -> None:
        self.admin_username = admin_username

    def apply(self, records: list[UserRecord], action: str, payload: dict[str, Any] | None = None) -> MutationResult:
        payload = payload or {}
        if not isinstance(payload, dict):
            raise ValidationError("'payload' must be an object")

        working = [r.model_copy() for r in records]

        if action == "list":
            return MutationResult(
                records=working,
                users=[r for r in working if r.username != self.admin_username],
            )
        if action == "create":
            detail = self._create(working, payload)
        elif action == "edit":
            detail = self._edit(working, payload)
        elif action == "delete":
            detail = self._delete(working, payload)
        else:
            raise ValidationError(f"Unknown action: {action!r}")

        working = self._keep_admin(records, working)
        log.info("Applied '%s' to %s", action, detail.get("username"), extra={"log_type": "MUTATION"})
        return MutationResult(records=working, changed=True, detail=detail)

    def _create(self, working: list[UserRecord], payload: dict[str, Any]) -> dict[str, Any]:
        username = _field(payload, "username")
        password = _field(payload, "password")
        expires_at = _field(payload, "expiresAt")
        if not (username and password and expires_at):
            raise ValidationError("username, password and expiresAt are required to create a user")
        if username == self.admin_username:
            raise Forbidden("Creating or editing the admin account is not allowed")
        if _index_of(working, username) != -1:
            raise Conflict(f"User '{username}' already exists")

        working.append(UserRecord(username=username, password=password, expires_at=_day(expires_at)))
        return {"username": username}

    def _edit(self, working: list[UserRecord], payload: dict[str, Any]) -> dict[str, Any]:
        username = _field(payload, "username")
        if not username:
            raise ValidationError("username is required to edit a user")
        if username == self.admin_username:
            raise Forbidden("Editing the admin account is not allowed")
        idx = _index_of(working, username)
        if idx == -1:
            raise NotFound(f"User '{username}' not found")

        new_username = _field(payload, "newUsername")
        password = _field(payload, "password")
        expires_at = _field(payload, "expiresAt")

        updates: dict[str, Any] = {}
        if new_username and new_username != username:
            if new_username == self.admin_username:
                raise Forbidden("Renaming a user to the admin account is not allowed")
            if _index_of(working, new_username) != -1:
                raise Conflict(f"User '{new_username}' already exists")
            updates["username"] = new_username
        if password:
            updates["password"] = password
        if expires_at:
            updates["expires_at"] = _day(expires_at)

        working[idx] = working[idx].model_copy(update=updates)
        return {"username": username, "renamed_to": updates.get("username")}

    def _delete(self, working: list[UserRecord], payload: dict[str, Any]) -> dict[str, Any]:
        username = _field(payload, "username")
        if not username:
            raise ValidationError("username is required to delete a user")
        if username == self.admin_username:
            raise Forbidden("Deleting the admin account is not allowed")
        idx = _index_of(working, username)
        if idx == -1:
            raise NotFound(f"User '{username}' not found")

        del working[idx]
        return {"username": username}

    def _keep_admin(self, before: list[UserRecord], after: list[UserRecord]) -> list[UserRecord]:
        """The privileged record ends up exactly once, taken from `before` if it went missing."""
        admins = [r for r in after if r.username == self.admin_username]
        if len(admins) == 1:
            return after

        original = next((r for r in before if r.username == self.admin_username), None)
        result = [r for r in after if r.username != self.admin_username]
        if original is not None:
            log.warning("Admin record missing after mutation; restoring it.", extra={"log_type": "WARNING"})
            result.append(original)
        return result
