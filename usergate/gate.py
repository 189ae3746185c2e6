"""
Login gate for regular users.

Mirrors the browser-side check: credentials and expiry are verified against the
current record set, and failed attempts are counted per username with a lockout
window once the limit is reached. The counters live in a small JSON file and are
advisory only; anyone who can edit the file can reset them.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from support_function.dates import parse_date, to_js_iso
from usergate.records import UserRecord

log = logging.getLogger(__name__)

LOCKED_MESSAGE = "Too many failed attempts. Try again in {hours:g} hours."
INVALID_MESSAGE = "Incorrect username or password. Please try again."
EXPIRED_MESSAGE = "Your account has expired. Contact the site administrator to renew it."
OK_MESSAGE = "Access granted."


@dataclass
class AttemptState:
    attempts: int = 0
    blocked_until: Optional[datetime] = None

    def is_locked(self, now: datetime) -> bool:
        return self.blocked_until is not None and now < self.blocked_until


@dataclass
class LoginResult:
    status: str  # "ok" / "invalid" / "locked" / "expired"
    message: str

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class LoginAttemptStore:
    """Failed-attempt counters keyed by username, persisted as one JSON object."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def read(self, username: str) -> AttemptState:
        entry = self._load().get(f"login_{username}")
        if not isinstance(entry, dict):
            return AttemptState()
        return AttemptState(
            attempts=int(entry.get("attempts", 0)),
            blocked_until=parse_date(entry.get("blockedUntil")),
        )

    def write(self, username: str, state: AttemptState) -> None:
        data = self._load()
        data[f"login_{username}"] = {
            "attempts": state.attempts,
            "blockedUntil": to_js_iso(state.blocked_until),
        }
        self._dump(data)

    def clear(self, username: str) -> None:
        data = self._load()
        if data.pop(f"login_{username}", None) is not None:
            self._dump(data)


class LoginGate:
    def __init__(
        self,
        records: list[UserRecord],
        store: LoginAttemptStore,
        max_attempts: int = 5,
        lockout_hours: float = 24,
    ) -> None:
        self.users = {r.username: r for r in records}
        self.store = store
        self.max_attempts = max_attempts
        self.lockout_hours = lockout_hours

    def login(self, username: str, password: str, now: datetime | None = None) -> LoginResult:
        now = parse_date(now) if now else datetime.now(timezone.utc)
        username = username.strip()
        password = password.strip()

        state = self.store.read(username)
        if state.is_locked(now):
            log.info("Login refused for '%s': locked until %s", username, state.blocked_until, extra={"log_type": "LOGIN"})
            return LoginResult("locked", LOCKED_MESSAGE.format(hours=self.lockout_hours))

        user = self.users.get(username)
        if user is None or user.password != password:
            state.attempts += 1
            if state.attempts >= self.max_attempts:
                state.blocked_until = now + timedelta(hours=self.lockout_hours)
                self.store.write(username, state)
                log.info("Login locked for '%s' after %d attempts", username, state.attempts, extra={"log_type": "LOGIN"})
                return LoginResult("locked", LOCKED_MESSAGE.format(hours=self.lockout_hours))
            self.store.write(username, state)
            log.info("Invalid login for '%s' (attempt %d/%d)", username, state.attempts, self.max_attempts, extra={"log_type": "LOGIN"})
            return LoginResult("invalid", INVALID_MESSAGE)

        if user.expires_at is not None and now > user.expires_at:
            log.info("Login refused for '%s': expired", username, extra={"log_type": "LOGIN"})
            return LoginResult("expired", EXPIRED_MESSAGE)

        self.store.clear(username)
        log.info("Login accepted for '%s'", username, extra={"log_type": "LOGIN"})
        return LoginResult("ok", OK_MESSAGE)
