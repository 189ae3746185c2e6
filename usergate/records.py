"""Defines the user record stored inside the users block."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from support_function.dates import day_start, parse_date, to_js_iso


class UserRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    password: str
    expires_at: datetime | None = Field(default=None, alias="expiresAt")
    """None means the stored date could not be read (a JS Invalid Date)."""

    @field_validator("expires_at", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> datetime | None:
        return parse_date(value)

    def expires_on(self) -> date | None:
        if self.expires_at is None:
            return None
        return self.expires_at.date()

    def is_expired(self, now: datetime | None = None) -> bool:
        """An account expires at the start of its expiry day. Unreadable dates never expire."""
        day = self.expires_on()
        if day is None:
            return False
        now = parse_date(now) if now else datetime.now(timezone.utc)
        return day_start(day) < now

    def to_public(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "expiresAt": to_js_iso(self.expires_at),
        }
