"""
Renders user records back into the users block source text.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Iterable

from support_function.dates import normalize_day
from usergate.records import UserRecord


def render_record(record: UserRecord, today: date | None = None) -> str:
    # unreadable dates fall back to today
    day = normalize_day(record.expires_at, today=today)
    return (
        f"{{ username: {json.dumps(record.username, ensure_ascii=False)}, "
        f"password: {json.dumps(record.password, ensure_ascii=False)}, "
        f"expiresAt: new Date(\"{day}\") }}"
    )


def serialize_block(
    records: Iterable[UserRecord],
    name: str = "USERS",
    indent: str = "    ",
    today: date | None = None,
) -> str:
    """
    Produces:

        const USERS = [
            { username: "a", password: "b", expiresAt: new Date("2030-01-01") },
            ...
        ];
    """
    lines = [indent + render_record(r, today=today) for r in records]
    return f"const {name} = [\n" + ",\n".join(lines) + "\n];"
