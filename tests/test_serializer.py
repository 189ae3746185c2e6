from datetime import date, datetime, timezone

from conftest import USERS_BLOCK
from usergate.evaluator import evaluate_block
from usergate.records import UserRecord
from usergate.serializer import render_record, serialize_block


def test_reproduces_block_byte_for_byte():
    assert serialize_block(evaluate_block(USERS_BLOCK)) == USERS_BLOCK


def test_round_trip_normalizes_to_day():
    records = [
        UserRecord(username="a", password="1", expires_at="2030-01-01T23:30:00Z"),
        UserRecord(username="b\"q", password="p\\w", expires_at=date(2031, 5, 6)),
        UserRecord(username="ñandú", password="", expires_at=datetime(2032, 7, 8, 9, 10, tzinfo=timezone.utc)),
    ]

    restored = evaluate_block(serialize_block(records))

    assert [(r.username, r.password) for r in restored] == [(r.username, r.password) for r in records]
    assert [r.expires_on() for r in restored] == [r.expires_on() for r in records]
    assert all(r.expires_at.hour == 0 for r in restored)


def test_record_line_format():
    record = UserRecord(username="nu", password="pw", expires_at="2030-01-01")

    assert render_record(record) == '{ username: "nu", password: "pw", expiresAt: new Date("2030-01-01") }'


def test_offset_timestamps_normalize_in_utc():
    record = UserRecord(username="nu", password="pw", expires_at="2030-01-01T22:00:00-05:00")

    assert 'new Date("2030-01-02")' in render_record(record)


def test_unreadable_date_falls_back_to_today():
    record = UserRecord(username="x", password="y", expires_at="not a date")

    assert record.expires_at is None
    assert 'new Date("2025-06-01")' in render_record(record, today=date(2025, 6, 1))


def test_empty_list_and_custom_name():
    assert serialize_block([], name="ADMINS", indent="  ") == "const ADMINS = [\n\n];"
