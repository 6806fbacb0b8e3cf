from __future__ import annotations

import pytest

from portal_unk.errors import AppError, ErrorKind
from portal_unk.normalize.records import (
    EVENT_COLUMNS,
    build_event_record,
    merge_dj_ids,
    normalize_dj_ids,
    prepare_sanitized_event_record,
    sanitize_record,
)


def test_sanitize_record_keeps_only_allowed_columns() -> None:
    raw = {"event_name": "Festa", "is_admin": True, "fee": 10}
    assert sanitize_record(raw, {"event_name", "fee", "venue"}) == {"event_name": "Festa", "fee": 10}


def test_build_event_record_requires_name() -> None:
    with pytest.raises(AppError) as exc:
        build_event_record({"event_date": "2025-05-01"}, None)
    assert exc.value.kind is ErrorKind.VALIDATION


def test_build_event_record_requires_date() -> None:
    with pytest.raises(AppError) as exc:
        build_event_record({"title": "Sunset Session", "date": "   "}, None)
    assert exc.value.kind is ErrorKind.VALIDATION
    assert "Data" in str(exc.value)


def test_build_event_record_resolves_aliases_and_fee() -> None:
    record = build_event_record(
        {"title": " Sunset Session ", "date": "2025-05-01", "cache": "1500,5", "producerId": "prod-1"},
        "  dj-9 ",
    )
    assert record.event_name == "Sunset Session"
    assert record.event_date == "2025-05-01"
    assert record.fee == 1500.5
    assert record.cache_value == 1500.5
    assert record.dj_id == "dj-9"
    assert record.producer_id == "prod-1"


def test_build_event_record_defaults_bad_or_negative_fee_to_zero() -> None:
    assert build_event_record({"name": "A", "event_date": "2025-05-01", "fee": "abc"}, None).fee == 0
    assert build_event_record({"name": "A", "event_date": "2025-05-01", "fee": -20}, None).fee == 0


def test_build_event_record_leaves_absent_fields_unset() -> None:
    record = build_event_record({"event_name": "Baile", "event_date": "2025-06-10"}, "")
    dumped = record.model_dump(exclude_unset=True)
    assert set(dumped) == {"event_name", "event_date", "fee", "cache_value"}


def test_build_event_record_optional_fields() -> None:
    record = build_event_record(
        {
            "event_name": "Baile",
            "event_date": "2025-06-10T02:00:00Z",
            "location": "Galpão",
            "commission_percentage": "12,5",
            "commission_amount": 99.999,
            "expectedAttendance": "300",
            "start_time": "2025-06-10T01:00:00-03:00",
            "shared_with_manager": 1,
            "status": "confirmed",
        },
        None,
    )
    assert record.event_date == "2025-06-10"
    assert record.venue == "Galpão"
    assert record.location == "Galpão"
    assert record.commission_rate == 12.5
    assert record.commission_amount == 100.0
    assert record.expected_attendees == 300
    assert record.start_time == "2025-06-10T04:00:00.000Z"
    assert record.shared_with_manager is True
    assert record.status == "confirmed"


def test_prepare_sanitized_event_record_fills_defaults_on_create() -> None:
    prepared = prepare_sanitized_event_record(
        {"event_name": "X", "event_date": "2025-03-01T23:30:00Z", "hack": 1},
        EVENT_COLUMNS,
    )
    assert prepared == {"event_name": "X", "event_date": "2025-03-01", "fee": 0.0, "cache_value": 0.0}


def test_prepare_sanitized_event_record_partial_does_not_overwrite() -> None:
    prepared = prepare_sanitized_event_record({"venue": "Club", "fee": "oops"}, EVENT_COLUMNS, partial=True)
    assert prepared == {"venue": "Club"}


def test_normalize_dj_ids_dedupes_in_order() -> None:
    assert normalize_dj_ids(["a", "b", "a", " c ", "", 3]) == ["a", "b", "c"]
    assert normalize_dj_ids("a") == []


def test_merge_dj_ids_moves_primary_first() -> None:
    assert merge_dj_ids("x", ["a", "x", "b"]) == ["x", "a", "b"]
    assert merge_dj_ids(" y ", ["a"]) == ["y", "a"]
    assert merge_dj_ids(None, ["a", "a", "b"]) == ["a", "b"]
    assert merge_dj_ids("", ["b"]) == ["b"]
