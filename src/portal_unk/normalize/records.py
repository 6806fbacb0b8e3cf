"""Write-path sanitizing and building of event records.

`sanitize_record` is the whitelist boundary: nothing outside the allowed
column set reaches storage. `build_event_record` is the creation path and
the only place that fails loudly (`ErrorKind.VALIDATION`) on missing input.
Optional fields are only set when present in the payload, so a later
``model_dump(exclude_unset=True)`` never writes nulls over stored values.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from portal_unk.errors import AppError, ErrorKind
from portal_unk.models import EventRecord
from portal_unk.normalize.values import (
    normalize_date_only,
    normalize_timestamp,
    parse_numeric_value,
    pick_first_string,
    round_currency_value,
)

log = logging.getLogger(__name__)

EVENT_COLUMNS = frozenset({
    "event_name", "event_date", "fee", "cache_value", "dj_id", "dj_ids",
    "producer_id", "status", "description", "venue", "location", "city",
    "state", "address", "start_time", "end_time", "expected_attendees",
    "commission_rate", "commission_amount", "special_requirements",
    "payment_status", "payment_proof", "shared_with_manager",
    "equipment_provided",
})

MONEY_COLUMNS = ("fee", "cache_value", "commission_amount", "commission_rate")
TIMESTAMP_COLUMNS = ("start_time", "end_time")


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def sanitize_record(raw: Mapping[str, Any], allowed_columns: Iterable[str]) -> dict[str, Any]:
    """Copy only the keys present in both `raw` and `allowed_columns`."""
    allowed = set(allowed_columns)
    return {key: value for key, value in raw.items() if key in allowed}


def prepare_sanitized_event_record(
    raw: Mapping[str, Any],
    allowed_columns: Iterable[str] = EVENT_COLUMNS,
    partial: bool = False,
) -> dict[str, Any]:
    """Whitelist an event payload and normalize its dates and money columns.

    Args:
        raw: Incoming payload.
        allowed_columns: Columns the store accepts.
        partial: True for updates. No defaults are filled in partial mode, so
            omitted columns keep their stored value.

    Returns:
        Dict ready to be written.
    """
    allowed = set(allowed_columns)
    sanitized = sanitize_record(raw, allowed)

    for column in MONEY_COLUMNS:
        if column in sanitized:
            parsed = parse_numeric_value(sanitized[column])
            if parsed is None:
                # unparseable input must not clobber a stored amount
                del sanitized[column]
            else:
                sanitized[column] = round_currency_value(max(parsed, 0))

    if not partial:
        sanitized.setdefault("fee", 0.0)
        if "cache_value" in allowed:
            sanitized.setdefault("cache_value", sanitized["fee"])

    if "event_date" in sanitized:
        normalized = normalize_date_only(sanitized["event_date"])
        if normalized:
            sanitized["event_date"] = normalized
    for column in TIMESTAMP_COLUMNS:
        if column in sanitized:
            normalized = normalize_timestamp(sanitized[column])
            if normalized:
                sanitized[column] = normalized

    return sanitized


def build_event_record(payload: Mapping[str, Any], primary_dj_id: str | None) -> EventRecord:
    """Build a new event from a creation payload.

    Raises:
        AppError: `ErrorKind.VALIDATION` when the name or date is missing.
    """
    event_name = pick_first_string(payload.get("event_name"), payload.get("title"), payload.get("name"))
    if not event_name:
        raise AppError("Nome do evento é obrigatório.", ErrorKind.VALIDATION)

    event_date = pick_first_string(payload.get("event_date"), payload.get("date"))
    if not event_date:
        raise AppError("Data do evento é obrigatória.", ErrorKind.VALIDATION)

    fee_value = parse_numeric_value(_first_present(payload, "fee", "cache_value", "cache"))
    fee = round_currency_value(fee_value) if fee_value is not None and fee_value >= 0 else 0.0

    record: dict[str, Any] = {
        "event_name": event_name,
        "event_date": normalize_date_only(event_date) or event_date,
        "fee": fee,
        "cache_value": fee,
    }

    if primary_dj_id and primary_dj_id.strip():
        record["dj_id"] = primary_dj_id.strip()

    producer_id = pick_first_string(payload.get("producer_id"), payload.get("producerId"))
    if producer_id:
        record["producer_id"] = producer_id
    if payload.get("status") is not None:
        record["status"] = payload["status"]

    text_fields = {
        "description": pick_first_string(payload.get("description")),
        "special_requirements": pick_first_string(
            payload.get("special_requirements"), payload.get("requirements")
        ),
        "venue": pick_first_string(payload.get("venue"), payload.get("location")),
        "location": pick_first_string(payload.get("location")),
        "city": pick_first_string(payload.get("city")),
        "state": pick_first_string(payload.get("state")),
        "address": pick_first_string(payload.get("address")),
    }
    record.update({key: value for key, value in text_fields.items() if value})

    for column in TIMESTAMP_COLUMNS:
        if payload.get(column) is not None:
            record[column] = normalize_timestamp(payload[column])

    expected = parse_numeric_value(
        _first_present(payload, "expected_attendees", "expectedAttendance", "expected_attendance")
    )
    if expected is not None:
        record["expected_attendees"] = expected

    rate = parse_numeric_value(_first_present(payload, "commission_rate", "commission_percentage"))
    if rate is not None:
        record["commission_rate"] = round_currency_value(rate)
    amount = parse_numeric_value(payload.get("commission_amount"))
    if amount is not None:
        record["commission_amount"] = round_currency_value(amount)

    for passthrough in ("payment_status", "payment_proof", "equipment_provided"):
        if passthrough in payload and payload[passthrough] is not None:
            record[passthrough] = payload[passthrough]
    if payload.get("shared_with_manager") is not None:
        record["shared_with_manager"] = bool(payload["shared_with_manager"])

    log.debug("Built event record %r with %d fields", event_name, len(record))
    return EventRecord(**record)


def normalize_dj_ids(values: Any) -> list[str]:
    """Trim, drop empties and non-strings, dedupe keeping first-seen order."""
    if not isinstance(values, (list, tuple)):
        return []
    seen: set[str] = set()
    result: list[str] = []
    for candidate in values:
        if not isinstance(candidate, str):
            continue
        trimmed = candidate.strip()
        if trimmed and trimmed not in seen:
            seen.add(trimmed)
            result.append(trimmed)
    return result


def merge_dj_ids(primary_dj_id: str | None, dj_ids: Any) -> list[str]:
    """Deduplicate `dj_ids` and put the primary DJ first.

    Example:
        merge_dj_ids("x", ["a", "x", "b"]) -> ["x", "a", "b"]
    """
    normalized = normalize_dj_ids(dj_ids)
    if isinstance(primary_dj_id, str) and primary_dj_id.strip():
        primary = primary_dj_id.strip()
        return [primary] + [dj_id for dj_id in normalized if dj_id != primary]
    return normalized
