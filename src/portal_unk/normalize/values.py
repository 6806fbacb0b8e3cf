"""Numeric and date normalization for heterogeneous source rows.

Rows come from forms and legacy imports: amounts may be numbers or strings
with a decimal comma, dates may be `date`/`datetime` objects, ISO strings,
epoch milliseconds or free text. Everything here is lenient: parsers return
``None`` instead of raising, and `normalize_timestamp` hands back free text
unchanged.

Naive datetimes and offset-less ISO strings are read as UTC so results never
depend on the host timezone.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
import math
import re
import sys
from typing import Any

EPSILON = sys.float_info.epsilon
DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_numeric_value(value: Any) -> float | int | None:
    """Parse a number-like value, returning None when it is not a finite number.

    Examples:
        parse_numeric_value("10,5")  -> 10.5
        parse_numeric_value(" 7 ")   -> 7.0
        parse_numeric_value("")      -> None
        parse_numeric_value("abc")   -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        normalized = value.strip().replace(",", ".", 1)
        if not normalized or "_" in normalized:
            return None
        try:
            parsed = float(normalized)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return parsed if math.isfinite(parsed) else None


WHITESPACE_RE = re.compile(r"\s+")


def parse_amount(value: Any) -> float | int | None:
    """Like `parse_numeric_value`, but ignores whitespace inside strings.

    Used on stored money columns, where digit grouping such as "1 000,50"
    shows up in legacy rows.
    """
    if isinstance(value, str):
        value = WHITESPACE_RE.sub("", value)
    return parse_numeric_value(value)


def round_currency_value(value: float) -> float:
    """Round to 2 decimals, half-up, after nudging by EPSILON.

    The nudge keeps values like 10.125 (stored as 10.12499999...) from
    rounding down. Idempotent for every finite input.
    """
    return math.floor((value + EPSILON) * 100 + 0.5) / 100


def pick_first_string(*candidates: Any) -> str | None:
    """Return the first candidate that is a non-empty string after trimming."""
    for candidate in candidates:
        if isinstance(candidate, str):
            trimmed = candidate.strip()
            if trimmed:
                return trimmed
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_iso(text: str) -> datetime | None:
    candidate = text.strip()
    if not candidate:
        return None
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _from_epoch_ms(value: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_datetime(value: Any) -> datetime | None:
    """Parse a date-like value into a datetime, or None.

    `date` objects become midnight; numbers are epoch milliseconds; strings
    must be ISO-8601. The tzinfo of the input is preserved (naive stays
    naive), callers decide which frame to read it in.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return _from_epoch_ms(value)
    if isinstance(value, str):
        return _parse_iso(value)
    return None


def _format_iso_utc(value: datetime) -> str:
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_timestamp(value: Any) -> str | None:
    """Return an ISO-8601 UTC timestamp (``YYYY-MM-DDTHH:MM:SS.mmmZ``).

    Strings that do not parse are returned unchanged (trimmed), so free text
    typed into a time field survives a round trip. Callers must not assume
    the result is a valid timestamp.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        parsed = _parse_iso(trimmed)
        return _format_iso_utc(parsed) if parsed is not None else trimmed
    parsed = parse_datetime(value)
    return _format_iso_utc(parsed) if parsed is not None else None


def normalize_date_only(value: Any) -> str | None:
    """Return a ``YYYY-MM-DD`` calendar date, or None when unparseable.

    Conformant strings pass through untouched; everything else is reduced
    with UTC calendar fields. "2025-03-01T23:30:00Z" is always "2025-03-01",
    whatever the host timezone.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        if DATE_ONLY_RE.match(trimmed):
            return trimmed
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return _as_utc(parsed).date().isoformat()
