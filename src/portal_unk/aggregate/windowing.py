"""Temporal windowing: upcoming events and monthly revenue buckets.

All comparisons happen in the frame of `reference_now`. ``YYYY-MM-DD``
values are calendar dates in that frame (never shifted by a timezone
conversion); timestamps with an offset are converted into it; naive
timestamps are taken as wall-clock time in it.

Rows whose date cannot be parsed are left out of every window.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable

from portal_unk.aggregate.rows import PAID_STATUSES, coerce_events, coerce_payments, normalized_status
from portal_unk.models import EventRecord, RevenuePoint
from portal_unk.normalize.values import DATE_ONLY_RE, parse_amount, parse_datetime, round_currency_value

MonthKey = tuple[int, int]

PT_BR_MONTHS = (
    "jan.", "fev.", "mar.", "abr.", "mai.", "jun.",
    "jul.", "ago.", "set.", "out.", "nov.", "dez.",
)


def to_reference_frame(value: datetime, reference: datetime) -> datetime:
    """Express `value` in the same frame (and awareness) as `reference`."""
    if reference.tzinfo is not None:
        if value.tzinfo is None:
            return value.replace(tzinfo=reference.tzinfo)
        return value.astimezone(reference.tzinfo)
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_event_date(value: Any, reference: datetime) -> datetime | None:
    """Parse an event/payment date into the reference frame, or None."""
    if isinstance(value, str) and DATE_ONLY_RE.match(value.strip()):
        try:
            parsed = datetime.strptime(value.strip(), "%Y-%m-%d")
        except ValueError:
            return None
        return parsed.replace(tzinfo=reference.tzinfo)
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return to_reference_frame(parsed, reference)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def upcoming_events_within(
    events: Iterable[Any] | None,
    days: int,
    reference_now: datetime | None = None,
) -> list[EventRecord]:
    """Events dated from today through today + `days`, soonest first.

    The window is ``[start of today, (today + days) 23:59:59]``, inclusive on
    both ends. Sorting is stable: events on the same date keep their input
    order.
    """
    now = reference_now or datetime.now()
    first_day = start_of_day(now).date()
    last_day = first_day + timedelta(days=days)

    dated: list[tuple[datetime, EventRecord]] = []
    for event in coerce_events(events):
        when = parse_event_date(event.event_date, now)
        if when is None:
            continue
        if first_day <= when.date() <= last_day:
            dated.append((when, event))

    dated.sort(key=lambda pair: pair[0])
    return [event for _, event in dated]


def trailing_month_keys(reference_now: datetime, month_count: int = 6) -> list[MonthKey]:
    """Return `month_count` ``(year, month)`` keys, oldest first, ending at the reference month."""
    anchor = reference_now.year * 12 + (reference_now.month - 1)
    keys: list[MonthKey] = []
    for index in range(anchor - month_count + 1, anchor + 1):
        year, month_index = divmod(index, 12)
        keys.append((year, month_index + 1))
    return keys


def monthly_revenue_buckets(
    payments: Iterable[Any] | None,
    reference_now: datetime | None = None,
    month_count: int = 6,
) -> dict[MonthKey, float]:
    """Sum paid amounts into a fixed trailing window of calendar months.

    Every key of the window is present (0.0 when nothing was paid that
    month), ordered oldest to newest. Only `paid`/`pago` payments with a
    parseable `paid_at` count; payments outside the window are dropped.
    """
    now = reference_now or datetime.now()
    buckets: dict[MonthKey, float] = {key: 0.0 for key in trailing_month_keys(now, month_count)}

    for payment in coerce_payments(payments):
        if normalized_status(payment.status) not in PAID_STATUSES:
            continue
        paid_at = parse_event_date(payment.paid_at, now)
        if paid_at is None:
            continue
        key = (paid_at.year, paid_at.month)
        if key in buckets:
            buckets[key] += parse_amount(payment.amount) or 0

    return {key: round_currency_value(value) for key, value in buckets.items()}


def month_label(key: MonthKey, with_year: bool = False) -> str:
    year, month = key
    label = PT_BR_MONTHS[month - 1]
    return f"{label}/{year % 100:02d}" if with_year else label


def revenue_chart_data(buckets: dict[MonthKey, float]) -> list[RevenuePoint]:
    """Chart points with pt-BR month labels, in bucket order.

    Labels get a ``/YY`` suffix only when two buckets share a month name.
    """
    months = [month for _, month in buckets]
    with_year = len(set(months)) != len(months)
    return [
        RevenuePoint(name=month_label(key, with_year), value=value, year=key[0], month=key[1])
        for key, value in buckets.items()
    ]
