"""Dashboard view assembly.

Combines the financial, windowing and distribution reductions into the
`DashboardSummary` the admin home screen renders. Pure: same snapshot and
reference time, same summary.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
import math
from typing import Any, Iterable

from portal_unk.aggregate.financial import compute_financial_stats
from portal_unk.aggregate.rows import coerce_djs, coerce_events, coerce_payments, normalized_status
from portal_unk.aggregate.windowing import (
    monthly_revenue_buckets,
    parse_event_date,
    revenue_chart_data,
    upcoming_events_within,
)
from portal_unk.models import (
    AnalyticsStats,
    DashboardSummary,
    DistributionPoint,
    EventRecord,
    EventStatusSummary,
    StatusPercentages,
    UpcomingEventSummary,
)

CONFIRMED_STATUSES = frozenset({"confirmed", "confirmado"})
PENDING_EVENT_STATUSES = frozenset({"pending", "pendente"})
COMPLETED_STATUSES = frozenset({"completed", "concluded", "concluido", "concluído"})

NO_DJ = "DJ não informado"
NO_LOCATION = "Local não informado"


def _percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return math.floor(part * 100 / total + 0.5)


def event_status_summary(events: Iterable[Any] | None) -> EventStatusSummary:
    """Count events by normalized status; other statuses only count in `total`."""
    rows = coerce_events(events)
    counts = Counter()
    for event in rows:
        status = normalized_status(event.status)
        if status in CONFIRMED_STATUSES:
            counts["confirmed"] += 1
        elif status in PENDING_EVENT_STATUSES:
            counts["pending"] += 1
        elif status in COMPLETED_STATUSES:
            counts["completed"] += 1

    total = len(rows)
    return EventStatusSummary(
        total=total,
        confirmed=counts["confirmed"],
        pending=counts["pending"],
        completed=counts["completed"],
        percentages=StatusPercentages(
            confirmed=_percentage(counts["confirmed"], total),
            pending=_percentage(counts["pending"], total),
            completed=_percentage(counts["completed"], total),
        ),
    )


def _dj_display_name(candidate: Any) -> str | None:
    if not isinstance(candidate, dict):
        candidate = candidate.model_dump() if hasattr(candidate, "model_dump") else None
    if not candidate:
        return None
    for key in ("name", "artist_name", "email"):
        value = candidate.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def resolve_event_dj_name(event: EventRecord) -> str:
    """Best display name for an event's DJ.

    Embedded `dj`, then `dj_name`, then the `event_djs` relations, then
    ``"DJ <dj_id>"``.
    """
    if event.dj is not None:
        name = _dj_display_name(event.dj)
        if name:
            return name

    if event.dj_name and event.dj_name.strip():
        return event.dj_name

    for relation in event.event_djs or ():
        if not isinstance(relation, dict):
            continue
        name = _dj_display_name(relation.get("dj"))
        if name:
            return name
        relation_name = relation.get("dj_name")
        if isinstance(relation_name, str) and relation_name.strip():
            return relation_name

    if isinstance(event.dj_id, str) and event.dj_id.strip():
        return f"DJ {event.dj_id}"
    return NO_DJ


def _dj_count(event: EventRecord) -> int:
    if event.djs is not None:
        return len(event.djs)
    if event.event_djs is not None:
        return len(event.event_djs)
    if event.dj_ids:
        return len(event.dj_ids)
    return 1 if event.dj is not None or event.dj_id else 0


def upcoming_events_summary(
    events: Iterable[EventRecord],
    reference_now: datetime,
    limit: int = 4,
) -> list[UpcomingEventSummary]:
    """Display rows for the first `limit` already-windowed events."""
    summaries: list[UpcomingEventSummary] = []
    for event in list(events)[:limit]:
        when = parse_event_date(event.event_date, reference_now)
        summaries.append(
            UpcomingEventSummary(
                id=event.id,
                name=event.event_name or event.title or "Evento",
                dj=resolve_event_dj_name(event),
                date=str(event.event_date) if event.event_date is not None else None,
                formatted_date=when.strftime("%d/%m/%Y") if when is not None else None,
                location=event.location or event.venue or NO_LOCATION,
                dj_count=_dj_count(event),
                status=event.status,
            )
        )
    return summaries


def dj_distribution(djs: Iterable[Any] | None, top_n: int = 5) -> list[DistributionPoint]:
    """Top `top_n` genre/specialty labels by number of DJs.

    A DJ with a `specialties` list counts once per specialty; otherwise its
    `genre` is used. Ties keep first-seen order.
    """
    counts: dict[str, int] = {}
    for dj in coerce_djs(djs):
        labels = dj.specialties if dj.specialties is not None else [dj.genre]
        for label in labels:
            if label:
                counts[label] = counts.get(label, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [DistributionPoint(name=name, value=value) for name, value in ranked[:top_n]]


def analytics_stats(
    events: Iterable[Any] | None,
    payments: Iterable[Any] | None,
    djs: Iterable[Any] | None,
) -> AnalyticsStats:
    return AnalyticsStats(
        total_djs=len(list(djs or ())),
        total_events=len(list(events or ())),
        total_payments=len(list(payments or ())),
    )


def assemble_dashboard(
    events: Iterable[Any] | None,
    payments: Iterable[Any] | None,
    djs: Iterable[Any] | None,
    reference_now: datetime | None = None,
    upcoming_days: int = 15,
    month_count: int = 6,
) -> DashboardSummary:
    """Build the full dashboard summary from one snapshot of each collection.

    Args:
        events: Event rows (models or dicts).
        payments: Payment rows (models or dicts).
        djs: DJ rows (models or dicts).
        reference_now: "Now" for every time window (defaults to local now).
        upcoming_days: Width of the upcoming events window.
        month_count: Number of trailing months in the revenue chart.

    Returns:
        DashboardSummary.
    """
    now = reference_now or datetime.now()
    event_rows = coerce_events(events)
    payment_rows = coerce_payments(payments)
    dj_rows = coerce_djs(djs)

    upcoming = upcoming_events_within(event_rows, upcoming_days, now)
    buckets = monthly_revenue_buckets(payment_rows, now, month_count)

    return DashboardSummary(
        reference_date=now.date(),
        totals=analytics_stats(event_rows, payment_rows, dj_rows),
        event_status_summary=event_status_summary(event_rows),
        upcoming_events_summary=upcoming_events_summary(upcoming, now),
        financial_stats=compute_financial_stats(payment_rows),
        revenue_chart_data=revenue_chart_data(buckets),
        dj_distribution=dj_distribution(dj_rows),
    )
