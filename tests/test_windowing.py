from __future__ import annotations

from datetime import datetime, timedelta, timezone

from portal_unk.aggregate.windowing import (
    monthly_revenue_buckets,
    revenue_chart_data,
    trailing_month_keys,
    upcoming_events_within,
)

NOW = datetime(2025, 5, 20, 10, 30)


def _day(offset: int) -> str:
    return (NOW + timedelta(days=offset)).strftime("%Y-%m-%d")


def test_upcoming_events_window_boundaries() -> None:
    events = [
        {"id": "yesterday", "event_date": _day(-1)},
        {"id": "today", "event_date": _day(0)},
        {"id": "last-second", "event_date": _day(15) + "T23:59:59"},
        {"id": "too-far", "event_date": _day(16)},
    ]
    upcoming = upcoming_events_within(events, 15, NOW)
    assert [e.id for e in upcoming] == ["today", "last-second"]


def test_upcoming_events_excludes_unparseable_dates() -> None:
    events = [
        {"id": "a", "event_date": _day(0)},
        {"id": "b", "event_date": _day(20)},
        {"id": "c", "event_date": "bad-date"},
        {"id": "d"},
    ]
    upcoming = upcoming_events_within(events, 15, NOW)
    assert [e.id for e in upcoming] == ["a"]
    assert upcoming[0].event_date == _day(0)


def test_upcoming_events_sorted_and_stable_for_ties() -> None:
    events = [
        {"id": "first-on-22", "event_date": "2025-05-22"},
        {"id": "on-21", "event_date": "2025-05-21"},
        {"id": "second-on-22", "event_date": "2025-05-22"},
    ]
    upcoming = upcoming_events_within(events, 15, NOW)
    assert [e.id for e in upcoming] == ["on-21", "first-on-22", "second-on-22"]


def test_upcoming_events_converts_offsets_into_reference_frame() -> None:
    sao_paulo = timezone(timedelta(hours=-3))
    now = datetime(2025, 5, 20, 10, 30, tzinfo=sao_paulo)
    events = [
        {"id": "tonight", "event_date": "2025-05-21T01:00:00Z"},
        {"id": "calendar", "event_date": "2025-05-20"},
        {"id": "past", "event_date": "2025-05-20T02:00:00Z"},
    ]
    upcoming = upcoming_events_within(events, 0, now)
    assert [e.id for e in upcoming] == ["calendar", "tonight"]


def test_trailing_month_keys_cross_year() -> None:
    assert trailing_month_keys(NOW, 6) == [
        (2024, 12), (2025, 1), (2025, 2), (2025, 3), (2025, 4), (2025, 5),
    ]


def test_monthly_revenue_buckets_fold_paid_payments() -> None:
    payments = [
        {"amount": 100, "status": "paid", "paid_at": "2025-05-03T15:00:00"},
        {"amount": "50,5", "status": "Pago", "paid_at": "2025-01-15"},
        {"amount": 999, "status": "paid", "paid_at": "2024-11-30"},
        {"amount": 70, "status": "pending", "paid_at": "2025-05-01"},
        {"amount": 80, "status": "paid"},
        {"amount": 90, "status": "paid", "paid_at": "bad"},
    ]
    buckets = monthly_revenue_buckets(payments, NOW)
    assert buckets == {
        (2024, 12): 0.0,
        (2025, 1): 50.5,
        (2025, 2): 0.0,
        (2025, 3): 0.0,
        (2025, 4): 0.0,
        (2025, 5): 100.0,
    }
    assert list(buckets) == trailing_month_keys(NOW, 6)


def test_monthly_revenue_buckets_always_has_month_count_keys() -> None:
    assert len(monthly_revenue_buckets([], NOW)) == 6
    assert len(monthly_revenue_buckets(None, NOW, month_count=1)) == 1
    assert len(monthly_revenue_buckets([], NOW, month_count=24)) == 24


def test_long_windows_do_not_collide_on_month_names() -> None:
    payments = [
        {"amount": 10, "status": "paid", "paid_at": "2024-05-10"},
        {"amount": 20, "status": "paid", "paid_at": "2025-05-10"},
    ]
    buckets = monthly_revenue_buckets(payments, NOW, month_count=14)
    assert buckets[(2024, 5)] == 10
    assert buckets[(2025, 5)] == 20

    names = [point.name for point in revenue_chart_data(buckets)]
    assert len(set(names)) == 14
    assert names[1] == "mai./24"
    assert names[-1] == "mai./25"


def test_revenue_chart_data_labels() -> None:
    points = revenue_chart_data(monthly_revenue_buckets([], NOW))
    assert [p.name for p in points] == ["dez.", "jan.", "fev.", "mar.", "abr.", "mai."]
    assert all(p.value == 0 for p in points)
