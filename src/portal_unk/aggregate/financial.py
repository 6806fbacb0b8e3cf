"""Financial reductions over payment snapshots.

`compute_financial_stats` is the admin view: one fold producing totals,
commission and net revenue. `summarize_pending_payments` and `is_overdue`
are the producer-facing view, where a payment becomes overdue once its due
date has fully passed.

Unparseable amounts count as 0 and unparseable dates never make a payment
overdue; nothing in this module raises for a bad row.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from portal_unk.aggregate.commission import resolve_commission_amount
from portal_unk.aggregate.rows import (
    OPEN_STATUSES,
    OVERDUE_STATUSES,
    PAID_STATUSES,
    SETTLED_STATUSES,
    coerce_payments,
    normalized_status,
)
from portal_unk.aggregate.windowing import parse_event_date, start_of_day
from portal_unk.models import FinancialStats, PaymentRecord, PendingPaymentsSummary, RevenueAnalytics
from portal_unk.normalize.values import parse_amount, round_currency_value


def compute_financial_stats(payments: Iterable[Any] | None) -> FinancialStats:
    """Reduce payments into revenue, commission and net totals.

    - every amount goes into `total_revenue`
    - paid/pago into `paid_revenue`
    - pending/pendente/overdue/atrasado into `pending_revenue` (+1 `pending_count`)
    - any other status (e.g. "rejected") only into `total_revenue`

    `net_revenue` is ``total_revenue - total_commission`` floored at 0.
    """
    total = paid = pending = commission = 0.0
    pending_count = 0

    for payment in coerce_payments(payments):
        amount = parse_amount(payment.amount) or 0
        status = normalized_status(payment.status)

        total += amount
        if status in PAID_STATUSES:
            paid += amount
        elif status in OPEN_STATUSES:
            pending += amount
            pending_count += 1

        commission += resolve_commission_amount(payment, amount)

    return FinancialStats(
        total_revenue=round_currency_value(total),
        paid_revenue=round_currency_value(paid),
        pending_revenue=round_currency_value(pending),
        pending_count=pending_count,
        total_commission=round_currency_value(commission),
        net_revenue=round_currency_value(max(0.0, total - commission)),
    )


def is_overdue(payment: PaymentRecord | dict[str, Any], now: datetime | None = None) -> bool:
    """True when an unpaid payment's due date ended before today started.

    The due date is the linked event's `event_date`, falling back to the
    payment's `due_date`. Comparison is by calendar day, so a payment due
    today is not overdue yet.
    """
    if not isinstance(payment, PaymentRecord):
        rows = coerce_payments([payment])
        if not rows:
            return False
        payment = rows[0]

    if normalized_status(payment.status) in PAID_STATUSES:
        return False

    due_value = payment.event.event_date if payment.event is not None else None
    if due_value is None:
        due_value = payment.due_date
    if due_value is None:
        return False

    reference = now or datetime.now()
    due = parse_event_date(due_value, reference)
    if due is None:
        return False
    return start_of_day(reference).date() > due.date()


def summarize_pending_payments(
    payments: Iterable[Any] | None,
    now: datetime | None = None,
) -> PendingPaymentsSummary:
    """Count unpaid payments as pending or overdue and total their amounts."""
    reference = now or datetime.now()
    pending_count = overdue_count = 0
    total_pending = 0.0

    for payment in coerce_payments(payments):
        status = normalized_status(payment.status)
        if status in PAID_STATUSES:
            continue
        if status in OVERDUE_STATUSES or is_overdue(payment, reference):
            overdue_count += 1
        else:
            pending_count += 1
        total_pending += parse_amount(payment.amount) or 0

    return PendingPaymentsSummary(
        pending_count=pending_count,
        overdue_count=overdue_count,
        total_pending=round_currency_value(total_pending),
    )


def revenue_in_range(
    payments: Iterable[Any] | None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> RevenueAnalytics:
    """Revenue and count of settled payments created within ``[start, end]``.

    Bounds are optional; with a bound set, rows whose `created_at` does not
    parse are skipped. `start` and `end` must share a frame (both naive or
    both aware); `created_at` is read in that frame.
    """
    revenue = 0.0
    count = 0
    frame = start or end

    for payment in coerce_payments(payments):
        if normalized_status(payment.status) not in SETTLED_STATUSES:
            continue
        if frame is not None:
            created = parse_event_date(payment.created_at, frame)
            if created is None:
                continue
            if start is not None and created < start:
                continue
            if end is not None and created > end:
                continue
        revenue += parse_amount(payment.amount) or 0
        count += 1

    return RevenueAnalytics(revenue=round_currency_value(revenue), count=count)
