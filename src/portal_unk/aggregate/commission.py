"""Commission calculation.

The agency keeps a commission out of each DJ fee, either a fixed amount or a
percentage. A fixed amount always wins over a rate, and a value on the
payment wins over the same kind of value on its linked event.
"""
from __future__ import annotations

import math
from typing import Any

from portal_unk.models import PaymentRecord
from portal_unk.normalize.values import parse_amount, round_currency_value


def calculate_commission_amount(fee: Any, rate: Any) -> float:
    """Return ``max(0, fee * rate / 100)``, unrounded.

    Returns 0 when `fee` is not a finite positive number or `rate` is missing
    or not finite.
    """
    if isinstance(fee, bool) or not isinstance(fee, (int, float)):
        return 0.0
    if not math.isfinite(fee) or fee <= 0:
        return 0.0
    if rate is None or isinstance(rate, bool) or not isinstance(rate, (int, float)):
        return 0.0
    if not math.isfinite(rate):
        return 0.0
    return max(0.0, fee * rate / 100)


def _first_parsed(*candidates: Any) -> float | int | None:
    for candidate in candidates:
        parsed = parse_amount(candidate)
        if parsed is not None:
            return parsed
    return None


def resolve_commission_amount(payment: PaymentRecord, amount: float) -> float:
    """Commission owed on one payment, rounded to currency precision.

    Resolution order, first parseable value wins:
        1. payment.commission_amount
        2. payment.event.commission_amount
        3. payment.commission_rate (applied to `amount`)
        4. payment.event.commission_rate (applied to `amount`)
        5. zero
    """
    event = payment.event

    explicit = _first_parsed(
        payment.commission_amount,
        event.commission_amount if event is not None else None,
    )
    if explicit is not None:
        return round_currency_value(max(explicit, 0))

    rate = _first_parsed(
        payment.commission_rate,
        event.commission_rate if event is not None else None,
    )
    if rate is not None:
        return round_currency_value(calculate_commission_amount(amount, rate))

    return 0.0
