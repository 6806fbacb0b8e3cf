"""Pydantic models for source rows and derived dashboard view-models.

Row models (`DJRecord`, `EventRecord`, `PaymentRecord`) are lenient: source
data mixes numbers and strings for money and several date encodings, so
those fields keep the raw value and the aggregators normalize it. Unknown
columns are ignored, numbers in text fields become strings, and a field that
still fails validation falls back to its default instead of rejecting the
row.

Derived models are strict (`extra="forbid"`) and serialize with camelCase
aliases (`model_dump(by_alias=True)`) for API and export consumers.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

log = logging.getLogger(__name__)

NumberLike = Union[int, float, str, None]
DateLike = Union[datetime, date, str, None]
RecordId = Union[str, int, None]

ROW_CONFIG = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
VIEW_CONFIG = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# =========================================================
# SOURCE ROWS
# =========================================================

class RowModel(BaseModel):
    """Base for source rows.

    Invalid fields are reset to their defaults and the rest of the row is
    kept; only input that is not a mapping at all is rejected.
    """
    model_config = ROW_CONFIG

    @model_validator(mode="wrap")
    @classmethod
    def _reset_invalid_fields(cls, data: Any, handler: Any) -> Any:
        try:
            return handler(data)
        except ValidationError as e:
            if not isinstance(data, dict):
                raise
            bad = {err["loc"][0] for err in e.errors() if err["loc"]}
            if not bad or not bad.issubset(data):
                raise
            log.debug("%s: resetting invalid fields %s", cls.__name__, sorted(map(str, bad)))
            return handler({key: value for key, value in data.items() if key not in bad})


class DJRecord(RowModel):
    """A DJ as stored in the `djs` collection."""
    id: RecordId = None
    name: str | None = None
    artist_name: str | None = None
    email: str | None = None
    genre: str | None = None
    specialties: list[str] | None = None


class EventRecord(RowModel):
    """An event booking.

    Only fields that were actually provided are marked as set, so writes use
    ``model_dump(exclude_unset=True)`` and never null out stored columns.

    Attributes:
        event_name: Display name (legacy rows use `title`).
        event_date: Calendar date, ``YYYY-MM-DD`` once normalized.
        fee: Gross amount owed to the DJ (the "cachê").
        cache_value: Mirror of `fee` kept for older screens.
        dj_id: Primary DJ; always `dj_ids[0]` when both are present.
        commission_rate: Agency percentage, 0-100.
        commission_amount: Fixed commission, overrides the rate.
    """
    id: RecordId = None
    event_name: str | None = None
    title: str | None = None
    event_date: DateLike = None
    fee: NumberLike = None
    cache_value: NumberLike = None
    dj_id: RecordId = None
    dj_ids: list[str] | None = None
    producer_id: RecordId = None
    status: str | None = None
    commission_rate: NumberLike = None
    commission_amount: NumberLike = None
    location: str | None = None
    venue: str | None = None
    city: str | None = None
    state: str | None = None
    address: str | None = None
    start_time: DateLike = None
    end_time: DateLike = None
    expected_attendees: NumberLike = None
    description: str | None = None
    special_requirements: str | None = None
    payment_status: str | None = None
    payment_proof: str | None = None
    shared_with_manager: bool | None = None
    equipment_provided: Any = None
    dj: DJRecord | None = None
    dj_name: str | None = None
    event_djs: list[dict[str, Any]] | None = None
    djs: list[dict[str, Any]] | None = None
    created_at: DateLike = None
    updated_at: DateLike = None

    @field_validator("dj_ids", mode="before")
    @classmethod
    def _string_dj_ids(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, str)]
        return value


class PaymentRecord(RowModel):
    """A payment owed by a producer for an event.

    `event` is an optional denormalized copy of the linked event; commission
    fields missing on the payment are inherited from it.
    """
    id: RecordId = None
    event_id: RecordId = None
    event: EventRecord | None = None
    dj_id: RecordId = None
    amount: NumberLike = None
    status: str | None = None
    paid_at: DateLike = None
    created_at: DateLike = None
    updated_at: DateLike = None
    due_date: DateLike = None
    commission_rate: NumberLike = None
    commission_amount: NumberLike = None
    payment_method: str | None = None
    notes: str | None = None
    payment_proof_url: str | None = None


# =========================================================
# DERIVED VIEW-MODELS
# =========================================================

class FinancialStats(BaseModel):
    """Totals over a payment snapshot. All money fields are currency-rounded."""
    model_config = VIEW_CONFIG
    total_revenue: float = 0.0
    paid_revenue: float = 0.0
    pending_revenue: float = 0.0
    pending_count: int = Field(0, ge=0)
    total_commission: float = 0.0
    net_revenue: float = Field(0.0, ge=0)


class PendingPaymentsSummary(BaseModel):
    """Producer-facing view of unpaid payments."""
    model_config = VIEW_CONFIG
    pending_count: int = Field(0, ge=0)
    overdue_count: int = Field(0, ge=0)
    total_pending: float = 0.0


class RevenueAnalytics(BaseModel):
    model_config = VIEW_CONFIG
    revenue: float = 0.0
    count: int = Field(0, ge=0)


class AnalyticsStats(BaseModel):
    model_config = VIEW_CONFIG
    total_djs: int = Field(0, ge=0, alias="totalDJs")
    total_events: int = Field(0, ge=0)
    total_payments: int = Field(0, ge=0)


class RevenuePoint(BaseModel):
    """One bar of the monthly revenue chart."""
    model_config = VIEW_CONFIG
    name: str
    value: float
    year: int
    month: int = Field(..., ge=1, le=12)


class DistributionPoint(BaseModel):
    model_config = VIEW_CONFIG
    name: str
    value: int = Field(..., ge=0)


class StatusPercentages(BaseModel):
    model_config = VIEW_CONFIG
    confirmed: int = Field(0, ge=0, le=100)
    pending: int = Field(0, ge=0, le=100)
    completed: int = Field(0, ge=0, le=100)


class EventStatusSummary(BaseModel):
    model_config = VIEW_CONFIG
    total: int = Field(0, ge=0)
    confirmed: int = Field(0, ge=0)
    pending: int = Field(0, ge=0)
    completed: int = Field(0, ge=0)
    percentages: StatusPercentages = Field(default_factory=StatusPercentages)


class UpcomingEventSummary(BaseModel):
    model_config = VIEW_CONFIG
    id: RecordId = None
    name: str
    dj: str
    date: str | None = None
    formatted_date: str | None = None
    location: str
    dj_count: int = Field(0, ge=0)
    status: str | None = None


class DashboardSummary(BaseModel):
    """Everything the admin dashboard renders, computed from one snapshot."""
    model_config = VIEW_CONFIG
    reference_date: date
    totals: AnalyticsStats
    event_status_summary: EventStatusSummary
    upcoming_events_summary: list[UpcomingEventSummary]
    financial_stats: FinancialStats
    revenue_chart_data: list[RevenuePoint]
    dj_distribution: list[DistributionPoint]
