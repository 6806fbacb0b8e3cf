"""Dashboard read path.

The three collections are fetched as independent dask tasks on the threaded
scheduler (no ordering between them); aggregation starts once all of them
have resolved. A fetch failure propagates as-is.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, NamedTuple, cast

from dask import delayed, compute  # type: ignore[attr-defined]

from portal_unk.aggregate.dashboard import assemble_dashboard
from portal_unk.config import Settings
from portal_unk.db import DataCollection
from portal_unk.models import DashboardSummary

log = logging.getLogger(__name__)


class Snapshot(NamedTuple):
    events: list[dict[str, Any]]
    payments: list[dict[str, Any]]
    djs: list[dict[str, Any]]


def _fetch_all(collection: DataCollection) -> list[dict[str, Any]]:
    return list(collection.get_all())


def fetch_snapshots(
    events: DataCollection,
    payments: DataCollection,
    djs: DataCollection,
) -> Snapshot:
    """Fetch events, payments and DJs concurrently."""
    tasks = [delayed(_fetch_all, pure=False)(collection) for collection in (events, payments, djs)]
    # dask ships `compute` without type hints
    results = cast(Any, compute)(*tasks, scheduler="threads")
    snapshot = Snapshot(*results)
    log.info(
        "Fetched snapshot: events=%d payments=%d djs=%d",
        len(snapshot.events),
        len(snapshot.payments),
        len(snapshot.djs),
    )
    return snapshot


def build_dashboard(
    events: DataCollection,
    payments: DataCollection,
    djs: DataCollection,
    settings: Settings,
    reference_now: datetime | None = None,
) -> DashboardSummary:
    """Fetch a fresh snapshot and assemble the dashboard from it."""
    snapshot = fetch_snapshots(events, payments, djs)
    return assemble_dashboard(
        snapshot.events,
        snapshot.payments,
        snapshot.djs,
        reference_now=reference_now,
        upcoming_days=settings.upcoming_window_days,
        month_count=settings.revenue_months,
    )
