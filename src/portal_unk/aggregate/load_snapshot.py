"""Materialize computed dashboards into MongoDB.

Snapshots are small documents keyed by `snapshotDate`; re-running on the
same day overwrites that day's snapshot, so loading is idempotent.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

from pymongo import UpdateOne
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from portal_unk.errors import AppError, ErrorKind
from portal_unk.models import DashboardSummary

log = logging.getLogger(__name__)

SNAPSHOT_COLLECTION = "dashboard_snapshots"


def snapshot_document(summary: DashboardSummary) -> dict[str, Any]:
    """Dump a summary into a BSON-safe document (camelCase keys)."""
    doc = summary.model_dump(mode="json", by_alias=True)
    doc["snapshotDate"] = summary.reference_date.isoformat()
    doc["generatedAt"] = datetime.now(timezone.utc)
    return doc


def load_dashboard_snapshot(
    collection: Collection[dict[str, Any]],
    summaries: list[DashboardSummary],
) -> int:
    """Upsert dashboard snapshots keyed by their reference date.

    Args:
        collection: Target PyMongo collection (normally `dashboard_snapshots`).
        summaries: Computed dashboards to store.

    Returns:
        Number of snapshots written.

    Raises:
        AppError: `ErrorKind.DATABASE` if the bulk write fails.
    """
    log.info("Loading %d dashboard snapshot(s) into %s", len(summaries), collection.name)

    ops = []
    for summary in summaries:
        doc = snapshot_document(summary)
        ops.append(UpdateOne({"snapshotDate": doc["snapshotDate"]}, {"$set": doc}, upsert=True))

    if not ops:
        log.warning("No snapshots to load into %s", collection.name)
        return 0

    try:
        collection.bulk_write(ops, ordered=False)
    except PyMongoError as e:
        raise AppError("Falha ao gravar snapshot do dashboard.", ErrorKind.DATABASE, e) from e

    log.info("Snapshot load complete for %s: %d rows", collection.name, len(ops))
    return len(ops)
