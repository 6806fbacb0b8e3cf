from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest
from pymongo.errors import PyMongoError

from portal_unk.aggregate.dashboard import assemble_dashboard
from portal_unk.aggregate.load_snapshot import load_dashboard_snapshot, snapshot_document
from portal_unk.errors import AppError, ErrorKind


class FakeSnapshots:
    name = "dashboard_snapshots"

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[list[Any]] = []

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        if self.fail:
            raise PyMongoError("write failed")
        self.calls.append(list(ops))


def _summary():
    return assemble_dashboard([], [], [], reference_now=datetime(2025, 5, 20, 9, 0))


def test_snapshot_document_is_keyed_by_reference_date() -> None:
    doc = snapshot_document(_summary())
    assert doc["snapshotDate"] == "2025-05-20"
    assert doc["referenceDate"] == "2025-05-20"
    assert "financialStats" in doc
    assert isinstance(doc["generatedAt"], datetime)


def test_load_dashboard_snapshot_upserts() -> None:
    collection = FakeSnapshots()
    assert load_dashboard_snapshot(collection, [_summary()]) == 1
    assert len(collection.calls) == 1


def test_load_dashboard_snapshot_empty() -> None:
    collection = FakeSnapshots()
    assert load_dashboard_snapshot(collection, []) == 0
    assert collection.calls == []


def test_load_dashboard_snapshot_wraps_driver_errors() -> None:
    with pytest.raises(AppError) as exc:
        load_dashboard_snapshot(FakeSnapshots(fail=True), [_summary()])
    assert exc.value.kind is ErrorKind.DATABASE
    assert isinstance(exc.value.original, PyMongoError)
