from __future__ import annotations

import copy
from typing import Any, Mapping

import pytest

from portal_unk.errors import AppError, ErrorKind


class FakeCollection:
    """In-memory `DataCollection` keyed by the `id` field."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, fail: bool = False) -> None:
        self.rows = {str(r["id"]): dict(r) for r in rows or []}
        self.fail = fail
        self.counter = 0

    def _check(self) -> None:
        if self.fail:
            raise AppError("connection lost", ErrorKind.DATABASE)

    def get_all(self) -> list[dict[str, Any]]:
        self._check()
        return [copy.deepcopy(r) for r in self.rows.values()]

    def get_by_id(self, record_id: str) -> dict[str, Any] | None:
        self._check()
        row = self.rows.get(record_id)
        return copy.deepcopy(row) if row is not None else None

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        self._check()
        self.counter += 1
        doc = dict(payload)
        doc.setdefault("id", f"id-{self.counter}")
        self.rows[doc["id"]] = doc
        return copy.deepcopy(doc)

    def update(self, record_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        self._check()
        if record_id not in self.rows:
            raise AppError(f"{record_id} não encontrado.", ErrorKind.NOT_FOUND)
        self.rows[record_id].update(payload)
        return copy.deepcopy(self.rows[record_id])

    def delete(self, record_id: str) -> dict[str, bool]:
        self._check()
        return {"success": self.rows.pop(record_id, None) is not None}


class FakeBlobStore:
    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def upload(self, bucket: str, path: str, data: bytes) -> dict[str, str]:
        url = f"memory://{bucket}/{path}"
        self.files[url] = data
        return {"path": path, "url": url}

    def delete(self, url: str) -> dict[str, bool]:
        return {"success": self.files.pop(url, None) is not None}


@pytest.fixture
def events() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def payments() -> FakeCollection:
    return FakeCollection([
        {"id": "p1", "amount": 100, "status": "pending"},
        {"id": "p2", "amount": "50,5", "status": "pending"},
    ])


@pytest.fixture
def blobs() -> FakeBlobStore:
    return FakeBlobStore()
