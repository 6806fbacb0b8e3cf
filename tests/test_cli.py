from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from portal_unk import cli
from portal_unk.aggregate.dashboard import assemble_dashboard

from conftest import FakeBlobStore, FakeCollection


class FakeSnapshots:
    name = "dashboard_snapshots"

    def __init__(self) -> None:
        self.ops: list[Any] = []

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        self.ops.extend(ops)


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    db: dict[str, Any] = {"dashboard_snapshots": FakeSnapshots()}
    events = FakeCollection([{"id": "e1", "event_name": "Festa", "event_date": datetime.now().strftime("%Y-%m-%d")}])
    payments = FakeCollection([
        {"id": "p1", "amount": 100, "status": "pending"},
        {"id": "p2", "amount": 40, "status": "paid", "paid_at": datetime.now().isoformat()},
    ])
    djs = FakeCollection([{"id": "d1", "genre": "House"}])
    monkeypatch.setattr(cli, "_collections", lambda s: (db, events, payments, djs))
    return {"db": db, "events": events, "payments": payments, "djs": djs}


def test_build_parser_window_overrides() -> None:
    args = cli.build_parser().parse_args(["export", "--out", "out", "--days", "30", "--months", "12"])
    assert args.cmd == "export"
    assert args.out == Path("out")

    s = cli._settings_with_overrides(args)
    assert s.upcoming_window_days == 30
    assert s.revenue_months == 12


def test_build_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_dashboard_frames_shapes() -> None:
    summary = assemble_dashboard(
        [{"id": "e1", "event_date": "2025-05-21"}],
        [{"amount": 10, "status": "paid", "paid_at": "2025-05-01"}],
        [{"genre": "House"}],
        reference_now=datetime(2025, 5, 20),
    )
    frames = cli.dashboard_frames(summary)

    assert set(frames) == {"revenue_chart", "dj_distribution", "upcoming_events", "financial_stats"}
    assert len(frames["revenue_chart"]) == 6
    assert list(frames["upcoming_events"].columns)[:4] == ["id", "name", "dj", "date"]
    assert frames["financial_stats"].loc[0, "paidRevenue"] == 10


def test_cmd_summary_prints_camel_case_json(store: dict[str, Any], capsys: pytest.CaptureFixture[str]) -> None:
    cli.cmd_summary(cli.build_parser().parse_args(["summary"]))
    out = json.loads(capsys.readouterr().out)
    assert out["totals"]["totalEvents"] == 1
    assert out["financialStats"]["pendingRevenue"] == 100
    assert out["upcomingEventsSummary"][0]["name"] == "Festa"


def test_cmd_snapshot_upserts_one_document(store: dict[str, Any]) -> None:
    cli.cmd_snapshot(cli.build_parser().parse_args(["snapshot"]))
    assert len(store["db"]["dashboard_snapshots"].ops) == 1


def test_cmd_export_writes_csv_files(store: dict[str, Any], tmp_path: Path) -> None:
    cli.cmd_export(cli.build_parser().parse_args(["export", "--out", str(tmp_path)]))
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "dj_distribution.csv",
        "financial_stats.csv",
        "revenue_chart.csv",
        "upcoming_events.csv",
    ]
    chart = pd.read_csv(tmp_path / "revenue_chart.csv")
    assert chart["value"].iloc[-1] == 40


def test_cmd_confirm_marks_paid(store: dict[str, Any]) -> None:
    cli.cmd_confirm(cli.build_parser().parse_args(["confirm", "p1", "--method", "pix"]))
    assert store["payments"].rows["p1"]["status"] == "paid"
    assert store["payments"].rows["p1"]["payment_method"] == "pix"


def test_cmd_upload_proof(
    store: dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    blobs = FakeBlobStore()
    monkeypatch.setattr(cli, "GridFSBlobStore", lambda db: blobs)
    proof = tmp_path / "comprovante.png"
    proof.write_bytes(b"\x89PNG")

    cli.cmd_upload_proof(cli.build_parser().parse_args(["upload-proof", "--payment", "p1", str(proof)]))

    url = capsys.readouterr().out.strip()
    assert store["payments"].rows["p1"]["payment_proof_url"] == url
    assert blobs.files[url] == b"\x89PNG"
