"""Command-line interface for the dashboard aggregations.

Provides subcommands: `summary`, `pending`, `snapshot`, `confirm`,
`upload-proof` and `export`. Each command is implemented as a `cmd_*`
function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from portal_unk.aggregate.financial import summarize_pending_payments
from portal_unk.aggregate.load_snapshot import SNAPSHOT_COLLECTION, load_dashboard_snapshot
from portal_unk.config import Settings, get_settings
from portal_unk.db import GridFSBlobStore, MongoCollection, get_client, get_db
from portal_unk.logging_config import configure_logging
from portal_unk.models import DashboardSummary
from portal_unk.services.dashboard import build_dashboard
from portal_unk.services.payments import confirm_payments, upload_payment_proof

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _settings_with_overrides(args: argparse.Namespace) -> Settings:
    s = get_settings()
    days = getattr(args, "days", None)
    months = getattr(args, "months", None)
    if days is None and months is None:
        return s
    return replace(
        s,
        upcoming_window_days=days if days is not None else s.upcoming_window_days,
        revenue_months=months if months is not None else s.revenue_months,
    )


def _collections(s: Settings) -> tuple[Any, MongoCollection, MongoCollection, MongoCollection]:
    client = get_client(s)
    db = get_db(client, s.mongo_db)
    return db, MongoCollection(db["events"]), MongoCollection(db["payments"]), MongoCollection(db["djs"])


def _dashboard(args: argparse.Namespace) -> tuple[Any, DashboardSummary]:
    s = _settings_with_overrides(args)
    db, events, payments, djs = _collections(s)
    return db, build_dashboard(events, payments, djs, s)


def dashboard_frames(summary: DashboardSummary) -> dict[str, pd.DataFrame]:
    """Tabular views of a dashboard, one DataFrame per exported file."""
    def rows(items: list[Any]) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json", by_alias=True) for item in items]

    return {
        "revenue_chart": pd.DataFrame(rows(summary.revenue_chart_data), columns=["name", "value", "year", "month"]),
        "dj_distribution": pd.DataFrame(rows(summary.dj_distribution), columns=["name", "value"]),
        "upcoming_events": pd.DataFrame(
            rows(summary.upcoming_events_summary),
            columns=["id", "name", "dj", "date", "formattedDate", "location", "djCount", "status"],
        ),
        "financial_stats": pd.DataFrame([summary.financial_stats.model_dump(by_alias=True)]),
    }


# --------------------------------------------------
# COMMANDS
# --------------------------------------------------
def cmd_summary(args: argparse.Namespace) -> None:
    """Print the current dashboard as camelCase JSON."""
    _, summary = _dashboard(args)
    print(json.dumps(summary.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))


def cmd_pending(_: argparse.Namespace) -> None:
    """Print the producer-facing pending/overdue payment summary."""
    s = get_settings()
    _, _, payments, _ = _collections(s)
    pending = summarize_pending_payments(payments.get_all())
    print(json.dumps(pending.model_dump(by_alias=True), indent=2))


def cmd_snapshot(args: argparse.Namespace) -> None:
    """Compute today's dashboard and upsert it into `dashboard_snapshots`."""
    db, summary = _dashboard(args)
    load_dashboard_snapshot(db[SNAPSHOT_COLLECTION], [summary])
    log.info("Dashboard snapshot stored for %s", summary.reference_date)


def cmd_confirm(args: argparse.Namespace) -> None:
    """Mark the given payment ids as paid."""
    s = get_settings()
    _, _, payments, _ = _collections(s)
    updated = confirm_payments(payments, args.ids, payment_method=args.method, notes=args.notes)
    log.info("Confirmed payments: %s", ", ".join(str(p.get("id")) for p in updated))


def cmd_upload_proof(args: argparse.Namespace) -> None:
    """Upload a proof file into GridFS and link it to `--payment`."""
    s = get_settings()
    db, _, payments, _ = _collections(s)
    path = Path(args.file)
    url = upload_payment_proof(
        payments,
        GridFSBlobStore(db),
        args.payment,
        path.name,
        path.read_bytes(),
        bucket=s.payment_proof_bucket,
    )
    print(url)


def cmd_export(args: argparse.Namespace) -> None:
    """Write the dashboard tables as CSV files into `--out`."""
    _, summary = _dashboard(args)
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    for name, frame in dashboard_frames(summary).items():
        path = out_dir / f"{name}.csv"
        frame.to_csv(path, index=False)
        log.info("Exported %s (%d rows)", path, len(frame))


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="portal-unk")
    sub = p.add_subparsers(dest="cmd", required=True)

    window = argparse.ArgumentParser(add_help=False)
    window.add_argument("--days", type=int, default=None, help="upcoming events window")
    window.add_argument("--months", type=int, default=None, help="revenue chart window")

    sub.add_parser("summary", parents=[window])
    sub.add_parser("pending")
    sub.add_parser("snapshot", parents=[window])

    p_confirm = sub.add_parser("confirm")
    p_confirm.add_argument("ids", nargs="+")
    p_confirm.add_argument("--method", default=None)
    p_confirm.add_argument("--notes", default=None)

    p_upload = sub.add_parser("upload-proof")
    p_upload.add_argument("--payment", required=True)
    p_upload.add_argument("file", type=Path)

    p_export = sub.add_parser("export", parents=[window])
    p_export.add_argument("--out", type=Path, default=Path("exports"))

    return p


COMMANDS = {
    "summary": cmd_summary,
    "pending": cmd_pending,
    "snapshot": cmd_snapshot,
    "confirm": cmd_confirm,
    "upload-proof": cmd_upload_proof,
    "export": cmd_export,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    configure_logging(Path("logs/portal_unk.log"))

    args = build_parser().parse_args(argv)
    command = COMMANDS.get(args.cmd)
    if command is None:
        raise SystemExit(2)
    command(args)


if __name__ == "__main__":
    main()
