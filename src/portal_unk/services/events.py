"""Event write paths: create and partial update."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from portal_unk.db import DataCollection
from portal_unk.errors import AppError, ErrorKind
from portal_unk.normalize.records import (
    EVENT_COLUMNS,
    build_event_record,
    merge_dj_ids,
    prepare_sanitized_event_record,
)
from portal_unk.normalize.values import pick_first_string

log = logging.getLogger(__name__)


def create_event(events: DataCollection, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate, normalize and store a new event.

    The primary DJ is `dj_id` (or `djId`); when absent, the first entry of
    `dj_ids` takes its place. `dj_ids` is stored with the primary first.

    Raises:
        AppError: `ErrorKind.VALIDATION` when the name or date is missing;
            storage errors propagate unchanged.
    """
    primary = pick_first_string(payload.get("dj_id"), payload.get("djId"))
    dj_ids = merge_dj_ids(primary, payload.get("dj_ids") or [])
    if primary is None and dj_ids:
        primary = dj_ids[0]

    record = build_event_record(payload, primary)
    if dj_ids:
        record.dj_ids = dj_ids

    doc = prepare_sanitized_event_record(record.model_dump(exclude_unset=True), EVENT_COLUMNS)
    created = events.create(doc)
    log.info("Event %s created for %s", created.get("id"), record.event_date)
    return created


def update_event(events: DataCollection, event_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Merge the provided fields into an existing event.

    Only whitelisted columns present in `payload` are written; everything
    else keeps its stored value. When `dj_ids` or `dj_id` changes, the list
    (payload or stored) is re-merged so the primary DJ (payload `dj_id`,
    else the stored one) sits at index 0 and is mirrored into `dj_id`.

    Raises:
        AppError: `ErrorKind.VALIDATION` for an empty update, or storage
            errors (`NOT_FOUND`, `DATABASE`) unchanged.
    """
    changes = prepare_sanitized_event_record(payload, EVENT_COLUMNS, partial=True)

    if "event_name" in changes and not pick_first_string(changes["event_name"]):
        raise AppError("Nome do evento é obrigatório.", ErrorKind.VALIDATION)
    if "event_date" in changes and not pick_first_string(changes["event_date"]):
        raise AppError("Data do evento é obrigatória.", ErrorKind.VALIDATION)

    new_primary = pick_first_string(changes.get("dj_id"))
    if "dj_ids" in changes or new_primary is not None:
        current = events.get_by_id(event_id) or {}
        dj_ids = changes["dj_ids"] if "dj_ids" in changes else current.get("dj_ids")
        primary = new_primary or pick_first_string(current.get("dj_id"))
        changes["dj_ids"] = merge_dj_ids(primary, dj_ids)
        if changes["dj_ids"]:
            changes["dj_id"] = changes["dj_ids"][0]

    if not changes:
        raise AppError("Nenhum campo para atualizar.", ErrorKind.VALIDATION)

    return events.update(event_id, changes)
