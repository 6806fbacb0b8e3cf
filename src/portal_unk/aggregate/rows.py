"""Coercion of raw snapshot rows into row models.

Aggregators accept either model instances or plain dicts straight from the
store. Bad fields inside a row fall back to their defaults (see
`models.RowModel`), so only input that is not a row at all is skipped and
counted; a single malformed row must not break the dashboard.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from portal_unk.models import DJRecord, EventRecord, PaymentRecord

log = logging.getLogger(__name__)

RowModel = TypeVar("RowModel", bound=BaseModel)


def coerce_rows(
    rows: Iterable[RowModel | Mapping[str, Any]] | None,
    model: type[RowModel],
) -> list[RowModel]:
    """Validate `rows` into `model` instances, dropping the ones that fail.

    Args:
        rows: Model instances or mappings; ``None`` is treated as empty.
        model: Target row model.

    Returns:
        Validated rows in input order.
    """
    good: list[RowModel] = []
    bad = 0

    for row in rows or ():
        if isinstance(row, model):
            good.append(row)
            continue
        try:
            good.append(model.model_validate(row))
        except ValidationError as e:
            bad += 1
            log.debug("Skipping %s row: %s", model.__name__, e)

    if bad:
        log.warning("Skipped %d malformed %s rows", bad, model.__name__)
    return good


def coerce_events(rows: Iterable[Any] | None) -> list[EventRecord]:
    return coerce_rows(rows, EventRecord)


def coerce_payments(rows: Iterable[Any] | None) -> list[PaymentRecord]:
    return coerce_rows(rows, PaymentRecord)


def coerce_djs(rows: Iterable[Any] | None) -> list[DJRecord]:
    return coerce_rows(rows, DJRecord)


def normalized_status(value: Any) -> str:
    """Lower-cased, trimmed status label ("" when missing)."""
    return str(value or "").strip().lower()


# Status labels are opaque strings in mixed pt-BR/en; compare normalized.
PAID_STATUSES = frozenset({"paid", "pago"})
PENDING_STATUSES = frozenset({"pending", "pendente"})
OVERDUE_STATUSES = frozenset({"overdue", "atrasado"})
OPEN_STATUSES = PENDING_STATUSES | OVERDUE_STATUSES
SETTLED_STATUSES = PAID_STATUSES | {"completed", "concluido", "concluído"}
