"""Payment write paths: registration, confirmation, review and proofs.

A payment is registered as ``pending``, confirmed to ``paid`` (stamping
`paid_at`), or reviewed to ``approved``/``rejected``. Overdue is derived at
read time and never written.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import PurePosixPath
from typing import Any, Iterable, Mapping
import uuid

from portal_unk.db import BlobStore, DataCollection
from portal_unk.errors import AppError, ErrorKind, format_error
from portal_unk.normalize.records import sanitize_record
from portal_unk.normalize.values import normalize_timestamp, parse_numeric_value, round_currency_value

log = logging.getLogger(__name__)

PAYMENT_COLUMNS = frozenset({
    "event_id", "dj_id", "amount", "status", "paid_at", "due_date",
    "payment_method", "notes", "commission_rate", "commission_amount",
    "payment_proof_url",
})
DEFAULT_PROOF_BUCKET = "payment-proofs"


def register_payment(payments: DataCollection, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Store a new payment, ``pending`` unless a status is given.

    Raises:
        AppError: `ErrorKind.VALIDATION` when the amount is missing,
            unparseable or negative.
    """
    doc = sanitize_record(payload, PAYMENT_COLUMNS)

    amount = parse_numeric_value(doc.get("amount"))
    if amount is None or amount < 0:
        raise AppError("Valor do pagamento inválido.", ErrorKind.VALIDATION)
    doc["amount"] = round_currency_value(amount)
    doc["status"] = doc.get("status") or "pending"

    for column in ("commission_rate", "commission_amount"):
        if column in doc:
            parsed = parse_numeric_value(doc[column])
            if parsed is None:
                del doc[column]
            else:
                doc[column] = round_currency_value(parsed)

    for column in ("paid_at", "due_date"):
        if doc.get(column) is not None:
            doc[column] = normalize_timestamp(doc[column])

    return payments.create(doc)


def confirm_payments(
    payments: DataCollection,
    ids: Iterable[str],
    paid_at: Any = None,
    payment_method: str | None = None,
    notes: str | None = None,
    proof_url: str | None = None,
) -> list[dict[str, Any]]:
    """Mark payments as paid.

    Every id is attempted; failures are collected and reported together.

    Returns:
        The updated payment documents.

    Raises:
        AppError: `ErrorKind.VALIDATION` for an empty id list; otherwise one
            error whose message joins the individual failures with "; ".
    """
    id_list = [payment_id for payment_id in ids if payment_id]
    if not id_list:
        raise AppError("Nenhum pagamento selecionado", ErrorKind.VALIDATION)

    stamp = normalize_timestamp(paid_at) or normalize_timestamp(datetime.now(timezone.utc))
    changes: dict[str, Any] = {"status": "paid", "paid_at": stamp}
    if payment_method is not None:
        changes["payment_method"] = payment_method
    if notes is not None:
        changes["notes"] = notes
    if proof_url is not None:
        changes["payment_proof_url"] = proof_url

    updated: list[dict[str, Any]] = []
    failures: list[AppError] = []
    for payment_id in id_list:
        try:
            updated.append(payments.update(payment_id, changes))
        except AppError as e:
            log.warning("Could not confirm payment %s: %s", payment_id, e)
            failures.append(e)

    if failures:
        message = "; ".join(format_error(e) for e in failures) or "Falha ao confirmar pagamentos"
        kind = failures[0].kind if len(failures) == 1 else ErrorKind.DATABASE
        raise AppError(message, kind, failures[0])

    log.info("Confirmed %d payment(s)", len(updated))
    return updated


def review_payment(payments: DataCollection, payment_id: str, approved: bool) -> dict[str, Any]:
    """Approve or reject a payment submitted for review."""
    status = "approved" if approved else "rejected"
    return payments.update(payment_id, {"status": status})


def proof_path(payment_id: str, filename: str) -> str:
    """Storage path ``<payment id>/<epoch ms>-<random>.<ext>`` for a proof file."""
    extension = PurePosixPath(filename).suffix.lstrip(".") or "dat"
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"{payment_id}/{stamp}-{uuid.uuid4().hex[:10]}.{extension}"


def upload_payment_proof(
    payments: DataCollection,
    blobs: BlobStore,
    payment_id: str,
    filename: str,
    data: bytes,
    bucket: str = DEFAULT_PROOF_BUCKET,
) -> str:
    """Upload a proof file and link it to the payment.

    If linking fails the uploaded file is removed again.

    Returns:
        URL of the stored proof.

    Raises:
        AppError: `ErrorKind.VALIDATION` when the payment id or file is
            missing; storage errors propagate.
    """
    if not payment_id:
        raise AppError("Pagamento não informado", ErrorKind.VALIDATION)
    if not data:
        raise AppError("Arquivo não selecionado", ErrorKind.VALIDATION)

    stored = blobs.upload(bucket, proof_path(payment_id, filename), data)
    try:
        payments.update(payment_id, {"payment_proof_url": stored["url"]})
    except AppError:
        blobs.delete(stored["url"])
        raise
    return stored["url"]
