"""Persistence integration for confirmed transaction drafts.

Functions here write to and read from the shared database owned by
``libs/db``. They rely on the ``db.models.ledger`` ORM model and a session
provided by ``db.client``; transaction boundaries belong to the caller
(usually ``session_scope``). Extractors never import this module.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.ledger import LedgerTransaction

from .logging_setup import get_logger
from .models import TransactionDraft
from .validation import validate_draft

_logger = get_logger("transaction_extraction.persistence")

_CENTS = Decimal("0.01")


def _to_decimal_2(amount: Decimal) -> Decimal:
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def save_drafts(
    session: Session,
    drafts: Iterable[TransactionDraft],
    *,
    source: str,
    user_id: str | None = None,
) -> list[str]:
    """Insert one ledger row per draft and return the new ids in input order.

    Each draft is re-validated before insert; a ``ValueError`` aborts the
    whole batch (nothing is flushed). ``created_at`` is the same UTC instant
    for every row of one call.
    """

    source_label = (source or "").strip()
    if not source_label:
        raise ValueError("source must be a non-empty label such as 'sms' or 'statement'")

    validated = [validate_draft(d) for d in drafts]
    now = datetime.now(UTC)

    ids: list[str] = []
    for draft in validated:
        row_id = str(uuid.uuid4())
        session.add(
            LedgerTransaction(
                id=row_id,
                user_id=user_id,
                amount=_to_decimal_2(draft.amount),
                direction=draft.direction,
                category=draft.category.value,
                date=draft.date,
                description=draft.description,
                source=source_label,
                created_at=now,
            )
        )
        ids.append(row_id)
    session.flush()

    _logger.info("persistence:saved rows=%d source=%s", len(ids), source_label)
    return ids


def list_transactions(
    session: Session, *, user_id: str | None = None
) -> list[LedgerTransaction]:
    """Return stored rows newest date first (ties by creation time, then id).

    When ``user_id`` is given only that user's rows are returned.
    """

    stmt = select(LedgerTransaction)
    if user_id is not None:
        stmt = stmt.where(LedgerTransaction.user_id == user_id)
    stmt = stmt.order_by(
        LedgerTransaction.date.desc(),
        LedgerTransaction.created_at.desc(),
        LedgerTransaction.id,
    )
    return list(session.scalars(stmt))


__all__ = ["list_transactions", "save_drafts"]
