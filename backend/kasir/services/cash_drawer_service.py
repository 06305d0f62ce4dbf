# Overview: Cash drawer ledger; append-only entries and the derived balance.

from __future__ import annotations

import logging

from sqlalchemy import case, func

from ..extensions import db
from ..models import CashDrawerEntry, CashDrawerEntryType
from ..validation import ValidationError

log = logging.getLogger(__name__)


def signed_amount_expr():
    """SQL expression: +amount for IN/OPENING_BALANCE, -amount for OUT."""
    return case(
        (CashDrawerEntry.type.in_([CashDrawerEntryType.IN, CashDrawerEntryType.OPENING_BALANCE]),
         CashDrawerEntry.amount_cents),
        (CashDrawerEntry.type == CashDrawerEntryType.OUT, -CashDrawerEntry.amount_cents),
        else_=0,
    )


def create_entry(
    *,
    entry_type: CashDrawerEntryType,
    amount_cents: int,
    description: str,
    user_id: int,
) -> CashDrawerEntry:
    if amount_cents <= 0:
        raise ValidationError("amount_cents must be > 0")
    if not description or not description.strip():
        raise ValidationError("description cannot be blank")

    entry = CashDrawerEntry(
        type=entry_type,
        amount_cents=amount_cents,
        description=description.strip(),
        user_id=user_id,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info(
        "cash_drawer_entry_created id=%s type=%s amount_cents=%s user_id=%s",
        entry.id, entry_type.value, amount_cents, user_id,
    )
    return entry


def list_entries() -> list[CashDrawerEntry]:
    """All entries, newest first."""
    return (
        db.session.query(CashDrawerEntry)
        .order_by(CashDrawerEntry.created_at.desc(), CashDrawerEntry.id.desc())
        .all()
    )


def get_balance() -> int:
    """
    Current drawer balance in cents, recomputed from the full ledger.

    sum(IN) + sum(OPENING_BALANCE) - sum(OUT); 0 for an empty ledger.
    """
    total = db.session.query(func.coalesce(func.sum(signed_amount_expr()), 0)).scalar()
    return int(total or 0)
