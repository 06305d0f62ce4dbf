from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .enums import CashDrawerEntryType, enum_column


class CashDrawerEntry(db.Model):
    """
    Cash drawer audit trail.

    EVENT TYPES:
    - OPENING_BALANCE: Float counted into the drawer at the start of a day
    - IN: Cash put into the drawer
    - OUT: Cash taken out of the drawer

    Entries are never updated or deleted. The drawer balance is always
    recomputed from the full ledger.
    """
    __tablename__ = "cash_drawer_entries"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_cash_drawer_amount_positive"),
        db.Index("ix_cash_drawer_entries_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = enum_column(CashDrawerEntryType, nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("cash_drawer_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
