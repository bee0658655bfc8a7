from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z


class ProfitSharingPayment(db.Model):
    """
    Revenue share owed by one franchise for one calendar month.

    SNAPSHOT: total_revenue and profit_sharing_percent are copied when the
    period is (re)calculated, not joined live from the franchise. The row is
    upserted on (franchise_id, period_month, period_year); payment_status,
    paid_at and notes are edited by hand and survive recalculation.
    """
    __tablename__ = "profit_sharing_payments"
    __table_args__ = (
        db.UniqueConstraint(
            "franchise_id", "period_month", "period_year",
            name="uq_profit_sharing_payments_period",
        ),
        db.Index("ix_profit_sharing_payments_period", "period_year", "period_month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    franchise_id = db.Column(db.Integer, db.ForeignKey("franchises.id"), nullable=False, index=True)

    period_month = db.Column(db.Integer, nullable=False)
    period_year = db.Column(db.Integer, nullable=False)

    total_revenue = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    profit_sharing_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    profit_sharing_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    payment_status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)  # paid, unpaid
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    franchise = db.relationship("Franchise", backref=db.backref("profit_sharing_payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "franchise_id": self.franchise_id,
            "franchise_name": self.franchise.name if self.franchise else None,
            "period_month": self.period_month,
            "period_year": self.period_year,
            "total_revenue": self.total_revenue,
            "profit_sharing_percent": self.profit_sharing_percent,
            "profit_sharing_amount": self.profit_sharing_amount,
            "payment_status": self.payment_status,
            "paid_at": to_utc_z(self.paid_at),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
