from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z


class Expenditure(db.Model):
    """Operating cost of a franchise, not tied to any sale."""
    __tablename__ = "expenditures"
    __table_args__ = (
        db.Index("ix_expenditures_franchise_date", "franchise_id", "expenditure_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    franchise_id = db.Column(db.Integer, db.ForeignKey("franchises.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.String(500), nullable=False)
    expenditure_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    franchise = db.relationship("Franchise", backref=db.backref("expenditures", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "franchise_id": self.franchise_id,
            "amount": self.amount,
            "description": self.description,
            "expenditure_date": to_utc_z(self.expenditure_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
