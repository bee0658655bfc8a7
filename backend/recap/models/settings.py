from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z


class AdminSettings(db.Model):
    """
    Marketplace fee terms for one franchise.

    Applied at READ time to every sale of the franchise. Nothing derived from
    these values is stored on sales, so editing them re-values history.
    """
    __tablename__ = "admin_settings"
    __table_args__ = (
        db.UniqueConstraint("franchise_id", name="uq_admin_settings_franchise"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    franchise_id = db.Column(db.Integer, db.ForeignKey("franchises.id"), nullable=False, index=True)

    admin_fee_percent = db.Column(db.Numeric(5, 2), nullable=False, default=5)
    fixed_deduction = db.Column(db.Numeric(15, 2), nullable=False, default=1000)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    franchise = db.relationship("Franchise", backref=db.backref("admin_settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "franchise_id": self.franchise_id,
            "admin_fee_percent": self.admin_fee_percent,
            "fixed_deduction": self.fixed_deduction,
            "updated_at": to_utc_z(self.updated_at),
        }
