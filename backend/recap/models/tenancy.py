from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z

class Franchise(db.Model):
    """
    Multi-tenant root: every tenant is a Franchise.

    All products, sales, expenditures, fee settings and revenue-share payments
    belong to exactly one franchise. No data may cross franchise boundaries.

    DESIGN:
    - Each franchise is owned by one user account (user_id)
    - profit_sharing_percent is set by the super admin, not the franchise
    - is_active gates login; deactivating revokes live sessions on next use
    """
    __tablename__ = "franchises"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_franchises_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    profit_sharing_percent = db.Column(db.Numeric(5, 2), nullable=False, default=10)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", backref=db.backref("franchise", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<Franchise id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "user_id": self.user_id,
            "email": self.owner.email if self.owner else None,
            "profit_sharing_percent": self.profit_sharing_percent,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
