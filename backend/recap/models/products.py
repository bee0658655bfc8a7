from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z


class Product(db.Model):
    """
    Product catalog entry of one franchise.

    Codes are free-form and unique within a franchise. Sales snapshot
    name/code/price/hpp when recorded, so edits and deletes here never
    touch historical sales.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("franchise_id", "code", name="uq_products_franchise_code"),
        db.Index("ix_products_franchise_name", "franchise_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    franchise_id = db.Column(db.Integer, db.ForeignKey("franchises.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(64), nullable=False)

    hpp = db.Column(db.Numeric(15, 2), nullable=False, default=0)  # unit cost
    price = db.Column(db.Numeric(15, 2), nullable=False, default=0)  # unit sale price

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    franchise = db.relationship("Franchise", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} franchise_id={self.franchise_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "franchise_id": self.franchise_id,
            "name": self.name,
            "code": self.code,
            "hpp": self.hpp,
            "price": self.price,
            "created_at": to_utc_z(self.created_at),
        }
