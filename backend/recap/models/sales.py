from __future__ import annotations

from ..extensions import db
from recap.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    One marketplace sale of a single product.

    SNAPSHOT: product_name, product_code, price_per_unit and hpp_per_unit are
    copied from the product when the sale is recorded. product_id goes NULL
    if the product is later deleted; the snapshot keeps the row readable.

    STORED vs DERIVED:
    - total_sales = price_per_unit * quantity and total_hpp = hpp_per_unit * quantity
      are stored (product prices may change later)
    - discount amount, post-discount sales, admin fee and net profit are NOT
      stored; see recap.calculations.compute_sale_derived_fields

    created_at is the business date of the sale and may be back-dated;
    recorded_at is when the row was written.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_franchise_created", "franchise_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    franchise_id = db.Column(db.Integer, db.ForeignKey("franchises.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_code = db.Column(db.String(64), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_per_unit = db.Column(db.Numeric(15, 2), nullable=False)
    hpp_per_unit = db.Column(db.Numeric(15, 2), nullable=False)
    total_sales = db.Column(db.Numeric(15, 2), nullable=False)
    total_hpp = db.Column(db.Numeric(15, 2), nullable=False)

    discount_type = db.Column(db.String(16), nullable=False, default="none")
    discount_value = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    franchise = db.relationship("Franchise", backref=db.backref("sales", lazy=True))
    product = db.relationship("Product")

    def __repr__(self) -> str:
        return f"<Sale id={self.id} franchise_id={self.franchise_id} product_code={self.product_code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "franchise_id": self.franchise_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_code": self.product_code,
            "quantity": self.quantity,
            "price_per_unit": self.price_per_unit,
            "hpp_per_unit": self.hpp_per_unit,
            "total_sales": self.total_sales,
            "total_hpp": self.total_hpp,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "created_at": to_utc_z(self.created_at),
            "recorded_at": to_utc_z(self.recorded_at),
        }
