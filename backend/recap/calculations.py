"""
Financial calculation engine.

Turns the stored fields of a sale plus the franchise's *current* admin
settings into every derived money figure the reports show:

    total_sales -> discount -> total_sales_after_discount
                -> total_admin_fee -> net_profit

Nothing here touches the database. Derived values are never persisted on
the sale row, so updating AdminSettings re-values every historical sale on
the next read.

Inputs are duck-typed: any mapping or object exposing the field names works
(a Sale model, an AdminSettings model, or a plain dict in tests). No input is
rejected; validation belongs to the request boundary. A negative quantity
that slips through simply produces a negative figure.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any


ZERO = Decimal("0")
HUNDRED = Decimal("100")

DISCOUNT_NONE = "none"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = (DISCOUNT_NONE, DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal. None becomes 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    return Decimal(str(value))


def read_field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def quantize_money(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def quantize_pct(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeSettings:
    """Marketplace fee terms applied to every sale of one franchise."""
    admin_fee_percent: Decimal
    fixed_deduction: Decimal

    @classmethod
    def from_source(cls, source: Any) -> "FeeSettings":
        return cls(
            admin_fee_percent=to_decimal(read_field(source, "admin_fee_percent")),
            fixed_deduction=to_decimal(read_field(source, "fixed_deduction")),
        )


@dataclass(frozen=True)
class DerivedFields:
    discount_amount: Decimal
    total_sales_after_discount: Decimal
    total_admin_fee: Decimal
    net_profit: Decimal

    def to_dict(self) -> dict:
        return {
            "discount_amount": self.discount_amount,
            "total_sales_after_discount": self.total_sales_after_discount,
            "total_admin_fee": self.total_admin_fee,
            "net_profit": self.net_profit,
        }


def compute_discount_amount(total_sales: Decimal, discount_type: str | None, discount_value: Any) -> Decimal:
    total_sales = to_decimal(total_sales)
    value = to_decimal(discount_value)

    if discount_type == DISCOUNT_PERCENTAGE:
        amount = total_sales * value / HUNDRED
    elif discount_type == DISCOUNT_FIXED:
        amount = value
    else:
        amount = ZERO

    # NaN passes through unclamped; ordering comparisons on it raise
    if amount.is_nan() or total_sales.is_nan():
        return amount
    # Post-discount sales never go below zero
    return min(amount, total_sales)


def compute_sale_derived_fields(raw: Any, settings: Any) -> DerivedFields:
    """
    Derive discount, post-discount sales, admin fee and net profit for one sale.

    The steps run in a fixed order because each one feeds the next. The fixed
    deduction is charged even when post-discount sales are zero, so net profit
    can be negative; that is a business rule, not an error.
    """
    total_sales = to_decimal(read_field(raw, "total_sales"))
    total_hpp = to_decimal(read_field(raw, "total_hpp"))
    fees = settings if isinstance(settings, FeeSettings) else FeeSettings.from_source(settings)

    discount_amount = compute_discount_amount(
        total_sales,
        read_field(raw, "discount_type"),
        read_field(raw, "discount_value"),
    )
    after_discount = total_sales - discount_amount
    admin_fee = after_discount * fees.admin_fee_percent / HUNDRED + fees.fixed_deduction
    net_profit = after_discount - total_hpp - admin_fee

    return DerivedFields(
        discount_amount=discount_amount,
        total_sales_after_discount=after_discount,
        total_admin_fee=admin_fee,
        net_profit=net_profit,
    )


def compute_revenue_share(total_revenue: Any, profit_sharing_percent: Any) -> Decimal:
    """
    Revenue share owed to the platform owner for a period.

    Always taken from GROSS revenue (sum of stored total_sales, before
    discounts, cost and fees), never from net profit. Every call site goes
    through here so the rule lives in one place.
    """
    return to_decimal(total_revenue) * to_decimal(profit_sharing_percent) / HUNDRED


@dataclass(frozen=True)
class PeriodFigures:
    """The five independently aggregated terms of a period's bottom line."""
    total_sales_after_discount: Decimal
    total_hpp: Decimal
    total_admin_fee: Decimal
    total_expenditures: Decimal
    revenue_share: Decimal


def compute_real_profit(period: Any) -> Decimal:
    """
    Bottom-line profit for a period:

        after_discount - hpp - admin_fee - expenditures - revenue_share

    Sale terms must be the sums of compute_sale_derived_fields output so the
    figure agrees with every per-sale report.
    """
    return (
        to_decimal(read_field(period, "total_sales_after_discount"))
        - to_decimal(read_field(period, "total_hpp"))
        - to_decimal(read_field(period, "total_admin_fee"))
        - to_decimal(read_field(period, "total_expenditures"))
        - to_decimal(read_field(period, "revenue_share"))
    )


@dataclass(frozen=True)
class ValuedSale:
    """A stored sale paired with the derived fields computed for it."""
    sale: Any
    derived: DerivedFields

    @property
    def created_at(self):
        return read_field(self.sale, "created_at")

    @property
    def franchise_id(self):
        return read_field(self.sale, "franchise_id")

    @property
    def quantity(self) -> int:
        return read_field(self.sale, "quantity") or 0

    @property
    def total_sales(self) -> Decimal:
        return to_decimal(read_field(self.sale, "total_sales"))

    @property
    def total_hpp(self) -> Decimal:
        return to_decimal(read_field(self.sale, "total_hpp"))

    @property
    def discount_amount(self) -> Decimal:
        return self.derived.discount_amount

    @property
    def total_sales_after_discount(self) -> Decimal:
        return self.derived.total_sales_after_discount

    @property
    def total_admin_fee(self) -> Decimal:
        return self.derived.total_admin_fee

    @property
    def net_profit(self) -> Decimal:
        return self.derived.net_profit

    def to_dict(self) -> dict:
        base = self.sale.to_dict() if hasattr(self.sale, "to_dict") else dict(self.sale)
        base.update(self.derived.to_dict())
        return base


def value_sale(sale: Any, settings: Any) -> ValuedSale:
    return ValuedSale(sale=sale, derived=compute_sale_derived_fields(sale, settings))
