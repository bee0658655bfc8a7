# Overview: Pure reducers over already-valued sale records (grouping, totals, ranking, paging).

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence

from .calculations import (
    HUNDRED,
    ZERO,
    PeriodFigures,
    compute_revenue_share,
    read_field,
    to_decimal,
)
from .time_utils import to_local


PERIOD_DAY = "day"
PERIOD_MONTH = "month"
PERIOD_YEAR = "year"

_PERIOD_FORMATS = {
    PERIOD_DAY: "%Y-%m-%d",
    PERIOD_MONTH: "%Y-%m",
    PERIOD_YEAR: "%Y",
}


class AggregationError(ValueError):
    """Raised for an unknown grouping period."""


@dataclass
class SaleTotals:
    orders: int = 0
    quantity: int = 0
    total_sales: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total_sales_after_discount: Decimal = ZERO
    total_hpp: Decimal = ZERO
    total_admin_fee: Decimal = ZERO
    net_profit: Decimal = ZERO

    def add(self, record: Any) -> None:
        self.orders += 1
        self.quantity += int(read_field(record, "quantity") or 0)
        self.total_sales += to_decimal(read_field(record, "total_sales"))
        self.discount_amount += to_decimal(read_field(record, "discount_amount"))
        self.total_sales_after_discount += to_decimal(read_field(record, "total_sales_after_discount"))
        self.total_hpp += to_decimal(read_field(record, "total_hpp"))
        self.total_admin_fee += to_decimal(read_field(record, "total_admin_fee"))
        self.net_profit += to_decimal(read_field(record, "net_profit"))

    def to_dict(self) -> dict:
        return {
            "orders": self.orders,
            "quantity": self.quantity,
            "total_sales": self.total_sales,
            "discount_amount": self.discount_amount,
            "total_sales_after_discount": self.total_sales_after_discount,
            "total_hpp": self.total_hpp,
            "total_admin_fee": self.total_admin_fee,
            "net_profit": self.net_profit,
        }


def sum_totals(records: Iterable[Any]) -> SaleTotals:
    totals = SaleTotals()
    for record in records:
        totals.add(record)
    return totals


def period_key(dt: datetime, period: str, tz_name: str) -> str:
    """Calendar bucket of a stored UTC-naive timestamp, in the display timezone."""
    fmt = _PERIOD_FORMATS.get(period)
    if fmt is None:
        raise AggregationError("period must be day, month, or year")
    return to_local(dt, tz_name).strftime(fmt)


def group_by_period(
    records: Iterable[Any],
    period: str,
    tz_name: str,
    date_of: Callable[[Any], datetime] | None = None,
) -> dict[str, list[Any]]:
    """
    Bucket records by local calendar day, month or year.

    Keys keep first-seen order; callers sort as the view needs.
    """
    if date_of is None:
        date_of = lambda record: read_field(record, "created_at")

    groups: dict[str, list[Any]] = {}
    for record in records:
        key = period_key(date_of(record), period, tz_name)
        groups.setdefault(key, []).append(record)
    return groups


def totals_by_period(
    records: Iterable[Any],
    period: str,
    tz_name: str,
) -> dict[str, SaleTotals]:
    return {
        key: sum_totals(items)
        for key, items in group_by_period(records, period, tz_name).items()
    }


def percent_change(current: Any, previous: Any) -> Decimal:
    """
    Change from previous to current, in percent of |previous|.

    A zero baseline reports 100 for growth and 0 otherwise instead of an
    infinite or negative swing.
    """
    current = to_decimal(current)
    previous = to_decimal(previous)
    if previous == 0:
        return HUNDRED if current > 0 else ZERO
    return (current - previous) / abs(previous) * HUNDRED


def rank_by_metric(items: Sequence[Any], metric: str) -> list[dict]:
    """
    Sort descending by metric and attach rank and contribution percentage.

    Ties keep their original order. Contribution is the item's share of the
    metric total, 0 when the total is 0.
    """
    total = sum((to_decimal(read_field(item, metric)) for item in items), ZERO)
    ordered = sorted(items, key=lambda item: to_decimal(read_field(item, metric)), reverse=True)

    ranked = []
    for index, item in enumerate(ordered, start=1):
        row = dict(item) if isinstance(item, dict) else dict(vars(item))
        value = to_decimal(read_field(item, metric))
        row["rank"] = index
        row["contribution_pct"] = (value / total * HUNDRED) if total else ZERO
        ranked.append(row)
    return ranked


def paginate(items: Sequence[Any], page: int | None, per_page: int) -> tuple[list[Any], dict]:
    """Slice a list and describe the page the same way list endpoints do."""
    per_page = max(1, min(per_page, 100))
    total = len(items)
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    page = min(max(page or 1, 1), total_pages)

    start = (page - 1) * per_page
    return list(items[start:start + per_page]), {
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


@dataclass
class PeriodSummary:
    """Sale totals, expenditures and revenue share of one reporting period."""
    sales: SaleTotals = field(default_factory=SaleTotals)
    total_expenditures: Decimal = ZERO
    profit_sharing_percent: Decimal = ZERO

    @property
    def revenue_share(self) -> Decimal:
        return compute_revenue_share(self.sales.total_sales, self.profit_sharing_percent)

    def figures(self) -> PeriodFigures:
        return PeriodFigures(
            total_sales_after_discount=self.sales.total_sales_after_discount,
            total_hpp=self.sales.total_hpp,
            total_admin_fee=self.sales.total_admin_fee,
            total_expenditures=self.total_expenditures,
            revenue_share=self.revenue_share,
        )
