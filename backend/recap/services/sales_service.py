"""
Sales Service: recording marketplace sales and reading them back valued

WHY: A sale row stores only raw facts (snapshots, quantity, discount terms,
business date). Every read pairs it with the franchise's CURRENT fee
settings through recap.calculations, so callers always get
discount_amount, total_sales_after_discount, total_admin_fee and net_profit
consistent with every report.

MULTI-TENANT: every function takes franchise_id and only touches that
franchise's rows.
"""

from __future__ import annotations

import calendar
from datetime import datetime

from flask import current_app

from ..aggregation import PERIOD_DAY, group_by_period, paginate, sum_totals
from ..calculations import DISCOUNT_NONE, DISCOUNT_PERCENTAGE, DISCOUNT_TYPES, ValuedSale, value_sale
from ..extensions import db
from ..models import Product, Sale
from recap.time_utils import (
    current_month,
    month_bounds,
    month_key,
    parse_month_key,
    shift_month,
    utcnow,
)
from .settings_service import get_fee_settings
from .tenant_service import require_row_in_franchise


class SaleError(Exception):
    """Raised for sale operation errors."""
    pass


def _display_tz() -> str:
    return current_app.config["DISPLAY_TIMEZONE"]


def _check_discount(discount_type: str | None, discount_value) -> None:
    if discount_type not in DISCOUNT_TYPES:
        raise SaleError(f"discount_type must be one of: {', '.join(DISCOUNT_TYPES)}")
    if discount_value is not None and discount_value < 0:
        raise SaleError("discount_value must be >= 0")
    if discount_type == DISCOUNT_PERCENTAGE and discount_value is not None and discount_value > 100:
        raise SaleError("discount_value must be between 0 and 100")


def _apply_totals(sale: Sale) -> None:
    # Totals always come from the snapshots, never the live product
    sale.total_sales = sale.price_per_unit * sale.quantity
    sale.total_hpp = sale.hpp_per_unit * sale.quantity


def _valued(sale: Sale, franchise_id: int) -> ValuedSale:
    return value_sale(sale, get_fee_settings(franchise_id))


def record_sale(
    franchise_id: int,
    product_id: int,
    quantity: int,
    discount_type: str | None = DISCOUNT_NONE,
    discount_value=0,
    created_at: datetime | None = None,
) -> ValuedSale:
    """
    Record a sale of one product.

    Product name, code, price and hpp are snapshotted so later catalog
    edits or deletion never change this sale. created_at is the business
    date and may be in the past; recorded_at is set by the database.
    """
    if quantity is None or quantity <= 0:
        raise SaleError("quantity must be a positive integer")
    discount_type = discount_type or DISCOUNT_NONE
    discount_value = 0 if discount_value is None else discount_value
    _check_discount(discount_type, discount_value)

    product = db.session.query(Product).filter_by(id=product_id).first()
    product = require_row_in_franchise(product, franchise_id, "Product")

    sale = Sale(
        franchise_id=franchise_id,
        product_id=product.id,
        product_name=product.name,
        product_code=product.code,
        quantity=quantity,
        price_per_unit=product.price,
        hpp_per_unit=product.hpp,
        discount_type=discount_type,
        discount_value=discount_value,
        created_at=created_at or utcnow(),
    )
    _apply_totals(sale)

    db.session.add(sale)
    db.session.commit()
    return _valued(sale, franchise_id)


def _get_sale_row(franchise_id: int, sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id).first()
    return require_row_in_franchise(sale, franchise_id, "Sale")


def get_sale(franchise_id: int, sale_id: int) -> ValuedSale:
    return _valued(_get_sale_row(franchise_id, sale_id), franchise_id)


def update_sale(franchise_id: int, sale_id: int, patch: dict) -> ValuedSale:
    """
    Edit quantity, discount terms or business date of a sale.

    The product snapshot is kept; totals are recomputed from it.
    """
    sale = _get_sale_row(franchise_id, sale_id)

    quantity = patch.get("quantity", sale.quantity)
    if quantity is None or quantity <= 0:
        raise SaleError("quantity must be a positive integer")

    discount_type = patch.get("discount_type", sale.discount_type) or DISCOUNT_NONE
    discount_value = patch.get("discount_value", sale.discount_value)
    if discount_value is None:
        discount_value = 0
    _check_discount(discount_type, discount_value)

    sale.quantity = quantity
    sale.discount_type = discount_type
    sale.discount_value = discount_value
    if patch.get("created_at") is not None:
        sale.created_at = patch["created_at"]
    _apply_totals(sale)

    db.session.commit()
    return _valued(sale, franchise_id)


def delete_sale(franchise_id: int, sale_id: int) -> None:
    sale = _get_sale_row(franchise_id, sale_id)
    db.session.delete(sale)
    db.session.commit()


def _month_range(key: str | None) -> tuple[datetime, datetime] | None:
    try:
        parsed = parse_month_key(key)
    except ValueError:
        raise SaleError("month must be YYYY-MM or 'all'")
    if parsed is None:
        return None
    return month_bounds(parsed[0], parsed[1], _display_tz())


def query_sales(franchise_id: int, start: datetime | None = None, end: datetime | None = None):
    """Sales of one franchise in [start, end), newest first."""
    query = db.session.query(Sale).filter(Sale.franchise_id == franchise_id)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at < end)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc())


def list_sales(franchise_id: int, month: str | None = None) -> list[ValuedSale]:
    """
    All sales of a franchise, optionally limited to one "YYYY-MM" month of
    the display timezone, each valued with the current fee settings.
    """
    bounds = _month_range(month)
    start, end = bounds if bounds else (None, None)
    settings = get_fee_settings(franchise_id)
    return [value_sale(sale, settings) for sale in query_sales(franchise_id, start, end).all()]


def sales_page(
    franchise_id: int,
    month: str | None = None,
    page: int | None = 1,
    per_page: int | None = None,
) -> dict:
    """
    One page of the sales log.

    month defaults to the current local month; "all" lifts the filter.
    The page's sales are grouped by local day, and every day group carries
    the totals of the WHOLE day even when the day spills onto another page.
    """
    tz_name = _display_tz()
    if month is None:
        month = month_key(*current_month(tz_name))

    valued = list_sales(franchise_id, month)
    day_totals = {
        key: sum_totals(items)
        for key, items in group_by_period(valued, PERIOD_DAY, tz_name).items()
    }

    items, pagination = paginate(valued, page, per_page or current_app.config["ITEMS_PER_PAGE"])

    groups = []
    for key, day_items in group_by_period(items, PERIOD_DAY, tz_name).items():
        groups.append({
            "date": key,
            "sales": [s.to_dict() for s in day_items],
            "totals": day_totals[key].to_dict(),
        })

    return {
        "month": month,
        "items": [s.to_dict() for s in items],
        "groups": groups,
        "totals": sum_totals(valued).to_dict(),
        "pagination": pagination,
    }


def month_options(count: int = 12) -> list[dict]:
    """The current local month and the months before it, newest first."""
    year, month = current_month(_display_tz())
    options = []
    for offset in range(count):
        y, m = shift_month(year, month, -offset)
        options.append({"value": month_key(y, m), "label": f"{calendar.month_name[m]} {y}"})
    return options

