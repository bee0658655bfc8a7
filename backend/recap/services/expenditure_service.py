# Overview: Service-layer operations for franchise operating expenditures.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..aggregation import PERIOD_MONTH, paginate, period_key
from ..calculations import ZERO
from ..extensions import db
from ..models import Expenditure
from recap.time_utils import month_bounds, parse_month_key, utcnow
from .tenant_service import require_row_in_franchise


class ExpenditureError(Exception):
    """Raised for expenditure operation errors."""
    pass


EXPENDITURE_MUTABLE_FIELDS = {"amount", "description", "expenditure_date"}


def _check_amount(amount) -> None:
    if amount is None or amount <= 0:
        raise ExpenditureError("amount must be > 0")


def create_expenditure(
    franchise_id: int,
    amount,
    description: str,
    expenditure_date: datetime | None = None,
) -> Expenditure:
    _check_amount(amount)
    description = (description or "").strip()
    if not description:
        raise ExpenditureError("description is required")

    row = Expenditure(
        franchise_id=franchise_id,
        amount=amount,
        description=description,
        expenditure_date=expenditure_date or utcnow(),
    )
    db.session.add(row)
    db.session.commit()
    return row


def get_expenditure(franchise_id: int, expenditure_id: int) -> Expenditure:
    row = db.session.query(Expenditure).filter_by(id=expenditure_id).first()
    return require_row_in_franchise(row, franchise_id, "Expenditure")


def update_expenditure(franchise_id: int, expenditure_id: int, patch: dict) -> Expenditure:
    row = get_expenditure(franchise_id, expenditure_id)
    if "amount" in patch:
        _check_amount(patch["amount"])
    if "description" in patch and not (patch["description"] or "").strip():
        raise ExpenditureError("description is required")
    if "expenditure_date" in patch and patch["expenditure_date"] is None:
        raise ExpenditureError("expenditure_date cannot be null")

    for k, v in patch.items():
        if k in EXPENDITURE_MUTABLE_FIELDS:
            setattr(row, k, v)

    db.session.commit()
    return row


def delete_expenditure(franchise_id: int, expenditure_id: int) -> None:
    row = get_expenditure(franchise_id, expenditure_id)
    db.session.delete(row)
    db.session.commit()


def month_range(month: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        parsed = parse_month_key(month)
    except ValueError:
        raise ExpenditureError("month must be YYYY-MM or 'all'")
    if parsed is None:
        return None, None
    return month_bounds(parsed[0], parsed[1], current_app.config["DISPLAY_TIMEZONE"])


def query_expenditures(
    franchise_id: int | None,
    start: datetime | None = None,
    end: datetime | None = None,
):
    """Expenditures in [start, end), newest first. franchise_id=None spans all franchises."""
    query = db.session.query(Expenditure)
    if franchise_id is not None:
        query = query.filter(Expenditure.franchise_id == franchise_id)
    if start is not None:
        query = query.filter(Expenditure.expenditure_date >= start)
    if end is not None:
        query = query.filter(Expenditure.expenditure_date < end)
    return query.order_by(Expenditure.expenditure_date.desc(), Expenditure.id.desc())


def total_for_period(franchise_id: int | None, start: datetime | None = None, end: datetime | None = None):
    """Sum of expenditure amounts in [start, end)."""
    query = db.session.query(db.func.sum(Expenditure.amount))
    if franchise_id is not None:
        query = query.filter(Expenditure.franchise_id == franchise_id)
    if start is not None:
        query = query.filter(Expenditure.expenditure_date >= start)
    if end is not None:
        query = query.filter(Expenditure.expenditure_date < end)
    return query.scalar() or ZERO


def available_months(franchise_id: int | None) -> list[str]:
    """Distinct local "YYYY-MM" months that have expenditures, newest first."""
    tz_name = current_app.config["DISPLAY_TIMEZONE"]
    query = db.session.query(Expenditure.expenditure_date)
    if franchise_id is not None:
        query = query.filter(Expenditure.franchise_id == franchise_id)
    months = {period_key(d, PERIOD_MONTH, tz_name) for (d,) in query.all()}
    return sorted(months, reverse=True)


def list_expenditures(
    franchise_id: int,
    month: str | None = None,
    page: int | None = 1,
    per_page: int | None = None,
) -> dict:
    """
    Expenditure log of a franchise with month filter and pagination.

    total is the sum over the whole filtered period, not just the page.
    """
    start, end = month_range(month)
    rows = query_expenditures(franchise_id, start, end).all()
    items, pagination = paginate(rows, page, per_page or current_app.config["ITEMS_PER_PAGE"])

    return {
        "items": [r.to_dict() for r in items],
        "total": sum((r.amount for r in rows), ZERO),
        "available_months": available_months(franchise_id),
        "pagination": pagination,
    }
