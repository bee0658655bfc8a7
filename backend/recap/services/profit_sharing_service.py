"""
Profit Sharing Service: monthly revenue share owed by each franchise

The amount owed for a month is always compute_revenue_share over the GROSS
sum of total_sales (before discount, cost and fees) at the franchise's
current profit_sharing_percent.

Recalculation upserts one row per (franchise, month, year). The figures are
overwritten; payment_status, paid_at and notes are bookkeeping entered by
the super admin and are kept.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..calculations import ZERO, compute_revenue_share, quantize_money
from ..extensions import db
from ..models import Franchise, ProfitSharingPayment, Sale
from recap.time_utils import month_bounds, utcnow


class ProfitSharingError(Exception):
    """Raised for profit sharing operation errors."""
    pass


STATUS_PAID = "paid"
STATUS_UNPAID = "unpaid"
PAYMENT_STATUSES = (STATUS_PAID, STATUS_UNPAID)


def _check_period(month: int, year: int) -> None:
    if month is None or not 1 <= month <= 12:
        raise ProfitSharingError("month must be between 1 and 12")
    if year is None or not 2000 <= year <= 9999:
        raise ProfitSharingError("year is out of range")


def gross_sales_by_franchise(start: datetime, end: datetime) -> dict[int, object]:
    """Sum of stored total_sales per franchise in [start, end)."""
    rows = (
        db.session.query(Sale.franchise_id, db.func.sum(Sale.total_sales))
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .group_by(Sale.franchise_id)
        .all()
    )
    return {franchise_id: (total or ZERO) for franchise_id, total in rows}


def recalculate_period(month: int, year: int) -> list[ProfitSharingPayment]:
    """
    Recompute the payment row of every franchise for one month.

    Deactivated franchises are included: deactivation only blocks login and
    their sales in the month still owe revenue share.

    Franchises with no sales still get a row with zero revenue so the month
    shows up complete in the payment list.
    """
    _check_period(month, year)
    start, end = month_bounds(year, month, current_app.config["DISPLAY_TIMEZONE"])
    revenue = gross_sales_by_franchise(start, end)

    franchises = db.session.query(Franchise).order_by(Franchise.id).all()
    existing = {
        p.franchise_id: p
        for p in db.session.query(ProfitSharingPayment).filter_by(period_month=month, period_year=year).all()
    }

    payments = []
    for franchise in franchises:
        total_revenue = revenue.get(franchise.id, ZERO)
        payment = existing.get(franchise.id)
        if payment is None:
            payment = ProfitSharingPayment(
                franchise_id=franchise.id,
                period_month=month,
                period_year=year,
                payment_status=STATUS_UNPAID,
            )
            db.session.add(payment)

        payment.total_revenue = total_revenue
        payment.profit_sharing_percent = franchise.profit_sharing_percent
        payment.profit_sharing_amount = quantize_money(
            compute_revenue_share(total_revenue, franchise.profit_sharing_percent)
        )
        payment.updated_at = utcnow()
        payments.append(payment)

    db.session.commit()
    current_app.logger.info(
        "Recalculated profit sharing for %04d-%02d (%d franchises)", year, month, len(payments)
    )
    return payments


def list_payments(month: int, year: int, search: str | None = None) -> dict:
    """
    Payment rows of one month, largest amount first, with a summary.

    search matches the franchise name (case-insensitive). The summary
    covers the filtered rows.
    """
    _check_period(month, year)
    query = (
        db.session.query(ProfitSharingPayment)
        .join(Franchise, ProfitSharingPayment.franchise_id == Franchise.id)
        .filter(
            ProfitSharingPayment.period_month == month,
            ProfitSharingPayment.period_year == year,
        )
    )
    if search and search.strip():
        query = query.filter(Franchise.name.ilike(f"%{search.strip()}%"))

    payments = query.order_by(
        ProfitSharingPayment.profit_sharing_amount.desc(),
        ProfitSharingPayment.id.asc(),
    ).all()

    return {
        "items": [p.to_dict() for p in payments],
        "summary": {
            "total_profit_sharing": sum((p.profit_sharing_amount for p in payments), ZERO),
            "paid_count": sum(1 for p in payments if p.payment_status == STATUS_PAID),
            "unpaid_count": sum(1 for p in payments if p.payment_status == STATUS_UNPAID),
        },
    }


def get_payment(payment_id: int) -> ProfitSharingPayment:
    payment = db.session.query(ProfitSharingPayment).filter_by(id=payment_id).first()
    if not payment:
        raise ProfitSharingError("Payment not found")
    return payment


_UNSET = object()


def update_payment_status(
    payment_id: int,
    payment_status: str,
    paid_at: datetime | None = None,
    notes=_UNSET,
) -> ProfitSharingPayment:
    """
    Mark a payment paid or unpaid.

    paid: paid_at is the given date, else the existing one, else now.
    unpaid: paid_at is cleared.
    notes is only touched when passed.
    """
    if payment_status not in PAYMENT_STATUSES:
        raise ProfitSharingError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")

    payment = get_payment(payment_id)
    payment.payment_status = payment_status
    if payment_status == STATUS_PAID:
        payment.paid_at = paid_at or payment.paid_at or utcnow()
    else:
        payment.paid_at = None

    if notes is not _UNSET:
        notes = (notes or "").strip()
        payment.notes = notes or None

    db.session.commit()
    return payment


def delete_payment(payment_id: int) -> None:
    payment = get_payment(payment_id)
    db.session.delete(payment)
    db.session.commit()
