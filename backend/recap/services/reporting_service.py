# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..aggregation import (
    PERIOD_MONTH,
    PERIOD_YEAR,
    PeriodSummary,
    group_by_period,
    paginate,
    percent_change,
    period_key,
    rank_by_metric,
    sum_totals,
    totals_by_period,
)
from ..calculations import (
    ZERO,
    compute_real_profit,
    compute_revenue_share,
    quantize_money,
    quantize_pct,
    value_sale,
    ValuedSale,
)
from ..extensions import db
from ..models import Franchise, Sale
from recap.time_utils import (
    current_month,
    month_bounds,
    month_key,
    shift_month,
    year_bounds,
)
from .expenditure_service import (
    ExpenditureError,
    available_months,
    month_range,
    query_expenditures,
    total_for_period,
)
from .products_service import list_all_products
from .settings_service import get_fee_settings_map


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _tz() -> str:
    return current_app.config["DISPLAY_TIMEZONE"]


def _get_franchise(franchise_id: int) -> Franchise:
    franchise = db.session.query(Franchise).filter_by(id=franchise_id).first()
    if not franchise:
        raise ReportError("Franchise not found")
    return franchise


def _check_year(year: int) -> None:
    if year is None or not 2000 <= year <= 9999:
        raise ReportError("year is out of range")


def _check_month(month: int) -> None:
    if month is None or not 1 <= month <= 12:
        raise ReportError("month must be between 1 and 12")


def _money_dict(data: dict) -> dict:
    return {
        k: quantize_money(v) if k not in ("orders", "quantity") else v
        for k, v in data.items()
    }


def valued_sales(
    franchise_id: int | None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[ValuedSale]:
    """
    Sales in [start, end), oldest first, each valued with the CURRENT fee
    settings of the franchise it belongs to.

    franchise_id=None spans every franchise.
    """
    query = db.session.query(Sale)
    if franchise_id is not None:
        query = query.filter(Sale.franchise_id == franchise_id)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at < end)
    sales = query.order_by(Sale.created_at.asc(), Sale.id.asc()).all()

    settings = get_fee_settings_map({s.franchise_id for s in sales})
    return [value_sale(s, settings[s.franchise_id]) for s in sales]


def period_summary(franchise: Franchise, start: datetime, end: datetime) -> PeriodSummary:
    return PeriodSummary(
        sales=sum_totals(valued_sales(franchise.id, start, end)),
        total_expenditures=total_for_period(franchise.id, start, end),
        profit_sharing_percent=franchise.profit_sharing_percent,
    )


def _summary_row(summary: PeriodSummary) -> dict:
    sales = summary.sales
    return _money_dict({
        "orders": sales.orders,
        "quantity": sales.quantity,
        "total_sales": sales.total_sales,
        "discount_amount": sales.discount_amount,
        "total_sales_after_discount": sales.total_sales_after_discount,
        "total_hpp": sales.total_hpp,
        "total_admin_fee": sales.total_admin_fee,
        "net_profit": sales.net_profit,
        "cost": sales.total_hpp + sales.total_admin_fee,
        "total_expenditures": summary.total_expenditures,
        "revenue_share": summary.revenue_share,
        "real_profit": compute_real_profit(summary.figures()),
    })


def available_years(franchise_id: int | None) -> list[int]:
    """Local calendar years that have sales, plus the current year, newest first."""
    tz_name = _tz()
    query = db.session.query(Sale.created_at)
    if franchise_id is not None:
        query = query.filter(Sale.franchise_id == franchise_id)
    years = {int(period_key(d, PERIOD_YEAR, tz_name)) for (d,) in query.all()}
    years.add(current_month(tz_name)[0])
    return sorted(years, reverse=True)


def financial_report(franchise_id: int, year: int) -> dict:
    """
    Twelve-month financial recap of one franchise.

    Each month row carries net profit, gross sales, cost (hpp + admin fee),
    expenditures, revenue share and real profit. Summary cards compare the
    current local month against the month before it, crossing the year
    boundary in January.
    """
    _check_year(year)
    franchise = _get_franchise(franchise_id)
    tz_name = _tz()

    start, end = year_bounds(year, tz_name)
    year_sales = valued_sales(franchise.id, start, end)
    monthly_sales = totals_by_period(year_sales, PERIOD_MONTH, tz_name)

    monthly_exp: dict[str, object] = {}
    for row in query_expenditures(franchise.id, start, end).all():
        key = period_key(row.expenditure_date, PERIOD_MONTH, tz_name)
        monthly_exp[key] = monthly_exp.get(key, ZERO) + row.amount

    months = []
    for m in range(1, 13):
        key = month_key(year, m)
        summary = PeriodSummary(
            total_expenditures=monthly_exp.get(key, ZERO),
            profit_sharing_percent=franchise.profit_sharing_percent,
        )
        if key in monthly_sales:
            summary.sales = monthly_sales[key]
        row = _summary_row(summary)
        row["month"] = m
        row["month_key"] = key
        months.append(row)

    yearly = PeriodSummary(
        sales=sum_totals(year_sales),
        total_expenditures=sum(monthly_exp.values(), ZERO),
        profit_sharing_percent=franchise.profit_sharing_percent,
    )

    cur_year, cur_month = current_month(tz_name)
    prev_year, prev_month = shift_month(cur_year, cur_month, -1)
    current = _summary_row(period_summary(franchise, *month_bounds(cur_year, cur_month, tz_name)))
    previous = _summary_row(period_summary(franchise, *month_bounds(prev_year, prev_month, tz_name)))

    cards = {}
    for name, metric in (("net_profit", "net_profit"), ("total_sales", "total_sales"), ("cost", "cost")):
        cards[name] = {
            "value": current[metric],
            "previous": previous[metric],
            "percent_change": quantize_pct(percent_change(current[metric], previous[metric])),
        }

    return {
        "franchise_id": franchise.id,
        "year": year,
        "months": months,
        "totals": _summary_row(yearly),
        "summary": {
            "month_key": month_key(cur_year, cur_month),
            "previous_month_key": month_key(prev_year, prev_month),
            "cards": cards,
        },
        "available_years": available_years(franchise.id),
    }


def real_profit_report(franchise_id: int, year: int, month: int | None = None) -> dict:
    """Bottom-line profit of one franchise for a month, or a whole year when month is None."""
    _check_year(year)
    franchise = _get_franchise(franchise_id)
    tz_name = _tz()

    if month is None:
        start, end = year_bounds(year, tz_name)
    else:
        _check_month(month)
        start, end = month_bounds(year, month, tz_name)

    row = _summary_row(period_summary(franchise, start, end))
    row.update({
        "franchise_id": franchise.id,
        "year": year,
        "month": month,
        "profit_sharing_percent": franchise.profit_sharing_percent,
    })
    return row


def admin_dashboard(year: int, top_n: int | None = 5) -> dict:
    """
    Year overview of every active franchise for the super admin.

    Revenue share is taken from gross sales. top_n=None lists every franchise.
    """
    _check_year(year)
    tz_name = _tz()
    start, end = year_bounds(year, tz_name)

    franchises = (
        db.session.query(Franchise)
        .filter(Franchise.is_active.is_(True))
        .order_by(Franchise.name.asc(), Franchise.id.asc())
        .all()
    )
    by_franchise: dict[int, list[ValuedSale]] = {f.id: [] for f in franchises}
    for sale in valued_sales(None, start, end):
        if sale.franchise_id in by_franchise:
            by_franchise[sale.franchise_id].append(sale)

    stats = []
    chart = [{"month": m, "month_key": month_key(year, m), "revenue_share": {}} for m in range(1, 13)]
    for franchise in franchises:
        sales = by_franchise[franchise.id]
        totals = sum_totals(sales)
        stats.append({
            "franchise_id": franchise.id,
            "name": franchise.name,
            "total_sales": quantize_money(totals.total_sales),
            "net_profit": quantize_money(totals.net_profit),
            "profit_sharing_percent": franchise.profit_sharing_percent,
            "revenue_share": quantize_money(
                compute_revenue_share(totals.total_sales, franchise.profit_sharing_percent)
            ),
        })

        monthly = totals_by_period(sales, PERIOD_MONTH, tz_name)
        for point in chart:
            month_totals = monthly.get(point["month_key"])
            gross = month_totals.total_sales if month_totals else ZERO
            point["revenue_share"][franchise.id] = quantize_money(
                compute_revenue_share(gross, franchise.profit_sharing_percent)
            )

    ranked = rank_by_metric(stats, "revenue_share")
    for row in ranked:
        row["contribution_pct"] = quantize_pct(row["contribution_pct"])
    top = ranked if top_n is None else ranked[:max(top_n, 0)]

    cur_year = current_month(tz_name)[0]
    return {
        "year": year,
        "franchises": stats,
        "totals": {
            "total_sales": sum((r["total_sales"] for r in stats), ZERO),
            "net_profit": sum((r["net_profit"] for r in stats), ZERO),
            "revenue_share": sum((r["revenue_share"] for r in stats), ZERO),
            "active_franchises": len(stats),
        },
        "monthly_revenue_share": chart,
        "top_franchises": top,
        "available_years": [cur_year, cur_year - 1, cur_year - 2],
    }


def global_sales_report(year: int, month: int | None = None, franchise_id: int | None = None) -> dict:
    """
    Sales of every franchise for a month (or year), one row per franchise.

    Each sale is valued with its own franchise's settings, never a shared
    default.
    """
    _check_year(year)
    tz_name = _tz()
    if month is None:
        start, end = year_bounds(year, tz_name)
    else:
        _check_month(month)
        start, end = month_bounds(year, month, tz_name)

    sales = valued_sales(franchise_id, start, end)
    grouped: dict[int, list[ValuedSale]] = {}
    for sale in sales:
        grouped.setdefault(sale.franchise_id, []).append(sale)

    franchises = {
        f.id: f
        for f in db.session.query(Franchise).filter(Franchise.id.in_(list(grouped))).all()
    } if grouped else {}

    rows = []
    for fid, items in grouped.items():
        franchise = franchises.get(fid)
        pct = franchise.profit_sharing_percent if franchise else ZERO
        totals = sum_totals(items)
        row = _money_dict(totals.to_dict())
        row.update({
            "franchise_id": fid,
            "franchise_name": franchise.name if franchise else None,
            "profit_sharing_percent": pct,
            "revenue_share": quantize_money(compute_revenue_share(totals.total_sales, pct)),
        })
        rows.append(row)
    rows.sort(key=lambda r: r["total_sales"], reverse=True)

    totals = _money_dict(sum_totals(sales).to_dict())
    totals["revenue_share"] = sum((r["revenue_share"] for r in rows), ZERO)

    return {
        "year": year,
        "month": month,
        "franchise_id": franchise_id,
        "rows": rows,
        "totals": totals,
    }


def _product_rows(franchise_id: int | None, start: datetime, end: datetime, names: dict[int, str]) -> list[dict]:
    query = db.session.query(
        Sale.product_name,
        Sale.product_code,
        Sale.franchise_id,
        db.func.coalesce(db.func.sum(Sale.quantity), 0).label("total_quantity"),
        db.func.coalesce(db.func.sum(Sale.total_sales), 0).label("total_sales"),
    ).filter(Sale.created_at >= start, Sale.created_at < end)
    if franchise_id is not None:
        query = query.filter(Sale.franchise_id == franchise_id)

    rows = query.group_by(Sale.product_name, Sale.product_code, Sale.franchise_id).order_by(
        Sale.product_name.asc(), Sale.product_code.asc(), Sale.franchise_id.asc()
    ).all()
    return [
        {
            "product_name": r.product_name,
            "product_code": r.product_code,
            "franchise_id": r.franchise_id,
            "franchise_name": names.get(r.franchise_id, "Unknown"),
            "total_quantity": int(r.total_quantity or 0),
            "total_sales": quantize_money(r.total_sales or ZERO),
        }
        for r in rows
    ]


def _product_key(row: dict) -> tuple:
    return row["product_name"], row["product_code"], row["franchise_id"]


def product_performance(
    year: int,
    month: int,
    franchise_id: int | None = None,
    search: str | None = None,
    page: int | None = 1,
    per_page: int = 25,
    top_n: int = 10,
) -> dict:
    """
    Best-selling products of a month, ranked by quantity.

    A product is identified by (name, code, franchise) as snapshotted on
    the sale. Each row carries its contribution to total quantity and its
    rank movement against the previous month. The trend covers the twelve
    months ending at the selected month for the five products with the
    highest quantity over that window.
    """
    _check_year(year)
    _check_month(month)
    tz_name = _tz()
    names = {f.id: f.name for f in db.session.query(Franchise).all()}

    start, end = month_bounds(year, month, tz_name)
    prev_year, prev_month = shift_month(year, month, -1)
    prev_start, prev_end = month_bounds(prev_year, prev_month, tz_name)

    ranked = rank_by_metric(_product_rows(franchise_id, start, end, names), "total_quantity")
    previous = rank_by_metric(_product_rows(franchise_id, prev_start, prev_end, names), "total_quantity")
    previous_by_key = {_product_key(r): r for r in previous}

    for row in ranked:
        row["contribution_pct"] = quantize_pct(row["contribution_pct"])
        prev = previous_by_key.get(_product_key(row))
        prev_qty = prev["total_quantity"] if prev else 0
        change = row["total_quantity"] - prev_qty
        row["previous_rank"] = prev["rank"] if prev else None
        row["rank_movement"] = (prev["rank"] - row["rank"]) if prev else None
        row["previous_quantity"] = prev_qty
        row["quantity_change"] = change
        row["quantity_change_pct"] = quantize_pct(percent_change(row["total_quantity"], prev_qty))
        row["trend"] = "up" if change > 0 else "down" if change < 0 else "stable"

    for row in previous:
        row["contribution_pct"] = quantize_pct(row["contribution_pct"])

    trend_start_year, trend_start_month = shift_month(year, month, -11)
    trend_start = month_bounds(trend_start_year, trend_start_month, tz_name)[0]
    trend_query = db.session.query(Sale.product_name, Sale.quantity, Sale.created_at).filter(
        Sale.created_at >= trend_start, Sale.created_at < end
    )
    if franchise_id is not None:
        trend_query = trend_query.filter(Sale.franchise_id == franchise_id)
    trend_sales = trend_query.all()

    product_totals: dict[str, int] = {}
    for name, qty, _ in trend_sales:
        product_totals[name] = product_totals.get(name, 0) + qty
    top_products = [
        name for name, _ in sorted(product_totals.items(), key=lambda item: item[1], reverse=True)[:5]
    ]

    by_month = group_by_period(trend_sales, PERIOD_MONTH, tz_name, date_of=lambda r: r[2])
    trend = []
    for offset in range(11, -1, -1):
        y, m = shift_month(year, month, -offset)
        key = month_key(y, m)
        quantities = {name: 0 for name in top_products}
        for name, qty, _ in by_month.get(key, []):
            if name in quantities:
                quantities[name] += qty
        trend.append({"month_key": key, "quantities": quantities})

    filtered = ranked
    if search and search.strip():
        needle = search.strip().lower()
        filtered = [
            r for r in ranked
            if needle in r["product_name"].lower()
            or needle in r["product_code"].lower()
            or needle in r["franchise_name"].lower()
        ]
    items, pagination = paginate(filtered, page, per_page)

    return {
        "year": year,
        "month": month,
        "franchise_id": franchise_id,
        "items": items,
        "pagination": pagination,
        "top": ranked[:max(top_n, 0)],
        "previous_month": {"month_key": month_key(prev_year, prev_month), "items": previous},
        "trend": {"products": top_products, "months": trend},
        "summary": {
            "top_product": ranked[0] if ranked else None,
            "total_products": len(ranked),
            "total_sold": sum(r["total_quantity"] for r in ranked),
            "total_revenue": sum((r["total_sales"] for r in ranked), ZERO),
        },
    }


def global_expenditures(
    month: str | None = None,
    franchise_id: int | None = None,
    page: int | None = 1,
    per_page: int | None = None,
) -> dict:
    """Expenditures across franchises with per-franchise totals for the filtered period."""
    try:
        start, end = month_range(month)
    except ExpenditureError as e:
        raise ReportError(str(e))

    rows = query_expenditures(franchise_id, start, end).all()
    names = {f.id: f.name for f in db.session.query(Franchise).all()}

    by_franchise: dict[int, object] = {}
    for row in rows:
        by_franchise[row.franchise_id] = by_franchise.get(row.franchise_id, ZERO) + row.amount

    items, pagination = paginate(rows, page, per_page or current_app.config["ITEMS_PER_PAGE"])
    serialized = []
    for row in items:
        data = row.to_dict()
        data["franchise_name"] = names.get(row.franchise_id)
        serialized.append(data)

    return {
        "items": serialized,
        "total": sum((r.amount for r in rows), ZERO),
        "by_franchise": [
            {"franchise_id": fid, "franchise_name": names.get(fid), "total": total}
            for fid, total in sorted(by_franchise.items(), key=lambda item: item[1], reverse=True)
        ],
        "available_months": available_months(franchise_id),
        "pagination": pagination,
    }


def global_products(
    franchise_id: int | None = None,
    search: str | None = None,
    page: int | None = 1,
    per_page: int | None = None,
) -> dict:
    return list_all_products(
        franchise_id=franchise_id,
        search=search,
        page=page,
        per_page=per_page or current_app.config["ITEMS_PER_PAGE"],
    )
