"""Expenditure log: CRUD, month filtering in local time and totals."""

from datetime import datetime
from decimal import Decimal

import pytest
from recap.services.expenditure_service import (
    ExpenditureError,
    available_months,
    create_expenditure,
    delete_expenditure,
    list_expenditures,
    total_for_period,
    update_expenditure,
)
from recap.services.tenant_service import TenantAccessError
from recap.time_utils import month_bounds


class TestCrud:
    def test_create_defaults_date_to_now(self, db_session, franchise_a):
        row = create_expenditure(franchise_a.id, Decimal("15000"), "  Plastik  ")

        assert row.description == "Plastik"
        assert row.expenditure_date is not None

    @pytest.mark.parametrize("amount, description", [
        (Decimal("0"), "x"),
        (Decimal("-1"), "x"),
        (None, "x"),
        (Decimal("1"), "   "),
    ])
    def test_rejects_bad_input(self, db_session, franchise_a, amount, description):
        with pytest.raises(ExpenditureError):
            create_expenditure(franchise_a.id, amount, description)

    def test_update_and_delete(self, db_session, franchise_a):
        row = create_expenditure(franchise_a.id, Decimal("15000"), "Plastik")

        updated = update_expenditure(franchise_a.id, row.id, {"amount": Decimal("20000")})
        assert updated.amount == Decimal("20000")

        with pytest.raises(ExpenditureError):
            update_expenditure(franchise_a.id, row.id, {"amount": Decimal("0")})

        delete_expenditure(franchise_a.id, row.id)
        assert list_expenditures(franchise_a.id, month="all")["items"] == []

    def test_cross_tenant(self, db_session, franchise_a, franchise_b):
        row = create_expenditure(franchise_b.id, Decimal("15000"), "Plastik")

        with pytest.raises(TenantAccessError):
            update_expenditure(franchise_a.id, row.id, {"amount": Decimal("1")})
        with pytest.raises(TenantAccessError):
            delete_expenditure(franchise_a.id, row.id)


class TestListing:
    def test_month_filter_and_total(self, db_session, franchise_a, franchise_b):
        create_expenditure(franchise_a.id, Decimal("50000"), "Sewa", datetime(2026, 3, 5, 3, 0))
        # 2026-03-31 18:00 UTC is April 1 locally
        create_expenditure(franchise_a.id, Decimal("10000"), "Plastik", datetime(2026, 3, 31, 18, 0))
        create_expenditure(franchise_b.id, Decimal("99999"), "Lain", datetime(2026, 3, 5, 3, 0))

        march = list_expenditures(franchise_a.id, month="2026-03")

        assert [e["description"] for e in march["items"]] == ["Sewa"]
        assert march["total"] == Decimal("50000")
        assert march["available_months"] == ["2026-04", "2026-03"]

    def test_total_spans_pages(self, db_session, franchise_a):
        for i in range(3):
            create_expenditure(franchise_a.id, Decimal("1000"), f"Item {i}", datetime(2026, 3, 5 + i, 3, 0))

        page = list_expenditures(franchise_a.id, month="2026-03", page=1, per_page=2)

        assert len(page["items"]) == 2
        assert page["total"] == Decimal("3000")
        assert page["items"][0]["description"] == "Item 2"

    def test_bad_month(self, db_session, franchise_a):
        with pytest.raises(ExpenditureError):
            list_expenditures(franchise_a.id, month="2026-00")

    def test_total_for_period_all_franchises(self, db_session, franchise_a, franchise_b):
        create_expenditure(franchise_a.id, Decimal("100"), "A", datetime(2026, 3, 5, 3, 0))
        create_expenditure(franchise_b.id, Decimal("200"), "B", datetime(2026, 3, 5, 3, 0))

        start, end = month_bounds(2026, 3, "Asia/Jakarta")

        assert total_for_period(None, start, end) == Decimal("300")
        assert total_for_period(franchise_a.id, start, end) == Decimal("100")
        assert available_months(None) == ["2026-03"]
