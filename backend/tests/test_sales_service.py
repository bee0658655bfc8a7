"""
Sales service tests.

Covers snapshotting, derived-field valuation with the franchise's current
settings, day grouping in the display timezone, and tenant scoping.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from recap.models import Product, Sale
from recap.services.products_service import delete_product, update_product
from recap.services.sales_service import (
    SaleError,
    delete_sale,
    get_sale,
    list_sales,
    month_options,
    record_sale,
    sales_page,
    update_sale,
)
from recap.services.settings_service import update_admin_settings
from recap.services.tenant_service import TenantAccessError


MARCH_10 = datetime(2026, 3, 10, 3, 0)  # 10:00 local


class TestRecordSale:
    def test_totals_and_derived_fields(self, db_session, franchise_a, product_a):
        valued = record_sale(franchise_a.id, product_a.id, 2, created_at=MARCH_10)

        assert valued.total_sales == Decimal("500000")
        assert valued.total_hpp == Decimal("300000")
        assert valued.total_admin_fee == Decimal("26000")
        assert valued.net_profit == Decimal("174000")

    def test_percentage_discount(self, db_session, franchise_a, product_a):
        valued = record_sale(
            franchise_a.id, product_a.id, 2,
            discount_type="percentage", discount_value=Decimal("10"),
            created_at=MARCH_10,
        )

        assert valued.discount_amount == Decimal("50000")
        assert valued.total_sales_after_discount == Decimal("450000")
        assert valued.total_admin_fee == Decimal("23500")
        assert valued.net_profit == Decimal("126500")

    def test_snapshot_fields(self, db_session, franchise_a, product_a):
        valued = record_sale(franchise_a.id, product_a.id, 1)
        sale = valued.sale

        assert sale.product_name == "Kopi Susu"
        assert sale.product_code == "KS-001"
        assert sale.price_per_unit == Decimal("250000")
        assert sale.hpp_per_unit == Decimal("150000")
        assert sale.created_at is not None

    @pytest.mark.parametrize("quantity", [0, -1, None])
    def test_rejects_non_positive_quantity(self, db_session, franchise_a, product_a, quantity):
        with pytest.raises(SaleError):
            record_sale(franchise_a.id, product_a.id, quantity)

    def test_rejects_bad_discount(self, db_session, franchise_a, product_a):
        with pytest.raises(SaleError):
            record_sale(franchise_a.id, product_a.id, 1, discount_type="coupon", discount_value=1)
        with pytest.raises(SaleError):
            record_sale(franchise_a.id, product_a.id, 1, discount_type="percentage", discount_value=120)

    def test_foreign_product_is_not_found(self, db_session, franchise_a, product_b):
        with pytest.raises(TenantAccessError):
            record_sale(franchise_a.id, product_b.id, 1)
        assert db_session.query(Sale).count() == 0


class TestSnapshotsSurviveCatalogChanges:
    def test_price_change_does_not_touch_old_sales(self, db_session, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 2, created_at=MARCH_10).sale.id

        update_product(
            franchise_id=franchise_a.id,
            product_id=product_a.id,
            patch={"price": Decimal("300000")},
        )

        valued = get_sale(franchise_a.id, sale_id)
        assert valued.total_sales == Decimal("500000")
        assert valued.sale.price_per_unit == Decimal("250000")

    def test_product_delete_keeps_sale(self, db_session, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 2, created_at=MARCH_10).sale.id

        delete_product(franchise_id=franchise_a.id, product_id=product_a.id)

        assert db_session.query(Product).count() == 0
        valued = get_sale(franchise_a.id, sale_id)
        assert valued.sale.product_id is None
        assert valued.sale.product_name == "Kopi Susu"
        assert valued.net_profit == Decimal("174000")


class TestSettingsRevalueHistory:
    def test_settings_change_applies_to_past_sales(self, db_session, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 2, created_at=MARCH_10).sale.id
        assert get_sale(franchise_a.id, sale_id).net_profit == Decimal("174000")

        update_admin_settings(
            franchise_a.id,
            {"admin_fee_percent": Decimal("10"), "fixed_deduction": Decimal("0")},
        )

        valued = get_sale(franchise_a.id, sale_id)
        assert valued.total_admin_fee == Decimal("50000")
        assert valued.net_profit == Decimal("150000")

    def test_other_franchise_unaffected(self, db_session, franchise_a, franchise_b, product_a, product_b):
        record_sale(franchise_b.id, product_b.id, 1, created_at=MARCH_10)

        update_admin_settings(franchise_a.id, {"admin_fee_percent": Decimal("50")})

        valued = list_sales(franchise_b.id)[0]
        # 100000 - 40000 - (5% of 100000 + 1000)
        assert valued.net_profit == Decimal("54000")


class TestUpdateAndDelete:
    def test_update_recomputes_from_snapshot(self, db_session, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 1, created_at=MARCH_10).sale.id
        update_product(
            franchise_id=franchise_a.id,
            product_id=product_a.id,
            patch={"price": Decimal("999999")},
        )

        valued = update_sale(franchise_a.id, sale_id, {"quantity": 3, "discount_type": "fixed",
                                                       "discount_value": Decimal("50000")})

        assert valued.total_sales == Decimal("750000")
        assert valued.total_hpp == Decimal("450000")
        assert valued.discount_amount == Decimal("50000")

    def test_update_rejects_zero_quantity(self, db_session, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 1).sale.id
        with pytest.raises(SaleError):
            update_sale(franchise_a.id, sale_id, {"quantity": 0})

    def test_cross_tenant_update_and_delete(self, db_session, franchise_a, franchise_b, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 1).sale.id

        with pytest.raises(TenantAccessError):
            update_sale(franchise_b.id, sale_id, {"quantity": 5})
        with pytest.raises(TenantAccessError):
            delete_sale(franchise_b.id, sale_id)

        delete_sale(franchise_a.id, sale_id)
        assert db_session.query(Sale).count() == 0


class TestSalesPage:
    def _seed(self, franchise, product):
        for hour in (3, 4, 5):
            record_sale(franchise.id, product.id, 1, created_at=datetime(2026, 3, 10, hour, 0))
        # 2026-03-09 23:30 local
        record_sale(franchise.id, product.id, 1, created_at=datetime(2026, 3, 9, 16, 30))

    def test_day_groups_carry_whole_day_totals(self, db_session, franchise_a, product_a):
        self._seed(franchise_a, product_a)

        page = sales_page(franchise_a.id, month="2026-03", page=1, per_page=2)

        assert [s["created_at"] for s in page["items"]] == [
            "2026-03-10T05:00:00Z",
            "2026-03-10T04:00:00Z",
        ]
        assert len(page["groups"]) == 1
        group = page["groups"][0]
        assert group["date"] == "2026-03-10"
        assert len(group["sales"]) == 2
        assert group["totals"]["orders"] == 3
        assert group["totals"]["total_sales"] == Decimal("750000")
        assert page["totals"]["orders"] == 4
        assert page["pagination"]["total_pages"] == 2

    def test_second_page(self, db_session, franchise_a, product_a):
        self._seed(franchise_a, product_a)

        page = sales_page(franchise_a.id, month="2026-03", page=2, per_page=2)

        assert [g["date"] for g in page["groups"]] == ["2026-03-10", "2026-03-09"]
        assert page["groups"][1]["totals"]["orders"] == 1

    def test_month_filter_uses_local_boundaries(self, db_session, franchise_a, product_a):
        # 2026-03-31 18:00 UTC is already April 1 locally
        record_sale(franchise_a.id, product_a.id, 1, created_at=datetime(2026, 3, 31, 18, 0))

        assert sales_page(franchise_a.id, month="2026-03")["items"] == []
        assert len(sales_page(franchise_a.id, month="2026-04")["items"]) == 1
        assert len(sales_page(franchise_a.id, month="all")["items"]) == 1

    def test_bad_month(self, db_session, franchise_a):
        with pytest.raises(SaleError):
            sales_page(franchise_a.id, month="2026-13")

    def test_scoped_to_franchise(self, db_session, franchise_a, franchise_b, product_a, product_b):
        record_sale(franchise_a.id, product_a.id, 1, created_at=MARCH_10)
        record_sale(franchise_b.id, product_b.id, 1, created_at=MARCH_10)

        page = sales_page(franchise_b.id, month="all")
        assert [s["franchise_id"] for s in page["items"]] == [franchise_b.id]

    def test_default_month_is_current(self, db_session, franchise_a, product_a):
        record_sale(franchise_a.id, product_a.id, 1)

        page = sales_page(franchise_a.id)
        assert page["month"] == month_options(1)[0]["value"]
        assert len(page["items"]) == 1


def test_month_options(app, db_session):
    options = month_options(12)

    assert len(options) == 12
    assert options[0]["value"] > options[-1]["value"]
    year, month = (int(p) for p in options[0]["value"].split("-"))
    assert options[0]["label"].endswith(str(year))
