"""
Financial calculation engine tests.

Pure functions, no database: sale rows and settings are plain dicts.
"""

from decimal import Decimal

import pytest
from recap.calculations import (
    FeeSettings,
    PeriodFigures,
    compute_discount_amount,
    compute_real_profit,
    compute_revenue_share,
    compute_sale_derived_fields,
    quantize_money,
    to_decimal,
    value_sale,
)


SETTINGS = {"admin_fee_percent": Decimal("5"), "fixed_deduction": Decimal("1000")}


def _sale(total_sales, total_hpp, discount_type="none", discount_value=0):
    return {
        "total_sales": Decimal(total_sales),
        "total_hpp": Decimal(total_hpp),
        "discount_type": discount_type,
        "discount_value": Decimal(discount_value),
    }


class TestSaleDerivedFields:
    def test_no_discount(self):
        derived = compute_sale_derived_fields(_sale("500000", "300000"), SETTINGS)

        assert derived.discount_amount == 0
        assert derived.total_sales_after_discount == Decimal("500000")
        assert derived.total_admin_fee == Decimal("26000")
        assert derived.net_profit == Decimal("174000")

    def test_percentage_discount(self):
        derived = compute_sale_derived_fields(
            _sale("500000", "300000", "percentage", "10"), SETTINGS
        )

        assert derived.discount_amount == Decimal("50000")
        assert derived.total_sales_after_discount == Decimal("450000")
        assert derived.total_admin_fee == Decimal("23500")
        assert derived.net_profit == Decimal("126500")

    def test_fixed_discount(self):
        derived = compute_sale_derived_fields(
            _sale("500000", "300000", "fixed", "20000"), SETTINGS
        )

        assert derived.discount_amount == Decimal("20000")
        assert derived.total_sales_after_discount == Decimal("480000")
        assert derived.total_admin_fee == Decimal("25000")
        assert derived.net_profit == Decimal("155000")

    def test_fixed_discount_is_clamped_to_sales(self):
        derived = compute_sale_derived_fields(
            _sale("100000", "40000", "fixed", "150000"), SETTINGS
        )

        assert derived.discount_amount == Decimal("100000")
        assert derived.total_sales_after_discount == 0

    def test_percentage_over_100_is_clamped_to_sales(self):
        derived = compute_sale_derived_fields(
            _sale("1000", "0", "percentage", "150"), SETTINGS
        )

        assert derived.discount_amount == Decimal("1000")
        assert derived.total_sales_after_discount == 0
        assert derived.total_admin_fee == Decimal("1000")
        assert derived.net_profit == Decimal("-1000")

    def test_same_inputs_give_same_result(self):
        raw = _sale("275000", "120000", "percentage", "12.5")

        first = compute_sale_derived_fields(raw, SETTINGS)
        second = compute_sale_derived_fields(dict(raw), dict(SETTINGS))

        assert first == second
        assert raw == _sale("275000", "120000", "percentage", "12.5")

    def test_nan_discount_propagates(self):
        derived = compute_sale_derived_fields(
            _sale("1000", "400", "percentage", "NaN"), SETTINGS
        )

        assert derived.discount_amount.is_nan()
        assert derived.net_profit.is_nan()

    def test_fixed_deduction_applies_to_zero_sales(self):
        """Net profit can go negative; it is not an error."""
        derived = compute_sale_derived_fields(
            _sale("100000", "40000", "fixed", "100000"), SETTINGS
        )

        assert derived.total_admin_fee == Decimal("1000")
        assert derived.net_profit == Decimal("-41000")

    def test_unknown_discount_type_means_no_discount(self):
        assert compute_discount_amount(Decimal("1000"), "bogus", 50) == 0

    def test_accepts_fee_settings_object(self):
        fees = FeeSettings(admin_fee_percent=Decimal("0"), fixed_deduction=Decimal("0"))
        derived = compute_sale_derived_fields(_sale("1000", "400"), fees)

        assert derived.net_profit == Decimal("600")

    def test_value_sale_exposes_raw_and_derived(self):
        valued = value_sale(dict(_sale("500000", "300000"), quantity=2), SETTINGS)

        assert valued.quantity == 2
        assert valued.total_sales == Decimal("500000")
        assert valued.net_profit == Decimal("174000")
        data = valued.to_dict()
        assert data["total_admin_fee"] == Decimal("26000")
        assert data["total_hpp"] == Decimal("300000")


class TestRevenueShare:
    def test_taken_from_gross_revenue(self):
        assert compute_revenue_share(Decimal("10000000"), Decimal("10")) == Decimal("1000000")

    def test_zero_percent(self):
        assert compute_revenue_share(Decimal("10000000"), 0) == 0

    def test_accepts_strings_and_none(self):
        assert compute_revenue_share("2500", "20") == Decimal("500")
        assert compute_revenue_share(None, "20") == 0


class TestRealProfit:
    def test_subtracts_every_term(self):
        figures = PeriodFigures(
            total_sales_after_discount=Decimal("450000"),
            total_hpp=Decimal("300000"),
            total_admin_fee=Decimal("23500"),
            total_expenditures=Decimal("50000"),
            revenue_share=Decimal("50000"),
        )

        assert compute_real_profit(figures) == Decimal("26500")

    def test_accepts_mapping(self):
        assert compute_real_profit({"total_sales_after_discount": 100}) == Decimal("100")


class TestConversions:
    @pytest.mark.parametrize("value, expected", [
        (None, Decimal("0")),
        (3, Decimal("3")),
        (0.1, Decimal("0.1")),
        ("12.50", Decimal("12.50")),
        (True, Decimal("1")),
    ])
    def test_to_decimal(self, value, expected):
        assert to_decimal(value) == expected

    def test_quantize_money_rounds_half_up(self):
        assert quantize_money(Decimal("1.005")) == Decimal("1.01")
        assert quantize_money(Decimal("1.004")) == Decimal("1.00")
