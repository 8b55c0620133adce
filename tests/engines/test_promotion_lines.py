"""
Tests for promotion line building and free-quantity reconciliation.

Covers:
- Slab claim: paid line + offer line, locked and tagged
- Combo claim: purchase lines then benefit lines
- Offer lines at nominal price with no discount
- Reconciliation after the paid quantity changes
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from order_engines.promotion import (
    Promotion,
    PromotionRequirement,
    PromotionSlab,
    PromotionType,
    RequirementType,
)
from order_engines.promotion_lines import build_promotion_lines, reconcile_promotion_lines
from order_engines.types import TaxRates
from order_kernel.domain.values import Money
from order_kernel.exceptions import PromotionProductMissingError


def _inr(amount: str) -> Money:
    return Money.of(amount, "INR")


@pytest.fixture
def slab_promotion() -> Promotion:
    return Promotion(
        promotion_id="PROMO-1",
        code="BUY10GET2",
        promotion_type=PromotionType.SLAB,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        product_id="SKU-1",
        slabs=(PromotionSlab(10, 2), PromotionSlab(50, 12)),
    )


@pytest.fixture
def combo_promotion() -> Promotion:
    return Promotion(
        promotion_id="PROMO-2",
        code="COMBO",
        promotion_type=PromotionType.COMBO,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        requirements=(
            PromotionRequirement("SKU-GIFT", RequirementType.BENEFIT, 2),
            PromotionRequirement("SKU-1", RequirementType.PURCHASE, 5),
            PromotionRequirement("SKU-2", RequirementType.PURCHASE, 0),
        ),
    )


@pytest.fixture
def products(make_product):
    return {
        "SKU-1": make_product("SKU-1", price="100", prepaid="5", credit="10"),
        "SKU-2": make_product("SKU-2", price="40"),
        "SKU-GIFT": make_product("SKU-GIFT", price="75"),
    }


class TestBuildSlabPromotionLines:
    def test_paid_and_offer_lines(self, slab_promotion, products, intra_credit_context, params):
        paid, offer = build_promotion_lines(
            slab_promotion, products, 60, intra_credit_context, params
        )

        assert paid.quantity == 60
        assert paid.claimed_free_quantity == 14
        assert paid.is_offer_item is False
        assert offer.quantity == 14
        assert offer.is_offer_item is True
        for line in (paid, offer):
            assert line.is_locked
            assert line.promotion_id == "PROMO-1"
            assert line.promotion_code == "BUY10GET2"
            assert line.is_calculated

    def test_paid_line_priced_with_selected_discount(
        self, slab_promotion, products, intra_credit_context, params
    ):
        paid, _ = build_promotion_lines(
            slab_promotion, products, 10, intra_credit_context, params
        )
        # CREDIT selects the prepaid rate (5%)
        assert paid.discount_rate == Decimal("5")
        assert paid.tax_rates == TaxRates.split("9", "9")
        assert paid.amounts.taxable_amount == _inr("950")

    def test_offer_line_at_nominal_price(
        self, slab_promotion, products, inter_advance_context, params
    ):
        _, offer = build_promotion_lines(
            slab_promotion, products, 10, inter_advance_context, params
        )
        assert offer.unit_price == _inr("0.01")
        assert offer.discount_rate == Decimal("0")
        assert offer.tax_rates == TaxRates.single("18")
        assert offer.amounts.taxable_amount == _inr("0.02")
        assert offer.amounts.integrated_amount.amount == Decimal("0.0036")

    def test_no_entitlement_builds_paid_line_only(
        self, slab_promotion, products, intra_credit_context, params
    ):
        lines = build_promotion_lines(slab_promotion, products, 9, intra_credit_context, params)
        assert len(lines) == 1
        assert lines[0].claimed_free_quantity == 0

    def test_missing_product_raises(self, slab_promotion, intra_credit_context, params):
        with pytest.raises(PromotionProductMissingError) as exc_info:
            build_promotion_lines(slab_promotion, {}, 10, intra_credit_context, params)
        assert exc_info.value.product_id == "SKU-1"


class TestBuildComboPromotionLines:
    def test_purchase_lines_before_benefit_lines(
        self, combo_promotion, products, intra_credit_context, params
    ):
        lines = build_promotion_lines(combo_promotion, products, 1, intra_credit_context, params)

        assert [line.product_id for line in lines] == ["SKU-1", "SKU-2", "SKU-GIFT"]
        assert [line.is_offer_item for line in lines] == [False, False, True]

    def test_requirement_quantities(self, combo_promotion, products, intra_credit_context, params):
        lines = build_promotion_lines(combo_promotion, products, 1, intra_credit_context, params)
        # A zero required quantity is treated as one unit
        assert [line.quantity for line in lines] == [5, 1, 2]

    def test_benefit_line_is_free(self, combo_promotion, products, intra_credit_context, params):
        gift = build_promotion_lines(
            combo_promotion, products, 1, intra_credit_context, params
        )[-1]
        assert gift.unit_price == _inr("0.01")
        assert gift.discount_rate == Decimal("0")

    def test_missing_product_skipped(
        self, combo_promotion, products, intra_credit_context, params, captured_logs
    ):
        del products["SKU-2"]
        lines = build_promotion_lines(combo_promotion, products, 1, intra_credit_context, params)

        assert [line.product_id for line in lines] == ["SKU-1", "SKU-GIFT"]
        assert any(
            r["message"] == "combo_requirement_product_missing" for r in captured_logs()
        )


class TestReconcilePromotionLines:
    @pytest.fixture
    def order(self, slab_promotion, products, intra_credit_context, params, make_line):
        other = make_line("SKU-OTHER", quantity=3)
        promo_lines = build_promotion_lines(
            slab_promotion, products, 60, intra_credit_context, params
        )
        return (other, *promo_lines)

    def _with_paid_quantity(self, order, quantity):
        return (order[0], replace(order[1], quantity=quantity), *order[2:])

    def test_unchanged_order_returned_as_is(
        self, order, slab_promotion, intra_credit_context, params
    ):
        assert reconcile_promotion_lines(order, slab_promotion, intra_credit_context, params) == order

    def test_quantity_increase_grows_offer(
        self, order, slab_promotion, intra_credit_context, params
    ):
        edited = self._with_paid_quantity(order, 120)
        other, paid, offer = reconcile_promotion_lines(
            edited, slab_promotion, intra_credit_context, params
        )

        assert other == order[0]
        assert paid.claimed_free_quantity == 28
        assert offer.quantity == 28
        assert offer.amounts.taxable_amount == _inr("0.28")

    def test_zero_entitlement_removes_offer(
        self, order, slab_promotion, intra_credit_context, params
    ):
        edited = self._with_paid_quantity(order, 5)
        result = reconcile_promotion_lines(edited, slab_promotion, intra_credit_context, params)

        assert len(result) == 2
        assert result[1].claimed_free_quantity == 0
        assert not any(line.is_offer_item for line in result)

    def test_entitlement_restored_recreates_offer(
        self, order, slab_promotion, intra_credit_context, params
    ):
        shrunk = reconcile_promotion_lines(
            self._with_paid_quantity(order, 5), slab_promotion, intra_credit_context, params
        )
        regrown = (shrunk[0], replace(shrunk[1], quantity=20))
        result = reconcile_promotion_lines(regrown, slab_promotion, intra_credit_context, params)

        assert len(result) == 3
        offer = result[2]
        assert offer.is_offer_item
        assert offer.quantity == 4
        assert offer.unit_price == _inr("0.01")
        assert offer.claimed_free_quantity == 0
        assert offer.is_calculated

    def test_combo_promotion_untouched(
        self, combo_promotion, products, intra_credit_context, params
    ):
        lines = build_promotion_lines(combo_promotion, products, 1, intra_credit_context, params)
        assert (
            reconcile_promotion_lines(lines, combo_promotion, intra_credit_context, params)
            == lines
        )

    def test_order_without_promotion_untouched(
        self, slab_promotion, intra_credit_context, params, make_line
    ):
        lines = (make_line("SKU-A"), make_line("SKU-B"))
        assert (
            reconcile_promotion_lines(lines, slab_promotion, intra_credit_context, params)
            == lines
        )
