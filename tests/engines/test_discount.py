"""Tests for the Discount Rate Selector and payment method parsing."""

from decimal import Decimal

import pytest

from order_engines.discount import select_discount_rate
from order_engines.types import PaymentMethod

PREPAID = Decimal("5")
CREDIT = Decimal("10")


class TestSelectDiscountRate:
    def test_advance_selects_credit_rate(self):
        # Billing today applies the credit discount to advance orders
        assert select_discount_rate(PaymentMethod.ADVANCE, PREPAID, CREDIT) == CREDIT

    def test_credit_selects_prepaid_rate(self):
        assert select_discount_rate(PaymentMethod.CREDIT, PREPAID, CREDIT) == PREPAID

    def test_equal_rates(self):
        assert select_discount_rate(PaymentMethod.CREDIT, CREDIT, CREDIT) == CREDIT


class TestPaymentMethodLabels:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Advance", PaymentMethod.ADVANCE),
            ("  credit ", PaymentMethod.CREDIT),
            ("CREDIT", PaymentMethod.CREDIT),
        ],
    )
    def test_from_label(self, label, expected):
        assert PaymentMethod.from_label(label) == expected

    @pytest.mark.parametrize("label", ["", "cheque", None])
    def test_unknown_label_rejected(self, label):
        with pytest.raises(ValueError, match="Unknown payment method"):
            PaymentMethod.from_label(label)
