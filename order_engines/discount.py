"""Discount Rate Selector -- picks the negotiated discount for a payment method."""

from __future__ import annotations

from decimal import Decimal

from order_engines.types import PaymentMethod


def select_discount_rate(
    payment_method: PaymentMethod,
    prepaid_rate: Decimal,
    credit_rate: Decimal,
) -> Decimal:
    """
    Select the active discount percentage for a line.

    ADVANCE selects the credit rate on file; every other method selects
    the prepaid rate. The cross-mapping is what billing relies on today
    and is kept as is until product owners confirm the intent.

    Args:
        payment_method: The order's payment method.
        prepaid_rate: The product's prepaid discount on file.
        credit_rate: The product's credit discount on file.

    Returns:
        The discount percentage to apply to the line.
    """
    if payment_method == PaymentMethod.ADVANCE:
        return credit_rate
    return prepaid_rate
