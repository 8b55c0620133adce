"""
Line Item Calculator - Derive the monetary fields of one order line.

Pure functions with no I/O. Arithmetic is Decimal at full precision so
that recalculating a line with unchanged inputs is bit-identical; the
engine never rounds (presentation calls ``Money.round()``).

Algorithm:
    subtotal        = unit_price * quantity
    discount_amount = subtotal * discount_rate / 100
    taxable_amount  = subtotal - discount_amount
    SPLIT:      local_a = taxable * rate_a / 100, local_b = taxable * rate_b / 100
    INTEGRATED: integrated = taxable * integrated_rate / 100
    tax_amount      = local_a + local_b + integrated
    line_total      = taxable_amount + tax_amount

Usage:
    from decimal import Decimal
    from order_engines.line_item import calculate_line
    from order_engines.types import OrderLine, TaxChannel, TaxRates
    from order_kernel.domain.values import Money

    line = OrderLine(
        product_id="SKU-1",
        unit_price=Money.of("100", "INR"),
        quantity=10,
        discount_rate=Decimal("10"),
        tax_rates=TaxRates.split("9", "9"),
    )
    priced = calculate_line(line, TaxChannel.SPLIT)
    print(priced.amounts.line_total)  # 1062 INR
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from order_engines.types import LineAmounts, OrderLine, TaxChannel, TaxRates
from order_kernel.domain.values import Money
from order_kernel.logging_config import get_logger

logger = get_logger("engines.line_item")

_HUNDRED = Decimal("100")


def _percent_of(amount: Money, rate: Decimal) -> Money:
    return amount * rate / _HUNDRED


def compute_line_amounts(
    unit_price: Money,
    quantity: int,
    discount_rate: Decimal,
    tax_rates: TaxRates,
    tax_channel: TaxChannel,
) -> LineAmounts:
    """
    Compute the derived fields for one line's inputs.

    Args:
        unit_price: Price of one unit.
        quantity: Units ordered.
        discount_rate: Discount percentage applied to the subtotal.
        tax_rates: The line's tax percentages per component.
        tax_channel: Which components apply.

    Returns:
        LineAmounts at full Decimal precision.
    """
    zero = Money.zero(unit_price.currency)

    subtotal = unit_price * quantity
    discount_amount = _percent_of(subtotal, discount_rate)
    taxable_amount = subtotal - discount_amount

    if tax_channel == TaxChannel.SPLIT:
        local_a_amount = _percent_of(taxable_amount, tax_rates.local_a)
        local_b_amount = _percent_of(taxable_amount, tax_rates.local_b)
        integrated_amount = zero
    else:
        local_a_amount = zero
        local_b_amount = zero
        integrated_amount = _percent_of(taxable_amount, tax_rates.integrated)

    tax_amount = local_a_amount + local_b_amount + integrated_amount

    return LineAmounts(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        local_a_amount=local_a_amount,
        local_b_amount=local_b_amount,
        integrated_amount=integrated_amount,
        tax_amount=tax_amount,
        line_total=taxable_amount + tax_amount,
    )


def calculate_line(line: OrderLine, tax_channel: TaxChannel) -> OrderLine:
    """
    Return a copy of ``line`` with its derived amounts computed.

    The input line is not modified. Calling this again on the result with
    the same channel yields an equal line.

    ``line.tax_rates`` must carry rates for ``tax_channel``; a component
    without a rate is taxed at zero.  ``channel_rates`` gives the rates
    for a channel.
    """
    amounts = compute_line_amounts(
        unit_price=line.unit_price,
        quantity=line.quantity,
        discount_rate=line.discount_rate,
        tax_rates=line.tax_rates,
        tax_channel=tax_channel,
    )
    logger.debug("line_calculated", extra={
        "product_id": line.product_id,
        "quantity": line.quantity,
        "discount_rate": str(line.discount_rate),
        "tax_channel": tax_channel.value,
        "taxable_amount": str(amounts.taxable_amount.amount),
        "line_total": str(amounts.line_total.amount),
    })
    return replace(line, amounts=amounts)
