"""
Module: order_engines.totals
Responsibility:
    Roll calculated order lines up into order-level totals: quantity,
    subtotal, discount, taxable amount, each tax component, total tax and
    net amount.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - net_amount == sum(taxable_amount) + sum(tax_amount).
    - Order-insensitive: every total is a plain sum, so permuting the
      lines never changes the result.
    - Each line is counted exactly once.
    - Currency consistency across all lines.

Failure modes:
    - UncalculatedLineError when a line has not been through the
      calculator.
    - CurrencyMismatchError when lines (or the requested currency) differ.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from order_engines.tracer import traced_engine
from order_engines.types import DEFAULT_CURRENCY, OrderLine
from order_kernel.domain.values import Currency, Money
from order_kernel.exceptions import CurrencyMismatchError, UncalculatedLineError
from order_kernel.logging_config import get_logger

logger = get_logger("engines.totals")


@dataclass(frozen=True)
class OrderTotals:
    """
    Order-level sums over calculated lines.

    Contract:
        Frozen dataclass produced by ``aggregate``.
    Guarantees:
        - ``net_amount == taxable_amount + tax_amount``.
        - ``tax_amount == local_a_amount + local_b_amount + integrated_amount``.
    """

    line_count: int
    total_quantity: int
    subtotal: Money
    discount_amount: Money
    taxable_amount: Money
    local_a_amount: Money
    local_b_amount: Money
    integrated_amount: Money
    tax_amount: Money
    net_amount: Money

    @classmethod
    def zero(cls, currency: str | Currency) -> OrderTotals:
        zero = Money.zero(currency)
        return cls(
            line_count=0,
            total_quantity=0,
            subtotal=zero,
            discount_amount=zero,
            taxable_amount=zero,
            local_a_amount=zero,
            local_b_amount=zero,
            integrated_amount=zero,
            tax_amount=zero,
            net_amount=zero,
        )

    @property
    def currency(self) -> Currency:
        return self.net_amount.currency


@traced_engine("totals", "1.0", fingerprint_fields=("currency",))
def aggregate(
    lines: Sequence[OrderLine],
    currency: str | Currency | None = None,
) -> OrderTotals:
    """
    Sum calculated lines into order totals.

    Args:
        lines: Calculated order lines.
        currency: Currency of the result. Defaults to the first line's
            currency, or the default billing currency for an empty order.

    Returns:
        OrderTotals; all zero for an empty order.
    """
    if currency is None:
        currency = lines[0].currency if lines else Currency(DEFAULT_CURRENCY)
    elif isinstance(currency, str):
        currency = Currency(currency)

    totals = OrderTotals.zero(currency)
    if not lines:
        logger.debug("order_totals_empty", extra={"currency": currency.code})
        return totals

    total_quantity = 0
    subtotal = totals.subtotal
    discount_amount = totals.discount_amount
    taxable_amount = totals.taxable_amount
    local_a_amount = totals.local_a_amount
    local_b_amount = totals.local_b_amount
    integrated_amount = totals.integrated_amount
    tax_amount = totals.tax_amount

    for index, line in enumerate(lines):
        if line.amounts is None:
            raise UncalculatedLineError(line.product_id, index)
        if line.currency != currency:
            raise CurrencyMismatchError(currency.code, line.currency.code, "aggregate")

        amounts = line.amounts
        total_quantity += line.quantity
        subtotal += amounts.subtotal
        discount_amount += amounts.discount_amount
        taxable_amount += amounts.taxable_amount
        local_a_amount += amounts.local_a_amount
        local_b_amount += amounts.local_b_amount
        integrated_amount += amounts.integrated_amount
        tax_amount += amounts.tax_amount

    result = OrderTotals(
        line_count=len(lines),
        total_quantity=total_quantity,
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        local_a_amount=local_a_amount,
        local_b_amount=local_b_amount,
        integrated_amount=integrated_amount,
        tax_amount=tax_amount,
        net_amount=taxable_amount + tax_amount,
    )

    logger.info("order_totals_aggregated", extra={
        "line_count": result.line_count,
        "total_quantity": result.total_quantity,
        "taxable_amount": str(result.taxable_amount.amount),
        "tax_amount": str(result.tax_amount.amount),
        "net_amount": str(result.net_amount.amount),
        "currency": currency.code,
    })
    return result
