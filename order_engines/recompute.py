"""
Module: order_engines.recompute
Responsibility:
    The order recompute pass.  Whenever the payment method or delivery
    address changes, every line's discount rate, tax rates and amounts are
    stale; this pass re-derives them all from the order context and
    returns a new line list.  ``price_order`` chains the pass with
    aggregation and validation for callers that want one call per change.

Architecture position:
    Engines -- pure orchestration over the other engines, zero I/O.

Invariants enforced:
    - Input lines are never mutated; a new tuple is returned.
    - Idempotent: recomputing an already recomputed order with the same
      context yields equal lines.
    - Order of derivation: tax channel and discount first, then amounts.
    - Offer lines keep a zero discount whatever the payment method.

Failure modes:
    - CurrencyMismatchError from aggregation when a line's currency is not
      the pricing currency.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from order_engines.discount import select_discount_rate
from order_engines.jurisdiction import channel_rates, resolve_tax_channel
from order_engines.line_item import calculate_line
from order_engines.totals import OrderTotals, aggregate
from order_engines.tracer import traced_engine
from order_engines.types import (
    DistributorCreditProfile,
    OrderContext,
    OrderLine,
    PricingParameters,
    TaxChannel,
)
from order_engines.validation import OrderValidationResult, validate_order
from order_kernel.logging_config import bind_order_scope, get_logger

logger = get_logger("engines.recompute")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class PricedOrder:
    """Result of one full pricing pass over an order."""

    lines: tuple[OrderLine, ...]
    totals: OrderTotals
    tax_channel: TaxChannel
    validation: OrderValidationResult

    @property
    def can_proceed(self) -> bool:
        return self.validation.can_proceed


@traced_engine("recompute", "1.0", fingerprint_fields=("context",))
def recompute_order(
    lines: Sequence[OrderLine],
    context: OrderContext,
    params: PricingParameters,
) -> tuple[OrderLine, ...]:
    """
    Re-derive discount, tax rates and amounts of every line.

    Args:
        lines: Current order lines, calculated or not.
        context: Payment method and jurisdictions to price under.
        params: Pricing parameters supplying the channel rate split.

    Returns:
        New tuple of calculated lines in the same order.
    """
    channel = resolve_tax_channel(
        context.seller_jurisdiction, context.delivery_jurisdiction
    )
    rates = channel_rates(channel, params)

    recomputed = []
    for line in lines:
        if line.is_offer_item:
            discount_rate = _ZERO
        else:
            discount_rate = select_discount_rate(
                context.payment_method,
                line.prepaid_discount_rate,
                line.credit_discount_rate,
            )
        recomputed.append(
            calculate_line(
                replace(line, discount_rate=discount_rate, tax_rates=rates),
                channel,
            )
        )

    logger.info("order_recomputed", extra={
        "line_count": len(recomputed),
        "payment_method": context.payment_method.value,
        "tax_channel": channel.value,
    })
    return tuple(recomputed)


def price_order(
    lines: Sequence[OrderLine],
    context: OrderContext,
    credit_profile: DistributorCreditProfile,
    params: PricingParameters,
    *,
    order_id: str | None = None,
    distributor_id: str | None = None,
) -> PricedOrder:
    """
    Recompute, aggregate and validate an order in one pass.

    The net amount of the totals is the order total the credit rule sees.
    ``order_id`` and ``distributor_id`` are stamped on every log record
    the pass emits.
    """
    with bind_order_scope(order_id=order_id, distributor_id=distributor_id):
        recomputed = recompute_order(lines, context, params)
        totals = aggregate(recomputed, currency=params.currency)
        validation = validate_order(
            credit_profile, recomputed, totals.net_amount, context.payment_method
        )
        priced = PricedOrder(
            lines=recomputed,
            totals=totals,
            tax_channel=resolve_tax_channel(
                context.seller_jurisdiction, context.delivery_jurisdiction
            ),
            validation=validation,
        )
        logger.info("order_priced", extra={
            "net_amount": totals.net_amount,
            "outcome": validation.outcome,
        })
    return priced
