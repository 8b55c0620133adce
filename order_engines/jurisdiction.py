"""
Tax Jurisdiction Resolver (``order_engines.jurisdiction``).

Decides whether an order is intra-jurisdiction (SPLIT channel: two
co-equal local components) or inter-jurisdiction (INTEGRATED channel:
one combined component) from the seller's and the delivery address's
jurisdiction tags, and hands out the rate split for a channel.

Pure functions with no I/O. The tax channel depends on the two
jurisdiction tags only, never on any line.

Usage:
    from order_engines.jurisdiction import resolve_tax_channel

    resolve_tax_channel("Maharashtra", " maharashtra ")  # TaxChannel.SPLIT
    resolve_tax_channel("Maharashtra", "Karnataka")      # TaxChannel.INTEGRATED
    resolve_tax_channel("Maharashtra", None)             # TaxChannel.INTEGRATED
"""

from __future__ import annotations

from order_engines.types import PricingParameters, TaxChannel, TaxRates
from order_kernel.logging_config import get_logger

logger = get_logger("engines.jurisdiction")


def normalize_jurisdiction(tag: str | None) -> str | None:
    """Trim and case-fold a jurisdiction tag; blank tags become None."""
    if tag is None:
        return None
    normalized = tag.strip().casefold()
    return normalized or None


def resolve_tax_channel(
    seller_jurisdiction: str | None,
    delivery_jurisdiction: str | None,
) -> TaxChannel:
    """
    Resolve the tax channel for an order.

    SPLIT when both tags are present and equal ignoring case and
    surrounding whitespace; INTEGRATED otherwise. A missing delivery
    jurisdiction resolves to INTEGRATED without error.
    """
    seller = normalize_jurisdiction(seller_jurisdiction)
    delivery = normalize_jurisdiction(delivery_jurisdiction)

    if seller is not None and seller == delivery:
        channel = TaxChannel.SPLIT
    else:
        channel = TaxChannel.INTEGRATED

    if delivery is None:
        logger.debug("tax_channel_defaulted", extra={
            "seller_jurisdiction": seller_jurisdiction,
            "tax_channel": channel.value,
        })
    else:
        logger.debug("tax_channel_resolved", extra={
            "seller_jurisdiction": seller_jurisdiction,
            "delivery_jurisdiction": delivery_jurisdiction,
            "tax_channel": channel.value,
        })
    return channel


def channel_rates(channel: TaxChannel, params: PricingParameters) -> TaxRates:
    """Rate split a line carries under the given channel."""
    if channel == TaxChannel.SPLIT:
        return params.split_rates
    return params.integrated_rates
