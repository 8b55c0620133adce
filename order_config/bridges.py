"""
Config -> Engine Bridges.

Functions that convert a PricingPolicy into engine inputs. These live in
order_config (the producer) because the engines must NEVER import
order_config.

Usage:
    from order_config import get_active_policy
    from order_config.bridges import build_order_context, build_pricing_parameters

    policy = get_active_policy(date.today())
    params = build_pricing_parameters(policy)
    context = build_order_context(policy, "Credit", "Karnataka")
"""

from __future__ import annotations

from order_config.schema import PricingPolicy
from order_engines.types import OrderContext, PaymentMethod, PricingParameters, TaxRates


def build_pricing_parameters(policy: PricingPolicy) -> PricingParameters:
    """Tax split, offer pricing and allocation strategy for the engines."""
    return PricingParameters(
        currency=policy.currency,
        split_rates=TaxRates.split(policy.tax.split_rate_a, policy.tax.split_rate_b),
        integrated_rates=TaxRates.single(policy.tax.nominal_rate),
        offer_unit_price=policy.promotions.offer_unit_price,
        allocation_algorithm=policy.promotions.allocation_algorithm,
    )


def build_order_context(
    policy: PricingPolicy,
    payment_method: PaymentMethod | str,
    delivery_jurisdiction: str | None,
) -> OrderContext:
    """
    Order context for a payment method and delivery address.

    Raises:
        ValueError: if the payment method is unknown or not offered by
            the policy.
    """
    if not isinstance(payment_method, PaymentMethod):
        payment_method = PaymentMethod.from_label(payment_method)
    if payment_method.value not in policy.payment_methods:
        raise ValueError(
            f"Payment method {payment_method.value!r} is not enabled by "
            f"policy {policy.policy_id} v{policy.version}"
        )
    return OrderContext(
        payment_method=payment_method,
        seller_jurisdiction=policy.tax.seller_jurisdiction,
        delivery_jurisdiction=delivery_jurisdiction,
    )
