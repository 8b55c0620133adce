"""
Promotion line builder and free-quantity reconciler.

When a distributor claims a promotion the order gets locked lines tagged
with the promotion's id and code:

    SLAB   one paid line for the ordered quantity, plus one offer line for
           the free units the slab allocator grants. The paid line records
           the entitlement in ``claimed_free_quantity``.
    COMBO  one paid line per PURCHASE requirement and one offer line per
           BENEFIT requirement, each at the requirement's quantity.

Offer lines are billed at the nominal offer unit price from pricing
policy with no discount. Paid lines take the discount selected for the
order's payment method.

When the paid quantity of a slab promotion changes (user edit, stock
clamp) ``reconcile_promotion_lines`` re-runs the allocator and brings the
offer line back in step. Offer lines never hold quantity 0: a zero
entitlement removes the offer line and a positive one re-creates it next
to the paid line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from decimal import Decimal

from order_engines.discount import select_discount_rate
from order_engines.jurisdiction import channel_rates, resolve_tax_channel
from order_engines.line_item import calculate_line
from order_engines.promotion import (
    Promotion,
    PromotionType,
    RequirementType,
    allocate,
)
from order_engines.types import (
    CatalogProduct,
    OrderContext,
    OrderLine,
    PricingParameters,
    TaxChannel,
)
from order_kernel.exceptions import PromotionProductMissingError
from order_kernel.logging_config import get_logger

logger = get_logger("engines.promotion_lines")

_ZERO = Decimal("0")


def _promotion_line(
    product: CatalogProduct,
    quantity: int,
    promotion: Promotion,
    context: OrderContext,
    params: PricingParameters,
    channel: TaxChannel,
    *,
    is_offer: bool,
    claimed_free_quantity: int = 0,
) -> OrderLine:
    if is_offer:
        unit_price = params.offer_price
        discount_rate = _ZERO
    else:
        unit_price = product.selling_price
        discount_rate = select_discount_rate(
            context.payment_method,
            product.prepaid_discount_rate,
            product.credit_discount_rate,
        )

    line = replace(
        OrderLine.from_product(product, quantity),
        unit_price=unit_price,
        discount_rate=discount_rate,
        tax_rates=channel_rates(channel, params),
        promotion_id=promotion.promotion_id,
        promotion_code=promotion.code,
        claimed_free_quantity=claimed_free_quantity,
        is_offer_item=is_offer,
        is_locked=True,
    )
    return calculate_line(line, channel)


def _offer_line_for(
    paid: OrderLine,
    quantity: int,
    params: PricingParameters,
    channel: TaxChannel,
) -> OrderLine:
    line = replace(
        paid,
        quantity=quantity,
        unit_price=params.offer_price,
        discount_rate=_ZERO,
        claimed_free_quantity=0,
        is_offer_item=True,
        amounts=None,
    )
    return calculate_line(line, channel)


def build_promotion_lines(
    promotion: Promotion,
    products: Mapping[str, CatalogProduct],
    quantity: int,
    context: OrderContext,
    params: PricingParameters,
) -> tuple[OrderLine, ...]:
    """
    Build the calculated, locked lines for a claimed promotion.

    Args:
        promotion: The promotion being claimed (eligibility already checked).
        products: Catalog data keyed by product id.
        quantity: Paid units ordered. Used by SLAB promotions only; combo
            quantities come from the requirements.
        context: Order context; selects discount and tax channel.
        params: Pricing parameters (tax split, offer unit price).

    Returns:
        Tuple of calculated lines, paid lines before their offer line.

    Raises:
        PromotionProductMissingError: SLAB promotion whose product is not
            in ``products``.
    """
    channel = resolve_tax_channel(
        context.seller_jurisdiction, context.delivery_jurisdiction
    )

    if promotion.promotion_type == PromotionType.SLAB:
        product = products.get(promotion.product_id or "")
        if product is None:
            raise PromotionProductMissingError(
                promotion.promotion_id, promotion.product_id
            )

        free_units = allocate(
            promotion.slabs, quantity, algorithm=params.allocation_algorithm
        ).total_free_units
        lines = [
            _promotion_line(
                product, quantity, promotion, context, params, channel,
                is_offer=False, claimed_free_quantity=free_units,
            )
        ]
        if free_units > 0:
            lines.append(
                _promotion_line(
                    product, free_units, promotion, context, params, channel,
                    is_offer=True,
                )
            )
    else:
        lines = []
        # Purchase lines first, then benefit lines
        for requirement_type in (RequirementType.PURCHASE, RequirementType.BENEFIT):
            for requirement in promotion.requirements:
                if requirement.requirement_type != requirement_type:
                    continue
                product = products.get(requirement.product_id)
                if product is None:
                    logger.warning("combo_requirement_product_missing", extra={
                        "promotion_id": promotion.promotion_id,
                        "product_id": requirement.product_id,
                        "requirement_type": requirement_type.value,
                    })
                    continue
                lines.append(
                    _promotion_line(
                        product,
                        requirement.required_quantity or 1,
                        promotion, context, params, channel,
                        is_offer=requirement_type == RequirementType.BENEFIT,
                    )
                )

    logger.info("promotion_lines_built", extra={
        "promotion_id": promotion.promotion_id,
        "promotion_code": promotion.code,
        "promotion_type": promotion.promotion_type.value,
        "line_count": len(lines),
        "offer_line_count": sum(1 for line in lines if line.is_offer_item),
        "tax_channel": channel.value,
    })
    return tuple(lines)


def reconcile_promotion_lines(
    lines: Sequence[OrderLine],
    promotion: Promotion,
    context: OrderContext,
    params: PricingParameters,
) -> tuple[OrderLine, ...]:
    """
    Bring a slab promotion's offer line in step with its paid quantity.

    Finds the paid (non-offer) line tagged with the promotion, re-runs the
    allocator on its quantity and updates ``claimed_free_quantity`` and the
    offer line. Lines of other promotions and ordinary lines are returned
    untouched. Combo promotions have fixed quantities and are returned
    unchanged, as is an order with no paid line for the promotion.
    """
    if promotion.promotion_type != PromotionType.SLAB:
        return tuple(lines)

    paid_index = next(
        (
            i for i, line in enumerate(lines)
            if line.promotion_id == promotion.promotion_id and not line.is_offer_item
        ),
        None,
    )
    if paid_index is None:
        return tuple(lines)

    paid = lines[paid_index]
    offer_index = next(
        (
            i for i, line in enumerate(lines)
            if line.promotion_id == promotion.promotion_id and line.is_offer_item
        ),
        None,
    )
    free_units = allocate(
        promotion.slabs, paid.quantity, algorithm=params.allocation_algorithm
    ).total_free_units
    offer_quantity = lines[offer_index].quantity if offer_index is not None else 0

    if paid.claimed_free_quantity == free_units and offer_quantity == free_units:
        return tuple(lines)

    channel = resolve_tax_channel(
        context.seller_jurisdiction, context.delivery_jurisdiction
    )
    result = list(lines)
    result[paid_index] = replace(paid, claimed_free_quantity=free_units)

    if offer_index is not None:
        if free_units > 0:
            result[offer_index] = calculate_line(
                replace(lines[offer_index], quantity=free_units), channel
            )
        else:
            del result[offer_index]
    elif free_units > 0:
        result.insert(
            paid_index + 1,
            _offer_line_for(result[paid_index], free_units, params, channel),
        )

    logger.info("promotion_free_quantity_reconciled", extra={
        "promotion_id": promotion.promotion_id,
        "paid_quantity": paid.quantity,
        "previous_free_quantity": offer_quantity,
        "free_quantity": free_units,
    })
    return tuple(result)
