"""
Module: order_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure order
    pricing engines.  This is the import surface for the order form layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import order_kernel (and sibling engine modules).
    MUST NOT import order_config; configuration reaches the engines as
    ``PricingParameters`` built by ``order_config.bridges``.

Invariants enforced:
    - Purity: engines never read the clock.  Evaluation dates are passed in.
    - Decimal-only arithmetic; floats are rejected at the value-object
      boundary.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - ValueError from value objects on malformed primitives.
    - Typed ``OrderEngineError`` subclasses for caller sequencing errors.

Usage:
    from order_engines import (
        OrderContext, PaymentMethod, price_order, allocate,
    )
"""

from order_kernel.logging_config import get_logger

logger = get_logger("engines")

from order_engines.discount import select_discount_rate
from order_engines.jurisdiction import (
    channel_rates,
    normalize_jurisdiction,
    resolve_tax_channel,
)
from order_engines.line_item import calculate_line, compute_line_amounts
from order_engines.promotion import (
    GREEDY,
    GreedySlabAllocator,
    Promotion,
    PromotionEligibility,
    PromotionRequirement,
    PromotionSlab,
    PromotionType,
    RequirementType,
    SlabAllocation,
    SlabAllocator,
    SlabApplication,
    allocate,
    check_promotion_claim,
    get_allocator,
    minimum_slab_quantity,
    register_allocator,
    unregister_allocator,
)
from order_engines.promotion_lines import (
    build_promotion_lines,
    reconcile_promotion_lines,
)
from order_engines.recompute import PricedOrder, price_order, recompute_order
from order_engines.totals import OrderTotals, aggregate
from order_engines.tracer import compute_input_fingerprint, traced_engine
from order_engines.types import (
    DEFAULT_CURRENCY,
    CatalogProduct,
    DistributorCreditProfile,
    LineAmounts,
    OrderContext,
    OrderLine,
    PaymentMethod,
    PricingParameters,
    TaxChannel,
    TaxRates,
)
from order_engines.validation import (
    FindingKind,
    OrderValidationResult,
    Severity,
    StockShortage,
    ValidationFinding,
    ValidationOutcome,
    check_allocation_quota,
    check_credit_limit,
    check_stock_quantity,
    clamp_to_available_stock,
    validate_order,
)

__all__ = [
    # Types
    "DEFAULT_CURRENCY",
    "CatalogProduct",
    "DistributorCreditProfile",
    "LineAmounts",
    "OrderContext",
    "OrderLine",
    "PaymentMethod",
    "PricingParameters",
    "TaxChannel",
    "TaxRates",
    # Jurisdiction
    "channel_rates",
    "normalize_jurisdiction",
    "resolve_tax_channel",
    # Discount
    "select_discount_rate",
    # Line item
    "calculate_line",
    "compute_line_amounts",
    # Totals
    "OrderTotals",
    "aggregate",
    # Promotion
    "GREEDY",
    "GreedySlabAllocator",
    "Promotion",
    "PromotionEligibility",
    "PromotionRequirement",
    "PromotionSlab",
    "PromotionType",
    "RequirementType",
    "SlabAllocation",
    "SlabAllocator",
    "SlabApplication",
    "allocate",
    "check_promotion_claim",
    "get_allocator",
    "minimum_slab_quantity",
    "register_allocator",
    "unregister_allocator",
    "build_promotion_lines",
    "reconcile_promotion_lines",
    # Validation
    "FindingKind",
    "OrderValidationResult",
    "Severity",
    "StockShortage",
    "ValidationFinding",
    "ValidationOutcome",
    "check_allocation_quota",
    "check_credit_limit",
    "check_stock_quantity",
    "clamp_to_available_stock",
    "validate_order",
    # Recompute
    "PricedOrder",
    "price_order",
    "recompute_order",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
