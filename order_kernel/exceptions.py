"""
Typed exception hierarchy for the order engines.

Business rule outcomes (credit limit exceeded, quota exceeded, stock
shortfall) are NEVER exceptions -- they are ValidationFinding data returned
by the validation engine. The exceptions here signal caller contract
violations and configuration problems only.

Every exception carries a machine-readable ``code`` class attribute and
its structured fields as instance attributes, so callers catch by type
and log or serialize by field rather than by parsing messages.

    OrderEngineError (base)
    |
    +-- CurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- LineError
    |   +-- UncalculatedLineError
    |
    +-- PromotionError
    |   +-- UnknownAllocationAlgorithmError
    |   +-- PromotionProductMissingError
    |
    +-- ConfigError
        +-- PolicyConfigError

Code            | When raised
----------------|--------------------------------------------------------
CURRENCY_MISMATCH        | Money arithmetic / aggregation mixes currencies
UNCALCULATED_LINE        | A line without derived amounts reaches the
                         | aggregator (caller skipped the recompute pass)
UNKNOWN_ALLOCATION_ALGORITHM | Slab allocation requested by an unregistered name
PROMOTION_PRODUCT_MISSING    | A slab promotion's product is absent from the
                             | catalog data passed in
POLICY_CONFIG_INVALID    | Pricing policy YAML is missing or inconsistent
"""


class OrderEngineError(Exception):
    """
    Base exception for all order engine errors.

    All subclasses define a ``code`` class attribute.
    """

    code: str = "ORDER_ENGINE_ERROR"


# Currency-related exceptions


class CurrencyError(OrderEngineError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str, operation: str = ""):
        self.currency1 = currency1
        self.currency2 = currency2
        self.operation = operation
        detail = f" during {operation}" if operation else ""
        super().__init__(f"Currency mismatch{detail}: {currency1} vs {currency2}")


# Line-related exceptions


class LineError(OrderEngineError):
    """Base exception for order line errors."""

    code: str = "LINE_ERROR"


class UncalculatedLineError(LineError):
    """A line's derived amounts were required before they were computed."""

    code: str = "UNCALCULATED_LINE"

    def __init__(self, product_id: str, line_index: int | None = None):
        self.product_id = product_id
        self.line_index = line_index
        where = f" at index {line_index}" if line_index is not None else ""
        super().__init__(
            f"Line for product {product_id}{where} has no calculated amounts; "
            f"run calculate_line or recompute_order first"
        )


# Promotion-related exceptions


class PromotionError(OrderEngineError):
    """Base exception for promotion errors."""

    code: str = "PROMOTION_ERROR"


class UnknownAllocationAlgorithmError(PromotionError):
    """No slab allocator is registered under the requested name."""

    code: str = "UNKNOWN_ALLOCATION_ALGORITHM"

    def __init__(self, algorithm: str, available: tuple[str, ...] = ()):
        self.algorithm = algorithm
        self.available = available
        super().__init__(
            f"Unknown slab allocation algorithm: {algorithm!r} "
            f"(available: {', '.join(available) or 'none'})"
        )


class PromotionProductMissingError(PromotionError):
    """The catalog data passed in has no entry for a promoted product."""

    code: str = "PROMOTION_PRODUCT_MISSING"

    def __init__(self, promotion_id: str, product_id: str | None):
        self.promotion_id = promotion_id
        self.product_id = product_id
        super().__init__(
            f"Promotion {promotion_id}: product {product_id!r} not found in catalog data"
        )


# Configuration exceptions


class ConfigError(OrderEngineError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class PolicyConfigError(ConfigError):
    """Pricing policy configuration is missing a field or inconsistent."""

    code: str = "POLICY_CONFIG_INVALID"

    def __init__(self, field: str, reason: str, source: str | None = None):
        self.field = field
        self.reason = reason
        self.source = source
        origin = f" in {source}" if source else ""
        super().__init__(f"Invalid pricing policy field '{field}'{origin}: {reason}")
