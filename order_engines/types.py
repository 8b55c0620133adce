"""
Module: order_engines.types
Responsibility:
    Value objects shared by the order pricing engines: order lines and
    their derived amounts, tax rate splits, order context, distributor
    credit profile, catalog products and pricing parameters.

Architecture position:
    Engines -- pure data layer, zero I/O.
    May only import order_kernel.domain and order_kernel.exceptions.

Invariants enforced:
    - Every type is a frozen dataclass; engines return new instances
      (``dataclasses.replace``) and never mutate their inputs.
    - Percentages are Decimal in the closed range 0..100.
    - Monetary fields are Money; quantities are int.

Failure modes:
    - ValueError from ``__post_init__`` when a caller passes a malformed
      primitive (quantity < 1, negative price, rate outside 0..100).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from order_kernel.domain.values import Currency, Money

DEFAULT_CURRENCY = "INR"

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _as_percent(value: Decimal | int | str, field_name: str) -> Decimal:
    """Coerce a percentage to Decimal and check it lies within 0..100."""
    if isinstance(value, float):
        raise ValueError(f"{field_name} must not be a float: {value!r}")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
    if not value.is_finite() or value < _ZERO or value > _HUNDRED:
        raise ValueError(f"{field_name} must be between 0 and 100, got {value}")
    return value


def _require_count(value: int, field_name: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an int, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"{field_name} must be >= {minimum}, got {value}")


class TaxChannel(str, Enum):
    """Which tax components apply to an order."""

    SPLIT = "split"  # Two co-equal local components (same jurisdiction)
    INTEGRATED = "integrated"  # One combined component (cross jurisdiction)


class PaymentMethod(str, Enum):
    """Closed set of payment methods a distributor can order with."""

    ADVANCE = "advance"  # Prepaid
    CREDIT = "credit"

    @classmethod
    def from_label(cls, label: str) -> PaymentMethod:
        """Parse a payment type label such as ``"Advance"`` or ``"credit"``."""
        normalized = (label or "").strip().lower()
        for method in cls:
            if method.value == normalized:
                return method
        raise ValueError(f"Unknown payment method: {label!r}")


@dataclass(frozen=True)
class TaxRates:
    """
    Tax percentages carried by a line, one per channel component.

    Under the SPLIT channel only ``local_a`` and ``local_b`` are applied;
    under INTEGRATED only ``integrated`` is applied.
    """

    local_a: Decimal = _ZERO
    local_b: Decimal = _ZERO
    integrated: Decimal = _ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "local_a", _as_percent(self.local_a, "local_a"))
        object.__setattr__(self, "local_b", _as_percent(self.local_b, "local_b"))
        object.__setattr__(
            self, "integrated", _as_percent(self.integrated, "integrated")
        )

    @classmethod
    def split(cls, local_a: Decimal | str | int, local_b: Decimal | str | int) -> TaxRates:
        return cls(local_a=local_a, local_b=local_b, integrated=_ZERO)

    @classmethod
    def single(cls, integrated: Decimal | str | int) -> TaxRates:
        return cls(local_a=_ZERO, local_b=_ZERO, integrated=integrated)

    @property
    def nominal(self) -> Decimal:
        """Total stated rate across all components."""
        return self.local_a + self.local_b + self.integrated


@dataclass(frozen=True)
class LineAmounts:
    """Derived monetary fields of one order line. Full precision, unrounded."""

    subtotal: Money
    discount_amount: Money
    taxable_amount: Money
    local_a_amount: Money
    local_b_amount: Money
    integrated_amount: Money
    tax_amount: Money
    line_total: Money


@dataclass(frozen=True)
class CatalogProduct:
    """
    Catalog data for one product, as fetched by the catalog collaborator.

    The two discount rates are negotiated per product and never derived;
    they only feed discount selection.
    """

    product_id: str
    selling_price: Money
    product_name: str | None = None
    prepaid_discount_rate: Decimal = _ZERO
    credit_discount_rate: Decimal = _ZERO
    available_stock: int = 0
    allocation_controlled: bool = False
    remaining_allocation: int = 0

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id is required")
        if self.selling_price.is_negative:
            raise ValueError(f"selling_price cannot be negative: {self.selling_price}")
        object.__setattr__(
            self,
            "prepaid_discount_rate",
            _as_percent(self.prepaid_discount_rate, "prepaid_discount_rate"),
        )
        object.__setattr__(
            self,
            "credit_discount_rate",
            _as_percent(self.credit_discount_rate, "credit_discount_rate"),
        )
        _require_count(self.available_stock, "available_stock", 0)
        _require_count(self.remaining_allocation, "remaining_allocation", 0)


@dataclass(frozen=True)
class OrderLine:
    """
    One product line of an order under construction.

    Contract:
        Inputs are quantity, unit_price, discount_rate and tax_rates.
        ``amounts`` holds the derived fields and is None until the line
        has been through ``calculate_line``.
    Guarantees:
        - quantity >= 1, unit_price >= 0, all rates within 0..100.
        - amounts, when present, are a pure function of the inputs.
    Non-goals:
        - Does not select its own discount or tax channel; the recompute
          pass does that from the order context.
    """

    product_id: str
    unit_price: Money
    quantity: int = 1
    discount_rate: Decimal = _ZERO
    tax_rates: TaxRates = TaxRates()
    prepaid_discount_rate: Decimal = _ZERO
    credit_discount_rate: Decimal = _ZERO
    product_name: str | None = None

    # Catalog data consumed by validation
    available_stock: int = 0
    allocation_controlled: bool = False
    remaining_allocation: int = 0

    # Promotion markers
    promotion_id: str | None = None
    promotion_code: str | None = None
    claimed_free_quantity: int = 0
    is_offer_item: bool = False
    is_locked: bool = False

    amounts: LineAmounts | None = None

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id is required")
        _require_count(self.quantity, "quantity", 1)
        if self.unit_price.is_negative:
            raise ValueError(f"unit_price cannot be negative: {self.unit_price}")
        object.__setattr__(
            self, "discount_rate", _as_percent(self.discount_rate, "discount_rate")
        )
        object.__setattr__(
            self,
            "prepaid_discount_rate",
            _as_percent(self.prepaid_discount_rate, "prepaid_discount_rate"),
        )
        object.__setattr__(
            self,
            "credit_discount_rate",
            _as_percent(self.credit_discount_rate, "credit_discount_rate"),
        )
        _require_count(self.available_stock, "available_stock", 0)
        _require_count(self.remaining_allocation, "remaining_allocation", 0)
        _require_count(self.claimed_free_quantity, "claimed_free_quantity", 0)

    @classmethod
    def from_product(cls, product: CatalogProduct, quantity: int) -> OrderLine:
        """Create an uncalculated line for a catalog product."""
        return cls(
            product_id=product.product_id,
            product_name=product.product_name,
            unit_price=product.selling_price,
            quantity=quantity,
            prepaid_discount_rate=product.prepaid_discount_rate,
            credit_discount_rate=product.credit_discount_rate,
            available_stock=product.available_stock,
            allocation_controlled=product.allocation_controlled,
            remaining_allocation=product.remaining_allocation,
        )

    @property
    def currency(self) -> Currency:
        return self.unit_price.currency

    @property
    def is_calculated(self) -> bool:
        return self.amounts is not None


@dataclass(frozen=True)
class OrderContext:
    """Order-level policy inputs that every line's pricing depends on."""

    payment_method: PaymentMethod
    seller_jurisdiction: str | None
    delivery_jurisdiction: str | None = None


@dataclass(frozen=True)
class DistributorCreditProfile:
    """
    Credit standing of the ordering distributor.

    A credit limit of zero means the distributor has unlimited credit.
    """

    credit_limit: Money
    outstanding_balance: Money

    def __post_init__(self) -> None:
        if self.credit_limit.is_negative:
            raise ValueError(f"credit_limit cannot be negative: {self.credit_limit}")
        if self.outstanding_balance.is_negative:
            raise ValueError(
                f"outstanding_balance cannot be negative: {self.outstanding_balance}"
            )
        # Raises CurrencyMismatchError when the two amounts disagree
        self.credit_limit - self.outstanding_balance

    @property
    def is_unlimited(self) -> bool:
        return self.credit_limit.is_zero

    @property
    def available_credit(self) -> Money | None:
        """credit_limit - outstanding_balance; None when credit is unlimited."""
        if self.is_unlimited:
            return None
        return self.credit_limit - self.outstanding_balance


@dataclass(frozen=True)
class PricingParameters:
    """
    Policy values the engines need, resolved from configuration.

    Built by ``order_config.bridges.build_pricing_parameters``; engines
    never read configuration themselves.
    """

    currency: str
    split_rates: TaxRates
    integrated_rates: TaxRates
    offer_unit_price: Decimal
    allocation_algorithm: str = "greedy"

    def __post_init__(self) -> None:
        Currency(self.currency)
        if self.split_rates.integrated != _ZERO:
            raise ValueError("split_rates must not carry an integrated component")
        if self.integrated_rates.local_a != _ZERO or self.integrated_rates.local_b != _ZERO:
            raise ValueError("integrated_rates must not carry local components")
        if not isinstance(self.offer_unit_price, Decimal):
            object.__setattr__(
                self, "offer_unit_price", Decimal(str(self.offer_unit_price))
            )
        if self.offer_unit_price < _ZERO:
            raise ValueError(
                f"offer_unit_price cannot be negative: {self.offer_unit_price}"
            )

    @property
    def offer_price(self) -> Money:
        return Money.of(self.offer_unit_price, self.currency)
