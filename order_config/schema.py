"""
Pricing policy schema.

The human-authored pricing policy: billing currency, seller jurisdiction,
tax rate split, promotion offer pricing and the payment methods the
portal offers. YAML files are parsed into these types by the loader;
bridges turn them into engine inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class TaxPolicyDef:
    """Seller jurisdiction and the nominal tax rate with its SPLIT halves."""

    seller_jurisdiction: str
    nominal_rate: Decimal
    split_rate_a: Decimal
    split_rate_b: Decimal


@dataclass(frozen=True)
class PromotionPolicyDef:
    """How promotion offer lines are billed and free units allocated."""

    offer_unit_price: Decimal = Decimal("0.01")
    allocation_algorithm: str = "greedy"


@dataclass(frozen=True)
class PricingPolicy:
    """One versioned pricing policy with its effective date range."""

    policy_id: str
    version: int
    currency: str
    effective_from: date
    tax: TaxPolicyDef
    promotions: PromotionPolicyDef
    payment_methods: tuple[str, ...]
    effective_to: date | None = None
    description: str = ""
    checksum: str = ""

    def is_effective_on(self, as_of_date: date) -> bool:
        if as_of_date < self.effective_from:
            return False
        return self.effective_to is None or as_of_date <= self.effective_to
