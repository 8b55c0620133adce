"""
Module: order_engines.promotion
Responsibility:
    Free-goods entitlement for quantity-tiered ("buy N get M free")
    promotions, plus the eligibility check a distributor must pass
    before claiming a promotion.

Architecture position:
    Engines -- pure calculation layer, zero I/O, zero clock reads.
    The evaluation date for eligibility is always passed in.

Invariants enforced:
    - Callers may pass slabs in any order; the result does not depend on it.
    - Slabs applied zero times never appear in a breakdown.
    - total_free_units == sum(entry.free_units for entry in breakdown).
    - quantity <= 0, no slabs, or quantity below every threshold all
      yield an empty allocation (not an error).

Allocation strategy:
    The default allocator is greedy, largest threshold first. It is
    optimal when larger thresholds never have a worse free-unit ratio,
    which slab design guarantees today. It is NOT a general knapsack
    solution: slabs {4 -> 1, 3 -> 1} at quantity 6 give 1 free unit
    greedily where two 3-slabs would give 2. Allocators are
    looked up by name so an exact strategy can be registered without
    touching callers.

Failure modes:
    - UnknownAllocationAlgorithmError for an unregistered algorithm name.
    - ValueError from slab construction with threshold <= 0 or negative
      free quantity.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Protocol

from order_engines.tracer import traced_engine
from order_kernel.exceptions import UnknownAllocationAlgorithmError
from order_kernel.logging_config import get_logger

logger = get_logger("engines.promotion")

GREEDY = "greedy"


class PromotionType(str, Enum):
    """How a promotion grants its benefit."""

    SLAB = "slab"  # Buy N of a product, get M of it free
    COMBO = "combo"  # Buy a set of products, get a set of products free


class RequirementType(str, Enum):
    """Role of a product inside a combo offer."""

    PURCHASE = "purchase"  # Paid line
    BENEFIT = "benefit"  # Free line


@dataclass(frozen=True)
class PromotionSlab:
    """One tier: ordering ``threshold`` units grants ``free_quantity`` units."""

    threshold: int
    free_quantity: int = 0
    slab_id: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ValueError(f"threshold must be an int, got {self.threshold!r}")
        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}")
        if isinstance(self.free_quantity, bool) or not isinstance(self.free_quantity, int):
            raise ValueError(f"free_quantity must be an int, got {self.free_quantity!r}")
        if self.free_quantity < 0:
            raise ValueError(f"free_quantity cannot be negative, got {self.free_quantity}")


@dataclass(frozen=True)
class PromotionRequirement:
    """A product a combo offer requires the distributor to buy, or grants free."""

    product_id: str
    requirement_type: RequirementType
    required_quantity: int = 1


@dataclass(frozen=True)
class Promotion:
    """A promotion as published by the promotion collaborator."""

    promotion_id: str
    code: str
    promotion_type: PromotionType
    start_date: date
    end_date: date
    is_active: bool = True
    name: str = ""
    product_id: str | None = None
    slabs: tuple[PromotionSlab, ...] = ()
    requirements: tuple[PromotionRequirement, ...] = ()


@dataclass(frozen=True)
class SlabApplication:
    """How many times one slab was applied and what it granted."""

    slab: PromotionSlab
    times_applied: int
    free_units: int


@dataclass(frozen=True)
class SlabAllocation:
    """
    Free-unit entitlement for an ordered quantity.

    Guarantees:
        - ``total_free_units`` equals the sum over ``breakdown``.
        - breakdown entries are in application order (largest slab first
          for the greedy allocator).
    """

    total_free_units: int
    breakdown: tuple[SlabApplication, ...]
    algorithm: str = GREEDY

    @property
    def units_consumed(self) -> int:
        """Ordered units that counted toward some slab."""
        return sum(e.times_applied * e.slab.threshold for e in self.breakdown)


@dataclass(frozen=True)
class PromotionEligibility:
    """Whether a promotion can be claimed, and why not."""

    can_claim: bool
    reason: str | None = None


class SlabAllocator(Protocol):
    """A strategy that turns slabs and a quantity into an allocation."""

    name: str

    def allocate(
        self, slabs: Sequence[PromotionSlab], ordered_quantity: int
    ) -> SlabAllocation: ...


class GreedySlabAllocator:
    """
    Largest-threshold-first allocation.

    Apply each slab, from the largest threshold down, as many times as the
    remaining quantity allows, then move to the next smaller slab.
    """

    name = GREEDY

    def allocate(
        self, slabs: Sequence[PromotionSlab], ordered_quantity: int
    ) -> SlabAllocation:
        if not slabs or ordered_quantity <= 0:
            return SlabAllocation(0, (), self.name)

        # Equal thresholds: the slab granting more free units goes first
        ordered = sorted(
            slabs, key=lambda s: (s.threshold, s.free_quantity), reverse=True
        )

        remaining = ordered_quantity
        breakdown: list[SlabApplication] = []
        for slab in ordered:
            if remaining < slab.threshold:
                continue
            times_applied = remaining // slab.threshold
            breakdown.append(
                SlabApplication(
                    slab=slab,
                    times_applied=times_applied,
                    free_units=times_applied * slab.free_quantity,
                )
            )
            remaining -= times_applied * slab.threshold

        total = sum(entry.free_units for entry in breakdown)
        return SlabAllocation(total, tuple(breakdown), self.name)


_ALLOCATORS: dict[str, SlabAllocator] = {GREEDY: GreedySlabAllocator()}


def register_allocator(allocator: SlabAllocator) -> None:
    """Register (or replace) an allocation strategy under its name."""
    _ALLOCATORS[allocator.name] = allocator
    logger.info("slab_allocator_registered", extra={"algorithm": allocator.name})


def unregister_allocator(name: str) -> None:
    """Remove a registered strategy. The greedy default cannot be removed."""
    if name == GREEDY:
        raise ValueError(f"the {GREEDY!r} allocator cannot be unregistered")
    if _ALLOCATORS.pop(name, None) is None:
        raise UnknownAllocationAlgorithmError(name, tuple(sorted(_ALLOCATORS)))
    logger.info("slab_allocator_unregistered", extra={"algorithm": name})


def get_allocator(name: str) -> SlabAllocator:
    try:
        return _ALLOCATORS[name]
    except KeyError:
        raise UnknownAllocationAlgorithmError(name, tuple(sorted(_ALLOCATORS))) from None


@traced_engine(
    "promotion", "1.0", fingerprint_fields=("slabs", "ordered_quantity", "algorithm")
)
def allocate(
    slabs: Sequence[PromotionSlab],
    ordered_quantity: int,
    algorithm: str = GREEDY,
) -> SlabAllocation:
    """
    Compute free units for an ordered quantity.

    Args:
        slabs: Promotion tiers, in any order.
        ordered_quantity: Paid units the distributor is ordering.
        algorithm: Registered allocator name (default: greedy).

    Returns:
        SlabAllocation with total free units and per-slab breakdown.
    """
    allocator = get_allocator(algorithm)
    result = allocator.allocate(slabs, ordered_quantity)

    logger.debug("slab_allocation_completed", extra={
        "algorithm": allocator.name,
        "slab_count": len(slabs),
        "ordered_quantity": ordered_quantity,
        "total_free_units": result.total_free_units,
        "slabs_applied": len(result.breakdown),
    })
    return result


def minimum_slab_quantity(slabs: Sequence[PromotionSlab]) -> int:
    """Smallest quantity that qualifies for any slab; 1 when there are none."""
    if not slabs:
        return 1
    return min(slab.threshold for slab in slabs)


def check_promotion_claim(
    promotion: Promotion | None,
    as_of: date,
) -> PromotionEligibility:
    """
    Decide whether a promotion can be claimed on ``as_of``.

    Checks, in order: promotion exists, is active, has not ended, has
    started, and is fully configured (combo offers need requirements;
    slab promotions need a product and at least one slab).

    Dates are whole days: a promotion is claimable on both its start and
    its end date, and expires the day after ``end_date``.
    """
    if promotion is None:
        return PromotionEligibility(False, "Promotion not found")

    if not promotion.is_active:
        reason = "This promotion is currently inactive"
    elif as_of > promotion.end_date:
        reason = "This promotion has expired"
    elif as_of < promotion.start_date:
        reason = "This promotion hasn't started yet"
    elif promotion.promotion_type == PromotionType.COMBO:
        reason = (
            None
            if promotion.requirements
            else "No requirements configured for this combo offer"
        )
    elif not promotion.product_id:
        reason = "No product is associated with this promotion"
    elif not promotion.slabs:
        reason = "No quantity slabs configured for this promotion"
    else:
        reason = None

    if reason is not None:
        logger.info("promotion_claim_rejected", extra={
            "promotion_id": promotion.promotion_id,
            "promotion_code": promotion.code,
            "as_of": as_of.isoformat(),
            "reason": reason,
        })
        return PromotionEligibility(False, reason)

    return PromotionEligibility(True)
