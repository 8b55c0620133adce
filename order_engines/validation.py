"""
Order Validation Engine (``order_engines.validation``).

Responsibility
--------------
Pre-submission checks that mirror the order API's own rules:

* Credit limit -- order level, blocking, CREDIT payment method only.
* Allocation quota -- per line, blocking, allocation-controlled products.
* Stock quantity -- per line, advisory; the caller may clamp and resubmit.

Plus the stock-clamp remediation that follows a stock warning.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads,
no state kept between passes.  A result is derived, not stored:

    Unvalidated --validate_order--> Evaluated
        Evaluated with blocking findings              -> BLOCKED
        Evaluated with stock shortages, no blocking   -> STOCK_WARNING
        Evaluated with neither                        -> CLEAN

Invariants enforced
-------------------
* Every rule runs for every line; findings are never short-circuited.
* ``can_proceed`` depends on blocking findings only.  A stock shortage on
  its own never blocks.
* Credit limit of zero means unlimited credit.

Failure modes
-------------
* Business rule violations are returned as ``ValidationFinding`` data.
* ``CurrencyMismatchError`` when the order total and the credit profile
  use different currencies.
* ``ValueError`` from ``clamp_to_available_stock`` when the result was
  produced for a different line list.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from order_engines.jurisdiction import channel_rates
from order_engines.line_item import calculate_line
from order_engines.tracer import traced_engine
from order_engines.types import (
    DistributorCreditProfile,
    OrderLine,
    PaymentMethod,
    PricingParameters,
    TaxChannel,
)
from order_kernel.domain.values import Money
from order_kernel.logging_config import get_logger

logger = get_logger("engines.validation")


class FindingKind(str, Enum):
    CREDIT_LIMIT = "credit_limit"
    ALLOCATION_QUOTA = "allocation_quota"
    STOCK_QUANTITY = "stock_quantity"


class Severity(str, Enum):
    BLOCKING = "blocking"  # Order cannot be submitted
    ADVISORY = "advisory"  # May be auto-remediated


class ValidationOutcome(str, Enum):
    BLOCKED = "blocked"
    STOCK_WARNING = "stock_warning"
    CLEAN = "clean"


@dataclass(frozen=True)
class ValidationFinding:
    """
    One failed rule.

    ``requested`` and ``available`` are amounts for the credit rule and unit
    counts for the quantity rules.  ``product_id`` and ``line_index`` are
    None for order-level findings.
    """

    kind: FindingKind
    severity: Severity
    message: str
    requested: Decimal
    available: Decimal
    product_id: str | None = None
    product_name: str | None = None
    line_index: int | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity == Severity.BLOCKING


@dataclass(frozen=True)
class StockShortage:
    """A line whose quantity exceeds available stock; enough to clamp it."""

    line_index: int
    product_id: str
    product_name: str | None
    requested_quantity: int
    available_stock: int


@dataclass(frozen=True)
class OrderValidationResult:
    """All findings of one validation pass."""

    blocking_findings: tuple[ValidationFinding, ...] = ()
    stock_shortages: tuple[StockShortage, ...] = ()
    advisory_findings: tuple[ValidationFinding, ...] = ()

    @property
    def can_proceed(self) -> bool:
        return not self.blocking_findings

    @property
    def outcome(self) -> ValidationOutcome:
        if self.blocking_findings:
            return ValidationOutcome.BLOCKED
        if self.stock_shortages:
            return ValidationOutcome.STOCK_WARNING
        return ValidationOutcome.CLEAN


def _display_name(line: OrderLine) -> str:
    return line.product_name or line.product_id


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------


def check_credit_limit(
    credit_profile: DistributorCreditProfile,
    order_total: Money,
    payment_method: PaymentMethod,
) -> ValidationFinding | None:
    """Blocking finding when a credit order exceeds the available credit."""
    if payment_method != PaymentMethod.CREDIT:
        return None

    available = credit_profile.available_credit
    if available is None:
        return None

    if order_total > available:
        return ValidationFinding(
            kind=FindingKind.CREDIT_LIMIT,
            severity=Severity.BLOCKING,
            message=(
                f"Credit limit exceeded. Order total: {order_total.format()}, "
                f"Available credit: {available.format()}. "
                f"Please contact your account manager."
            ),
            requested=order_total.amount,
            available=available.amount,
        )
    return None


def check_allocation_quota(
    line: OrderLine,
    line_index: int | None = None,
) -> ValidationFinding | None:
    """Blocking finding when an allocation-controlled line exceeds its quota."""
    if not line.allocation_controlled:
        return None

    if line.quantity > line.remaining_allocation:
        return ValidationFinding(
            kind=FindingKind.ALLOCATION_QUOTA,
            severity=Severity.BLOCKING,
            message=(
                f"{_display_name(line)}: Allocation quota exceeded. "
                f"Requested: {line.quantity}, "
                f"Available quota: {line.remaining_allocation}. "
                f"Order cannot be created."
            ),
            requested=Decimal(line.quantity),
            available=Decimal(line.remaining_allocation),
            product_id=line.product_id,
            product_name=line.product_name,
            line_index=line_index,
        )
    return None


def check_stock_quantity(
    line: OrderLine,
    line_index: int | None = None,
) -> ValidationFinding | None:
    """Advisory finding when a line asks for more than the available stock."""
    if line.quantity > line.available_stock:
        return ValidationFinding(
            kind=FindingKind.STOCK_QUANTITY,
            severity=Severity.ADVISORY,
            message=(
                f"{_display_name(line)}: Insufficient stock. "
                f"Requested: {line.quantity}"
            ),
            requested=Decimal(line.quantity),
            available=Decimal(line.available_stock),
            product_id=line.product_id,
            product_name=line.product_name,
            line_index=line_index,
        )
    return None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


@traced_engine("validation", "1.0", fingerprint_fields=("payment_method",))
def validate_order(
    credit_profile: DistributorCreditProfile,
    lines: Sequence[OrderLine],
    order_total: Money,
    payment_method: PaymentMethod,
) -> OrderValidationResult:
    """
    Run every rule over the order and collect all findings.

    Args:
        credit_profile: The distributor's credit standing.
        lines: Order lines; quantities and catalog data are read.
        order_total: Order net total (sum of taxable plus tax).
        payment_method: The order's payment method.

    Returns:
        OrderValidationResult.  ``can_proceed`` is False iff at least one
        blocking finding was raised.
    """
    blocking: list[ValidationFinding] = []
    shortages: list[StockShortage] = []
    advisory: list[ValidationFinding] = []

    credit_finding = check_credit_limit(credit_profile, order_total, payment_method)
    if credit_finding is not None:
        blocking.append(credit_finding)

    for index, line in enumerate(lines):
        quota_finding = check_allocation_quota(line, index)
        if quota_finding is not None:
            blocking.append(quota_finding)

        stock_finding = check_stock_quantity(line, index)
        if stock_finding is not None:
            shortages.append(
                StockShortage(
                    line_index=index,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    requested_quantity=line.quantity,
                    available_stock=line.available_stock,
                )
            )
            advisory.append(stock_finding)

    result = OrderValidationResult(
        blocking_findings=tuple(blocking),
        stock_shortages=tuple(shortages),
        advisory_findings=tuple(advisory),
    )

    log = logger.warning if blocking else logger.info
    log("order_validation_completed", extra={
        "outcome": result.outcome.value,
        "can_proceed": result.can_proceed,
        "payment_method": payment_method.value,
        "line_count": len(lines),
        "blocking_count": len(blocking),
        "stock_shortage_count": len(shortages),
        "order_total": str(order_total.amount),
    })
    return result


# ---------------------------------------------------------------------------
# Remediation
# ---------------------------------------------------------------------------


def clamp_to_available_stock(
    lines: Sequence[OrderLine],
    result: OrderValidationResult,
    tax_channel: TaxChannel,
    params: PricingParameters,
) -> tuple[OrderLine, ...]:
    """
    Apply the stock-warning remediation: cut short lines to available stock.

    Each line named in ``result.stock_shortages`` gets its quantity set to
    the available stock and is recalculated under ``tax_channel``, with its
    tax rates re-derived for that channel from ``params``.  A line with no
    stock at all is removed.  Other lines are returned unchanged.

    Callers should reconcile promotion lines and re-validate afterwards.
    """
    rates = channel_rates(tax_channel, params)
    shortages = {s.line_index: s for s in result.stock_shortages}
    clamped: list[OrderLine] = []

    for index, line in enumerate(lines):
        shortage = shortages.pop(index, None)
        if shortage is None:
            clamped.append(line)
            continue
        if shortage.product_id != line.product_id:
            raise ValueError(
                f"Stock shortage for {shortage.product_id} does not match "
                f"line {index} ({line.product_id}); re-run validate_order"
            )
        if shortage.available_stock == 0:
            logger.info("line_removed_out_of_stock", extra={
                "line_index": index,
                "product_id": line.product_id,
                "requested_quantity": line.quantity,
            })
            continue
        clamped.append(
            calculate_line(
                replace(line, quantity=shortage.available_stock, tax_rates=rates),
                tax_channel,
            )
        )

    if shortages:
        raise ValueError(
            f"Stock shortages reference lines beyond the order: {sorted(shortages)}"
        )

    logger.info("stock_clamp_applied", extra={
        "clamped_count": len(result.stock_shortages),
        "line_count_before": len(lines),
        "line_count_after": len(clamped),
    })
    return tuple(clamped)
