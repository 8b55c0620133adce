"""
Pytest fixtures for the order engine test suite.

Provides:
- Structured logging configured for every test
- Log capture as parsed JSON records
- Builders for catalog products, order lines, contexts and pricing
  parameters matching the default policy (INR, Maharashtra, 9 + 9 / 18)
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from order_engines.types import (
    CatalogProduct,
    DistributorCreditProfile,
    OrderContext,
    OrderLine,
    PaymentMethod,
    PricingParameters,
    TaxRates,
)
from order_kernel.domain.values import Money
from order_kernel.logging_config import (
    StructuredFormatter,
    clear_order_scope,
    configure_logging,
    reset_logging,
)

SELLER = "Maharashtra"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_order_scope():
    """Drop any order scope a test left bound."""
    clear_order_scope()
    yield
    clear_order_scope()


@pytest.fixture
def captured_logs():
    """
    Capture order_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate(lines)
            logs = captured_logs()
            assert any(r["message"] == "order_totals_aggregated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("order_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain builders
# =============================================================================


@pytest.fixture
def params() -> PricingParameters:
    """Pricing parameters of the default policy."""
    return PricingParameters(
        currency="INR",
        split_rates=TaxRates.split("9", "9"),
        integrated_rates=TaxRates.single("18"),
        offer_unit_price=Decimal("0.01"),
    )


@pytest.fixture
def intra_credit_context() -> OrderContext:
    return OrderContext(
        payment_method=PaymentMethod.CREDIT,
        seller_jurisdiction=SELLER,
        delivery_jurisdiction="maharashtra",
    )


@pytest.fixture
def inter_advance_context() -> OrderContext:
    return OrderContext(
        payment_method=PaymentMethod.ADVANCE,
        seller_jurisdiction=SELLER,
        delivery_jurisdiction="Karnataka",
    )


@pytest.fixture
def make_product():
    """Factory for CatalogProduct with roomy stock and no quota."""

    def _make(
        product_id: str = "SKU-1",
        price: str = "100",
        prepaid: str = "5",
        credit: str = "10",
        stock: int = 1000,
        allocation_controlled: bool = False,
        remaining_allocation: int = 0,
        name: str | None = None,
    ) -> CatalogProduct:
        return CatalogProduct(
            product_id=product_id,
            product_name=name or f"Product {product_id}",
            selling_price=Money.of(price, "INR"),
            prepaid_discount_rate=Decimal(prepaid),
            credit_discount_rate=Decimal(credit),
            available_stock=stock,
            allocation_controlled=allocation_controlled,
            remaining_allocation=remaining_allocation,
        )

    return _make


@pytest.fixture
def make_line():
    """Factory for an uncalculated OrderLine priced in INR."""

    def _make(
        product_id: str = "SKU-1",
        price: str = "100",
        quantity: int = 1,
        discount: str = "0",
        tax_rates: TaxRates | None = None,
        **kwargs,
    ) -> OrderLine:
        return OrderLine(
            product_id=product_id,
            unit_price=Money.of(price, "INR"),
            quantity=quantity,
            discount_rate=Decimal(discount),
            tax_rates=tax_rates or TaxRates.split("9", "9"),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_credit_profile():
    def _make(limit: str, outstanding: str = "0") -> DistributorCreditProfile:
        return DistributorCreditProfile(
            credit_limit=Money.of(limit, "INR"),
            outstanding_balance=Money.of(outstanding, "INR"),
        )

    return _make
