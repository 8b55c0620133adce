"""
Hypothesis-based property tests for the pricing engines.

Properties checked:
- calculate_line is idempotent and net = taxable + tax per line
- aggregate is insensitive to line order
- allocate: empty for zero quantity or no slabs; total equals breakdown
  sum; never consumes more than ordered; slab order irrelevant
- Stock shortages alone never block an order
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from order_engines.line_item import calculate_line
from order_engines.promotion import PromotionSlab, SlabAllocation, allocate
from order_engines.totals import aggregate
from order_engines.types import (
    DistributorCreditProfile,
    OrderLine,
    PaymentMethod,
    TaxChannel,
    TaxRates,
)
from order_engines.validation import validate_order
from order_kernel.domain.values import Money

prices = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
rates = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)
quantities = st.integers(min_value=1, max_value=10_000)
channels = st.sampled_from(list(TaxChannel))

_SUPPRESSED = [HealthCheck.too_slow, HealthCheck.function_scoped_fixture]


@st.composite
def order_lines(draw, product_id=None):
    half = draw(st.decimals(min_value=Decimal("0"), max_value=Decimal("14"), places=1))
    return OrderLine(
        product_id=product_id or draw(st.text(min_size=1, max_size=8)),
        unit_price=Money.of(draw(prices), "INR"),
        quantity=draw(quantities),
        discount_rate=draw(rates),
        tax_rates=TaxRates(local_a=half, local_b=half, integrated=half * 2),
        available_stock=draw(st.integers(min_value=0, max_value=20_000)),
    )


slab_lists = st.lists(
    st.builds(
        PromotionSlab,
        threshold=st.integers(min_value=1, max_value=500),
        free_quantity=st.integers(min_value=0, max_value=100),
    ),
    max_size=6,
)


class TestLineProperties:
    @given(line=order_lines(), channel=channels)
    @settings(max_examples=200, suppress_health_check=_SUPPRESSED)
    def test_calculate_line_idempotent(self, line, channel):
        once = calculate_line(line, channel)
        assert calculate_line(once, channel).amounts == once.amounts

    @given(line=order_lines(), channel=channels)
    @settings(suppress_health_check=_SUPPRESSED)
    def test_line_total_is_taxable_plus_tax(self, line, channel):
        amounts = calculate_line(line, channel).amounts
        assert amounts.line_total == amounts.taxable_amount + amounts.tax_amount
        assert amounts.taxable_amount == amounts.subtotal - amounts.discount_amount
        assert not amounts.taxable_amount.is_negative


class TestAggregateProperties:
    @given(
        lines=st.lists(order_lines(), max_size=8),
        channel=channels,
        data=st.data(),
    )
    @settings(max_examples=100, suppress_health_check=_SUPPRESSED)
    def test_order_insensitive(self, lines, channel, data):
        priced = [calculate_line(line, channel) for line in lines]
        shuffled = data.draw(st.permutations(priced))
        assert aggregate(priced) == aggregate(shuffled)

    @given(lines=st.lists(order_lines(), min_size=1, max_size=8), channel=channels)
    @settings(suppress_health_check=_SUPPRESSED)
    def test_net_is_taxable_plus_tax(self, lines, channel):
        totals = aggregate([calculate_line(line, channel) for line in lines])
        assert totals.net_amount == totals.taxable_amount + totals.tax_amount
        assert totals.total_quantity == sum(line.quantity for line in lines)


class TestAllocateProperties:
    @given(slabs=slab_lists)
    @settings(suppress_health_check=_SUPPRESSED)
    def test_zero_quantity_is_empty(self, slabs):
        assert allocate(slabs, 0) == SlabAllocation(0, ())

    @given(quantity=st.integers(min_value=-100, max_value=100_000))
    @settings(suppress_health_check=_SUPPRESSED)
    def test_no_slabs_is_empty(self, quantity):
        assert allocate([], quantity) == SlabAllocation(0, ())

    @given(slabs=slab_lists, quantity=st.integers(min_value=0, max_value=100_000))
    @settings(max_examples=300, suppress_health_check=_SUPPRESSED)
    def test_breakdown_consistent(self, slabs, quantity):
        result = allocate(slabs, quantity)

        assert result.total_free_units == sum(e.free_units for e in result.breakdown)
        assert result.units_consumed <= quantity
        assert all(e.times_applied > 0 for e in result.breakdown)
        thresholds = [e.slab.threshold for e in result.breakdown]
        assert thresholds == sorted(thresholds, reverse=True)
        if slabs and quantity > 0:
            # Remainder is below every threshold
            assert quantity - result.units_consumed < min(s.threshold for s in slabs)

    @given(slabs=slab_lists, quantity=st.integers(min_value=0, max_value=10_000), data=st.data())
    @settings(suppress_health_check=_SUPPRESSED)
    def test_slab_order_irrelevant_for_total(self, slabs, quantity, data):
        shuffled = data.draw(st.permutations(slabs))
        assert (
            allocate(slabs, quantity).total_free_units
            == allocate(shuffled, quantity).total_free_units
        )


class TestValidationProperties:
    @given(lines=st.lists(order_lines(), max_size=6))
    @settings(suppress_health_check=_SUPPRESSED)
    def test_stock_shortage_never_blocks_alone(self, lines):
        unlimited = DistributorCreditProfile(
            credit_limit=Money.zero("INR"), outstanding_balance=Money.zero("INR")
        )
        result = validate_order(
            unlimited, lines, Money.of("1000000", "INR"), PaymentMethod.CREDIT
        )

        assert result.can_proceed
        assert len(result.stock_shortages) == sum(
            1 for line in lines if line.quantity > line.available_stock
        )
