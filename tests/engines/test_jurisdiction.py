"""
Tests for the Tax Jurisdiction Resolver.

Covers:
- SPLIT for same jurisdiction, ignoring case and surrounding whitespace
- INTEGRATED for different or missing jurisdictions
- Channel rate split handed out from pricing parameters
"""

import pytest

from order_engines.jurisdiction import (
    channel_rates,
    normalize_jurisdiction,
    resolve_tax_channel,
)
from order_engines.types import TaxChannel, TaxRates


class TestNormalizeJurisdiction:
    def test_trims_and_casefolds(self):
        assert normalize_jurisdiction("  MahaRashtra ") == "maharashtra"

    @pytest.mark.parametrize("tag", [None, "", "   "])
    def test_blank_is_none(self, tag):
        assert normalize_jurisdiction(tag) is None


class TestResolveTaxChannel:
    def test_same_jurisdiction_is_split(self):
        assert resolve_tax_channel("Maharashtra", "Maharashtra") == TaxChannel.SPLIT

    def test_case_and_whitespace_ignored(self):
        assert resolve_tax_channel("Maharashtra", "  maharashtra ") == TaxChannel.SPLIT

    def test_different_jurisdiction_is_integrated(self):
        assert resolve_tax_channel("Maharashtra", "Karnataka") == TaxChannel.INTEGRATED

    def test_missing_delivery_defaults_to_integrated(self, captured_logs):
        assert resolve_tax_channel("Maharashtra", None) == TaxChannel.INTEGRATED
        logs = captured_logs()
        assert any(r["message"] == "tax_channel_defaulted" for r in logs)

    def test_blank_delivery_defaults_to_integrated(self):
        assert resolve_tax_channel("Maharashtra", "  ") == TaxChannel.INTEGRATED

    def test_missing_seller_is_integrated(self):
        assert resolve_tax_channel(None, "Maharashtra") == TaxChannel.INTEGRATED

    def test_both_missing_is_integrated(self):
        assert resolve_tax_channel(None, None) == TaxChannel.INTEGRATED


class TestChannelRates:
    def test_split_rates(self, params):
        assert channel_rates(TaxChannel.SPLIT, params) == TaxRates.split("9", "9")

    def test_integrated_rates(self, params):
        rates = channel_rates(TaxChannel.INTEGRATED, params)
        assert rates == TaxRates.single("18")
        assert rates.nominal == 18
