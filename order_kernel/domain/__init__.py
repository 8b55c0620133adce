"""Pure domain value objects for the order kernel."""

from order_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from order_kernel.domain.values import Currency, Money

__all__ = [
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Money",
]
