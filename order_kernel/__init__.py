"""
Order Kernel

Value objects, typed errors and structured logging shared by the order
pricing engines:
- Decimal-only money paired with an ISO 4217 currency
- Typed exceptions with machine-readable codes
- JSON log records with request-scoped context
"""

__version__ = "0.1.0"
