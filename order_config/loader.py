"""
Pricing Policy Loader (``order_config.loader``).

Responsibility
--------------
Loads pricing policy YAML files and parses them into typed
``order_config.schema`` dataclass instances.  Runtime callers go through
``order_config.get_active_policy()`` instead of calling this directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on order_kernel for
the currency registry and exception types only; never on the engines.

Invariants enforced
-------------------
* Required fields have no silent defaults; a missing or malformed field
  raises ``PolicyConfigError`` naming the field and the source file.
* Every parsed object is a frozen dataclass from ``schema.py``.
* The SPLIT halves must add up to the nominal rate.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  raw policy document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid field  -> ``PolicyConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from order_config.schema import PricingPolicy, PromotionPolicyDef, TaxPolicyDef
from order_kernel.domain.currency import CurrencyRegistry
from order_kernel.exceptions import PolicyConfigError

_HUNDRED = Decimal("100")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _require(data: dict[str, Any], key: str, source: str | None) -> Any:
    if key not in data or data[key] is None:
        raise PolicyConfigError(key, "required field is missing", source)
    return data[key]


def parse_date(value: Any, field: str = "date", source: str | None = None) -> date:
    """Parse a date from YAML (ISO string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise PolicyConfigError(field, f"not an ISO date: {value!r}", source) from e
    raise PolicyConfigError(field, f"cannot parse date from {value!r}", source)


def parse_decimal(value: Any, field: str, source: str | None = None) -> Decimal:
    """Parse a YAML scalar into a finite Decimal."""
    if isinstance(value, bool):
        raise PolicyConfigError(field, f"expected a number, got {value!r}", source)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PolicyConfigError(field, f"not a number: {value!r}", source) from e
    if not result.is_finite():
        raise PolicyConfigError(field, f"must be finite, got {value!r}", source)
    return result


def _parse_rate(value: Any, field: str, source: str | None) -> Decimal:
    rate = parse_decimal(value, field, source)
    if rate < 0 or rate > _HUNDRED:
        raise PolicyConfigError(field, f"must be between 0 and 100, got {rate}", source)
    return rate


def parse_tax_policy(data: dict[str, Any], source: str | None = None) -> TaxPolicyDef:
    """
    Parse the ``tax`` section.

    ``split_rates`` is a two-item list; when omitted the nominal rate is
    split in half.
    """
    seller = str(_require(data, "seller_jurisdiction", source)).strip()
    if not seller:
        raise PolicyConfigError("tax.seller_jurisdiction", "must not be blank", source)

    nominal = _parse_rate(_require(data, "nominal_rate", source), "tax.nominal_rate", source)

    split = data.get("split_rates")
    if split is None:
        rate_a = rate_b = nominal / 2
    else:
        if not isinstance(split, list) or len(split) != 2:
            raise PolicyConfigError(
                "tax.split_rates", f"expected two rates, got {split!r}", source
            )
        rate_a = _parse_rate(split[0], "tax.split_rates[0]", source)
        rate_b = _parse_rate(split[1], "tax.split_rates[1]", source)

    if rate_a + rate_b != nominal:
        raise PolicyConfigError(
            "tax.split_rates",
            f"{rate_a} + {rate_b} does not equal nominal rate {nominal}",
            source,
        )

    return TaxPolicyDef(
        seller_jurisdiction=seller,
        nominal_rate=nominal,
        split_rate_a=rate_a,
        split_rate_b=rate_b,
    )


def parse_promotion_policy(
    data: dict[str, Any], source: str | None = None
) -> PromotionPolicyDef:
    """Parse the optional ``promotions`` section."""
    defaults = PromotionPolicyDef()
    offer_price = defaults.offer_unit_price
    if data.get("offer_unit_price") is not None:
        offer_price = parse_decimal(
            data["offer_unit_price"], "promotions.offer_unit_price", source
        )
        if offer_price < 0:
            raise PolicyConfigError(
                "promotions.offer_unit_price", "cannot be negative", source
            )
    algorithm = str(data.get("allocation_algorithm") or defaults.allocation_algorithm)
    return PromotionPolicyDef(offer_unit_price=offer_price, allocation_algorithm=algorithm)


def parse_pricing_policy(data: dict[str, Any], source: str | None = None) -> PricingPolicy:
    """
    Parse a ``PricingPolicy`` from a YAML document.

    Raises:
        PolicyConfigError: if a required field is missing or invalid.
    """
    currency = str(_require(data, "currency", source)).upper().strip()
    if not CurrencyRegistry.is_valid(currency):
        raise PolicyConfigError("currency", f"unsupported currency {currency!r}", source)

    version = _require(data, "version", source)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise PolicyConfigError("version", f"must be a positive int, got {version!r}", source)

    tax_data = _require(data, "tax", source)
    if not isinstance(tax_data, dict):
        raise PolicyConfigError("tax", "must be a mapping", source)

    methods = data.get("payment_methods") or []
    if not isinstance(methods, list) or not methods:
        raise PolicyConfigError("payment_methods", "must be a non-empty list", source)

    effective_from = parse_date(
        _require(data, "effective_from", source), "effective_from", source
    )
    effective_to = (
        parse_date(data["effective_to"], "effective_to", source)
        if data.get("effective_to") else None
    )
    if effective_to is not None and effective_to < effective_from:
        raise PolicyConfigError("effective_to", "is before effective_from", source)

    return PricingPolicy(
        policy_id=str(_require(data, "policy_id", source)),
        version=version,
        currency=currency,
        effective_from=effective_from,
        effective_to=effective_to,
        tax=parse_tax_policy(tax_data, source),
        promotions=parse_promotion_policy(data.get("promotions") or {}, source),
        payment_methods=tuple(str(m).strip().lower() for m in methods),
        description=str(data.get("description", "")),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of a policy document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_policy(path: Path) -> PricingPolicy:
    """Load and parse one pricing policy file."""
    return parse_pricing_policy(load_yaml_file(path), source=str(path))
