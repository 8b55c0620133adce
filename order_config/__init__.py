"""
order_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the ONLY way to obtain pricing policy at runtime through
    ``get_active_policy()``.  No other component reads policy files
    directly.  YAML loading is internal tooling.

Architecture position:
    Configuration -- sits above ``order_kernel`` and beside
    ``order_engines``.  Engines MUST NEVER import from ``order_config``;
    ``order_config.bridges`` translates a policy into engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_policy()``.
    - Exactly one policy is active for a date: the effective policy with
      the latest ``effective_from`` (ties broken by highest version).

Failure modes:
    - ``FileNotFoundError`` -- no policy directory, or no policy effective
      on the requested date.
    - ``PolicyConfigError`` -- a policy file is missing a field or is
      inconsistent.

Audit relevance:
    Every successful ``get_active_policy()`` call emits an
    ``ORDER_CONFIG_TRACE`` log entry with the policy id, version and
    checksum, tying every priced order to the policy that priced it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from order_config.loader import load_policy
from order_config.schema import PricingPolicy
from order_kernel.exceptions import PolicyConfigError
from order_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default policy sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_policy(
    as_of_date: date,
    config_dir: Path | None = None,
) -> PricingPolicy:
    """The ONLY public configuration entrypoint.

    Non-goals:
        - This function does NOT cache policies across calls; callers hold
          the returned policy for the duration of an order session.

    Args:
        as_of_date: Date the policy must be effective on.
        config_dir: Override path to the policy directory.
            Defaults to order_config/sets/.

    Returns:
        The active PricingPolicy.

    Raises:
        FileNotFoundError: If no policy is effective on ``as_of_date``.
        PolicyConfigError: If a policy file fails to parse.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    policy = _find_active_policy(sets_dir, as_of_date)

    _logger.info(
        "ORDER_CONFIG_TRACE",
        extra={
            "trace_type": "ORDER_CONFIG_TRACE",
            "policy_id": policy.policy_id,
            "policy_version": policy.version,
            "checksum": policy.checksum,
            "currency": policy.currency,
            "seller_jurisdiction": policy.tax.seller_jurisdiction,
            "as_of_date": as_of_date.isoformat(),
        },
    )
    return policy


def _load_checked(path: Path) -> PricingPolicy:
    try:
        return load_policy(path)
    except PolicyConfigError:
        _logger.error("policy_file_rejected", exc_info=True, extra={"path": str(path)})
        raise


def _find_active_policy(sets_dir: Path, as_of_date: date) -> PricingPolicy:
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Pricing policy directory not found: {sets_dir}")

    candidates = [
        policy
        for policy in (_load_checked(path) for path in sorted(sets_dir.glob("*.yaml")))
        if policy.is_effective_on(as_of_date)
    ]
    if not candidates:
        raise FileNotFoundError(
            f"No pricing policy in {sets_dir} is effective on {as_of_date.isoformat()}"
        )
    return max(candidates, key=lambda p: (p.effective_from, p.version))


__all__ = ["PricingPolicy", "get_active_policy"]
