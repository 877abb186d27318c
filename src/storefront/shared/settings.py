"""Named business configuration consumed by pricing and reporting.

Values default to the storefront's published rules and can be overridden per
deployment with ``STOREFRONT_*`` environment variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class StorefrontSettings:
    free_shipping_threshold: int = 2000
    flat_shipping_fee: int = 150
    loyalty_point_rate: int = 10  # currency units per loyalty point
    tier_thresholds: tuple[int, int, int] = (5000, 10000, 15000)  # Silver, Gold, Platinum
    report_cache_ttl_seconds: int = 60
    estimated_delivery_days: int = 3
    recent_orders_limit: int = 10
    analytics_months: int = 6
    top_products_limit: int = 5
    currency: str = "INR"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _thresholds_env(name: str, default: tuple[int, int, int]) -> tuple[int, int, int]:
    raw = os.getenv(name)
    if not raw:
        return default
    parts = tuple(int(part) for part in raw.split(","))
    if len(parts) != 3 or list(parts) != sorted(parts):
        raise ValueError(f"{name} must be three ascending integers, got {raw!r}")
    return parts


def load_settings() -> StorefrontSettings:
    """Build settings from defaults overlaid with environment overrides."""
    defaults = StorefrontSettings()
    return StorefrontSettings(
        free_shipping_threshold=_int_env("STOREFRONT_FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold),
        flat_shipping_fee=_int_env("STOREFRONT_FLAT_SHIPPING_FEE", defaults.flat_shipping_fee),
        loyalty_point_rate=_int_env("STOREFRONT_LOYALTY_POINT_RATE", defaults.loyalty_point_rate),
        tier_thresholds=_thresholds_env("STOREFRONT_TIER_THRESHOLDS", defaults.tier_thresholds),
        report_cache_ttl_seconds=_int_env("STOREFRONT_REPORT_CACHE_TTL", defaults.report_cache_ttl_seconds),
        estimated_delivery_days=_int_env("STOREFRONT_ESTIMATED_DELIVERY_DAYS", defaults.estimated_delivery_days),
        recent_orders_limit=_int_env("STOREFRONT_RECENT_ORDERS_LIMIT", defaults.recent_orders_limit),
        analytics_months=_int_env("STOREFRONT_ANALYTICS_MONTHS", defaults.analytics_months),
        top_products_limit=_int_env("STOREFRONT_TOP_PRODUCTS_LIMIT", defaults.top_products_limit),
        currency=os.getenv("STOREFRONT_CURRENCY", defaults.currency),
    )


@lru_cache(maxsize=1)
def get_settings() -> StorefrontSettings:
    """Return the process settings, loading them on first use."""
    return load_settings()


def reset_settings() -> None:
    """Forget memoised settings so the next call re-reads the environment."""
    get_settings.cache_clear()
