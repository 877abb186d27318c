"""Report cache factory.

The cache is an explicit dependency: the application builds one with
``build_report_cache()`` at startup and hands it to ``DashboardService``.
"""

import os

from storefront.reporting.cache.memory_adapter import InMemoryReportCache
from storefront.reporting.cache.port import ReportCache

__all__ = ["InMemoryReportCache", "ReportCache", "build_report_cache"]


def build_report_cache() -> ReportCache:
    """Build the adapter named by ``STOREFRONT_REPORT_CACHE`` (``memory`` by default)."""
    adapter = os.environ.get("STOREFRONT_REPORT_CACHE", "memory")
    if adapter == "memory":
        return InMemoryReportCache()
    raise ValueError(f"Unknown report cache adapter: {adapter}")
