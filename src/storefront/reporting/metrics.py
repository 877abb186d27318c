"""Read-side figures derived from the order collection.

All revenue and spend figures go through :func:`is_revenue_countable`, so the
customer dashboard, the admin overview, the analytics charts and the customer
list can never disagree about which orders count.

The functions take plain iterables of orders (anything with the Order
attributes) and never touch persistence.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.order.order import OrderStatus, PaymentStatus
from storefront.pricing.calculator import round_half_up
from storefront.shared.clock import as_utc, utc_now
from storefront.shared.settings import StorefrontSettings, get_settings

_INACTIVE_STATUSES = {OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value}

_MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CustomerTier(Enum):
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"


_TIERS_ABOVE_BRONZE = (CustomerTier.SILVER, CustomerTier.GOLD, CustomerTier.PLATINUM)


def is_revenue_countable(order) -> bool:
    """Paid and not refunded."""
    return order.payment_status == PaymentStatus.PAID.value and order.status != OrderStatus.REFUNDED.value


def revenue_orders(orders) -> list:
    return [order for order in orders if is_revenue_countable(order)]


def total_revenue(orders) -> int:
    return sum(order.total_price for order in revenue_orders(orders))


def customer_total_spent(orders) -> int:
    """What one customer has effectively paid, never negative."""
    return max(0, total_revenue(orders))


def active_order_count(orders) -> int:
    return sum(1 for order in orders if order.status not in _INACTIVE_STATUSES)


def loyalty_points(total_spent: int, settings: StorefrontSettings | None = None) -> int:
    settings = settings or get_settings()
    return max(0, total_spent) // settings.loyalty_point_rate


def tier_for(total_spent: int, settings: StorefrontSettings | None = None) -> CustomerTier:
    settings = settings or get_settings()
    tier = CustomerTier.BRONZE
    for threshold, candidate in zip(settings.tier_thresholds, _TIERS_ABOVE_BRONZE):
        if total_spent >= threshold:
            tier = candidate
    return tier


def average_order_value(orders) -> int:
    counted = revenue_orders(orders)
    if not counted:
        return 0
    return round_half_up(Decimal(total_revenue(counted)) / len(counted))


def repeat_customer_percentage(orders, customers) -> int:
    """Share of non-admin customers with more than one countable order, in whole percent."""
    customers = list(customers)
    if not customers:
        return 0

    counts = defaultdict(int)
    for order in revenue_orders(orders):
        counts[str(order.customer_id)] += 1

    repeat = sum(1 for customer in customers if counts[str(customer.id)] > 1)
    return round_half_up(Decimal(repeat * 100) / len(customers))


def orders_by_status(orders) -> dict:
    counts = {status.value: 0 for status in OrderStatus}
    for order in orders:
        counts[order.status] += 1
    return counts


def _month_window(as_of: datetime, months: int) -> list[tuple[int, int]]:
    """(year, month) pairs ending with the month of ``as_of``, oldest first."""
    year, month = as_of.year, as_of.month
    window = []
    for _ in range(months):
        window.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(window))


def monthly_revenue(orders, as_of: datetime | None = None, months: int | None = None) -> list[dict]:
    """Revenue and order count per calendar month, zero-filled, oldest first."""
    as_of = as_utc(as_of) or utc_now()
    months = months or get_settings().analytics_months

    window = _month_window(as_of, months)
    buckets = {key: {"revenue": 0, "orders": 0} for key in window}
    for order in revenue_orders(orders):
        created_at = as_utc(order.created_at)
        key = (created_at.year, created_at.month)
        if key in buckets:
            buckets[key]["revenue"] += order.total_price
            buckets[key]["orders"] += 1

    return [
        {
            "month": _MONTH_ABBREVIATIONS[month - 1],
            "year": year,
            "revenue": buckets[(year, month)]["revenue"],
            "orders": buckets[(year, month)]["orders"],
        }
        for year, month in window
    ]


def top_products(orders, limit: int | None = None) -> list[dict]:
    """Best sellers by revenue across countable orders, grouped by product name."""
    limit = limit or get_settings().top_products_limit

    sales = defaultdict(int)
    revenue = defaultdict(Decimal)
    for order in revenue_orders(orders):
        for item in order.items:
            sales[item.name] += item.quantity
            revenue[item.name] += Decimal(str(item.price)) * item.quantity

    ranked = sorted(revenue, key=lambda name: (-revenue[name], name))[:limit]
    return [{"name": name, "sales": sales[name], "revenue": round_half_up(revenue[name])} for name in ranked]
