"""Dashboard reports for customers and administrators.

``DashboardService`` loads the relevant aggregates, derives the figures with
:mod:`storefront.reporting.metrics` and keeps the result in the injected
:class:`ReportCache` for ``report_cache_ttl_seconds``.
"""

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.customer.customer import Customer
from storefront.order.order import Order, PaymentStatus
from storefront.reporting import metrics
from storefront.reporting.cache import ReportCache
from storefront.shared.clock import as_utc
from storefront.shared.settings import StorefrontSettings, get_settings

CUSTOMER_OVERVIEW_KEY = "overview:{customer_id}"
ADMIN_OVERVIEW_KEY = "admin:dashboard:overview"
ADMIN_ANALYTICS_KEY = "admin:analytics"
ADMIN_CUSTOMERS_KEY = "admin:customers"
ADMIN_ORDER_STATS_KEY = "admin:order-stats"

_UNSETTLED_PAYMENTS = {PaymentStatus.PENDING.value, PaymentStatus.PENDING_VERIFICATION.value}


def order_summary(order) -> dict:
    created_at = as_utc(order.created_at)
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_id": str(order.customer_id),
        "status": order.status,
        "payment_status": order.payment_status,
        "total_price": order.total_price,
        "item_count": sum(item.quantity for item in order.items),
        "created_at": created_at.isoformat() if created_at else None,
    }


class DashboardService:
    def __init__(self, cache: ReportCache, settings: StorefrontSettings | None = None) -> None:
        self.cache = cache
        self.settings = settings or get_settings()

    def _cached(self, key, compute):
        return self.cache.get_or_compute(key, compute, self.settings.report_cache_ttl_seconds)

    def _recent(self, orders) -> list[dict]:
        newest_first = sorted(orders, key=lambda order: as_utc(order.created_at), reverse=True)
        return [order_summary(order) for order in newest_first[: self.settings.recent_orders_limit]]

    # -------------------------------------------------------------------
    # Customer
    # -------------------------------------------------------------------
    def customer_overview(self, customer_id) -> dict:
        def compute():
            customer = current_domain.repository_for(Customer).get(customer_id)
            orders = current_domain.repository_for(Order).for_customer(customer_id)
            spent = metrics.customer_total_spent(orders)
            return {
                "order_count": metrics.active_order_count(orders),
                "total_spent": spent,
                "wishlist_count": customer.wishlist_count,
                "loyalty_points": metrics.loyalty_points(spent, self.settings),
                "tier": metrics.tier_for(spent, self.settings).value,
                "recent_orders": self._recent(orders),
            }

        return self._cached(CUSTOMER_OVERVIEW_KEY.format(customer_id=customer_id), compute)

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def admin_overview(self) -> dict:
        def compute():
            orders = current_domain.repository_for(Order).everything()
            customers = current_domain.repository_for(Customer).customers()
            return {
                "total_revenue": metrics.total_revenue(orders),
                "total_orders": len(orders),
                "total_products": current_domain.repository_for(Product).count(),
                "active_customers": sum(1 for customer in customers if customer.is_active),
                "recent_orders": self._recent(orders),
            }

        return self._cached(ADMIN_OVERVIEW_KEY, compute)

    def analytics(self) -> dict:
        def compute():
            orders = current_domain.repository_for(Order).everything()
            return {
                "monthly_revenue": metrics.monthly_revenue(orders, months=self.settings.analytics_months),
                "top_products": metrics.top_products(orders, limit=self.settings.top_products_limit),
            }

        return self._cached(ADMIN_ANALYTICS_KEY, compute)

    def customer_statistics(self) -> dict:
        """Customer list with per-customer figures and list-wide statistics."""

        def compute():
            orders = current_domain.repository_for(Order).everything()
            customers = current_domain.repository_for(Customer).customers()

            orders_by_customer = {}
            for order in orders:
                orders_by_customer.setdefault(str(order.customer_id), []).append(order)

            rows = []
            for customer in sorted(customers, key=lambda c: as_utc(c.registered_at), reverse=True):
                own_orders = orders_by_customer.get(str(customer.id), [])
                spent = metrics.customer_total_spent(own_orders)
                rows.append(
                    {
                        "id": str(customer.id),
                        "name": customer.name,
                        "email": customer.email,
                        "is_active": customer.is_active,
                        "order_count": metrics.active_order_count(own_orders),
                        "total_spent": spent,
                        "loyalty_points": metrics.loyalty_points(spent, self.settings),
                        "tier": metrics.tier_for(spent, self.settings).value,
                    }
                )

            return {
                "customers": rows,
                "stats": {
                    "total_customers": len(customers),
                    "active_customers": sum(1 for customer in customers if customer.is_active),
                    "avg_order_value": metrics.average_order_value(orders),
                    "repeat_customer_percentage": metrics.repeat_customer_percentage(orders, customers),
                },
            }

        return self._cached(ADMIN_CUSTOMERS_KEY, compute)

    def order_statistics(self) -> dict:
        def compute():
            orders = current_domain.repository_for(Order).everything()
            return {
                "total_orders": len(orders),
                "by_status": metrics.orders_by_status(orders),
                "paid_orders": sum(1 for order in orders if order.payment_status == PaymentStatus.PAID.value),
                "pending_payments": sum(1 for order in orders if order.payment_status in _UNSETTLED_PAYMENTS),
                "total_revenue": metrics.total_revenue(orders),
            }

        return self._cached(ADMIN_ORDER_STATS_KEY, compute)
