"""Storefront bounded context: catalogue, coupons, pricing, orders and reporting.

Turns a shopper's cart into a priced, discounted and shipped order, keeps the
order lifecycle (status, payment and refund state machines) and derives the
dashboard rollups from the order collection.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
