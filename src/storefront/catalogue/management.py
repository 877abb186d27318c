"""Catalogue management: command and handler."""

import structlog
from protean import handle
from protean.fields import Boolean, Float, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class AddProduct:
    """Add a product to the catalogue (admin)."""

    name = String(required=True, max_length=100)
    category = String(required=True, max_length=50)
    price = Float(required=True)
    original_price = Float()
    stock = Integer(default=0)
    description = Text()
    image = String(max_length=500)
    is_featured = Boolean(default=False)


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.add(
            name=command.name,
            category=command.category,
            price=command.price,
            original_price=command.original_price,
            stock=command.stock or 0,
            description=command.description,
            image=command.image,
            is_featured=bool(command.is_featured),
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product added", product_id=str(product.id), name=product.name)
        return str(product.id)
