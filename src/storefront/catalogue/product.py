"""Product aggregate: the catalogue entries that carts and coupons refer to."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.catalogue.events import ProductAdded
from storefront.domain import storefront


class ProductCategory(Enum):
    FLOWER_POTS = "Flower Pots"
    ROCKETS = "Rockets"
    GROUND_SPINNERS = "Ground Spinners"
    SPARKLERS = "Sparklers"
    BOMBS = "Bombs"
    CHAKRAS = "Chakras"
    MULTI_SHOTS = "Multi-shots"
    GIFT_BOXES = "Gift Boxes"
    ECO_FRIENDLY = "Eco-friendly"
    SAFETY_ITEMS = "Safety Items"


@storefront.aggregate
class Product:
    """A sellable item. ``price`` is the current sale price, ``original_price`` the list price."""

    name = String(required=True, max_length=100)
    description = Text()
    category = String(required=True, choices=ProductCategory)
    price = Float(required=True, min_value=0.0)
    original_price = Float(min_value=0.0)
    stock = Integer(default=0, min_value=0)
    image = String(max_length=500)
    is_active = Boolean(default=True)
    is_featured = Boolean(default=False)
    created_at = DateTime()

    @invariant.post
    def sale_price_cannot_exceed_original_price(self):
        if self.original_price is not None and self.price is not None and self.price > self.original_price:
            raise ValidationError({"price": ["Sale price cannot be higher than the original price"]})

    @classmethod
    def add(cls, name, category, price, original_price=None, stock=0, description=None, image=None, is_featured=False):
        product = cls(
            name=name,
            category=category,
            price=price,
            original_price=original_price,
            stock=stock,
            description=description,
            image=image,
            is_featured=is_featured,
            created_at=datetime.now(UTC),
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=product.name,
                category=product.category,
                price=product.price,
                stock=product.stock,
            )
        )
        return product


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_many(self, product_ids) -> list[Product]:
        """Products whose ids are in ``product_ids``; unknown ids are simply absent."""
        ids = [str(product_id) for product_id in product_ids]
        if not ids:
            return []
        return self._dao.query.filter(id__in=ids).all().items

    def count(self) -> int:
        return self._dao.query.all().total

    def in_category(self, category) -> list[Product]:
        """Active products of one category, by name."""
        return self._dao.query.filter(category=category, is_active=True).order_by("name").all().items
