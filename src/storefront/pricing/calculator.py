"""Cart pricing: the single place where subtotal, discount, shipping and total are derived.

Coupon validation, order placement and the checkout preview all price a cart
through :func:`price_cart`, so the post-discount subtotal that decides the
shipping fee is always the same number.

Arithmetic is exact (``Decimal``) until a figure is returned, and the
free-shipping decision is taken on the exact post-discount subtotal. Returned money
values are whole currency units rounded half up, and derived figures are
computed from the rounded components so that

    discounted_total == original_total - total_discount
    total == discounted_total + tax + shipping

hold exactly on the returned integers.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

from storefront.shared.settings import StorefrontSettings, get_settings

_HUNDRED = Decimal(100)


def to_decimal(value) -> Decimal:
    """Exact decimal for an int, float, str or Decimal amount."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value) -> int:
    return int(to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CartLine:
    """One product in a cart with the unit price captured when it was added."""

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    image: str | None = None

    def __post_init__(self):
        errors = {}
        if not self.product_id:
            errors["product_id"] = ["Product is required"]
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) or self.quantity < 1:
            errors["quantity"] = [f"Quantity must be at least 1 for {self.name or self.product_id}"]
        try:
            price = to_decimal(self.unit_price)
        except (ArithmeticError, ValueError):
            errors["price"] = [f"Price must be a number for {self.name or self.product_id}"]
        else:
            if price < 0:
                errors["price"] = [f"Price cannot be negative for {self.name or self.product_id}"]
            object.__setattr__(self, "unit_price", price)
        if errors:
            raise ValidationError(errors)
        object.__setattr__(self, "product_id", str(self.product_id))

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Accept both cart (`product`, `price`) and order (`product_id`, `unit_price`) spellings."""
        return cls(
            product_id=data.get("product_id") or data.get("product"),
            name=data.get("name", ""),
            unit_price=data.get("unit_price", data.get("price", 0)),
            quantity=data.get("quantity", 1),
            image=data.get("image"),
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def cart_lines(items: list[dict]) -> list[CartLine]:
    """Build cart lines, rejecting empty carts and duplicate products."""
    if not items:
        raise ValidationError({"items": ["Cart must contain at least one item"]})
    lines = [CartLine.from_dict(item) for item in items]
    seen = set()
    for line in lines:
        if line.product_id in seen:
            raise ValidationError({"items": [f"Product {line.product_id} appears more than once"]})
        seen.add(line.product_id)
    return lines


@dataclass(frozen=True)
class Discount:
    """A percentage discount, optionally restricted to some products (empty = all)."""

    percentage: int
    applicable_products: frozenset = field(default_factory=frozenset)

    def applies_to(self, product_id: str) -> bool:
        return not self.applicable_products or str(product_id) in self.applicable_products


@dataclass(frozen=True)
class LineDiscount:
    product_id: str
    name: str
    original_price: int
    discounted_price: int
    discount: int
    quantity: int

    def to_dict(self) -> dict:
        return {
            "product": self.product_id,
            "name": self.name,
            "original_price": self.original_price,
            "discounted_price": self.discounted_price,
            "discount": self.discount,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class PriceBreakdown:
    original_total: int
    total_discount: int
    discounted_total: int
    shipping: int
    tax: int
    total: int
    applicable_lines: tuple[LineDiscount, ...] = ()


@dataclass(frozen=True)
class OrderTotals:
    """The pricing fields persisted on an order."""

    items_price: int  # net of discount_amount
    discount_amount: int
    tax_price: int
    shipping_price: int
    total_price: int

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> "OrderTotals":
        return cls(
            items_price=breakdown.discounted_total,
            discount_amount=breakdown.total_discount,
            tax_price=breakdown.tax,
            shipping_price=breakdown.shipping,
            total_price=breakdown.total,
        )

    def as_dict(self) -> dict:
        return {
            "items_price": self.items_price,
            "discount_amount": self.discount_amount,
            "tax_price": self.tax_price,
            "shipping_price": self.shipping_price,
            "total_price": self.total_price,
        }


def shipping_for(subtotal: int | Decimal, settings: StorefrontSettings | None = None) -> int:
    """Flat fee below the free-shipping threshold, nothing at or above it."""
    settings = settings or get_settings()
    return 0 if subtotal >= settings.free_shipping_threshold else settings.flat_shipping_fee


def price_cart(
    lines: list[CartLine],
    discount: Discount | None = None,
    settings: StorefrontSettings | None = None,
) -> PriceBreakdown:
    settings = settings or get_settings()

    original = Decimal(0)
    discount_total = Decimal(0)
    applicable = []

    for line in lines:
        original += line.line_total
        if discount is None or not discount.applies_to(line.product_id):
            continue

        rate = Decimal(discount.percentage) / _HUNDRED
        discount_total += line.line_total * rate
        unit_discount = line.unit_price * rate
        applicable.append(
            LineDiscount(
                product_id=line.product_id,
                name=line.name,
                original_price=round_half_up(line.unit_price),
                discounted_price=round_half_up(line.unit_price - unit_discount),
                discount=round_half_up(unit_discount),
                quantity=line.quantity,
            )
        )

    # Shipping is decided on the exact subtotal, before any rounding
    shipping = shipping_for(original - min(discount_total, original), settings)

    original_total = round_half_up(original)
    total_discount = min(round_half_up(discount_total), original_total)
    discounted_total = original_total - total_discount
    tax = 0

    return PriceBreakdown(
        original_total=original_total,
        total_discount=total_discount,
        discounted_total=discounted_total,
        shipping=shipping,
        tax=tax,
        total=discounted_total + tax + shipping,
        applicable_lines=tuple(applicable),
    )


def compute_order_totals(
    lines: list[CartLine],
    discount: Discount | None = None,
    settings: StorefrontSettings | None = None,
) -> OrderTotals:
    """Totals for an order; ``items_price`` is always net of the discount."""
    return OrderTotals.from_breakdown(price_cart(lines, discount, settings))
