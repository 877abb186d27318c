"""Application tests for customer registration and wishlist commands."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.catalogue.management import AddProduct
from storefront.customer.customer import Customer
from storefront.customer.registration import RegisterCustomer
from storefront.customer.wishlist import AddToWishlist, RemoveFromWishlist


def _register(email="priya@example.com", role="customer"):
    return current_domain.process(
        RegisterCustomer(name="Priya", email=email, role=role),
        asynchronous=False,
    )


def _product():
    return current_domain.process(
        AddProduct(name="Eco Sparklers", category="Eco-friendly", price=120.0),
        asynchronous=False,
    )


class TestRegistration:
    def test_register_customer(self):
        customer = current_domain.repository_for(Customer).get(_register(email="Priya@Example.com"))
        assert customer.email == "priya@example.com"
        assert customer.role == "customer"
        assert customer.wishlist_count == 0

    def test_email_must_be_unique(self):
        _register()
        with pytest.raises(ValidationError) as exc:
            _register(email="PRIYA@example.com")
        assert "email" in exc.value.messages

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            _register(email="not-an-email")

    def test_admins_are_not_listed_as_customers(self):
        _register(email="shopper@example.com")
        _register(email="admin@example.com", role="admin")
        customers = current_domain.repository_for(Customer).customers()
        assert [customer.email for customer in customers] == ["shopper@example.com"]


class TestWishlist:
    def test_add_and_remove(self):
        customer_id = _register()
        product_id = _product()

        current_domain.process(AddToWishlist(customer_id=customer_id, product_id=product_id), asynchronous=False)
        assert current_domain.repository_for(Customer).get(customer_id).wishlist_product_ids == [product_id]

        current_domain.process(
            RemoveFromWishlist(customer_id=customer_id, product_id=product_id),
            asynchronous=False,
        )
        assert current_domain.repository_for(Customer).get(customer_id).wishlist_count == 0

    def test_duplicate_is_rejected(self):
        customer_id = _register()
        product_id = _product()
        current_domain.process(AddToWishlist(customer_id=customer_id, product_id=product_id), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(
                AddToWishlist(customer_id=customer_id, product_id=product_id),
                asynchronous=False,
            )

    def test_unknown_product_is_rejected(self):
        customer_id = _register()
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(AddToWishlist(customer_id=customer_id, product_id="ghost"), asynchronous=False)

    def test_removing_absent_product_fails(self):
        customer_id = _register()
        with pytest.raises(ValidationError):
            current_domain.process(
                RemoveFromWishlist(customer_id=customer_id, product_id=_product()),
                asynchronous=False,
            )
