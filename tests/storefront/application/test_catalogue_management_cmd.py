"""Application tests for adding products to the catalogue."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue import management
from storefront.catalogue.management import AddProduct
from storefront.catalogue.product import Product


class RecordingLogger:
    def __init__(self):
        self.records = []

    def info(self, event, **kwargs):
        self.records.append((event, kwargs))


def _add(**overrides):
    fields = {"name": "Flower Pots", "category": "Ground", "price": 80.0, "stock": 40}
    fields.update(overrides)
    return current_domain.process(AddProduct(**fields), asynchronous=False)


class TestAddProduct:
    def test_product_is_stored_active(self):
        product = current_domain.repository_for(Product).get(_add())
        assert product.name == "Flower Pots"
        assert product.stock == 40
        assert product.is_active is True

    def test_sale_price_above_original_is_rejected(self):
        with pytest.raises(ValidationError):
            _add(price=120.0, original_price=100.0)

    def test_addition_is_logged_by_the_module_logger(self, monkeypatch):
        recorder = RecordingLogger()
        monkeypatch.setattr(management, "logger", recorder)

        product_id = _add()

        assert recorder.records == [("Product added", {"product_id": product_id, "name": "Flower Pots"})]
