"""Tests for the product catalog."""

import pytest

from conftest import BUNDLE_ID, CONFIG_PATH, product_id
from iap_orchestrator.config import get_config
from iap_orchestrator.models import AutoRenewableSubscription, NonRenewingSubscription
from iap_orchestrator.repositories.product_catalog import (
    ProductNotFoundError,
    get_product_catalog,
    reset_product_catalog,
)


class TestLookups:
    """Test identifier resolution."""

    def test_identifier_composition(self, catalog):
        assert catalog.identifier_for("purchase1") == f"{BUNDLE_ID}.purchase1"
        assert catalog.bundle_id == BUNDLE_ID

    def test_empty_name_rejected(self, catalog):
        with pytest.raises(ValueError):
            catalog.identifier_for("")

    def test_get_by_id(self, catalog):
        product = catalog.get_by_id(product_id("autoRenewableYearly"))
        assert product.name == "autoRenewableYearly"
        assert product.title == "Auto Renewable Yearly"

    def test_unknown_product(self, catalog):
        with pytest.raises(ProductNotFoundError, match="Product not found"):
            catalog.get_by_id("com.example.unknown")

    def test_kind_for(self, catalog):
        assert catalog.kind_for(product_id("autoRenewableMonthly")) == AutoRenewableSubscription()
        assert catalog.kind_for(product_id("nonRenewingPurchase")) == NonRenewingSubscription(
            valid_duration_seconds=60
        )


class TestListing:
    """Test listing."""

    def test_all_product_ids(self, catalog):
        ids = catalog.get_all_product_ids()
        assert len(ids) == len(catalog) == 8
        assert all(pid.startswith(BUNDLE_ID + ".") for pid in ids)

    def test_contains(self, catalog):
        assert product_id("purchase1") in catalog
        assert "purchase1" not in catalog

    def test_repr(self, catalog):
        assert "products=8" in repr(catalog)


class TestGlobalCatalog:
    """Test the global catalog instance."""

    def test_singleton(self):
        first = get_product_catalog(get_config(str(CONFIG_PATH)))
        assert get_product_catalog() is first
        reset_product_catalog()
        assert get_product_catalog() is not first
