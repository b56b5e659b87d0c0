"""Shared fixtures: shipped configuration, catalog and receipt builders."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from iap_orchestrator.config import Config, reset_config
from iap_orchestrator.logging_config import configure_logging
from iap_orchestrator.models import ReceiptEntry, ReceiptRecord
from iap_orchestrator.repositories.product_catalog import ProductCatalog, reset_product_catalog

BUNDLE_ID = "com.musevisions.iOS.SwiftyStoreKit"
CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "products.yaml"


def product_id(name: str) -> str:
    return f"{BUNDLE_ID}.{name}"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_entry(
    name: str,
    purchase_date: datetime,
    expires_date=None,
    transaction_id: str = "",
    cancellation_date=None,
) -> ReceiptEntry:
    return ReceiptEntry(
        product_id=product_id(name),
        transaction_id=transaction_id,
        purchase_date=purchase_date,
        expires_date=expires_date,
        cancellation_date=cancellation_date,
    )


def make_receipt(*entries: ReceiptEntry) -> ReceiptRecord:
    return ReceiptRecord(entries=list(entries), bundle_id=BUNDLE_ID, environment="Sandbox")


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Console logging at WARNING keeps test output readable."""
    configure_logging(log_level="WARNING", json_format=False)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Never leak global config/catalog between tests."""
    reset_config()
    reset_product_catalog()
    yield
    reset_config()
    reset_product_catalog()


@pytest.fixture
def config():
    return Config(str(CONFIG_PATH))


@pytest.fixture
def catalog(config):
    return ProductCatalog(config)


@pytest.fixture
def reference_time():
    return utc(2024, 6, 1)


@pytest.fixture
def yearly_receipt():
    """One AutoRenewableYearly entry expiring 2025-01-01."""
    return make_receipt(
        make_entry(
            "autoRenewableYearly",
            purchase_date=utc(2024, 1, 1),
            expires_date=utc(2025, 1, 1),
            transaction_id="1000000000000001",
        )
    )


ONE_MINUTE = timedelta(seconds=60)
