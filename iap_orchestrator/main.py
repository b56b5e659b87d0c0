"""Orchestrator construction from configuration."""

import os
from typing import Optional

import httpx

from iap_orchestrator.config import Config, get_config
from iap_orchestrator.logging_config import configure_logging, get_logger
from iap_orchestrator.models import ValidationService
from iap_orchestrator.repositories.product_catalog import ProductCatalog
from iap_orchestrator.repositories.purchase_store import PurchaseStore
from iap_orchestrator.services.clock import Clock
from iap_orchestrator.services.network_activity import NetworkActivityObserver
from iap_orchestrator.services.purchase_orchestrator import PurchaseOrchestrator
from iap_orchestrator.services.receipt_validator import AppleReceiptValidator, ReceiptSource

logger = get_logger(__name__)


def setup_logging() -> None:
    """Configure logging from LOG_LEVEL / LOG_FORMAT."""
    log_level = os.getenv("LOG_LEVEL", "INFO")
    json_format = os.getenv("LOG_FORMAT", "json").lower() == "json"
    configure_logging(log_level=log_level, json_format=json_format)


def create_orchestrator(
    purchase_store: PurchaseStore,
    receipt_source: ReceiptSource,
    config: Optional[Config] = None,
    shared_secret: Optional[str] = None,
    service: Optional[ValidationService] = None,
    client: Optional[httpx.AsyncClient] = None,
    clock: Optional[Clock] = None,
    activity_observer: Optional[NetworkActivityObserver] = None,
) -> PurchaseOrchestrator:
    """Create a PurchaseOrchestrator wired from configuration.

    Args:
        purchase_store: Platform purchase queue
        receipt_source: Where the validator reads the local receipt from
        config: Configuration (defaults to global instance)
        shared_secret: Overrides the secret read from the configured env var
        service: Overrides the configured validation endpoint
        client: Optional shared httpx client for the validator
        clock: Reference time source
        activity_observer: Optional network activity observer

    Returns:
        Configured orchestrator
    """
    config = config or get_config()
    settings = config.validator_settings

    validator = AppleReceiptValidator(
        receipt_source,
        client=client,
        timeout_seconds=settings.timeout_seconds,
        sandbox_fallback=settings.sandbox_fallback,
    )
    orchestrator = PurchaseOrchestrator(
        purchase_store=purchase_store,
        receipt_validator=validator,
        shared_secret=shared_secret if shared_secret is not None else config.shared_secret,
        validation_service=service or config.validation_service,
        catalog=ProductCatalog(config),
        clock=clock,
        activity_observer=activity_observer,
    )

    logger.info(
        "orchestrator_created",
        bundle_id=config.bundle_id,
        service=orchestrator.validation_service.value,
        shared_secret_configured=bool(shared_secret or config.shared_secret),
    )
    return orchestrator
