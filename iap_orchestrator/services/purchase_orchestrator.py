"""Purchase Orchestrator - coordinates the purchase store and receipt validator.

Responsibilities:
- Product info lookups
- Purchase flows (IDLE -> REQUESTING -> PURCHASED / FAILED / CANCELLED)
- Finishing transactions on the caller's request, never on its own
- Bulk restores
- Receipt verification and classification of the verified receipt

Every failure is returned to the caller as a typed result. Nothing is retried.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from iap_orchestrator.logging_config import flow_context, get_logger
from iap_orchestrator.models import (
    ClassificationResult,
    ProductInfoError,
    ProductInfoInvalidIdentifier,
    ProductInfoResult,
    ProductInfoRetrieved,
    PurchaseCancelled,
    PurchaseFailure,
    PurchaseFlowState,
    ProductKind,
    PurchaseResult,
    ReceiptFailure,
    ReceiptRecord,
    ReceiptResult,
    RestoreOutcome,
    TransactionRef,
    ValidationService,
    VerifyPurchaseOutcome,
)
from iap_orchestrator.repositories.product_catalog import ProductCatalog, get_product_catalog
from iap_orchestrator.repositories.purchase_store import PurchaseStore
from iap_orchestrator.services import subscription_classifier
from iap_orchestrator.services.clock import Clock, SystemClock
from iap_orchestrator.services.network_activity import NetworkActivityObserver
from iap_orchestrator.services.receipt_validator import ReceiptValidator
from iap_orchestrator.state_logger import (
    log_flow_state_change,
    log_receipt_result,
    log_restore_outcome,
    log_transaction_finish,
)

logger = get_logger(__name__)

UNKNOWN_ERROR = "Unknown error. Please contact support"


def _require_identifier(identifier: str) -> str:
    if not identifier or not isinstance(identifier, str):
        raise ValueError("Product identifier must be a non-empty string")
    return identifier


class PurchaseOrchestrator:
    """Composition root for purchase, restore and verification flows.

    Args:
        purchase_store: Platform purchase queue
        receipt_validator: Remote receipt validation authority
        shared_secret: App-specific shared secret passed to the validator
        validation_service: Validation endpoint (fixed for the orchestrator's lifetime)
        catalog: Product catalog for verify_purchase (defaults to global instance)
        clock: Reference time source (defaults to wall clock)
        activity_observer: Optional network activity observer
    """

    def __init__(
            self,
            purchase_store: PurchaseStore,
            receipt_validator: ReceiptValidator,
            shared_secret: Optional[str] = None,
            validation_service: ValidationService = ValidationService.PRODUCTION,
            catalog: Optional[ProductCatalog] = None,
            clock: Optional[Clock] = None,
            activity_observer: Optional[NetworkActivityObserver] = None,
    ):
        self._store = purchase_store
        self._validator = receipt_validator
        self._shared_secret = shared_secret
        self._validation_service = validation_service
        self._catalog = catalog  # Lazy loaded, only verify_purchase needs it
        self._clock = clock or SystemClock()
        self._observer = activity_observer

    @property
    def validation_service(self) -> ValidationService:
        return self._validation_service

    def _get_catalog(self) -> ProductCatalog:
        """lazy load product catalog so the core works without a products.yaml"""
        if self._catalog is None:
            self._catalog = get_product_catalog()
        return self._catalog

    def _notify(self, method: str, operation: str) -> None:
        if self._observer is None:
            return
        try:
            getattr(self._observer, method)(operation)
        except Exception as e:
            # Observer failures never affect the operation
            logger.error(
                "network_activity_observer_failed",
                operation=operation,
                error=str(e),
                exc_info=True,
            )

    @asynccontextmanager
    async def _network_activity(self, operation: str) -> AsyncIterator[None]:
        self._notify("operation_started", operation)
        try:
            yield
        finally:
            self._notify("operation_finished", operation)

    async def request_product_info(self, identifier: str) -> ProductInfoResult:
        """Look up store metadata for one product.

        Returns:
            ProductInfoRetrieved, ProductInfoInvalidIdentifier or ProductInfoError
        """
        _require_identifier(identifier)
        with flow_context("product_info", product_id=identifier):
            async with self._network_activity("product_info"):
                results = await self._store.request_product_info({identifier})

            if results.retrieved_products:
                return ProductInfoRetrieved(product=results.retrieved_products[0])
            if results.invalid_product_ids:
                logger.info("product_identifier_invalid", invalid_id=results.invalid_product_ids[0])
                return ProductInfoInvalidIdentifier(product_id=results.invalid_product_ids[0])
            logger.warning("product_info_failed", error=results.error)
            return ProductInfoError(cause=results.error or UNKNOWN_ERROR)

    async def purchase(self, identifier: str, atomically: bool = True) -> PurchaseResult:
        """Purchase a product.

        On PurchaseSuccess with ``needs_finish_transaction`` set, the caller
        delivers the content and then calls ``finish``. The orchestrator never
        finishes a transaction by itself.

        Args:
            identifier: Full product identifier
            atomically: Passed through to the store unchanged

        Returns:
            PurchaseSuccess, PurchaseCancelled or PurchaseFailure
        """
        _require_identifier(identifier)
        with flow_context("purchase", product_id=identifier):
            log_flow_state_change(
                identifier, PurchaseFlowState.IDLE, PurchaseFlowState.REQUESTING, atomically=atomically
            )

            async with self._network_activity("purchase"):
                result = await self._store.initiate_purchase(identifier, atomically)

            if isinstance(result, PurchaseFailure):
                if result.error.is_cancellation:
                    log_flow_state_change(
                        identifier,
                        PurchaseFlowState.REQUESTING,
                        PurchaseFlowState.CANCELLED,
                        reason=result.error.code.value,
                    )
                    return PurchaseCancelled(product_id=identifier)
                log_flow_state_change(
                    identifier,
                    PurchaseFlowState.REQUESTING,
                    PurchaseFlowState.FAILED,
                    reason=result.error.code.value,
                    message=result.error.message,
                )
                return result

            log_flow_state_change(
                identifier,
                PurchaseFlowState.REQUESTING,
                PurchaseFlowState.PURCHASED,
                transaction_id=result.purchase.transaction.transaction_id,
                needs_finish_transaction=result.purchase.needs_finish_transaction,
            )
            return result

    async def finish(self, transaction: TransactionRef) -> None:
        """Finish a transaction after its content has been delivered.

        Finishing the same transaction twice is a caller error and is not
        guarded against here.
        """
        with flow_context("finish", product_id=transaction.product_id):
            log_transaction_finish(transaction)
            async with self._network_activity("finish_transaction"):
                await self._store.finish_transaction(transaction)
            log_flow_state_change(
                transaction.product_id,
                PurchaseFlowState.PURCHASED,
                PurchaseFlowState.FINISHED,
                reason="delivered",
                transaction_id=transaction.transaction_id,
            )

    async def restore(self, atomically: bool = True) -> RestoreOutcome:
        """Restore previous purchases.

        Records with ``needs_finish_transaction`` are left for the caller to
        finish after re-delivering their content.
        """
        with flow_context("restore"):
            async with self._network_activity("restore"):
                outcome = await self._store.restore_purchases(atomically)
            log_restore_outcome(outcome, atomically)
            return outcome

    async def verify_receipt(self) -> ReceiptResult:
        """Validate the receipt with the configured service and shared secret."""
        with flow_context("verify_receipt"):
            async with self._network_activity("verify_receipt"):
                result = await self._validator.verify(self._validation_service, self._shared_secret)
            log_receipt_result(result, self._validation_service.value)
            return result

    def classify(
            self,
            kind: ProductKind,
            identifier: str,
            receipt: ReceiptRecord,
            reference_time: Optional[datetime] = None,
    ) -> ClassificationResult:
        """Classify a product in a validated receipt.

        Subscription kinds produce a SubscriptionStatus, every other kind a
        PurchaseStatus. ``reference_time`` defaults to the orchestrator's clock.
        """
        _require_identifier(identifier)
        if reference_time is None:
            reference_time = self._clock.now()
        return subscription_classifier.classify(kind, identifier, receipt, reference_time)

    async def verify_purchase(
            self, identifier: str, reference_time: Optional[datetime] = None
    ) -> VerifyPurchaseOutcome:
        """Verify the receipt, then classify a catalog product in it.

        Raises:
            ProductNotFoundError: If identifier is not in the catalog
        """
        _require_identifier(identifier)
        kind = self._get_catalog().kind_for(identifier)

        with flow_context("verify_purchase", product_id=identifier, kind=kind.type):
            result = await self.verify_receipt()
            if isinstance(result, ReceiptFailure):
                return VerifyPurchaseOutcome(product_id=identifier, error=result.error)

            status = self.classify(kind, identifier, result.receipt, reference_time)
            logger.info("purchase_verified", state=status.state.value)
            return VerifyPurchaseOutcome(product_id=identifier, status=status)
