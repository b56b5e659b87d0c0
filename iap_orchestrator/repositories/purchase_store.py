"""Purchase store - the platform purchase queue the orchestrator talks to.

``PurchaseStore`` is the abstract boundary. ``InMemoryPurchaseStore`` emulates
a payment queue in memory for local runs and tests: it hands out transactions,
keeps unfinished ones pending until they are finished, and replays owned
products on restore.
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, List, Optional, Set

from iap_orchestrator.logging_config import get_logger
from iap_orchestrator.models import (
    ProductInfo,
    PurchaseError,
    PurchaseErrorCode,
    PurchaseFailure,
    PurchaseRecord,
    PurchaseSuccess,
    RestoreFailure,
    RestoreOutcome,
    RetrieveResults,
    StorePurchaseResult,
    TransactionRef,
)
from iap_orchestrator.utils.transaction_ids import generate_transaction_id, truncate_for_log

logger = get_logger(__name__)


class PurchaseStore(ABC):
    """Platform purchase queue.

    Every method is a single-shot asynchronous call. Implementations report
    failures as result values, not exceptions.
    """

    @abstractmethod
    async def request_product_info(self, product_ids: Set[str]) -> RetrieveResults:
        """Look up store metadata for a set of product identifiers."""

    @abstractmethod
    async def initiate_purchase(self, product_id: str, atomically: bool) -> StorePurchaseResult:
        """Start a purchase.

        Args:
            product_id: Full product identifier
            atomically: If True the store finishes the transaction itself before
                returning; otherwise it stays pending until finish_transaction

        Returns:
            PurchaseSuccess, or PurchaseFailure (user cancellation arrives as
            PurchaseErrorCode.PAYMENT_CANCELLED)
        """

    @abstractmethod
    async def finish_transaction(self, transaction: TransactionRef) -> None:
        """Acknowledge delivery of a transaction, removing it from the pending queue."""

    @abstractmethod
    async def restore_purchases(self, atomically: bool) -> RestoreOutcome:
        """Replay previously completed purchases."""


class InMemoryPurchaseStore(PurchaseStore):
    """In-memory payment queue.

    Thread-safe; scripted failures let callers exercise every error path.
    """

    def __init__(self, products: Optional[Iterable[ProductInfo]] = None):
        """Initialize store.

        Args:
            products: Products available for sale (consumables can be added with add_product)
        """
        self._lock = threading.RLock()
        self._products: Dict[str, ProductInfo] = {}
        self._consumables: Set[str] = set()
        self._owned: Dict[str, PurchaseRecord] = {}
        self._pending: Dict[str, TransactionRef] = {}
        self._finished: Set[str] = set()
        self._purchase_failures: Dict[str, Deque[PurchaseError]] = defaultdict(deque)
        self._restore_failures: Dict[str, PurchaseError] = {}
        self._lookup_error: Optional[str] = None

        for product in products or ():
            self.add_product(product)

    # Scripting

    def add_product(self, product: ProductInfo, consumable: bool = False) -> None:
        """Make a product available for sale.

        Consumables are never replayed by restore_purchases.
        """
        with self._lock:
            self._products[product.product_id] = product
            if consumable:
                self._consumables.add(product.product_id)
            else:
                self._consumables.discard(product.product_id)

    def fail_next_purchase(self, product_id: str, error: PurchaseError) -> None:
        """Queue a failure for the next purchase of product_id."""
        with self._lock:
            self._purchase_failures[product_id].append(error)

    def fail_restore(self, product_id: str, error: PurchaseError) -> None:
        """Make restores of product_id fail until cleared."""
        with self._lock:
            self._restore_failures[product_id] = error

    def fail_lookups(self, error: Optional[str]) -> None:
        """Make product info lookups fail with error (None clears it)."""
        with self._lock:
            self._lookup_error = error

    # PurchaseStore

    async def request_product_info(self, product_ids: Set[str]) -> RetrieveResults:
        with self._lock:
            if self._lookup_error is not None:
                return RetrieveResults(error=self._lookup_error)
            retrieved = [self._products[pid] for pid in sorted(product_ids) if pid in self._products]
            invalid = [pid for pid in sorted(product_ids) if pid not in self._products]
        return RetrieveResults(retrieved_products=retrieved, invalid_product_ids=invalid)

    async def initiate_purchase(self, product_id: str, atomically: bool) -> StorePurchaseResult:
        with self._lock:
            failures = self._purchase_failures.get(product_id)
            if failures:
                error = failures.popleft()
                logger.info("scripted_purchase_failure", product_id=product_id, code=error.code.value)
                return PurchaseFailure(error=error)

            if product_id not in self._products:
                return PurchaseFailure(
                    error=PurchaseError(
                        code=PurchaseErrorCode.PAYMENT_INVALID,
                        message=f"Invalid product identifier: {product_id}",
                    )
                )

            transaction = TransactionRef(
                transaction_id=generate_transaction_id(), product_id=product_id
            )
            record = PurchaseRecord(
                product_id=product_id,
                transaction=transaction,
                needs_finish_transaction=not atomically,
                original_purchase_date=datetime.now(timezone.utc),
            )
            self._settle(transaction, atomically)
            if product_id not in self._consumables:
                self._owned[product_id] = record

        return PurchaseSuccess(purchase=record)

    async def finish_transaction(self, transaction: TransactionRef) -> None:
        with self._lock:
            pending = self._pending.pop(transaction.transaction_id, None)
            if pending is None:
                logger.warning(
                    "transaction_not_pending",
                    transaction_id=truncate_for_log(transaction.transaction_id),
                    product_id=transaction.product_id,
                    already_finished=transaction.transaction_id in self._finished,
                )
                return
            self._finished.add(transaction.transaction_id)

    async def restore_purchases(self, atomically: bool) -> RestoreOutcome:
        restored: List[PurchaseRecord] = []
        failed: List[RestoreFailure] = []
        with self._lock:
            for product_id, original in sorted(self._owned.items()):
                error = self._restore_failures.get(product_id)
                if error is not None:
                    failed.append(RestoreFailure(product_id=product_id, error=error))
                    continue
                transaction = TransactionRef(
                    transaction_id=generate_transaction_id(),
                    product_id=product_id,
                    original_transaction_id=original.transaction.transaction_id,
                )
                self._settle(transaction, atomically)
                restored.append(
                    PurchaseRecord(
                        product_id=product_id,
                        quantity=original.quantity,
                        transaction=transaction,
                        needs_finish_transaction=not atomically,
                        original_purchase_date=original.original_purchase_date,
                    )
                )
        return RestoreOutcome(restored_purchases=restored, failed_purchases=failed)

    # Inspection

    def _settle(self, transaction: TransactionRef, atomically: bool) -> None:
        if atomically:
            self._finished.add(transaction.transaction_id)
        else:
            self._pending[transaction.transaction_id] = transaction

    def is_pending(self, transaction_id: str) -> bool:
        with self._lock:
            return transaction_id in self._pending

    def is_finished(self, transaction_id: str) -> bool:
        with self._lock:
            return transaction_id in self._finished

    def pending_transactions(self) -> List[TransactionRef]:
        with self._lock:
            return list(self._pending.values())

    def owned_product_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._owned)

    def clear(self) -> None:
        """Drop all purchases, transactions and scripted failures (products stay)."""
        with self._lock:
            self._owned.clear()
            self._pending.clear()
            self._finished.clear()
            self._purchase_failures.clear()
            self._restore_failures.clear()
            self._lookup_error = None

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"InMemoryPurchaseStore(products={len(self._products)}, "
                f"owned={len(self._owned)}, pending={len(self._pending)})"
            )
