"""State change logging for purchase flows, transactions and receipts.

Tracks flow transitions with before/after values for debugging and auditing.
"""

from typing import Any, Optional

from iap_orchestrator.logging_config import get_logger
from iap_orchestrator.models import (
    PurchaseFlowState,
    ReceiptFailure,
    ReceiptResult,
    RestoreOutcome,
    TransactionRef,
)
from iap_orchestrator.utils.transaction_ids import truncate_for_log

logger = get_logger(__name__)


def log_flow_state_change(
    product_id: str,
    old_state: PurchaseFlowState,
    new_state: PurchaseFlowState,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log a purchase flow state transition.

    Args:
        product_id: Product being purchased
        old_state: Previous flow state
        new_state: New flow state
        reason: Reason for the transition (error code, "delivered", ...)
        **extra_context: Additional context (transaction_id, atomically, ...)
    """
    if "transaction_id" in extra_context and extra_context["transaction_id"]:
        extra_context["transaction_id"] = truncate_for_log(extra_context["transaction_id"])
    logger.info(
        "purchase_flow_state_changed",
        product_id=product_id,
        old_state=old_state.value,
        new_state=new_state.value,
        reason=reason,
        **extra_context,
    )


def log_transaction_finish(transaction: TransactionRef) -> None:
    """Log a finish request handed to the purchase store."""
    logger.info(
        "transaction_finish_requested",
        transaction_id=truncate_for_log(transaction.transaction_id),
        product_id=transaction.product_id,
    )


def log_receipt_result(result: ReceiptResult, service: str) -> None:
    """Log the outcome of a receipt verification."""
    if isinstance(result, ReceiptFailure):
        logger.warning(
            "receipt_verification_result",
            service=service,
            success=False,
            error_kind=result.error.kind.value,
            status=result.error.status,
            cause=result.error.cause,
        )
    else:
        logger.info(
            "receipt_verification_result",
            service=service,
            success=True,
            entries=len(result.receipt.entries),
        )


def log_restore_outcome(outcome: RestoreOutcome, atomically: bool) -> None:
    """Log a restore summary."""
    logger.info(
        "restore_completed",
        atomically=atomically,
        restored=len(outcome.restored_purchases),
        failed=len(outcome.failed_purchases),
        pending_finish=len(outcome.pending_finish()),
    )
