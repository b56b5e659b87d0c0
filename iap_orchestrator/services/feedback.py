"""User-facing feedback for orchestrator results.

Each function turns one result into a single ``Feedback`` item (title and
message) for whatever presentation layer is calling. A cancelled purchase is
the only result that produces no feedback.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from iap_orchestrator.models import (
    ProductInfoInvalidIdentifier,
    ProductInfoResult,
    ProductInfoRetrieved,
    PurchaseCancelled,
    PurchaseErrorCode,
    PurchaseFailure,
    PurchaseResult,
    PurchaseState,
    PurchaseStatus,
    ReceiptErrorKind,
    ReceiptFailure,
    ReceiptResult,
    RestoreOutcome,
    SubscriptionState,
    SubscriptionStatus,
    VerifyPurchaseOutcome,
)

UNKNOWN_ERROR = "Unknown error. Please contact support"

PURCHASE_FAILED = "Purchase failed"

# Message per rejection reason; UNKNOWN uses the store's own description.
PURCHASE_ERROR_MESSAGES = {
    PurchaseErrorCode.CLIENT_INVALID: "Not allowed to make the payment",
    PurchaseErrorCode.PAYMENT_INVALID: "The purchase identifier was invalid",
    PurchaseErrorCode.PAYMENT_NOT_ALLOWED: "The device is not allowed to make the payment",
    PurchaseErrorCode.PRODUCT_UNAVAILABLE: "The product is not available in the current storefront",
    PurchaseErrorCode.CLOUD_SERVICE_PERMISSION_DENIED: "Access to cloud service information is not allowed",
    PurchaseErrorCode.CLOUD_SERVICE_NETWORK_FAILURE: "Could not connect to the network",
    PurchaseErrorCode.CLOUD_SERVICE_REVOKED: "Cloud service was revoked",
}


class Feedback(BaseModel):
    """One caller-visible message."""

    model_config = ConfigDict(frozen=True)

    title: str
    message: str


def feedback_for_product_info(result: ProductInfoResult) -> Feedback:
    if isinstance(result, ProductInfoRetrieved):
        product = result.product
        price = product.localized_price or f"{product.price} {product.currency_code}"
        return Feedback(title=product.title or product.product_id, message=f"{product.description} - {price}")
    if isinstance(result, ProductInfoInvalidIdentifier):
        return Feedback(
            title="Could not retrieve product info",
            message=f"Invalid product identifier: {result.product_id}",
        )
    return Feedback(title="Could not retrieve product info", message=result.cause or UNKNOWN_ERROR)


def feedback_for_purchase_result(result: PurchaseResult) -> Optional[Feedback]:
    """Feedback for a purchase; None when the user cancelled."""
    if isinstance(result, PurchaseCancelled):
        return None
    if isinstance(result, PurchaseFailure):
        error = result.error
        if error.code == PurchaseErrorCode.PAYMENT_CANCELLED:
            return None
        message = PURCHASE_ERROR_MESSAGES.get(error.code) or error.message or UNKNOWN_ERROR
        return Feedback(title=PURCHASE_FAILED, message=message)
    return Feedback(title="Thank You", message="Purchase completed")


def feedback_for_restore(outcome: RestoreOutcome) -> Feedback:
    if outcome.failed_purchases:
        return Feedback(title="Restore failed", message=UNKNOWN_ERROR)
    if outcome.restored_purchases:
        return Feedback(title="Purchases Restored", message="All purchases have been restored")
    return Feedback(title="Nothing to restore", message="No previous purchases were found")


def feedback_for_receipt_result(result: ReceiptResult) -> Feedback:
    if not isinstance(result, ReceiptFailure):
        return Feedback(title="Receipt verified", message="Receipt verified remotely")

    error = result.error
    if error.kind == ReceiptErrorKind.NO_RECEIPT_DATA:
        message = "No receipt data. Try again."
    elif error.kind == ReceiptErrorKind.NETWORK_ERROR:
        message = f"Network error while verifying receipt: {error.cause}"
    else:
        message = f"Receipt verification failed: {error}"
    return Feedback(title="Receipt verification", message=message)


def feedback_for_subscription_status(status: SubscriptionStatus) -> Feedback:
    if status.state == SubscriptionState.PURCHASED:
        return Feedback(
            title="Product is purchased",
            message=f"Product is valid until {status.expiry_date.isoformat()}",
        )
    if status.state == SubscriptionState.EXPIRED:
        return Feedback(
            title="Product expired",
            message=f"Product is expired since {status.expiry_date.isoformat()}",
        )
    return Feedback(title="Not purchased", message="This product has never been purchased")


def feedback_for_purchase_status(status: PurchaseStatus) -> Feedback:
    if status.state == PurchaseState.PURCHASED:
        return Feedback(title="Product is purchased", message="Product will not expire")
    return Feedback(title="Not purchased", message="This product has never been purchased")


def feedback_for_verify_purchase(outcome: VerifyPurchaseOutcome) -> Feedback:
    if outcome.error is not None:
        return feedback_for_receipt_result(ReceiptFailure(error=outcome.error))
    if isinstance(outcome.status, SubscriptionStatus):
        return feedback_for_subscription_status(outcome.status)
    return feedback_for_purchase_status(outcome.status)
