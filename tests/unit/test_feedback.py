"""Tests for user-facing feedback."""

import pytest

from conftest import product_id, utc
from iap_orchestrator.models import (
    ProductInfo,
    ProductInfoError,
    ProductInfoInvalidIdentifier,
    ProductInfoRetrieved,
    PurchaseCancelled,
    PurchaseError,
    PurchaseErrorCode,
    PurchaseFailure,
    PurchaseRecord,
    PurchaseStatus,
    PurchaseSuccess,
    ReceiptError,
    ReceiptFailure,
    ReceiptSuccess,
    RestoreFailure,
    RestoreOutcome,
    SubscriptionStatus,
    TransactionRef,
    VerifyPurchaseOutcome,
)
from iap_orchestrator.services.feedback import (
    PURCHASE_ERROR_MESSAGES,
    UNKNOWN_ERROR,
    Feedback,
    feedback_for_product_info,
    feedback_for_purchase_result,
    feedback_for_restore,
    feedback_for_receipt_result,
    feedback_for_verify_purchase,
)

PREMIUM = product_id("nonConsumablePurchase")


def record() -> PurchaseRecord:
    return PurchaseRecord(
        product_id=PREMIUM,
        transaction=TransactionRef(transaction_id="1", product_id=PREMIUM),
        needs_finish_transaction=False,
    )


class TestPurchaseFeedback:
    """Test purchase feedback."""

    def test_cancelled_shows_nothing(self):
        assert feedback_for_purchase_result(PurchaseCancelled(product_id=PREMIUM)) is None

    def test_cancelled_store_failure_shows_nothing(self):
        failure = PurchaseFailure(error=PurchaseError(code=PurchaseErrorCode.PAYMENT_CANCELLED))
        assert feedback_for_purchase_result(failure) is None

    @pytest.mark.parametrize(
        "code", [c for c in PurchaseErrorCode if c != PurchaseErrorCode.PAYMENT_CANCELLED]
    )
    def test_every_other_code_gives_one_message(self, code):
        feedback = feedback_for_purchase_result(PurchaseFailure(error=PurchaseError(code=code)))

        assert isinstance(feedback, Feedback)
        assert feedback.title == "Purchase failed"
        assert feedback.message

    def test_payment_invalid_message(self):
        failure = PurchaseFailure(error=PurchaseError(code=PurchaseErrorCode.PAYMENT_INVALID))
        assert feedback_for_purchase_result(failure).message == (
            PURCHASE_ERROR_MESSAGES[PurchaseErrorCode.PAYMENT_INVALID]
        )

    def test_unknown_uses_store_message(self):
        failure = PurchaseFailure(error=PurchaseError(message="Store exploded"))
        assert feedback_for_purchase_result(failure).message == "Store exploded"
        assert feedback_for_purchase_result(PurchaseFailure(error=PurchaseError())).message == UNKNOWN_ERROR

    def test_success(self):
        assert feedback_for_purchase_result(PurchaseSuccess(purchase=record())).title == "Thank You"


class TestOtherFeedback:
    """Test feedback for product info, restore and receipts."""

    def test_product_info(self):
        info = ProductInfo(product_id=PREMIUM, title="Premium", description="Unlock", localized_price="$0.99")
        assert feedback_for_product_info(ProductInfoRetrieved(product=info)) == Feedback(
            title="Premium", message="Unlock - $0.99"
        )
        invalid = feedback_for_product_info(ProductInfoInvalidIdentifier(product_id="com.bogus"))
        assert "com.bogus" in invalid.message
        assert feedback_for_product_info(ProductInfoError(cause="offline")).message == "offline"

    def test_restore(self):
        failed = RestoreOutcome(failed_purchases=[RestoreFailure(product_id=PREMIUM, error=PurchaseError())])
        assert feedback_for_restore(failed).title == "Restore failed"
        assert feedback_for_restore(RestoreOutcome(restored_purchases=[record()])).title == "Purchases Restored"
        assert feedback_for_restore(RestoreOutcome()).title == "Nothing to restore"

    def test_receipt(self, yearly_receipt):
        assert feedback_for_receipt_result(ReceiptSuccess(receipt=yearly_receipt)).title == "Receipt verified"
        missing = feedback_for_receipt_result(ReceiptFailure(error=ReceiptError.no_receipt_data()))
        assert missing.message == "No receipt data. Try again."
        network = feedback_for_receipt_result(ReceiptFailure(error=ReceiptError.network_error("timeout")))
        assert "timeout" in network.message
        other = feedback_for_receipt_result(ReceiptFailure(error=ReceiptError.other("bad", status=21003)))
        assert "21003" in other.message

    def test_verify_purchase(self):
        expiry = utc(2025, 1, 1)
        purchased = VerifyPurchaseOutcome(product_id=PREMIUM, status=SubscriptionStatus.purchased(expiry))
        assert feedback_for_verify_purchase(purchased).message == f"Product is valid until {expiry.isoformat()}"

        expired = VerifyPurchaseOutcome(product_id=PREMIUM, status=SubscriptionStatus.expired(expiry))
        assert feedback_for_verify_purchase(expired).title == "Product expired"

        lifetime = VerifyPurchaseOutcome(product_id=PREMIUM, status=PurchaseStatus.purchased())
        assert feedback_for_verify_purchase(lifetime).message == "Product will not expire"

        never = VerifyPurchaseOutcome(product_id=PREMIUM, status=PurchaseStatus.not_purchased())
        assert feedback_for_verify_purchase(never).title == "Not purchased"

        failed = VerifyPurchaseOutcome(product_id=PREMIUM, error=ReceiptError.no_receipt_data())
        assert feedback_for_verify_purchase(failed).title == "Receipt verification"
