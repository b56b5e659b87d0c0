"""Receipt classification - decides whether a product is owned at a point in time.

Pure functions, no I/O and no hidden state: the same (receipt, product id,
kind, reference time) always yields the same status.

Rules:
- Auto-renewable: the entry with the latest expiry date wins.
- Non-renewing: each entry expires ``valid_duration_seconds`` after its
  purchase date; the latest synthetic expiry wins.
- Consumable / non-consumable: any matching entry means purchased.

An expiry strictly after the reference time is Purchased; an expiry at or
before it is Expired.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from iap_orchestrator.models import (
    AutoRenewableSubscription,
    ClassificationResult,
    Consumable,
    NonConsumable,
    NonRenewingSubscription,
    ProductKind,
    PurchaseStatus,
    ReceiptEntry,
    ReceiptRecord,
    SubscriptionStatus,
)
from iap_orchestrator.models.receipt import ensure_utc


def _latest(expiries: Iterable[datetime]) -> Optional[datetime]:
    return max(expiries, default=None)


def _status_for_expiry(expiry: Optional[datetime], reference_time: datetime) -> SubscriptionStatus:
    if expiry is None:
        return SubscriptionStatus.not_purchased()
    if expiry > ensure_utc(reference_time):
        return SubscriptionStatus.purchased(expiry)
    return SubscriptionStatus.expired(expiry)


def _matching(receipt: ReceiptRecord, product_id: str) -> list[ReceiptEntry]:
    return receipt.entries_for(product_id)


def verify_auto_renewable(
    product_id: str, receipt: ReceiptRecord, reference_time: datetime
) -> SubscriptionStatus:
    """Classify an auto-renewable subscription.

    Entries without an expiry date carry no subscription period and are ignored.
    """
    expiry = _latest(
        entry.expires_date
        for entry in _matching(receipt, product_id)
        if entry.expires_date is not None
    )
    return _status_for_expiry(expiry, reference_time)


def verify_non_renewing(
    product_id: str,
    receipt: ReceiptRecord,
    valid_duration_seconds: int,
    reference_time: datetime,
) -> SubscriptionStatus:
    """Classify a non-renewing subscription using purchase date + validity window."""
    window = timedelta(seconds=valid_duration_seconds)
    expiry = _latest(entry.purchase_date + window for entry in _matching(receipt, product_id))
    return _status_for_expiry(expiry, reference_time)


def verify_purchase(product_id: str, receipt: ReceiptRecord) -> PurchaseStatus:
    """Classify a non-expiring product: any matching entry means purchased."""
    if _matching(receipt, product_id):
        return PurchaseStatus.purchased()
    return PurchaseStatus.not_purchased()


def classify(
    kind: ProductKind, product_id: str, receipt: ReceiptRecord, reference_time: datetime
) -> ClassificationResult:
    """Dispatch on product kind.

    Subscription kinds produce a SubscriptionStatus, all other kinds a
    PurchaseStatus.

    Args:
        kind: One of the ProductKind variants
        product_id: Full product identifier to look for in the receipt
        receipt: Validated receipt
        reference_time: Point in time the expiry is compared against

    Raises:
        TypeError: If kind is not a known ProductKind variant
    """
    if isinstance(kind, AutoRenewableSubscription):
        return verify_auto_renewable(product_id, receipt, reference_time)
    if isinstance(kind, NonRenewingSubscription):
        return verify_non_renewing(product_id, receipt, kind.valid_duration_seconds, reference_time)
    if isinstance(kind, (Consumable, NonConsumable)):
        return verify_purchase(product_id, receipt)
    raise TypeError(f"Unknown product kind: {kind!r}")
