"""Classification outcomes derived from a validated receipt.

These are never stored: they are recomputed from (receipt, product id, kind,
reference time) on every call.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator

from iap_orchestrator.models.receipt import ReceiptError


class SubscriptionState(str, Enum):
    """Expiry-aware purchase state."""

    PURCHASED = "purchased"
    EXPIRED = "expired"
    NOT_PURCHASED = "not_purchased"


class PurchaseState(str, Enum):
    """Binary purchase state for non-expiring kinds."""

    PURCHASED = "purchased"
    NOT_PURCHASED = "not_purchased"


class SubscriptionStatus(BaseModel):
    """Purchased(expiry) | Expired(expiry) | NotPurchased."""

    model_config = ConfigDict(frozen=True)

    state: SubscriptionState
    expiry_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _expiry_matches_state(self):
        if self.state == SubscriptionState.NOT_PURCHASED:
            if self.expiry_date is not None:
                raise ValueError("NOT_PURCHASED carries no expiry date")
        elif self.expiry_date is None:
            raise ValueError(f"{self.state.name} requires an expiry date")
        return self

    @classmethod
    def purchased(cls, expiry_date: datetime) -> "SubscriptionStatus":
        return cls(state=SubscriptionState.PURCHASED, expiry_date=expiry_date)

    @classmethod
    def expired(cls, expiry_date: datetime) -> "SubscriptionStatus":
        return cls(state=SubscriptionState.EXPIRED, expiry_date=expiry_date)

    @classmethod
    def not_purchased(cls) -> "SubscriptionStatus":
        return cls(state=SubscriptionState.NOT_PURCHASED)


class PurchaseStatus(BaseModel):
    """Purchased | NotPurchased."""

    model_config = ConfigDict(frozen=True)

    state: PurchaseState

    @classmethod
    def purchased(cls) -> "PurchaseStatus":
        return cls(state=PurchaseState.PURCHASED)

    @classmethod
    def not_purchased(cls) -> "PurchaseStatus":
        return cls(state=PurchaseState.NOT_PURCHASED)


ClassificationResult = Union[SubscriptionStatus, PurchaseStatus]


class VerifyPurchaseOutcome(BaseModel):
    """Result of verifying the receipt and classifying one product in it.

    Exactly one of ``status`` and ``error`` is set.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    status: Optional[ClassificationResult] = None
    error: Optional[ReceiptError] = None

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.status is None) == (self.error is None):
            raise ValueError("Exactly one of status and error must be set")
        return self
