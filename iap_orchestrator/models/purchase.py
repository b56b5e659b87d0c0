"""Purchase models - store purchases, restores and their failure taxonomy.

Represents what the purchase store hands back for a single purchase flow or
a bulk restore. Records are transient: the orchestrator never stores them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PurchaseFlowState(str, Enum):
    """State of a single purchase flow."""

    IDLE = "idle"
    REQUESTING = "requesting"
    PURCHASED = "purchased"
    FAILED = "failed"
    CANCELLED = "cancelled"  # User dismissed the payment sheet
    FINISHED = "finished"  # Content delivered and transaction finished


class PurchaseErrorCode(str, Enum):
    """Store-level rejection reasons for a purchase."""

    UNKNOWN = "unknown"
    CLIENT_INVALID = "client_invalid"  # Client is not allowed to issue the request
    PAYMENT_CANCELLED = "payment_cancelled"  # User cancelled the request
    PAYMENT_INVALID = "payment_invalid"  # Purchase identifier was invalid
    PAYMENT_NOT_ALLOWED = "payment_not_allowed"  # Device is not allowed to make the payment
    PRODUCT_UNAVAILABLE = "product_unavailable"  # Not available in the current storefront
    CLOUD_SERVICE_PERMISSION_DENIED = "cloud_service_permission_denied"
    CLOUD_SERVICE_NETWORK_FAILURE = "cloud_service_network_failure"
    CLOUD_SERVICE_REVOKED = "cloud_service_revoked"


class PurchaseError(BaseModel):
    """A store-level purchase failure."""

    model_config = ConfigDict(frozen=True)

    code: PurchaseErrorCode = Field(default=PurchaseErrorCode.UNKNOWN)
    message: str = Field(default="", description="Store supplied description")

    @property
    def is_cancellation(self) -> bool:
        return self.code == PurchaseErrorCode.PAYMENT_CANCELLED


class TransactionRef(BaseModel):
    """Opaque handle identifying one purchase event, required to finish it."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    original_transaction_id: Optional[str] = None


class PurchaseRecord(BaseModel):
    """Result of a successful store purchase or restore."""

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    transaction: TransactionRef
    needs_finish_transaction: bool = Field(
        ..., description="True when the caller must finish the transaction after delivery"
    )
    original_purchase_date: Optional[datetime] = None

    @field_validator("transaction")
    @classmethod
    def _matching_product(cls, transaction: TransactionRef, info):
        product_id = info.data.get("product_id")
        if product_id is not None and transaction.product_id != product_id:
            raise ValueError(
                f"Transaction product {transaction.product_id} does not match record product {product_id}"
            )
        return transaction


class PurchaseSuccess(BaseModel):
    """Purchase completed; the caller delivers content, then finishes if required."""

    model_config = ConfigDict(frozen=True)

    purchase: PurchaseRecord


class PurchaseFailure(BaseModel):
    """Purchase rejected by the store."""

    model_config = ConfigDict(frozen=True)

    error: PurchaseError


class PurchaseCancelled(BaseModel):
    """Purchase aborted by the user. Terminal, not an error."""

    model_config = ConfigDict(frozen=True)

    product_id: str


# What a PurchaseStore returns; cancellation arrives as PAYMENT_CANCELLED.
StorePurchaseResult = Union[PurchaseSuccess, PurchaseFailure]

# What the orchestrator returns to its caller.
PurchaseResult = Union[PurchaseSuccess, PurchaseCancelled, PurchaseFailure]


class RestoreFailure(BaseModel):
    """A purchase the store failed to restore."""

    model_config = ConfigDict(frozen=True)

    purchase: Optional[PurchaseRecord] = None
    product_id: Optional[str] = None
    error: PurchaseError

    @property
    def identifier(self) -> Optional[str]:
        if self.purchase is not None:
            return self.purchase.product_id
        return self.product_id


class RestoreOutcome(BaseModel):
    """Aggregate result of a bulk restore."""

    model_config = ConfigDict(frozen=True)

    restored_purchases: list[PurchaseRecord] = Field(default_factory=list)
    failed_purchases: list[RestoreFailure] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.restored_purchases and not self.failed_purchases

    def pending_finish(self) -> list[PurchaseRecord]:
        """Restored records whose transaction the caller still has to finish."""
        return [p for p in self.restored_purchases if p.needs_finish_transaction]
