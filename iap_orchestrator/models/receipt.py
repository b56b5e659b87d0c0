"""Receipt models - validated receipt payloads and validation failures."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so comparisons never mix naive and aware values."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ValidationService(str, Enum):
    """Remote receipt validation endpoints."""

    PRODUCTION = "production"
    SANDBOX = "sandbox"

    @property
    def url(self) -> str:
        if self is ValidationService.SANDBOX:
            return "https://sandbox.itunes.apple.com/verifyReceipt"
        return "https://buy.itunes.apple.com/verifyReceipt"


class ReceiptEntry(BaseModel):
    """One purchase entry inside a validated receipt."""

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(..., min_length=1)
    transaction_id: str = Field(default="")
    original_transaction_id: Optional[str] = None
    purchase_date: datetime
    expires_date: Optional[datetime] = None
    cancellation_date: Optional[datetime] = None
    quantity: int = Field(default=1, ge=0)

    @field_validator("purchase_date", "expires_date", "cancellation_date")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class ReceiptRecord(BaseModel):
    """Validated receipt payload.

    Owned by the caller of a verify call only; nothing here is persisted.
    """

    model_config = ConfigDict(frozen=True)

    entries: list[ReceiptEntry] = Field(default_factory=list)
    bundle_id: Optional[str] = None
    environment: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    def entries_for(self, product_id: str) -> list[ReceiptEntry]:
        return [entry for entry in self.entries if entry.product_id == product_id]


class ReceiptErrorKind(str, Enum):
    """Receipt validation failure categories."""

    NO_RECEIPT_DATA = "no_receipt_data"
    NETWORK_ERROR = "network_error"
    OTHER = "other"  # Validator-side failures not otherwise classified


class ReceiptError(BaseModel):
    """A receipt validation failure."""

    model_config = ConfigDict(frozen=True)

    kind: ReceiptErrorKind
    cause: Optional[str] = None
    status: Optional[int] = Field(None, description="Validation service status code, when one was returned")

    @classmethod
    def no_receipt_data(cls) -> "ReceiptError":
        return cls(kind=ReceiptErrorKind.NO_RECEIPT_DATA)

    @classmethod
    def network_error(cls, cause: str) -> "ReceiptError":
        return cls(kind=ReceiptErrorKind.NETWORK_ERROR, cause=cause)

    @classmethod
    def other(cls, cause: str, status: Optional[int] = None) -> "ReceiptError":
        return cls(kind=ReceiptErrorKind.OTHER, cause=cause, status=status)

    def __str__(self) -> str:
        parts = [self.kind.value]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.cause:
            parts.append(self.cause)
        return ": ".join(parts)


class ReceiptSuccess(BaseModel):
    """Receipt verified remotely."""

    model_config = ConfigDict(frozen=True)

    receipt: ReceiptRecord


class ReceiptFailure(BaseModel):
    """Receipt could not be verified."""

    model_config = ConfigDict(frozen=True)

    error: ReceiptError


ReceiptResult = Union[ReceiptSuccess, ReceiptFailure]
