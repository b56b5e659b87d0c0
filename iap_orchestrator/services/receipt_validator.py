"""Receipt validation against the remote App Store validation service.

``ReceiptValidator`` is the abstract boundary the orchestrator calls.
``AppleReceiptValidator`` reads the local receipt from a ``ReceiptSource``,
posts it to the legacy ``verifyReceipt`` endpoint and turns the response into
a ``ReceiptRecord``. Every failure comes back as a ``ReceiptFailure``.
"""

import base64
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from iap_orchestrator.logging_config import get_logger
from iap_orchestrator.models import (
    ReceiptEntry,
    ReceiptError,
    ReceiptFailure,
    ReceiptRecord,
    ReceiptResult,
    ReceiptSuccess,
    ValidationService,
)

logger = get_logger(__name__)

STATUS_VALID = 0
STATUS_SUBSCRIPTION_EXPIRED = 21006  # Receipt is valid, the subscription it holds has expired
STATUS_SANDBOX_RECEIPT = 21007  # Sandbox receipt sent to production


class ReceiptSource(ABC):
    """Where the raw local receipt comes from."""

    @abstractmethod
    async def load(self) -> Optional[bytes]:
        """Return the raw receipt bytes, or None when there is no receipt."""


class FileReceiptSource(ReceiptSource):
    """Receipt stored on disk (e.g. the app bundle's receipt file)."""

    def __init__(self, path):
        self.path = Path(path)

    async def load(self) -> Optional[bytes]:
        if not self.path.is_file():
            return None
        return self.path.read_bytes() or None


class StaticReceiptSource(ReceiptSource):
    """Receipt bytes held in memory."""

    def __init__(self, data: Optional[bytes]):
        self.data = data

    async def load(self) -> Optional[bytes]:
        return self.data or None


class ReceiptValidator(ABC):
    """Remote receipt validation authority."""

    @abstractmethod
    async def verify(
        self, service: ValidationService, shared_secret: Optional[str]
    ) -> ReceiptResult:
        """Validate the current receipt.

        Args:
            service: Validation endpoint to call
            shared_secret: App-specific shared secret (needed for auto-renewable subscriptions)
        """


def _millis_to_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"Timestamp out of range: {value}") from exc


def parse_receipt_entry(raw: dict) -> ReceiptEntry:
    """Convert one ``in_app`` / ``latest_receipt_info`` item.

    Raises:
        ValueError: If a required field is missing or malformed
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Receipt entry is not an object: {raw!r}")
    purchase_date = _millis_to_datetime(raw.get("purchase_date_ms"))
    if purchase_date is None:
        raise ValueError(f"Receipt entry without purchase_date_ms: {raw.get('transaction_id')}")
    return ReceiptEntry(
        product_id=raw.get("product_id", ""),
        transaction_id=str(raw.get("transaction_id", "")),
        original_transaction_id=raw.get("original_transaction_id"),
        purchase_date=purchase_date,
        expires_date=_millis_to_datetime(raw.get("expires_date_ms")),
        cancellation_date=_millis_to_datetime(raw.get("cancellation_date_ms")),
        quantity=int(raw.get("quantity", 1)),
    )


def parse_receipt(payload: dict) -> ReceiptRecord:
    """Build a ReceiptRecord from a verifyReceipt response body.

    Entries from ``receipt.in_app`` and ``latest_receipt_info`` are merged;
    when both carry the same transaction, the latest_receipt_info copy wins.

    Raises:
        ValueError: If the payload is malformed
    """
    receipt = payload.get("receipt") or {}
    if not isinstance(receipt, dict):
        raise ValueError("Malformed receipt object")

    by_transaction: dict[str, ReceiptEntry] = {}
    unkeyed: list[ReceiptEntry] = []
    for field, source in (
        ("in_app", receipt.get("in_app") or []),
        ("latest_receipt_info", payload.get("latest_receipt_info") or []),
    ):
        if not isinstance(source, list):
            raise ValueError(f"{field} must be a list")
        for raw in source:
            entry = parse_receipt_entry(raw)
            if entry.transaction_id:
                by_transaction[entry.transaction_id] = entry
            else:
                unkeyed.append(entry)

    return ReceiptRecord(
        entries=list(by_transaction.values()) + unkeyed,
        bundle_id=receipt.get("bundle_id"),
        environment=payload.get("environment"),
        raw=payload,
    )


class AppleReceiptValidator(ReceiptValidator):
    """Validates the local receipt with Apple's verifyReceipt endpoint.

    Args:
        receipt_source: Where to read the local receipt from
        client: Optional shared httpx client (one is created per call otherwise)
        timeout_seconds: Request timeout used when no client is supplied
        sandbox_fallback: Retry against sandbox when production answers 21007
        exclude_old_transactions: Only return the latest renewal of each subscription
    """

    def __init__(
        self,
        receipt_source: ReceiptSource,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
        sandbox_fallback: bool = True,
        exclude_old_transactions: bool = False,
    ):
        self._receipt_source = receipt_source
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._sandbox_fallback = sandbox_fallback
        self._exclude_old_transactions = exclude_old_transactions

    async def verify(
        self, service: ValidationService, shared_secret: Optional[str]
    ) -> ReceiptResult:
        receipt_data = await self._receipt_source.load()
        if not receipt_data:
            logger.info("receipt_missing")
            return ReceiptFailure(error=ReceiptError.no_receipt_data())

        body = {
            "receipt-data": base64.b64encode(receipt_data).decode("ascii"),
            "exclude-old-transactions": self._exclude_old_transactions,
        }
        if shared_secret:
            body["password"] = shared_secret

        result = await self._post(service, body)
        if (
            isinstance(result, int)
            and result == STATUS_SANDBOX_RECEIPT
            and service is ValidationService.PRODUCTION
            and self._sandbox_fallback
        ):
            logger.info("receipt_sandbox_fallback")
            result = await self._post(ValidationService.SANDBOX, body)

        if isinstance(result, int):
            return ReceiptFailure(
                error=ReceiptError.other("Receipt rejected by validation service", status=result)
            )
        return result

    async def _post(self, service: ValidationService, body: dict):
        """POST the receipt; returns a ReceiptResult, or the status code of a rejected receipt."""
        try:
            if self._client is not None:
                response = await self._client.post(service.url, json=body)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.post(service.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "receipt_validation_network_error",
                service=service.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ReceiptFailure(error=ReceiptError.network_error(str(exc) or type(exc).__name__))

        try:
            payload = response.json()
        except ValueError as exc:
            return ReceiptFailure(error=ReceiptError.other(f"Invalid JSON response: {exc}"))
        if not isinstance(payload, dict):
            return ReceiptFailure(error=ReceiptError.other("Unexpected response body"))

        status = payload.get("status")
        if not isinstance(status, int):
            return ReceiptFailure(error=ReceiptError.other("Response without status"))
        if status not in (STATUS_VALID, STATUS_SUBSCRIPTION_EXPIRED):
            logger.info("receipt_rejected", service=service.value, status=status)
            return status

        try:
            receipt = parse_receipt(payload)
        except (ValueError, TypeError, ValidationError) as exc:
            return ReceiptFailure(error=ReceiptError.other(f"Malformed receipt: {exc}", status=status))

        logger.info(
            "receipt_validated",
            service=service.value,
            environment=receipt.environment,
            entries=len(receipt.entries),
        )
        return ReceiptSuccess(receipt=receipt)
