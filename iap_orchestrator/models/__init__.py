"""Pydantic models for catalog configuration, store results, receipts and statuses."""

# Product kinds and catalog configuration
from .product import (
    AutoRenewableSubscription,
    Consumable,
    NonConsumable,
    NonRenewingSubscription,
    ProductDefinition,
    ProductInfo,
    ProductKind,
    ProductsConfig,
    ValidatorSettings,
)

# Product info lookups
from .product_info import (
    ProductInfoError,
    ProductInfoInvalidIdentifier,
    ProductInfoResult,
    ProductInfoRetrieved,
    RetrieveResults,
)

# Purchases and restores
from .purchase import (
    PurchaseCancelled,
    PurchaseError,
    PurchaseErrorCode,
    PurchaseFailure,
    PurchaseFlowState,
    PurchaseRecord,
    PurchaseResult,
    PurchaseSuccess,
    RestoreFailure,
    RestoreOutcome,
    StorePurchaseResult,
    TransactionRef,
)

# Receipts
from .receipt import (
    ReceiptEntry,
    ReceiptError,
    ReceiptErrorKind,
    ReceiptFailure,
    ReceiptRecord,
    ReceiptResult,
    ReceiptSuccess,
    ValidationService,
)

# Classification outcomes
from .status import (
    ClassificationResult,
    PurchaseState,
    PurchaseStatus,
    SubscriptionState,
    SubscriptionStatus,
    VerifyPurchaseOutcome,
)

__all__ = [
    # Product configuration
    "AutoRenewableSubscription",
    "Consumable",
    "NonConsumable",
    "NonRenewingSubscription",
    "ProductDefinition",
    "ProductInfo",
    "ProductKind",
    "ProductsConfig",
    "ValidatorSettings",
    # Product info
    "ProductInfoError",
    "ProductInfoInvalidIdentifier",
    "ProductInfoResult",
    "ProductInfoRetrieved",
    "RetrieveResults",
    # Purchase
    "PurchaseCancelled",
    "PurchaseError",
    "PurchaseErrorCode",
    "PurchaseFailure",
    "PurchaseFlowState",
    "PurchaseRecord",
    "PurchaseResult",
    "PurchaseSuccess",
    "RestoreFailure",
    "RestoreOutcome",
    "StorePurchaseResult",
    "TransactionRef",
    # Receipt
    "ReceiptEntry",
    "ReceiptError",
    "ReceiptErrorKind",
    "ReceiptFailure",
    "ReceiptRecord",
    "ReceiptResult",
    "ReceiptSuccess",
    "ValidationService",
    # Status
    "ClassificationResult",
    "PurchaseState",
    "PurchaseStatus",
    "SubscriptionState",
    "SubscriptionStatus",
    "VerifyPurchaseOutcome",
]
