"""Product kind and catalog configuration models.

Models from products.yaml configuration plus the product metadata the
purchase store hands back.
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from iap_orchestrator.utils.durations import parse_duration_seconds


class Consumable(BaseModel):
    """Product that can be bought repeatedly and is used up."""

    model_config = ConfigDict(frozen=True)

    type: Literal["consumable"] = "consumable"


class NonConsumable(BaseModel):
    """Product bought once that never expires."""

    model_config = ConfigDict(frozen=True)

    type: Literal["non_consumable"] = "non_consumable"


class NonRenewingSubscription(BaseModel):
    """Subscription valid for a fixed window after purchase, never renewed by the store.

    The window can be configured either as ``valid_duration_seconds`` or as an
    ISO 8601 ``valid_duration`` string (e.g. "P30D").
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["non_renewing"] = "non_renewing"
    valid_duration_seconds: int = Field(..., gt=0, description="Validity window in seconds")

    @model_validator(mode="before")
    @classmethod
    def _duration_from_iso(cls, data):
        if isinstance(data, dict) and "valid_duration" in data:
            data = dict(data)
            duration = data.pop("valid_duration")
            if "valid_duration_seconds" not in data:
                data["valid_duration_seconds"] = parse_duration_seconds(duration)
        return data


class AutoRenewableSubscription(BaseModel):
    """Subscription whose expiry is authoritative from the receipt."""

    model_config = ConfigDict(frozen=True)

    type: Literal["auto_renewable"] = "auto_renewable"


ProductKind = Annotated[
    Union[Consumable, NonConsumable, NonRenewingSubscription, AutoRenewableSubscription],
    Field(discriminator="type"),
]


class ProductDefinition(BaseModel):
    """Registered product from configuration."""

    name: str = Field(..., min_length=1, description="Local product name (e.g. 'autoRenewableYearly')")
    kind: ProductKind
    title: Optional[str] = Field(None, description="Human-readable title")

    @field_validator("name")
    @classmethod
    def _no_whitespace(cls, value: str) -> str:
        if value != value.strip() or " " in value:
            raise ValueError(f"Product name must not contain whitespace: {value!r}")
        return value


class ValidatorSettings(BaseModel):
    """Receipt validation service configuration."""

    service: Literal["production", "sandbox"] = Field(
        default="production", description="Validation service endpoint to use"
    )
    shared_secret_env: str = Field(
        default="IAP_SHARED_SECRET",
        description="Environment variable holding the shared secret",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout for validation calls")
    sandbox_fallback: bool = Field(
        default=True,
        description="Retry against sandbox when production reports a sandbox receipt",
    )


class ProductsConfig(BaseModel):
    """Complete products.yaml configuration."""

    bundle_id: str = Field(..., min_length=1, description="Bundle namespace prefixed to every product name")
    products: list[ProductDefinition] = Field(default_factory=list, description="Registered products")
    validator: ValidatorSettings = Field(default_factory=ValidatorSettings)

    @model_validator(mode="after")
    def _unique_names(self):
        seen = set()
        for product in self.products:
            if product.name in seen:
                raise ValueError(f"Duplicate product name: {product.name}")
            seen.add(product.name)
        return self


class ProductInfo(BaseModel):
    """Product metadata returned by the purchase store.

    Passed through to the caller untouched.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    title: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    currency_code: str = "USD"
    localized_price: Optional[str] = None
