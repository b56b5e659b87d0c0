"""Product info lookup results."""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from iap_orchestrator.models.product import ProductInfo


class RetrieveResults(BaseModel):
    """Batch product lookup result as returned by the purchase store."""

    model_config = ConfigDict(frozen=True)

    retrieved_products: list[ProductInfo] = Field(default_factory=list)
    invalid_product_ids: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class ProductInfoRetrieved(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: ProductInfo


class ProductInfoInvalidIdentifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str


class ProductInfoError(BaseModel):
    model_config = ConfigDict(frozen=True)

    cause: str


ProductInfoResult = Union[ProductInfoRetrieved, ProductInfoInvalidIdentifier, ProductInfoError]
