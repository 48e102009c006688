"""Schemas for catalog products and the product page endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.variation import VariationDefinition, VariationState


class ProductDimensions(BaseModel):
    """Package dimensions as stored in product metadata."""

    length: float = 0
    width: float = 0
    height: float = 0
    weight: float = 0


class ProductMetadata(BaseModel):
    """Storefront metadata parsed from the Stripe product."""

    product_type_id: str | None = Field(alias="productTypeId", default=None)
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    brand: str | None = None
    sku: str | None = None
    weight: float | None = None
    dimensions: ProductDimensions | None = None

    model_config = {"populate_by_name": True}


class ProductPrice(BaseModel):
    """An active Stripe price in the product's base currency."""

    id: str
    unit_amount: int | None = Field(alias="unitAmount", default=None)
    currency: str
    metadata: dict[str, str] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class Product(BaseModel):
    """A storefront product backed by Stripe product/price records."""

    id: str
    name: str
    description: str = ""
    metadata: ProductMetadata
    images: list[str] = Field(default_factory=list)
    active: bool = True
    slug: str
    base_price: int = Field(alias="basePrice")  # minor units
    currency: str
    stripe_product_id: str | None = Field(alias="stripeProductId", default=None)
    stripe_price_id: str | None = Field(alias="stripePriceId", default=None)
    prices: list[ProductPrice] = Field(default_factory=list)
    variation_definitions: list[VariationDefinition] = Field(
        alias="variationDefinitions", default_factory=list
    )
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True}


class ProductPageResponse(BaseModel):
    """Response payload for GET /v1/products/{slug}."""

    product: Product
    selections: dict[str, str] = Field(default_factory=dict)
    variation_state: VariationState = Field(alias="variationState")
    display_price: int = Field(alias="displayPrice")
    image: str | None = None

    model_config = {"populate_by_name": True}


class SelectionRequest(BaseModel):
    """Request body for POST /v1/products/{slug}/selection."""

    selections: dict[str, str] = Field(default_factory=dict)
    variation_id: str = Field(alias="variationId", min_length=1)
    option_id: str = Field(alias="optionId", min_length=1)

    model_config = {"populate_by_name": True}


class SelectionResponse(BaseModel):
    """Selections after pruning plus the rebuilt state."""

    selections: dict[str, str]
    variation_state: VariationState = Field(alias="variationState")
    display_price: int = Field(alias="displayPrice")
    image: str | None = None

    model_config = {"populate_by_name": True}

