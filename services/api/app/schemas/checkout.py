"""Schemas for the checkout endpoints (/v1/checkout)."""

from pydantic import BaseModel, Field


class CheckoutItem(BaseModel):
    """A cart line: product plus its chosen variation options."""

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(default=1, ge=1)
    selected_variations: dict[str, str] = Field(alias="selectedVariations", default_factory=dict)

    model_config = {"populate_by_name": True}


class CheckoutRequest(BaseModel):
    """Request body for POST /v1/checkout/session.

    Either `items` (cart checkout) or `productId` (single item) must be set.
    """

    product_id: str | None = Field(alias="productId", default=None)
    quantity: int | None = Field(default=None, ge=1)
    selected_variations: dict[str, str] | None = Field(alias="selectedVariations", default=None)
    items: list[CheckoutItem] | None = None

    model_config = {"populate_by_name": True}


class PaymentLinkRequest(BaseModel):
    """Request body for POST /v1/checkout/payment-link."""

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(default=1, ge=1)
    selected_variations: dict[str, str] = Field(alias="selectedVariations", default_factory=dict)

    model_config = {"populate_by_name": True}


class CheckoutResponse(BaseModel):
    """Hosted Stripe URL the client should redirect to."""

    url: str
