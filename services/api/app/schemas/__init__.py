"""Pydantic schemas for API request/response validation."""

from app.schemas.checkout import (
    CheckoutItem,
    CheckoutRequest,
    CheckoutResponse,
    PaymentLinkRequest,
)
from app.schemas.common import ErrorDetail, ErrorResponse
from app.schemas.product import (
    Product,
    ProductDimensions,
    ProductMetadata,
    ProductPageResponse,
    ProductPrice,
    SelectionRequest,
    SelectionResponse,
)
from app.schemas.variation import (
    AvailabilityConstraint,
    OptionDefinition,
    OptionView,
    VariationDefinition,
    VariationKind,
    VariationState,
    VariationView,
)

__all__ = [
    "CheckoutItem",
    "CheckoutRequest",
    "CheckoutResponse",
    "PaymentLinkRequest",
    "ErrorDetail",
    "ErrorResponse",
    "Product",
    "ProductDimensions",
    "ProductMetadata",
    "ProductPageResponse",
    "ProductPrice",
    "SelectionRequest",
    "SelectionResponse",
    "AvailabilityConstraint",
    "OptionDefinition",
    "OptionView",
    "VariationDefinition",
    "VariationKind",
    "VariationState",
    "VariationView",
]
