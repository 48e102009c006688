"""Schemas for product variations and the derived selection state.

Definitions are parsed from catalog metadata (camelCase JSON) and are immutable
for the lifetime of a product render. Views add the computed visibility flags.
"""

from enum import Enum

from pydantic import BaseModel, Field


class VariationKind(str, Enum):
    """Whether a variation needs a parent selection before it is presentable."""

    INDEPENDENT = "independent"
    DEPENDENT = "dependent"


class AvailabilityConstraint(BaseModel):
    """Option is selectable only when `variation_id` is set to one of `option_ids`."""

    variation_id: str = Field(alias="variationId")
    option_ids: list[str] = Field(alias="optionIds", default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}


class OptionDefinition(BaseModel):
    """A concrete choice within a variation (e.g. "Large")."""

    id: str
    name: str
    display_name: str = Field(alias="displayName")
    price_modifier: int = Field(alias="priceModifier", default=0)  # minor units
    available: bool = False  # absent in metadata means not offered
    images: list[str] | None = None
    available_for: list[AvailabilityConstraint] | None = Field(alias="availableFor", default=None)

    model_config = {"populate_by_name": True, "frozen": True}


class VariationDefinition(BaseModel):
    """A configurable product dimension (e.g. Size)."""

    id: str
    name: str
    display_name: str = Field(alias="displayName")
    kind: VariationKind = Field(alias="type", default=VariationKind.INDEPENDENT)
    order: int = 0
    required: bool = False
    depends_on: list[str] | None = Field(alias="dependsOn", default=None)
    options: list[OptionDefinition] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}


class OptionView(OptionDefinition):
    """Option annotated with its visibility under the current selections."""

    is_visible: bool = Field(alias="isVisible")


class VariationView(VariationDefinition):
    """Variation annotated with its visibility under the current selections."""

    options: list[OptionView] = Field(default_factory=list)
    is_visible: bool = Field(alias="isVisible")


class VariationState(BaseModel):
    """Snapshot consumed by the presentation layer.

    `total_price` is a delta; callers add the product base price.
    """

    variations: list[VariationView]
    total_price: int = Field(alias="totalPrice")
    is_valid: bool = Field(alias="isValid")
    missing_required: list[str] = Field(alias="missingRequired", default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}
