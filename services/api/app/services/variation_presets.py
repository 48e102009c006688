"""Preset variation definitions for common product types.

Used when seeding the catalog; the resulting definitions are stored as JSON in
the Stripe product's `variations` metadata.
"""

from app.schemas.variation import (
    AvailabilityConstraint,
    OptionDefinition,
    VariationDefinition,
    VariationKind,
)


def _option(
    option_id: str,
    display_name: str,
    price_modifier: int = 0,
    available_for: dict[str, list[str]] | None = None,
) -> OptionDefinition:
    constraints = None
    if available_for:
        constraints = [
            AvailabilityConstraint(variation_id=parent, option_ids=option_ids)
            for parent, option_ids in available_for.items()
        ]
    return OptionDefinition(
        id=option_id,
        name=option_id,
        display_name=display_name,
        price_modifier=price_modifier,
        available=True,
        available_for=constraints,
    )


def _shirt() -> list[VariationDefinition]:
    return [
        VariationDefinition(
            id="size",
            name="size",
            display_name="Size",
            kind=VariationKind.INDEPENDENT,
            order=1,
            required=True,
            options=[
                _option("xs", "XS"),
                _option("s", "S"),
                _option("m", "M"),
                _option("l", "L"),
                _option("xl", "XL", 500),
                _option("xxl", "XXL", 1000),
            ],
        ),
        VariationDefinition(
            id="color",
            name="color",
            display_name="Color",
            kind=VariationKind.DEPENDENT,
            order=2,
            required=True,
            depends_on=["size"],
            options=[
                _option("red", "Red", 0, {"size": ["s", "m", "l", "xl"]}),
                _option("blue", "Blue", 0, {"size": ["m", "l", "xl", "xxl"]}),
                _option("green", "Green", 200, {"size": ["l", "xl"]}),
            ],
        ),
    ]


def _art() -> list[VariationDefinition]:
    return [
        VariationDefinition(
            id="material",
            name="material",
            display_name="Material",
            kind=VariationKind.INDEPENDENT,
            order=1,
            required=True,
            options=[
                _option("canvas", "Canvas"),
                _option("paper", "Paper", -500),
                _option("metal", "Metal", 1000),
            ],
        ),
        VariationDefinition(
            id="size",
            name="size",
            display_name="Size",
            kind=VariationKind.DEPENDENT,
            order=2,
            required=True,
            depends_on=["material"],
            options=[
                _option("small", "Small (8x10)", 0, {"material": ["canvas", "paper"]}),
                _option("medium", "Medium (16x20)", 1500, {"material": ["canvas", "paper", "metal"]}),
                _option("large", "Large (24x36)", 3000, {"material": ["canvas", "metal"]}),
            ],
        ),
    ]


_PRESETS = {
    "shirt": _shirt,
    "art": _art,
}


def create_example_variations(product_type: str) -> list[VariationDefinition]:
    """Get preset variations for a product type (case-insensitive).

    Returns:
        Fresh list of definitions, or [] for unknown product types.
    """
    factory = _PRESETS.get(product_type.lower())
    return factory() if factory else []
