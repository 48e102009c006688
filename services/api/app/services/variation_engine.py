"""Product variation engine.

Turns the variation definitions of a product plus the customer's current
selections (variation id -> option id) into a VariationState snapshot:
- Visibility: which variations/options are presentable right now
- Price: sum of selected option modifiers (delta over base price, minor units)
- Validity: which required variations are still missing a selection

Every function is pure: inputs are never mutated, a new selection mapping or
state is returned instead. Unknown variation/option ids are tolerated (zero
price contribution, passed through unpruned) since selections may outlive a
catalog change.
"""

from collections.abc import Mapping, Sequence

from app.schemas.variation import (
    OptionDefinition,
    OptionView,
    VariationDefinition,
    VariationKind,
    VariationState,
    VariationView,
)

Selections = Mapping[str, str]


def create_variation_state(
    definitions: Sequence[VariationDefinition],
    selections: Selections | None = None,
) -> VariationState:
    """Build the state snapshot for the given definitions and selections.

    Variations are returned sorted by `order`; ties keep definition order.
    """
    selections = selections or {}

    variations = [
        VariationView(
            **definition.model_dump(exclude={"options"}),
            options=[
                OptionView(
                    **option.model_dump(),
                    is_visible=is_option_visible(definition, option, definitions, selections),
                )
                for option in definition.options
            ],
            is_visible=is_variation_visible(definition, definitions, selections),
        )
        for definition in definitions
    ]

    is_valid, missing_required = validate_selections(definitions, selections)

    return VariationState(
        variations=sorted(variations, key=lambda v: v.order),
        total_price=calculate_total_price(definitions, selections),
        is_valid=is_valid,
        missing_required=missing_required,
    )


def is_variation_visible(
    variation: VariationDefinition,
    all_variations: Sequence[VariationDefinition],
    selections: Selections,
) -> bool:
    """Decide whether a variation is presentable.

    A dependent variation is unlocked once every parent has a selection for
    which at least one of its options is available. It is not hidden just
    because the option currently stored for it went stale.
    """
    if variation.kind == VariationKind.INDEPENDENT:
        return True

    if not variation.depends_on:
        return True

    known_ids = {v.id for v in all_variations}
    for parent_id in variation.depends_on:
        if parent_id not in known_ids:
            return False

        selected_option_id = selections.get(parent_id)
        if not selected_option_id:
            return False

        if not any(
            _is_option_available_for_selection(option, parent_id, selected_option_id)
            for option in variation.options
        ):
            return False

    return True


def is_option_visible(
    variation: VariationDefinition,
    option: OptionDefinition,
    all_variations: Sequence[VariationDefinition],
    selections: Selections,
) -> bool:
    """Decide whether an option is presentable.

    Constraints in `available_for` are OR-ed: one satisfied constraint is
    enough, even when the constraints name different parent variations.
    """
    if not is_variation_visible(variation, all_variations, selections):
        return False

    if not option.available:
        return False

    if not option.available_for:
        return True

    for constraint in option.available_for:
        selected_option_id = selections.get(constraint.variation_id)
        if selected_option_id and selected_option_id in constraint.option_ids:
            return True

    return False


def _is_option_available_for_selection(
    option: OptionDefinition,
    variation_id: str,
    selected_option_id: str,
) -> bool:
    if not option.available_for:
        return True

    constraint = next(
        (c for c in option.available_for if c.variation_id == variation_id),
        None,
    )
    if constraint is None:
        return True

    return selected_option_id in constraint.option_ids


def get_available_options(
    variation: VariationDefinition,
    all_variations: Sequence[VariationDefinition],
    selections: Selections,
) -> list[OptionDefinition]:
    """Options of `variation` that are visible under the current selections."""
    return [
        option
        for option in variation.options
        if is_option_visible(variation, option, all_variations, selections)
    ]


def calculate_total_price(
    definitions: Sequence[VariationDefinition],
    selections: Selections,
) -> int:
    """Sum the price modifiers of the selected options.

    The base price is added by the caller. Selected options count whether or
    not they are currently visible.
    """
    total = 0
    for variation_id, option_id in selections.items():
        option = _find_option(definitions, variation_id, option_id)
        if option is not None:
            total += option.price_modifier
    return total


def validate_selections(
    definitions: Sequence[VariationDefinition],
    selections: Selections,
) -> tuple[bool, list[str]]:
    """Check that every required variation has a stored selection.

    Returns:
        (is_valid, names of required variations without a selection).
        Hidden variations are not skipped.
    """
    missing_required = [
        variation.name
        for variation in definitions
        if variation.required and not selections.get(variation.id)
    ]
    return not missing_required, missing_required


def update_selection(
    definitions: Sequence[VariationDefinition],
    current_selections: Selections,
    variation_id: str,
    option_id: str,
) -> dict[str, str]:
    """Apply a choice and drop direct dependents it invalidated.

    Only variations whose `depends_on` names `variation_id` are re-checked;
    grand-dependents keep their stored option even if it went stale.

    Returns:
        New selection mapping; `current_selections` is left untouched.
    """
    new_selections = {**current_selections, variation_id: option_id}
    by_id = {v.id: v for v in definitions}

    valid_selections: dict[str, str] = {}
    for key, value in new_selections.items():
        variation = by_id.get(key)
        if variation is None:
            valid_selections[key] = value
            continue

        if variation.kind == VariationKind.DEPENDENT and variation_id in (variation.depends_on or []):
            still_valid = any(
                option.id == value
                and is_option_visible(variation, option, definitions, new_selections)
                for option in variation.options
            )
            if still_valid:
                valid_selections[key] = value
        else:
            valid_selections[key] = value

    return valid_selections


def initial_selections(definitions: Sequence[VariationDefinition]) -> dict[str, str]:
    """Starting selections for a product page.

    Auto-selects only when the product has a single variation with a single option.
    """
    if len(definitions) == 1 and len(definitions[0].options) == 1:
        variation = definitions[0]
        return update_selection(definitions, {}, variation.id, variation.options[0].id)
    return {}


def get_current_variation_image(
    definitions: Sequence[VariationDefinition],
    selections: Selections,
    base_images: Sequence[str],
) -> str | None:
    """Preview image: first image of the first selected option that has one."""
    for variation_id, option_id in selections.items():
        option = _find_option(definitions, variation_id, option_id)
        if option is not None and option.images:
            return option.images[0]

    return base_images[0] if base_images else None


def _find_option(
    definitions: Sequence[VariationDefinition],
    variation_id: str,
    option_id: str,
) -> OptionDefinition | None:
    variation = next((v for v in definitions if v.id == variation_id), None)
    if variation is None:
        return None
    return next((o for o in variation.options if o.id == option_id), None)
