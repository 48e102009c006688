"""Tests for the product variation engine."""

from app.schemas.variation import (
    AvailabilityConstraint,
    OptionDefinition,
    VariationDefinition,
    VariationKind,
)
from app.services.variation_engine import (
    calculate_total_price,
    create_variation_state,
    get_available_options,
    get_current_variation_image,
    initial_selections,
    is_option_visible,
    is_variation_visible,
    update_selection,
    validate_selections,
)


def _option(
    option_id: str,
    price_modifier: int = 0,
    available: bool = True,
    available_for: dict[str, list[str]] | None = None,
    images: list[str] | None = None,
) -> OptionDefinition:
    return OptionDefinition(
        id=option_id,
        name=option_id,
        display_name=option_id.title(),
        price_modifier=price_modifier,
        available=available,
        images=images,
        available_for=[
            AvailabilityConstraint(variation_id=parent, option_ids=ids)
            for parent, ids in (available_for or {}).items()
        ]
        or None,
    )


def _variation(
    variation_id: str,
    options: list[OptionDefinition],
    order: int = 1,
    required: bool = True,
    depends_on: list[str] | None = None,
) -> VariationDefinition:
    return VariationDefinition(
        id=variation_id,
        name=variation_id,
        display_name=variation_id.title(),
        kind=VariationKind.DEPENDENT if depends_on is not None else VariationKind.INDEPENDENT,
        order=order,
        required=required,
        depends_on=depends_on,
        options=options,
    )


def size_color() -> list[VariationDefinition]:
    """Size (S/M/L) -> Color (Red for S/M, Blue for L)."""
    return [
        _variation("size", [_option("s"), _option("m"), _option("l", 200)], order=1),
        _variation(
            "color",
            [
                _option("red", 0, available_for={"size": ["s", "m"]}),
                _option("blue", 300, available_for={"size": ["l"]}),
            ],
            order=2,
            depends_on=["size"],
        ),
    ]


def chain() -> list[VariationDefinition]:
    """A -> B -> C, each dependent on the previous one."""
    return [
        _variation("a", [_option("a1"), _option("a2")], order=1),
        _variation(
            "b",
            [
                _option("b1", available_for={"a": ["a1"]}),
                _option("b2", available_for={"a": ["a1", "a2"]}),
            ],
            order=2,
            depends_on=["a"],
        ),
        _variation(
            "c",
            [_option("c1", 100, available_for={"b": ["b1"]})],
            order=3,
            depends_on=["b"],
        ),
    ]


def _view(state, variation_id):
    return next(v for v in state.variations if v.id == variation_id)


def _option_view(state, variation_id, option_id):
    return next(o for o in _view(state, variation_id).options if o.id == option_id)


class TestScenarios:
    """End-to-end Size/Color and Material scenarios."""

    def test_empty_selection(self):
        state = create_variation_state(size_color(), {})
        assert state.missing_required == ["size", "color"]
        assert state.is_valid is False
        assert _view(state, "size").is_visible is True
        assert _view(state, "color").is_visible is False

    def test_size_selected_unlocks_color(self):
        state = create_variation_state(size_color(), {"size": "m"})
        assert _view(state, "color").is_visible is True
        assert _option_view(state, "color", "red").is_visible is True
        assert _option_view(state, "color", "blue").is_visible is False
        assert state.total_price == 0
        assert state.missing_required == ["color"]

    def test_complete_selection_is_valid(self):
        state = create_variation_state(size_color(), {"size": "m", "color": "red"})
        assert state.is_valid is True
        assert state.total_price == 0
        assert state.missing_required == []

    def test_changing_size_prunes_color(self):
        result = update_selection(size_color(), {"size": "m", "color": "red"}, "size", "l")
        assert result == {"size": "l"}

    def test_single_option_auto_select(self):
        definitions = [_variation("material", [_option("canvas")])]
        assert initial_selections(definitions) == {"material": "canvas"}


class TestVariationVisibility:
    def test_independent_always_visible(self):
        definitions = size_color()
        assert is_variation_visible(definitions[0], definitions, {}) is True

    def test_dependent_hidden_until_parent_selected(self):
        definitions = size_color()
        color = definitions[1]
        assert is_variation_visible(color, definitions, {}) is False
        assert is_variation_visible(color, definitions, {"size": "s"}) is True

    def test_dependent_hidden_when_no_option_fits_parent(self):
        definitions = [
            _variation("size", [_option("s"), _option("xxl")]),
            _variation("color", [_option("red", available_for={"size": ["s"]})], depends_on=["size"]),
        ]
        assert is_variation_visible(definitions[1], definitions, {"size": "xxl"}) is False

    def test_unconstrained_option_unlocks_dependent(self):
        definitions = [
            _variation("size", [_option("s"), _option("xxl")]),
            _variation(
                "color",
                [_option("red", available_for={"size": ["s"]}), _option("black")],
                depends_on=["size"],
            ),
        ]
        assert is_variation_visible(definitions[1], definitions, {"size": "xxl"}) is True

    def test_dependent_without_parents_is_visible(self):
        orphan = VariationDefinition(
            id="engraving",
            name="engraving",
            display_name="Engraving",
            kind=VariationKind.DEPENDENT,
            options=[_option("yes")],
        )
        assert is_variation_visible(orphan, [orphan], {}) is True

    def test_unknown_parent_never_satisfied(self):
        color = _variation("color", [_option("red")], depends_on=["ghost"])
        assert is_variation_visible(color, [color], {"ghost": "x"}) is False

    def test_all_parents_required(self):
        definitions = [
            _variation("size", [_option("s")]),
            _variation("fit", [_option("slim")]),
            _variation("color", [_option("red")], depends_on=["size", "fit"]),
        ]
        assert is_variation_visible(definitions[2], definitions, {"size": "s"}) is False
        assert is_variation_visible(definitions[2], definitions, {"size": "s", "fit": "slim"}) is True


class TestOptionVisibility:
    def test_cascade_from_hidden_variation(self):
        definitions = size_color()
        color = definitions[1]
        red = color.options[0]
        assert is_option_visible(color, red, definitions, {}) is False

    def test_unavailable_option_hidden(self):
        size = _variation("size", [_option("s", available=False)])
        assert is_option_visible(size, size.options[0], [size], {}) is False

    def test_missing_available_flag_means_hidden(self):
        option = OptionDefinition.model_validate({"id": "s", "name": "s", "displayName": "S"})
        size = _variation("size", [option])
        assert is_option_visible(size, option, [size], {}) is False

    def test_constraints_on_different_parents_are_ored(self):
        definitions = [
            _variation("size", [_option("s"), _option("l")]),
            _variation("fit", [_option("slim"), _option("loose")]),
            _variation(
                "color",
                [_option("red", available_for={"size": ["s"], "fit": ["slim"]})],
            ),
        ]
        color = definitions[2]
        red = color.options[0]
        # Only the size constraint holds; that is enough.
        assert is_option_visible(color, red, definitions, {"size": "s", "fit": "loose"}) is True
        assert is_option_visible(color, red, definitions, {"size": "l", "fit": "loose"}) is False

    def test_get_available_options(self):
        definitions = size_color()
        available = get_available_options(definitions[1], definitions, {"size": "l"})
        assert [o.id for o in available] == ["blue"]

    def test_cascade_invariant_over_selection_sets(self):
        definitions = chain()
        selection_sets = [
            {},
            {"a": "a1"},
            {"a": "a2"},
            {"a": "a1", "b": "b1"},
            {"a": "a2", "b": "b2", "c": "c1"},
        ]
        for selections in selection_sets:
            state = create_variation_state(definitions, selections)
            for variation in state.variations:
                for option in variation.options:
                    if option.is_visible:
                        assert variation.is_visible


class TestPrice:
    def test_sums_selected_modifiers(self):
        assert calculate_total_price(size_color(), {"size": "l", "color": "blue"}) == 500

    def test_unknown_ids_contribute_zero(self):
        selections = {"ghost": "x", "size": "bogus", "color": "blue"}
        assert calculate_total_price(size_color(), selections) == 300

    def test_order_independent(self):
        forward = {"size": "l", "color": "blue"}
        backward = {"color": "blue", "size": "l"}
        assert calculate_total_price(size_color(), forward) == calculate_total_price(size_color(), backward)

    def test_stale_selection_still_priced(self):
        state = create_variation_state(size_color(), {"size": "m", "color": "blue"})
        assert _option_view(state, "color", "blue").is_visible is False
        assert state.total_price == 300

    def test_negative_modifier(self):
        definitions = [_variation("material", [_option("paper", -500)])]
        assert calculate_total_price(definitions, {"material": "paper"}) == -500


class TestValidation:
    def test_required_hidden_variation_counts_as_missing(self):
        definitions = size_color()
        state = create_variation_state(definitions, {})
        assert _view(state, "color").is_visible is False
        assert "color" in state.missing_required

    def test_optional_variation_not_required(self):
        definitions = [_variation("gift_wrap", [_option("yes")], required=False)]
        assert validate_selections(definitions, {}) == (True, [])

    def test_empty_string_selection_is_missing(self):
        assert validate_selections(size_color(), {"size": "", "color": "red"}) == (False, ["size"])

    def test_missing_keeps_definition_order(self):
        definitions = list(reversed(size_color()))
        assert validate_selections(definitions, {}) == (False, ["color", "size"])


class TestUpdateSelection:
    def test_keeps_dependent_still_visible(self):
        result = update_selection(size_color(), {"size": "s", "color": "red"}, "size", "m")
        assert result == {"size": "m", "color": "red"}

    def test_does_not_mutate_input(self):
        current = {"size": "m", "color": "red"}
        update_selection(size_color(), current, "size", "l")
        assert current == {"size": "m", "color": "red"}

    def test_unknown_keys_pass_through(self):
        result = update_selection(size_color(), {"ghost": "x"}, "size", "m")
        assert result == {"ghost": "x", "size": "m"}

    def test_single_hop_pruning(self):
        definitions = chain()
        result = update_selection(definitions, {"a": "a1", "b": "b1", "c": "c1"}, "a", "a2")
        # b1 is not available for a2 and is dropped; c is not re-checked.
        assert result == {"a": "a2", "c": "c1"}

    def test_unknown_option_of_direct_dependent_is_dropped(self):
        result = update_selection(size_color(), {"color": "purple"}, "size", "m")
        assert result == {"size": "m"}

    def test_independent_selection_replaced(self):
        result = update_selection(size_color(), {"size": "s"}, "size", "m")
        assert result == {"size": "m"}


class TestVariationState:
    def test_pure(self):
        definitions = size_color()
        selections = {"size": "m"}
        assert create_variation_state(definitions, selections) == create_variation_state(
            definitions, selections
        )

    def test_sorted_by_order_with_stable_ties(self):
        definitions = [
            _variation("late", [_option("x")], order=5),
            _variation("tie_first", [_option("x")], order=1),
            _variation("tie_second", [_option("x")], order=1),
        ]
        state = create_variation_state(definitions)
        assert [v.id for v in state.variations] == ["tie_first", "tie_second", "late"]

    def test_serializes_camel_case(self):
        state = create_variation_state(size_color(), {"size": "m"})
        data = state.model_dump(by_alias=True)
        assert data["totalPrice"] == 0
        assert data["missingRequired"] == ["color"]
        assert data["variations"][1]["isVisible"] is True
        assert data["variations"][1]["type"] == "dependent"


class TestInitialSelections:
    def test_no_auto_select_with_several_options(self):
        definitions = [_variation("material", [_option("canvas"), _option("paper")])]
        assert initial_selections(definitions) == {}

    def test_no_auto_select_with_several_variations(self):
        definitions = [
            _variation("material", [_option("canvas")]),
            _variation("frame", [_option("oak")], order=2),
        ]
        assert initial_selections(definitions) == {}

    def test_no_variations(self):
        assert initial_selections([]) == {}


class TestCurrentImage:
    def test_first_selected_option_with_image(self):
        definitions = [
            _variation("size", [_option("s")]),
            _variation("color", [_option("red", images=["red-front.jpg", "red-back.jpg"])], order=2),
        ]
        image = get_current_variation_image(definitions, {"size": "s", "color": "red"}, ["base.jpg"])
        assert image == "red-front.jpg"

    def test_falls_back_to_base_images(self):
        assert get_current_variation_image(size_color(), {"size": "s"}, ["base.jpg"]) == "base.jpg"

    def test_no_images(self):
        assert get_current_variation_image(size_color(), {}, []) is None
