"""
Unit tests for modifier selection validation.

These run against catalog snapshots only; no database is involved.
"""
from decimal import Decimal

from cart import errors
from cart.errors import ErrorKind
from cart.validators import check_resolved_groups, dedupe_selections, validate_selections
from catalog.services import GroupSnapshot, OptionSnapshot

SMALL = OptionSnapshot(option_id=11, group_id=1, name='Small', price_delta=Decimal('0.00'), group_name='Size')
LARGE = OptionSnapshot(option_id=12, group_id=1, name='Large', price_delta=Decimal('5.00'), group_name='Size')
CHEESE = OptionSnapshot(option_id=21, group_id=2, name='Cheese', price_delta=Decimal('25.50'), group_name='Extras')
# Same restaurant, but a group the product does not use
SAUCE = OptionSnapshot(option_id=31, group_id=3, name='Chili', price_delta=Decimal('1.00'), group_name='Sauces')

SIZE = GroupSnapshot(group_id=1, name='Size', min_selection=1, max_selection=1, options=[SMALL, LARGE])
EXTRAS = GroupSnapshot(group_id=2, name='Extras', min_selection=0, max_selection=1, options=[CHEESE])

GROUPS = [SIZE, EXTRAS]
OPTIONS = {option.option_id: option for option in (SMALL, LARGE, CHEESE, SAUCE)}


def validate(selections, groups=GROUPS, options=OPTIONS):
    requested = {option_id for _, option_id in selections}
    known = {option_id: option for option_id, option in options.items() if option_id in requested}
    return validate_selections(groups, known, selections, product_id=7, product_name='Margherita')


class TestValidSelections:

    def test_required_group_satisfied(self):
        result = validate([(1, 12)])

        assert result.ok
        assert result.value == [LARGE]

    def test_required_and_optional(self):
        result = validate([(1, 11), (2, 21)])

        assert result.ok
        assert {option.option_id for option in result.value} == {11, 21}

    def test_product_without_groups_accepts_empty_selection(self):
        result = validate([], groups=[])

        assert result.ok
        assert result.value == []

    def test_duplicate_pair_is_collapsed(self):
        """The same (group, option) pair twice counts as one selection"""
        result = validate([(1, 12), (1, 12)])

        assert result.ok
        assert result.value == [LARGE]

    def test_dedupe_keeps_first_seen_order(self):
        assert dedupe_selections([(2, 21), (1, 12), (2, 21)]) == [(2, 21), (1, 12)]


class TestRequiredGroups:

    def test_missing_required_selection(self):
        result = validate([])

        assert not result.ok
        assert result.error.kind == ErrorKind.VALIDATION_FAILED
        assert result.error.code == errors.MODIFIERS_REQUIRED
        missing = result.error.details['missing_groups']
        assert [group['group_id'] for group in missing] == [1]
        assert missing[0]['min_required'] == 1
        assert missing[0]['selected'] == 0
        assert [option['name'] for option in missing[0]['options']] == ['Small', 'Large']
        assert result.error.details['product_name'] == 'Margherita'

    def test_optional_only_still_requires_size(self):
        result = validate([(2, 21)])

        assert result.error.code == errors.MODIFIERS_REQUIRED

    def test_too_many_in_single_choice_group(self):
        result = validate([(1, 11), (1, 12)])

        assert not result.ok
        assert result.error.code == errors.INVALID_MODIFIER_SELECTION
        over = result.error.details['invalid_groups']
        assert [group['group_id'] for group in over] == [1]
        assert over[0]['selected'] == 2
        assert over[0]['max_allowed'] == 1
        assert result.error.details['missing_groups'] == []


class TestUnknownReferences:

    def test_group_not_on_product(self):
        result = validate([(1, 11), (99, 21)])

        assert result.error.code == errors.INVALID_MODIFIER_GROUP
        assert result.error.details['selections'] == [{'modifier_group_id': 99, 'selected_option_id': 21}]

    def test_unknown_option(self):
        result = validate([(1, 404)])

        assert result.error.code == errors.INVALID_MODIFIER_OPTION
        assert result.error.details['selections'] == [{'modifier_group_id': 1, 'selected_option_id': 404}]

    def test_option_from_another_group(self):
        result = validate([(1, 21)])

        assert result.error.code == errors.MODIFIER_GROUP_MISMATCH
        mismatch = result.error.details['mismatches'][0]
        assert mismatch['expected_group_id'] == 1
        assert mismatch['actual_group_id'] == 2
        assert mismatch['actual_group_name'] == 'Extras'

    def test_group_checks_run_before_option_checks(self):
        result = validate([(99, 404)])

        assert result.error.code == errors.INVALID_MODIFIER_GROUP

    def test_resolved_option_outside_product_groups(self):
        result = check_resolved_groups({1: SIZE, 2: EXTRAS}, [SMALL, SAUCE])

        assert result.code == errors.INVALID_PRODUCT_MODIFIERS
        assert result.details['invalid_modifiers'] == [
            {'id': 31, 'name': 'Chili', 'group_id': 3, 'group_name': 'Sauces'}
        ]

    def test_resolved_options_within_product_groups(self):
        assert check_resolved_groups({1: SIZE, 2: EXTRAS}, [SMALL, CHEESE]) is None
