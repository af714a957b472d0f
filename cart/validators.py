"""
Modifier selection validation.

Pure functions over catalog snapshots: nothing here touches the database or
the cart. Checks run in a fixed order; within one check every violation is
collected so the caller can fix the whole request at once.
"""
import logging
from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple

from catalog.services import GroupSnapshot, OptionSnapshot

from . import errors
from .errors import CartError, CartResult

logger = logging.getLogger(__name__)

Selection = Tuple[int, int]


def dedupe_selections(selections: Iterable[Selection]) -> List[Selection]:
    """Drop repeated (group_id, option_id) pairs, keeping first-seen order"""
    seen = set()
    unique = []
    for group_id, option_id in selections:
        pair = (int(group_id), int(option_id))
        if pair not in seen:
            seen.add(pair)
            unique.append(pair)
    return unique


def _group_entry(group, selected):
    return {
        'group_id': group.group_id,
        'group_name': group.name,
        'min_required': group.min_selection,
        'max_allowed': group.max_selection,
        'selected': selected,
    }


def check_groups_exist(groups_by_id, selections):
    unknown = [
        {'modifier_group_id': group_id, 'selected_option_id': option_id}
        for group_id, option_id in selections
        if group_id not in groups_by_id
    ]
    if unknown:
        return CartError.invalid(
            errors.INVALID_MODIFIER_GROUP,
            'Some modifier groups do not belong to this product',
            selections=unknown,
        )
    return None


def check_options_exist(options, selections):
    unknown = [
        {'modifier_group_id': group_id, 'selected_option_id': option_id}
        for group_id, option_id in selections
        if option_id not in options
    ]
    if unknown:
        return CartError.invalid(
            errors.INVALID_MODIFIER_OPTION,
            'Some modifier options do not exist',
            selections=unknown,
        )
    return None


def check_option_groups(groups_by_id, options, selections):
    mismatched = []
    for group_id, option_id in selections:
        option = options[option_id]
        if option.group_id != group_id:
            mismatched.append({
                'selected_option_id': option_id,
                'option_name': option.name,
                'expected_group_id': group_id,
                'expected_group_name': groups_by_id[group_id].name,
                'actual_group_id': option.group_id,
                'actual_group_name': option.group_name,
            })
    if mismatched:
        return CartError.invalid(
            errors.MODIFIER_GROUP_MISMATCH,
            'Some modifier options do not belong to the submitted group',
            mismatches=mismatched,
        )
    return None


def check_cardinality(groups, resolved, product_id=None, product_name=None):
    counts = Counter(option.group_id for option in resolved)
    missing = []
    over = []

    for group in groups:
        if not group.is_required:
            continue
        selected = counts.get(group.group_id, 0)
        if selected < group.min_selection:
            entry = _group_entry(group, selected)
            entry['options'] = [
                {'id': option.option_id, 'name': option.name, 'price': option.price_delta}
                for option in group.options
            ]
            missing.append(entry)
        if selected > group.max_selection:
            over.append(_group_entry(group, selected))

    if not missing and not over:
        return None

    details = {
        'product_id': product_id,
        'product_name': product_name,
        'missing_groups': missing,
        'invalid_groups': over,
    }
    if missing:
        return CartError.invalid(
            errors.MODIFIERS_REQUIRED,
            'This product requires modifier selections before it can be added to the cart',
            **details,
        )
    return CartError.invalid(
        errors.INVALID_MODIFIER_SELECTION,
        'Modifier selections are outside the allowed range',
        **details,
    )


def check_resolved_groups(groups_by_id, resolved):
    stray = [
        {'id': option.option_id, 'name': option.name, 'group_id': option.group_id, 'group_name': option.group_name}
        for option in resolved
        if option.group_id not in groups_by_id
    ]
    if stray:
        return CartError.invalid(
            errors.INVALID_PRODUCT_MODIFIERS,
            'Some modifiers do not belong to this product',
            invalid_modifiers=stray,
        )
    return None


def validate_selections(
    groups: Sequence[GroupSnapshot],
    options: Dict[int, OptionSnapshot],
    selections: Iterable[Selection],
    product_id=None,
    product_name=None,
) -> CartResult:
    """
    Validate requested ``(group_id, option_id)`` pairs for one product.

    ``groups`` are the product's modifier groups and ``options`` maps every
    submitted option id that exists (in the product's restaurant) to its
    snapshot. On success the result value is the list of selected options,
    without duplicates.
    """
    selections = dedupe_selections(selections)
    groups_by_id = {group.group_id: group for group in groups}

    error = (
        check_groups_exist(groups_by_id, selections)
        or check_options_exist(options, selections)
        or check_option_groups(groups_by_id, options, selections)
    )
    if error is None:
        resolved = []
        seen = set()
        for _, option_id in selections:
            if option_id not in seen:
                seen.add(option_id)
                resolved.append(options[option_id])

        error = (
            check_cardinality(groups, resolved, product_id, product_name)
            or check_resolved_groups(groups_by_id, resolved)
        )

    if error is not None:
        logger.info(f"Rejected modifier selection for product {product_id}: {error.code}")
        return CartResult.failure(error)

    return CartResult.success(resolved)
