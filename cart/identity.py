"""
Cart line identity.

Two add requests land on the same cart line when they name the same product
and exactly the same set of modifier options. Options are identities, not
quantities: an option is either chosen or not.
"""
import hashlib


def normalize_option_ids(option_ids):
    """Deduplicated option ids, ascending"""
    return sorted(set(int(option_id) for option_id in option_ids))


def selection_key(option_ids):
    """Storage key for a selection set, stable under order and duplicates"""
    canonical = ','.join(str(option_id) for option_id in normalize_option_ids(option_ids))
    return hashlib.sha256(canonical.encode('ascii')).hexdigest()


def same_selection(stored_ids, requested_ids):
    stored = sorted(stored_ids)
    requested = sorted(requested_ids)
    if len(stored) != len(requested):
        return False
    return all(a == b for a, b in zip(stored, requested))


def find_matching_item(candidates, option_ids):
    """
    Return the existing cart item carrying exactly ``option_ids``, or None.

    ``candidates`` are the cart's items for one product; each must provide
    ``option_ids()``. An empty selection only matches an item without any
    selections.
    """
    requested = normalize_option_ids(option_ids)

    for item in candidates:
        stored = item.option_ids()
        if not requested:
            if not stored:
                return item
            continue
        if same_selection(stored, requested):
            return item
    return None
