"""
Size validation for SKUs and order items
"""
from decimal import Decimal, InvalidOperation
from .constants import SIZE_RULES


def get_size_rule(category):
    rule = SIZE_RULES.get(category)
    return dict(rule) if rule else None


def validate_size(category, size):
    """
    Check a size against the category's rules.

    Returns a list of error messages; empty when the size is acceptable.
    Sizes for categories without rules, blank sizes and non-numeric sizes
    (e.g. "Free") are accepted as-is.
    """
    rule = SIZE_RULES.get(category)
    if not rule or size in (None, ''):
        return []

    try:
        value = Decimal(str(size))
    except InvalidOperation:
        return []

    unit = rule['unit']
    if not value.is_finite():
        return [f"Size for {category} must be a number of {unit}."]

    errors = []
    if value < rule['min'] or value > rule['max']:
        errors.append(
            f"Size for {category} must be between {rule['min']} and {rule['max']} {unit}."
        )
    if value % rule['denomination'] != 0:
        errors.append(
            f"Size for {category} must be in steps of {rule['denomination']} {unit}."
        )
    return errors
