"""
SKU id generation

Ids are <category code><gold short code>-<NNNN>, e.g. RGYG-0042. The number
comes from the 'sku' Sequence so it never repeats, even after deletions.
"""
from jewelerp.core.models import Sequence
from .constants import build_sku_id, format_sku_number

SKU_SEQUENCE = 'sku'


def get_predicted_sku_number():
    """Number the next SKU would receive; does not consume the sequence"""
    number = Sequence.peek(SKU_SEQUENCE)
    return {
        'predicted_number': number,
        'formatted_number': format_sku_number(number),
    }


def reserve_sku_number():
    return Sequence.next_value(SKU_SEQUENCE)


def generate_sku_id(category, gold_type, number=None):
    """Build an SKU id, reserving a fresh number when none is given"""
    if number is None:
        number = reserve_sku_number()
    return build_sku_id(category, gold_type, number)
