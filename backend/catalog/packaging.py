"""
Packaging hierarchy calculations.

Products are sold in up to three tiers:

    fpakk       base unit (a single bottle or can)
    mellompakk  inner pack (a case of ``quantity_per_box`` base units)
    toppakk     outer pack (a pallet of ``boxes_per_pallet`` inner packs)

These helpers take plain mappings or model instances so the same rules apply
to request payloads, saved products and stock counts. None of them touch the
database.
"""
from collections.abc import Mapping

SIMPLE = 'simple'
HIERARCHICAL = 'hierarchical'

LEVEL_FPAKK = 'fpakk'
LEVEL_MELLOMPAKK = 'mellompakk'
LEVEL_TOPPAKK = 'toppakk'
LEVELS = (LEVEL_FPAKK, LEVEL_MELLOMPAKK, LEVEL_TOPPAKK)

LEVEL_CHOICES = [
    (LEVEL_FPAKK, 'Fpakk (base unit)'),
    (LEVEL_MELLOMPAKK, 'Mellompakk (inner pack)'),
    (LEVEL_TOPPAKK, 'Toppakk (outer case)'),
]


def _get(obj, key, default=None):
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    # Missing one-to-one relations raise a subclass of AttributeError
    return getattr(obj, key, default)


def _int(value):
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def calculate_total_units(inventory, structure, quantity_per_inner_pack=None, inner_packs_per_outer_pack=None):
    """
    Total base units held across all tiers.

    Simple products only count loose base units; any inner or outer counts are
    ignored. For hierarchical products the result is
    ``fpakk + mellompakk * q + toppakk * b * q``. Missing counts or multipliers
    count as zero.
    """
    loose = _int(_get(inventory, LEVEL_FPAKK))
    if structure != HIERARCHICAL:
        return loose

    per_inner = _int(quantity_per_inner_pack)
    per_outer = _int(inner_packs_per_outer_pack)
    from_inner = _int(_get(inventory, LEVEL_MELLOMPAKK)) * per_inner
    from_outer = _int(_get(inventory, LEVEL_TOPPAKK)) * per_outer * per_inner
    return loose + from_inner + from_outer


def calculate_outer_pack_total_units(boxes_per_pallet, quantity_per_box):
    """Base units in one toppakk"""
    return _int(boxes_per_pallet) * _int(quantity_per_box)


def units_per_level(level, product):
    """Base units contained in a single unit of ``level``; 0 when unknown"""
    if level == LEVEL_FPAKK:
        return 1
    quantity_per_box = _int(_get(_get(product, LEVEL_MELLOMPAKK), 'quantity_per_box'))
    if level == LEVEL_MELLOMPAKK:
        return quantity_per_box
    if level == LEVEL_TOPPAKK:
        boxes_per_pallet = _get(_get(product, LEVEL_TOPPAKK), 'boxes_per_pallet')
        return calculate_outer_pack_total_units(boxes_per_pallet, quantity_per_box)
    return 0


def validate_product_configuration(product):
    """
    Check a product definition before it is saved.

    Returns ``{'valid': bool, 'errors': [str, ...]}`` listing every rule the
    product breaks. Never raises.
    """
    errors = []

    if not _get(product, 'name'):
        errors.append('Product name is required')
    structure = _get(product, 'structure')
    if not structure:
        errors.append('Product structure is required')

    if structure == HIERARCHICAL:
        fpakk = _get(product, LEVEL_FPAKK)
        mellompakk = _get(product, LEVEL_MELLOMPAKK)
        toppakk = _get(product, LEVEL_TOPPAKK)

        if not fpakk:
            errors.append('Fpakk (base unit) details are required for hierarchical products')
        if not mellompakk:
            errors.append('Mellompakk (inner pack) details are required for hierarchical products')
        if not toppakk:
            errors.append('Toppakk (outer case) details are required for hierarchical products')

        if mellompakk and _int(_get(mellompakk, 'quantity_per_box')) <= 0:
            errors.append('Mellompakk must contain at least 1 unit.')
        if toppakk and _int(_get(toppakk, 'boxes_per_pallet')) <= 0:
            errors.append('Toppakk must contain at least 1 pack.')

    return {
        'valid': not errors,
        'errors': errors,
    }


def format_packaging_level(level, quantity, product):
    """
    Human-readable quantity at a tier, e.g. ``"2 kasser (48 stk)"``.

    Falls back to the bare quantity when the tier's packaging data is missing.
    """
    if level == LEVEL_FPAKK:
        return f"{quantity} stk"

    mellompakk = _get(product, LEVEL_MELLOMPAKK)
    toppakk = _get(product, LEVEL_TOPPAKK)
    quantity_per_box = _int(_get(mellompakk, 'quantity_per_box'))

    if level == LEVEL_MELLOMPAKK and mellompakk:
        return f"{quantity} kasser ({quantity * quantity_per_box} stk)"

    if level == LEVEL_TOPPAKK and toppakk and mellompakk:
        total_boxes = quantity * _int(_get(toppakk, 'boxes_per_pallet'))
        return f"{quantity} paller ({total_boxes} kasser, {total_boxes * quantity_per_box} stk)"

    return f"{quantity}"
