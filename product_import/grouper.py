#!/usr/bin/env python3
"""
Grouper - Aggregate RawLineItems into Products with Variants

Products come out in first-occurrence order of their group key. The first
row of a group supplies the descriptive fields; later rows only fill fields
that are still empty and add one variant each.
"""

import logging
from typing import Callable, Dict, Hashable, List, Optional, Sequence

from .errors import WarningLog
from .models import Product, RawLineItem, Variant
from .vendor_profiles import size_key

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = (
    ('name', 'display_name'),
    ('original_name', 'product_name'),
    ('color', 'color'),
    ('material', 'composition'),
    ('ecommerce_description', 'description'),
    ('csv_category', 'csv_category'),
    ('suggested_brand', 'suggested_brand'),
)


def _never_unit(size: str) -> bool:
    return False


def _variant_from_item(item: RawLineItem) -> Variant:
    return Variant(
        size=item.size,
        raw_size=item.size,
        quantity=item.quantity or 0,
        ean=item.ean,
        sku=item.sku or None,
        inline_price=item.unit_price,
        inline_rrp=item.rrp,
        row_number=item.row_number,
    )


def _fill_descriptive(product: Product, item: RawLineItem) -> None:
    for product_field, item_field in DESCRIPTIVE_FIELDS:
        value = getattr(item, item_field)
        if value and not getattr(product, product_field):
            setattr(product, product_field, value)
    if not product.name and item.product_name:
        product.name = item.product_name


def group(items: Sequence[RawLineItem], key_fn: Callable[[RawLineItem], Hashable],
          duplicate_rule: str = 'skip', warnings: Optional[WarningLog] = None,
          is_unit_size: Callable[[str], bool] = _never_unit, vendor: str = '') -> List[Product]:
    """
    Group line items into products

    Args:
        items: Line items in file order (reference and size filled)
        key_fn: Vendor grouping key, e.g. (reference, color)
        duplicate_rule: 'skip' keeps the first row of a repeated size, 'merge' adds quantities
        warnings: Collects rows skipped as duplicate sizes
        is_unit_size: Unit-size test; unit rows are never treated as duplicates
        vendor: Vendor code stored on each product

    Returns:
        Products in first-occurrence order of their key
    """
    products: Dict[Hashable, Product] = {}
    sizes_seen: Dict[Hashable, Dict[str, Variant]] = {}

    for item in items:
        key = key_fn(item)
        product = products.get(key)
        if product is None:
            product = Product(reference=item.reference, vendor=vendor)
            products[key] = product
            sizes_seen[key] = {}
        _fill_descriptive(product, item)

        variant = _variant_from_item(item)
        if not is_unit_size(item.size):
            seen = sizes_seen[key]
            existing = seen.get(size_key(item.size))
            if existing is not None:
                if duplicate_rule == 'merge':
                    existing.quantity += variant.quantity
                    existing.ean = existing.ean or variant.ean
                    existing.sku = existing.sku or variant.sku
                    existing.inline_price = existing.inline_price or variant.inline_price
                    existing.inline_rrp = existing.inline_rrp or variant.inline_rrp
                    logger.debug(f"Merged duplicate size {item.size} into {product.reference}")
                elif warnings is not None:
                    warnings.row_skipped(item.row_number, 'duplicate size', [item.reference, item.size])
                continue
            seen[size_key(item.size)] = variant
        product.variants.append(variant)

    result = list(products.values())
    logger.info(f"Grouped {len(items)} items into {len(result)} products")
    return result


def _first(values, present=bool):
    for value in values:
        if present(value):
            return value
    return None


def _positive(value) -> bool:
    return value is not None and value > 0


def collapse_unit_variants(product: Product, is_unit_size: Callable[[str], bool]) -> Product:
    """
    Collapse all unit-sized variants of a product into one

    The collapsed variant sits where the first unit variant was; its quantity
    is the sum, and ean/sku/price/rrp come from the first variant that has a
    value for each field. Running it twice changes nothing.

    Returns:
        The same product, updated in place
    """
    units = [v for v in product.variants if is_unit_size(v.raw_size or v.size)]
    if len(units) < 2:
        return product

    first = units[0]
    price_variant = _first(units, lambda v: _positive(v.price))
    rrp_variant = _first(units, lambda v: _positive(v.rrp))
    collapsed = Variant(
        size=first.size,
        raw_size=first.raw_size,
        quantity=sum(v.quantity for v in units),
        ean=_first(v.ean for v in units) or '',
        sku=_first(v.sku for v in units),
        price=price_variant.price if price_variant else first.price,
        rrp=rrp_variant.rrp if rrp_variant else first.rrp,
        price_source=price_variant.price_source if price_variant else first.price_source,
        rrp_source=rrp_variant.rrp_source if rrp_variant else first.rrp_source,
        price_missing=price_variant.price_missing if price_variant else first.price_missing,
        inline_price=_first((v.inline_price for v in units), _positive),
        inline_rrp=_first((v.inline_rrp for v in units), _positive),
        row_number=first.row_number,
    )

    unit_ids = {id(v) for v in units}
    variants: List[Variant] = []
    for variant in product.variants:
        if variant is first:
            variants.append(collapsed)
        elif id(variant) not in unit_ids:
            variants.append(variant)
    logger.debug(f"Collapsed {len(units)} unit variants of {product.reference} (quantity {collapsed.quantity})")
    product.variants = variants
    return product


def total_quantity(products: Sequence[Product]) -> int:
    return sum(v.quantity for p in products for v in p.variants)
