#!/usr/bin/env python3
"""
Reconciliation Engine - Overlay prices from a second file onto grouped products

The primary product set keeps its identity and every field except the
declared overlay fields (price and/or rrp). Products are matched on a
normalized key; variants inside a matched pair are matched on their size
label after both sides went through the size normalizer. A variant without
a counterpart takes the average of the secondary product's prices.
"""

import copy
import logging
from decimal import Decimal
from typing import Callable, Dict, Hashable, List, Optional, Sequence

from .errors import WarningCode, WarningLog
from .models import PriceSource, Product, Variant, quantize_money
from .vendor_profiles import RECONCILE_FIELDS, SizeHint, size_key

logger = logging.getLogger(__name__)


def key_on(fields: Sequence[str]) -> Callable[[Product], Hashable]:
    """Match function comparing products on case-insensitive, trimmed fields"""
    fields = tuple(fields)

    def key(product: Product) -> Hashable:
        return tuple(' '.join(str(getattr(product, f, '') or '').split()).lower() for f in fields)
    return key


def _average(values: List[Decimal]) -> Optional[Decimal]:
    if not values:
        return None
    return quantize_money(sum(values) / len(values))


def reconcile(primary: Sequence[Product], secondary: Sequence[Product],
              match_fn: Optional[Callable[[Product], Hashable]] = None,
              overlay_fields: Sequence[str] = ('rrp',),
              size_normalizer=None, size_hint: Optional[SizeHint] = None,
              drop_unmatched_zero_quantity: bool = False,
              warnings: Optional[WarningLog] = None,
              markup_factor: Optional[Decimal] = None) -> List[Product]:
    """
    Merge secondary prices into a copy of the primary products

    Args:
        primary: Authoritative products (not modified; a deep copy is returned)
        secondary: Products parsed from the companion file
        match_fn: Product -> key; defaults to (reference, color)
        overlay_fields: Subset of {'price', 'rrp'} copied from secondary variants
        size_normalizer: SizeNormalizer used to compare size labels of both sides
        size_hint: Vendor size hint for the normalizer
        drop_unmatched_zero_quantity: Remove variants of matched products that
            found no counterpart and have quantity 0
        warnings: Receives one RECONCILIATION_NO_MATCH per unmatched product
        markup_factor: When given, rrp derived by markup is recomputed after a price overlay

    Returns:
        Reconciled products in primary order

    Raises:
        ValueError: overlay_fields contains something other than price/rrp
    """
    overlay_fields = tuple(overlay_fields)
    invalid = [f for f in overlay_fields if f not in RECONCILE_FIELDS]
    if invalid:
        raise ValueError(f"overlay_fields must be a subset of {RECONCILE_FIELDS}, got {invalid}")

    match_fn = match_fn or key_on(('reference', 'color'))

    def label(variant: Variant) -> str:
        if size_normalizer is not None:
            return size_key(size_normalizer.normalize(variant.raw_size or variant.size, size_hint)[0])
        return size_key(variant.size)

    index: Dict[Hashable, Product] = {}
    for product in secondary:
        index.setdefault(match_fn(product), product)

    result = copy.deepcopy(list(primary))
    matched = exact = averaged = dropped = 0

    for product in result:
        other = index.get(match_fn(product))
        if other is None:
            if warnings is not None:
                warnings.add(
                    WarningCode.RECONCILIATION_NO_MATCH,
                    f"[{product.vendor}] No match for {product.reference}"
                    + (f" / {product.color}" if product.color else '') + " in secondary file",
                    reference=product.reference,
                )
            continue
        matched += 1

        by_label: Dict[str, Variant] = {}
        for variant in other.variants:
            by_label.setdefault(label(variant), variant)
        averages = {
            name: _average([getattr(v, name) for v in other.variants if getattr(v, name) > 0])
            for name in overlay_fields
        }

        kept: List[Variant] = []
        for variant in product.variants:
            counterpart = by_label.get(label(variant))
            if counterpart is not None:
                values = {name: getattr(counterpart, name) for name in overlay_fields}
                exact += 1
            elif drop_unmatched_zero_quantity and variant.quantity == 0:
                dropped += 1
                logger.debug(f"Dropped unmatched size {variant.size} of {product.reference} (quantity 0)")
                continue
            else:
                values = averages
                averaged += 1
                logger.debug(f"Size {variant.size} of {product.reference} not in secondary file, using average")

            _overlay(variant, values, markup_factor)
            kept.append(variant)
        product.variants = kept

    logger.info(f"Reconciled {len(result)} products: {matched} matched, {len(result) - matched} unmatched; "
                f"variants {exact} exact, {averaged} averaged, {dropped} dropped")
    return result


def _overlay(variant: Variant, values: Dict[str, Optional[Decimal]], markup_factor: Optional[Decimal]) -> None:
    price = values.get('price')
    rrp = values.get('rrp')
    if price is not None and price > 0:
        variant.price = quantize_money(price)
        variant.price_source = PriceSource.RECONCILED
        variant.price_missing = False
        if (rrp is None or rrp <= 0) and variant.rrp_source == PriceSource.MARKUP and markup_factor:
            variant.rrp = quantize_money(variant.price * markup_factor)
    if rrp is not None and rrp > 0:
        variant.rrp = quantize_money(rrp)
        variant.rrp_source = PriceSource.RECONCILED
