#!/usr/bin/env python3
"""
Price Resolver - Compute cost and retail price for every variant

Cost (price) walks the format's price_precedence:
  inline      price read from the source row
  price_list  separately uploaded price list, keyed by SKU then EAN
  invoice     PDF invoice prices, keyed by SKU then reference
and falls back to 0 with price_missing set.

Retail (rrp) walks rrp_precedence:
  inline      RRP column of the source row
  tarif       TARIF file, keyed by EAN then SKU
  markup      base * markup_factor, base being the resolved cost or the
              inline row price (markup_base: inline)
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from .errors import WarningCode, WarningLog
from .models import PriceSource, Product, Variant, ZERO, quantize_money
from .price_lists import PriceBook
from .vendor_profiles import FormatProfile

logger = logging.getLogger(__name__)


def _positive(value: Optional[Decimal]) -> bool:
    return value is not None and value > 0


class PriceResolver:
    """Resolve variant prices from inline values, companion price sources and markup"""

    def __init__(self, rule_loader=None):
        """
        Initialize price resolver

        Args:
            rule_loader: RuleLoader instance, used for the default markup factor
        """
        self.rule_loader = rule_loader
        default = rule_loader.get_default_markup_factor() if rule_loader else '2.5'
        self.default_markup_factor = Decimal(str(default))

    def _cost(self, variant: Variant, product: Product, fmt: FormatProfile,
              book: PriceBook) -> Optional[Tuple[Decimal, PriceSource]]:
        for source in fmt.price_precedence:
            if source == PriceSource.INLINE:
                value = variant.inline_price if _positive(variant.inline_price) else None
            elif source == PriceSource.PRICE_LIST:
                value = book.cost_from_price_list(variant.sku, variant.ean)
            elif source == PriceSource.INVOICE:
                value = book.cost_from_invoice(variant.sku, product.reference)
            else:
                value = None
            if _positive(value):
                return value, source
        return None

    def _rrp(self, variant: Variant, fmt: FormatProfile, book: PriceBook,
             markup_factor: Decimal) -> Optional[Tuple[Decimal, PriceSource]]:
        for source in fmt.rrp_precedence:
            if source == PriceSource.INLINE:
                value = variant.inline_rrp if _positive(variant.inline_rrp) else None
            elif source == PriceSource.TARIF:
                value = book.rrp_from_tarif(variant.ean, variant.sku)
            elif source == PriceSource.MARKUP:
                base = variant.price
                if fmt.markup_base == 'inline' and _positive(variant.inline_price):
                    base = variant.inline_price
                value = base * markup_factor if _positive(base) else None
            else:
                value = None
            if _positive(value):
                return value, source
        return None

    def resolve_product(self, product: Product, fmt: FormatProfile, book: Optional[PriceBook] = None,
                        warnings: Optional[WarningLog] = None) -> Product:
        """
        Resolve price and rrp of every variant of one product in place

        Args:
            product: Grouped product
            fmt: Format profile declaring precedence, markup factor and base
            book: Companion price sources for this run
            warnings: Receives one NO_PRICE_SOURCE warning per product with unpriced variants

        Returns:
            The same product
        """
        book = book or PriceBook()
        markup_factor = fmt.markup_factor or self.default_markup_factor
        missing: List[str] = []

        for variant in product.variants:
            cost = self._cost(variant, product, fmt, book)
            if cost:
                variant.price, variant.price_source = quantize_money(cost[0]), cost[1]
                variant.price_missing = False
            else:
                variant.price, variant.price_source = quantize_money(ZERO), PriceSource.NONE
                variant.price_missing = True
                missing.append(variant.size)

            rrp = self._rrp(variant, fmt, book, markup_factor)
            if rrp:
                variant.rrp, variant.rrp_source = quantize_money(rrp[0]), rrp[1]
            else:
                variant.rrp, variant.rrp_source = quantize_money(ZERO), PriceSource.NONE

        if missing and warnings is not None:
            warnings.add(
                WarningCode.NO_PRICE_SOURCE,
                f"[{fmt.vendor}] No price source for {product.reference} (sizes: {', '.join(missing)})",
                reference=product.reference,
            )
        return product

    def resolve(self, products: Sequence[Product], fmt: FormatProfile, book: Optional[PriceBook] = None,
                warnings: Optional[WarningLog] = None) -> List[Product]:
        """Resolve prices for all products; returns the same list"""
        for product in products:
            self.resolve_product(product, fmt, book, warnings)

        variants = [v for p in products for v in p.variants]
        by_source = {}
        for v in variants:
            by_source[v.price_source.value] = by_source.get(v.price_source.value, 0) + 1
        logger.info(f"[{fmt.vendor}] Resolved prices for {len(variants)} variants: {by_source}")
        return list(products)
