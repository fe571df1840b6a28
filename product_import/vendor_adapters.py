#!/usr/bin/env python3
"""
Vendor Adapters - One adapter per vendor, on top of the shared layout applier

The column layout of every format is data (vendors.yaml); the adapter adds
the per-vendor micro-transforms that do not fit a column table:
- article codes split into reference / colour / size (code_pattern)
- display name composition and casing ("Brand - Product name")
- colour or size carried inside a free-text title
- brand suggestion against the caller's brand list
- the grouping key, including the product-name code
"""

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Type

from .errors import WarningLog
from .layout_applier import LayoutApplier
from .models import RawLineItem
from .name_hygiene import (
    clean_whitespace,
    compose_name,
    detect_brand,
    name_code,
    sentence_case,
    split_trailing_color,
    split_trailing_size,
    title_case,
)
from .vendor_profiles import FormatProfile, VendorProfile

logger = logging.getLogger(__name__)

CASE_FUNCTIONS: Dict[str, Callable[[str], str]] = {
    'keep': clean_whitespace,
    'sentence': sentence_case,
    'title': title_case,
    'lower': lambda s: clean_whitespace(s).lower(),
    'upper': lambda s: clean_whitespace(s).upper(),
}


class VendorAdapter:
    """Generic adapter: layout from the format profile, shared micro-transforms"""

    def __init__(self, profile: VendorProfile, fmt: FormatProfile, brands: Optional[Iterable[str]] = None):
        """
        Initialize vendor adapter

        Args:
            profile: Vendor profile
            fmt: Format being read (order, confirmation, prices, pdf, ...)
            brands: Known brand names for brand suggestion
        """
        self.profile = profile
        self.fmt = fmt
        self.brands = [b for b in (brands or []) if b]
        self.layout = LayoutApplier(fmt)

    @property
    def vendor(self) -> str:
        return self.profile.code

    # ---------------- extraction ----------------
    def extract(self, rows: Sequence[Sequence[str]], warnings: WarningLog,
                header_index: Optional[int] = None) -> List[RawLineItem]:
        """
        Extract transformed line items from delimited rows

        Raises:
            UnrecognizedFormat, MissingRequiredColumns: from the layout applier
        """
        items = self.layout.extract_items(rows, warnings, header_index)
        return self._finalize(items, warnings)

    def extract_pdf(self, pdf_rows: Sequence[Mapping[str, Any]], warnings: WarningLog) -> List[RawLineItem]:
        """Extract transformed line items from rows of the PDF extractor"""
        items = self.layout.extract_pdf_items(pdf_rows, warnings)
        return self._finalize(items, warnings)

    def _finalize(self, items: List[RawLineItem], warnings: WarningLog) -> List[RawLineItem]:
        kept: List[RawLineItem] = []
        for item in items:
            self.transform_item(item)
            if not item.reference:
                warnings.row_skipped(item.row_number, 'missing reference', [item.product_name, item.sku])
                continue
            if not item.size:
                warnings.row_skipped(item.row_number, 'missing size', [item.reference, item.product_name])
                continue
            kept.append(item)
        logger.debug(f"[{self.vendor}/{self.fmt.kind}] {len(kept)} of {len(items)} items kept after transform")
        return kept

    # ---------------- micro-transforms ----------------
    def transform_item(self, item: RawLineItem) -> RawLineItem:
        """Apply the vendor micro-transforms to one item in place"""
        self.split_code(item)
        item.display_name = self.display_name(item)
        item.suggested_brand = self.suggest_brand(item)
        return item

    def split_code(self, item: RawLineItem) -> None:
        """Split an article code into reference / colour / size with the format's code_pattern"""
        pattern = self.fmt.code_pattern
        if pattern is None:
            if not item.reference and item.sku:
                item.reference = item.sku
            return
        code = clean_whitespace(getattr(item, self.fmt.code_field, '') or item.reference or item.sku)
        m = pattern.match(code)
        if not m:
            if not item.reference:
                item.reference = code
            return
        parts = m.groupdict()
        if parts.get('reference'):
            item.reference = parts['reference']
        if parts.get('color') and not item.color:
            item.color = parts['color']
        if parts.get('size') and (not item.size or item.size == self.fmt.default_size):
            item.size = parts['size']

    def brand_for_name(self, item: RawLineItem) -> str:
        return item.brand or self.profile.brand

    def display_name(self, item: RawLineItem) -> str:
        case = CASE_FUNCTIONS.get(self.fmt.name_case, clean_whitespace)
        return compose_name(
            self.fmt.name_format,
            name=case(item.product_name),
            brand=self.brand_for_name(item),
            color=item.color,
            reference=item.reference,
        )

    def suggest_brand(self, item: RawLineItem) -> Optional[str]:
        """Known brand found in the brand column or raw name, else the vendor's own brand"""
        found = detect_brand([item.brand, item.product_name], self.brands)
        if found:
            return found
        return self.profile.brand or item.brand or None

    # ---------------- grouping ----------------
    def group_key(self, item: RawLineItem) -> Hashable:
        """Grouping key built from the format's group_key fields (trimmed, case-insensitive)"""
        values = []
        for field_name in self.fmt.group_key:
            if field_name == 'name_code':
                value = name_code(item.product_name)
            else:
                value = getattr(item, field_name, '')
            values.append(clean_whitespace(str(value or '')).lower())
        return tuple(values)


class Ao76Adapter(VendorAdapter):
    """Ao76 uses the product description as name and as e-commerce text."""

    def transform_item(self, item: RawLineItem) -> RawLineItem:
        super().transform_item(item)
        if not item.description:
            item.description = item.product_name
        return item


class LeNewBlackAdapter(VendorAdapter):
    """
    Le New Black is a multi-brand platform: the brand column feeds the name
    ("Hello Simone - Bear fleece jacket cookie") and the description doubles
    as material.
    """

    def brand_for_name(self, item: RawLineItem) -> str:
        return title_case(item.brand)

    def transform_item(self, item: RawLineItem) -> RawLineItem:
        super().transform_item(item)
        if not item.composition:
            item.composition = item.description
        return item

    def suggest_brand(self, item: RawLineItem) -> Optional[str]:
        found = detect_brand([item.brand, item.product_name], self.brands)
        return found or (title_case(item.brand) or None)


class TitleColorAdapter(VendorAdapter):
    """Vendors whose title carries the colour ("Fresa Onesie - Blue Violet")"""

    def transform_item(self, item: RawLineItem) -> RawLineItem:
        if not item.color:
            name, color = split_trailing_color(item.product_name)
            if color:
                item.product_name, item.color = name, color
        return super().transform_item(item)


class PlayUpAdapter(TitleColorAdapter):
    pass


class FlossAdapter(TitleColorAdapter):
    pass


class GoldieAndAceAdapter(VendorAdapter):
    """
    Goldie + Ace invoices have one line per size with the size at the end of
    the description ("COLOUR BLOCK OXFORD BURTON OVERALLS 2Y") and no article
    code; the reference is derived from the name.
    """

    def transform_item(self, item: RawLineItem) -> RawLineItem:
        name, size = split_trailing_size(item.product_name)
        if size:
            item.product_name = name
            if not item.size:
                item.size = size
        if not item.reference:
            item.reference = name_code(item.product_name).upper()
            item.sku = item.sku or item.reference
        return super().transform_item(item)


class WynckenAdapter(VendorAdapter):
    """
    Wynken invoice lines carry the style code in front of the name
    ("AW24J101 PLEATED SKIRT") and no size.
    """

    def transform_item(self, item: RawLineItem) -> RawLineItem:
        pattern = self.fmt.code_pattern
        if pattern is not None and not item.reference:
            m = pattern.match(item.product_name)
            if m:
                item.reference = m.group('reference')
                item.product_name = clean_whitespace(item.product_name[m.end():].lstrip(' -'))
        return super().transform_item(item)


class SundayCollectiveAdapter(VendorAdapter):
    """SKUs like S26W2161-GR-2 carry style, colour code and size index."""

    def split_code(self, item: RawLineItem) -> None:
        if not item.sku and item.reference:
            item.sku = item.reference
        super().split_code(item)


ADAPTERS: Dict[str, Type[VendorAdapter]] = {
    'ao76': Ao76Adapter,
    'lenewblack': LeNewBlackAdapter,
    'playup': PlayUpAdapter,
    'sundaycollective': SundayCollectiveAdapter,
    'floss': FlossAdapter,
    'thinkingmu': VendorAdapter,
    'wyncken': WynckenAdapter,
    'bobochoses': VendorAdapter,
    'goldieandace': GoldieAndAceAdapter,
    'armedangels': VendorAdapter,
    'hvid': VendorAdapter,
    'emileetida': VendorAdapter,
    'minirodini': VendorAdapter,
    'mipounet': VendorAdapter,
    'onemore': VendorAdapter,
    'thenewsociety': VendorAdapter,
    'weekendhousekids': VendorAdapter,
}


def get_adapter(profile: VendorProfile, fmt: FormatProfile, brands: Optional[Iterable[str]] = None) -> VendorAdapter:
    """
    Build the adapter declared for a vendor

    Args:
        profile: Vendor profile (its 'adapter' key selects the class)
        fmt: Format to read
        brands: Known brand names

    Returns:
        VendorAdapter instance
    """
    adapter_cls = ADAPTERS.get(profile.adapter, VendorAdapter)
    return adapter_cls(profile, fmt, brands)
