#!/usr/bin/env python3
"""
Price Lists - Build price lookup maps from companion uploads

- load_price_list: SKU/EAN -> cost, from a separately uploaded price list
- load_tarif:      EAN -> retail price, from a TARIF file
- invoice_prices:  code/SKU -> unit price, from PDF-extracted invoice rows

The maps are bundled in a PriceBook that is handed to the PriceResolver
explicitly for one run.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .name_hygiene import normalize_ean
from .price_parser import parse_money
from .vendor_detector import norm_header_text

logger = logging.getLogger(__name__)

PriceMap = Dict[str, Decimal]

KEY_ALIASES = ('sku', 'ean', 'ean13', 'ean code', 'barcode', 'gencod', 'reference', 'referencia',
               'article', 'article number', 'style code', 'code')
COST_ALIASES = ('price', 'prijs', 'net price', 'netto prijs', 'wholesale', 'wholesale price', 'unit price',
                'cost', 'cost price', 'precio', 'prix', 'prix ht', 'whs price')
RRP_ALIASES = ('rrp', 'srp', 'msrp', 'pvp', 'pvc', 'retail price', 'adviesprijs', 'verkoopprijs',
               'consumer price', 'price')
TARIF_KEY_ALIASES = ('ean', 'ean13', 'ean code', 'barcode', 'gencod', 'sku')

SCAN_ROWS = 20


def price_key(value: Any) -> str:
    """Lookup key for SKU/EAN/reference values (barcode-normalized, upper case)"""
    return normalize_ean(value).upper()


def _locate(rows: Sequence[Sequence[str]], key_aliases: Iterable[str],
            value_aliases: Iterable[str]) -> Optional[Tuple[int, List[int], int]]:
    key_aliases = tuple(key_aliases)
    value_aliases = tuple(value_aliases)
    for index, row in enumerate(rows[:SCAN_ROWS]):
        cells = norm_header_text(row)
        key_cols = [i for i, c in enumerate(cells) if c in key_aliases]
        value_col = next((cells.index(a) for a in value_aliases if a in cells), None)
        if key_cols and value_col is not None:
            key_cols = [c for c in key_cols if c != value_col]
            if key_cols:
                return index, key_cols, value_col
    return None


def _build_map(rows: Sequence[Sequence[str]], key_aliases, value_aliases, decimal: str, label: str) -> PriceMap:
    prices: PriceMap = {}
    located = _locate(rows, key_aliases, value_aliases)
    if located:
        header_index, key_cols, value_col = located
    else:
        # No recognizable header: first column key, second column price, first row is a header
        header_index, key_cols, value_col = 0, [0], 1

    ignored = 0
    for row in rows[header_index + 1:]:
        if value_col >= len(row):
            ignored += 1
            continue
        amount = parse_money(row[value_col], decimal)
        if amount is None or amount <= 0:
            ignored += 1
            continue
        keys = [price_key(row[c]) for c in key_cols if c < len(row) and row[c]]
        if not keys:
            ignored += 1
            continue
        for key in keys:
            prices[key] = amount

    logger.info(f"Loaded {len(prices)} {label} entries ({ignored} rows ignored)")
    return prices


def load_price_list(rows: Sequence[Sequence[str]], decimal: str = 'auto') -> PriceMap:
    """
    Build a SKU/EAN -> cost map from price-list rows

    Columns are found by header name; files without a recognizable header
    use the first column as key and the second as price, skipping the first
    row. Non-positive and unparseable prices are ignored.

    Args:
        rows: Rows from the source reader
        decimal: Decimal convention of the file

    Returns:
        Dict of key -> Decimal cost
    """
    return _build_map(rows, KEY_ALIASES, COST_ALIASES, decimal, 'price list')


def load_tarif(rows: Sequence[Sequence[str]], decimal: str = 'auto') -> PriceMap:
    """Build an EAN -> retail price map from TARIF rows"""
    return _build_map(rows, TARIF_KEY_ALIASES, RRP_ALIASES, decimal, 'tarif')


def invoice_prices(pdf_rows: Sequence[Mapping[str, Any]], decimal: str = 'auto') -> PriceMap:
    """
    Build a code -> unit price map from PDF-extracted invoice rows

    Every row is indexed by its code, sku and reference values when present.
    """
    prices: PriceMap = {}
    for row in pdf_rows:
        amount = parse_money(row.get('unitPrice', row.get('unit_price')), decimal)
        if amount is None or amount <= 0:
            continue
        for name in ('code', 'sku', 'reference'):
            value = row.get(name)
            if value:
                prices[price_key(value)] = amount
    logger.info(f"Loaded {len(prices)} invoice prices from {len(pdf_rows)} rows")
    return prices


@dataclass
class PriceBook:
    """Companion price sources available for one import run."""
    price_list: PriceMap = field(default_factory=dict)
    tarif: PriceMap = field(default_factory=dict)
    invoice: PriceMap = field(default_factory=dict)

    @staticmethod
    def _lookup(prices: PriceMap, keys: Iterable[Any]) -> Optional[Decimal]:
        for key in keys:
            if key:
                value = prices.get(price_key(key))
                if value is not None:
                    return value
        return None

    def cost_from_price_list(self, sku: Optional[str], ean: Optional[str]) -> Optional[Decimal]:
        return self._lookup(self.price_list, (sku, ean))

    def cost_from_invoice(self, sku: Optional[str], reference: Optional[str]) -> Optional[Decimal]:
        return self._lookup(self.invoice, (sku, reference))

    def rrp_from_tarif(self, ean: Optional[str], sku: Optional[str]) -> Optional[Decimal]:
        return self._lookup(self.tarif, (ean, sku))

    def __bool__(self) -> bool:
        return bool(self.price_list or self.tarif or self.invoice)
