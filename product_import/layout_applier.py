#!/usr/bin/env python3
"""
Layout Applier - Apply a vendor format's column layout to source rows
Locates the header row (not always row 0: some exports carry a title row or
an address block first), resolves the declared column aliases and turns each
data row into a RawLineItem. Rows missing a required value are counted as
skipped, never dropped silently.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import MissingRequiredColumns, UnrecognizedFormat, WarningLog
from .models import RawLineItem
from .name_hygiene import clean_whitespace, normalize_ean
from .price_parser import parse_money, parse_quantity
from .vendor_detector import norm_header_text, signature_score
from .vendor_profiles import FormatProfile

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('reference', 'product_name', 'color', 'size', 'sku', 'composition',
               'description', 'csv_category', 'brand')

# Keys of a row handed over by the PDF extractor -> logical fields
PDF_ROW_KEYS = {
    'code': 'reference',
    'reference': 'reference',
    'description': 'product_name',
    'name': 'product_name',
    'size': 'size',
    'quantity': 'quantity',
    'unitPrice': 'unit_price',
    'unit_price': 'unit_price',
    'rrp': 'rrp',
    'ean': 'ean',
    'sku': 'sku',
    'color': 'color',
    'composition': 'composition',
    'category': 'csv_category',
}


class LayoutApplier:
    """Apply one vendor format's layout to rows and extract RawLineItems"""

    def __init__(self, fmt: FormatProfile):
        """
        Initialize layout applier

        Args:
            fmt: Format profile of the vendor file being read
        """
        self.fmt = fmt
        # Remember the last header for diagnostics
        self.last_header_index: Optional[int] = None
        self.last_column_map: Dict[str, int] = {}

    # ---------------- header ----------------
    def locate_header(self, rows: Sequence[Sequence[str]], hint: Optional[int] = None) -> int:
        """
        Find the header row index

        Uses the detector's hint when given, then the first row carrying a full
        signature, then the row with the most recognized column names.

        Raises:
            UnrecognizedFormat: no row in the scanned range looks like a header
        """
        if hint is not None:
            return hint

        scan = rows[:self.fmt.header_scan_rows]
        if self.fmt.signatures:
            for index, row in enumerate(scan):
                if signature_score(norm_header_text(row), self.fmt):
                    return index

        all_aliases = {alias for aliases in self.fmt.columns.values() for alias in aliases}
        best_index, best_hits = None, 0
        for index, row in enumerate(scan):
            hits = sum(1 for cell in norm_header_text(row) if cell in all_aliases)
            if hits > best_hits:
                best_index, best_hits = index, hits
        if best_index is None:
            expected = {self.fmt.kind: [' + '.join(sig) for sig in self.fmt.signatures] or list(self.fmt.columns)}
            raise UnrecognizedFormat(self.fmt.vendor, rows[0] if rows else [], expected)
        return best_index

    def resolve_columns(self, header: Sequence[str]) -> Dict[str, int]:
        """
        Map logical fields to column indexes (case-insensitive exact alias match)

        Raises:
            MissingRequiredColumns: a required field has none of its aliases in the header
        """
        cells = norm_header_text(header)
        column_map: Dict[str, int] = {}
        for field_name, aliases in self.fmt.columns.items():
            for alias in aliases:
                if alias in cells:
                    column_map[field_name] = cells.index(alias)
                    break

        missing = {
            name: self.fmt.aliases_for(name) or [name]
            for name in self.fmt.required
            if name not in column_map
        }
        if missing:
            raise MissingRequiredColumns(self.fmt.vendor, missing, [str(h).strip() for h in header])
        return column_map

    # ---------------- rows ----------------
    def _item_from_values(self, values: Mapping[str, Any], row_number: int, extra: Dict[str, str]) -> RawLineItem:
        text = {name: clean_whitespace(values.get(name)) for name in TEXT_FIELDS}
        if not text['size'] and self.fmt.default_size:
            text['size'] = self.fmt.default_size
        return RawLineItem(
            reference=text['reference'],
            size=text['size'],
            product_name=text['product_name'],
            color=text['color'],
            ean=normalize_ean(values.get('ean')),
            sku=text['sku'],
            quantity=parse_quantity(values.get('quantity')),
            unit_price=parse_money(values.get('unit_price'), self.fmt.decimal),
            rrp=parse_money(values.get('rrp'), self.fmt.decimal),
            composition=text['composition'],
            description=text['description'],
            csv_category=text['csv_category'],
            brand=text['brand'],
            row_number=row_number,
            extra=extra,
        )

    def _missing_required_value(self, item: RawLineItem) -> Optional[str]:
        for name in self.fmt.required:
            value = getattr(item, name, None)
            if value is None or value == '':
                return name
        return None

    def extract_items(self, rows: Sequence[Sequence[str]], warnings: WarningLog,
                      header_index: Optional[int] = None) -> List[RawLineItem]:
        """
        Extract one RawLineItem per data row

        Args:
            rows: Rows from the source reader
            warnings: Collects skipped rows
            header_index: Header row found by the detector, if any

        Returns:
            List of RawLineItem in file order
        """
        header_index = self.locate_header(rows, header_index)
        header = rows[header_index]
        column_map = self.resolve_columns(header)
        self.last_header_index = header_index
        self.last_column_map = column_map
        norm_header = norm_header_text(header)
        mapped = set(column_map.values())

        items: List[RawLineItem] = []
        for index in range(header_index + 1, len(rows)):
            row = rows[index]
            row_number = index + 1
            if norm_header_text(row) == norm_header:
                # Header repeated on every printed page
                warnings.row_skipped(row_number, 'repeated header row', row)
                continue

            values = {
                name: (row[col] if col < len(row) else '')
                for name, col in column_map.items()
            }
            extra = {
                str(header[col]).strip(): row[col]
                for col in range(min(len(header), len(row)))
                if col not in mapped and row[col]
            }
            item = self._item_from_values(values, row_number, extra)
            missing = self._missing_required_value(item)
            if missing:
                warnings.row_skipped(row_number, f'missing {missing}', row)
                continue
            items.append(item)

        logger.info(f"[{self.fmt.vendor}/{self.fmt.kind}] Extracted {len(items)} items from "
                    f"{len(rows) - header_index - 1} data rows (header at row {header_index + 1})")
        return items

    def extract_pdf_items(self, pdf_rows: Sequence[Mapping[str, Any]], warnings: WarningLog) -> List[RawLineItem]:
        """
        Turn rows from the PDF extractor ({code, description, size, quantity,
        unitPrice, total, ...}) into RawLineItems
        """
        items: List[RawLineItem] = []
        for index, row in enumerate(pdf_rows):
            row_number = index + 1
            values: Dict[str, Any] = {}
            for key, field_name in PDF_ROW_KEYS.items():
                if key in row and row[key] not in (None, '') and field_name not in values:
                    values[field_name] = row[key]
            if 'sku' not in values and 'code' in row:
                values['sku'] = row['code']
            extra = {k: str(v) for k, v in row.items() if k not in PDF_ROW_KEYS and v not in (None, '')}
            item = self._item_from_values(values, row_number, extra)
            if not item.product_name and not item.reference and not item.sku:
                warnings.row_skipped(row_number, 'empty PDF row', [str(v) for v in row.values()])
                continue
            items.append(item)

        logger.info(f"[{self.fmt.vendor}/{self.fmt.kind}] Extracted {len(items)} items from {len(pdf_rows)} PDF rows")
        return items
