#!/usr/bin/env python3
"""
Layout Applier Tests: header location, column mapping and skipped rows
"""

import unittest
from decimal import Decimal

from product_import.errors import MissingRequiredColumns, UnrecognizedFormat, WarningCode, WarningLog
from product_import.layout_applier import LayoutApplier
from product_import.rule_loader import RuleLoader
from product_import.source_reader import Dialect, read
from product_import.vendor_profiles import FormatProfile, load_vendor_profile

AO76_ORDER = """Reference;Description;Quality;Colour;Size;EAN barcode;Price;RRP
A1;LOGO TEE;100% cotton;Blue;4Y;5400000000011;12,50;29,95
A1;LOGO TEE;100% cotton;Blue;;5400000000012;12,50;29,95
Reference;Description;Quality;Colour;Size;EAN barcode;Price;RRP
B2;DRESS;linen;Red;S;5400000000013;20,00;49,95
"""


class TestLayoutApplier(unittest.TestCase):
    """Test applying a vendor format to source rows"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.rule_loader = RuleLoader()
        cls.ao76 = load_vendor_profile(cls.rule_loader, 'ao76').format('order')
        cls.lnb = load_vendor_profile(cls.rule_loader, 'lenewblack').format('order')

    def test_extract_items(self):
        """Rows are mapped by header name and money uses the vendor decimal"""
        rows = read(AO76_ORDER, Dialect(delimiter=';'))
        warnings = WarningLog()
        items = LayoutApplier(self.ao76).extract_items(rows, warnings)

        self.assertEqual([i.reference for i in items], ['A1', 'B2'])
        first = items[0]
        self.assertEqual(first.product_name, 'LOGO TEE')
        self.assertEqual(first.composition, '100% cotton')
        self.assertEqual(first.color, 'Blue')
        self.assertEqual(first.size, '4Y')
        self.assertEqual(first.ean, '5400000000011')
        self.assertEqual(first.unit_price, Decimal('12.50'))
        self.assertEqual(first.rrp, Decimal('29.95'))
        self.assertIsNone(first.quantity)
        self.assertEqual(first.row_number, 2)

    def test_garbage_barcode_keeps_the_row(self):
        """A barcode cell that is not a barcode is kept as text"""
        text = ("Reference;Description;Quality;Colour;Size;EAN barcode;Price;RRP\n"
                "A1;LOGO TEE;100% cotton;Blue;4Y;1E+999;12,50;29,95\n")
        items = LayoutApplier(self.ao76).extract_items(read(text, Dialect(delimiter=';')), WarningLog())
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].ean, '1E+999')

    def test_skipped_rows_are_counted(self):
        """A row without size and a repeated header are both reported"""
        rows = read(AO76_ORDER, Dialect(delimiter=';'))
        warnings = WarningLog()
        LayoutApplier(self.ao76).extract_items(rows, warnings)

        self.assertEqual(warnings.skipped_rows, 2)
        reasons = {w.message: w.count for w in warnings.by_code(WarningCode.ROW_SKIPPED)}
        self.assertEqual(reasons, {'Rows skipped: missing size': 1, 'Rows skipped: repeated header row': 1})

    def test_header_after_title_rows(self):
        """The header is found below a title line"""
        text = ("Order reference: LNB-2024-001\n"
                "Brand name;Product reference;Product name;Size name;Net amount\n"
                "HELLO SIMONE;HS-BFJ;BEAR FLEECE JACKET;4Y;35,00\n")
        rows = read(text, Dialect(delimiter=';'))
        applier = LayoutApplier(self.lnb)
        self.assertEqual(applier.locate_header(rows), 1)

        items = applier.extract_items(rows, WarningLog())
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].brand, 'HELLO SIMONE')
        self.assertEqual(items[0].unit_price, Decimal('35.00'))
        self.assertEqual(applier.last_header_index, 1)

    def test_missing_required_columns(self):
        """The error names the vendor, the missing field and the columns found"""
        rows = [['Reference', 'Description'], ['A1', 'Tee']]
        with self.assertRaises(MissingRequiredColumns) as ctx:
            LayoutApplier(self.ao76).extract_items(rows, WarningLog())
        error = ctx.exception
        self.assertEqual(error.vendor, 'ao76')
        self.assertEqual(error.expected_columns, ['size'])
        self.assertEqual(error.found_columns, ['Reference', 'Description'])
        self.assertIn('size', str(error))

    def test_unrecognized_header(self):
        rows = [['foo', 'bar'], ['1', '2']]
        with self.assertRaises(UnrecognizedFormat):
            LayoutApplier(self.ao76).extract_items(rows, WarningLog())

    def test_unmapped_columns_kept_as_extra(self):
        fmt = FormatProfile(vendor='test', kind='order',
                            columns={'reference': ['ref'], 'size': ['size']},
                            required=['reference', 'size'])
        rows = [['Ref', 'Size', 'Season'], ['X1', 'M', 'SS25']]
        items = LayoutApplier(fmt).extract_items(rows, WarningLog())
        self.assertEqual(items[0].extra, {'Season': 'SS25'})

    def test_pdf_rows(self):
        """PDF extractor rows map code/description/unitPrice"""
        fmt = FormatProfile(vendor='test', kind='pdf', source='pdf_rows', decimal=',')
        rows = [
            {'code': 'F1234', 'description': 'Onesie', 'size': '86', 'quantity': '2', 'unitPrice': '24,60',
             'total': '49,20'},
            {'code': '', 'description': '', 'quantity': ''},
        ]
        warnings = WarningLog()
        items = LayoutApplier(fmt).extract_pdf_items(rows, warnings)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].reference, 'F1234')
        self.assertEqual(items[0].sku, 'F1234')
        self.assertEqual(items[0].quantity, 2)
        self.assertEqual(items[0].unit_price, Decimal('24.60'))
        self.assertEqual(items[0].extra, {'total': '49,20'})
        self.assertEqual(warnings.skipped_rows, 1)


if __name__ == '__main__':
    unittest.main()
