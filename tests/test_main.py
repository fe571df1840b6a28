#!/usr/bin/env python3
"""
CLI Tests: product-import entry point
"""

import json
import tempfile
import unittest
from pathlib import Path

from product_import.main import main

AO76_ORDER = """Reference;Description;Quality;Colour;Size;EAN barcode;Price;RRP
A1;LOGO TEE;100% cotton;Blue;4Y;5400000000011;12,50;29,95
B2;DRESS;linen;Red;S;5400000000013;20,00;49,95
"""

TNS_ORDER = """Product reference;Product name;Color name;Size name;EAN13;Quantity;Unit price
TNS100;BABETTE DRESS;Ecru;11/12;8400000000018;2;25,00
"""

TNS_CONFIRMATION = """STYLE;REFERENCE;VARIANT;SRP
;TNS100;Ecru;69,95
"""


class TestMain(unittest.TestCase):
    """Test the command line entry point"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, text):
        path = self.tmp / name
        path.write_text(text, encoding='utf-8')
        return str(path)

    def test_json_output(self):
        source = self._write('ao76_order.csv', AO76_ORDER)
        output = self.tmp / 'out' / 'ao76.json'
        self.assertEqual(main([source, '--output', str(output)]), 0)

        data = json.loads(output.read_text(encoding='utf-8'))
        self.assertEqual(data['vendor'], 'ao76')
        self.assertEqual([p['reference'] for p in data['products']], ['A1', 'B2'])

    def test_review_sheet_output(self):
        source = self._write('ao76_order.csv', AO76_ORDER)
        output = self.tmp / 'review.csv'
        self.assertEqual(main([source, '--output', str(output)]), 0)
        self.assertTrue(output.exists())

    def test_secondary_file(self):
        order = self._write('tns_order.csv', TNS_ORDER)
        confirmation = self._write('tns_confirmation.csv', TNS_CONFIRMATION)
        output = self.tmp / 'tns.json'
        code = main([order, '--vendor', 'thenewsociety', '--secondary', confirmation, '--output', str(output)])
        self.assertEqual(code, 0)

        data = json.loads(output.read_text(encoding='utf-8'))
        variant = data['products'][0]['variants'][0]
        self.assertEqual((variant['size'], variant['rrp'], variant['rrp_source']), ('12 jaar', '69.95', 'reconciled'))

    def test_fatal_errors_exit_2(self):
        """Missing columns, unknown vendors and bad output types are fatal"""
        bad = self._write('ao76_bad.csv', 'Reference;Description\nA1;Tee\n')
        self.assertEqual(main([bad]), 2)

        source = self._write('order.csv', AO76_ORDER)
        self.assertEqual(main([source, '--vendor', 'nobody']), 2)
        self.assertEqual(main([source, '--vendor', 'ao76', '--output', str(self.tmp / 'out.txt')]), 2)

    def test_pdf_rows_need_vendor(self):
        rows = self._write('invoice.json', json.dumps([{'code': 'F1234', 'description': 'Sock', 'size': '86'}]))
        self.assertEqual(main([rows]), 2)
        output = self.tmp / 'floss.json'
        self.assertEqual(main([rows, '--vendor', 'floss', '--output', str(output)]), 0)
        data = json.loads(output.read_text(encoding='utf-8'))
        self.assertEqual(data['products'][0]['reference'], 'F1234')


if __name__ == '__main__':
    unittest.main()
