#!/usr/bin/env python3
"""
Vendor Adapter Tests: per-vendor micro-transforms on extracted rows
"""

import unittest

from product_import.errors import WarningLog
from product_import.models import RawLineItem
from product_import.rule_loader import RuleLoader
from product_import.source_reader import Dialect, read
from product_import.vendor_adapters import (
    ADAPTERS,
    GoldieAndAceAdapter,
    LeNewBlackAdapter,
    VendorAdapter,
    get_adapter,
)
from product_import.vendor_profiles import load_vendor_profiles

LE_NEW_BLACK = """Order reference: LNB-2024-001
Brand name;Product reference;Product name;Color name;Description;SKU;Size name;EAN13;Quantity;Net amount
HELLO SIMONE;HS-BFJ;BEAR FLEECE JACKET COOKIE;Cookie;Soft fleece;HS-BFJ-4;4Y;3760000000011;1;35,00
"""

SUNDAY_COLLECTIVE = """SKU,Product Name,Color,Size,Quantity,Price (EUR),MSRP (EUR)
S26W2161-GR-2,LINEN SHIRT,,2Y-3Y,1,22.00,55.00
"""


class TestVendorAdapters(unittest.TestCase):
    """Test vendor-specific transforms"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.profiles = load_vendor_profiles(RuleLoader())

    def _adapter(self, vendor, kind=None, brands=None):
        profile = self.profiles[vendor]
        return get_adapter(profile, profile.format(kind), brands)

    def test_every_vendor_has_an_adapter(self):
        self.assertEqual(set(self.profiles), set(ADAPTERS))
        self.assertIsInstance(self._adapter('lenewblack'), LeNewBlackAdapter)
        self.assertIsInstance(self._adapter('goldieandace'), GoldieAndAceAdapter)
        self.assertIs(type(self._adapter('hvid')), VendorAdapter)

    def test_le_new_black_brand_in_name(self):
        adapter = self._adapter('lenewblack', brands=['Hello Simone', 'Mini Rodini'])
        items = adapter.extract(read(LE_NEW_BLACK, Dialect(delimiter=';')), WarningLog())
        item = items[0]
        self.assertEqual(item.display_name, 'Hello Simone - Bear fleece jacket cookie')
        self.assertEqual(item.suggested_brand, 'Hello Simone')
        self.assertEqual(item.composition, 'Soft fleece')
        self.assertEqual(item.sku, 'HS-BFJ-4')

    def test_sunday_collective_sku_split(self):
        """The SKU carries style and colour code"""
        adapter = self._adapter('sundaycollective', 'order')
        items = adapter.extract(read(SUNDAY_COLLECTIVE), WarningLog())
        item = items[0]
        self.assertEqual(item.reference, 'S26W2161')
        self.assertEqual(item.color, 'GR')
        self.assertEqual(item.size, '2Y-3Y')
        self.assertEqual(item.display_name, 'Linen Shirt')

    def test_ao76_lowercase_name(self):
        adapter = self._adapter('ao76')
        item = adapter.transform_item(RawLineItem(reference='A1', size='4Y', product_name='LOGO TEE'))
        self.assertEqual(item.display_name, 'logo tee')
        self.assertEqual(item.description, 'LOGO TEE')
        self.assertEqual(item.suggested_brand, 'Ao76')

    def test_floss_colour_from_title(self):
        adapter = self._adapter('floss')
        items = adapter.extract_pdf([{'code': 'F1234', 'description': 'FRESA ONESIE - Blue Violet', 'size': '86'}],
                                    WarningLog())
        self.assertEqual(items[0].color, 'Blue Violet')
        self.assertEqual(items[0].display_name, 'Fresa Onesie')
        self.assertEqual(items[0].reference, 'F1234')

    def test_goldie_and_ace_size_in_description(self):
        """Size at the end of the description, reference derived from the name"""
        adapter = self._adapter('goldieandace')
        items = adapter.extract_pdf([{'description': 'COLOUR BLOCK OXFORD BURTON OVERALLS 2Y', 'quantity': '1'}],
                                    WarningLog())
        item = items[0]
        self.assertEqual(item.size, '2Y')
        self.assertEqual(item.reference, 'COLOUR-BLOCK-OXFORD-BURTON-OVERALLS')
        self.assertEqual(item.sku, item.reference)
        self.assertEqual(item.display_name, 'Colour Block Oxford Burton Overalls')

    def test_wyncken_code_in_front_of_name(self):
        adapter = self._adapter('wyncken')
        items = adapter.extract_pdf([{'description': 'AW24J101 PLEATED SKIRT', 'quantity': '2'}], WarningLog())
        item = items[0]
        self.assertEqual(item.reference, 'AW24J101')
        self.assertEqual(item.display_name, 'Pleated Skirt')
        self.assertEqual(item.size, 'U')

    def test_thinking_mu_code_with_size(self):
        adapter = self._adapter('thinkingmu', 'pdf')
        items = adapter.extract_pdf([{'code': 'WTS00123,XL', 'description': 'LOGO TEE'}], WarningLog())
        self.assertEqual((items[0].reference, items[0].size), ('WTS00123', 'XL'))
        self.assertEqual(items[0].display_name, 'Logo tee')

    def test_items_without_size_are_skipped(self):
        adapter = self._adapter('floss')
        warnings = WarningLog()
        items = adapter.extract_pdf([{'code': 'F1', 'description': 'Sock'}], warnings)
        self.assertEqual(items, [])
        self.assertEqual(warnings.skipped_rows, 1)

    def test_group_key_with_name_code(self):
        """Bobo Choses re-uses references across designs; the name code separates them"""
        adapter = self._adapter('bobochoses')
        first = RawLineItem(reference='B1', size='4Y', color='Ecru', product_name='Tiger T-shirt')
        second = RawLineItem(reference='B1', size='4Y', color='Ecru', product_name='Rainbow T-shirt')
        same = RawLineItem(reference=' b1 ', size='6Y', color='ECRU', product_name='TIGER T-SHIRT')
        self.assertNotEqual(adapter.group_key(first), adapter.group_key(second))
        self.assertEqual(adapter.group_key(first), adapter.group_key(same))


if __name__ == '__main__':
    unittest.main()
