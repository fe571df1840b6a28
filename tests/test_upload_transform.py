#!/usr/bin/env python3
"""
Upload Transform Tests: upload preparation, catalog payload and review sheet
"""

import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

import pandas as pd

from product_import.models import AgeGroup, CategoryRef, PriceSource, Product, Variant
from product_import.rule_loader import RuleLoader
from product_import.size_normalizer import SizeNormalizer
from product_import.upload_transform import (
    REVIEW_COLUMNS,
    prepare_for_upload,
    to_catalog_payload,
    to_dataframe,
    write_review_file,
)


def _products():
    shirt = Product(reference='TM1', name='Logo tee', vendor='thinkingmu', age_group=AgeGroup.ADULT, variants=[
        Variant(size='M', raw_size='M', quantity=1, sku='TM1-M', price=Decimal('30.00'), rrp=Decimal('75.00'),
                price_source=PriceSource.INLINE, rrp_source=PriceSource.MARKUP),
        Variant(size='L', raw_size='L', quantity=2, sku='TM1-L', price=Decimal('30.00'), rrp=Decimal('75.00')),
    ])
    hat = Product(reference='H1', name='Hat', vendor='hvid', age_group=AgeGroup.KIDS, variants=[
        Variant(size='One Size', raw_size='U', quantity=1, price=Decimal('12.00')),
        Variant(size='One Size', raw_size='TU', quantity=3, ean='5700000000011'),
    ])
    hat.add_public_category(CategoryRef(id=7, name='Mutsen Kinderen'))
    return [shirt, hat]


class TestUploadTransform(unittest.TestCase):
    """Test shaping products for upload and review"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.normalizer = SizeNormalizer(RuleLoader())

    def test_prepare_for_upload(self):
        """Adult letter sizes get their EU size; unit sizes collapse"""
        products = _products()
        prepared = prepare_for_upload(products, self.normalizer)

        self.assertEqual([v.size for v in prepared[0].variants], ['M - 38', 'L - 40'])
        self.assertEqual(len(prepared[1].variants), 1)
        self.assertEqual(prepared[1].variants[0].quantity, 4)
        self.assertEqual(prepared[1].variants[0].ean, '5700000000011')
        # Input left as it was
        self.assertEqual([v.size for v in products[0].variants], ['M', 'L'])
        self.assertEqual(len(products[1].variants), 2)

    def test_catalog_payload(self):
        payload = to_catalog_payload(_products()[0])
        self.assertEqual(payload['name'], 'Logo tee')
        self.assertEqual(payload['default_code'], 'TM1')
        self.assertEqual(payload['list_price'], '75.00')
        self.assertEqual(payload['standard_price'], '30.00')
        self.assertEqual(payload['size_attribute'], 'MAAT Volwassenen')
        self.assertEqual([v['sku'] for v in payload['variants']], ['TM1-M', 'TM1-L'])

        hat = to_catalog_payload(_products()[1])
        self.assertEqual(hat['public_categ_ids'], [7])

    def test_dataframe_one_row_per_variant(self):
        df = to_dataframe(_products())
        self.assertEqual(list(df.columns), REVIEW_COLUMNS)
        self.assertEqual(len(df), 4)
        self.assertEqual(df.iloc[0]['price'], 30.0)
        self.assertEqual(df.iloc[2]['public_categories'], 'Mutsen Kinderen')

    def test_write_review_csv(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_review_file(_products(), Path(tmp) / 'review' / 'products.csv')
            df = pd.read_csv(path)
        self.assertEqual(len(df), 4)
        self.assertEqual(list(df['reference']), ['TM1', 'TM1', 'H1', 'H1'])

    def test_write_review_xlsx(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_review_file(_products(), Path(tmp) / 'products.xlsx')
            df = pd.read_excel(path, sheet_name='Products', engine='openpyxl')
        self.assertEqual(len(df), 4)

    def test_unsupported_review_type(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ValueError):
                write_review_file(_products(), Path(tmp) / 'products.txt')


if __name__ == '__main__':
    unittest.main()
