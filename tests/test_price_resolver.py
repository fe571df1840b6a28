#!/usr/bin/env python3
"""
Price Resolver Tests: price precedence, markup and companion price files
"""

import unittest
from decimal import Decimal

from product_import.errors import WarningCode, WarningLog
from product_import.models import PriceSource, Product, Variant
from product_import.price_lists import PriceBook, invoice_prices, load_price_list, load_tarif
from product_import.price_resolver import PriceResolver
from product_import.rule_loader import RuleLoader
from product_import.vendor_profiles import FormatProfile

INLINE = PriceSource.INLINE
PRICE_LIST = PriceSource.PRICE_LIST
INVOICE = PriceSource.INVOICE


def _product(**variant_fields):
    fields = dict(size='4 jaar', sku='SKU1', ean='5400000000011')
    fields.update(variant_fields)
    return Product(reference='R1', vendor='test', variants=[Variant(**fields)])


class TestPriceLists(unittest.TestCase):
    """Test loading companion price files"""

    def test_price_list_by_header(self):
        rows = [['Price list SS25'], ['SKU', 'EAN', 'Price'], ['sku1', '5400000000011', '8,50'],
                ['SKU2', '', '0'], ['SKU3', '', 'abc']]
        prices = load_price_list(rows)
        self.assertEqual(prices, {'SKU1': Decimal('8.50'), '5400000000011': Decimal('8.50')})

    def test_price_list_without_header(self):
        """Unknown headers: first column is the key, second the price"""
        prices = load_price_list([['Artikel', 'Bedrag'], ['X1', '3.00']])
        self.assertEqual(prices, {'X1': Decimal('3.00')})

    def test_tarif(self):
        tarif = load_tarif([['EAN13', 'PVP'], ['5400000000011.0', '29,95']])
        self.assertEqual(tarif, {'5400000000011': Decimal('29.95')})

    def test_invoice_prices(self):
        prices = invoice_prices([{'code': 'ab1', 'unitPrice': '12.5'}, {'code': 'AB2', 'unitPrice': '0'}])
        self.assertEqual(prices, {'AB1': Decimal('12.5')})

    def test_price_book_lookup(self):
        book = PriceBook(price_list={'5400000000011': Decimal('7.00')})
        self.assertTrue(book)
        self.assertFalse(PriceBook())
        self.assertEqual(book.cost_from_price_list('UNKNOWN', '5400000000011'), Decimal('7.00'))
        self.assertIsNone(book.cost_from_price_list(None, None))


class TestPriceResolver(unittest.TestCase):
    """Test cost and retail price resolution"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.resolver = PriceResolver(RuleLoader())
        cls.book = PriceBook(price_list={'SKU1': Decimal('8.00')})

    def test_inline_first(self):
        fmt = FormatProfile(vendor='test', kind='order', price_precedence=[INLINE, PRICE_LIST, INVOICE])
        product = self.resolver.resolve_product(_product(inline_price=Decimal('10')), fmt, self.book)
        variant = product.variants[0]
        self.assertEqual((variant.price, variant.price_source), (Decimal('10.00'), INLINE))
        self.assertFalse(variant.price_missing)

    def test_precedence_swapped(self):
        """Reordering the precedence changes which source wins"""
        fmt = FormatProfile(vendor='test', kind='order', price_precedence=[PRICE_LIST, INLINE, INVOICE])
        product = self.resolver.resolve_product(_product(inline_price=Decimal('10')), fmt, self.book)
        variant = product.variants[0]
        self.assertEqual((variant.price, variant.price_source), (Decimal('8.00'), PRICE_LIST))

    def test_zero_inline_is_absent(self):
        fmt = FormatProfile(vendor='test', kind='order')
        product = self.resolver.resolve_product(_product(inline_price=Decimal('0')), fmt, self.book)
        self.assertEqual(product.variants[0].price_source, PRICE_LIST)

    def test_invoice_by_reference(self):
        fmt = FormatProfile(vendor='test', kind='order')
        book = PriceBook(invoice={'R1': Decimal('11.00')})
        product = self.resolver.resolve_product(_product(sku=None), fmt, book)
        self.assertEqual((product.variants[0].price, product.variants[0].price_source),
                         (Decimal('11.00'), INVOICE))

    def test_markup_rrp(self):
        """Without inline or tarif retail price, rrp = cost * markup (half-up to cents)"""
        fmt = FormatProfile(vendor='test', kind='order', markup_factor=Decimal('2.5'))
        product = self.resolver.resolve_product(_product(inline_price=Decimal('9.99')), fmt)
        variant = product.variants[0]
        self.assertEqual((variant.rrp, variant.rrp_source), (Decimal('24.98'), PriceSource.MARKUP))

    def test_inline_and_tarif_rrp(self):
        fmt = FormatProfile(vendor='test', kind='order')
        book = PriceBook(tarif={'5400000000011': Decimal('31.00')})
        inline = self.resolver.resolve_product(
            _product(inline_price=Decimal('10'), inline_rrp=Decimal('29.95')), fmt, book)
        self.assertEqual((inline.variants[0].rrp, inline.variants[0].rrp_source), (Decimal('29.95'), INLINE))
        tarif = self.resolver.resolve_product(_product(inline_price=Decimal('10')), fmt, book)
        self.assertEqual((tarif.variants[0].rrp, tarif.variants[0].rrp_source),
                         (Decimal('31.00'), PriceSource.TARIF))

    def test_markup_on_inline_base(self):
        """markup_base inline: retail follows the row price even when cost came from the price list"""
        fmt = FormatProfile(vendor='test', kind='order', price_precedence=[PRICE_LIST, INLINE],
                            rrp_precedence=[PriceSource.MARKUP], markup_base='inline')
        book = PriceBook(price_list={'SKU1': Decimal('15.00')})
        product = self.resolver.resolve_product(_product(inline_price=Decimal('20.00')), fmt, book)
        variant = product.variants[0]
        self.assertEqual(variant.price, Decimal('15.00'))
        self.assertEqual(variant.rrp, Decimal('50.00'))

    def test_no_price_source(self):
        """No source: 0.00 with price_missing and one warning for the product"""
        fmt = FormatProfile(vendor='test', kind='order')
        product = Product(reference='R9', vendor='test', variants=[Variant(size='M'), Variant(size='L')])
        warnings = WarningLog()
        self.resolver.resolve_product(product, fmt, None, warnings)
        for variant in product.variants:
            self.assertEqual(variant.price, Decimal('0.00'))
            self.assertTrue(variant.price_missing)
            self.assertEqual(variant.price_source, PriceSource.NONE)
            self.assertEqual((variant.rrp, variant.rrp_source), (Decimal('0.00'), PriceSource.NONE))
        missing = warnings.by_code(WarningCode.NO_PRICE_SOURCE)
        self.assertEqual(len(missing), 1)
        self.assertIn('R9', missing[0].message)
        self.assertIn('M, L', missing[0].message)


if __name__ == '__main__':
    unittest.main()
