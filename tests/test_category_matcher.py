#!/usr/bin/env python3
"""
Category Matcher Tests: translated keyword matching with age filtering
"""

import unittest

from product_import.category_matcher import CategoryMatcher
from product_import.errors import WarningCode, WarningLog
from product_import.models import AgeGroup, CategoryRef, Product
from product_import.rule_loader import RuleLoader

VOCABULARY = [
    {'id': 10, 'name': 'Rokken Dames', 'display_name': 'Kleding / Rokken Dames'},
    {'id': 11, 'name': 'Rokken Kinderen', 'display_name': 'Kleding / Rokken Kinderen'},
    {'id': 20, 'name': 'Jurken Baby', 'display_name': 'Kleding / Jurken Baby'},
    {'id': 21, 'name': 'Jurken Kinderen', 'display_name': 'Kleding / Jurken Kinderen'},
    {'id': 30, 'name': 'Broeken Heren', 'display_name': 'Kleding / Broeken Heren'},
    {'id': 31, 'name': 'Broeken Tieners', 'display_name': 'Kleding / Broeken Tieners'},
]


class TestCategoryMatcher(unittest.TestCase):
    """Test category matching against a catalog vocabulary"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.matcher = CategoryMatcher(RuleLoader())

    def _ids(self, label, age_group):
        return [c.id for c in self.matcher.match(label, age_group, VOCABULARY)]

    def test_kids_skirts(self):
        """SKIRTS for a Kids product only matches the kids category"""
        self.assertEqual(self._ids('SKIRTS', AgeGroup.KIDS), [11])

    def test_translations(self):
        """French and Spanish labels reach the same Dutch categories"""
        self.assertEqual(self._ids('Jupes', AgeGroup.KIDS), [11])
        self.assertEqual(self._ids('faldas', AgeGroup.KIDS), [11])

    def test_baby_and_teen(self):
        self.assertEqual(self._ids('dress', AgeGroup.BABY), [20])
        self.assertEqual(self._ids('pants', AgeGroup.TEEN), [31])

    def test_adult_compound_words_excluded(self):
        """Dameskleding and Herenmode name an adult audience as well"""
        vocabulary = [
            {'id': 40, 'name': 'Rokken Kinderen', 'display_name': 'Dameskleding / Rokken Kinderen'},
            {'id': 41, 'name': 'Rokken Kinderen', 'display_name': 'Herenmode / Rokken Kinderen'},
            {'id': 42, 'name': 'Rokken Kinderen', 'display_name': 'Kinderkleding / Rokken Kinderen'},
        ]
        matches = self.matcher.match('skirts', AgeGroup.KIDS, vocabulary)
        self.assertEqual([c.id for c in matches], [42])

    def test_adult_not_filtered(self):
        self.assertEqual(self._ids('Skirts', AgeGroup.ADULT), [10, 11])

    def test_unknown_label(self):
        self.assertEqual(self._ids('spaceships', AgeGroup.KIDS), [])
        self.assertEqual(self._ids('', AgeGroup.KIDS), [])
        self.assertEqual(self._ids(None, AgeGroup.KIDS), [])

    def test_no_duplicates(self):
        vocabulary = VOCABULARY + [CategoryRef(id=11, name='Rokken Kinderen')]
        matches = self.matcher.match('skirts', AgeGroup.KIDS, vocabulary)
        self.assertEqual([c.id for c in matches], [11])

    def test_apply(self):
        """Matches become public categories; unmatched labels are reported"""
        skirt = Product(reference='W1', csv_category='SKIRTS', age_group=AgeGroup.KIDS)
        unknown = Product(reference='W2', csv_category='GADGETS', age_group=AgeGroup.KIDS)
        blank = Product(reference='W3')
        warnings = WarningLog()
        self.matcher.apply([skirt, unknown, blank], VOCABULARY, warnings)

        self.assertEqual([c.name for c in skirt.public_categories], ['Rokken Kinderen'])
        self.assertEqual(unknown.public_categories, [])
        no_match = warnings.by_code(WarningCode.NO_CATEGORY_MATCH)
        self.assertEqual([w.reference for w in no_match], ['W2'])

        # Applying again does not add the category twice
        self.matcher.apply([skirt], VOCABULARY)
        self.assertEqual(len(skirt.public_categories), 1)


if __name__ == '__main__':
    unittest.main()
