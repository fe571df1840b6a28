#!/usr/bin/env python3
"""
Category Matcher - Map a vendor category label to catalog categories

The vendor label ("SKIRTS", "Robes", "Faldas") is translated to Dutch
keyword stems via categories.yaml; every vocabulary entry whose display
name contains a stem is a candidate. For Baby/Kids/Teen products a
candidate must also name the age group and must not name an adult
audience ("Rokken Dames").
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import WarningCode, WarningLog
from .models import AgeGroup, CategoryRef, Product

logger = logging.getLogger(__name__)

VocabularyEntry = Union[CategoryRef, Mapping[str, Any]]


def to_category_ref(entry: VocabularyEntry) -> CategoryRef:
    """Accept CategoryRef or catalog-style dicts {id, name, display_name}"""
    if isinstance(entry, CategoryRef):
        return entry
    return CategoryRef(
        id=int(entry['id']),
        name=str(entry.get('name') or ''),
        display_name=str(entry.get('display_name') or ''),
    )


def _word_start(keyword: str) -> re.Pattern:
    return re.compile(r'\b' + re.escape(keyword.lower()))


class CategoryMatcher:
    """Keyword matching of vendor category labels against a category vocabulary"""

    def __init__(self, rule_loader):
        """
        Initialize category matcher

        Args:
            rule_loader: RuleLoader instance (categories.yaml)
        """
        self.rule_loader = rule_loader
        rules = rule_loader.get_category_rules()
        self.translations: Dict[str, List[str]] = {
            ' '.join(str(label).lower().split()): [str(s).lower() for s in stems or []]
            for label, stems in (rules.get('translations') or {}).items()
        }
        self.age_keywords: Dict[AgeGroup, List[re.Pattern]] = {
            AgeGroup.parse(group): [_word_start(k) for k in keywords or []]
            for group, keywords in (rules.get('age_keywords') or {}).items()
        }
        self.adult_exclusions = [_word_start(k) for k in rules.get('adult_exclusions') or []]

    def stems_for(self, csv_category: Optional[str]) -> List[str]:
        key = ' '.join(str(csv_category or '').lower().split())
        return self.translations.get(key, [])

    def match(self, csv_category: Optional[str], age_group: AgeGroup,
              vocabulary: Iterable[VocabularyEntry]) -> List[CategoryRef]:
        """
        Find the catalog categories for one vendor category label

        Args:
            csv_category: Vendor category label
            age_group: Product age group
            vocabulary: Catalog categories

        Returns:
            Matching categories in vocabulary order, without duplicates.
            Unknown labels give an empty list.
        """
        stems = self.stems_for(csv_category)
        if not stems:
            return []

        age_group = AgeGroup.parse(age_group)
        required = self.age_keywords.get(age_group, []) if age_group != AgeGroup.ADULT else []

        matches: List[CategoryRef] = []
        seen = set()
        for entry in vocabulary:
            category = to_category_ref(entry)
            if category.id in seen:
                continue
            text = category.label.lower()
            if not any(stem in text for stem in stems):
                continue
            if age_group != AgeGroup.ADULT:
                if required and not any(p.search(text) for p in required):
                    continue
                if any(p.search(text) for p in self.adult_exclusions):
                    continue
            seen.add(category.id)
            matches.append(category)
        return matches

    def apply(self, products: Sequence[Product], vocabulary: Sequence[VocabularyEntry],
              warnings: Optional[WarningLog] = None) -> List[Product]:
        """
        Add matching public categories to each product in place

        Products with a category label that matched nothing get a
        NO_CATEGORY_MATCH warning; products without a label are left alone.
        """
        vocabulary = [to_category_ref(v) for v in vocabulary]
        matched = 0
        for product in products:
            if not product.csv_category:
                continue
            categories = self.match(product.csv_category, product.age_group, vocabulary)
            for category in categories:
                product.add_public_category(category)
            if categories:
                matched += 1
            elif warnings is not None:
                warnings.add(
                    WarningCode.NO_CATEGORY_MATCH,
                    f"[{product.vendor}] No category match for '{product.csv_category}' "
                    f"({product.age_group.value}) on {product.reference}",
                    reference=product.reference,
                )
        logger.info(f"Category matched {matched} of {len(products)} products")
        return list(products)
