#!/usr/bin/env python3
"""
Size Normalizer - Rewrite raw vendor size tokens into canonical labels

Every token yields a display label and an age group:
- Letter sizes (XS, M, XL)            -> same letter, Adult
- Month tokens (3M, 6 mo, 9 mnd)      -> "3 maand", Baby
- Year tokens (4Y, 6A, 8 ans, 10 jr)  -> "4 jaar", Kids (Teen from 10 years)
- Ranges (3/6m, 3-6M, 2Y-3Y, 7/8)     -> one bound (upper unless the vendor prefers lower)
- Bare numbers (2..18)                -> years, unless the vendor reads them otherwise
- Unit markers (U, TU, UNIT)          -> the one-size label
- Anything else                       -> unchanged, vendor default age group

normalize() never raises: size data is corrected by a human later, and a
single odd token must not abort a file.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import WarningLog
from .models import AgeGroup, Product, Variant
from .vendor_profiles import SizeHint, size_key

logger = logging.getLogger(__name__)

DEFAULT_HINT = SizeHint()


def _alternation(tokens: List[str]) -> str:
    return '|'.join(re.escape(t) for t in sorted({str(t).upper() for t in tokens}, key=lambda t: (-len(t), t)))


class SizeNormalizer:
    """Normalize size tokens using sizes.yaml and the vendor's size hint"""

    def __init__(self, rule_loader):
        """
        Initialize size normalizer

        Args:
            rule_loader: RuleLoader instance (sizes.yaml + unit tokens from shared.yaml)
        """
        self.rule_loader = rule_loader
        rules = rule_loader.get_size_rules()
        shared = rule_loader.get_shared_rules()

        labels = rules.get('labels', {})
        self.month_label = labels.get('month', '{n} maand')
        self.year_label = labels.get('year', '{n} jaar')
        self.teen_from_years = int(rules.get('teen_from_years', 10))
        bare_range = rules.get('bare_year_range', [2, 18])
        self.bare_year_min, self.bare_year_max = int(bare_range[0]), int(bare_range[1])
        self.letter_sizes = [str(s).upper() for s in rules.get('letter_sizes', ['XXS', 'XS', 'S', 'M', 'L', 'XL', 'XXL'])]
        self.adult_eu_sizes: Dict[str, int] = {str(k).upper(): int(v) for k, v in (rules.get('adult_eu_sizes') or {}).items()}

        self.unit_label = str(shared.get('unit_size_label', 'One Size'))
        self.unit_tokens = {size_key(t) for t in shared.get('unit_size_tokens', ['UNIT', 'U', 'TU'])}
        self.unit_tokens.add(size_key(self.unit_label))

        month = _alternation(rules.get('month_units', ['M']))
        year = _alternation(rules.get('year_units', ['Y']))
        letters = _alternation(self.letter_sizes)
        self._month_re = re.compile(rf'^(\d+)({month})$')
        self._year_re = re.compile(rf'^(\d+)({year})$')
        self._range_re = re.compile(rf'^(\d+)({month}|{year})?[-/](\d+)({month}|{year})?$')
        self._letter_range_re = re.compile(rf'^({letters})[-/]({letters})$')
        self._month_units = {str(u).upper() for u in rules.get('month_units', ['M'])}
        self._canonical_month_re = re.compile(r'^(\d+)\s*maand(en)?$', re.I)
        self._canonical_year_re = re.compile(r'^(\d+)\s*jaar$', re.I)
        self._adult_label_re = re.compile(rf'^({letters})\s*-\s*\d+$', re.I)

    # ---------------- helpers ----------------
    def is_unit_size(self, raw_size: Any) -> bool:
        """True for one-size markers (U, TU, UNIT, One Size, ...)"""
        return size_key(raw_size) in self.unit_tokens

    def _months(self, n: int) -> Tuple[str, AgeGroup]:
        return self.month_label.format(n=n), AgeGroup.BABY

    def _years(self, n: int) -> Tuple[str, AgeGroup]:
        group = AgeGroup.TEEN if n >= self.teen_from_years else AgeGroup.KIDS
        return self.year_label.format(n=n), group

    def _with_unit(self, n: int, unit: Optional[str], hint: SizeHint, fallback: str) -> Tuple[str, AgeGroup]:
        if unit:
            if unit in self._month_units:
                return self._months(n)
            return self._years(n)
        return self._bare(n, hint, fallback)

    def _bare(self, n: int, hint: SizeHint, fallback: str) -> Tuple[str, AgeGroup]:
        if hint.bare_numbers == 'years' and self.bare_year_min <= n <= self.bare_year_max:
            return self._years(n)
        if hint.bare_numbers == 'months':
            return self._months(n)
        return fallback, hint.default_age_group

    # ---------------- public ----------------
    def normalize(self, raw_size: Any, hint: Optional[SizeHint] = None) -> Tuple[str, AgeGroup]:
        """
        Canonical label and age group for one raw size token

        Args:
            raw_size: Size cell as read from the vendor file (any value)
            hint: Vendor size hint (overrides, range bound, bare-number meaning)

        Returns:
            Tuple of (label, AgeGroup)
        """
        hint = hint or DEFAULT_HINT
        text = '' if raw_size is None else ' '.join(str(raw_size).split())

        override = hint.override_for(text)
        if override is not None:
            label, group = self._canonical(override)
            return label, group or hint.default_age_group

        if not text:
            return text, hint.default_age_group

        token = size_key(text).replace('\u2013', '-').rstrip('.')
        if token in self.unit_tokens or self.is_unit_size(text):
            return self.unit_label, hint.default_age_group

        label, group = self._canonical(text)
        if group is not None:
            return label, group

        if token in self.letter_sizes:
            return token, AgeGroup.ADULT

        m = self._month_re.match(token)
        if m:
            return self._months(int(m.group(1)))

        m = self._year_re.match(token)
        if m:
            return self._years(int(m.group(1)))

        m = self._range_re.match(token)
        if m:
            low, low_unit, high, high_unit = int(m.group(1)), m.group(2), int(m.group(3)), m.group(4)
            low_unit = low_unit or high_unit
            high_unit = high_unit or low_unit
            if hint.range_bound == 'lower':
                return self._with_unit(low, low_unit, hint, text)
            return self._with_unit(high, high_unit, hint, text)

        m = self._letter_range_re.match(token)
        if m:
            return (m.group(1) if hint.range_bound == 'lower' else m.group(2)), AgeGroup.ADULT

        if token.isdecimal():
            return self._bare(int(token), hint, text)

        return text, hint.default_age_group

    def _canonical(self, label: str) -> Tuple[str, Optional[AgeGroup]]:
        """Recognize labels this normalizer produces itself"""
        s = ' '.join(str(label).split())
        m = self._canonical_month_re.match(s)
        if m:
            return self._months(int(m.group(1)))
        m = self._canonical_year_re.match(s)
        if m:
            return self._years(int(m.group(1)))
        if self._adult_label_re.match(s):
            return s.upper(), AgeGroup.ADULT
        if size_key(s) == size_key(self.unit_label):
            return self.unit_label, None
        return s, None

    def adult_label(self, label: str) -> str:
        """Rewrite a letter size for Adult products ("M" -> "M - 38")"""
        eu = self.adult_eu_sizes.get(str(label).strip().upper())
        if eu is None:
            return label
        return f"{str(label).strip().upper()} - {eu}"

    def apply(self, product: Product, hint: Optional[SizeHint] = None, duplicate_rule: str = 'skip',
              warnings: Optional[WarningLog] = None) -> Product:
        """
        Normalize every variant of a product and set its age group

        The age group follows the first variant that is not a unit size; a
        product with only unit sizes takes the vendor default. Variants that
        land on an already used label are skipped or merged per duplicate_rule.

        Returns:
            The same product, updated in place
        """
        hint = hint or DEFAULT_HINT
        age_group = None
        for variant in product.variants:
            if not variant.raw_size:
                variant.raw_size = variant.size
            label, group = self.normalize(variant.raw_size, hint)
            variant.size = label
            if age_group is None and not self.is_unit_size(variant.raw_size):
                age_group = group
        product.age_group = age_group or hint.default_age_group
        product.variants = dedupe_variants(
            product, duplicate_rule, warnings,
            is_unit=lambda v: self.is_unit_size(v.raw_size or v.size),
        )
        return product


def merge_variant(target: Variant, other: Variant) -> None:
    """Fold a duplicate variant into target: quantities add, empty fields are filled"""
    target.quantity += other.quantity
    if not target.ean and other.ean:
        target.ean = other.ean
    if not target.sku and other.sku:
        target.sku = other.sku
    if not target.inline_price and other.inline_price:
        target.inline_price = other.inline_price
    if not target.inline_rrp and other.inline_rrp:
        target.inline_rrp = other.inline_rrp


def dedupe_variants(product: Product, duplicate_rule: str, warnings: Optional[WarningLog],
                    is_unit: Callable[[Variant], bool]) -> List[Variant]:
    """Keep canonical size labels unique within a product (unit sizes are collapsed separately)"""
    kept: List[Variant] = []
    by_label: Dict[str, Variant] = {}
    for variant in product.variants:
        if is_unit(variant):
            kept.append(variant)
            continue
        key = variant.size.lower()
        first = by_label.get(key)
        if first is None:
            by_label[key] = variant
            kept.append(variant)
        elif duplicate_rule == 'merge':
            merge_variant(first, variant)
        elif warnings is not None:
            warnings.row_skipped(variant.row_number, 'duplicate size', [product.reference, variant.raw_size])
    return kept
