#!/usr/bin/env python3
"""
Vendor Profiles - Typed view of the vendor rules in vendors.yaml

A vendor has one or more formats ("order", "confirmation", "prices", ...).
Each format declares how to find and read its rows: dialect, header
signature, column aliases, decimal convention, grouping key, price
precedence, markup and size hints. Profiles are built once per run from
the merged rules and never mutated.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Pattern, Tuple

from .errors import UnknownVendor
from .models import AgeGroup, PriceSource
from .source_reader import Dialect

logger = logging.getLogger(__name__)

SOURCE_CSV = 'csv'
SOURCE_PDF_ROWS = 'pdf_rows'

LOGICAL_FIELDS = (
    'reference', 'product_name', 'color', 'size', 'ean', 'sku', 'quantity',
    'unit_price', 'rrp', 'composition', 'description', 'csv_category', 'brand',
)
GROUP_KEY_FIELDS = LOGICAL_FIELDS + ('name_code',)

COST_SOURCES = (PriceSource.INLINE, PriceSource.PRICE_LIST, PriceSource.INVOICE)
RRP_SOURCES = (PriceSource.INLINE, PriceSource.TARIF, PriceSource.MARKUP)
RECONCILE_FIELDS = ('price', 'rrp')


def size_key(token: Any) -> str:
    """Comparison key for size tokens: upper case, no whitespace"""
    return re.sub(r'\s+', '', str(token or '')).upper()


def _norm_alias(alias: Any) -> str:
    return ' '.join(str(alias).lower().split())


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass(frozen=True)
class SizeHint:
    """Vendor context for size normalization."""
    overrides: Tuple[Tuple[str, str], ...] = ()
    range_bound: str = 'upper'
    bare_numbers: str = 'years'
    default_age_group: AgeGroup = AgeGroup.KIDS

    @classmethod
    def from_rules(cls, rules: Optional[Dict[str, Any]]) -> 'SizeHint':
        rules = rules or {}
        overrides = tuple((size_key(k), str(v).strip()) for k, v in (rules.get('overrides') or {}).items())
        range_bound = str(rules.get('range_bound', 'upper')).lower()
        if range_bound not in ('upper', 'lower'):
            raise ValueError(f"range_bound must be 'upper' or 'lower', got '{range_bound}'")
        bare_numbers = str(rules.get('bare_numbers', 'years')).lower()
        if bare_numbers not in ('years', 'months', 'none'):
            raise ValueError(f"bare_numbers must be 'years', 'months' or 'none', got '{bare_numbers}'")
        return cls(
            overrides=overrides,
            range_bound=range_bound,
            bare_numbers=bare_numbers,
            default_age_group=AgeGroup.parse(rules.get('default_age_group'), AgeGroup.KIDS),
        )

    def override_for(self, raw_size: Any) -> Optional[str]:
        key = size_key(raw_size)
        for token, label in self.overrides:
            if token == key:
                return label
        return None


@dataclass(frozen=True)
class ReconcileRule:
    primary: str
    secondary: str
    overlay_fields: Tuple[str, ...] = ('rrp',)
    match_fields: Tuple[str, ...] = ('reference', 'color')
    drop_unmatched_zero_quantity: bool = False

    @classmethod
    def from_rules(cls, rules: Dict[str, Any]) -> 'ReconcileRule':
        overlay = tuple(_as_list(rules.get('overlay_fields', ['rrp'])))
        invalid = [f for f in overlay if f not in RECONCILE_FIELDS]
        if invalid:
            raise ValueError(f"overlay_fields must be a subset of {RECONCILE_FIELDS}, got {invalid}")
        return cls(
            primary=str(rules['primary']),
            secondary=str(rules['secondary']),
            overlay_fields=overlay,
            match_fields=tuple(_as_list(rules.get('match_fields', ['reference', 'color']))),
            drop_unmatched_zero_quantity=bool(rules.get('drop_unmatched_zero_quantity', False)),
        )


@dataclass
class FormatProfile:
    vendor: str
    kind: str
    source: str = SOURCE_CSV
    dialect: Dialect = Dialect()
    signatures: List[List[str]] = field(default_factory=list)
    columns: Dict[str, List[str]] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    decimal: str = 'auto'
    group_key: List[str] = field(default_factory=lambda: ['reference', 'color'])
    duplicate_size: str = 'skip'
    price_precedence: List[PriceSource] = field(default_factory=lambda: list(COST_SOURCES))
    rrp_precedence: List[PriceSource] = field(default_factory=lambda: list(RRP_SOURCES))
    markup_factor: Decimal = Decimal('2.5')
    markup_base: str = 'cost'
    name_format: str = '{name}'
    name_case: str = 'keep'
    size_hint: SizeHint = SizeHint()
    default_size: str = ''
    code_pattern: Optional[Pattern] = None
    code_field: str = 'reference'
    header_scan_rows: int = 50

    @property
    def is_pdf_rows(self) -> bool:
        return self.source == SOURCE_PDF_ROWS

    def aliases_for(self, field_name: str) -> List[str]:
        return self.columns.get(field_name, [])

    @classmethod
    def from_rules(cls, vendor: str, kind: str, rules: Dict[str, Any], default_markup: str = '2.5',
                   scan_rows: int = 50) -> 'FormatProfile':
        source = str(rules.get('source', SOURCE_CSV))
        if source not in (SOURCE_CSV, SOURCE_PDF_ROWS):
            raise ValueError(f"[{vendor}/{kind}] unknown source '{source}'")

        columns = {}
        for name, aliases in (rules.get('columns') or {}).items():
            if name not in LOGICAL_FIELDS:
                raise ValueError(f"[{vendor}/{kind}] unknown column field '{name}'")
            columns[name] = [_norm_alias(a) for a in _as_list(aliases)]

        signatures = rules.get('signature') or []
        if signatures and not isinstance(signatures[0], (list, tuple)):
            signatures = [signatures]
        signatures = [[_norm_alias(t) for t in sig] for sig in signatures]

        group_key = _as_list(rules.get('group_key', ['reference', 'color']))
        unknown = [f for f in group_key if f not in GROUP_KEY_FIELDS]
        if unknown:
            raise ValueError(f"[{vendor}/{kind}] unknown group_key fields {unknown}")

        price_precedence = [PriceSource.parse(p) for p in _as_list(rules.get('price_precedence'))]
        rrp_precedence = [PriceSource.parse(p) for p in _as_list(rules.get('rrp_precedence'))]
        if any(p not in COST_SOURCES for p in price_precedence):
            raise ValueError(f"[{vendor}/{kind}] price_precedence must use {[s.value for s in COST_SOURCES]}")
        if any(p not in RRP_SOURCES for p in rrp_precedence):
            raise ValueError(f"[{vendor}/{kind}] rrp_precedence must use {[s.value for s in RRP_SOURCES]}")

        duplicate_size = str(rules.get('duplicate_size', 'skip')).lower()
        if duplicate_size not in ('skip', 'merge'):
            raise ValueError(f"[{vendor}/{kind}] duplicate_size must be 'skip' or 'merge'")

        markup_base = str(rules.get('markup_base', 'cost')).lower()
        if markup_base not in ('cost', 'inline'):
            raise ValueError(f"[{vendor}/{kind}] markup_base must be 'cost' or 'inline'")

        code_pattern = rules.get('code_pattern')
        return cls(
            vendor=vendor,
            kind=kind,
            source=source,
            dialect=Dialect.from_rules(rules.get('dialect')),
            signatures=signatures,
            columns=columns,
            required=list(_as_list(rules.get('required'))),
            decimal=str(rules.get('decimal', 'auto')),
            group_key=group_key,
            duplicate_size=duplicate_size,
            price_precedence=price_precedence,
            rrp_precedence=rrp_precedence,
            markup_factor=Decimal(str(rules.get('markup_factor', default_markup))),
            markup_base=markup_base,
            name_format=str(rules.get('name_format', '{name}')),
            name_case=str(rules.get('name_case', 'keep')).lower(),
            size_hint=SizeHint.from_rules(rules.get('size_hint')),
            default_size=str(rules.get('default_size') or ''),
            code_pattern=re.compile(code_pattern) if code_pattern else None,
            code_field=str(rules.get('code_field', 'reference')),
            header_scan_rows=int(rules.get('header_scan_rows', scan_rows)),
        )


@dataclass
class VendorProfile:
    code: str
    name: str
    brand: str = ''
    adapter: str = ''
    filename_patterns: List[str] = field(default_factory=list)
    formats: Dict[str, FormatProfile] = field(default_factory=dict)
    reconcile: Optional[ReconcileRule] = None

    @property
    def kinds(self) -> List[str]:
        return list(self.formats.keys())

    @property
    def primary_kind(self) -> str:
        if self.reconcile:
            return self.reconcile.primary
        return self.kinds[0]

    def format(self, kind: Optional[str] = None) -> FormatProfile:
        """
        Get one format of this vendor

        Args:
            kind: Format kind; None selects the primary format

        Raises:
            UnknownVendor: kind is not declared for this vendor
        """
        kind = kind or self.primary_kind
        if kind not in self.formats:
            raise UnknownVendor(f"Vendor '{self.code}' has no format '{kind}'. Known formats: {', '.join(self.kinds)}")
        return self.formats[kind]

    def csv_formats(self) -> List[FormatProfile]:
        return [f for f in self.formats.values() if not f.is_pdf_rows]


def load_vendor_profile(rule_loader, vendor_code: str) -> VendorProfile:
    """
    Build the profile of one vendor from the merged rules

    Args:
        rule_loader: RuleLoader instance
        vendor_code: Vendor code declared in vendors.yaml

    Returns:
        VendorProfile
    """
    rules = rule_loader.get_vendor_rules(vendor_code)
    code = rules['code']
    default_markup = rule_loader.get_default_markup_factor()
    scan_rows = rule_loader.get_detection_scan_rows()

    formats = {
        kind: FormatProfile.from_rules(code, kind, fmt, default_markup, scan_rows)
        for kind, fmt in rules['formats'].items()
    }
    if not formats:
        raise ValueError(f"Vendor '{code}' declares no formats")

    reconcile = None
    if rules.get('reconcile'):
        reconcile = ReconcileRule.from_rules(rules['reconcile'])
        for kind in (reconcile.primary, reconcile.secondary):
            if kind not in formats:
                raise ValueError(f"Vendor '{code}' reconcile refers to unknown format '{kind}'")

    profile = VendorProfile(
        code=code,
        name=str(rules.get('name', code)),
        brand=str(rules.get('brand', '')),
        adapter=str(rules.get('adapter', code)),
        filename_patterns=[str(p).lower() for p in _as_list(rules.get('filename_patterns'))],
        formats=formats,
        reconcile=reconcile,
    )
    logger.debug(f"Loaded vendor profile {code} with formats {profile.kinds}")
    return profile


def load_vendor_profiles(rule_loader) -> Dict[str, VendorProfile]:
    """Profiles of every vendor in declaration order"""
    return {code: load_vendor_profile(rule_loader, code) for code in rule_loader.list_vendors()}
