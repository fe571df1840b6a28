#!/usr/bin/env python3
"""
Import Pipeline - Run one vendor file through every stage

read -> detect format -> adapter extract -> group -> normalize sizes
-> resolve prices -> collapse unit sizes -> match categories

Each run builds fresh records; nothing is shared between files except the
read-only rules. Reconciliation of a second file is an explicit call on two
results.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .category_matcher import CategoryMatcher, VocabularyEntry
from .errors import PipelineWarning, UnknownVendor, WarningLog
from .grouper import collapse_unit_variants, group
from .models import Product, RawLineItem
from .price_lists import PriceBook
from .price_resolver import PriceResolver
from .reconciliation import key_on, reconcile
from .rule_loader import RuleLoader
from .size_normalizer import SizeNormalizer
from .source_reader import WORKBOOK_SUFFIXES, decode_bytes, read, read_workbook, require_rows, sniff_dialect
from .vendor_adapters import VendorAdapter, get_adapter
from .vendor_detector import VendorDetector
from .vendor_profiles import ReconcileRule, VendorProfile, load_vendor_profiles

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    vendor: str
    kind: str
    products: List[Product] = field(default_factory=list)
    warnings: List[PipelineWarning] = field(default_factory=list)
    skipped_rows: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vendor': self.vendor,
            'kind': self.kind,
            'products': [p.to_dict() for p in self.products],
            'warnings': [w.to_dict() for w in self.warnings],
            'skipped_rows': self.skipped_rows,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize deterministically (same input file -> same text)"""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False)


class ImportPipeline:
    """Vendor file -> canonical products, warnings and skipped-row count"""

    def __init__(self, rule_loader: Optional[RuleLoader] = None, brands: Optional[Iterable[str]] = None,
                 category_vocabulary: Optional[Sequence[VocabularyEntry]] = None):
        """
        Initialize import pipeline

        Args:
            rule_loader: RuleLoader instance (packaged rules when omitted)
            brands: Known brand names used for brand suggestion
            category_vocabulary: Catalog categories for category matching
        """
        self.rule_loader = rule_loader or RuleLoader()
        self.brands = list(brands or [])
        self.category_vocabulary = list(category_vocabulary or [])

        self.profiles = load_vendor_profiles(self.rule_loader)
        self.detector = VendorDetector(self.rule_loader, self.profiles)
        self.size_normalizer = SizeNormalizer(self.rule_loader)
        self.price_resolver = PriceResolver(self.rule_loader)
        self.category_matcher = CategoryMatcher(self.rule_loader)
        self.sample_limit = self.rule_loader.get_skipped_row_sample_limit()

    # ---------------- lookup ----------------
    def profile(self, vendor: str) -> VendorProfile:
        """
        Vendor profile by code (case-insensitive)

        Raises:
            UnknownVendor: vendor is not declared in vendors.yaml
        """
        code = (vendor or '').strip().lower()
        for key, profile in self.profiles.items():
            if key.lower() == code:
                return profile
        raise UnknownVendor(f"Unknown vendor '{vendor}'. Known vendors: {', '.join(self.profiles)}")

    def _new_warning_log(self) -> WarningLog:
        return WarningLog(sample_limit=self.sample_limit)

    # ---------------- stages ----------------
    def _build(self, adapter: VendorAdapter, items: List[RawLineItem], warnings: WarningLog,
               price_book: Optional[PriceBook]) -> ImportResult:
        profile, fmt = adapter.profile, adapter.fmt
        is_unit = self.size_normalizer.is_unit_size

        products = group(items, adapter.group_key, fmt.duplicate_size, warnings, is_unit, profile.code)
        for product in products:
            self.size_normalizer.apply(product, fmt.size_hint, fmt.duplicate_size, warnings)
        self.price_resolver.resolve(products, fmt, price_book, warnings)
        for product in products:
            collapse_unit_variants(product, is_unit)
        if self.category_vocabulary:
            self.category_matcher.apply(products, self.category_vocabulary, warnings)

        logger.info(f"[{profile.code}/{fmt.kind}] {len(products)} products, "
                    f"{sum(len(p.variants) for p in products)} variants, {warnings.skipped_rows} rows skipped")
        return ImportResult(
            vendor=profile.code,
            kind=fmt.kind,
            products=products,
            warnings=warnings.warnings,
            skipped_rows=warnings.skipped_rows,
        )

    def run_rows(self, rows: Sequence[Sequence[str]], vendor: Optional[str] = None, kind: Optional[str] = None,
                 price_book: Optional[PriceBook] = None) -> ImportResult:
        """
        Run the pipeline on rows that were already read

        Args:
            rows: Rows from the source reader
            vendor: Vendor code; detected from header signatures when omitted
            kind: Format kind; detected from header signatures when omitted
            price_book: Companion price sources

        Returns:
            ImportResult

        Raises:
            EmptyOrInvalidSource, UnrecognizedFormat, MissingRequiredColumns, UnknownVendor
        """
        require_rows(rows, vendor)
        header_index = None
        if vendor is None:
            profile, fmt, header_index = self.detector.detect_vendor_from_rows(rows)
            if kind is not None:
                fmt, header_index = profile.format(kind), None
        else:
            profile = self.profile(vendor)
            if kind is not None:
                fmt = profile.format(kind)
            else:
                fmt, header_index = self.detector.detect_format(rows, profile)

        if fmt.is_pdf_rows:
            raise ValueError(f"[{profile.code}] format '{fmt.kind}' reads PDF rows, use run_pdf_rows")

        warnings = self._new_warning_log()
        adapter = get_adapter(profile, fmt, self.brands)
        items = adapter.extract(rows, warnings, header_index)
        return self._build(adapter, items, warnings, price_book)

    def run_text(self, raw_text: str, vendor: Optional[str] = None, kind: Optional[str] = None,
                 price_book: Optional[PriceBook] = None) -> ImportResult:
        """Run the pipeline on decoded CSV text"""
        return self.run_rows(read(raw_text, self._dialect_for(raw_text, vendor, kind)), vendor, kind, price_book)

    def run_file(self, path: Path, vendor: Optional[str] = None, kind: Optional[str] = None,
                 price_book: Optional[PriceBook] = None) -> ImportResult:
        """
        Run the pipeline on a CSV or spreadsheet file

        The vendor falls back to filename patterns, then to header signatures.
        """
        path = Path(path)
        if vendor is None:
            vendor = self.detector.detect_vendor_from_filename(path)
        if path.suffix.lower() in WORKBOOK_SUFFIXES:
            rows = read_workbook(path)
        else:
            with open(path, 'rb') as f:
                text = decode_bytes(f.read())
            rows = read(text, self._dialect_for(text, vendor, kind))
        logger.info(f"Read {len(rows)} rows from {path.name}")
        return self.run_rows(rows, vendor, kind, price_book)

    def run_pdf_rows(self, pdf_rows: Sequence[Mapping[str, Any]], vendor: str, kind: Optional[str] = None,
                     price_book: Optional[PriceBook] = None) -> ImportResult:
        """
        Run the pipeline on rows handed over by the PDF extractor

        Args:
            pdf_rows: Dicts with code, description, size, quantity, unitPrice, total, ...
            vendor: Vendor code
            kind: PDF format kind; the vendor's first PDF format when omitted
        """
        profile = self.profile(vendor)
        if kind is None:
            pdf_formats = [f for f in profile.formats.values() if f.is_pdf_rows]
            if not pdf_formats:
                raise UnknownVendor(f"Vendor '{profile.code}' has no PDF format. Known formats: {', '.join(profile.kinds)}")
            fmt = pdf_formats[0]
        else:
            fmt = profile.format(kind)
            if not fmt.is_pdf_rows:
                raise ValueError(f"[{profile.code}] format '{fmt.kind}' reads delimited rows, use run_rows")

        warnings = self._new_warning_log()
        adapter = get_adapter(profile, fmt, self.brands)
        items = adapter.extract_pdf(pdf_rows, warnings)
        return self._build(adapter, items, warnings, price_book)

    def _dialect_for(self, raw_text: str, vendor: Optional[str], kind: Optional[str]):
        if vendor is None:
            return sniff_dialect(raw_text)
        profile = self.profile(vendor)
        if kind is not None:
            return profile.format(kind).dialect
        formats = profile.csv_formats()
        return formats[0].dialect if formats else sniff_dialect(raw_text)

    # ---------------- reconciliation ----------------
    def reconcile(self, primary: ImportResult, secondary: ImportResult,
                  rule: Optional[ReconcileRule] = None) -> ImportResult:
        """
        Overlay prices of a secondary result onto a primary result

        Args:
            primary: Result of the authoritative file (left untouched)
            secondary: Result of the companion file
            rule: Overlay rule; the vendor's declared rule when omitted, else rrp on (reference, color)

        Returns:
            New ImportResult carrying the warnings of both runs plus reconciliation warnings
        """
        profile = self.profile(primary.vendor)
        rule = rule or profile.reconcile or ReconcileRule(primary=primary.kind, secondary=secondary.kind)
        fmt = profile.format(primary.kind)

        warnings = self._new_warning_log()
        products = reconcile(
            primary.products,
            secondary.products,
            match_fn=key_on(rule.match_fields),
            overlay_fields=rule.overlay_fields,
            size_normalizer=self.size_normalizer,
            size_hint=fmt.size_hint,
            drop_unmatched_zero_quantity=rule.drop_unmatched_zero_quantity,
            warnings=warnings,
            markup_factor=fmt.markup_factor,
        )
        return ImportResult(
            vendor=primary.vendor,
            kind=primary.kind,
            products=products,
            warnings=list(primary.warnings) + list(secondary.warnings) + warnings.warnings,
            skipped_rows=primary.skipped_rows + secondary.skipped_rows,
        )
