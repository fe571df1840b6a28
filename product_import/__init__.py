"""
Product Import: vendor order, invoice and catalog files -> canonical products
Reads CSV, spreadsheet and PDF-extracted rows from apparel vendors and
produces grouped products with normalized sizes, resolved prices and
matched categories. Vendor formats are driven by YAML rules.
"""

from .category_matcher import CategoryMatcher
from .errors import (
    EmptyOrInvalidSource,
    IngestionError,
    MissingRequiredColumns,
    PipelineWarning,
    UnknownVendor,
    UnrecognizedFormat,
    WarningCode,
    WarningLog,
)
from .grouper import collapse_unit_variants, group
from .models import AgeGroup, CategoryRef, PriceSource, Product, RawLineItem, Variant
from .pipeline import ImportPipeline, ImportResult
from .price_lists import PriceBook, invoice_prices, load_price_list, load_tarif
from .price_parser import parse_money, parse_quantity
from .price_resolver import PriceResolver
from .reconciliation import reconcile
from .rule_loader import RuleLoader
from .size_normalizer import SizeNormalizer
from .source_reader import Dialect, read, read_file, read_workbook
from .upload_transform import prepare_for_upload, to_catalog_payload, to_dataframe, write_review_file
from .vendor_adapters import VendorAdapter, get_adapter
from .vendor_detector import VendorDetector

__version__ = '1.0.0'

__all__ = [
    'AgeGroup',
    'CategoryMatcher',
    'CategoryRef',
    'Dialect',
    'EmptyOrInvalidSource',
    'ImportPipeline',
    'ImportResult',
    'IngestionError',
    'MissingRequiredColumns',
    'PipelineWarning',
    'PriceBook',
    'PriceResolver',
    'PriceSource',
    'Product',
    'RawLineItem',
    'RuleLoader',
    'SizeNormalizer',
    'UnknownVendor',
    'UnrecognizedFormat',
    'Variant',
    'VendorAdapter',
    'VendorDetector',
    'WarningCode',
    'WarningLog',
    'collapse_unit_variants',
    'get_adapter',
    'group',
    'invoice_prices',
    'load_price_list',
    'load_tarif',
    'parse_money',
    'parse_quantity',
    'prepare_for_upload',
    'read',
    'read_file',
    'read_workbook',
    'reconcile',
    'to_catalog_payload',
    'to_dataframe',
    'write_review_file',
]
