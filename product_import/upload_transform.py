#!/usr/bin/env python3
"""
Upload Transform - Final shape of products before they leave the engine

prepare_for_upload collapses unit sizes and relabels adult letter sizes;
to_catalog_payload builds the dict handed to the catalog API client;
to_dataframe / write_review_file produce the review sheet (one row per variant).
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from .grouper import collapse_unit_variants
from .models import AgeGroup, Product, quantize_money

logger = logging.getLogger(__name__)

REVIEW_COLUMNS = [
    'vendor', 'reference', 'name', 'original_name', 'color', 'material', 'age_group',
    'size_attribute', 'suggested_brand', 'public_categories', 'size', 'raw_size',
    'quantity', 'ean', 'sku', 'price', 'rrp', 'price_source', 'rrp_source', 'price_missing',
]


def prepare_for_upload(products: Sequence[Product], size_normalizer) -> List[Product]:
    """
    Copies of the products ready for upload

    Args:
        products: Pipeline output (left untouched)
        size_normalizer: SizeNormalizer providing the unit test and the adult size table

    Returns:
        Deep copies with unit variants collapsed and, for Adult products,
        letter sizes rewritten to "<letter> - <EU size>"
    """
    prepared = copy.deepcopy(list(products))
    for product in prepared:
        collapse_unit_variants(product, size_normalizer.is_unit_size)
        if product.age_group == AgeGroup.ADULT:
            for variant in product.variants:
                variant.size = size_normalizer.adult_label(variant.size)
    logger.info(f"Prepared {len(prepared)} products for upload")
    return prepared


def to_catalog_payload(product: Product) -> Dict[str, Any]:
    """Plain dict for the catalog API client; list/standard price come from the first variant"""
    first = product.variants[0] if product.variants else None
    return {
        'name': product.name,
        'default_code': product.reference,
        'list_price': str(quantize_money(first.rrp if first else None)),
        'standard_price': str(quantize_money(first.price if first else None)),
        'description_ecommerce': product.ecommerce_description,
        'size_attribute': product.size_attribute,
        'suggested_brand': product.suggested_brand,
        'public_categ_ids': [c.id for c in product.public_categories],
        'product_tag_ids': [t.id for t in product.product_tags],
        'variants': [
            {
                'size': v.size,
                'ean': v.ean,
                'sku': v.sku,
                'quantity': v.quantity,
                'price': str(quantize_money(v.price)),
                'rrp': str(quantize_money(v.rrp)),
            }
            for v in product.variants
        ],
    }


def to_dataframe(products: Sequence[Product]) -> pd.DataFrame:
    """Flatten products to one row per variant"""
    records = []
    for product in products:
        categories = ', '.join(c.label for c in product.public_categories)
        for variant in product.variants:
            records.append({
                'vendor': product.vendor,
                'reference': product.reference,
                'name': product.name,
                'original_name': product.original_name,
                'color': product.color,
                'material': product.material,
                'age_group': product.age_group.value,
                'size_attribute': product.size_attribute,
                'suggested_brand': product.suggested_brand or '',
                'public_categories': categories,
                'size': variant.size,
                'raw_size': variant.raw_size,
                'quantity': variant.quantity,
                'ean': variant.ean,
                'sku': variant.sku or '',
                'price': float(quantize_money(variant.price)),
                'rrp': float(quantize_money(variant.rrp)),
                'price_source': variant.price_source.value,
                'rrp_source': variant.rrp_source.value,
                'price_missing': variant.price_missing,
            })
    return pd.DataFrame(records, columns=REVIEW_COLUMNS)


def write_review_file(products: Sequence[Product], output_path: Path) -> Path:
    """
    Write the review sheet as .xlsx (openpyxl) or .csv

    Raises:
        ValueError: unsupported file extension
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = to_dataframe(products)
    suffix = output_path.suffix.lower()
    if suffix == '.xlsx':
        df.to_excel(output_path, index=False, engine='openpyxl', sheet_name='Products')
    elif suffix == '.csv':
        df.to_csv(output_path, index=False, encoding='utf-8')
    else:
        raise ValueError(f"Unsupported review file type '{suffix}' (use .xlsx or .csv)")
    logger.info(f"Wrote {len(df)} variant rows to {output_path}")
    return output_path
