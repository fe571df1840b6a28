#!/usr/bin/env python3
"""
Name Hygiene Module
Cleans vendor product names and codes before grouping:
- Title/sentence casing and whitespace cleanup
- Display-name composition from a vendor template ("{brand} - {name}")
- EAN normalization (spreadsheet exports turn barcodes into floats)
- Brand detection against a caller-supplied brand list
- Size and colour split from free-text titles ("OXFORD OVERALLS 2Y", "Fresa Onesie - Blue")
- Product-name codes for vendors whose reference alone is not unique
"""

import re
import logging
from decimal import Decimal
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

WHITESPACE = re.compile(r'\s+')

# Words kept lowercase inside title case, unless first
# Examples: "Pants with Pockets", "Dress of the Day"
TITLE_SMALL_WORDS = {'and', 'or', 'with', 'of', 'the', 'in', 'on', 'a', 'an', 'en', 'met', 'de', 'het'}

# EAN-8 / UPC-A / EAN-13 / GTIN-14
EAN_PATTERN = re.compile(r'^\d{8}$|^\d{12,14}$')
# "5.41234567890E+12" as exported by spreadsheets
SCIENTIFIC_PATTERN = re.compile(r'^\d+(\.\d+)?[eE]\+\d+$')
# Longest barcode (GTIN-14)
MAX_BARCODE_DIGITS = 14

# Size at the end of a free-text title
# Examples: "BURTON OVERALLS 2Y", "BODY 3-6M", "TEE 10-12Y", "ROMPER 18M"
TRAILING_SIZE_PATTERN = re.compile(r'^(?P<name>.+?)\s+(?P<size>\d+\s*-\s*\d+\s*[YM]|\d+\s*[YM]|XXS|XS|S|M|L|XL|XXL|ONE SIZE|OS|TU|U)$', re.I)

# Colour at the end of a title, separated by " - ", " / " or ", "
# Examples: "Fresa Onesie - Blue Violet", "Knit Cardigan, Oat"
TRAILING_COLOR_PATTERN = re.compile(r'^(?P<name>.+?)\s*(?:\s-\s|\s/\s|,\s)(?P<color>[^,\-/]+)$')

# Codes embedded in product names
# Examples: "Sweatshirt (B124AD001)", "LOGO TEE 1234-567"
NAME_CODE_PATTERNS = [
    re.compile(r'\(([A-Z0-9][A-Z0-9\-]{3,})\)'),
    re.compile(r'(?<![A-Z0-9])([A-Z]{1,3}\d{3,}[A-Z0-9]*)(?![A-Z0-9])'),
    re.compile(r'(?<![0-9])(\d{3,}-\d{2,})(?![0-9])'),
]


def clean_whitespace(text: Optional[str]) -> str:
    if not text:
        return ''
    return WHITESPACE.sub(' ', str(text)).strip()


def title_case(text: Optional[str]) -> str:
    """
    Title-case a vendor name ("DRESS WITH POCKETS" -> "Dress with Pockets")

    Hyphenated words are capitalized per part and apostrophes do not start a new word.
    """
    words = clean_whitespace(text).lower().split(' ')
    out = []
    for i, word in enumerate(words):
        if not word:
            continue
        if i > 0 and word in TITLE_SMALL_WORDS:
            out.append(word)
            continue
        out.append('-'.join(part[:1].upper() + part[1:] for part in word.split('-')))
    return ' '.join(out)


def sentence_case(text: Optional[str]) -> str:
    """Sentence-case a vendor name ("LOGO T-SHIRT" -> "Logo t-shirt")"""
    s = clean_whitespace(text).lower()
    return s[:1].upper() + s[1:]


def compose_name(template: str, **fields) -> str:
    """
    Build a display name from a template and row fields

    Placeholders whose value is empty are removed together with the separator
    next to them, so "{brand} - {name}" with no brand yields just the name.

    Args:
        template: Format string, e.g. "{brand} - {name}" or "{name} {color}"
        **fields: Values for the placeholders

    Returns:
        Composed display name
    """
    parts = re.split(r'(\{[a-z_]+\})', template or '{name}')
    pieces = []
    pending_sep = ''
    for part in parts:
        m = re.fullmatch(r'\{([a-z_]+)\}', part)
        if m:
            value = clean_whitespace(fields.get(m.group(1), ''))
            if value:
                if pieces:
                    pieces.append(pending_sep)
                pieces.append(value)
            pending_sep = ''
        else:
            pending_sep += part
    return clean_whitespace(''.join(pieces))


def normalize_ean(value) -> str:
    """
    Normalize a barcode cell to a digit string

    Returns:
        Digits for numeric barcodes ("5412345678901.0" -> "5412345678901"),
        the stripped text for anything else, '' for empty cells
    """
    s = clean_whitespace(value)
    if not s or s.lower() in ('nan', 'none', '-'):
        return ''
    if SCIENTIFIC_PATTERN.match(s):
        # Precision is already lost in the export; keep what the number says
        number = Decimal(s)
        if number.adjusted() < MAX_BARCODE_DIGITS:
            s = str(int(number))
    if re.fullmatch(r'\d+\.0+', s):
        s = s.split('.')[0]
    digits = re.sub(r'[\s\-]', '', s)
    if digits.isdigit():
        return digits
    return s


def is_valid_ean(value: str) -> bool:
    return bool(EAN_PATTERN.match(value or ''))


def detect_brand(texts: Iterable[Optional[str]], known_brands: Iterable[str]) -> Optional[str]:
    """
    Find a known brand inside brand/product-name text

    Matching is case-insensitive on word boundaries; when several brands match,
    the longest brand name wins ("Mini Rodini" over "Mini").

    Args:
        texts: Candidate texts in priority order (brand column, raw name)
        known_brands: Brand names supplied by the caller

    Returns:
        The brand as spelled in known_brands, or None
    """
    brands = sorted({b for b in known_brands if b and b.strip()}, key=lambda b: (-len(b), b.lower()))
    for text in texts:
        haystack = clean_whitespace(text).lower()
        if not haystack:
            continue
        for brand in brands:
            pattern = r'(?<![\w])' + re.escape(brand.strip().lower()) + r'(?![\w])'
            if re.search(pattern, haystack):
                logger.debug(f"Detected brand '{brand}' in '{haystack[:50]}'")
                return brand
    return None


def split_trailing_size(text: Optional[str]) -> Tuple[str, str]:
    """
    Split a size token off the end of a title

    Returns:
        (name, size); size is '' when the title does not end in a size
    """
    s = clean_whitespace(text)
    m = TRAILING_SIZE_PATTERN.match(s)
    if not m:
        return s, ''
    return m.group('name').strip(), m.group('size').replace(' ', '').upper()


def split_trailing_color(text: Optional[str]) -> Tuple[str, str]:
    """Split "Name - Colour" into (name, colour); colour is '' when absent"""
    s = clean_whitespace(text)
    m = TRAILING_COLOR_PATTERN.match(s)
    if not m:
        return s, ''
    return m.group('name').strip(), m.group('color').strip()


def name_code(name: Optional[str]) -> str:
    """
    Derive a short code from a product name

    An article code embedded in the name wins; otherwise the lowercase words of
    the name joined by '-' ("Logo Tee Blue" -> "logo-tee-blue").
    """
    s = clean_whitespace(name)
    if not s:
        return ''
    upper = s.upper()
    for pattern in NAME_CODE_PATTERNS:
        m = pattern.search(upper)
        if m:
            return m.group(1)
    return '-'.join(re.findall(r'[a-z0-9]+', s.lower()))
