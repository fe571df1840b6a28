#!/usr/bin/env python3
"""
Price Parser - Parse monetary amounts and quantities from vendor cells

Handles currency symbols (€, EUR, $), non-breaking spaces and both European
("1.234,56") and English ("1,234.56") notation. Thousands separators are
removed before the decimal separator is converted, so "1.234,56" with a
comma convention becomes 1234.56 and never 1.23456.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

logger = logging.getLogger(__name__)

CURRENCY_PATTERN = re.compile(r'(?i)(€|euro|eur|usd|\$|£|gbp|aud|dkk|sek)')
NUMBER_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')

DECIMAL_COMMA = ','
DECIMAL_DOT = '.'
DECIMAL_AUTO = 'auto'


def _strip_currency(text: str) -> str:
    s = CURRENCY_PATTERN.sub('', text)
    s = s.replace('\u00A0', '').replace('\u202F', '').replace(' ', '').replace("'", '')
    return s.strip()


def _normalize_auto(s: str) -> str:
    """Decide the decimal separator from the digits themselves."""
    has_comma = ',' in s
    has_dot = '.' in s
    if has_comma and has_dot:
        # The rightmost separator is the decimal one
        if s.rfind(',') > s.rfind('.'):
            return s.replace('.', '').replace(',', '.')
        return s.replace(',', '')
    if has_comma:
        # "1,234,567" groups of three -> thousands; otherwise decimal comma
        if re.fullmatch(r'-?\d{1,3}(,\d{3}){2,}', s):
            return s.replace(',', '')
        return s.replace(',', '.')
    if has_dot and re.fullmatch(r'-?\d{1,3}(\.\d{3}){2,}', s):
        return s.replace('.', '')
    return s


def normalize_number_text(text: str, decimal_separator: str = DECIMAL_AUTO) -> str:
    """
    Convert a localized number string to Python notation (dot decimal, no grouping)

    Args:
        text: Raw cell text, may contain currency symbols
        decimal_separator: ',' (European), '.' (English) or 'auto'

    Returns:
        Normalized text (may still be invalid if the input was not numeric)
    """
    s = _strip_currency(str(text))
    negative = False
    if re.fullmatch(r'\(.*\)', s):
        negative = True
        s = s[1:-1]
    if s.endswith('-'):
        negative = True
        s = s[:-1]

    if decimal_separator == DECIMAL_COMMA:
        s = s.replace('.', '').replace(',', '.')
    elif decimal_separator == DECIMAL_DOT:
        s = s.replace(',', '')
    else:
        s = _normalize_auto(s)

    if negative and not s.startswith('-'):
        s = '-' + s
    return s


def parse_money(value, decimal_separator: str = DECIMAL_AUTO) -> Optional[Decimal]:
    """
    Parse a monetary cell into a Decimal

    Args:
        value: Cell value (str, int, float, Decimal or None)
        decimal_separator: Vendor decimal convention (',' / '.' / 'auto')

    Returns:
        Decimal amount, or None when the cell is empty or not a number
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
        return amount if amount.is_finite() else None

    text = str(value).strip()
    if not text or text.lower() in ('nan', 'none', '-', 'n/a'):
        return None

    normalized = normalize_number_text(text, decimal_separator)
    if not NUMBER_PATTERN.match(normalized):
        logger.debug(f"Could not parse amount '{text}' (normalized '{normalized}')")
        return None
    try:
        return Decimal(normalized)
    except InvalidOperation:
        logger.debug(f"Invalid amount '{text}'")
        return None


def parse_quantity(value) -> Optional[int]:
    """
    Parse a quantity cell ("2", "2,0", "2.00 pcs") into a non-negative int

    Returns:
        Integer quantity, or None when the cell holds no number
    """
    if value is None:
        return None
    if isinstance(value, int):
        return max(value, 0)
    text = re.sub(r'(?i)(stuks|pcs\.?|pc|st\.?|units?|x)', '', str(value)).strip()
    amount = parse_money(text, DECIMAL_AUTO)
    if amount is None:
        return None
    return max(int(amount), 0)
