#!/usr/bin/env python3
"""
Source Reader - Turn raw vendor files into ordered rows of cells

CSV text goes through the csv module with the vendor's dialect; spreadsheet
exports are read with pandas into the same shape so both take the identical
adapter path afterwards.
"""

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .errors import EmptyOrInvalidSource

logger = logging.getLogger(__name__)

Rows = List[List[str]]

FALLBACK_ENCODINGS = ('utf-8-sig', 'cp1252')
WORKBOOK_SUFFIXES = ('.xlsx', '.xls', '.xlsm')


@dataclass(frozen=True)
class Dialect:
    """Delimiter, quote character and whether quoted fields may span lines."""
    delimiter: str = ','
    quotechar: str = '"'
    multiline: bool = True

    @classmethod
    def from_rules(cls, rules: Optional[Dict[str, Any]]) -> 'Dialect':
        rules = rules or {}
        return cls(
            delimiter=str(rules.get('delimiter', ',')),
            quotechar=str(rules.get('quotechar', '"')),
            multiline=bool(rules.get('multiline', True)),
        )


def _clean_row(row: Sequence[Any]) -> List[str]:
    return [str(cell).replace('\u00A0', ' ').strip() for cell in row]


def _is_empty(row: Sequence[str]) -> bool:
    return all(not cell for cell in row)


def read(raw_text: str, dialect: Dialect = Dialect()) -> Rows:
    """
    Split delimited text into rows of stripped cells

    Escaped quotes ("") collapse to one quote and quoted fields may hold the
    delimiter. With dialect.multiline a quoted field continues across line
    breaks; otherwise every physical line is its own row. Entirely empty rows
    are dropped.

    Args:
        raw_text: Decoded file content
        dialect: Delimiter/quote settings for this vendor format

    Returns:
        List of rows (each a list of strings)
    """
    if raw_text is None:
        return []
    text = raw_text.lstrip('\ufeff')

    reader_args = dict(delimiter=dialect.delimiter, quotechar=dialect.quotechar,
                       doublequote=True, skipinitialspace=False, strict=False)
    rows: Rows = []
    if dialect.multiline:
        for row in csv.reader(io.StringIO(text, newline=''), **reader_args):
            rows.append(_clean_row(row))
    else:
        for line in text.splitlines():
            for row in csv.reader([line], **reader_args):
                rows.append(_clean_row(row))

    rows = [row for row in rows if row and not _is_empty(row)]
    logger.debug(f"Read {len(rows)} rows (delimiter={dialect.delimiter!r})")
    return rows


def require_rows(rows: Rows, vendor: Optional[str] = None) -> Rows:
    """Raise EmptyOrInvalidSource unless there is a header plus at least one data row"""
    if len(rows) < 2:
        raise EmptyOrInvalidSource(
            f"Source has {len(rows)} non-empty row(s); a header and at least one data row are required",
            vendor,
        )
    return rows


def sniff_dialect(raw_text: str, lines: int = 5) -> Dialect:
    """Pick ';' or ',' from the first lines of a file whose vendor is not known yet"""
    head = (raw_text or '').lstrip('\ufeff').splitlines()[:lines]
    semicolons = sum(line.count(';') for line in head)
    commas = sum(line.count(',') for line in head)
    return Dialect(delimiter=';' if semicolons > commas else ',')


def decode_bytes(data: bytes) -> str:
    """Decode file bytes as UTF-8 (BOM tolerated), falling back to cp1252"""
    for encoding in FALLBACK_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            logger.debug(f"Could not decode as {encoding}, trying next encoding")
    # cp1252 leaves a few bytes undefined
    return data.decode('latin-1')


def read_file(path: Path, dialect: Dialect = Dialect()) -> Rows:
    """
    Read a CSV file or spreadsheet export from disk

    Args:
        path: File path (.csv/.txt or .xlsx/.xls)
        dialect: Dialect used for delimited text

    Returns:
        List of rows
    """
    path = Path(path)
    if path.suffix.lower() in WORKBOOK_SUFFIXES:
        return read_workbook(path)
    with open(path, 'rb') as f:
        text = decode_bytes(f.read())
    rows = read(text, dialect)
    logger.info(f"Read {len(rows)} rows from {path.name}")
    return rows


def read_workbook(path: Path, sheet_name: Any = 0) -> Rows:
    """
    Read the first sheet of a spreadsheet into rows of strings

    No header inference happens here; the layout applier locates the header
    the same way it does for CSV text.
    """
    path = Path(path)
    df = pd.read_excel(path, sheet_name=sheet_name, header=None, dtype=str)
    df = df.fillna('')
    rows = [_clean_row(values) for values in df.values.tolist()]
    rows = [row for row in rows if not _is_empty(row)]
    logger.info(f"Read {len(rows)} rows from workbook {path.name}")
    return rows
