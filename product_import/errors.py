#!/usr/bin/env python3
"""
Errors and warnings raised while importing vendor files.

Fatal errors stop the pipeline for one file and carry enough context
(vendor, expected columns, found columns) for a human to fix the source.
Non-fatal conditions are collected as PipelineWarning records in a
WarningLog and returned next to the best-effort product list.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Base class for errors that abort the import of one file."""

    def __init__(self, message: str, vendor: Optional[str] = None):
        self.message = message
        self.vendor = vendor
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.vendor:
            return f"[{self.vendor}] {self.message}"
        return self.message


class EmptyOrInvalidSource(IngestionError):
    """The source holds no header plus data rows."""
    pass


class UnrecognizedFormat(IngestionError):
    """No known format signature matched the first rows of the file."""

    def __init__(self, vendor: Optional[str], found_columns: Sequence[str] = (),
                 expected_signatures: Optional[Dict[str, List[str]]] = None):
        self.found_columns = list(found_columns)
        self.expected_signatures = dict(expected_signatures or {})
        expected = '; '.join(f"{kind}: {', '.join(tokens)}" for kind, tokens in self.expected_signatures.items())
        message = "Unrecognized file format"
        if expected:
            message += f" (expected one of: {expected})"
        if self.found_columns:
            message += f" (first row: {', '.join(self.found_columns)})"
        super().__init__(message, vendor)


class MissingRequiredColumns(IngestionError):
    """One or more required columns are absent from the header row."""

    def __init__(self, vendor: Optional[str], columns: Dict[str, List[str]], found_columns: Sequence[str] = ()):
        # columns: logical field -> accepted aliases
        self.columns = dict(columns)
        self.found_columns = list(found_columns)
        missing = ', '.join(f"{name} ({' / '.join(aliases)})" for name, aliases in self.columns.items())
        found = ', '.join(self.found_columns) or '-'
        super().__init__(f"Missing required columns: {missing}. Found columns: {found}", vendor)

    @property
    def expected_columns(self) -> List[str]:
        return list(self.columns.keys())


class UnknownVendor(KeyError):
    """Vendor code or format kind is not declared in the rules."""
    pass


class WarningCode(str, Enum):
    ROW_SKIPPED = 'row_skipped'
    NO_PRICE_SOURCE = 'no_price_source'
    NO_CATEGORY_MATCH = 'no_category_match'
    RECONCILIATION_NO_MATCH = 'reconciliation_no_match'


@dataclass
class PipelineWarning:
    code: WarningCode
    message: str
    reference: Optional[str] = None
    count: int = 1
    samples: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code.value,
            'message': self.message,
            'reference': self.reference,
            'count': self.count,
            'samples': [dict(s) for s in self.samples],
        }


class WarningLog:
    """Collects non-fatal conditions for one pipeline run."""

    def __init__(self, sample_limit: int = 5):
        self.sample_limit = sample_limit
        self._warnings: List[PipelineWarning] = []
        self._skipped: Dict[str, PipelineWarning] = {}

    def add(self, code: WarningCode, message: str, reference: Optional[str] = None) -> PipelineWarning:
        warning = PipelineWarning(code=code, message=message, reference=reference)
        self._warnings.append(warning)
        logger.warning(message)
        return warning

    def row_skipped(self, row_number: int, reason: str, cells: Sequence[str] = ()) -> None:
        """Count a skipped row; rows with the same reason share one warning."""
        warning = self._skipped.get(reason)
        if warning is None:
            warning = PipelineWarning(code=WarningCode.ROW_SKIPPED, message=f"Rows skipped: {reason}", count=0)
            self._skipped[reason] = warning
            self._warnings.append(warning)
        warning.count += 1
        if len(warning.samples) < self.sample_limit:
            warning.samples.append({'row': row_number, 'cells': list(cells)})
        logger.debug(f"Skipping row {row_number}: {reason}")

    def extend(self, other: 'WarningLog') -> None:
        for warning in other.warnings:
            self._warnings.append(warning)

    @property
    def skipped_rows(self) -> int:
        return sum(w.count for w in self._warnings if w.code == WarningCode.ROW_SKIPPED)

    @property
    def warnings(self) -> List[PipelineWarning]:
        return list(self._warnings)

    def by_code(self, code: WarningCode) -> List[PipelineWarning]:
        return [w for w in self._warnings if w.code == code]

    def __len__(self) -> int:
        return len(self._warnings)
