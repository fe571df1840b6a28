#!/usr/bin/env python3
"""
Vendor Detection - Route an upload to the right vendor format
Detects the format from header signature tokens in the first rows of the
file, and the vendor from filename patterns declared in vendors.yaml
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import UnrecognizedFormat
from .vendor_profiles import FormatProfile, VendorProfile, load_vendor_profiles

logger = logging.getLogger(__name__)


def norm_header_text(headers: Iterable) -> List[str]:
    """Normalize header cells for comparison: no BOM/quotes, collapsed spaces, lower case"""
    out: List[str] = []
    for h in headers or []:
        s = str(h).replace("\ufeff", "").replace("\u00A0", " ").strip().strip('"').strip("'")
        s = " ".join(s.split()).lower()
        out.append(s)
    return out


def signature_score(cells: Sequence[str], fmt: FormatProfile) -> int:
    """Number of tokens of the longest signature fully present in cells (0 = no match)"""
    present = set(cells)
    best = 0
    for signature in fmt.signatures:
        if signature and all(token in present for token in signature):
            best = max(best, len(signature))
    return best


class VendorDetector:
    """Detect vendor and format using signatures and filename patterns from vendors.yaml"""

    def __init__(self, rule_loader, profiles: Optional[Dict[str, VendorProfile]] = None):
        """
        Initialize vendor detector

        Args:
            rule_loader: RuleLoader instance
            profiles: Pre-built vendor profiles (built from rule_loader when omitted)
        """
        self.rule_loader = rule_loader
        self.profiles = profiles if profiles is not None else load_vendor_profiles(rule_loader)
        self.scan_rows = rule_loader.get_detection_scan_rows()

    def _scan(self, rows: Sequence[Sequence[str]], formats: List[FormatProfile]) -> Optional[Tuple[FormatProfile, int]]:
        best: Optional[Tuple[FormatProfile, int]] = None
        best_score = 0
        for index, row in enumerate(rows[:self.scan_rows]):
            cells = norm_header_text(row)
            for fmt in formats:
                score = signature_score(cells, fmt)
                # Strictly greater: earlier rows and earlier-declared formats win ties
                if score > best_score:
                    best, best_score = (fmt, index), score
        return best

    def detect_format(self, rows: Sequence[Sequence[str]], profile: VendorProfile) -> Tuple[FormatProfile, Optional[int]]:
        """
        Pick the format of a vendor that matches the file

        A vendor with a single CSV format needs no signature; its header is
        located later by the layout applier. With several formats the first
        rows must carry one format's signature tokens.

        Args:
            rows: Rows from the source reader
            profile: Vendor profile

        Returns:
            Tuple of (format_profile, header_row_index or None)

        Raises:
            UnrecognizedFormat: no signature matched within the scanned rows
        """
        formats = profile.csv_formats()
        if len(formats) == 1:
            fmt = formats[0]
            match = self._scan(rows, formats) if fmt.signatures else None
            return fmt, (match[1] if match else None)

        match = self._scan(rows, formats)
        if match:
            fmt, index = match
            logger.info(f"Detected {profile.code} format '{fmt.kind}' (header at row {index + 1})")
            return fmt, index

        expected = {f.kind: [' + '.join(sig) for sig in f.signatures] for f in formats}
        found = rows[0] if rows else []
        raise UnrecognizedFormat(profile.code, found, expected)

    def detect_vendor_from_rows(self, rows: Sequence[Sequence[str]]) -> Tuple[VendorProfile, FormatProfile, int]:
        """
        Detect vendor and format from signature tokens alone

        Raises:
            UnrecognizedFormat: no vendor format signature matched
        """
        best = None
        best_score = 0
        for index, row in enumerate(rows[:self.scan_rows]):
            cells = norm_header_text(row)
            for profile in self.profiles.values():
                for fmt in profile.csv_formats():
                    score = signature_score(cells, fmt)
                    if score > best_score:
                        best, best_score = (profile, fmt, index), score
        if best is None:
            expected = {
                f"{p.code}/{f.kind}": [' + '.join(sig) for sig in f.signatures]
                for p in self.profiles.values() for f in p.csv_formats() if f.signatures
            }
            raise UnrecognizedFormat(None, rows[0] if rows else [], expected)
        profile, fmt, index = best
        logger.info(f"Detected vendor {profile.code} format '{fmt.kind}' from header at row {index + 1}")
        return best

    def detect_vendor_from_filename(self, file_path: Path) -> Optional[str]:
        """
        Detect vendor code from filename patterns

        Args:
            file_path: Path or name of the uploaded file

        Returns:
            Vendor code, or None when no pattern matches
        """
        filename_lower = Path(file_path).name.lower()
        # Longest pattern first so "le new black" beats a shorter overlapping pattern
        candidates = [
            (pattern, profile.code)
            for profile in self.profiles.values()
            for pattern in profile.filename_patterns
        ]
        for pattern, code in sorted(candidates, key=lambda c: -len(c[0])):
            if pattern in filename_lower:
                logger.debug(f"Detected vendor from filename: {code} ('{pattern}')")
                return code
        logger.debug(f"Could not detect vendor for {filename_lower}")
        return None
