#!/usr/bin/env python3
"""
Rule Loader - Load YAML rules from the rules directory
Merges shared.yaml defaults under every vendor format declared in vendors.yaml
"""

import yaml
import logging
import hashlib
from pathlib import Path
from typing import Dict, Any, Optional, List

from .errors import UnknownVendor

logger = logging.getLogger(__name__)


class RuleLoader:
    """Load and parse YAML rules, merging shared.yaml with vendor-specific rules"""

    def __init__(self, rules_dir: Optional[Path] = None, enable_hot_reload: Optional[bool] = None):
        """
        Initialize rule loader with rules directory

        Args:
            rules_dir: Path to the rules directory (default: config.RULES_DIR)
            enable_hot_reload: Enable checksum-based hot-reload (default: config.HOT_RELOAD)
                              Set to True only while editing rule files
        """
        from . import config

        self.rules_dir = Path(rules_dir) if rules_dir else config.RULES_DIR
        if enable_hot_reload is None:
            enable_hot_reload = config.HOT_RELOAD
        self._rules_cache = {}
        self._file_checksums = {} if enable_hot_reload else None  # Only track when enabled
        self._enable_hot_reload = enable_hot_reload

    def _calculate_file_checksum(self, file_path: Path) -> str:
        """Calculate MD5 checksum for a file"""
        try:
            with open(file_path, 'rb') as f:
                return hashlib.md5(f.read()).hexdigest()
        except OSError as e:
            logger.warning(f"Error calculating checksum for {file_path}: {e}")
            return ''

    def _should_reload_file(self, filename: str, rule_file: Path) -> bool:
        """Check if a rule file should be reloaded based on checksum"""
        # Fast path: when hot-reload is disabled, only check cache
        if not self._enable_hot_reload:
            return filename not in self._rules_cache

        if not rule_file.exists():
            return False

        current_checksum = self._calculate_file_checksum(rule_file)
        cached_checksum = self._file_checksums.get(filename)

        if current_checksum != cached_checksum:
            if cached_checksum:
                logger.debug(f"Rule file {filename} modified, reloading...")
            return True

        return False

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a YAML file directly"""
        with open(file_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _merge_rules(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries
        override takes precedence over base
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_rules(result[key], value)
            else:
                result[key] = value

        return result

    def load_rule_file_by_name(self, filename: str) -> Dict[str, Any]:
        """
        Load a specific rule file by filename (e.g., 'sizes.yaml')

        Args:
            filename: Rule file name

        Returns:
            Rule dictionary or empty dict if not found
        """
        rule_file = self.rules_dir / filename

        if not rule_file.exists():
            logger.warning(f"Rule file not found: {rule_file}")
            return {}

        if self._should_reload_file(filename, rule_file):
            self._rules_cache[filename] = self._load_yaml_file(rule_file)
            if self._enable_hot_reload:
                self._file_checksums[filename] = self._calculate_file_checksum(rule_file)
            logger.debug(f"Loaded rule file: {filename}")
        return self._rules_cache.get(filename, {})

    def get_shared_rules(self) -> Dict[str, Any]:
        """Get shared.yaml defaults"""
        return self.load_rule_file_by_name('shared.yaml')

    def get_vendors(self) -> Dict[str, Any]:
        """Get the raw vendors mapping from vendors.yaml"""
        return self.load_rule_file_by_name('vendors.yaml').get('vendors', {})

    def list_vendors(self) -> List[str]:
        """Vendor codes in declaration order"""
        return list(self.get_vendors().keys())

    def get_vendor_rules(self, vendor_code: str) -> Dict[str, Any]:
        """
        Get one vendor's rules with shared defaults merged under each format

        Args:
            vendor_code: Vendor code (e.g., 'ao76', 'thenewsociety'), case-insensitive

        Returns:
            Vendor rules dictionary; every entry of 'formats' carries the shared
            'format_defaults' and the vendor-level 'defaults'

        Raises:
            UnknownVendor: vendor code is not declared
        """
        vendors = self.get_vendors()
        code = (vendor_code or '').strip().lower()
        vendor = None
        for key, value in vendors.items():
            if key.lower() == code:
                vendor = value or {}
                code = key
                break
        if vendor is None:
            raise UnknownVendor(f"Unknown vendor '{vendor_code}'. Known vendors: {', '.join(vendors.keys())}")

        shared = self.get_shared_rules()
        format_defaults = self._merge_rules(shared.get('format_defaults', {}), vendor.get('defaults', {}))

        merged = dict(vendor)
        merged['code'] = code
        merged['formats'] = {
            kind: self._merge_rules(format_defaults, fmt or {})
            for kind, fmt in (vendor.get('formats') or {}).items()
        }
        return merged

    def get_size_rules(self) -> Dict[str, Any]:
        """Get size vocabulary rules from sizes.yaml"""
        return self.load_rule_file_by_name('sizes.yaml')

    def get_category_rules(self) -> Dict[str, Any]:
        """Get category translation rules from categories.yaml"""
        return self.load_rule_file_by_name('categories.yaml')

    def get_detection_scan_rows(self) -> int:
        return int(self.get_shared_rules().get('detection_scan_rows', 50))

    def get_default_markup_factor(self) -> str:
        """Fallback markup: PRODUCT_IMPORT_DEFAULT_MARKUP, then shared.yaml, then 2.5"""
        from . import config

        if config.MARKUP_FACTOR_OVERRIDE:
            return str(config.MARKUP_FACTOR_OVERRIDE)
        return str(self.get_shared_rules().get('default_markup_factor', config.DEFAULT_MARKUP_FACTOR))

    def get_skipped_row_sample_limit(self) -> int:
        return int(self.get_shared_rules().get('skipped_row_sample_limit', 5))

    def clear_cache(self):
        """Clear the rules cache"""
        logger.debug("Clearing rules cache")
        self._rules_cache.clear()
        if self._file_checksums is not None:
            self._file_checksums.clear()
