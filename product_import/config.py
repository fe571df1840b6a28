#!/usr/bin/env python3
"""
Configuration for the Product Import engine
Edit these defaults or override them through environment variables
"""

import os
from pathlib import Path

# Rule files (vendor formats, size tables, category translations)
# Defaults to the rules/ folder shipped inside the package.
#
# Override with: export PRODUCT_IMPORT_RULES_DIR=/path/to/rules
PACKAGE_DIR = Path(__file__).parent
RULES_DIR = Path(os.environ.get('PRODUCT_IMPORT_RULES_DIR') or PACKAGE_DIR / 'rules')

# Logging
LOG_LEVEL = os.environ.get('PRODUCT_IMPORT_LOG_LEVEL', 'INFO')
LOG_DIR = Path(os.environ.get('PRODUCT_IMPORT_LOG_DIR', 'logs'))

# Rule hot-reload (checksum based). Only useful while editing YAML rules.
HOT_RELOAD = os.environ.get('PRODUCT_IMPORT_HOT_RELOAD', '0') == '1'

# Markup used for retail price when a vendor declares none
# When set, the environment value replaces shared.yaml's default_markup_factor.
#
# Override with: export PRODUCT_IMPORT_DEFAULT_MARKUP=2.4
MARKUP_FACTOR_OVERRIDE = os.environ.get('PRODUCT_IMPORT_DEFAULT_MARKUP') or None
DEFAULT_MARKUP_FACTOR = MARKUP_FACTOR_OVERRIDE or '2.5'

# Output formats accepted by the CLI
OUTPUT_FORMATS = ('.json', '.csv', '.xlsx')
