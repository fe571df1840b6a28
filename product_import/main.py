#!/usr/bin/env python3
"""
Command line entry point: import one vendor file (plus companion files)

Examples:
    product-import order.csv --vendor ao76 --output out/ao76.json
    product-import order.csv --vendor thenewsociety --kind order \\
        --secondary confirmation.csv --secondary-kind confirmation
    product-import lenewblack.csv --price-list prices.csv --output review.xlsx
    product-import floss_invoice.json --vendor floss
"""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .errors import IngestionError, UnknownVendor
from .logger import setup_logger
from .pipeline import ImportPipeline, ImportResult
from .price_lists import PriceBook, invoice_prices, load_price_list, load_tarif
from .rule_loader import RuleLoader
from .source_reader import WORKBOOK_SUFFIXES, Rows, decode_bytes, read, read_workbook, sniff_dialect
from .upload_transform import prepare_for_upload, write_review_file

logger = logging.getLogger(__name__)

EXIT_FATAL = 2


def _read_companion(path: Path) -> Rows:
    """Rows of a price list / TARIF file whose delimiter is not declared anywhere"""
    path = Path(path)
    if path.suffix.lower() in WORKBOOK_SUFFIXES:
        return read_workbook(path)
    with open(path, 'rb') as f:
        text = decode_bytes(f.read())
    return read(text, sniff_dialect(text))


def _load_json(path: Path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def _pdf_rows(path: Path) -> List[dict]:
    """PDF extractor output: a list of row dicts, or {"rows": [...]}"""
    data = _load_json(path)
    if isinstance(data, dict):
        data = data.get('rows') or data.get('products') or []
    return list(data)


def _run_one(pipeline: ImportPipeline, path: Path, vendor: Optional[str], kind: Optional[str],
             book: PriceBook) -> ImportResult:
    if path.suffix.lower() == '.json':
        if not vendor:
            raise UnknownVendor(f"--vendor is required for PDF row input ({path.name})")
        return pipeline.run_pdf_rows(_pdf_rows(path), vendor, kind, book)
    return pipeline.run_file(path, vendor, kind, book)


def _write_output(pipeline: ImportPipeline, result: ImportResult, output: Optional[Path]) -> None:
    if output is None:
        sys.stdout.write(result.to_json() + '\n')
        return
    suffix = output.suffix.lower()
    if suffix not in config.OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output type '{suffix}' (use {', '.join(config.OUTPUT_FORMATS)})")
    if suffix == '.json':
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.to_json() + '\n', encoding='utf-8')
        logger.info(f"Wrote {len(result.products)} products to {output}")
    else:
        write_review_file(prepare_for_upload(result.products, pipeline.size_normalizer), output)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for product-import"""
    import argparse

    parser = argparse.ArgumentParser(
        description='Import a vendor order/invoice/catalog file into canonical products',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('input', type=str, help='Vendor file (.csv, .txt, .xlsx) or PDF rows (.json)')
    parser.add_argument('--vendor', type=str, default=None,
                        help='Vendor code (default: detected from filename or header)')
    parser.add_argument('--kind', type=str, default=None,
                        help='Format kind, e.g. order / confirmation / prices (default: detected)')
    parser.add_argument('--price-list', type=str, default=None, help='Price list file (SKU/EAN -> cost)')
    parser.add_argument('--tarif', type=str, default=None, help='TARIF file (EAN -> retail price)')
    parser.add_argument('--invoice', type=str, default=None, help='PDF invoice rows (.json) for cost lookup')
    parser.add_argument('--secondary', type=str, default=None, help='Companion file to reconcile with the input')
    parser.add_argument('--secondary-kind', type=str, default=None,
                        help="Format kind of the companion file (default: the vendor's reconcile rule)")
    parser.add_argument('--brands', type=str, default=None, help='Text file with one known brand per line')
    parser.add_argument('--categories', type=str, default=None,
                        help='JSON file with catalog categories [{id, name, display_name}]')
    parser.add_argument('--output', type=str, default=None,
                        help='Output file (.json, .csv or .xlsx; default: JSON on stdout)')
    parser.add_argument('--rules-dir', type=str, default=None,
                        help='Directory containing rule YAML files (default: packaged rules)')
    parser.add_argument('--log-level', type=str, default=config.LOG_LEVEL, help='Logging level (default: INFO)')

    args = parser.parse_args(argv)
    setup_logger(log_level=args.log_level, log_dir=config.LOG_DIR, stream=sys.stderr)

    try:
        brands = []
        if args.brands:
            brands = [line.strip() for line in Path(args.brands).read_text(encoding='utf-8').splitlines() if line.strip()]
        vocabulary = _load_json(Path(args.categories)) if args.categories else []

        rule_loader = RuleLoader(Path(args.rules_dir)) if args.rules_dir else RuleLoader()
        pipeline = ImportPipeline(rule_loader, brands=brands, category_vocabulary=vocabulary)

        book = PriceBook()
        if args.price_list:
            book.price_list = load_price_list(_read_companion(Path(args.price_list)))
        if args.tarif:
            book.tarif = load_tarif(_read_companion(Path(args.tarif)))
        if args.invoice:
            book.invoice = invoice_prices(_pdf_rows(Path(args.invoice)))

        input_path = Path(args.input)
        logger.info(f"Input file: {input_path}")
        result = _run_one(pipeline, input_path, args.vendor, args.kind, book)

        if args.secondary:
            profile = pipeline.profile(result.vendor)
            secondary_kind = args.secondary_kind or (profile.reconcile.secondary if profile.reconcile else None)
            secondary = _run_one(pipeline, Path(args.secondary), result.vendor, secondary_kind, book)
            result = pipeline.reconcile(result, secondary)

        _write_output(pipeline, result, Path(args.output) if args.output else None)
    except IngestionError as e:
        logger.error(str(e))
        sys.stderr.write(f"Error: {e}\n")
        return EXIT_FATAL
    except (UnknownVendor, ValueError, OSError) as e:
        message = e.args[0] if e.args else str(e)
        logger.error(message)
        sys.stderr.write(f"Error: {message}\n")
        return EXIT_FATAL

    logger.info(f"Done: {len(result.products)} products, {len(result.warnings)} warnings, "
                f"{result.skipped_rows} rows skipped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
