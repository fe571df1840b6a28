#!/usr/bin/env python3
"""
Logger setup for the product import engine
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO


def setup_logger(log_level: str = 'INFO', log_dir: Optional[Path] = None,
                 stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Setup logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (defaults to 'logs/')
        stream: Console stream (defaults to stdout; the CLI passes stderr so
                JSON on stdout stays clean)

    Returns:
        Configured logger instance
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_dir = Path(log_dir) if log_dir else Path('logs')

    # Create log directory
    log_dir.mkdir(parents=True, exist_ok=True)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_dir / 'product_import.log', encoding='utf-8'),
            logging.StreamHandler(stream or sys.stdout)
        ]
    )

    return logging.getLogger('product_import')
