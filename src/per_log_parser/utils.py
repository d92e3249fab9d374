"""Utility functions for PER log parsing."""

import logging
import os
from decimal import Decimal
from typing import List, Union


LOG_FORMAT = '%(asctime)s [%(name)s] [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Map verbosity levels to logging levels
VERBOSITY_LEVELS = {
    0: logging.ERROR,    # Quiet - only errors
    1: logging.INFO,     # Normal - info and above
    2: logging.DEBUG,    # Verbose - debug and above
}


def display_bytes_hex(x: Union[List[int], bytearray, bytes, str]) -> str:
    """Display bytes as hex string."""
    if isinstance(x, str):
        x = x.encode('utf-8')
    if isinstance(x, (bytes, bytearray)):
        x = list(x)
    return ' '.join(f'{b:02X}' for b in x)


def format_signal_value(value) -> str:
    """Render a decoded signal value for a table cell.

    Integral floats drop their fractional part so that ``12.0`` is written
    as ``12``, matching how integer signals are rendered.
    """
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        text = repr(value)
        if 'e' in text:
            # positional notation, same digits
            text = format(Decimal(text), 'f')
        return text
    return str(value)


def format_bin_time(bin_start_ms: int) -> str:
    """Format a bin start in milliseconds as seconds with three decimals."""
    return f'{bin_start_ms / 1000:.3f}'


def has_extension(file_path: str, extension: str) -> bool:
    """Check if a file path carries the given extension (case sensitive)."""
    if not extension.startswith('.'):
        extension = '.' + extension
    return os.path.splitext(file_path)[1] == extension


def setup_logging(verbosity_level: int) -> logging.Logger:
    """Setup logging configuration based on verbosity level.

    Args:
        verbosity_level: 0=quiet, 1=normal, 2 and above=verbose
    """
    level = VERBOSITY_LEVELS.get(min(verbosity_level, 2), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )
    logger = logging.getLogger('per_log_parser')
    logger.setLevel(level)
    return logger
