"""PER Log Parser.

Exports binary CAN bus logs as time-binned, wide-format tables: one column
per DBC signal, one row per time bin, one file per logging session.
"""

from .config import ExportConfig
from .core import chunk_parsed, export_logs, parse_log_files
from .dbc import BusDatabase
from .table import ColumnIndex, TableBuilder

# Plotting is optional - SessionPlotter raises ImportError without pandas/plotly
from .plotting import SessionPlotter

__all__ = [
    "BusDatabase",
    "ColumnIndex",
    "ExportConfig",
    "SessionPlotter",
    "TableBuilder",
    "chunk_parsed",
    "export_logs",
    "parse_log_files",
]

__version__ = "0.2.0"
