"""
Core export pipeline for PER CAN logs.

Log files are decoded and concatenated in file name order, split into
sessions wherever the timestamps jump, and every session is written out as
its own time-binned table.
"""

import logging
import os
from typing import Iterable, List, Optional

from .config import ExportConfig, MAX_JUMP_MS
from .dbc import BusDatabase
from .parser import LogFile, ParsedMessage
from .table import ColumnIndex, TableBuilder
from .utils import has_extension


def list_log_files(input_dir: str, extension: str) -> List[str]:
    """Log files directly inside input_dir, sorted by full path."""
    file_paths = []
    for entry in os.listdir(input_dir):
        path = os.path.join(input_dir, entry)
        if os.path.isfile(path) and has_extension(path, extension):
            file_paths.append(path)
    file_paths.sort()
    return file_paths


def parse_log_files(input_dir: str, database: BusDatabase, extension: str = '.log',
                    logger=None) -> List[ParsedMessage]:
    """
    Decode every log file in a directory.

    Files are processed in sorted path order and their messages concatenated
    in that order. No reordering by timestamp happens across files.
    """
    if not logger:
        logger = logging.getLogger(__name__)

    all_parsed = []
    for path in list_log_files(input_dir, extension):
        logger.info('Parsing log file: %s', path)
        log_file = LogFile(path, logger=logger)
        if log_file.trailing_bytes():
            logger.debug('%s: ignoring %d trailing bytes', path, log_file.trailing_bytes())
        all_parsed.extend(log_file.parse(database))

    return all_parsed


def chunk_parsed(parsed: Iterable[ParsedMessage], max_jump_ms: int = MAX_JUMP_MS) -> List[List[ParsedMessage]]:
    """Split messages into sessions at timestamp regressions or gaps over max_jump_ms."""
    chunks = []
    current_chunk = []
    last_timestamp = None

    for msg in parsed:
        if (last_timestamp is not None and current_chunk
                and (msg.timestamp < last_timestamp or msg.timestamp - last_timestamp > max_jump_ms)):
            chunks.append(current_chunk)
            current_chunk = []
        last_timestamp = msg.timestamp
        current_chunk.append(msg)

    if current_chunk:
        chunks.append(current_chunk)

    # list.sort is stable, so equal timestamps keep their log order
    for chunk in chunks:
        chunk.sort(key=lambda m: m.timestamp)

    return chunks


def export_logs(dbc_file: str, input_dir: str, output_dir: str,
                config: Optional[ExportConfig] = None, logger=None) -> List[str]:
    """
    Export all logs in input_dir as one table per session.

    Args:
        dbc_file: Path to the bus database (.dbc)
        input_dir: Directory holding the binary log files
        output_dir: Directory for the tables (created if missing)
        config: Export settings (defaults if None)
        logger: Logger instance

    Returns:
        Paths of the written tables, in session order
    """
    if not config:
        config = ExportConfig()
    if not logger:
        logger = logging.getLogger(__name__)

    database = BusDatabase.load_file(dbc_file)
    column_index = ColumnIndex.from_database(database)
    logger.info('Column index: %d signals', len(column_index))

    parsed = parse_log_files(input_dir, database, extension=config.log_extension, logger=logger)
    logger.info('Decoded %d messages', len(parsed))

    chunks = chunk_parsed(parsed, max_jump_ms=config.max_jump_ms)
    logger.info('Found %d session(s)', len(chunks))

    builder = TableBuilder(column_index, config=config, logger=logger)
    return builder.write_tables(chunks, output_dir)
