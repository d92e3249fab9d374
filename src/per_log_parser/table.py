"""Wide-format, time-binned tables built from decoded sessions."""

import csv
import logging
import os
from types import MappingProxyType
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import ExportConfig
from .utils import format_bin_time, format_signal_value

BUS_LABEL = 'Main'
UNKNOWN_NODE_LABEL = 'N/A'
HEADER_LABELS = ('Bus', 'Node', 'Message', 'Signal')
HEADER_ROW_COUNT = len(HEADER_LABELS)


class ColumnIndex:
    """
    Maps (message name, signal name) to a column of the output grid.

    Column 0 holds the time, so signal columns start at 1. The four header
    rows run parallel to the grid columns. Instances are never mutated after
    construction and are shared by every table of a run.
    """

    def __init__(self, columns, header_rows: Sequence[Sequence[str]]):
        self._columns = MappingProxyType(dict(columns))
        self._header_rows = tuple(tuple(row) for row in header_rows)

    @classmethod
    def from_definitions(cls, definitions) -> 'ColumnIndex':
        """
        Build the index from message definitions.

        Messages are visited by ascending numeric id, signals in declared
        order. A (message, signal) pair gets a column the first time it is
        seen; later sightings are ignored.
        """
        columns = {}
        bus_row = [HEADER_LABELS[0]]
        node_row = [HEADER_LABELS[1]]
        message_row = [HEADER_LABELS[2]]
        signal_row = [HEADER_LABELS[3]]

        col_idx = 1
        for msg in sorted(definitions, key=lambda m: m.frame_id):
            node = msg.sender or UNKNOWN_NODE_LABEL
            for signal_name in msg.signal_names:
                key = (msg.name, signal_name)
                if key in columns:
                    continue
                columns[key] = col_idx
                col_idx += 1

                bus_row.append(BUS_LABEL)
                node_row.append(node)
                message_row.append(msg.name)
                signal_row.append(signal_name)

        return cls(columns, (bus_row, node_row, message_row, signal_row))

    @classmethod
    def from_database(cls, database) -> 'ColumnIndex':
        return cls.from_definitions(database.message_definitions())

    def __len__(self):
        return len(self._columns)

    def __contains__(self, key):
        return key in self._columns

    def get(self, message_name: str, signal_name: str) -> Optional[int]:
        return self._columns.get((message_name, signal_name))

    @property
    def width(self) -> int:
        """Cells per row, time column included."""
        return len(self._columns) + 1

    @property
    def header_rows(self) -> Tuple[Tuple[str, ...], ...]:
        return self._header_rows

    def keys(self):
        return self._columns.keys()


def bin_bounds(first_ts: int, last_ts: int, bin_width_ms: int) -> Tuple[int, int, int]:
    """Return (aligned start, aligned end, row count) for a time span."""
    first_row_time = (first_ts // bin_width_ms) * bin_width_ms
    last_row_time = -(-last_ts // bin_width_ms) * bin_width_ms
    num_rows = (last_row_time - first_row_time) // bin_width_ms + 1
    return first_row_time, last_row_time, num_rows


class TableBuilder:
    """Turns session chunks into tables sharing one ColumnIndex."""

    def __init__(self, column_index: ColumnIndex, config: Optional[ExportConfig] = None, logger=None):
        self.column_index = column_index
        self.config = config or ExportConfig()
        self.logger = logger or logging.getLogger(__name__)

    def build_table(self, chunk) -> List[List[str]]:
        """Grid for one time-sorted chunk: header rows followed by one row per bin."""
        bin_width = self.config.bin_width_ms
        table = [list(row) for row in self.column_index.header_rows]
        if not chunk:
            return table

        first_row_time, _, num_rows = bin_bounds(chunk[0].timestamp, chunk[-1].timestamp, bin_width)

        width = self.column_index.width
        for row_idx in range(num_rows):
            row = [''] * width
            row[0] = format_bin_time(first_row_time + row_idx * bin_width)
            table.append(row)

        for msg in chunk:
            if msg.decoded is None:
                continue
            row = table[HEADER_ROW_COUNT + (msg.timestamp - first_row_time) // bin_width]
            for signal_name, value in msg.decoded.signals.items():
                col_idx = self.column_index.get(msg.decoded.name, signal_name)
                if col_idx is None:
                    self.logger.debug('No column for %s.%s', msg.decoded.name, signal_name)
                    continue
                row[col_idx] = format_signal_value(value)

        return table

    def write_table(self, table: Iterable[Sequence[str]], output_file: str):
        with open(output_file, 'w', encoding='utf-8', newline='') as output:
            writer = csv.writer(output, delimiter=self.config.delimiter, lineterminator='\n')
            writer.writerows(table)

    def write_tables(self, chunks, output_dir: str) -> List[str]:
        """Write one table per chunk; returns the output paths."""
        os.makedirs(output_dir, exist_ok=True)

        written = []
        for chunk_idx, chunk in enumerate(chunks):
            output_file = os.path.join(output_dir, self.config.output_name(chunk_idx))
            self.write_table(self.build_table(chunk), output_file)
            self.logger.info('Wrote chunk %d to %s', chunk_idx, output_file)
            written.append(output_file)
        return written
