"""Tests for the column index and the table materializer."""

import csv
import os

import pytest

from per_log_parser.config import ExportConfig
from per_log_parser.dbc import DecodedMessage, MessageDefinition
from per_log_parser.parser import ParsedMessage
from per_log_parser.table import ColumnIndex, TableBuilder, bin_bounds


DEFINITIONS = [
    MessageDefinition(0x300, 'Brakes', 'ABS', ['Front', 'Rear'], False),
    MessageDefinition(0x18FF0001, 'Extended', None, ['Value'], True),
    MessageDefinition(0x100, 'Engine', 'ECU', ['Rpm', 'Temp', 'Rpm'], False),
]


@pytest.fixture
def column_index():
    return ColumnIndex.from_definitions(DEFINITIONS)


def sample(ts, name, **signals):
    return ParsedMessage(ts, DecodedMessage(name, signals))


def data_rows(table):
    return table[4:]


def test_columns_follow_id_then_declared_order(column_index):
    assert column_index.get('Engine', 'Rpm') == 1
    assert column_index.get('Engine', 'Temp') == 2
    assert column_index.get('Brakes', 'Front') == 3
    assert column_index.get('Brakes', 'Rear') == 4
    assert column_index.get('Extended', 'Value') == 5
    assert len(column_index) == 5
    assert column_index.width == 6


def test_header_rows(column_index):
    bus, node, message, signal = column_index.header_rows
    assert bus == ('Bus', 'Main', 'Main', 'Main', 'Main', 'Main')
    assert node == ('Node', 'ECU', 'ECU', 'ABS', 'ABS', 'N/A')
    assert message == ('Message', 'Engine', 'Engine', 'Brakes', 'Brakes', 'Extended')
    assert signal == ('Signal', 'Rpm', 'Temp', 'Front', 'Rear', 'Value')


def test_duplicate_pair_gets_one_column(column_index):
    assert list(column_index.header_rows[3]).count('Rpm') == 1


def test_column_index_is_deterministic():
    first = ColumnIndex.from_definitions(DEFINITIONS)
    second = ColumnIndex.from_definitions(list(reversed(DEFINITIONS)))
    assert [(k, first.get(*k)) for k in first.keys()] == [(k, second.get(*k)) for k in second.keys()]
    assert first.header_rows == second.header_rows


def test_column_index_is_read_only(column_index):
    with pytest.raises(TypeError):
        column_index._columns[('Engine', 'Oil')] = 9


def test_column_index_from_database(database):
    index = ColumnIndex.from_database(database)
    assert index.get('Heartbeat', 'Counter') == 1
    assert index.get('BMS_Pack', 'PackCurrent') == 5
    assert ('VCU_Status', 'Gear') in index


def test_bin_bounds():
    assert bin_bounds(120, 340, 100) == (100, 400, 4)
    assert bin_bounds(100, 100, 100) == (100, 100, 1)
    assert bin_bounds(0, 99, 10) == (0, 100, 11)


def test_row_count_and_time_labels(column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=100))
    table = builder.build_table([sample(120, 'Engine', Rpm=900), sample(340, 'Engine', Rpm=950)])

    assert len(table) == 4 + 4
    assert [row[0] for row in data_rows(table)] == ['0.100', '0.200', '0.300', '0.400']
    assert all(len(row) == column_index.width for row in table)
    assert data_rows(table)[0][1] == '900'
    assert data_rows(table)[2][1] == '950'


def test_last_write_wins(column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=100))
    table = builder.build_table([
        sample(110, 'Engine', Rpm=1000, Temp=80.5),
        sample(150, 'Engine', Rpm=2000),
        sample(199, 'Engine', Rpm=3000),
    ])

    row, = data_rows(table)[:1]
    assert row[1] == '3000'
    assert row[2] == '80.5'


def test_unknown_signal_is_skipped(column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    table = builder.build_table([sample(0, 'Engine', Rpm=1, Boost=7), sample(5, 'Mystery', X=1)])
    assert data_rows(table) == [['0.000', '1', '', '', '', ''], ['0.010', '', '', '', '', '']]


def test_failed_decodes_do_not_contribute(column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    table = builder.build_table([ParsedMessage(0, None), sample(20, 'Brakes', Front=1.0)])
    assert [row[3] for row in data_rows(table)] == ['', '', '1']


def test_every_cell_maps_to_one_sample(column_index):
    chunk = [sample(ts, 'Brakes', Front=ts, Rear=-ts) for ts in range(0, 500, 7)]
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=50))
    table = builder.build_table(chunk)

    filled = {}
    for row in data_rows(table):
        for col, cell in enumerate(row[1:], start=1):
            if cell:
                filled[(row[0], col)] = cell

    # one winner per bin and column, taken from the latest sample in that bin
    expected = {}
    for msg in chunk:
        label = f'{(msg.timestamp // 50) * 50 / 1000:.3f}'
        expected[(label, 3)] = str(msg.decoded.signals['Front'])
        expected[(label, 4)] = str(msg.decoded.signals['Rear'])
    assert filled == expected


def test_value_rendering(column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    table = builder.build_table([sample(0, 'Engine', Rpm=12.0, Temp=0.1)])
    assert data_rows(table)[0][1:3] == ['12', '0.1']


def test_empty_chunk_has_only_headers(column_index):
    assert TableBuilder(column_index).build_table([]) == [list(r) for r in column_index.header_rows]


def test_write_tables(tmp_path, column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    chunks = [[sample(0, 'Engine', Rpm=1)], [sample(5000, 'Brakes', Front='a,b')]]
    output_dir = os.path.join(str(tmp_path), 'nested', 'out')

    written = builder.write_tables(chunks, output_dir)

    assert [os.path.basename(p) for p in written] == ['out_000.csv', 'out_001.csv']
    with open(written[1], newline='') as f:
        rows = list(csv.reader(f))
    assert rows[4] == ['5.000', '', '', 'a,b', '', '']


def test_write_tsv(tmp_path, column_index):
    builder = TableBuilder(column_index, config=ExportConfig(output_format='tsv'))
    output_file = str(tmp_path / 'table.tsv')
    builder.write_table([['Bus', 'Main'], ['0.000', '1']], output_file)
    with open(output_file) as f:
        assert f.read().splitlines() == ['Bus\tMain', '0.000\t1']


def test_rows_end_with_newline_only(tmp_path, column_index):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    output_file = builder.write_tables([[sample(0, 'Engine', Rpm=1)]], str(tmp_path))[0]
    with open(output_file, 'rb') as f:
        contents = f.read()
    assert b'\r' not in contents
    assert contents.count(b'\n') == 5


@pytest.mark.parametrize('value, expected', [
    (1e-05, '0.00001'),
    (2.5e-07, '0.00000025'),
    (-3.125e-06, '-0.000003125'),
    (0.001, '0.001'),
    (1234.5, '1234.5'),
])
def test_small_values_are_written_without_exponent(column_index, value, expected):
    builder = TableBuilder(column_index, config=ExportConfig(bin_width_ms=10))
    table = builder.build_table([sample(0, 'Engine', Temp=value)])
    assert data_rows(table)[0][2] == expected
