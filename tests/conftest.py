"""Shared fixtures: a small DBC and helpers to synthesize binary log records."""

import logging
import os
import struct

import pytest

from per_log_parser.dbc import BusDatabase

SAMPLE_DBC = '''VERSION ""


NS_ :

BS_:

BU_: VCU BMS


BO_ 80 Heartbeat: 1 Vector__XXX
 SG_ Counter : 0|8@1+ (1,0) [0|255] "" Vector__XXX

BO_ 256 VCU_Status: 4 VCU
 SG_ Speed : 0|16@1+ (0.5,0) [0|32767.5] "km/h" BMS
 SG_ Gear : 16|8@1+ (1,0) [0|15] "" BMS

BO_ 2566869221 BMS_Pack: 4 BMS
 SG_ PackVoltage : 0|16@1+ (0.25,0) [0|16383.75] "V" VCU
 SG_ PackCurrent : 16|16@1- (1,0) [-32768|32767] "A" VCU

'''

HEARTBEAT_ID = 80
VCU_STATUS_ID = 256
BMS_PACK_ID = 0x18FF50E5
CAN_EFF_FLAG = 0x80000000


def make_record(timestamp, raw_id, payload=b'', dlc=None, bus=0, frame_type=0):
    """One 19-byte log record; the payload region is zero padded to 8 bytes."""
    if dlc is None:
        dlc = len(payload)
    return struct.pack('<BIIBB8s', frame_type, timestamp, raw_id, bus, dlc, bytes(payload).ljust(8, b'\x00'))


def heartbeat(timestamp, counter):
    return make_record(timestamp, HEARTBEAT_ID, bytes([counter]))


def vcu_status(timestamp, speed_raw, gear):
    return make_record(timestamp, VCU_STATUS_ID, struct.pack('<HB', speed_raw, gear) + b'\x00')


def bms_pack(timestamp, voltage_raw, current):
    return make_record(timestamp, BMS_PACK_ID | CAN_EFF_FLAG, struct.pack('<Hh', voltage_raw, current))


@pytest.fixture(autouse=True)
def restore_package_log_level():
    """The CLI sets the package logger level; keep it from leaking between tests."""
    logger = logging.getLogger('per_log_parser')
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.fixture
def dbc_file(tmp_path):
    path = tmp_path / 'vehicle.dbc'
    path.write_text(SAMPLE_DBC)
    return str(path)


@pytest.fixture
def database(dbc_file):
    return BusDatabase.load_file(dbc_file)


@pytest.fixture
def log_dir(tmp_path):
    """Two log files forming two sessions, plus a file that must be ignored."""
    directory = tmp_path / 'logs'
    directory.mkdir()
    (directory / 'b_second.log').write_bytes(
        heartbeat(60000, 7) + vcu_status(60005, 40, 2))
    (directory / 'a_first.log').write_bytes(
        heartbeat(1000, 1) + vcu_status(1004, 200, 3) + bms_pack(1012, 1601, -20) + heartbeat(1025, 2))
    (directory / 'notes.txt').write_text('not a log')
    return str(directory)


@pytest.fixture
def output_dir(tmp_path):
    return os.path.join(str(tmp_path), 'out')
