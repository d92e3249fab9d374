"""Binary parsing of PER CAN log files."""

import logging
import struct
from collections import namedtuple
from dataclasses import dataclass
from typing import Iterator, Optional

from .dbc import DecodedMessage
from .utils import display_bytes_hex

# Record layout (little endian, 19 bytes):
#   0  frame type   u8 (unused)
#   1  timestamp    u32, milliseconds
#   5  raw id       u32, bit 31 flags an extended id
#   9  bus          u8
#  10  dlc          u8
#  11  payload      8 bytes, first dlc bytes valid
RECORD_FORMAT = struct.Struct('<BIIBB8s')
MSG_BYTE_LEN = RECORD_FORMAT.size
MAX_DLC = 8

CAN_EFF_FLAG = 0x80000000
CAN_EXT_ID_MASK = 0x1FFFFFFF
CAN_STD_ID_MASK = 0x000007FF

RawFrame = namedtuple('RawFrame', ['timestamp', 'raw_id', 'arb_id', 'is_extended', 'bus', 'dlc', 'payload'])


@dataclass(frozen=True)
class ParsedMessage:
    """A decoded frame and the time it was logged."""
    timestamp: int
    decoded: Optional[DecodedMessage] = None


def demux_id(raw_id: int) -> tuple:
    """Split a raw identifier field into (arbitration id, is_extended)."""
    if raw_id & CAN_EFF_FLAG:
        return raw_id & CAN_EXT_ID_MASK, True
    return raw_id & CAN_STD_ID_MASK, False


def iter_frames(buffer: bytes) -> Iterator[RawFrame]:
    """
    Walk the buffer record by record. A trailing fragment shorter than one
    record is left unread.
    """
    offset = 0
    while offset + MSG_BYTE_LEN <= len(buffer):
        _frame_type, timestamp, raw_id, bus, dlc, data = RECORD_FORMAT.unpack_from(buffer, offset)
        offset += MSG_BYTE_LEN

        arb_id, is_extended = demux_id(raw_id)
        yield RawFrame(timestamp=timestamp, raw_id=raw_id, arb_id=arb_id, is_extended=is_extended,
                       bus=bus, dlc=dlc, payload=data[:dlc])


def parse_log_bytes(buffer: bytes, database, logger=None) -> Iterator[ParsedMessage]:
    """
    Decode every frame in a log buffer, yielding the ones the bus database
    understands. Frames that fail to decode are logged and dropped.
    """
    if not logger:
        logger = logging.getLogger(__name__)

    for frame in iter_frames(buffer):
        if frame.dlc > MAX_DLC:
            logger.error('Failed to parse: frame ID 0x%X (%d), invalid DLC %d, data: [%s]',
                         frame.arb_id, frame.arb_id, frame.dlc, display_bytes_hex(frame.payload))
            continue

        result = database.decode(frame.arb_id, frame.payload)
        if not result.ok:
            logger.error('Failed to parse: frame ID 0x%X (%d), data: [%s]',
                         frame.arb_id, frame.arb_id, display_bytes_hex(frame.payload))
            logger.debug('Decode failure reason: %s', result.error)
            continue

        yield ParsedMessage(timestamp=frame.timestamp, decoded=result.message)


class LogFile:
    """Represents a log file and its contents."""

    def __init__(self, file_path: str, logger=None):
        self.file_path = file_path
        self.logger = logger
        self._contents = None

    @property
    def contents(self) -> bytes:
        """Get the file contents, read on first access."""
        if self._contents is None:
            with open(self.file_path, 'rb') as f:
                self._contents = f.read()
        return self._contents

    def record_count(self) -> int:
        return len(self.contents) // MSG_BYTE_LEN

    def trailing_bytes(self) -> int:
        """Bytes after the last complete record."""
        return len(self.contents) % MSG_BYTE_LEN

    def parse(self, database) -> Iterator[ParsedMessage]:
        return parse_log_bytes(self.contents, database, logger=self.logger)
