"""
Bus database access backed by cantools.

Wraps a loaded DBC file and exposes the two things the exporter needs: the
declared message metadata (for the column layout) and frame decoding.
"""
import logging
import os
from collections import namedtuple
from typing import Dict, List, Optional

import cantools
from cantools.database.errors import DecodeError

logger = logging.getLogger(__name__)

# Transmitter placeholder used by DBC files for "no sender"
UNKNOWN_NODE = 'Vector__XXX'

MessageDefinition = namedtuple('MessageDefinition',
                               ['frame_id', 'name', 'sender', 'signal_names', 'is_extended'])
DecodedMessage = namedtuple('DecodedMessage', ['name', 'signals'])


class DecodeResult(namedtuple('DecodeResult', ['message', 'error'])):
    """Outcome of decoding one frame: a DecodedMessage or the reason it failed."""
    __slots__ = ()

    @property
    def ok(self) -> bool:
        return self.message is not None

    @classmethod
    def success(cls, message: DecodedMessage) -> 'DecodeResult':
        return cls(message, None)

    @classmethod
    def no_match(cls, reason: str) -> 'DecodeResult':
        return cls(None, reason)


class DatabaseLoadError(ValueError):
    """Raised when a bus database file cannot be parsed."""

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to parse DBC file {path}: {cause}")


class BusDatabase:
    """A loaded bus database.

    Attributes:
        database: cantools Database object
        path: Path the database was loaded from (None when built in memory)
        _message_cache: Cache mapping arbitration id -> message object
    """

    def __init__(self, database, path: Optional[str] = None):
        self.database = database
        self.path = path
        self._message_cache: Dict[int, object] = {}

    @classmethod
    def load_file(cls, filepath: str) -> 'BusDatabase':
        """Load and parse a DBC file.

        Raises:
            FileNotFoundError: If the DBC file does not exist
            DatabaseLoadError: If the DBC file cannot be parsed
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"DBC file not found: {filepath}")

        logger.info("Loading DBC file: %s", filepath)
        try:
            db = cantools.database.load_file(filepath)
        except Exception as e:
            raise DatabaseLoadError(filepath, e) from e

        logger.info("DBC loaded successfully: %d messages", len(db.messages))
        return cls(db, path=filepath)

    @classmethod
    def load_string(cls, contents: str) -> 'BusDatabase':
        """Parse DBC text held in memory."""
        try:
            db = cantools.database.load_string(contents, database_format='dbc')
        except Exception as e:
            raise DatabaseLoadError('<string>', e) from e
        return cls(db)

    def message_definitions(self) -> List[MessageDefinition]:
        """Declared messages in database order."""
        definitions = []
        for msg in self.database.messages:
            senders = [s for s in (msg.senders or []) if s != UNKNOWN_NODE]
            definitions.append(MessageDefinition(
                frame_id=msg.frame_id,
                name=msg.name,
                sender=senders[0] if senders else None,
                signal_names=[sig.name for sig in msg.signals],
                is_extended=msg.is_extended_frame,
            ))
        return definitions

    def find_message_by_id(self, arb_id: int):
        """Find a message by its arbitration id, or None."""
        if arb_id in self._message_cache:
            return self._message_cache[arb_id]

        try:
            msg = self.database.get_message_by_frame_id(arb_id)
        except KeyError:
            msg = None
        self._message_cache[arb_id] = msg
        return msg

    def decode(self, arb_id: int, payload: bytes) -> DecodeResult:
        """Decode a frame payload into named signal values.

        Signal values are numeric (value tables are not applied).
        """
        msg = self.find_message_by_id(arb_id)
        if msg is None:
            return DecodeResult.no_match('unknown arbitration id')

        try:
            signals = msg.decode(bytes(payload), decode_choices=False)
        except (DecodeError, ValueError) as e:
            return DecodeResult.no_match(f'{msg.name}: {e}')

        return DecodeResult.success(DecodedMessage(msg.name, dict(signals)))
