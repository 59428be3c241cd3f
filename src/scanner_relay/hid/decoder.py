"""
Per-device decoder turning raw HID keyboard reports into scan records
"""
import json
import logging
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence

from scanner_relay.errors import DecodeError
from scanner_relay.hid.key_tables import NO_CHAR, TERMINATOR_KEYCODE, table_for_modifier

logger = logging.getLogger(__name__)
scan_logger = logging.getLogger("scanner_relay.scans")

ScanRecord = Mapping[str, str]


def build_record(text: str, separator: str, fields: Sequence[str]) -> ScanRecord:
    """
    Assign the separated parts of a scanned text to field names, in order.

    Extra parts are dropped and missing parts leave the field unset, so
    short input never raises.

    Args:
        text: accumulated scan text
        separator: field separator
        fields: ordered field names

    Returns:
        read-only mapping of field name to value
    """
    parts = text.split(separator)
    return MappingProxyType(dict(zip(fields, parts)))


class HidDecoder:
    """Accumulates decoded characters until the Enter keycode, then emits a record"""

    def __init__(self, separator: str, fields: Sequence[str],
                 on_record: Callable[[ScanRecord], None], name: str = ""):
        self.separator = separator
        self.fields = list(fields)
        self.on_record = on_record
        self.name = name
        self._chars: List[str] = []

    @property
    def text(self) -> str:
        """Text accumulated since the last emitted record"""
        return "".join(self._chars)

    def feed(self, report) -> Optional[ScanRecord]:
        """
        Process one raw report.

        Decode failures are logged and the report is dropped; the
        accumulated text is left untouched.

        Returns:
            the emitted record when the report completed one, else None
        """
        try:
            return self._decode(report)
        except DecodeError as e:
            logger.error(f"❌ Dropped report from {self.name or 'device'}: {e}")
            return None

    def _decode(self, report) -> Optional[ScanRecord]:
        try:
            modifier = report[0]
            keycode = report[2]
            char = table_for_modifier(modifier)[keycode]
        except (IndexError, TypeError) as e:
            raise DecodeError(f"malformed report {report!r}: {e}") from e

        if char is not NO_CHAR:
            self._chars.append(char)
            return None

        if keycode == TERMINATOR_KEYCODE:
            record = build_record(self.text, self.separator, self.fields)
            self._chars = []
            scan_logger.info(json.dumps(dict(record)))
            self.on_record(record)
            return record

        return None

    def reset(self):
        self._chars = []
