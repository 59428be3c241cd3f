"""
Pending scan records waiting for the next delivery cycle
"""
import logging
from typing import List

from scanner_relay.hid.decoder import ScanRecord

logger = logging.getLogger(__name__)

Batch = List[ScanRecord]


class ScanBuffer:
    """
    Ordered pending records plus the batch held over from the last failed delivery.

    Only the event loop thread touches this object.
    """

    def __init__(self):
        self._pending: Batch = []
        self._holdover: Batch = []

    def append(self, record: ScanRecord):
        self._pending.append(record)

    def drain_for_delivery(self) -> Batch:
        """
        Take everything waiting to be sent.

        The holdover comes first, in its original order, followed by the
        records appended since the last drain. Both are cleared.
        """
        batch = self._holdover + self._pending
        self._holdover = []
        self._pending = []
        return batch

    def requeue(self, batch: Batch):
        """Hold a failed batch over for the next drain, replacing any previous holdover"""
        if self._holdover:
            logger.warning(f"⚠️ Replacing holdover of {len(self._holdover)} scans")
        self._holdover = list(batch)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def holdover_count(self) -> int:
        return len(self._holdover)

    def __len__(self):
        return len(self._pending) + len(self._holdover)
