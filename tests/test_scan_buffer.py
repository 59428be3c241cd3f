import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'src'))

from scanner_relay.scan_buffer import ScanBuffer


class TestScanBuffer(unittest.TestCase):

    def setUp(self):
        self.buffer = ScanBuffer()

    def test_drain_preserves_order(self):
        for code in ("a", "b", "c"):
            self.buffer.append({"code": code})
        self.assertEqual(self.buffer.drain_for_delivery(), [{"code": "a"}, {"code": "b"}, {"code": "c"}])

    def test_second_drain_is_empty(self):
        self.buffer.append({"code": "a"})
        self.buffer.drain_for_delivery()
        self.assertEqual(self.buffer.drain_for_delivery(), [])

    def test_holdover_comes_first(self):
        """A failed batch B1 is sent again ahead of the new records B2"""
        b1 = [{"code": "1"}, {"code": "2"}]
        for record in b1:
            self.buffer.append(record)
        failed = self.buffer.drain_for_delivery()
        self.buffer.requeue(failed)

        b2 = [{"code": "3"}, {"code": "4"}]
        for record in b2:
            self.buffer.append(record)
        self.assertEqual(self.buffer.drain_for_delivery(), b1 + b2)
        self.assertEqual(self.buffer.holdover_count, 0)

    def test_requeue_replaces_previous_holdover(self):
        self.buffer.requeue([{"code": "old"}])
        self.buffer.requeue([{"code": "new"}])
        self.assertEqual(self.buffer.drain_for_delivery(), [{"code": "new"}])

    def test_repeated_failures_do_not_grow(self):
        """Each failed batch already contains the previous holdover"""
        self.buffer.append({"code": "1"})
        batch = self.buffer.drain_for_delivery()
        self.buffer.requeue(batch)
        self.buffer.append({"code": "2"})
        batch = self.buffer.drain_for_delivery()
        self.buffer.requeue(batch)
        self.assertEqual(self.buffer.drain_for_delivery(), [{"code": "1"}, {"code": "2"}])

    def test_appends_after_drain_start_fresh(self):
        self.buffer.append({"code": "1"})
        batch = self.buffer.drain_for_delivery()
        self.buffer.append({"code": "2"})
        self.assertEqual(batch, [{"code": "1"}])
        self.assertEqual(self.buffer.pending_count, 1)

    def test_len(self):
        self.buffer.requeue([{"code": "1"}])
        self.buffer.append({"code": "2"})
        self.assertEqual(len(self.buffer), 2)


if __name__ == '__main__':
    unittest.main(verbosity=2)
