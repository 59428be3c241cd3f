import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'src'))

from scanner_relay.hid.key_tables import (
    NO_CHAR, SHIFTED_TABLE, TERMINATOR_KEYCODE, UNSHIFTED_TABLE, lookup, table_for_modifier
)


class TestKeyTables(unittest.TestCase):

    def test_tables_cover_every_byte(self):
        self.assertEqual(len(UNSHIFTED_TABLE), 256)
        self.assertEqual(len(SHIFTED_TABLE), 256)

    def test_letters(self):
        self.assertEqual(lookup(4), 'a')
        self.assertEqual(lookup(29), 'z')
        self.assertEqual(lookup(4, shifted=True), 'A')
        self.assertEqual(lookup(29, shifted=True), 'Z')

    def test_digits(self):
        self.assertEqual(lookup(30), '1')
        self.assertEqual(lookup(39), '0')

    def test_shifted_digits_are_not_mapped(self):
        """Shift+1 is not turned into '!'"""
        for keycode in range(30, 40):
            self.assertIs(lookup(keycode, shifted=True), NO_CHAR)

    def test_punctuation(self):
        self.assertEqual(lookup(0x2C), ' ')
        self.assertEqual(lookup(0x2C, shifted=True), ' ')
        self.assertEqual(lookup(0x2E), '=')
        self.assertEqual(lookup(0x2E, shifted=True), '+')
        self.assertEqual(lookup(0x33), ';')
        self.assertEqual(lookup(0x33, shifted=True), ':')
        self.assertEqual(lookup(0x38), '/')
        self.assertEqual(lookup(0x38, shifted=True), '?')

    def test_unmapped_keycodes(self):
        self.assertIs(lookup(0), NO_CHAR)
        self.assertIs(lookup(TERMINATOR_KEYCODE), NO_CHAR)
        self.assertIs(lookup(0x2D), NO_CHAR)
        self.assertIs(lookup(0x2D, shifted=True), NO_CHAR)
        self.assertIs(lookup(255), NO_CHAR)

    def test_table_for_modifier(self):
        self.assertIs(table_for_modifier(0x00), UNSHIFTED_TABLE)
        self.assertIs(table_for_modifier(0x02), SHIFTED_TABLE)
        self.assertIs(table_for_modifier(0x03), SHIFTED_TABLE)
        # right shift (bit 5) is not the modifier bit the scanners send
        self.assertIs(table_for_modifier(0x20), UNSHIFTED_TABLE)


if __name__ == '__main__':
    unittest.main(verbosity=2)
