"""
HID keyboard usage codes to characters.

Scanners in USB keyboard mode send one 8 byte report per key press:
[modifier, reserved, keycode, 0, 0, 0, 0, 0]
Only the characters listed below are decoded; every other keycode maps to NO_CHAR.
"""

NO_CHAR = None

# Enter key, ends one scanned code
TERMINATOR_KEYCODE = 40

# Left shift bit in the modifier byte
SHIFT_MASK = 0x02

_UNSHIFTED = {
    4: 'a', 5: 'b', 6: 'c', 7: 'd', 8: 'e', 9: 'f',
    10: 'g', 11: 'h', 12: 'i', 13: 'j', 14: 'k', 15: 'l',
    16: 'm', 17: 'n', 18: 'o', 19: 'p', 20: 'q', 21: 'r',
    22: 's', 23: 't', 24: 'u', 25: 'v', 26: 'w', 27: 'x',
    28: 'y', 29: 'z', 30: '1', 31: '2', 32: '3', 33: '4',
    34: '5', 35: '6', 36: '7', 37: '8', 38: '9', 39: '0',
    0x2C: ' ', 0x2E: '=', 0x33: ';', 0x34: "'", 0x36: ',',
    0x37: '.', 0x38: '/',
}

# Digits have no shifted entry: a shifted digit is dropped, not turned into punctuation
_SHIFTED = {
    4: 'A', 5: 'B', 6: 'C', 7: 'D', 8: 'E', 9: 'F',
    10: 'G', 11: 'H', 12: 'I', 13: 'J', 14: 'K', 15: 'L',
    16: 'M', 17: 'N', 18: 'O', 19: 'P', 20: 'Q', 21: 'R',
    22: 'S', 23: 'T', 24: 'U', 25: 'V', 26: 'W', 27: 'X',
    28: 'Y', 29: 'Z',
    0x2C: ' ', 0x2E: '+', 0x33: ':', 0x34: '"', 0x36: '<',
    0x37: '>', 0x38: '?',
}


def _build_table(mapping):
    table = [NO_CHAR] * 256
    for keycode, char in mapping.items():
        table[keycode] = char
    return tuple(table)


UNSHIFTED_TABLE = _build_table(_UNSHIFTED)
SHIFTED_TABLE = _build_table(_SHIFTED)


def table_for_modifier(modifier: int):
    """Pick the lookup table for a report's modifier byte"""
    return SHIFTED_TABLE if modifier & SHIFT_MASK else UNSHIFTED_TABLE


def lookup(keycode: int, shifted: bool = False):
    """Character for a keycode, or NO_CHAR"""
    table = SHIFTED_TABLE if shifted else UNSHIFTED_TABLE
    return table[keycode & 0xFF]
