"""
Byte-Level Alphabet Module

Reversible mapping between raw byte values and printable unicode characters.

Every byte value (0-255), including control characters and the space, is
assigned a distinct visible code point, so arbitrary binary content can be
carried through the text stages without ambiguity or loss.
"""

from typing import Dict, Iterable, Union


def _build_byte_table() -> Dict[int, str]:
    """
    Build byte-to-unicode mapping.

    Printable latin-1 bytes keep their own code point, the remaining 68
    bytes are shifted to 256+n in byte order.
    """
    bs = list(range(ord("!"), ord("~") + 1))
    bs += list(range(ord("¡"), ord("¬") + 1))
    bs += list(range(ord("®"), ord("ÿ") + 1))

    cs = bs.copy()
    n = 0
    for b in range(256):
        if b not in bs:
            bs.append(b)
            cs.append(256 + n)
            n += 1

    return {b: chr(c) for b, c in zip(bs, cs)}


BYTES_TO_CHARS: Dict[int, str] = _build_byte_table()
CHARS_TO_BYTES: Dict[str, int] = {v: k for k, v in BYTES_TO_CHARS.items()}

# Indexed by byte value for the hot path
_BYTE_CHARS = tuple(BYTES_TO_CHARS[b] for b in range(256))


def byte_to_char(value: int) -> str:
    """Map one byte value to its printable character."""
    return _BYTE_CHARS[value]


def bytes_to_unicode(data: Union[bytes, bytearray, Iterable[int]]) -> str:
    """
    Encode raw bytes as byte-level text.

    Args:
        data: Bytes (or iterable of ints in 0-255)

    Returns:
        String with exactly one character per input byte
    """
    return ''.join(_BYTE_CHARS[b] for b in data)


def unicode_to_bytes(text: str) -> bytes:
    """
    Decode byte-level text back to raw bytes.

    Raises:
        ValueError: If text holds a character outside the byte-level alphabet
    """
    try:
        return bytes(CHARS_TO_BYTES[c] for c in text)
    except KeyError as e:
        raise ValueError(f"Character {e.args[0]!r} is not part of the byte-level alphabet") from None


def is_byte_level(text: str) -> bool:
    """Check whether every character of text belongs to the byte-level alphabet."""
    return all(c in CHARS_TO_BYTES for c in text)
