"""
Core Infrastructure

Zero-copy text views, buffer pools, converters, the byte-level alphabet and
the value types shared by every pipeline stage.
"""

from .text_view import TextView, TextLike
from .pool import (
    Pool,
    string_builder_pool,
    byte_list_pool,
    list_pool,
    view_list_pool,
)
from .converters import (
    OneToOneConverter,
    OneToManyConverter,
    OneToOneCachedConverter,
    OneToManyCachedConverter,
    Utf8CharSplitter,
    TextToBytesConverter,
    ByteToTokenConverter,
    CharToTokenConverter,
    parse_byte_token,
)
from .byte_level import (
    BYTES_TO_CHARS,
    CHARS_TO_BYTES,
    byte_to_char,
    bytes_to_unicode,
    unicode_to_bytes,
    is_byte_level,
)
from .types import TokenDefinition, PaddedToken, Range, Encoding

__all__ = [
    "TextView",
    "TextLike",
    "Pool",
    "string_builder_pool",
    "byte_list_pool",
    "list_pool",
    "view_list_pool",
    "OneToOneConverter",
    "OneToManyConverter",
    "OneToOneCachedConverter",
    "OneToManyCachedConverter",
    "Utf8CharSplitter",
    "TextToBytesConverter",
    "ByteToTokenConverter",
    "CharToTokenConverter",
    "parse_byte_token",
    "BYTES_TO_CHARS",
    "CHARS_TO_BYTES",
    "byte_to_char",
    "bytes_to_unicode",
    "unicode_to_bytes",
    "is_byte_level",
    "TokenDefinition",
    "PaddedToken",
    "Range",
    "Encoding",
]
