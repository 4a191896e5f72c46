"""
Converter Module

One-to-one and one-to-many transforms between pipeline units
(text -> code points, code point -> bytes, byte -> fallback token, ...),
with content-keyed caching for repeated inputs.
"""

from abc import ABC, abstractmethod
from typing import Dict, Generic, Hashable, List, Tuple, TypeVar

from .text_view import TextLike, TextView

S = TypeVar("S")
D = TypeVar("D")


def _cache_key(value):
    # Views are materialized so cached keys never pin large source strings
    return str(value) if isinstance(value, TextView) else value


class OneToOneConverter(ABC, Generic[S, D]):
    """Converts one source unit into exactly one destination unit."""

    @abstractmethod
    def convert(self, value: S) -> D:
        ...


class OneToManyConverter(ABC, Generic[S, D]):
    """Converts one source unit into zero or more destination units."""

    @abstractmethod
    def convert(self, value: S, output: List[D]) -> None:
        """Append the converted units of ``value`` to ``output``."""


class OneToOneCachedConverter(OneToOneConverter[S, D]):
    """Memoizes another one-to-one converter by input content."""

    __slots__ = ('_converter', '_cache')

    def __init__(self, converter: OneToOneConverter[S, D]):
        if converter is None:
            raise ValueError("converter cannot be None")
        self._converter = converter
        self._cache: Dict[Hashable, D] = {}

    def convert(self, value: S) -> D:
        try:
            return self._cache[value]
        except KeyError:
            pass

        result = self._converter.convert(value)
        self._cache[_cache_key(value)] = result
        return result

    def __len__(self) -> int:
        return len(self._cache)


class OneToManyCachedConverter(OneToManyConverter[S, D]):
    """Memoizes another one-to-many converter by input content."""

    __slots__ = ('_converter', '_cache')

    def __init__(self, converter: OneToManyConverter[S, D]):
        if converter is None:
            raise ValueError("converter cannot be None")
        self._converter = converter
        self._cache: Dict[Hashable, Tuple[D, ...]] = {}

    def convert(self, value: S, output: List[D]) -> None:
        cached = self._cache.get(value)
        if cached is None:
            converted: List[D] = []
            self._converter.convert(value, converted)
            cached = tuple(converted)
            self._cache[_cache_key(value)] = cached

        output.extend(cached)

    def __len__(self) -> int:
        return len(self._cache)


class Utf8CharSplitter(OneToManyConverter[TextLike, TextView]):
    """Splits a view into one view per unicode code point."""

    def convert(self, value: TextLike, output: List[TextView]) -> None:
        view = TextView.of(value)
        source = view.source
        for i in range(view.start, view.end):
            output.append(TextView(source, i, 1))


class TextToBytesConverter(OneToManyConverter[TextLike, int]):
    """
    Converts text to its UTF-8 byte values.

    Lone surrogates are encoded with ``surrogatepass`` so any python string
    has a byte representation.
    """

    def convert(self, value: TextLike, output: List[int]) -> None:
        output.extend(str(value).encode('utf-8', errors='surrogatepass'))


class ByteToTokenConverter(OneToOneConverter[int, str]):
    """Maps a byte value to its ``<0xHH>`` byte-fallback token."""

    _TOKENS = tuple(f"<0x{b:02X}>" for b in range(256))

    def convert(self, value: int) -> str:
        return self._TOKENS[value]


class CharToTokenConverter:
    """
    Builds the vocabulary key of a single character inside a word.

    Non-initial characters get ``subword_prefix`` (e.g. ``##``) and the
    final character gets ``word_suffix`` (e.g. ``</w>``). All four forms of a
    character are computed once and cached.
    """

    __slots__ = ('_subword_prefix', '_word_suffix', '_cache')

    def __init__(self, subword_prefix: str = "", word_suffix: str = ""):
        self._subword_prefix = subword_prefix or ""
        self._word_suffix = word_suffix or ""
        self._cache: Dict[str, Tuple[str, str, str, str]] = {}

    @property
    def is_identity(self) -> bool:
        return not self._subword_prefix and not self._word_suffix

    def convert(self, char: TextLike, first: bool, last: bool) -> str:
        key = str(char)
        forms = self._cache.get(key)
        if forms is None:
            prefix, suffix = self._subword_prefix, self._word_suffix
            # single, first, last, inner
            forms = (
                f"{key}{suffix}",
                key,
                f"{prefix}{key}{suffix}",
                f"{prefix}{key}",
            )
            self._cache[key] = forms

        if first:
            return forms[0] if last else forms[1]
        return forms[2] if last else forms[3]


_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_byte_token(token: str) -> int:
    """
    Parse an exact ``<0xHH>`` byte-fallback token.

    Either hex case is accepted; anything else (wrong length, missing
    brackets, signs or spaces) is not a byte token.

    Returns:
        Byte value, -1 if token is not a byte-fallback token
    """
    if (
        len(token) != 6
        or not token.startswith("<0x")
        or token[5] != ">"
        or token[3] not in _HEX_DIGITS
        or token[4] not in _HEX_DIGITS
    ):
        return -1
    return int(token[3:5], 16)
