"""
Text Normalizer Module

Text-level rewrites applied before splitting: prefix/suffix insertion,
literal replacement, Unicode normalization, case folding and BERT-style
cleaning.

Every normalizer takes a ``str`` or ``TextView`` and returns the input
object itself when the content does not change, so an inert stage never
allocates.
"""

import unicodedata
from abc import ABC, abstractmethod
from typing import List, Optional

from ..config import NormForm, parse_enum
from ..core.pool import string_builder_pool
from ..core.text_view import TextLike, TextView

# CJK Unified Ideographs blocks (BMP and supplementary planes)
CJK_RANGES = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x2F800, 0x2FA1F),
)


def is_cjk(char: str) -> bool:
    cp = ord(char)
    return any(lo <= cp <= hi for lo, hi in CJK_RANGES)


def is_whitespace(char: str) -> bool:
    if char in " \t\n\r":
        return True
    return unicodedata.category(char) == "Zs"


def is_control(char: str) -> bool:
    if char in "\t\n\r":
        return False
    return unicodedata.category(char) in ("Cc", "Cf")


class Normalizer(ABC):
    """Single text rewrite stage."""

    @abstractmethod
    def normalize(self, text: TextLike) -> TextLike:
        """
        Rewrite text.

        Args:
            text: Input string or view

        Returns:
            Rewritten text, or ``text`` itself when nothing changed
        """


class DefaultNormalizer(Normalizer):
    """Identity normalizer."""

    def normalize(self, text: TextLike) -> TextLike:
        return text


class PrependNormalizer(Normalizer):
    """Inserts a fixed prefix before the text."""

    __slots__ = ('_prefix',)

    def __init__(self, prefix: str):
        if not prefix:
            raise ValueError("prefix cannot be empty")
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def normalize(self, text: TextLike) -> TextLike:
        return TextView.of(self._prefix + str(text))


class AppendNormalizer(Normalizer):
    """Appends a fixed suffix to the text."""

    __slots__ = ('_suffix',)

    def __init__(self, suffix: str):
        if not suffix:
            raise ValueError("suffix cannot be empty")
        self._suffix = suffix

    @property
    def suffix(self) -> str:
        return self._suffix

    def normalize(self, text: TextLike) -> TextLike:
        return TextView.of(str(text) + self._suffix)


class ReplaceNormalizer(Normalizer):
    """
    Literal (non-regex) substring replacement.

    An empty replacement deletes every occurrence of the pattern.
    """

    __slots__ = ('_pattern', '_replacement')

    def __init__(self, pattern: str, replacement: str):
        if not pattern:
            raise ValueError("pattern cannot be empty")
        if replacement is None:
            raise ValueError("replacement cannot be None")
        self._pattern = pattern
        self._replacement = replacement

    def normalize(self, text: TextLike) -> TextLike:
        view = TextView.of(text)
        if view.find(self._pattern) < 0:
            return text
        return TextView.of(str(view).replace(self._pattern, self._replacement))


class UnicodeNormalizer(Normalizer):
    """Applies one of the four standard Unicode normalization forms."""

    __slots__ = ('_form',)

    def __init__(self, form: NormForm = NormForm.NFC):
        self._form = parse_enum(NormForm, form)

    @property
    def form(self) -> NormForm:
        return self._form

    def normalize(self, text: TextLike) -> TextLike:
        value = str(text)
        if unicodedata.is_normalized(self._form.value, value):
            return text
        return TextView.of(unicodedata.normalize(self._form.value, value))


class LowercaseNormalizer(Normalizer):
    """Lowercases the text."""

    def normalize(self, text: TextLike) -> TextLike:
        value = str(text)
        lowered = value.lower()
        if lowered == value:
            return text
        return TextView.of(lowered)


class StripNormalizer(Normalizer):
    """Removes leading and/or trailing whitespace."""

    __slots__ = ('_left', '_right')

    def __init__(self, left: bool = True, right: bool = True):
        self._left = left
        self._right = right

    def normalize(self, text: TextLike) -> TextLike:
        view = TextView.of(text)
        start, end = 0, len(view)

        if self._left:
            while start < end and view[start].isspace():
                start += 1
        if self._right:
            while end > start and view[end - 1].isspace():
                end -= 1

        if start == 0 and end == len(view):
            return text
        return view[start:end]


class BertNormalizer(Normalizer):
    """
    BERT-style cleaning.

    - ``clean_text``: drop NUL, U+FFFD and control characters, map every
      whitespace character to a plain space
    - ``handle_cjk_chars``: surround CJK ideographs with spaces
    - ``strip_accents``: NFD-decompose and drop combining marks; follows
      ``lowercase`` when left as None
    - ``lowercase``: lowercase the text
    """

    __slots__ = ('_clean_text', '_handle_cjk_chars', '_strip_accents', '_lowercase')

    def __init__(
        self,
        clean_text: bool = True,
        handle_cjk_chars: bool = True,
        strip_accents: Optional[bool] = None,
        lowercase: bool = True,
    ):
        self._clean_text = clean_text
        self._handle_cjk_chars = handle_cjk_chars
        self._strip_accents = lowercase if strip_accents is None else strip_accents
        self._lowercase = lowercase

    def _clean(self, value: str, parts: List[str]) -> None:
        for char in value:
            if char == "\x00" or char == "\ufffd" or is_control(char):
                continue
            parts.append(" " if is_whitespace(char) else char)

    def _pad_cjk(self, value: str, parts: List[str]) -> None:
        for char in value:
            if is_cjk(char):
                parts.append(" ")
                parts.append(char)
                parts.append(" ")
            else:
                parts.append(char)

    def normalize(self, text: TextLike) -> TextLike:
        value = original = str(text)

        with string_builder_pool().acquire() as parts:
            if self._clean_text:
                self._clean(value, parts)
                value = "".join(parts)
                parts.clear()

            if self._handle_cjk_chars:
                self._pad_cjk(value, parts)
                value = "".join(parts)
                parts.clear()

        if self._strip_accents:
            value = "".join(
                c for c in unicodedata.normalize("NFD", value)
                if unicodedata.category(c) != "Mn"
            )

        if self._lowercase:
            value = value.lower()

        if value == original:
            return text
        return TextView.of(value)


class SequenceNormalizer(Normalizer):
    """Runs normalizers in a fixed order, each on the previous output."""

    __slots__ = ('_normalizers',)

    def __init__(self, *normalizers: Normalizer):
        for normalizer in normalizers:
            if normalizer is None:
                raise ValueError("normalizers cannot contain None")
        self._normalizers = tuple(normalizers)

    @property
    def normalizers(self):
        return self._normalizers

    def normalize(self, text: TextLike) -> TextLike:
        for normalizer in self._normalizers:
            text = normalizer.normalize(text)
        return text

