"""
Pre-Tokenizer Module

Splits normalized text into word-like fragments before the BPE model runs.

The principal implementation, ByteLevelPreTokenizer, re-encodes every
fragment into the byte-level alphabet, so any input (including content the
vocabulary has never seen) has a representable, reversible pre-token.
"""

import unicodedata
from abc import ABC, abstractmethod
from typing import List, Pattern, Tuple, Union

import regex

from ..config import SplitDelimiterBehavior, parse_enum
from ..core.byte_level import byte_to_char
from ..core.converters import (
    OneToManyCachedConverter,
    TextToBytesConverter,
    Utf8CharSplitter,
)
from ..core.pool import byte_list_pool, list_pool, string_builder_pool, view_list_pool
from ..core.text_view import TextLike, TextView

# GPT-2 pre-tokenization pattern (contractions, letters, numbers, symbols, spaces)
GPT2_PATTERN = regex.compile(
    r"""'s|'t|'re|'ve|'m|'ll|'d| ?\p{L}+| ?\p{N}+| ?[^\s\p{L}\p{N}]+|\s+(?!\S)|\s+"""
)

WHITESPACE_PATTERN = regex.compile(r"\s+")


def is_punctuation(char: str) -> bool:
    """ASCII symbol ranges count as punctuation, as do all Unicode P* categories."""
    cp = ord(char)
    if 33 <= cp <= 47 or 58 <= cp <= 64 or 91 <= cp <= 96 or 123 <= cp <= 126:
        return True
    return unicodedata.category(char).startswith("P")


class PreTokenizer(ABC):
    """Splits text into fragments."""

    @abstractmethod
    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        """
        Split text.

        Args:
            text: Normalized input
            output: Receives the fragments in order
        """


class DefaultPreTokenizer(PreTokenizer):
    """Keeps the whole input as a single fragment."""

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        view = TextView.of(text)
        if not view.is_empty:
            output.append(view)


class ByteLevelPreTokenizer(PreTokenizer):
    """
    Byte-level pre-tokenizer.

    Algorithm:
    1. Prepend one space when ``add_prefix_space`` is set and the input does
       not already start with a space
    2. Split with the GPT-2 pattern, or keep the input as one fragment
    3. Convert each character of a fragment to its UTF-8 bytes
    4. Map every byte through the byte-level table and join
    """

    __slots__ = ('_add_prefix_space', '_gpt2_regex', '_char_splitter', '_char_to_bytes')

    def __init__(self, add_prefix_space: bool = True, gpt2_regex: bool = True):
        """
        Initialize pre-tokenizer.

        Args:
            add_prefix_space: Treat the first word like any other word
            gpt2_regex: Split with the GPT-2 pattern
        """
        self._add_prefix_space = add_prefix_space
        self._gpt2_regex = gpt2_regex
        self._char_splitter = Utf8CharSplitter()
        self._char_to_bytes = OneToManyCachedConverter(TextToBytesConverter())

    @property
    def add_prefix_space(self) -> bool:
        return self._add_prefix_space

    @property
    def gpt2_regex(self) -> bool:
        return self._gpt2_regex

    def _split(self, view: TextView, output: List[TextView]) -> None:
        if not self._gpt2_regex:
            if not view.is_empty:
                output.append(view)
            return

        source = view.source
        for match in GPT2_PATTERN.finditer(source, view.start, view.end):
            output.append(TextView(source, match.start(), match.end() - match.start()))

    def _encode_fragment(self, fragment: TextView) -> TextView:
        with view_list_pool().acquire() as chars, \
                byte_list_pool().acquire() as data, \
                string_builder_pool().acquire() as parts:
            self._char_splitter.convert(fragment, chars)
            for char in chars:
                self._char_to_bytes.convert(char, data)
            for b in data:
                parts.append(byte_to_char(b))
            return TextView.of("".join(parts))

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        view = TextView.of(text)
        if self._add_prefix_space and not view.startswith(" "):
            view = TextView.of(" " + str(view))

        with view_list_pool().acquire() as fragments:
            self._split(view, fragments)
            for fragment in fragments:
                output.append(self._encode_fragment(fragment))


def _merge_spans(
    spans: List[Tuple[int, int, bool]],
    behavior: SplitDelimiterBehavior,
) -> List[Tuple[int, int]]:
    """Apply a delimiter behavior to (start, end, is_delimiter) spans."""
    merged: List[Tuple[int, int]] = []

    if behavior is SplitDelimiterBehavior.REMOVED:
        return [(s, e) for s, e, is_match in spans if not is_match]

    if behavior is SplitDelimiterBehavior.ISOLATED:
        return [(s, e) for s, e, _ in spans]

    if behavior is SplitDelimiterBehavior.MERGED_WITH_NEXT:
        previous_match = False
        for s, e, is_match in reversed(spans):
            if is_match and not previous_match and merged:
                merged[-1] = (s, merged[-1][1])
            else:
                merged.append((s, e))
            previous_match = is_match
        merged.reverse()
        return merged

    previous_match = False
    for s, e, is_match in spans:
        if behavior is SplitDelimiterBehavior.MERGED_WITH_PREVIOUS:
            join = is_match and not previous_match
        else:
            join = is_match and previous_match
        if join and merged:
            merged[-1] = (merged[-1][0], e)
        else:
            merged.append((s, e))
        previous_match = is_match
    return merged


class SplitPreTokenizer(PreTokenizer):
    """
    Splits on a delimiter pattern.

    A plain string pattern is matched literally; a compiled pattern is used
    as-is. With ``invert`` the matches become the content and everything in
    between becomes the delimiter.
    """

    __slots__ = ('_pattern', '_behavior', '_invert')

    def __init__(
        self,
        pattern: Union[str, Pattern],
        behavior: SplitDelimiterBehavior = SplitDelimiterBehavior.REMOVED,
        invert: bool = False,
    ):
        if pattern is None or pattern == "":
            raise ValueError("pattern cannot be empty")

        if isinstance(pattern, str):
            pattern = regex.compile(regex.escape(pattern))
        self._pattern = pattern
        self._behavior = parse_enum(SplitDelimiterBehavior, behavior)
        self._invert = invert

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        view = TextView.of(text)
        source, end = view.source, view.end

        spans: List[Tuple[int, int, bool]] = []
        position = view.start
        for match in self._pattern.finditer(source, view.start, end):
            if match.start() == match.end():
                continue
            if match.start() > position:
                spans.append((position, match.start(), self._invert))
            spans.append((match.start(), match.end(), not self._invert))
            position = match.end()
        if position < end:
            spans.append((position, end, self._invert))

        for s, e in _merge_spans(spans, self._behavior):
            output.append(TextView(source, s, e - s))


class WhitespaceSplitPreTokenizer(PreTokenizer):
    """Splits on runs of whitespace, dropping them."""

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        view = TextView.of(text)
        source = view.source
        position = view.start
        for match in WHITESPACE_PATTERN.finditer(source, view.start, view.end):
            if match.start() > position:
                output.append(TextView.from_to(source, position, match.start()))
            position = match.end()
        if position < view.end:
            output.append(TextView.from_to(source, position, view.end))


class BertPreTokenizer(PreTokenizer):
    """Splits on whitespace and isolates every punctuation character."""

    def __init__(self):
        self._whitespace = WhitespaceSplitPreTokenizer()

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        with view_list_pool().acquire() as words:
            self._whitespace.pre_tokenize(text, words)
            for word in words:
                source = word.source
                start = word.start
                for i in range(word.start, word.end):
                    if is_punctuation(source[i]):
                        if i > start:
                            output.append(TextView.from_to(source, start, i))
                        output.append(TextView(source, i, 1))
                        start = i + 1
                if start < word.end:
                    output.append(TextView.from_to(source, start, word.end))


class SequencePreTokenizer(PreTokenizer):
    """Runs pre-tokenizers in order, each over every fragment of the previous."""

    __slots__ = ('_pre_tokenizers',)

    def __init__(self, *pre_tokenizers: PreTokenizer):
        if not pre_tokenizers:
            raise ValueError("at least one pre-tokenizer is required")
        for pre_tokenizer in pre_tokenizers:
            if pre_tokenizer is None:
                raise ValueError("pre_tokenizers cannot contain None")
        self._pre_tokenizers = tuple(pre_tokenizers)

    def pre_tokenize(self, text: TextLike, output: List[TextView]) -> None:
        first, rest = self._pre_tokenizers[0], self._pre_tokenizers[1:]
        if not rest:
            first.pre_tokenize(text, output)
            return

        pool = list_pool()
        current = pool.get()
        try:
            first.pre_tokenize(text, current)
            for pre_tokenizer in rest:
                following = pool.get()
                try:
                    for fragment in current:
                        pre_tokenizer.pre_tokenize(fragment, following)
                except BaseException:
                    pool.release(following)
                    raise
                pool.release(current)
                current = following
            output.extend(current)
        finally:
            pool.release(current)
