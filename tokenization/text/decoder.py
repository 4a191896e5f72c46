"""
Decoder Module

Inverse of the pre-tokenizer and BPE stages: token strings in, text
fragments out. The decoded text is the concatenation of the fragments.

Decoding never raises on malformed byte content: invalid UTF-8 degrades to
U+FFFD replacement characters.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from ..core.byte_level import CHARS_TO_BYTES
from ..core.converters import parse_byte_token
from ..core.pool import byte_list_pool, list_pool

REPLACEMENT_CHAR = "\ufffd"


class Decoder(ABC):
    """Token strings to text fragments."""

    @abstractmethod
    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        """
        Decode tokens.

        Args:
            tokens: Token strings
            output: Receives the decoded fragments
        """


class DefaultDecoder(Decoder):
    """Passes tokens through unchanged."""

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        output.extend(tokens)


class FuseDecoder(Decoder):
    """Concatenates all tokens into a single fragment."""

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        output.append("".join(tokens))


class ReplaceDecoder(Decoder):
    """Literal substring replacement applied to every token independently."""

    __slots__ = ('_pattern', '_content')

    def __init__(self, pattern: str, content: str):
        if not pattern:
            raise ValueError("pattern cannot be empty")
        if content is None:
            raise ValueError("content cannot be None")
        self._pattern = pattern
        self._content = content

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        for token in tokens:
            output.append(token.replace(self._pattern, self._content))


class ByteFallbackDecoder(Decoder):
    """
    Decodes runs of ``<0xHH>`` tokens as UTF-8.

    Consecutive byte tokens are buffered; a run ends at the first other
    token or at the end of input and is decoded in one piece. A run that is
    not valid UTF-8 becomes one U+FFFD per buffered byte. Other tokens
    (including malformed byte tokens) pass through unchanged.
    """

    @staticmethod
    def _flush(data: bytearray, output: List[str]) -> None:
        if not data:
            return
        try:
            output.append(data.decode('utf-8'))
        except UnicodeDecodeError:
            output.extend(REPLACEMENT_CHAR for _ in range(len(data)))
        data.clear()

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        with byte_list_pool().acquire() as data:
            for token in tokens:
                value = parse_byte_token(token)
                if value >= 0:
                    data.append(value)
                    continue

                self._flush(data, output)
                output.append(token)

            self._flush(data, output)


class ByteLevelDecoder(Decoder):
    """
    Maps byte-level characters back to bytes and decodes them as UTF-8.

    Characters outside the byte-level alphabet contribute their own UTF-8
    bytes. Invalid sequences are replaced, never raised.
    """

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        with byte_list_pool().acquire() as data:
            for token in tokens:
                for char in token:
                    value = CHARS_TO_BYTES.get(char)
                    if value is None:
                        data.extend(char.encode('utf-8', errors='surrogatepass'))
                    else:
                        data.append(value)
            output.append(data.decode('utf-8', errors='replace'))


# (pattern, replacement) pairs undoing BERT's spacing around punctuation
CLEANUP_RULES = (
    (" .", "."),
    (" ?", "?"),
    (" !", "!"),
    (" ,", ","),
    (" ' ", "'"),
    (" n't", "n't"),
    (" 'm", "'m"),
    (" do not", " don't"),
    (" 's", "'s"),
    (" 've", "'ve"),
    (" 're", "'re"),
)


class WordPieceDecoder(Decoder):
    """
    Joins WordPiece tokens back into words.

    Continuation pieces lose their prefix and attach to the previous token;
    every other token after the first starts with a space. With ``cleanup``
    the spaces the BERT pre-tokenizer put before punctuation and English
    contractions are removed again.
    """

    __slots__ = ('_prefix', '_cleanup')

    def __init__(self, prefix: str = "##", cleanup: bool = True):
        self._prefix = prefix or ""
        self._cleanup = cleanup

    def _clean(self, text: str) -> str:
        for pattern, replacement in CLEANUP_RULES:
            text = text.replace(pattern, replacement)
        return text

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        for i, token in enumerate(tokens):
            if i > 0:
                if self._prefix and token.startswith(self._prefix):
                    token = token[len(self._prefix):]
                else:
                    token = " " + token
            if self._cleanup:
                token = self._clean(token)
            output.append(token)


class StripDecoder(Decoder):
    """Removes up to ``start`` leading and ``stop`` trailing ``content`` characters per token."""

    __slots__ = ('_content', '_start', '_stop')

    def __init__(self, content: str = " ", start: int = 0, stop: int = 0):
        if len(content) != 1:
            raise ValueError("content must be a single character")
        if start < 0 or stop < 0:
            raise ValueError("start and stop must be >= 0")
        self._content = content
        self._start = start
        self._stop = stop

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        for token in tokens:
            begin, end = 0, len(token)
            while begin < min(self._start, end) and token[begin] == self._content:
                begin += 1
            removed = 0
            while removed < self._stop and end > begin and token[end - 1] == self._content:
                end -= 1
                removed += 1
            output.append(token[begin:end])


class SequenceDecoder(Decoder):
    """Chains decoders: each one decodes the fragments of the previous."""

    __slots__ = ('_decoders',)

    def __init__(self, *decoders: Decoder):
        if not decoders:
            raise ValueError("at least one decoder is required")
        for decoder in decoders:
            if decoder is None:
                raise ValueError("decoders cannot contain None")
        self._decoders = tuple(decoders)

    def decode(self, tokens: Iterable[str], output: List[str]) -> None:
        pool = list_pool()
        with pool.acquire() as current, pool.acquire() as following:
            current.extend(tokens)
            for decoder in self._decoders:
                decoder.decode(current, following)
                current.clear()
                current.extend(following)
                following.clear()
            output.extend(current)
