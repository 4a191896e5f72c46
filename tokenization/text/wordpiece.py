"""
WordPiece Tokenizer Module

Greedy longest-match-first subword segmentation (BERT style). Every
pre-token fragment is split into the longest vocabulary entries found
from left to right; non-initial pieces are looked up with the continuing
subword prefix (``##``). A fragment that cannot be fully covered, or that
is longer than ``max_input_chars_per_word``, becomes a single unknown
token.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Union

from ..core.text_view import TextLike
from ..core.types import TokenDefinition
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


class WordPieceTokenizer:
    """
    WordPiece model mapping pre-token fragments to token ids.

    Shares the ``tokenize``/``detokenize`` contract of ``BPETokenizer``
    so either model can drive a TokenizationPipeline.

    Special tokens never match a piece; they are only emitted by added
    token matching and post-processing.
    """

    __slots__ = ('_vocab', '_unk_token', '_unk_id', '_prefix', '_max_input_chars_per_word')

    def __init__(
        self,
        vocab: Union[Vocabulary, Mapping[str, int]],
        unk_token: str = "[UNK]",
        continuing_subword_prefix: str = "##",
        max_input_chars_per_word: int = 100,
    ):
        """
        Initialize tokenizer.

        Args:
            vocab: Vocabulary, or plain token to id mapping
            unk_token: Special token emitted for words that cannot be split
            continuing_subword_prefix: Prefix of non-initial pieces
            max_input_chars_per_word: Longer words map straight to ``unk_token``

        Raises:
            ValueError: If ``unk_token`` is empty, missing from the vocabulary
                or not special, or if ``max_input_chars_per_word`` <= 0
        """
        if vocab is None:
            raise ValueError("vocab cannot be None")
        if max_input_chars_per_word <= 0:
            raise ValueError("max_input_chars_per_word must be > 0")
        if not unk_token:
            raise ValueError("unk_token cannot be empty")

        self._vocab = vocab if isinstance(vocab, Vocabulary) else Vocabulary(vocab)
        self._unk_id = self._vocab.token_to_id(unk_token)
        if self._unk_id is None or not self._vocab.is_special(unk_token):
            raise ValueError(f"unk_token {unk_token!r} is not a special token of the vocabulary")

        self._unk_token = unk_token
        self._prefix = continuing_subword_prefix or ""
        self._max_input_chars_per_word = max_input_chars_per_word

    @property
    def vocab(self) -> Vocabulary:
        return self._vocab

    @property
    def vocab_size(self) -> int:
        return self._vocab.size

    @property
    def unk_token(self) -> str:
        return self._unk_token

    @property
    def continuing_subword_prefix(self) -> str:
        return self._prefix

    @property
    def max_input_chars_per_word(self) -> int:
        return self._max_input_chars_per_word

    def token_to_id(self, token: TextLike) -> Optional[int]:
        return self._vocab.token_to_id(token)

    def id_to_token(self, token_id: int) -> Optional[str]:
        return self._vocab.id_to_token(token_id)

    def add_tokens(self, tokens: Iterable[TokenDefinition]) -> None:
        """Register added tokens in the vocabulary."""
        for token in tokens:
            self._vocab.add_token(token.content, token.id, special=token.special)

    def clear_cache(self) -> None:
        """No-op; WordPiece keeps no per-fragment cache."""

    def _lookup(self, piece: str) -> Optional[int]:
        token_id = self._vocab.token_to_id(piece)
        if token_id is None or self._vocab.is_special(piece):
            return None
        return token_id

    def _tokenize_word(self, word: str, output: List[int]) -> None:
        if len(word) > self._max_input_chars_per_word:
            logger.debug("Word of %d characters exceeds the WordPiece limit", len(word))
            output.append(self._unk_id)
            return

        pieces: List[int] = []
        start = 0
        while start < len(word):
            prefix = self._prefix if start > 0 else ""
            end = len(word)
            token_id = None
            while end > start:
                token_id = self._lookup(prefix + word[start:end])
                if token_id is not None:
                    break
                end -= 1

            if token_id is None:
                logger.debug("No WordPiece covers %r at offset %d", word, start)
                output.append(self._unk_id)
                return

            pieces.append(token_id)
            start = end

        output.extend(pieces)

    def tokenize(self, fragments: Iterable[TextLike], output: List[int]) -> None:
        """
        Map pre-token fragments to token ids.

        Args:
            fragments: Pre-tokens, in order (one word each)
            output: Receives the token ids
        """
        for fragment in fragments:
            word = str(fragment)
            if word:
                self._tokenize_word(word, output)

    def detokenize(
        self,
        ids: Iterable[int],
        skip_special_tokens: bool,
        output: List[str],
    ) -> None:
        """Map token ids back to token strings; unknown ids are skipped."""
        for token_id in ids:
            token = self._vocab.id_to_token(token_id)
            if token is None:
                logger.debug("Skipping id %d missing from the vocabulary", token_id)
                continue
            if skip_special_tokens and self._vocab.is_special(token):
                continue
            output.append(token)
