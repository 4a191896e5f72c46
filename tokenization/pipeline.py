"""
Tokenization Pipeline Module

End-to-end encode and decode over the configured stages.

Encode:
    split on added tokens -> normalize -> pre-tokenize -> model ->
    truncate -> post-process each window -> pad -> Encoding

Decode:
    ids -> token strings -> decoder -> text
"""

import dataclasses
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import regex

from .config import PipelineConfig
from .core.pool import list_pool
from .core.text_view import TextView
from .core.types import Encoding, PaddedToken, TokenDefinition
from .processing.padding import DefaultPadding, Padding
from .processing.post_processor import DefaultPostProcessor, PostProcessor
from .processing.truncation import DefaultTruncator, Truncator
from .text.decoder import Decoder, DefaultDecoder
from .text.normalizer import DefaultNormalizer, Normalizer
from .text.pre_tokenizer import DefaultPreTokenizer, PreTokenizer
from .text.tokenizer import BPETokenizer
from .text.wordpiece import WordPieceTokenizer

logger = logging.getLogger(__name__)

EncodeInput = Union[str, Tuple[str, Optional[str]]]
TokenizerModel = Union[BPETokenizer, WordPieceTokenizer]


class TokenizationPipeline:
    """
    Configurable tokenization pipeline.

    Every stage is optional and defaults to its identity implementation,
    so a pipeline built from a tokenizer alone maps text straight to model
    ids.

    Example:
        >>> pipeline = TokenizationPipeline(
        ...     tokenizer,
        ...     pre_tokenizer=ByteLevelPreTokenizer(),
        ...     decoder=ByteLevelDecoder(),
        ... )
        >>> encoding = pipeline.encode("Hello world")
        >>> pipeline.decode(encoding.ids)
        ' Hello world'

    Instances are not thread-safe: BPE and converter caches are unlocked.
    """

    __slots__ = (
        '_tokenizer', '_normalizer', '_pre_tokenizer', '_post_processor',
        '_truncator', '_padding', '_decoder', '_added_ids', '_added_pattern',
    )

    def __init__(
        self,
        tokenizer: TokenizerModel,
        normalizer: Optional[Normalizer] = None,
        pre_tokenizer: Optional[PreTokenizer] = None,
        post_processor: Optional[PostProcessor] = None,
        truncator: Optional[Truncator] = None,
        padding: Optional[Padding] = None,
        decoder: Optional[Decoder] = None,
        added_tokens: Iterable[TokenDefinition] = (),
    ):
        """
        Initialize pipeline.

        Args:
            tokenizer: BPE or WordPiece model (owns the vocabulary)
            normalizer: Text rewrites before splitting
            pre_tokenizer: Fragment splitter
            post_processor: Special-token insertion
            truncator: Sliding-window truncation
            padding: Batch padding
            decoder: Token strings to text
            added_tokens: Tokens matched verbatim in the raw input, bypassing
                normalization and the model
        """
        if tokenizer is None:
            raise ValueError("tokenizer cannot be None")

        self._tokenizer = tokenizer
        self._normalizer = normalizer or DefaultNormalizer()
        self._pre_tokenizer = pre_tokenizer or DefaultPreTokenizer()
        self._post_processor = post_processor or DefaultPostProcessor()
        self._truncator = truncator or DefaultTruncator()
        self._padding = padding or DefaultPadding()
        self._decoder = decoder or DefaultDecoder()

        added_tokens = list(added_tokens)
        specials = [
            dataclasses.replace(token, special=True)
            for token in self._post_processor.special_tokens()
        ]
        pad_token = self._padding.pad_token
        if pad_token is not None:
            specials.append(dataclasses.replace(pad_token, special=True))
        tokenizer.add_tokens(added_tokens + specials)

        self._added_ids: Dict[str, int] = {t.content: t.id for t in added_tokens}
        self._added_pattern = None
        if self._added_ids:
            # Longest content first so overlapping tokens match greedily
            contents = sorted(self._added_ids, key=len, reverse=True)
            self._added_pattern = regex.compile("|".join(regex.escape(c) for c in contents))

        logger.debug(
            "Pipeline ready: vocab_size=%d, added_tokens=%d",
            tokenizer.vocab_size, len(self._added_ids),
        )

    @classmethod
    def from_config(
        cls,
        tokenizer: TokenizerModel,
        config: PipelineConfig,
        **stages,
    ) -> "TokenizationPipeline":
        """
        Build a pipeline from plain settings.

        Args:
            tokenizer: BPE or WordPiece model
            config: Pre-tokenizer, padding and truncation settings
            **stages: Remaining stages (normalizer, post_processor, decoder,
                added_tokens)
        """
        return cls(
            tokenizer,
            pre_tokenizer=config.pre_tokenizer.build(),
            padding=config.padding.build() if config.padding else None,
            truncator=config.truncation.build() if config.truncation else None,
            **stages,
        )

    @property
    def tokenizer(self) -> TokenizerModel:
        return self._tokenizer

    @property
    def normalizer(self) -> Normalizer:
        return self._normalizer

    @property
    def pre_tokenizer(self) -> PreTokenizer:
        return self._pre_tokenizer

    @property
    def post_processor(self) -> PostProcessor:
        return self._post_processor

    @property
    def truncator(self) -> Truncator:
        return self._truncator

    @property
    def padding(self) -> Padding:
        return self._padding

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    @property
    def vocab_size(self) -> int:
        return self._tokenizer.vocab_size

    def token_to_id(self, token: str) -> Optional[int]:
        return self._tokenizer.token_to_id(token)

    def id_to_token(self, token_id: int) -> Optional[str]:
        return self._tokenizer.id_to_token(token_id)

    def num_added_tokens(self, is_pair: bool) -> int:
        return self._post_processor.num_added_tokens(is_pair)

    def _split_added(self, text: str) -> List[Tuple[TextView, Optional[int]]]:
        """Split raw text into (segment, added token id or None) pieces."""
        view = TextView.of(text)
        if self._added_pattern is None:
            return [(view, None)]

        segments: List[Tuple[TextView, Optional[int]]] = []
        position = 0
        for match in self._added_pattern.finditer(text):
            if match.start() > position:
                segments.append((view[position:match.start()], None))
            segments.append((view[match.start():match.end()], self._added_ids[match.group()]))
            position = match.end()
        if position < len(text) or not segments:
            segments.append((view[position:], None))
        return segments

    def _encode_sequence(self, text: str) -> List[int]:
        ids: List[int] = []
        with list_pool().acquire() as fragments:
            for segment, token_id in self._split_added(text):
                if token_id is not None:
                    ids.append(token_id)
                    continue

                normalized = self._normalizer.normalize(segment)
                self._pre_tokenizer.pre_tokenize(normalized, fragments)
                self._tokenizer.tokenize(fragments, ids)
                fragments.clear()
        return ids

    def _encode_windows(
        self,
        text_a: str,
        text_b: Optional[str],
        add_special_tokens: bool,
    ) -> List[List[int]]:
        if text_a is None:
            raise ValueError("text_a cannot be None")

        tokens_a = self._encode_sequence(text_a)
        tokens_b = None if text_b is None else self._encode_sequence(text_b)

        added = (
            self._post_processor.num_added_tokens(tokens_b is not None)
            if add_special_tokens else 0
        )
        windows_a, windows_b = self._truncator.truncate(tokens_a, tokens_b, added)
        return self._post_processor.post_process_windows(
            windows_a, windows_b, add_special_tokens
        )

    def _to_encoding(self, padded: Sequence[PaddedToken]) -> Encoding:
        pad_token = self._padding.pad_token
        tokens = []
        for entry in padded:
            if entry.attention == 0 and pad_token is not None:
                tokens.append(pad_token.content)
            else:
                token = self._tokenizer.id_to_token(entry.id)
                tokens.append("" if token is None else token)

        return Encoding(
            ids=[entry.id for entry in padded],
            tokens=tokens,
            attention_mask=[entry.attention for entry in padded],
        )

    def _pad_groups(self, groups: List[List[List[int]]]) -> List[Encoding]:
        """Pad every window of every input together, first window leads each group."""
        flat = [window for group in groups for window in group]
        padded: List[List[PaddedToken]] = []
        self._padding.pad(flat, padded)

        encodings: List[Encoding] = []
        position = 0
        for group in groups:
            window_encodings = [
                self._to_encoding(p) for p in padded[position:position + len(group)]
            ]
            position += len(group)

            first = window_encodings[0]
            first.overflowing = window_encodings[1:]
            encodings.append(first)
        return encodings

    def encode(
        self,
        text_a: str,
        text_b: Optional[str] = None,
        add_special_tokens: bool = True,
    ) -> Encoding:
        """
        Encode a sequence or a sequence pair.

        Args:
            text_a: First sequence
            text_b: Second sequence (None for single-sequence input)
            add_special_tokens: Let the post-processor insert special tokens

        Returns:
            Encoding of the first window; further windows are in
            ``overflowing``

        Raises:
            ValueError: If text_a is None or a stage contract is violated
        """
        windows = self._encode_windows(text_a, text_b, add_special_tokens)
        return self._pad_groups([windows])[0]

    def encode_batch(
        self,
        inputs: Sequence[EncodeInput],
        add_special_tokens: bool = True,
    ) -> List[Encoding]:
        """
        Encode a batch; padding is computed across the whole batch.

        Args:
            inputs: Strings, or (text_a, text_b) pairs

        Returns:
            One Encoding per input
        """
        groups = []
        for item in inputs:
            if isinstance(item, tuple):
                text_a, text_b = item
            else:
                text_a, text_b = item, None
            groups.append(self._encode_windows(text_a, text_b, add_special_tokens))

        if not groups:
            return []
        return self._pad_groups(groups)

    def decode(self, ids: Iterable[int], skip_special_tokens: bool = False) -> str:
        """
        Decode token IDs to text.

        Args:
            ids: Token IDs
            skip_special_tokens: Leave out special tokens

        Returns:
            Decoded text
        """
        pool = list_pool()
        with pool.acquire() as tokens, pool.acquire() as fragments:
            self._tokenizer.detokenize(ids, skip_special_tokens, tokens)
            self._decoder.decode(tokens, fragments)
            return "".join(fragments)

    def decode_batch(
        self,
        sequences: Iterable[Iterable[int]],
        skip_special_tokens: bool = False,
    ) -> List[str]:
        return [self.decode(ids, skip_special_tokens) for ids in sequences]
