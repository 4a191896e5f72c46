"""
BPE Tokenizer Module

Merge-rank Byte-Pair Encoding over an externally supplied vocabulary and
merge table:
- Character-level initial segmentation with subword prefix / word suffix
- Byte-fallback tokens (``<0xHH>``) for characters outside the vocabulary
- Priority-queue merge application (lowest rank first, leftmost on ties)
- Per-fragment result cache

Training a merge table is out of scope; merges are only applied.
"""

import heapq
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.converters import (
    ByteToTokenConverter,
    CharToTokenConverter,
    OneToManyCachedConverter,
    OneToOneCachedConverter,
    TextToBytesConverter,
    Utf8CharSplitter,
)
from ..core.pool import byte_list_pool, view_list_pool
from ..core.text_view import TextLike, TextView
from ..core.types import TokenDefinition
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)

MergeSpec = Union[str, Sequence[str]]


def parse_merge(merge: MergeSpec) -> Tuple[str, str]:
    """
    Parse one merge rule.

    Accepts ``"a b"`` strings or two-element sequences.

    Raises:
        ValueError: If the rule does not consist of exactly two parts
    """
    if isinstance(merge, str):
        parts = merge.split(" ")
    else:
        parts = list(merge)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid merge rule {merge!r}: expected two parts")
    return parts[0], parts[1]


class BPETokenizer:
    """
    BPE model mapping pre-token fragments to token ids.

    Algorithm (per fragment):
    1. Split into code points and map each to its vocabulary key (first
       character plain, following characters with ``continuing_subword_prefix``,
       last character with ``end_of_word_suffix``)
    2. Characters missing from the vocabulary become byte-fallback tokens,
       else the unknown token, else they are dropped
    3. Apply merges from a priority queue ordered by (rank, position)
    4. Cache the resulting id sequence by fragment content

    Complexity:
    - Encoding: O(m log m) per fragment of m characters
    """

    __slots__ = (
        '_vocab', '_merges', '_unk_token', '_unk_id', '_fuse_unk',
        '_byte_fallback', '_prefix', '_suffix', '_max_cache_size', '_cache',
        '_char_splitter', '_char_to_token', '_char_to_bytes', '_byte_to_token',
    )

    def __init__(
        self,
        vocab: Union[Vocabulary, Mapping[str, int]],
        merges: Optional[Iterable[MergeSpec]] = None,
        unk_token: Optional[str] = None,
        fuse_unk: bool = False,
        byte_fallback: bool = False,
        continuing_subword_prefix: str = "",
        end_of_word_suffix: str = "",
        max_cache_size: int = 10000,
    ):
        """
        Initialize tokenizer.

        Args:
            vocab: Vocabulary, or plain token to id mapping
            merges: Merge rules in priority order (rank = position)
            unk_token: Token used for characters missing from the vocabulary
            fuse_unk: Collapse consecutive unknown tokens into one
            byte_fallback: Use ``<0xHH>`` tokens for missing characters
            continuing_subword_prefix: Prefix of non-initial subwords
            end_of_word_suffix: Suffix of word-final subwords
            max_cache_size: Maximum number of cached fragments (0 disables)

        Raises:
            ValueError: On an unknown ``unk_token`` or an invalid merge rule
        """
        if vocab is None:
            raise ValueError("vocab cannot be None")
        if max_cache_size < 0:
            raise ValueError("max_cache_size must be >= 0")

        self._vocab = vocab if isinstance(vocab, Vocabulary) else Vocabulary(vocab)
        self._prefix = continuing_subword_prefix or ""
        self._suffix = end_of_word_suffix or ""
        self._fuse_unk = fuse_unk
        self._byte_fallback = byte_fallback
        self._max_cache_size = max_cache_size
        self._cache: Dict[str, Tuple[int, ...]] = {}

        self._unk_token = unk_token
        self._unk_id: Optional[int] = None
        if unk_token is not None:
            self._unk_id = self._vocab.token_to_id(unk_token)
            if self._unk_id is None:
                raise ValueError(f"unk_token {unk_token!r} is not in the vocabulary")

        # (left id, right id) -> (rank, merged id)
        self._merges: Dict[Tuple[int, int], Tuple[int, int]] = {}
        for rank, merge in enumerate(merges or ()):
            self._add_merge(rank, merge)

        self._char_splitter = Utf8CharSplitter()
        self._char_to_token = CharToTokenConverter(self._prefix, self._suffix)
        self._char_to_bytes = OneToManyCachedConverter(TextToBytesConverter())
        self._byte_to_token = OneToOneCachedConverter(ByteToTokenConverter())

    def _add_merge(self, rank: int, merge: MergeSpec) -> None:
        left, right = parse_merge(merge)
        if self._prefix and right.startswith(self._prefix):
            merged = left + right[len(self._prefix):]
        else:
            merged = left + right

        ids = []
        for part in (left, right, merged):
            token_id = self._vocab.token_to_id(part)
            if token_id is None:
                raise ValueError(f"Merge {left!r} {right!r}: {part!r} is not in the vocabulary")
            if self._vocab.is_special(part):
                raise ValueError(f"Merge {left!r} {right!r}: {part!r} is a special token")
            ids.append(token_id)

        # First occurrence of a pair keeps its rank
        self._merges.setdefault((ids[0], ids[1]), (rank, ids[2]))

    @property
    def vocab(self) -> Vocabulary:
        return self._vocab

    @property
    def vocab_size(self) -> int:
        return self._vocab.size

    @property
    def num_merges(self) -> int:
        return len(self._merges)

    @property
    def unk_token(self) -> Optional[str]:
        return self._unk_token

    @property
    def byte_fallback(self) -> bool:
        return self._byte_fallback

    def token_to_id(self, token: TextLike) -> Optional[int]:
        return self._vocab.token_to_id(token)

    def id_to_token(self, token_id: int) -> Optional[str]:
        return self._vocab.id_to_token(token_id)

    def add_tokens(self, tokens: Iterable[TokenDefinition]) -> None:
        """Register added tokens in the vocabulary."""
        for token in tokens:
            self._vocab.add_token(token.content, token.id, special=token.special)
        self._cache.clear()

    def _byte_fallback_ids(self, char: TextView, symbols: List[int]) -> bool:
        with byte_list_pool().acquire() as data:
            self._char_to_bytes.convert(char, data)
            ids = [self._vocab.token_to_id(self._byte_to_token.convert(b)) for b in data]

        if any(token_id is None for token_id in ids):
            return False
        symbols.extend(ids)
        return True

    def _initial_symbols(self, fragment: TextView) -> List[int]:
        symbols: List[int] = []
        unk_pending = False

        with view_list_pool().acquire() as chars:
            self._char_splitter.convert(fragment, chars)
            last = len(chars) - 1
            for i, char in enumerate(chars):
                key = self._char_to_token.convert(char, i == 0, i == last)
                token_id = self._vocab.token_to_id(key)
                if token_id is not None:
                    symbols.append(token_id)
                    unk_pending = False
                    continue

                if self._byte_fallback and self._byte_fallback_ids(char, symbols):
                    unk_pending = False
                    continue

                if self._unk_id is None:
                    logger.debug("Dropping character %r missing from the vocabulary", char)
                    continue

                if not (self._fuse_unk and unk_pending):
                    symbols.append(self._unk_id)
                unk_pending = True

        return symbols

    def _apply_merges(self, symbols: List[int]) -> List[int]:
        """
        Apply BPE merges to a symbol sequence.

        Symbols form a linked list over their initial positions; queue
        entries are (rank, position, merged id) and are skipped when the
        pair at that position has changed since they were pushed.
        """
        n = len(symbols)
        if n < 2 or not self._merges:
            return symbols

        merges = self._merges
        nxt = list(range(1, n + 1))
        nxt[-1] = -1
        prv = list(range(-1, n - 1))
        alive = [True] * n

        queue = []
        for i in range(n - 1):
            merge = merges.get((symbols[i], symbols[i + 1]))
            if merge is not None:
                queue.append((merge[0], i, merge[1]))
        heapq.heapify(queue)

        while queue:
            rank, i, merged_id = heapq.heappop(queue)
            if not alive[i]:
                continue
            j = nxt[i]
            if j < 0:
                continue
            current = merges.get((symbols[i], symbols[j]))
            if current is None or current[0] != rank:
                continue

            symbols[i] = merged_id
            alive[j] = False
            k = nxt[j]
            nxt[i] = k
            if k >= 0:
                prv[k] = i

            p = prv[i]
            if p >= 0:
                merge = merges.get((symbols[p], merged_id))
                if merge is not None:
                    heapq.heappush(queue, (merge[0], p, merge[1]))
            if k >= 0:
                merge = merges.get((merged_id, symbols[k]))
                if merge is not None:
                    heapq.heappush(queue, (merge[0], i, merge[1]))

        return [symbols[i] for i in range(n) if alive[i]]

    def _tokenize_fragment(self, fragment: TextLike) -> Tuple[int, ...]:
        key = str(fragment)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        logger.debug("BPE cache miss for %r", key)
        ids = tuple(self._apply_merges(self._initial_symbols(TextView.of(fragment))))

        if len(self._cache) < self._max_cache_size:
            self._cache[key] = ids
        return ids

    def tokenize(self, fragments: Iterable[TextLike], output: List[int]) -> None:
        """
        Map pre-token fragments to token ids.

        Args:
            fragments: Pre-tokens, in order
            output: Receives the token ids
        """
        for fragment in fragments:
            output.extend(self._tokenize_fragment(fragment))

    def detokenize(
        self,
        ids: Iterable[int],
        skip_special_tokens: bool,
        output: List[str],
    ) -> None:
        """
        Map token ids back to token strings.

        Args:
            ids: Token ids
            skip_special_tokens: Leave out special tokens
            output: Receives the token strings
        """
        for token_id in ids:
            token = self._vocab.id_to_token(token_id)
            if token is None:
                logger.debug("Skipping id %d missing from the vocabulary", token_id)
                continue
            if skip_special_tokens and self._vocab.is_special(token):
                continue
            output.append(token)

    def clear_cache(self) -> None:
        self._cache.clear()
