"""
Post-Processor Module

Inserts task-specific special tokens around one or two tokenized sequences
and concatenates them into the final model input.

``num_added_tokens`` always matches what ``post_process`` inserts, so
callers can reserve the budget before truncating.
"""

from abc import ABC, abstractmethod
from itertools import zip_longest
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.types import TokenDefinition


class PostProcessor(ABC):
    """Special-token insertion for single sequences and pairs."""

    @abstractmethod
    def num_added_tokens(self, is_pair: bool) -> int:
        """Number of special tokens ``post_process`` inserts."""

    @abstractmethod
    def _process(
        self,
        tokens_a: Sequence[int],
        tokens_b: Optional[Sequence[int]],
        output: List[int],
    ) -> None:
        ...

    def special_tokens(self) -> List[TokenDefinition]:
        """Tokens this processor may insert."""
        return []

    def post_process(
        self,
        tokens_a: Sequence[int],
        tokens_b: Optional[Sequence[int]],
        add_special_tokens: bool,
        output: List[int],
    ) -> None:
        """
        Combine sequences into one input.

        Args:
            tokens_a: First sequence ids
            tokens_b: Second sequence ids (None for single-sequence input)
            add_special_tokens: Insert special tokens; plain concatenation otherwise
            output: Receives the combined ids

        Raises:
            ValueError: If tokens_a is None
        """
        if tokens_a is None:
            raise ValueError("tokens_a cannot be None")

        if not add_special_tokens:
            output.extend(tokens_a)
            if tokens_b is not None:
                output.extend(tokens_b)
            return

        self._process(tokens_a, tokens_b, output)

    def post_process_windows(
        self,
        windows_a: Sequence[Sequence[int]],
        windows_b: Optional[Sequence[Sequence[int]]],
        add_special_tokens: bool,
    ) -> List[List[int]]:
        """
        Post-process overflow windows pairwise.

        In pair mode, once the second sequence runs out of windows the
        remaining windows are processed as single sequences. A second
        sequence with more windows than the first is paired with an empty
        first sequence.
        """
        results: List[List[int]] = []
        if windows_b is None:
            for window in windows_a:
                output: List[int] = []
                self.post_process(window, None, add_special_tokens, output)
                results.append(output)
            return results

        exhausted = object()
        for window_a, window_b in zip_longest(windows_a, windows_b, fillvalue=exhausted):
            if window_a is exhausted:
                window_a = ()
            if window_b is exhausted:
                window_b = None
            output = []
            self.post_process(window_a, window_b, add_special_tokens, output)
            results.append(output)
        return results


class DefaultPostProcessor(PostProcessor):
    """Plain concatenation."""

    def num_added_tokens(self, is_pair: bool) -> int:
        return 0

    def _process(self, tokens_a, tokens_b, output):
        output.extend(tokens_a)
        if tokens_b is not None:
            output.extend(tokens_b)


class ByteLevelPostProcessor(DefaultPostProcessor):
    """
    Byte-level post-processor.

    Offsets are not tracked by this pipeline, so ``trim_offsets`` is
    accepted for configuration compatibility and has no effect.
    """

    __slots__ = ('_trim_offsets',)

    def __init__(self, trim_offsets: bool = False):
        self._trim_offsets = trim_offsets

    @property
    def trim_offsets(self) -> bool:
        return self._trim_offsets


class RobertaPostProcessor(PostProcessor):
    """
    Wraps every sequence as ``[CLS] seq [SEP]``.

    Single: ``[CLS] A [SEP]`` (2 added)
    Pair: ``[CLS] A [SEP] [CLS] B [SEP]`` (4 added)
    """

    __slots__ = ('_sep', '_cls')

    def __init__(self, sep: TokenDefinition, cls: TokenDefinition):
        if sep is None or cls is None:
            raise ValueError("sep and cls tokens are required")
        self._sep = sep
        self._cls = cls

    def num_added_tokens(self, is_pair: bool) -> int:
        return 4 if is_pair else 2

    def special_tokens(self) -> List[TokenDefinition]:
        return [self._cls, self._sep]

    def _process(self, tokens_a, tokens_b, output):
        output.append(self._cls.id)
        output.extend(tokens_a)
        output.append(self._sep.id)

        if tokens_b is not None:
            output.append(self._cls.id)
            output.extend(tokens_b)
            output.append(self._sep.id)


class BertPostProcessor(PostProcessor):
    """
    BERT layout.

    Single: ``[CLS] A [SEP]`` (2 added)
    Pair: ``[CLS] A [SEP] B [SEP]`` (3 added)
    """

    __slots__ = ('_sep', '_cls')

    def __init__(self, sep: TokenDefinition, cls: TokenDefinition):
        if sep is None or cls is None:
            raise ValueError("sep and cls tokens are required")
        self._sep = sep
        self._cls = cls

    def num_added_tokens(self, is_pair: bool) -> int:
        return 3 if is_pair else 2

    def special_tokens(self) -> List[TokenDefinition]:
        return [self._cls, self._sep]

    def _process(self, tokens_a, tokens_b, output):
        output.append(self._cls.id)
        output.extend(tokens_a)
        output.append(self._sep.id)

        if tokens_b is not None:
            output.extend(tokens_b)
            output.append(self._sep.id)


SEQUENCE_A = "$A"
SEQUENCE_B = "$B"

Template = Union[str, Sequence[str]]


def parse_template(template: Template) -> Tuple[str, ...]:
    """
    Split a template into pieces.

    ``"[CLS] $A [SEP]"`` becomes ``("[CLS]", "$A", "[SEP]")``. A
    ``:type_id`` suffix is accepted and dropped; bare ``$`` means ``$A``.
    """
    pieces = template.split() if isinstance(template, str) else list(template)
    parsed = []
    for piece in pieces:
        if piece.startswith("$"):
            name = piece.split(":", 1)[0]
            if name in ("$", "$0"):
                name = SEQUENCE_A
            elif name == "$1":
                name = SEQUENCE_B
            parsed.append(name)
        else:
            special, _, type_id = piece.rpartition(":")
            parsed.append(special if special and type_id.isdigit() else piece)
    return tuple(parsed)


class TemplatePostProcessor(PostProcessor):
    """
    Template-driven special-token insertion.

    Example:
        TemplatePostProcessor(
            single="[CLS] $A [SEP]",
            pair="[CLS] $A [SEP] $B [SEP]",
            special_tokens={"[CLS]": 101, "[SEP]": 102},
        )
    """

    __slots__ = ('_single', '_pair', '_special_ids')

    def __init__(
        self,
        single: Template,
        pair: Optional[Template] = None,
        special_tokens: Union[Mapping[str, int], Iterable[TokenDefinition]] = (),
    ):
        """
        Initialize template processor.

        Raises:
            ValueError: If a template misses or repeats a sequence
                placeholder, or names an undeclared special token
        """
        if isinstance(special_tokens, Mapping):
            self._special_ids: Dict[str, int] = dict(special_tokens)
        else:
            self._special_ids = {t.content: t.id for t in special_tokens}

        self._single = parse_template(single)
        self._validate(self._single, expected=(SEQUENCE_A,))

        self._pair: Optional[Tuple[str, ...]] = None
        if pair is not None:
            self._pair = parse_template(pair)
            self._validate(self._pair, expected=(SEQUENCE_A, SEQUENCE_B))

    def _validate(self, pieces: Tuple[str, ...], expected: Tuple[str, ...]) -> None:
        for name in (SEQUENCE_A, SEQUENCE_B):
            count = pieces.count(name)
            wanted = 1 if name in expected else 0
            if count != wanted:
                raise ValueError(
                    f"Template {' '.join(pieces)!r} must contain {name} {wanted} time(s), found {count}"
                )
        for piece in pieces:
            if piece not in (SEQUENCE_A, SEQUENCE_B) and piece not in self._special_ids:
                raise ValueError(f"Template special token {piece!r} is not declared")

    def _template(self, is_pair: bool) -> Tuple[str, ...]:
        if not is_pair:
            return self._single
        if self._pair is None:
            raise ValueError("No pair template configured")
        return self._pair

    def num_added_tokens(self, is_pair: bool) -> int:
        pieces = self._template(is_pair)
        return sum(1 for p in pieces if p not in (SEQUENCE_A, SEQUENCE_B))

    def special_tokens(self) -> List[TokenDefinition]:
        return [
            TokenDefinition(token_id, content, special=True)
            for content, token_id in self._special_ids.items()
        ]

    def _process(self, tokens_a, tokens_b, output):
        for piece in self._template(tokens_b is not None):
            if piece == SEQUENCE_A:
                output.extend(tokens_a)
            elif piece == SEQUENCE_B:
                output.extend(tokens_b)
            else:
                output.append(self._special_ids[piece])
