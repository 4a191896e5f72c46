"""
Truncation Module

Sliding-window range generation and the truncators built on it.

A range generator covers ``[0, length)`` with windows of at most
``window_max`` positions; consecutive windows share ``stride`` positions,
so the window start advances by ``window_max - stride`` per step. Only the
window at the far end may be shorter, clamped to the sequence bounds.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Sequence, Tuple

from ..core.types import Range

Windows = List[List[int]]


class RangeGenerator(ABC):
    """Produces sliding windows over a sequence of a given length."""

    def get_ranges(self, length: int, window_max: int, stride: int) -> Iterator[Range]:
        """
        Generate windows covering ``[0, length)``.

        Args:
            length: Sequence length
            window_max: Maximum window length
            stride: Positions shared by consecutive windows

        Returns:
            Iterator of ranges, anchored according to the direction

        Raises:
            ValueError: If length <= 0, window_max <= 0, stride < 0 or
                stride >= window_max
        """
        if length <= 0:
            raise ValueError(f"length must be > 0, got {length}")
        if window_max <= 0:
            raise ValueError(f"window_max must be > 0, got {window_max}")
        if stride < 0:
            raise ValueError(f"stride must be >= 0, got {stride}")
        if stride >= window_max:
            raise ValueError(f"stride ({stride}) must be < window_max ({window_max})")

        return self._generate(length, window_max, window_max - stride)

    @abstractmethod
    def _generate(self, length: int, window_max: int, step: int) -> Iterator[Range]:
        ...


class RightDirectionRangeGenerator(RangeGenerator):
    """First window starts at 0; windows walk forward, the last is clamped to length."""

    def _generate(self, length, window_max, step):
        start = 0
        while start < length:
            stop = min(start + window_max, length)
            yield Range.from_to(start, stop)
            if stop == length:
                break
            start += step


class LeftDirectionRangeGenerator(RangeGenerator):
    """First window ends at length; windows walk backward, the last is clamped to 0."""

    def _generate(self, length, window_max, step):
        stop = length
        while stop > 0:
            start = max(stop - window_max, 0)
            yield Range.from_to(start, stop)
            if start == 0:
                break
            stop -= step


class Truncator(ABC):
    """Splits over-length sequences into model-sized windows."""

    @abstractmethod
    def truncate(
        self,
        tokens_a: Sequence[int],
        tokens_b: Optional[Sequence[int]],
        num_added_tokens: int,
    ) -> Tuple[Windows, Optional[Windows]]:
        """
        Window one sequence or a pair.

        Args:
            tokens_a: First sequence ids
            tokens_b: Second sequence ids, None for single input
            num_added_tokens: Special tokens the post-processor will insert

        Returns:
            (windows of A, windows of B or None); the first window of each
            is the primary encoding, the rest are overflow
        """


class DefaultTruncator(Truncator):
    """Pass-through: a single window holding the whole sequence."""

    def truncate(self, tokens_a, tokens_b, num_added_tokens):
        return [list(tokens_a)], None if tokens_b is None else [list(tokens_b)]


class LongestFirstTruncator(Truncator):
    """
    Sliding-window truncation to ``max_length`` including special tokens.

    For a pair the budget is split between both sequences: the shorter one
    keeps its length when it fits (and at most half the budget otherwise),
    the longer one gets the rest.
    """

    __slots__ = ('_range_generator', '_max_length', '_stride')

    def __init__(self, range_generator: RangeGenerator, max_length: int, stride: int = 0):
        if range_generator is None:
            raise ValueError("range_generator cannot be None")
        if max_length <= 0:
            raise ValueError("max_length must be > 0")
        if stride < 0:
            raise ValueError("stride must be >= 0")
        self._range_generator = range_generator
        self._max_length = max_length
        self._stride = stride

    @property
    def max_length(self) -> int:
        return self._max_length

    @property
    def stride(self) -> int:
        return self._stride

    def _windows(self, tokens: Sequence[int], window: int) -> Windows:
        if len(tokens) <= window:
            return [list(tokens)]
        return [
            list(tokens[r.as_slice()])
            for r in self._range_generator.get_ranges(len(tokens), window, self._stride)
        ]

    @staticmethod
    def split_budget(len_a: int, len_b: int, budget: int) -> Tuple[int, int]:
        """Window sizes for a pair under the longest-first rule."""
        swap = len_a > len_b
        n1, n2 = (len_b, len_a) if swap else (len_a, len_b)

        if n1 > budget:
            n2 = n1
        else:
            n2 = max(n1, budget - n1)

        if n1 + n2 > budget:
            n1 = budget // 2
            n2 = n1 + budget % 2

        return (n2, n1) if swap else (n1, n2)

    def truncate(self, tokens_a, tokens_b, num_added_tokens):
        budget = self._max_length - num_added_tokens
        if budget <= 0:
            raise ValueError(
                f"max_length ({self._max_length}) leaves no room next to "
                f"{num_added_tokens} special tokens"
            )

        if tokens_b is None:
            return self._windows(tokens_a, budget), None

        if len(tokens_a) + len(tokens_b) <= budget:
            return [list(tokens_a)], [list(tokens_b)]

        window_a, window_b = self.split_budget(len(tokens_a), len(tokens_b), budget)
        return self._windows(tokens_a, window_a), self._windows(tokens_b, window_b)
