"""
Padding Module

Pads a batch of id sequences to a common length and emits attention flags.
Padding never truncates: a sequence longer than the target is an error,
truncation is a separate stage applied beforehand.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.types import PaddedToken, TokenDefinition


class PaddingSizeProvider(ABC):
    """Chooses the padded length of a batch."""

    @abstractmethod
    def get_padding_size(self, lengths: Sequence[int]) -> int:
        ...


class BatchLongestSizeProvider(PaddingSizeProvider):
    """Target = longest sequence of the batch (0 for an empty batch)."""

    def get_padding_size(self, lengths: Sequence[int]) -> int:
        return max(lengths, default=0)


class FixedPaddingSizeProvider(PaddingSizeProvider):
    """Target = constant size regardless of batch content."""

    __slots__ = ('_size',)

    def __init__(self, size: int):
        if size < 0:
            raise ValueError("size must be >= 0")
        self._size = size

    @property
    def size(self) -> int:
        return self._size

    def get_padding_size(self, lengths: Sequence[int]) -> int:
        return self._size


class Padding(ABC):
    """Batch padding stage."""

    @property
    def pad_token(self) -> Optional[TokenDefinition]:
        return None

    @abstractmethod
    def pad(
        self,
        batch: Sequence[Sequence[int]],
        output: List[List[PaddedToken]],
    ) -> None:
        """
        Pad a batch.

        Args:
            batch: Id sequences
            output: Receives one padded sequence per input sequence

        Raises:
            ValueError: If a sequence is longer than the padding target
        """


class DefaultPadding(Padding):
    """Identity: real tokens only, every attention flag is 1."""

    def pad(self, batch, output):
        for sequence in batch:
            output.append([PaddedToken(token_id, 1) for token_id in sequence])


class _DirectionalPadding(Padding):
    __slots__ = ('_size_provider', '_pad_token')

    def __init__(self, size_provider: PaddingSizeProvider, pad_token: TokenDefinition):
        """
        Initialize padding.

        Args:
            size_provider: Chooses the target length
            pad_token: Token emitted at padding positions
        """
        if size_provider is None:
            raise ValueError("size_provider cannot be None")
        if pad_token is None:
            raise ValueError("pad_token cannot be None")
        self._size_provider = size_provider
        self._pad_token = pad_token

    @property
    def pad_token(self) -> TokenDefinition:
        return self._pad_token

    @property
    def size_provider(self) -> PaddingSizeProvider:
        return self._size_provider

    @abstractmethod
    def _pad_one(self, sequence: Sequence[int], fill: List[PaddedToken]) -> List[PaddedToken]:
        ...

    def pad(self, batch, output):
        size = self._size_provider.get_padding_size([len(s) for s in batch])
        filler = PaddedToken(self._pad_token.id, 0)

        for sequence in batch:
            if len(sequence) > size:
                raise ValueError(
                    f"Sequence of length {len(sequence)} exceeds padding size {size}; "
                    f"truncate before padding"
                )
            output.append(self._pad_one(sequence, [filler] * (size - len(sequence))))


class RightPadding(_DirectionalPadding):
    """Real tokens first, padding after them."""

    def _pad_one(self, sequence, fill):
        return [PaddedToken(token_id, 1) for token_id in sequence] + fill


class LeftPadding(_DirectionalPadding):
    """Padding first, real tokens aligned to the end."""

    def _pad_one(self, sequence, fill):
        return fill + [PaddedToken(token_id, 1) for token_id in sequence]
