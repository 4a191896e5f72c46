"""
Value Types Module

Immutable records exchanged between pipeline stages.
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple


@dataclass(frozen=True)
class TokenDefinition:
    """Vocabulary-defined token: id plus canonical string form."""
    id: int
    content: str
    special: bool = False


class PaddedToken(NamedTuple):
    """Padded batch entry. ``attention`` is 0 only for injected padding."""
    id: int
    attention: int


@dataclass(frozen=True)
class Range:
    """
    Half-open window ``[offset, offset + length)`` into a sequence.

    Attributes:
        offset: First position covered
        length: Number of positions covered
    """
    offset: int
    length: int

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.length < 0:
            raise ValueError(f"length must be >= 0, got {self.length}")

    @classmethod
    def from_to(cls, start: int, stop: int) -> "Range":
        return cls(start, stop - start)

    @property
    def start(self) -> int:
        return self.offset

    @property
    def stop(self) -> int:
        return self.offset + self.length

    def as_slice(self) -> slice:
        return slice(self.offset, self.offset + self.length)


@dataclass
class Encoding:
    """
    Result of tokenizing one input.

    Attributes:
        ids: Token ids
        tokens: Token strings, parallel to ids
        attention_mask: 1 for real tokens, 0 for padding
        overflowing: Further windows when the input was truncated
    """
    ids: List[int]
    tokens: List[str]
    attention_mask: List[int] = field(default_factory=list)
    overflowing: List["Encoding"] = field(default_factory=list)

    def __post_init__(self):
        if not self.attention_mask and self.ids:
            self.attention_mask = [1] * len(self.ids)

        if not len(self.ids) == len(self.tokens) == len(self.attention_mask):
            raise ValueError(
                f"ids ({len(self.ids)}), tokens ({len(self.tokens)}) and "
                f"attention_mask ({len(self.attention_mask)}) must have equal length"
            )

    @property
    def length(self) -> int:
        return len(self.ids)

    def __len__(self) -> int:
        return len(self.ids)
