"""
Text View Module

Zero-copy view over a span of an existing string.

Every pipeline stage passes TextView instances around instead of slicing
strings, so nothing is allocated until a stage actually needs an owned
string (``str(view)``).
"""

from typing import Iterator, Optional, Union


class TextView:
    """
    Immutable (source, start, length) span of a string.

    Equality and hashing are computed over the referenced characters, never
    identity. A view compares equal to a plain ``str`` holding the same
    characters and hashes like it, so views and strings can be used
    interchangeably as dictionary keys.
    """

    __slots__ = ('_source', '_start', '_length', '_hash')

    def __init__(self, source: str, start: int = 0, length: Optional[int] = None):
        """
        Initialize view.

        Args:
            source: Backing string
            start: Offset of the first character
            length: Number of characters (defaults to the rest of source)

        Raises:
            ValueError: If the span exceeds the bounds of source
        """
        if source is None:
            raise ValueError("source cannot be None")

        if length is None:
            length = len(source) - start

        if start < 0 or length < 0 or start + length > len(source):
            raise ValueError(
                f"span ({start}, {length}) out of bounds for text of length {len(source)}"
            )

        self._source = source
        self._start = start
        self._length = length
        self._hash: Optional[int] = None

    @classmethod
    def of(cls, value: Union[str, "TextView"]) -> "TextView":
        """Wrap a string into a full-length view (views are returned as-is)."""
        if isinstance(value, TextView):
            return value
        return cls(value, 0, len(value))

    @classmethod
    def from_to(cls, source: str, start: int, end: int) -> "TextView":
        """Create a view over ``source[start:end]``."""
        return cls(source, start, end - start)

    @property
    def source(self) -> str:
        return self._source

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._start + self._length

    @property
    def is_empty(self) -> bool:
        return self._length == 0

    def sub(self, offset: int, length: Optional[int] = None) -> "TextView":
        """
        Create a sub-view relative to this view.

        Args:
            offset: Offset inside this view
            length: Length of the sub-view (defaults to the remainder)

        Returns:
            New view sharing the same source
        """
        if length is None:
            length = self._length - offset

        if offset < 0 or length < 0 or offset + length > self._length:
            raise ValueError(
                f"sub-span ({offset}, {length}) out of bounds for view of length {self._length}"
            )

        return TextView(self._source, self._start + offset, length)

    def startswith(self, prefix: str) -> bool:
        return self._source.startswith(prefix, self._start, self.end)

    def endswith(self, suffix: str) -> bool:
        return self._source.endswith(suffix, self._start, self.end)

    def find(self, value: str, offset: int = 0) -> int:
        """
        Find ``value`` inside the view.

        Returns:
            Offset relative to the view, -1 if not found
        """
        index = self._source.find(value, self._start + offset, self.end)
        return index - self._start if index >= 0 else -1

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):
        if isinstance(index, slice):
            start, stop, step = index.indices(self._length)
            if step != 1:
                raise ValueError("TextView slicing does not support steps")
            return TextView(self._source, self._start + start, max(stop - start, 0))

        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("TextView index out of range")
        return self._source[self._start + index]

    def __iter__(self) -> Iterator[str]:
        source = self._source
        for i in range(self._start, self.end):
            yield source[i]

    def __str__(self) -> str:
        if self._start == 0 and self._length == len(self._source):
            return self._source
        return self._source[self._start:self.end]

    def __repr__(self) -> str:
        return f"TextView({str(self)!r})"

    def __eq__(self, other) -> bool:
        if isinstance(other, TextView):
            if self._length != other._length:
                return False
            if self._source is other._source and self._start == other._start:
                return True
            return str(self) == str(other)

        if isinstance(other, str):
            return (
                self._length == len(other)
                and self._source.startswith(other, self._start)
            )

        return NotImplemented

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        # Must match hash(str) so views can look up str-keyed dictionaries
        if self._hash is None:
            self._hash = hash(str(self))
        return self._hash

    def __add__(self, other) -> "TextView":
        return TextView.of(str(self) + str(other))

    def __radd__(self, other) -> "TextView":
        return TextView.of(str(other) + str(self))


TextLike = Union[str, TextView]
