"""
Buffer Pool Module

Reusable buffer pools with scoped acquisition.

Pipeline stages borrow their temporary buffers (string builders, byte
lists, output collectors) from a pool for the duration of one call and give
them back on exit, so a hot encode loop does not allocate a fresh list per
stage per call.

Usage:
    with list_pool().acquire() as fragments:
        pre_tokenizer.pre_tokenize(text, fragments)
        ...
"""

import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

from .text_view import TextView

T = TypeVar("T")


class Pool(Generic[T]):
    """
    Free-list of reusable instances.

    Items are reset when released, so whatever ``get`` hands out is always
    clean. An item must be released exactly once; releasing an item that
    already sits in the free list raises.

    Pools are not locked. The process-wide pools below are thread-local,
    which gives each thread its own instances.
    """

    __slots__ = ('_items', '_create', '_reset', '_closed')

    def __init__(
        self,
        create: Callable[[], T],
        reset: Optional[Callable[[T], None]] = None,
    ):
        """
        Initialize pool.

        Args:
            create: Factory for new instances
            reset: Clears an instance before it returns to the free list
        """
        if create is None:
            raise ValueError("create cannot be None")

        self._items: List[T] = []
        self._create = create
        self._reset = reset
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Pool is closed")

    def get(self) -> T:
        """Take an instance from the free list, creating one if empty."""
        self._check_open()
        if self._items:
            return self._items.pop()
        return self._create()

    def release(self, item: T) -> None:
        """
        Return an instance to the pool.

        Raises:
            ValueError: If the instance was already released
        """
        self._check_open()
        if any(existing is item for existing in self._items):
            raise ValueError("Item released to the pool more than once")

        if self._reset is not None:
            self._reset(item)
        self._items.append(item)

    @contextmanager
    def acquire(self) -> Iterator[T]:
        """Borrow an instance for the duration of a ``with`` block."""
        item = self.get()
        try:
            yield item
        finally:
            self.release(item)

    def close(self) -> None:
        """Drop all pooled instances; the pool cannot be used afterwards."""
        self._items.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)


def _clear(buffer) -> None:
    buffer.clear()


_local = threading.local()


def _thread_pool(name: str, create: Callable[[], T]) -> Pool[T]:
    pools = getattr(_local, "pools", None)
    if pools is None:
        pools = _local.pools = {}

    pool = pools.get(name)
    if pool is None or pool.closed:
        pool = pools[name] = Pool(create, _clear)
    return pool


def string_builder_pool() -> Pool[List[str]]:
    """Pool of string part lists, joined with ``"".join`` when complete."""
    return _thread_pool("string_builder", list)


def byte_list_pool() -> Pool[bytearray]:
    """Pool of byte buffers."""
    return _thread_pool("byte_list", bytearray)


def list_pool() -> Pool[list]:
    """Pool of generic output collectors."""
    return _thread_pool("list", list)


def view_list_pool() -> Pool[List[TextView]]:
    """Pool of TextView collectors used between normalization and BPE."""
    return _thread_pool("view_list", list)
