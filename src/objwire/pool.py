"""Thread-safe pool of reusable objects.

Parsers and their read buffers are relatively expensive to set up for
every small message; the pool keeps released instances on a free list and
hands them out again.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObjectPool(Generic[T]):
    """Free list of objects created on demand by ``factory``.

    Args:
        factory: Creates a new object when the free list is empty
        reset: Called on every object when it is acquired, to clear the
            state left by its previous user
        max_size: Maximum number of released objects kept on the free list;
            objects released beyond that are dropped

    Example:
        >>> pool = ObjectPool(bytearray, reset=lambda buf: buf.clear())
        >>> with pool.acquire() as buf:
        ...     buf.extend(b"scratch")
    """

    def __init__(
        self,
        factory: Callable[[], T],
        reset: Optional[Callable[[T], None]] = None,
        max_size: int = 64,
    ) -> None:
        if max_size < 0:
            raise ValueError(f"max_size must be >= 0, got {max_size}")
        self._factory = factory
        self._reset = reset
        self._max_size = max_size
        self._free: List[T] = []
        self._created = 0
        self._lock = threading.Lock()

    @property
    def created(self) -> int:
        """Number of objects created by the pool so far."""
        return self._created

    def __len__(self) -> int:
        """Number of objects currently on the free list."""
        return len(self._free)

    def get(self) -> T:
        """Take an object from the pool, creating one if the pool is empty."""
        with self._lock:
            obj = self._free.pop() if self._free else None
            if obj is None:
                self._created += 1
                created = self._created
        if obj is None:
            obj = self._factory()
            logger.debug("Pool grew to %d objects", created)
        if self._reset is not None:
            self._reset(obj)
        return obj

    def put(self, obj: T) -> None:
        """Return an object to the pool."""
        with self._lock:
            if len(self._free) < self._max_size:
                self._free.append(obj)

    @contextmanager
    def acquire(self) -> Iterator[T]:
        """Borrow an object for the duration of a ``with`` block."""
        obj = self.get()
        try:
            yield obj
        finally:
            self.put(obj)
