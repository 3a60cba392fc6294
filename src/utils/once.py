"""
Compute-once cell shared between worker threads.
"""

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class OnceCell(Generic[T]):
    """
    Holds a value computed exactly once, by whichever caller gets there first.

    Concurrent first accesses block until the single computation finishes; the
    value is read-only afterwards. If the factory raises, nothing is stored and
    the next caller tries again.

    Example:
        >>> vectors = OnceCell()
        >>> vectors.get_or_init(lambda: build_reference_vectors(slides))  # computed
        >>> vectors.get_or_init(lambda: build_reference_vectors(slides))  # cached
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._initialised = False

    @classmethod
    def of(cls, value: T) -> "OnceCell[T]":
        """A cell that already holds ``value``."""
        cell = cls()
        cell._value = value
        cell._initialised = True
        return cell

    @property
    def is_initialised(self) -> bool:
        return self._initialised

    def get(self) -> T:
        """
        The stored value.

        Raises:
            RuntimeError: If the cell has not been initialised yet.
        """
        if not self._initialised:
            raise RuntimeError("OnceCell has not been initialised")
        return self._value

    def get_or_init(self, factory: Callable[[], T]) -> T:
        """The stored value, computing it with ``factory`` if there is none."""
        if self._initialised:
            return self._value
        with self._lock:
            if not self._initialised:
                self._value = factory()
                self._initialised = True
        return self._value
