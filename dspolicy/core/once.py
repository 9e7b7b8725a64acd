"""
Compute-once cache cell.

Readers that see a populated cell never take the lock. Writers compute
and store under the lock, so at most one computation commits.
"""

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class OnceCell(Generic[T]):
    def __init__(self) -> None:
        self._value: Optional[T] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[T]:
        return self._value

    def get_or_init(self, factory: Callable[[], Optional[T]]) -> Optional[T]:
        """
        Return the cached value, computing it if the cell is empty.

        A factory result of None is returned but not stored, so the next
        call computes again. If the factory raises, the cell is reset to
        empty and the exception propagates.
        """
        value = self._value
        if value is not None:
            return value
        with self._lock:
            if self._value is not None:
                return self._value
            try:
                value = factory()
            except Exception:
                self._value = None
                raise
            if value is not None:
                self._value = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._value = None
