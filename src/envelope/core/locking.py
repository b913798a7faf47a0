#!/usr/bin/env python3
"""
Reader/Writer Exclusion

One lock per repository instance guards allocation, transaction-status and
reconciliation-session state. Any number of readers may hold it together; a
writer holds it alone for its whole read-modify-write sequence so invariants
are never observed torn.

The writing thread may re-enter for reading or writing (engine mutations call
engine queries). Upgrading a read hold to a write hold is refused, since two
upgrading readers would deadlock each other.

Waiting writers take priority: once a writer is queued, threads that do not
already hold the lock wait behind it, so a steady stream of readers cannot
starve a writer.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """Writer-reentrant reader/writer lock."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}
        self._writer: int | None = None
        self._writer_depth = 0
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._waiting_writers:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            count = self._readers.get(me)
            if not count:
                raise RuntimeError("release_read() without matching acquire_read()")
            if count == 1:
                del self._readers[me]
            else:
                self._readers[me] = count - 1
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                raise RuntimeError("Cannot upgrade a read lock to a write lock")
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._writer_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write() by a thread that does not hold the lock")
            self._writer_depth -= 1
            if self._writer_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Shared access scope."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Exclusive access scope, released on every exit path."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def waiting_writers(self) -> int:
        """Number of threads queued for the write lock."""
        with self._cond:
            return self._waiting_writers

    @property
    def write_held(self) -> bool:
        """True if the calling thread holds the write lock."""
        return self._writer == threading.get_ident()
