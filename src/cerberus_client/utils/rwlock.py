"""Read/write lock with write-to-read downgrade."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer.

    Writers are preferred: once a writer is waiting, new readers block so a
    steady stream of readers cannot starve a refresh. A writer may downgrade
    to a read hold without releasing the lock in between, so no other writer
    can slip in before the downgraded holder reads what it wrote.

    The lock is not reentrant. Upgrading a read hold to a write hold is not
    supported; release the read hold first.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        """Block until a read hold is granted."""
        with self._condition:
            while self._writer is not None or self._writers_waiting:
                self._condition.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release one read hold."""
        with self._condition:
            if self._readers <= 0:
                raise RuntimeError("release_read called without a read hold")
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def acquire_write(self) -> None:
        """Block until the exclusive write hold is granted."""
        me = threading.get_ident()
        with self._condition:
            if self._writer == me:
                raise RuntimeError("write lock is not reentrant")
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._condition.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me

    def release_write(self) -> None:
        """Release the write hold."""
        with self._condition:
            self._check_writer()
            self._writer = None
            self._condition.notify_all()

    def downgrade(self) -> None:
        """Atomically turn the caller's write hold into a read hold."""
        with self._condition:
            self._check_writer()
            self._writer = None
            self._readers += 1
            self._condition.notify_all()

    @property
    def readers(self) -> int:
        """Number of read holds currently granted."""
        with self._condition:
            return self._readers

    @property
    def is_write_locked(self) -> bool:
        """True while a writer holds the lock."""
        with self._condition:
            return self._writer is not None

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        """Context manager holding a read lock."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        """Context manager holding the write lock."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    def _check_writer(self) -> None:
        if self._writer != threading.get_ident():
            raise RuntimeError("write lock is not held by the current thread")
