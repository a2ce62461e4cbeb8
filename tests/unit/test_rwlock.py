"""Unit tests for the read/write lock."""

import threading
import time

import pytest

from cerberus_client.utils.rwlock import ReadWriteLock


def test_multiple_readers_share_the_lock():
    """Readers do not block each other."""
    lock = ReadWriteLock()

    lock.acquire_read()
    lock.acquire_read()

    assert lock.readers == 2
    lock.release_read()
    lock.release_read()
    assert lock.readers == 0


def test_writer_waits_for_readers():
    """A writer is only granted the lock once every reader has left."""
    lock = ReadWriteLock()
    lock.acquire_read()
    acquired = threading.Event()

    def writer():
        lock.acquire_write()
        acquired.set()
        lock.release_write()

    thread = threading.Thread(target=writer)
    thread.start()

    assert not acquired.wait(0.1)
    lock.release_read()
    assert acquired.wait(2)
    thread.join(2)


def test_waiting_writer_blocks_new_readers():
    """Writers are preferred over readers that arrive after them."""
    lock = ReadWriteLock()
    lock.acquire_read()
    order: list[str] = []

    def writer():
        lock.acquire_write()
        order.append("writer")
        lock.release_write()

    def reader():
        lock.acquire_read()
        order.append("reader")
        lock.release_read()

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    time.sleep(0.05)
    reader_thread = threading.Thread(target=reader)
    reader_thread.start()
    time.sleep(0.05)

    assert order == []
    lock.release_read()
    writer_thread.join(2)
    reader_thread.join(2)
    assert order == ["writer", "reader"]


def test_downgrade_keeps_other_writers_out():
    """After a downgrade the holder reads while writers keep waiting."""
    lock = ReadWriteLock()
    lock.acquire_write()
    acquired = threading.Event()

    def writer():
        lock.acquire_write()
        acquired.set()
        lock.release_write()

    thread = threading.Thread(target=writer)
    thread.start()
    lock.downgrade()

    assert not lock.is_write_locked
    assert lock.readers == 1
    assert not acquired.wait(0.1)

    lock.release_read()
    assert acquired.wait(2)
    thread.join(2)


def test_write_lock_is_not_reentrant():
    lock = ReadWriteLock()

    with lock.write_lock():
        with pytest.raises(RuntimeError):
            lock.acquire_write()


def test_release_without_hold_raises():
    lock = ReadWriteLock()

    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
    with pytest.raises(RuntimeError):
        lock.downgrade()


def test_context_managers_release_on_error():
    lock = ReadWriteLock()

    with pytest.raises(ValueError):
        with lock.read_lock():
            raise ValueError("boom")
    with pytest.raises(ValueError):
        with lock.write_lock():
            raise ValueError("boom")

    assert lock.readers == 0
    assert not lock.is_write_locked
