#!/usr/bin/env python3
"""Tests for the reader/writer lock."""

import threading
import time

import pytest

from envelope.core.locking import ReadWriteLock


@pytest.mark.unit
class TestReadWriteLock:
    """Test exclusion rules and reentrancy."""

    def test_writer_reenters_for_read_and_write(self):
        """Test the writing thread can take nested read and write holds."""
        lock = ReadWriteLock()
        with lock.write():
            with lock.read():
                with lock.write():
                    assert lock.write_held
            assert lock.write_held
        assert not lock.write_held

    def test_upgrade_is_refused(self):
        """Test a reader cannot upgrade to a writer."""
        lock = ReadWriteLock()
        with lock.read():
            with pytest.raises(RuntimeError):
                lock.acquire_write()

    def test_release_without_acquire(self):
        """Test unbalanced releases are reported."""
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()

    def test_released_on_exception(self):
        """Test the write hold is released when the scope raises."""
        lock = ReadWriteLock()
        with pytest.raises(ValueError):
            with lock.write():
                raise ValueError("boom")
        assert not lock.write_held
        with lock.write():
            pass

    def test_readers_share(self):
        """Test two threads can read at the same time."""
        lock = ReadWriteLock()
        both_inside = threading.Barrier(2, timeout=5)
        errors = []

        def reader():
            with lock.read():
                try:
                    both_inside.wait()
                except threading.BrokenBarrierError as e:
                    errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []

    def test_writer_excludes_readers(self):
        """Test a reader waits until the writer finishes its sequence."""
        lock = ReadWriteLock()
        events = []
        writer_inside = threading.Event()

        def writer():
            with lock.write():
                writer_inside.set()
                events.append("write-start")
                time.sleep(0.05)
                events.append("write-end")

        def reader():
            writer_inside.wait(timeout=5)
            with lock.read():
                events.append("read")

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert events == ["write-start", "write-end", "read"]

    def test_queued_writer_goes_before_new_readers(self):
        """Test a reader arriving after a queued writer waits for that writer."""
        lock = ReadWriteLock()
        events = []
        release_first_reader = threading.Event()
        first_reader_inside = threading.Event()

        def first_reader():
            with lock.read():
                first_reader_inside.set()
                release_first_reader.wait(timeout=5)
                events.append("read-1")

        def writer():
            with lock.write():
                events.append("write")

        def late_reader():
            with lock.read():
                events.append("read-2")

        threads = [threading.Thread(target=first_reader)]
        threads[0].start()
        first_reader_inside.wait(timeout=5)

        threads.append(threading.Thread(target=writer))
        threads[1].start()
        deadline = time.monotonic() + 5
        while lock.waiting_writers == 0 and time.monotonic() < deadline:
            time.sleep(0.01)

        threads.append(threading.Thread(target=late_reader))
        threads[2].start()
        time.sleep(0.05)
        assert events == []

        release_first_reader.set()
        for t in threads:
            t.join(timeout=10)

        assert events == ["read-1", "write", "read-2"]

    def test_reader_may_reenter_while_writer_waits(self):
        """Test a thread already reading can nest another read behind a queued writer."""
        lock = ReadWriteLock()
        done = []

        def writer():
            with lock.write():
                done.append("write")

        with lock.read():
            thread = threading.Thread(target=writer)
            thread.start()
            deadline = time.monotonic() + 5
            while lock.waiting_writers == 0 and time.monotonic() < deadline:
                time.sleep(0.01)
            with lock.read():
                done.append("nested-read")

        thread.join(timeout=10)
        assert done == ["nested-read", "write"]
