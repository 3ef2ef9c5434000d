"""Unit tests for the daemon WorkerPool."""

import contextvars
import threading

import pytest

from heic_converter.core.batch.workers import WorkerPool

marker = contextvars.ContextVar("marker", default=None)


class TestWorkerPool:
    """Test the worker pool used by the scheduler."""

    def test_runs_submissions(self):
        """Test results and exceptions come back through the future."""
        pool = WorkerPool(2, "test_worker")
        try:
            ok = pool.submit(lambda x: x * 2, 21)
            bad = pool.submit(lambda: 1 / 0)

            assert ok.result(timeout=5) == 42
            with pytest.raises(ZeroDivisionError):
                bad.result(timeout=5)
        finally:
            pool.shutdown()

    def test_workers_are_named_daemons(self):
        """Test workers are daemon threads carrying the name prefix."""
        pool = WorkerPool(2, "test_worker")
        try:
            thread = pool.submit(threading.current_thread).result(timeout=5)
        finally:
            pool.shutdown()

        assert thread.daemon is True
        assert thread.name.startswith("test_worker_")

    def test_context_is_copied(self):
        """Test submissions see context variables set by the submitter."""
        pool = WorkerPool(1, "test_worker")
        token = marker.set("batch-1")
        try:
            assert pool.submit(marker.get).result(timeout=5) == "batch-1"
        finally:
            marker.reset(token)
            pool.shutdown()

    def test_shutdown_cancels_queued_work(self):
        """Test queued submissions are cancelled and new ones refused."""
        pool = WorkerPool(1, "test_worker")
        started = threading.Event()
        gate = threading.Event()

        def block():
            started.set()
            return gate.wait(5)

        running = pool.submit(block)
        assert started.wait(5)
        queued = pool.submit(lambda: "never")

        pool.shutdown()
        gate.set()

        assert running.result(timeout=5) is True
        assert queued.cancelled()
        with pytest.raises(RuntimeError):
            pool.submit(lambda: None)

    def test_invalid_size(self):
        """Test a pool needs at least one worker."""
        with pytest.raises(ValueError):
            WorkerPool(0, "test_worker")
