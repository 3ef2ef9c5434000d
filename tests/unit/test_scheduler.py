"""Unit tests for the BatchScheduler."""

import os
import subprocess
import sys
import textwrap
import threading
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

from heic_converter.core.batch.models import BatchSizeConfig, ConversionOutcome
from heic_converter.core.batch.scheduler import BatchScheduler
from heic_converter.core.batch.statistics import StatisticsCollector
from heic_converter.core.exceptions import ConfigurationError


@pytest.fixture
def prepared_output(output_dir):
    output_dir.mkdir()
    return output_dir


class TestBatchScheduler:
    """Test chunked scheduling."""

    def test_empty_list_succeeds(self, fake_converter, batch_request):
        """Test nothing is scheduled for an empty list."""
        scheduler = BatchScheduler(fake_converter)
        stats = StatisticsCollector()

        assert scheduler.run_batch([], batch_request, stats) is True
        assert stats.snapshot().total == 0
        assert fake_converter.calls == []

    def test_partition(self, fake_converter):
        """Test 5 files with batch size 2 form chunks of 2, 2 and 1."""
        scheduler = BatchScheduler(fake_converter, BatchSizeConfig(batch_size=2))
        files = [Path(f"{i}.heic") for i in range(5)]

        chunks = scheduler.partition(files)

        assert [len(c) for c in chunks] == [2, 2, 1]
        assert [p for c in chunks for p in c] == files

    @pytest.mark.parametrize("parallel", [True, False])
    def test_mixed_results(self, fake_converter, batch_request, prepared_output, parallel):
        """Test one failing file among three."""
        scheduler = BatchScheduler(
            fake_converter, BatchSizeConfig(batch_size=10, parallel=parallel)
        )
        stats = StatisticsCollector()
        files = [Path("a.heic"), Path("b.heic"), Path("err.heic")]

        result = scheduler.run_batch(files, batch_request, stats)

        snapshot = stats.snapshot()
        assert result is False
        assert snapshot.processed == 2
        assert snapshot.failed == 1
        assert snapshot.failed_files == [Path("err.heic")]
        assert (prepared_output / "a.jpg").read_bytes() == b"converted"
        assert (prepared_output / "b.jpg").exists()
        # Failed file's reserved name is released
        assert not (prepared_output / "err.jpg").exists()

    def test_every_file_counted_once(self, fake_converter, batch_request, prepared_output):
        """Test processed + failed equals the number of files, duplicates included."""
        scheduler = BatchScheduler(fake_converter, BatchSizeConfig(batch_size=3))
        stats = StatisticsCollector()
        files = [Path("a.heic"), Path("a.heic"), Path("err1.heic"), Path("b.heic")]

        scheduler.run_batch(files, batch_request, stats)

        assert stats.snapshot().total == 4
        assert len(scheduler.last_outcomes) == 4
        # Duplicate inputs get distinct outputs
        assert sorted(p.name for p in fake_converter.outputs) == [
            "a.jpg",
            "a_1.jpg",
            "b.jpg",
        ]

    def test_barrier_limits_concurrency(
        self, converter_factory, batch_request, prepared_output
    ):
        """Test at most batch_size conversions run at once and chunks never overlap."""
        converter = converter_factory(delay=0.05)
        scheduler = BatchScheduler(converter, BatchSizeConfig(batch_size=2))
        files = [Path(f"f{i}.heic") for i in range(5)]

        assert scheduler.run_batch(files, batch_request, StatisticsCollector())

        assert converter.max_active <= 2
        assert scheduler.last_chunk_count == 3

    def test_chunk_order_respected(self, batch_request, prepared_output):
        """Test no file of chunk k+1 starts before chunk k has finished."""
        events = []
        lock = threading.Lock()

        def converter(input_path, output_path, fmt, quality, preserve):
            with lock:
                events.append(("start", input_path.name))
            time.sleep(0.02 if input_path.name == "0.heic" else 0)
            with lock:
                events.append(("end", input_path.name))
            return True

        scheduler = BatchScheduler(converter, BatchSizeConfig(batch_size=2))
        files = [Path(f"{i}.heic") for i in range(4)]

        scheduler.run_batch(files, batch_request, StatisticsCollector())

        first_chunk_done = max(
            events.index(("end", "0.heic")), events.index(("end", "1.heic"))
        )
        second_chunk_start = min(
            events.index(("start", "2.heic")), events.index(("start", "3.heic"))
        )
        assert first_chunk_done < second_chunk_start

    def test_merge_order_is_input_order(self, batch_request, prepared_output):
        """Test failures are recorded in input order even if they finish out of order."""

        def converter(input_path, output_path, fmt, quality, preserve):
            if input_path.name == "err_a.heic":
                time.sleep(0.05)
            return "err" not in input_path.name

        scheduler = BatchScheduler(converter, BatchSizeConfig(batch_size=3))
        stats = StatisticsCollector()
        files = [Path("err_a.heic"), Path("err_b.heic"), Path("ok.heic")]

        scheduler.run_batch(files, batch_request, stats)

        assert stats.snapshot().failed_files == [Path("err_a.heic"), Path("err_b.heic")]
        assert [o.input_path for o in scheduler.last_outcomes] == files

    def test_progress_callback(self, fake_converter, batch_request, prepared_output):
        """Test the callback sees every outcome with running counts."""
        callback = Mock()
        scheduler = BatchScheduler(fake_converter, BatchSizeConfig(batch_size=2))
        files = [Path("a.heic"), Path("err.heic"), Path("c.heic")]

        scheduler.run_batch(files, batch_request, StatisticsCollector(), callback)

        assert callback.call_count == 3
        completed = [c.args[1] for c in callback.call_args_list]
        totals = {c.args[2] for c in callback.call_args_list}
        assert completed == [1, 2, 3]
        assert totals == {3}
        assert isinstance(callback.call_args_list[1].args[0], ConversionOutcome)
        assert not callback.call_args_list[1].args[0].success

    def test_on_last_chunk_called_once(self, fake_converter, batch_request, prepared_output):
        """Test the final-chunk hook fires exactly once."""
        hook = Mock()
        scheduler = BatchScheduler(fake_converter, BatchSizeConfig(batch_size=2))

        scheduler.run_batch(
            [Path(f"{i}.heic") for i in range(5)],
            batch_request,
            StatisticsCollector(),
            on_last_chunk=hook,
        )

        hook.assert_called_once_with()

    @pytest.mark.parametrize("parallel", [True, False])
    def test_timeout_records_failure(self, batch_request, prepared_output, parallel):
        """Test a stuck conversion is recorded as a timeout failure in both modes."""
        release = threading.Event()

        def converter(input_path, output_path, fmt, quality, preserve):
            if input_path.name == "slow.heic":
                release.wait(5)
            output_path.write_bytes(b"converted")
            return True

        scheduler = BatchScheduler(
            converter,
            BatchSizeConfig(batch_size=2, parallel=parallel, task_timeout=0.1),
        )
        stats = StatisticsCollector()
        files = [Path("slow.heic"), Path("fast.heic"), Path("next.heic")]

        try:
            started = time.monotonic()
            result = scheduler.run_batch(files, batch_request, stats)
            elapsed = time.monotonic() - started

            snapshot = stats.snapshot()
            assert result is False
            assert elapsed < 2
            assert snapshot.failed_files == [Path("slow.heic")]
            assert snapshot.processed == 2
            timed_out = scheduler.last_outcomes[0]
            assert "Timed out after 0.1s" in timed_out.error
            assert timed_out.output_path == prepared_output / "slow.jpg"
            # Reserved name is given back
            assert not (prepared_output / "slow.jpg").exists()
            assert (prepared_output / "fast.jpg").exists()
        finally:
            release.set()

    def test_late_completion_output_discarded(self, batch_request, prepared_output):
        """Test a conversion finishing after its deadline leaves no output behind."""
        release = threading.Event()
        workers = []

        def converter(input_path, output_path, fmt, quality, preserve):
            workers.append(threading.current_thread())
            release.wait(5)
            output_path.write_bytes(b"late")
            return True

        scheduler = BatchScheduler(
            converter, BatchSizeConfig(batch_size=1, task_timeout=0.1)
        )
        stats = StatisticsCollector()

        assert scheduler.run_batch([Path("slow.heic")], batch_request, stats) is False

        release.set()
        workers[0].join(5)

        assert not workers[0].is_alive()
        assert list(prepared_output.iterdir()) == []
        assert stats.snapshot().failed_files == [Path("slow.heic")]

    def test_stuck_worker_does_not_block_exit(self, tmp_path):
        """Test the interpreter exits once the batch returns, despite a stuck unit."""
        script = textwrap.dedent(
            """
            import sys
            import time
            from pathlib import Path

            from heic_converter.core.batch.models import BatchRequest, BatchSizeConfig
            from heic_converter.core.batch.scheduler import BatchScheduler
            from heic_converter.core.batch.statistics import StatisticsCollector

            def converter(input_path, output_path, fmt, quality, preserve):
                time.sleep(30)
                return True

            out = Path(sys.argv[1])
            out.mkdir()
            scheduler = BatchScheduler(
                converter, BatchSizeConfig(batch_size=1, task_timeout=0.2)
            )
            request = BatchRequest(output_format="jpg", output_directory=out)
            ok = scheduler.run_batch([Path("stuck.heic")], request, StatisticsCollector())
            print("result", ok)
            """
        )
        root = Path(__file__).resolve().parents[2]
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(root), env.get("PYTHONPATH", "")) if p
        )

        started = time.monotonic()
        completed = subprocess.run(
            [sys.executable, "-c", script, str(tmp_path / "out")],
            capture_output=True,
            text=True,
            env=env,
            timeout=60,
        )
        elapsed = time.monotonic() - started

        assert completed.returncode == 0, completed.stderr
        assert "result False" in completed.stdout
        assert elapsed < 20

    def test_resolution_error_becomes_failure(self, fake_converter, batch_request):
        """Test an output name that cannot be reserved fails only that file."""
        resolver = Mock()
        resolver.resolve.side_effect = PermissionError("read-only")
        scheduler = BatchScheduler(fake_converter, resolver=resolver)
        stats = StatisticsCollector()

        assert scheduler.run_batch([Path("a.heic")], batch_request, stats) is False
        assert scheduler.last_outcomes[0].output_path is None
        assert "PermissionError" in scheduler.last_outcomes[0].error
        assert fake_converter.calls == []

    def test_batch_size_validation(self, fake_converter):
        """Test non-positive batch sizes are rejected."""
        scheduler = BatchScheduler(fake_converter)

        with pytest.raises(ConfigurationError):
            scheduler.batch_size = 0

        scheduler.batch_size = 3
        assert scheduler.batch_size == 3

    def test_worker_threads_named(self, batch_request, prepared_output):
        """Test conversions run on named pool threads in parallel mode."""
        names = []

        def converter(input_path, output_path, fmt, quality, preserve):
            names.append(threading.current_thread().name)
            return True

        scheduler = BatchScheduler(converter, BatchSizeConfig(batch_size=2))
        scheduler.run_batch([Path("a.heic"), Path("b.heic")], batch_request, StatisticsCollector())

        assert all(name.startswith("heic_worker") for name in names)

    def test_sequential_runs_on_caller_thread(self, batch_request, prepared_output):
        """Test sequential mode does not use worker threads."""
        names = []

        def converter(input_path, output_path, fmt, quality, preserve):
            names.append(threading.current_thread().name)
            return True

        scheduler = BatchScheduler(
            converter, BatchSizeConfig(batch_size=2, parallel=False)
        )
        scheduler.run_batch([Path("a.heic"), Path("b.heic")], batch_request, StatisticsCollector())

        assert names == [threading.current_thread().name] * 2
