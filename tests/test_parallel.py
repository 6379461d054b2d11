"""Tests for the row-band fork-join helpers."""

import threading

import pytest

from image_signature import parallel
from image_signature.errors import ParallelExecutionError
from image_signature.parallel import (
    batch_size_by_core,
    parallel_reduce,
    row_ranges,
    run_bands,
)


class TestRowRanges:
    """Tests for splitting rows into bands."""

    def test_remainder_goes_to_last_band(self):
        assert row_ranges(10, 4) == [(0, 4), (4, 8), (8, 10)]

    def test_exact_split(self):
        assert row_ranges(8, 4) == [(0, 4), (4, 8)]

    def test_empty(self):
        assert row_ranges(0, 4) == []

    def test_non_positive_batch_raises(self):
        with pytest.raises(ValueError):
            row_ranges(10, 0)

    def test_batch_size_has_floor(self, monkeypatch):
        monkeypatch.setattr(parallel, "cpu_count", lambda: 4)
        assert batch_size_by_core(100) == 25
        assert batch_size_by_core(10) == 8
        assert batch_size_by_core(10, min_size_per_core=1) == 2


class TestRunBands:
    """Tests for the fork-join execution."""

    def test_results_in_band_order(self):
        results = run_bands(lambda start, stop: (start, stop), 10,
                            batch_size=3, workers=4)
        assert results == [(0, 3), (3, 6), (6, 9), (9, 10)]

    def test_no_rows_runs_nothing(self):
        calls = []
        assert run_bands(lambda start, stop: calls.append(start), 0) == []
        assert calls == []

    def test_reduce_matches_sequential_sum(self):
        total = parallel_reduce(
            lambda start, stop: sum(range(start, stop)),
            1000,
            merge=lambda acc, part: acc + part,
            initial=0,
            batch_size=7,
            workers=3,
        )
        assert total == sum(range(1000))

    def test_single_worker(self):
        total = parallel_reduce(lambda start, stop: stop - start, 50,
                                lambda acc, part: acc + part, 0,
                                batch_size=8, workers=1)
        assert total == 50

    def test_failures_are_collected_after_join(self):
        finished = []
        lock = threading.Lock()

        def work(start, stop):
            with lock:
                finished.append(start)
            if start >= 4:
                raise KeyError(start)
            return start

        with pytest.raises(ParallelExecutionError) as excinfo:
            run_bands(work, 12, batch_size=4, workers=3)

        assert sorted(finished) == [0, 4, 8]
        errors = excinfo.value.errors
        assert len(errors) == 2
        assert all(isinstance(e, KeyError) for e in errors)
        assert "2 worker(s) failed" in str(excinfo.value)

    def test_failure_is_runtime_error(self):
        def work(start, stop):
            raise ValueError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run_bands(work, 4, batch_size=2)
