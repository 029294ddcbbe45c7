"""
Tests for the recording and logging experiments.
"""

import logging
import threading

import pytest

from refactor_science import LoggingExperiment, Operation, RecordingExperiment


class TestRecordingExperiment:
    """Test in-memory recording."""

    def test_records_published_results(self):
        ex = RecordingExperiment("widgets")
        ex.use(lambda: 1)
        ex.try_(lambda: 2)

        assert ex.run() == 1
        assert len(ex.results) == 1
        assert ex.last_result.is_mismatched

    def test_bounded_fifo(self):
        ex = RecordingExperiment("widgets", max_results=2)
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        for _ in range(5):
            ex.run()

        assert len(ex.results) == 2

    def test_last_result_empty(self):
        assert RecordingExperiment().last_result is None

    def test_disabled_records_nothing(self):
        ex = RecordingExperiment("widgets", enabled=False)
        ex.use(lambda: 1)
        ex.try_(lambda: 2)

        assert ex.run() == 1
        assert ex.last_result is None

    def test_stats(self):
        ex = RecordingExperiment("widgets")
        ex.use(lambda: 1)
        ex.try_(lambda: 2)
        ex.run()

        stats = ex.get_stats()
        assert stats["results"] == 1
        assert stats["mismatched"] == 1
        assert stats["matched"] == 0
        assert stats["errors"] == 0

    def test_errors_reraised_by_default(self, fail):
        ex = RecordingExperiment("widgets")
        ex.compare(lambda a, b: fail("kaboom")())
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        with pytest.raises(RuntimeError, match="kaboom"):
            ex.run()
        assert ex.errors[0][0] == Operation.COMPARE

    def test_errors_swallowed_when_asked(self, fail):
        ex = RecordingExperiment("widgets", swallow_errors=True)
        ex.compare(lambda a, b: fail("kaboom")())
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        assert ex.run() == 1
        assert ex.errors[0][0] == Operation.COMPARE
        assert ex.last_result.is_mismatched

    def test_clear(self):
        ex = RecordingExperiment("widgets")
        ex.use(lambda: 1)
        ex.try_(lambda: 1)
        ex.run()

        ex.clear()
        assert ex.get_stats()["results"] == 0

    def test_concurrent_runs_after_freeze(self):
        ex = RecordingExperiment("widgets", max_results=500)
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        returned = []

        def worker():
            for _ in range(25):
                returned.append(ex.run())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert returned == [1] * 200
        assert len(ex.results) == 200
        assert all(r.is_matched for r in ex.results)


class TestLoggingExperiment:
    """Test structured logging of results."""

    def test_logs_matched_result(self, caplog):
        ex = LoggingExperiment("widgets")
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        with caplog.at_level(logging.INFO, logger="refactor_science.sinks"):
            assert ex.run() == 1

        records = [r for r in caplog.records if hasattr(r, "science")]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].science["matched"] is True
        assert records[0].experiment == "widgets"

    def test_logs_mismatch_as_warning(self, caplog):
        ex = LoggingExperiment("widgets")
        ex.use(lambda: 1)
        ex.try_(lambda: 2)

        with caplog.at_level(logging.INFO, logger="refactor_science.sinks"):
            ex.run()

        record = [r for r in caplog.records if hasattr(r, "science")][0]
        assert record.levelno == logging.WARNING
        assert record.science["mismatched"] == ["candidate"]
        assert "mismatched" in record.getMessage()

    def test_internal_errors_logged_not_raised(self, caplog, fail):
        ex = LoggingExperiment("widgets")
        ex.run_if(fail("kaboom"))
        ex.use(lambda: "control")
        ex.try_(lambda: "candidate")

        with caplog.at_level(logging.ERROR, logger="refactor_science.sinks"):
            assert ex.run() == "control"

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].operation == "run_if"
        assert "kaboom" in errors[0].getMessage()

    def test_custom_logger(self, caplog):
        log = logging.getLogger("myapp.science")
        ex = LoggingExperiment("widgets", log=log)
        ex.use(lambda: 1)
        ex.try_(lambda: 1)

        with caplog.at_level(logging.INFO, logger="myapp.science"):
            ex.run()

        assert any(r.name == "myapp.science" for r in caplog.records)
