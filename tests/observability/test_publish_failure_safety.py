"""
Publish failure safety tests.

Validates that a broken telemetry sink or hook never changes what the caller
sees unless raised() chooses to re-raise.

Test strategy:
1. Simulate publish / enabled / comparator failures
2. Verify the control's outcome is returned unchanged when raised() swallows
3. Verify the default raised() fails loud
"""

from unittest.mock import MagicMock

import pytest

from refactor_science import DefaultExperiment, Operation, Result


class TestPublishFailureSafety:
    """Test that publish failures are routed through raised()."""

    def test_reports_publishing_errors(self, experiment, fail):
        experiment.publish = fail("boomtown")
        experiment.use(lambda: "control")
        experiment.try_(lambda: "candidate")

        assert experiment.run() == "control"

        op, error = experiment.exceptions.pop()
        assert op == Operation.PUBLISH
        assert str(error) == "boomtown"

    def test_control_failure_still_raised_when_publish_fails(self, experiment, fail):
        experiment.publish = fail("boomtown")
        experiment.use(fail("control"))
        experiment.try_(lambda: "candidate")

        with pytest.raises(RuntimeError, match="control"):
            experiment.run()

    def test_reraises_publish_errors_by_default(self):
        class BrokenSink(DefaultExperiment):
            def publish(self, result):
                raise RuntimeError("boomtown")

        ex = BrokenSink("hello")
        ex.use(lambda: "control")
        ex.try_(lambda: "candidate")

        with pytest.raises(RuntimeError, match="boomtown"):
            ex.run()

    def test_publish_called_once_with_result(self, experiment):
        publish = MagicMock()
        experiment.publish = publish
        experiment.use(lambda: 1)
        experiment.try_(lambda: 1)

        experiment.run()

        publish.assert_called_once()
        (result,), _ = publish.call_args
        assert isinstance(result, Result)
        assert result.is_matched

    def test_publish_not_called_on_pass_through(self, experiment):
        publish = MagicMock()
        experiment.publish = publish
        experiment.use(lambda: 1)

        experiment.run()
        publish.assert_not_called()


class TestEnabledFailureSafety:
    """Test that enabled() failures fail closed."""

    def test_enabled_error_runs_control_only(self, experiment, fail):
        candidate_ran = []
        experiment.enabled = fail("unavailable")
        experiment.use(lambda: "control")
        experiment.try_(lambda: candidate_ran.append(True))

        assert experiment.run() == "control"
        assert candidate_ran == []
        assert experiment.exceptions[0][0] == Operation.ENABLED

    def test_enabled_error_reraised_by_default(self, fail):
        ex = DefaultExperiment("hello")
        ex.enabled = fail("unavailable")
        ex.use(lambda: "control")
        ex.try_(lambda: "candidate")

        with pytest.raises(RuntimeError, match="unavailable"):
            ex.run()


class TestHookFailureLogging:
    """Internal failures are logged before raised() sees them."""

    def test_warning_logged(self, experiment, fail, caplog):
        experiment.publish = fail("boomtown")
        experiment.use(lambda: 1)
        experiment.try_(lambda: 1)

        experiment.run()

        messages = [
            r.getMessage() for r in caplog.records if r.name == "refactor_science.experiment"
        ]
        assert any("publish raised RuntimeError: boomtown" in m for m in messages)
