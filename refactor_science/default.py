"""
Default experiment implementation.

Satisfies the Experiment contract without a telemetry sink: publish does
nothing and enabled returns a fixed policy.
"""

from refactor_science.experiment import Experiment
from refactor_science.result import Result


class DefaultExperiment(Experiment):
    """
    No-op experiment.

    Used when no telemetry sink is wired. Candidates still run when enabled,
    so raise_on_mismatches works in test environments.
    """

    def __init__(self, name: str = "experiment", enabled: bool = True):
        super().__init__(name)
        self._enabled = enabled

    def enabled(self) -> bool:
        return self._enabled

    def publish(self, result: Result) -> None:
        """No-op implementation."""
        pass
