"""
Carefully test refactorings of critical code paths in production.

An experiment runs the existing code path (the control) and one or more new
ones (candidates), compares what they did, publishes the comparison and
returns exactly what the control returned or raised.

Example usage:
    from refactor_science import RecordingExperiment

    experiment = RecordingExperiment("widget-permissions")
    experiment.use(lambda: legacy_can_access(user, widget))
    experiment.try_(lambda: new_can_access(user, widget))

    allowed = experiment.run()
    experiment.last_result.is_matched
"""

from refactor_science.errors import (
    ScienceError,
    BadBehavior,
    BehaviorMissing,
    BehaviorNotUnique,
    ExperimentFrozen,
    NoValue,
    MismatchError,
)
from refactor_science.operations import Operation
from refactor_science.observation import Observation
from refactor_science.result import Result
from refactor_science.payload import FailurePayload, ObservationPayload, ResultPayload
from refactor_science.experiment import Experiment, CONTROL, CANDIDATE
from refactor_science.default import DefaultExperiment
from refactor_science.sinks import RecordingExperiment, LoggingExperiment
from refactor_science.config import ScienceConfig, get_config
from refactor_science.factory import create_experiment, science

__version__ = "1.0.0"

__all__ = [
    # Errors
    "ScienceError",
    "BadBehavior",
    "BehaviorMissing",
    "BehaviorNotUnique",
    "ExperimentFrozen",
    "NoValue",
    "MismatchError",
    # Core
    "Operation",
    "Observation",
    "Result",
    "Experiment",
    "CONTROL",
    "CANDIDATE",
    # Payloads
    "FailurePayload",
    "ObservationPayload",
    "ResultPayload",
    # Implementations
    "DefaultExperiment",
    "RecordingExperiment",
    "LoggingExperiment",
    # Configuration
    "ScienceConfig",
    "get_config",
    "create_experiment",
    "science",
]
