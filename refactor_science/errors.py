"""
Error taxonomy for science experiments.

Two families live here:
- ScienceError and its subclasses signal caller or integration mistakes
  (missing control, duplicate behavior names, reading a value that was never
  produced). They are ordinary exceptions.
- MismatchError signals that a run produced an unsuppressed mismatch while
  mismatch-raising was enabled. It derives from BaseException so that
  ``except Exception`` handlers written around the control's own failures
  do not swallow it.
"""

import traceback
from dataclasses import dataclass
from typing import Any, List


@dataclass(eq=False)
class ScienceError(Exception):
    """Base class for configuration and usage errors."""

    message: str

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False, init=False)
class BadBehavior(ScienceError):
    """A behavior was registered or requested incorrectly."""

    experiment: Any
    name: str

    def __init__(self, experiment: Any, name: str, message: str):
        self.experiment = experiment
        self.name = name
        self.message = message
        self.__post_init__()


class BehaviorMissing(BadBehavior):
    """The requested control behavior was never registered."""

    def __init__(self, experiment: Any, name: str):
        super().__init__(
            experiment, name, f"{experiment.name} missing {name} behavior"
        )


class BehaviorNotUnique(BadBehavior):
    """A behavior name was registered twice."""

    def __init__(self, experiment: Any, name: str):
        super().__init__(
            experiment, name, f"{experiment.name} already has {name} behavior"
        )


@dataclass(eq=False, init=False)
class ExperimentFrozen(ScienceError):
    """Behaviors or context were changed after the experiment started running."""

    experiment: Any

    def __init__(self, experiment: Any, attempted: str):
        self.experiment = experiment
        self.message = (
            f"{experiment.name} is frozen; cannot {attempted} after run"
        )
        self.__post_init__()


@dataclass(eq=False, init=False)
class NoValue(ScienceError):
    """Raised when reading the value of an observation that failed."""

    observation: Any

    def __init__(self, observation: Any):
        self.observation = observation
        self.message = (
            f"{observation.name} doesn't have a value, it raised an exception"
        )
        self.__post_init__()


@dataclass(eq=False)
class MismatchError(BaseException):
    """
    Raised by Experiment.run when mismatch-raising is enabled and the result
    has mismatched candidates.

    Fields:
        name: Experiment name
        result: The Result that was published
    """

    name: str
    result: Any

    def __post_init__(self):
        super().__init__(f"experiment '{self.name}' observations mismatched")

    def __str__(self) -> str:
        lines = [f"experiment '{self.name}' observations mismatched:"]
        lines.extend(_format_observation(self.result.control))
        for candidate in self.result.candidates:
            lines.extend(_format_observation(candidate))
        return "\n".join(lines) + "\n"


def _format_observation(observation: Any) -> List[str]:
    """Render one observation as indented lines for MismatchError."""
    lines = [f"{observation.name}:"]
    if observation.raised:
        failure = observation.failure
        lines.append(f"  {failure!r}")
        for frame in traceback.format_tb(failure.__traceback__):
            for line in frame.rstrip("\n").split("\n"):
                lines.append(f"    {line.strip()}")
    else:
        lines.append(f"  {observation.cleaned_value!r}")
    return lines
