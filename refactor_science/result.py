"""
The immutable result of running an experiment.

A Result partitions the candidate observations against the control once, at
construction:
- mismatched: not equivalent to the control and not suppressed
- ignored: not equivalent to the control, but an ignore rule matched

Every non-equivalent candidate ends up in exactly one of the two.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

from refactor_science.observation import Observation
from refactor_science.operations import Operation
from refactor_science.payload import ObservationPayload, ResultPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Result:
    """
    Outcome of one experiment run.

    Fields:
        experiment: Experiment the run belongs to
        observations: All observations, in execution order
        control: The observation selected as control (by name)
    """

    experiment: Any = field(repr=False)
    observations: Tuple[Observation, ...] = ()
    control: Optional[Observation] = None

    candidates: Tuple[Observation, ...] = field(init=False, default=())
    mismatched: Tuple[Observation, ...] = field(init=False, default=())
    ignored: Tuple[Observation, ...] = field(init=False, default=())
    context: Mapping[str, Any] = field(init=False, default_factory=dict)
    cohort: Any = field(init=False, default=None)

    def __post_init__(self):
        observations = tuple(self.observations)
        object.__setattr__(self, "observations", observations)

        control_name = self.control.name if self.control is not None else None
        candidates = tuple(o for o in observations if o.name != control_name)
        object.__setattr__(self, "candidates", candidates)

        object.__setattr__(
            self, "context", MappingProxyType(dict(self.experiment.context()))
        )

        self._evaluate_candidates()
        self._determine_cohort()

    def _evaluate_candidates(self) -> None:
        if self.control is None:
            return

        provisional = [
            candidate
            for candidate in self.candidates
            if not self.experiment.observations_are_equivalent(self.control, candidate)
        ]

        ignored = tuple(
            candidate
            for candidate in provisional
            if self.experiment.ignore_mismatched_observation(self.control, candidate)
        )
        mismatched = tuple(c for c in provisional if c not in ignored)

        object.__setattr__(self, "ignored", ignored)
        object.__setattr__(self, "mismatched", mismatched)

    def _determine_cohort(self) -> None:
        determine = getattr(self.experiment, "cohort_determinator", None)
        if determine is None:
            return
        try:
            object.__setattr__(self, "cohort", determine(self))
        except Exception as e:
            self.experiment.raised(Operation.COHORT, e)

    @property
    def experiment_name(self) -> str:
        return self.experiment.name

    @property
    def is_matched(self) -> bool:
        """True only if no candidate mismatched, ignored mismatches included."""
        return not self.mismatched and not self.ignored

    @property
    def is_mismatched(self) -> bool:
        return bool(self.mismatched)

    @property
    def is_ignored(self) -> bool:
        return bool(self.ignored)

    def observation(self, name: str) -> Optional[Observation]:
        """Look up an observation by behavior name."""
        for observation in self.observations:
            if observation.name == name:
                return observation
        return None

    def to_payload(self) -> ResultPayload:
        """Build the serializable form handed to telemetry sinks."""
        return ResultPayload(
            experiment=self.experiment_name,
            context=dict(self.context),
            control=(
                ObservationPayload.from_observation(self.control)
                if self.control is not None
                else None
            ),
            candidates=[ObservationPayload.from_observation(c) for c in self.candidates],
            execution_order=[o.name for o in self.observations],
            mismatched=[c.name for c in self.mismatched],
            ignored=[c.name for c in self.ignored],
            matched=self.is_matched,
            cohort=self.cohort,
        )


def build_result(
    experiment: Any, observations: Sequence[Observation], control_name: str
) -> Result:
    """Create a Result selecting the control observation by name."""
    control = next((o for o in observations if o.name == control_name), None)
    logger.debug(
        f"Building result for {experiment.name}: control={control_name}, "
        f"observations={[o.name for o in observations]}"
    )
    return Result(experiment=experiment, observations=tuple(observations), control=control)
