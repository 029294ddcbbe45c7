"""Names of the internal operations whose failures are routed to Experiment.raised."""

from enum import Enum


class Operation(str, Enum):
    """Internal (non-behavior) steps of a run."""

    ENABLED = "enabled"
    RUN_IF = "run_if"
    COMPARE = "compare"
    IGNORE = "ignore"
    CLEAN = "clean"
    PUBLISH = "publish"
    COHORT = "cohort"
