"""
Experiment construction and the science() entry point.

Selection of the concrete experiment class is explicit: callers pass a
config (or let one be read from the environment) and get a fresh instance.
There is no mutable process-wide "current implementation".

Implements SCIENCE_SINK setting:
- "default": DefaultExperiment (publish is a no-op)
- "recording": RecordingExperiment (bounded in-memory buffer)
- "logging": LoggingExperiment (structured log record per result)
"""

import logging
from typing import Any, Callable, Mapping, Optional

from refactor_science.config import ScienceConfig
from refactor_science.default import DefaultExperiment
from refactor_science.experiment import CONTROL, Experiment
from refactor_science.sinks import LoggingExperiment, RecordingExperiment

logger = logging.getLogger(__name__)


ExperimentFactory = Callable[[str], Experiment]


def create_experiment(name: str, config: Optional[ScienceConfig] = None) -> Experiment:
    """
    Create an experiment instance based on configuration.

    Args:
        name: Experiment name
        config: Configuration; read from the environment when omitted

    Returns:
        Experiment instance (never None, defaults to DefaultExperiment)
    """
    config = config or ScienceConfig.from_env()

    if config.sink == "recording":
        experiment: Experiment = RecordingExperiment(
            name, enabled=config.enabled, max_results=config.record_limit
        )
    elif config.sink == "logging":
        experiment = LoggingExperiment(name, enabled=config.enabled)
    else:
        experiment = DefaultExperiment(name, enabled=config.enabled)

    # Instance attributes shadow the class-level defaults.
    experiment.raise_on_mismatches = config.raise_on_mismatches
    experiment.rescues = config.rescues

    logger.debug(f"Created {type(experiment).__name__} for {name}")
    return experiment


def science(
    name: str,
    configure: Callable[[Experiment], Any],
    run: Optional[str] = None,
    context: Optional[Mapping[str, Any]] = None,
    factory: Optional[ExperimentFactory] = None,
) -> Any:
    """
    Build, configure and run an experiment in one call.

    Args:
        name: Experiment name
        configure: Called with the experiment to register behaviors and hooks
        run: Behavior to treat as control (default "control")
        context: Default context applied before configure runs
        factory: Builds the experiment from its name (default create_experiment)

    Returns:
        The control's value (its failure is re-raised)

    Example:
        >>> science("widget-permissions", lambda e: (
        ...     e.use(lambda: old_check(user)),
        ...     e.try_(lambda: new_check(user)),
        ... ))
    """
    experiment = (factory or create_experiment)(name)
    if context:
        experiment.context(context)

    configure(experiment)

    return experiment.run(run or CONTROL)
