"""
Experiment abstraction and run protocol.

An Experiment holds a set of named behaviors (one control, any number of
candidates) and the hooks that decide how their outcomes are compared. Calling
run() always hands the control's outcome back to the caller:
- the control's value is returned, or its failure re-raised verbatim
- candidate failures are captured and never surface
- failures in internal hooks are funneled through raised()

Concrete experiments implement two methods:
- enabled(): may candidates run at all
- publish(result): deliver the Result to a telemetry sink
"""

import logging
import random
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from refactor_science.errors import (
    BehaviorMissing,
    BehaviorNotUnique,
    ExperimentFrozen,
    MismatchError,
)
from refactor_science.observation import FabricatedTiming, Observation
from refactor_science.operations import Operation
from refactor_science.result import Result, build_result

logger = logging.getLogger(__name__)


CONTROL = "control"
CANDIDATE = "candidate"

Behavior = Callable[[], Any]


class Experiment(ABC):
    """
    Abstract experiment.

    Subclasses MUST implement enabled() and publish(result). They MAY
    override raised(operation, error) to log and continue instead of
    re-raising.

    Class attributes:
        raise_on_mismatches: Process-wide default for raising MismatchError.
            Assigning the attribute on an instance overrides it for that
            experiment only.
        rescues: Exception types captured from behaviors. (BaseException,)
            captures everything; (Exception,) lets KeyboardInterrupt and
            SystemExit through.
    """

    raise_on_mismatches: bool = False
    rescues: Tuple[Type[BaseException], ...] = (BaseException,)

    def __init__(self, name: str = "experiment"):
        self.name = name
        self._behaviors: Dict[str, Behavior] = {}
        self._context: Dict[str, Any] = {}
        self._frozen = False

        self._comparator: Optional[Callable[[Any, Any], bool]] = None
        self._error_comparator: Optional[Callable[[BaseException, BaseException], bool]] = None
        self._cleaner: Optional[Callable[[Any], Any]] = None
        self._ignores: List[Callable[[Any, Any], bool]] = []
        self._run_if: Optional[Callable[[], bool]] = None
        self._before_run: Optional[Callable[[], Any]] = None
        self._cohort: Optional[Callable[[Result], Any]] = None
        self._mismatch_error: Type[MismatchError] = MismatchError
        self._fabricated: Dict[str, FabricatedTiming] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} behaviors={list(self._behaviors)}>"

    # ------------------------------------------------------------------
    # Contract for concrete experiments
    # ------------------------------------------------------------------

    @abstractmethod
    def enabled(self) -> bool:
        """
        May this experiment run candidates?

        Returns:
            True to observe every behavior, False to run only the control
        """
        pass

    @abstractmethod
    def publish(self, result: Result) -> None:
        """
        Deliver a Result to a telemetry sink.

        Args:
            result: The immutable Result of a run
        """
        pass

    def raised(self, operation: Operation, error: Exception) -> None:
        """
        Called when an internal operation (not a behavior) raises.

        The default re-raises. Override to track the error and continue.
        """
        raise error

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def behaviors(self) -> Mapping[str, Behavior]:
        """Read-only view of registered behaviors, in registration order."""
        return MappingProxyType(self._behaviors)

    def try_(self, block: Optional[Behavior] = None, name: str = CANDIDATE):
        """
        Register a candidate behavior.

        Works as a call or as a decorator:
            experiment.try_(lambda: new_path(), name="fast")

            @experiment.try_(name="fast")
            def fast():
                ...

        Raises:
            BehaviorNotUnique: If name is already registered
            ExperimentFrozen: If the experiment has already run
        """
        if block is None:
            return lambda fn: self.try_(fn, name=name)

        name = str(name)
        if self._frozen:
            raise ExperimentFrozen(self, f"register behavior {name}")
        if name in self._behaviors:
            raise BehaviorNotUnique(self, name)

        self._behaviors[name] = block
        return block

    def use(self, block: Behavior):
        """Register the control behavior."""
        return self.try_(block, name=CONTROL)

    def context(self, mapping: Optional[Mapping[str, Any]] = None, **extra) -> Mapping[str, Any]:
        """
        Merge extra metadata into the experiment context and return it.

        Returns:
            Read-only view of the context
        """
        if mapping or extra:
            if self._frozen:
                raise ExperimentFrozen(self, "change context")
            if mapping:
                self._context.update(mapping)
            self._context.update(extra)
        return MappingProxyType(self._context)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def compare(self, fn: Callable[[Any, Any], bool]):
        """Set the value comparator, called as fn(control_value, candidate_value)."""
        self._comparator = fn
        return fn

    def compare_errors(self, fn: Callable[[BaseException, BaseException], bool]):
        """Set the failure comparator, called as fn(control_error, candidate_error)."""
        self._error_comparator = fn
        return fn

    def clean(self, fn: Callable[[Any], Any]):
        """Set the cleaner used when values are displayed or published."""
        self._cleaner = fn
        return fn

    @property
    def cleaner(self) -> Optional[Callable[[Any], Any]]:
        return self._cleaner

    def ignore(self, fn: Callable[[Any, Any], bool]):
        """Add an ignore rule, called as fn(control_value, candidate_value)."""
        self._ignores.append(fn)
        return fn

    def run_if(self, fn: Callable[[], bool]):
        """Set a predicate gating whether candidates run at all."""
        self._run_if = fn
        return fn

    def before_run(self, fn: Callable[[], Any]):
        """Set a hook called once before behaviors run, only when experimenting."""
        self._before_run = fn
        return fn

    def cohort(self, fn: Callable[[Result], Any]):
        """Set a function assigning each Result to a cohort."""
        self._cohort = fn
        return fn

    @property
    def cohort_determinator(self) -> Optional[Callable[[Result], Any]]:
        return self._cohort

    def raise_with(self, error_class: Type[MismatchError]) -> None:
        """Use a custom MismatchError subclass when raising on mismatches."""
        if not (isinstance(error_class, type) and issubclass(error_class, MismatchError)):
            raise TypeError(f"{error_class!r} is not a MismatchError subclass")
        self._mismatch_error = error_class

    def fabricate_durations_for_testing_purposes(
        self, fabricated: Mapping[str, FabricatedTiming]
    ) -> None:
        """
        Replace measured timings for the named behaviors.

        Behaviors not named keep their real timings.
        """
        self._fabricated = dict(fabricated)

    # ------------------------------------------------------------------
    # Comparison helpers used by Result and Observation
    # ------------------------------------------------------------------

    def clean_value(self, value: Any) -> Any:
        """Apply the cleaner, falling back to the raw value if it raises."""
        if self._cleaner is None:
            return value
        try:
            return self._cleaner(value)
        except Exception as e:
            self._report(Operation.CLEAN, e)
            return value

    def observations_are_equivalent(self, a: Observation, b: Observation) -> bool:
        """Compare two observations; a raising comparator counts as a mismatch."""
        try:
            return a.equivalent_to(b, self._comparator, self._error_comparator)
        except Exception as e:
            self._report(Operation.COMPARE, e)
            return False

    def ignore_mismatched_observation(self, control: Observation, candidate: Observation) -> bool:
        """
        Should this mismatch be ignored?

        Ignore rules are tried in registration order until one returns True.
        A rule that raises is reported and skipped. Failed observations pass
        None as their value.
        """
        if not self._ignores:
            return False

        control_value = None if control.raised else control.value
        candidate_value = None if candidate.raised else candidate.value

        for rule in self._ignores:
            try:
                if rule(control_value, candidate_value):
                    return True
            except Exception as e:
                self._report(Operation.IGNORE, e)
        return False

    # ------------------------------------------------------------------
    # Run protocol
    # ------------------------------------------------------------------

    def should_experiment_run(self) -> bool:
        """True if there are candidates and both enabled() and run_if allow it."""
        return len(self._behaviors) > 1 and self._is_enabled() and self._run_if_allows()

    def run(self, name: str = CONTROL) -> Any:
        """
        Run the experiment and return the named behavior's outcome.

        Args:
            name: Behavior to treat as control

        Returns:
            The control's value

        Raises:
            BehaviorMissing: If no behavior is registered under name
            MismatchError: If raise_on_mismatches is set and candidates mismatched
            Whatever the control raised
        """
        self._frozen = True

        name = str(name)
        block = self._behaviors.get(name)
        if block is None:
            raise BehaviorMissing(self, name)

        if not self.should_experiment_run():
            logger.debug(f"Experiment {self.name}: running {name} only")
            return block()

        if self._before_run is not None:
            self._before_run()

        result = self.generate_result(name)

        try:
            self.publish(result)
        except Exception as e:
            self._report(Operation.PUBLISH, e)

        if self.raise_on_mismatches and result.is_mismatched:
            raise self._mismatch_error(self.name, result)

        control = result.control
        if control.raised:
            raise control.failure
        return control.value

    def generate_result(self, name: str) -> Result:
        """Observe every behavior in random order and build the Result."""
        order = random.sample(list(self._behaviors), len(self._behaviors))

        observations = [
            Observation(
                key,
                self,
                self._behaviors[key],
                self._fabricated.get(key),
            )
            for key in order
        ]

        return build_result(self, observations, name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_enabled(self) -> bool:
        try:
            return bool(self.enabled())
        except Exception as e:
            self._report(Operation.ENABLED, e)
            return False

    def _run_if_allows(self) -> bool:
        if self._run_if is None:
            return True
        try:
            return bool(self._run_if())
        except Exception as e:
            self._report(Operation.RUN_IF, e)
            return False

    def _report(self, operation: Operation, error: Exception) -> None:
        logger.warning(
            f"Experiment {self.name}: {operation.value} raised {type(error).__name__}: {error}"
        )
        self.raised(operation, error)
