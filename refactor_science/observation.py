"""
Observation: what happened when one behavior ran.

An Observation executes its behavior exactly once, at construction, and
records either the returned value or the raised failure together with
wall-clock and CPU timings. It is immutable afterwards.
"""

import time
from dataclasses import InitVar, dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from refactor_science.errors import NoValue


FabricatedTiming = Union[float, Mapping[str, float]]

# Sentinel so that a legitimately returned None is distinguishable from "no value".
_MISSING = object()


@dataclass(frozen=True, eq=False)
class Observation:
    """
    Immutable record of a single behavior execution.

    Fields:
        name: Behavior name
        experiment: Experiment that owns the behavior (used for cleaning and
            the rescue policy only)
        block: Zero-argument callable to execute (not stored)
        fabricated: Optional fabricated timing for deterministic tests, either
            a duration in seconds or {"duration": s, "cpu_time": s}
    """

    name: str
    experiment: Any = field(repr=False)
    block: InitVar[Callable[[], Any]] = None
    fabricated: InitVar[Optional[FabricatedTiming]] = None

    duration: float = field(init=False, default=0.0)
    cpu_time: float = field(init=False, default=0.0)
    failure: Optional[BaseException] = field(init=False, default=None, repr=False)
    _value: Any = field(init=False, default=_MISSING, repr=False)

    def __post_init__(self, block, fabricated):
        rescues = getattr(self.experiment, "rescues", (BaseException,))

        start = time.perf_counter()
        cpu_start = time.process_time()

        if block is not None:
            try:
                object.__setattr__(self, "_value", block())
            except rescues as e:
                object.__setattr__(self, "failure", e)

        duration = time.perf_counter() - start
        cpu_time = time.process_time() - cpu_start

        if fabricated is not None:
            if isinstance(fabricated, Mapping):
                duration = float(fabricated.get("duration", duration))
                cpu_time = float(fabricated.get("cpu_time", cpu_time))
            else:
                duration = float(fabricated)

        object.__setattr__(self, "duration", duration)
        object.__setattr__(self, "cpu_time", cpu_time)

    @property
    def raised(self) -> bool:
        """True if the behavior raised instead of returning."""
        return self.failure is not None

    @property
    def value(self) -> Any:
        """The returned value. Raises NoValue if the behavior raised."""
        if self.raised:
            raise NoValue(self)
        # A block-less observation recorded nothing; treat it as None.
        return None if self._value is _MISSING else self._value

    @property
    def cleaned_value(self) -> Any:
        """
        The value passed through the experiment's cleaner, for display only.

        Returns None for a failed observation or a None value; falsy values
        such as False or 0 are still cleaned.
        """
        if self.raised:
            return None
        value = self.value
        if value is None:
            return None
        return self.experiment.clean_value(value)

    def equivalent_to(
        self,
        other: "Observation",
        comparator: Optional[Callable[[Any, Any], bool]] = None,
        error_comparator: Optional[Callable[[BaseException, BaseException], bool]] = None,
    ) -> bool:
        """
        Is this observation equivalent to another?

        Two failures are equivalent when they have the same type and message
        (or when error_comparator says so). Two values are equivalent when
        they are == (or when comparator says so). A failure is never
        equivalent to a value.

        Exceptions raised by the comparators propagate to the caller.
        """
        if self.raised or other.raised:
            if not (self.raised and other.raised):
                return False
            if error_comparator is not None:
                return bool(error_comparator(self.failure, other.failure))
            return (
                type(self.failure) is type(other.failure)
                and str(self.failure) == str(other.failure)
            )

        if comparator is not None:
            return bool(comparator(self.value, other.value))
        return bool(self.value == other.value)
