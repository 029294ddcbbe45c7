"""
Experiments that publish somewhere.

- RecordingExperiment: keeps recent results in a bounded, thread-safe
  in-memory buffer for tests and local inspection
- LoggingExperiment: emits one structured log record per result

Neither persists or transmits results; they are the minimal sinks an
integrating application can start from.
"""

import logging
import threading
from collections import deque
from typing import Any, Dict, List, Optional, Tuple

from refactor_science.experiment import Experiment
from refactor_science.operations import Operation
from refactor_science.result import Result

logger = logging.getLogger(__name__)


class RecordingExperiment(Experiment):
    """
    Experiment that records published results in memory.

    Bounded (FIFO eviction) and safe to publish from several threads.
    Internal errors are recorded in `errors`; they are re-raised unless
    swallow_errors is set.
    """

    def __init__(
        self,
        name: str = "experiment",
        enabled: bool = True,
        max_results: int = 100,
        swallow_errors: bool = False,
    ):
        super().__init__(name)
        self._enabled = enabled
        self.swallow_errors = swallow_errors
        self.results: deque = deque(maxlen=max_results)
        self.errors: List[Tuple[Operation, Exception]] = []
        self._lock = threading.RLock()

    def enabled(self) -> bool:
        return self._enabled

    def publish(self, result: Result) -> None:
        with self._lock:
            self.results.append(result)
        logger.debug(f"Recorded result for {self.name} ({len(self.results)} kept)")

    def raised(self, operation: Operation, error: Exception) -> None:
        with self._lock:
            self.errors.append((operation, error))
        if not self.swallow_errors:
            raise error

    @property
    def last_result(self) -> Optional[Result]:
        """Most recently published result, or None."""
        with self._lock:
            return self.results[-1] if self.results else None

    def get_stats(self) -> Dict[str, int]:
        """Counts of recorded results by outcome."""
        with self._lock:
            results = list(self.results)
            return {
                "results": len(results),
                "matched": sum(1 for r in results if r.is_matched),
                "mismatched": sum(1 for r in results if r.is_mismatched),
                "ignored": sum(1 for r in results if r.is_ignored),
                "errors": len(self.errors),
            }

    def clear(self) -> None:
        """Drop recorded results and errors."""
        with self._lock:
            self.results.clear()
            self.errors.clear()


class LoggingExperiment(Experiment):
    """
    Experiment that logs each result as structured data.

    Mismatches are logged at WARNING, everything else at INFO. Internal
    errors are logged and never re-raised, so a broken hook cannot change
    what the caller sees.
    """

    def __init__(
        self,
        name: str = "experiment",
        enabled: bool = True,
        log: Optional[logging.Logger] = None,
    ):
        super().__init__(name)
        self._enabled = enabled
        self._log = log or logger

    def enabled(self) -> bool:
        return self._enabled

    def publish(self, result: Result) -> None:
        payload: Dict[str, Any] = result.to_payload().model_dump()
        if result.is_mismatched:
            level, status = logging.WARNING, "mismatched"
        elif result.is_ignored:
            level, status = logging.INFO, "ignored"
        else:
            level, status = logging.INFO, "matched"

        self._log.log(
            level,
            f"Experiment {self.name}: {status}",
            extra={"science": payload, "experiment": self.name},
        )

    def raised(self, operation: Operation, error: Exception) -> None:
        self._log.error(
            f"Experiment {self.name}: {operation.value} failed: {error}",
            extra={"experiment": self.name, "operation": operation.value},
        )
