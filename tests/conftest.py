"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from refactor_science import Experiment, Operation, Result  # noqa: E402


class FakeExperiment(Experiment):
    """
    Experiment double: always enabled, keeps published results and swallows
    internal errors into `exceptions`.
    """

    def __init__(self, name: str = "experiment"):
        super().__init__(name)
        self.is_enabled = True
        self.published: List[Result] = []
        self.exceptions: List[Tuple[Operation, Exception]] = []

    def enabled(self) -> bool:
        return self.is_enabled

    def publish(self, result: Result) -> None:
        self.published.append(result)

    def raised(self, operation: Operation, error: Exception) -> None:
        self.exceptions.append((operation, error))

    @property
    def published_result(self) -> Optional[Result]:
        return self.published[-1] if self.published else None


def failing(message: str = "boom", error_class: Any = RuntimeError):
    """Build a behavior that raises error_class(message)."""

    def behavior(*args, **kwargs):
        raise error_class(message)

    return behavior


@pytest.fixture
def experiment() -> FakeExperiment:
    """Fresh enabled experiment that records published results."""
    return FakeExperiment()


@pytest.fixture
def fail():
    """Factory for raising behaviors."""
    return failing


@pytest.fixture
def make_experiment():
    """Factory for additional FakeExperiment instances."""
    return FakeExperiment
