"""
Serializable shape of a Result.

These models are the contract handed to telemetry sinks: experiment name and
context, per-observation outcomes and timings, and the mismatch partitions.
Values are the cleaned values, never the raw ones.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FailurePayload(BaseModel):
    """A captured failure, reduced to its type and message."""

    type: str
    message: str


class ObservationPayload(BaseModel):
    """One behavior's outcome."""

    name: str
    value: Any = None
    failure: Optional[FailurePayload] = None
    duration: float
    cpu_time: float

    @classmethod
    def from_observation(cls, observation) -> "ObservationPayload":
        failure = None
        if observation.raised:
            failure = FailurePayload(
                type=type(observation.failure).__name__,
                message=str(observation.failure),
            )
        return cls(
            name=observation.name,
            value=observation.cleaned_value,
            failure=failure,
            duration=observation.duration,
            cpu_time=observation.cpu_time,
        )


class ResultPayload(BaseModel):
    """
    Published form of a Result.

    mismatched and ignored hold candidate names; candidates keeps execution order.
    """

    experiment: str
    context: Dict[str, Any] = Field(default_factory=dict)
    control: Optional[ObservationPayload] = None
    candidates: List[ObservationPayload] = Field(default_factory=list)
    execution_order: List[str] = Field(default_factory=list)
    mismatched: List[str] = Field(default_factory=list)
    ignored: List[str] = Field(default_factory=list)
    matched: bool
    cohort: Any = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
