"""
Experiment configuration from the environment.

Values are read from environment variables, with a .env file in the working
directory loaded first when present. Defaults keep experiments enabled,
mismatches silent and every behavior failure captured.
"""

import os
from dataclasses import dataclass
from typing import Literal, Tuple, Type

from dotenv import find_dotenv, load_dotenv


SinkType = Literal["default", "recording", "logging"]
RescueType = Literal["all", "standard"]

VALID_SINKS = {"default", "recording", "logging"}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower().strip() in ("1", "true", "yes", "on")


@dataclass
class ScienceConfig:
    """Experiment configuration from environment."""

    enabled: bool
    raise_on_mismatches: bool
    rescue: RescueType
    sink: SinkType
    record_limit: int

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "ScienceConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            SCIENCE_ENABLED: "true" (default) / "false"
            SCIENCE_RAISE_ON_MISMATCH: "false" (default) / "true"
            SCIENCE_RESCUE: "all" (default) or "standard"
            SCIENCE_SINK: "default" (default), "recording" or "logging"
            SCIENCE_RECORD_LIMIT: Results kept by the recording sink (default 100)
        """
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))

        rescue = os.getenv("SCIENCE_RESCUE", "all").lower().strip()
        if rescue not in ("all", "standard"):
            rescue = "all"

        sink = os.getenv("SCIENCE_SINK", "default").lower().strip()
        if sink not in VALID_SINKS:
            # Unknown sink, default to no-op
            sink = "default"

        try:
            record_limit = int(os.getenv("SCIENCE_RECORD_LIMIT", "100"))
        except ValueError:
            record_limit = 100

        return cls(
            enabled=_env_flag("SCIENCE_ENABLED", "true"),
            raise_on_mismatches=_env_flag("SCIENCE_RAISE_ON_MISMATCH", "false"),
            rescue=rescue,  # type: ignore
            sink=sink,  # type: ignore
            record_limit=max(record_limit, 1),
        )

    @property
    def rescues(self) -> Tuple[Type[BaseException], ...]:
        """Exception types captured from behaviors."""
        if self.rescue == "standard":
            return (Exception,)
        return (BaseException,)


def get_config() -> ScienceConfig:
    """Get experiment configuration from the current environment."""
    return ScienceConfig.from_env()
