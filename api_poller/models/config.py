"""Configuration data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class OutputMode(Enum):
    """File-write discipline used for each poll cycle."""
    OVERWRITE = "overwrite"
    CREATE_TIMESTAMPED = "create"  # New file per write, timestamp-suffixed
    APPEND = "append"


DEFAULT_FREQUENCY_SECONDS = 60
DEFAULT_OUTPUT_PATH = Path("output/output.json")
DEFAULT_OUTPUT_MODE = OutputMode.OVERWRITE
DEFAULT_SOURCE_URL = "https://api.chucknorris.io/jokes/random"


@dataclass(frozen=True)
class PollerConfig:
    """Poller configuration, immutable for the duration of a run."""
    frequency_seconds: int = DEFAULT_FREQUENCY_SECONDS
    output_path: Path = DEFAULT_OUTPUT_PATH
    output_mode: OutputMode = DEFAULT_OUTPUT_MODE
    source_url: str = DEFAULT_SOURCE_URL
    request_timeout: float = 30.0
    log_level: str = "INFO"
    max_iterations: int | None = None  # None = run until the process is killed
