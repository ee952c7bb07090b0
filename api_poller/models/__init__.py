"""Data models for the API poller."""

from .config import (
    DEFAULT_FREQUENCY_SECONDS,
    DEFAULT_OUTPUT_MODE,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_SOURCE_URL,
    OutputMode,
    PollerConfig,
)
from .progress import CycleResult, PollSummary

__all__ = [
    "CycleResult",
    "DEFAULT_FREQUENCY_SECONDS",
    "DEFAULT_OUTPUT_MODE",
    "DEFAULT_OUTPUT_PATH",
    "DEFAULT_SOURCE_URL",
    "OutputMode",
    "PollSummary",
    "PollerConfig",
]
