"""Poll loop progress models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a single fetch/write cycle."""
    iteration: int
    written_path: Path | None = None
    error_message: str | None = None
    fetch_failed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


@dataclass(frozen=True)
class PollSummary:
    """Totals for a bounded poll run."""
    cycles: int
    writes: int
    fetch_failures: int
    write_failures: int
