"""Output file writing under the overwrite, timestamped-create and append disciplines."""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog

from ..models import OutputMode

log = structlog.stdlib.get_logger()

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_OPEN_MODES: dict[OutputMode, str] = {
    OutputMode.OVERWRITE: "wb",
    OutputMode.CREATE_TIMESTAMPED: "wb",
    OutputMode.APPEND: "ab",
}


class OutputWriterService:
    """Writes byte payloads to the configured output file."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        """Initialize the output writer.

        Args:
            clock: Source of the local wall-clock time used for timestamped file names
        """
        self._clock = clock

    def ensure_directories(self, path: Path) -> None:
        """Create the parent directory of `path` and any missing ancestors.

        Does nothing when the path has no directory component or its parent is
        the filesystem root. Succeeds silently if the directory already exists.

        Args:
            path: Output file path whose parent should exist

        Raises:
            OSError: If a directory cannot be created (permission denied,
                a regular file in the way, ...)
        """
        parent = Path(path).parent
        if parent == Path(".") or parent == Path(parent.anchor):
            return

        try:
            parent.mkdir(parents=True, exist_ok=True)
            log.debug("Output directory ready", path=str(parent))
        except OSError as e:
            log.error("Failed to create output directory", path=str(parent), error=str(e))
            raise

    def resolve_target(self, path: Path, mode: OutputMode) -> Path:
        """Work out which file a write in `mode` should land in.

        Overwrite and append write to `path` itself. Timestamped mode inserts
        `_YYYYMMDDHHMMSS` between the stem and the extension, so `out.json`
        becomes `out_20240101120000.json` and `out` becomes `out_20240101120000`.
        """
        path = Path(path)
        if mode is not OutputMode.CREATE_TIMESTAMPED:
            return path

        timestamp = self._clock().strftime(TIMESTAMP_FORMAT)
        return path.with_name(f"{path.stem}_{timestamp}{path.suffix}")

    def write(self, data: bytes, path: Path, mode: OutputMode) -> Path:
        """Write `data` to the file resolved from `path` and `mode`.

        Overwrite and timestamped modes truncate the target; append mode adds
        past any existing content. Missing parent directories and a missing file
        are created. Partial writes are not rolled back.

        Args:
            data: Payload to write (may be empty)
            path: Configured output path
            mode: File-write discipline

        Returns:
            The path that was actually written

        Raises:
            OSError: If the file cannot be opened or written
        """
        target = self.resolve_target(path, mode)
        self.ensure_directories(target)

        try:
            with open(target, _OPEN_MODES[mode]) as f:
                f.write(data)
        except OSError as e:
            log.error("Failed to write output file", path=str(target), mode=mode.value, error=str(e))
            raise

        log.debug("Output file written", path=str(target), mode=mode.value, size=len(data))
        return target
