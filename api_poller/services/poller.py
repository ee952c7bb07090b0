"""Poll loop: fetch, write a placeholder record, sleep, repeat."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from ..models import CycleResult, PollerConfig, PollSummary
from .errors import ErrorHandlingService, FileSystemError, get_error_service
from .http_client import Fetcher
from .output_writer import OutputWriterService

log = structlog.stdlib.get_logger()

# The fetched payload is never inspected; every successful cycle writes this instead.
PLACEHOLDER_PAYLOAD = b"API response ignored"


class PollerService:
    """Drives the fetch/write/sleep cycle for one configuration.

    Cycles run strictly one after another. A failed fetch or write is logged
    and the loop carries on after the normal interval; only failing to create
    the output directory before the first cycle stops the run.
    """

    def __init__(
        self,
        config: PollerConfig,
        fetcher: Fetcher,
        writer: OutputWriterService | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        error_service: ErrorHandlingService | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            config: Run configuration
            fetcher: Fetch capability for the source URL
            writer: Output writer (defaults to one using the local clock)
            sleep: Coroutine used for the end-of-cycle wait
            error_service: Error handler for per-cycle failures
        """
        self.config = config
        self._fetcher = fetcher
        self._writer = writer or OutputWriterService()
        self._sleep = sleep
        self._error_service = error_service or get_error_service()

    async def run(self) -> PollSummary:
        """Bootstrap the output directory and run cycles until the iteration limit.

        With `max_iterations` unset this only returns if the task is cancelled.

        Returns:
            Totals for the run

        Raises:
            FileSystemError: If the output directory cannot be created
        """
        output_path = self.config.output_path
        try:
            self._writer.ensure_directories(output_path)
        except (OSError, ValueError) as e:
            log.error("Error creating output directories", path=str(output_path), error=str(e))
            raise FileSystemError(
                message="Unable to create the output directory. No cycle can succeed.",
                original_error=e,
                path=str(output_path.parent),
                operation="ensure_directories",
                recoverable=False,
            ) from e

        log.info(
            "Poller started",
            url=self.config.source_url,
            path=str(output_path),
            mode=self.config.output_mode.value,
            frequency_seconds=self.config.frequency_seconds,
            max_iterations=self.config.max_iterations,
        )

        cycles = writes = fetch_failures = write_failures = 0
        max_iterations = self.config.max_iterations

        while max_iterations is None or cycles < max_iterations:
            cycles += 1
            result = await self.run_cycle(cycles)
            if result.written_path is not None:
                writes += 1
            elif result.fetch_failed:
                fetch_failures += 1
            else:
                write_failures += 1

            await self._sleep(self.config.frequency_seconds)

        summary = PollSummary(
            cycles=cycles,
            writes=writes,
            fetch_failures=fetch_failures,
            write_failures=write_failures,
        )
        log.info("Poller finished", cycles=cycles, writes=writes,
                 fetch_failures=fetch_failures, write_failures=write_failures)
        return summary

    async def run_cycle(self, iteration: int) -> CycleResult:
        """Fetch the source URL and, on success, write the placeholder record."""
        url = self.config.source_url

        try:
            _ = await self._fetcher.fetch(url)
        except Exception as e:
            error = self._error_service.handle_error(
                e, operation="fetch", component="poller", context={"url": url, "iteration": iteration}
            )
            log.warning("Error fetching data", iteration=iteration, error=error.message)
            return CycleResult(iteration=iteration, error_message=error.message, fetch_failed=True)

        try:
            written = self._writer.write(PLACEHOLDER_PAYLOAD, self.config.output_path, self.config.output_mode)
        except (OSError, ValueError) as e:
            # ValueError: unusable path (no file name, embedded NUL)
            error = self._error_service.handle_error(
                e,
                operation="write",
                component="poller",
                context={"path": str(self.config.output_path), "iteration": iteration},
            )
            log.warning("Error saving data", iteration=iteration, error=error.message)
            return CycleResult(iteration=iteration, error_message=error.message)

        log.info("Data saved to file", path=str(written), iteration=iteration)
        return CycleResult(iteration=iteration, written_path=written)
