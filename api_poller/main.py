"""Main entry point for the API poller.

This module provides the application entry point with:
- Command-line argument parsing
- Configuration layering and logging setup
- Wiring of the HTTP client, output writer and poll loop
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from api_poller.models import OutputMode, PollerConfig, PollSummary
from api_poller.services.config import VALID_LOG_LEVELS, ConfigurationService
from api_poller.services.errors import ConfigurationError, FileSystemError, get_error_service
from api_poller.services.http_client import HttpClientService
from api_poller.services.logging import setup_logging
from api_poller.services.output_writer import OutputWriterService
from api_poller.services.poller import PollerService

__version__ = "0.1.0"

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT

log = structlog.stdlib.get_logger()


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        config: Path | None,
        frequency: int | None,
        output: str | None,
        output_mode: str | None,
        api_url: str | None,
        timeout: float | None,
        max_iterations: int | None,
        log_level: str | None,
        log_dir: Path | None,
        write_config: Path | None,
    ) -> None:
        self.config: Path | None = config
        self.frequency: int | None = frequency
        self.output: str | None = output
        self.output_mode: str | None = output_mode
        self.api_url: str | None = api_url
        self.timeout: float | None = timeout
        self.max_iterations: int | None = max_iterations
        self.log_level: str | None = log_level
        self.log_dir: Path | None = log_dir
        self.write_config: Path | None = write_config

    def overrides(self) -> dict[str, str | int | float | None]:
        """Settings given on the command line, keyed like the config file."""
        return {
            "frequency_seconds": self.frequency,
            "output_path": self.output,
            "output_mode": self.output_mode,
            "source_url": self.api_url,
            "request_timeout": self.timeout,
            "max_iterations": self.max_iterations,
            "log_level": self.log_level,
        }


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments.

    Flags left out stay None so that the config file and defaults show through.
    """
    defaults = PollerConfig()
    parser = argparse.ArgumentParser(
        prog="api-poller",
        description="Periodically GET an API endpoint and record each successful fetch to a file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  api-poller                                   Poll the default API every 60 seconds
  api-poller --frequency 5 --output-mode append
  api-poller --output data/out.json --output-mode create
  api-poller --config ./poller.json --max-iterations 3
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON configuration file"
    )

    _ = parser.add_argument(
        "--frequency",
        type=int,
        default=None,
        help=f"Frequency of data fetching in seconds (default: {defaults.frequency_seconds})"
    )

    _ = parser.add_argument(
        "--output",
        default=None,
        help=f"Output file path (default: {defaults.output_path})"
    )

    _ = parser.add_argument(
        "--output-mode",
        choices=[mode.value for mode in OutputMode],
        default=None,
        help="Output file mode (overwrite = overwrite, create = new file with timestamp, "
             f"append = append to existing file; default: {defaults.output_mode.value})"
    )

    _ = parser.add_argument(
        "--api-url",
        default=None,
        help=f"API URL (default: {defaults.source_url})"
    )

    _ = parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"HTTP request timeout in seconds (default: {defaults.request_timeout})"
    )

    _ = parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Stop after this many cycles (default: run until killed)"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=list(VALID_LOG_LEVELS),
        default=None,
        help=f"Set the logging level (default: {defaults.log_level})"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: console only)"
    )

    _ = parser.add_argument(
        "--write-config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the effective configuration to PATH as JSON and exit"
    )

    ns = parser.parse_args(argv)

    return ParsedArgs(
        config=ns.config,
        frequency=ns.frequency,
        output=ns.output,
        output_mode=ns.output_mode,
        api_url=ns.api_url,
        timeout=ns.timeout,
        max_iterations=ns.max_iterations,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
        write_config=ns.write_config,
    )


async def run_poller(config: PollerConfig) -> PollSummary:
    """Run the poll loop for `config` with a real HTTP client."""
    async with HttpClientService(timeout=config.request_timeout) as client:
        poller = PollerService(config=config, fetcher=client, writer=OutputWriterService())
        return await poller.run()


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the application."""
    args = parse_arguments(argv)
    error_service = get_error_service()

    try:
        config = ConfigurationService(config_path=args.config).load_config(args.overrides())
    except ConfigurationError as e:
        print(error_service.create_user_message(e.to_user_friendly()), file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    _ = setup_logging(log_level=config.log_level, log_dir=args.log_dir)

    if args.write_config is not None:
        try:
            path = ConfigurationService().save_config(config, args.write_config)
        except ConfigurationError as e:
            print(error_service.create_user_message(e.to_user_friendly()), file=sys.stderr)
            sys.exit(EXIT_CONFIG_ERROR)
        except OSError as e:
            error = error_service.handle_error(
                e, operation="save_config", component="main", context={"path": str(args.write_config)}
            )
            print(error_service.create_user_message(error), file=sys.stderr)
            sys.exit(EXIT_RUNTIME_ERROR)
        print(f"Configuration written to {path}")
        sys.exit(EXIT_OK)

    log.info(
        "Starting API poller",
        version=__version__,
        url=config.source_url,
        output=str(config.output_path),
        mode=config.output_mode.value,
        frequency_seconds=config.frequency_seconds,
    )

    try:
        _ = asyncio.run(run_poller(config))
        exit_code = EXIT_OK

    except FileSystemError as e:
        log.error("Error creating output directories", error=e.message, technical_details=e.technical_details)
        print(error_service.create_user_message(e.to_user_friendly()), file=sys.stderr)
        exit_code = EXIT_RUNTIME_ERROR

    except KeyboardInterrupt:
        log.info("Poller interrupted by user")
        exit_code = EXIT_INTERRUPTED

    except Exception as e:
        log.error("Unhandled exception", error=str(e), exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        exit_code = EXIT_RUNTIME_ERROR

    log.info("Poller exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
