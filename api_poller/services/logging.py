"""Logging setup for the poller.

All poller modules log through ``structlog.stdlib.get_logger()``; this module
decides where those events end up. The console always gets them, rendered for
people in development and as JSON lines elsewhere. With a log directory the
poller also keeps rotating JSON files, with failures copied into their own file
so a long-running poller's problems are easy to find.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, NamedTuple

import structlog


class LogFile(NamedTuple):
    """A rotating log file kept under the log directory."""
    name: str
    max_bytes: int
    backup_count: int
    min_level: int | None = None


LOG_FILES = (
    LogFile("app.log", max_bytes=10 * 1024 * 1024, backup_count=5),
    LogFile("error.log", max_bytes=5 * 1024 * 1024, backup_count=3, min_level=logging.ERROR),
)

# httpx and httpcore report every request at INFO; the poller logs its own fetches
_CHATTY_LIBRARIES = ("httpx", "httpcore")


class LoggingService:
    """Routes structlog events to the console and optional log files."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """
        Args:
            log_level: Minimum level to emit, case-insensitive
            log_dir: Directory for rotating log files (None for console only)
            environment: "development" for readable console output; read from
                $ENVIRONMENT when not given
        """
        self.level = logging.getLevelName(log_level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO
        self.log_dir = log_dir
        self.environment = environment or os.getenv("ENVIRONMENT", "development")

    @property
    def human_readable(self) -> bool:
        return self.environment == "development" and self.log_dir is None

    def configure(self) -> None:
        """Install handlers on the root logger and point structlog at it."""
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(self.level)
        for handler in self._build_handlers():
            root.addHandler(handler)

        for name in _CHATTY_LIBRARIES:
            logging.getLogger(name).setLevel(max(self.level, logging.WARNING))

        structlog.configure(
            processors=self._processors(),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _build_handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = [self._with_level(logging.StreamHandler(sys.stdout), self.level)]

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            for log_file in LOG_FILES:
                handler = logging.handlers.RotatingFileHandler(
                    filename=self.log_dir / log_file.name,
                    maxBytes=log_file.max_bytes,
                    backupCount=log_file.backup_count,
                    encoding="utf-8",
                )
                handlers.append(self._with_level(handler, max(self.level, log_file.min_level or 0)))

        return handlers

    @staticmethod
    def _with_level(handler: logging.Handler, level: int) -> logging.Handler:
        # structlog has already rendered the event; the handler writes it as is
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler

    def _processors(self) -> list[Any]:
        renderer: Any = (
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
            if self.human_readable
            else structlog.processors.JSONRenderer()
        )
        return [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ]


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    environment: str | None = None,
) -> LoggingService:
    """Configure logging for a poller run and return the service that did it."""
    service = LoggingService(log_level=log_level, log_dir=log_dir, environment=environment)
    service.configure()
    return service
