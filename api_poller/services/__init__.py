"""Service layer: configuration, fetching, output writing and the poll loop."""

from .config import ConfigurationService, ValidationResult, parse_output_mode
from .errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    FileSystemError,
    NetworkError,
    UserFriendlyError,
    get_error_service,
    handle_error,
)
from .http_client import Fetcher, HttpClientService
from .output_writer import OutputWriterService
from .poller import PLACEHOLDER_PAYLOAD, PollerService

__all__ = [
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "Fetcher",
    "FileSystemError",
    "HttpClientService",
    "NetworkError",
    "OutputWriterService",
    "PLACEHOLDER_PAYLOAD",
    "PollerService",
    "UserFriendlyError",
    "ValidationResult",
    "get_error_service",
    "handle_error",
    "parse_output_mode",
]
