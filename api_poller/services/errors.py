"""Error types and error handling for the API poller.

This module provides:
- Exception classes for the failures a poll run can hit (network, file system, configuration)
- Conversion of httpx and OS errors into operator-readable messages with suggested actions
- A handling service that logs technical details and hands back a user-friendly error
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    NETWORK = "network"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorContext:
    """Context information for an error."""
    operation: str
    component: str
    details: dict[str, Any]


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


class AppError(Exception):
    """Base exception class for poller errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable
        self.context = context

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class NetworkError(AppError):
    """Exception for failures of the fetch capability."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        suggested_actions = [
            "Check your internet connection",
            "Verify the API URL is correct",
            "The next cycle will try again",
        ]

        if status_code:
            if status_code == 429:
                suggested_actions = [
                    "The API is rate limiting requests",
                    "Increase --frequency to poll less often",
                ]
            elif status_code == 404:
                suggested_actions = [
                    "The endpoint may no longer exist",
                    "Check the --api-url value",
                ]
            elif status_code >= 500:
                suggested_actions = [
                    "The API server is experiencing issues",
                    "The next cycle will try again",
                ]

        technical_details = None
        if original_error:
            technical_details = f"{type(original_error).__name__}: {original_error}"
        if url:
            technical_details = f"URL: {url}" + (f"\n{technical_details}" if technical_details else "")
        if status_code:
            technical_details = f"Status: {status_code}" + (f"\n{technical_details}" if technical_details else "")

        # Client errors other than 429 point at a bad --api-url; the rest are transient
        severity = ErrorSeverity.WARNING
        if status_code and 400 <= status_code < 500 and status_code != 429:
            severity = ErrorSeverity.ERROR

        super().__init__(
            message=message,
            category=ErrorCategory.NETWORK,
            severity=severity,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.original_error = original_error
        self.url = url
        self.status_code = status_code


class FileSystemError(AppError):
    """Exception for output file and directory failures."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        operation: str | None = None,
        recoverable: bool = True,
    ) -> None:
        suggested_actions = self._get_suggested_actions(original_error)

        technical_details = None
        if original_error:
            technical_details = f"{type(original_error).__name__}: {original_error}"
        if path:
            technical_details = f"Path: {path}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message=message,
            category=ErrorCategory.FILE_SYSTEM,
            severity=ErrorSeverity.ERROR if recoverable else ErrorSeverity.CRITICAL,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=recoverable,
        )
        self.original_error = original_error
        self.path = path
        self.operation = operation

    @staticmethod
    def _get_suggested_actions(original_error: Exception | None) -> list[str]:
        """Get suggested actions based on error type."""
        if isinstance(original_error, PermissionError):
            return [
                "Check file/directory permissions",
                "Choose a different --output location",
            ]
        elif isinstance(original_error, (NotADirectoryError, FileExistsError)):
            return [
                "A file is in the way of the output directory",
                "Remove it or choose a different --output location",
            ]
        elif isinstance(original_error, FileNotFoundError):
            return [
                "Verify the output path is correct",
                "Check if the output directory was moved or deleted",
            ]
        elif isinstance(original_error, OSError):
            error_str = str(original_error).lower()
            if "no space" in error_str or "disk full" in error_str:
                return [
                    "Free up disk space",
                    "Switch away from append mode if the file keeps growing",
                ]
            elif "read-only" in error_str:
                return [
                    "The file system is read-only",
                    "Choose a different --output location",
                ]

        return [
            "Check the output path and permissions",
            "Ensure sufficient disk space",
        ]


class ConfigurationError(AppError):
    """Exception for invalid poller configuration."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = [
            "Check the command-line flags and config file",
            "Run with --help to see accepted values",
        ]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=False,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


class ErrorHandlingService:
    """Converts raw exceptions to application errors and logs them.

    Every recoverable failure in a poll cycle goes through `handle_error`, so the
    operator always gets a readable message and the log always gets the
    technical details. Nothing is kept after the call returns.
    """

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Handle an error and return a user-friendly representation.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            component: The component where the error occurred
            context: Additional context information (url, path, ...)

        Returns:
            User-friendly error representation
        """
        app_error = self._convert_to_app_error(error, operation, component, context)
        self._log_error(app_error, operation, component, context)
        return app_error.to_user_friendly()

    def _convert_to_app_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> AppError:
        """Convert a standard exception to an AppError."""
        if isinstance(error, AppError):
            return error

        url = context.get("url") if context else None
        path = context.get("path") if context else None

        # Network errors
        if isinstance(error, httpx.ConnectError):
            return NetworkError(
                message="Unable to connect to the API server.",
                original_error=error,
                url=url,
            )
        elif isinstance(error, httpx.TimeoutException):
            return NetworkError(
                message="The request timed out. The API may be slow or unavailable.",
                original_error=error,
                url=url,
            )
        elif isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            return NetworkError(
                message=self._get_http_error_message(status_code),
                original_error=error,
                url=str(error.request.url),
                status_code=status_code,
            )
        elif isinstance(error, httpx.HTTPError):
            return NetworkError(
                message="A network error occurred while fetching data.",
                original_error=error,
                url=url,
            )

        # File system errors
        elif isinstance(error, PermissionError):
            return FileSystemError(
                message="Permission denied writing the output file.",
                original_error=error,
                path=path,
                operation=operation,
            )
        elif isinstance(error, OSError):
            return FileSystemError(
                message=f"A file system error occurred: {error}",
                original_error=error,
                path=path,
                operation=operation,
            )
        elif isinstance(error, ValueError) and path is not None:
            return FileSystemError(
                message=f"The output path cannot be used: {error}",
                original_error=error,
                path=path,
                operation=operation,
            )

        return AppError(
            message="An unexpected error occurred.",
            category=ErrorCategory.UNEXPECTED,
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(error).__name__}: {error}",
            recoverable=True,
            context=ErrorContext(
                operation=operation,
                component=component,
                details=context or {},
            ),
        )

    @staticmethod
    def _get_http_error_message(status_code: int) -> str:
        """Get a user-friendly message for HTTP status codes."""
        messages = {
            400: "The API rejected the request as invalid.",
            401: "The API requires authentication.",
            403: "Access to the API endpoint was denied.",
            404: "The API endpoint was not found.",
            408: "The API timed out handling the request.",
            429: "The API is rate limiting requests.",
            500: "The API server encountered an error.",
            502: "The API server is temporarily unavailable.",
            503: "The API service is temporarily unavailable.",
            504: "The API server took too long to respond.",
        }
        return messages.get(status_code, f"The API returned HTTP {status_code}.")

    def _log_error(
        self,
        error: AppError,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> None:
        """Log error with full technical details."""
        log_method = log.warning if error.severity == ErrorSeverity.WARNING else log.error

        log_method(
            "Error occurred",
            error_message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            operation=operation,
            component=component,
            technical_details=error.technical_details,
            recoverable=error.recoverable,
            context=context,
        )

    def create_user_message(
        self,
        error: UserFriendlyError,
        include_suggestions: bool = True,
    ) -> str:
        """Create a formatted operator message from an error.

        Args:
            error: The user-friendly error
            include_suggestions: Whether to include suggested actions

        Returns:
            Formatted message string
        """
        parts = [error.message]

        if include_suggestions and error.suggested_actions:
            parts.append("\nSuggested actions:")
            for action in error.suggested_actions[:3]:
                parts.append(f"  • {action}")

        return "\n".join(parts)


_error_service: ErrorHandlingService | None = None


def get_error_service() -> ErrorHandlingService:
    """Get the shared error handling service instance."""
    global _error_service
    if _error_service is None:
        _error_service = ErrorHandlingService()
    return _error_service


def handle_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> UserFriendlyError:
    """Convenience function to handle errors using the shared service."""
    return get_error_service().handle_error(error, operation, component, context)
