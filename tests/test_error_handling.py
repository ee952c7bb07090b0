"""Tests for error conversion and operator-facing messages."""

import errno
from unittest.mock import patch

import httpx
import pytest
from hypothesis import given, strategies as st

from api_poller.services.errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    FileSystemError,
    NetworkError,
    get_error_service,
    handle_error,
)


REQUEST = httpx.Request("GET", "https://api.example.com/jokes/random")


class TestConversion:
    """Raw exceptions become categorised application errors."""

    @pytest.mark.parametrize("error,message", [
        (httpx.ConnectError("refused", request=REQUEST), "Unable to connect to the API server."),
        (httpx.ReadTimeout("slow", request=REQUEST), "The request timed out. The API may be slow or unavailable."),
        (httpx.RemoteProtocolError("bad frame", request=REQUEST), "A network error occurred while fetching data."),
    ])
    def test_transport_errors_are_network_errors(self, error: Exception, message: str) -> None:
        result = ErrorHandlingService().handle_error(
            error, operation="fetch", component="poller", context={"url": str(REQUEST.url)}
        )

        assert result.category is ErrorCategory.NETWORK
        assert result.message == message
        assert result.recoverable
        assert "URL: https://api.example.com/jokes/random" in (result.technical_details or "")

    def test_rate_limit_suggests_lower_frequency(self) -> None:
        response = httpx.Response(429, request=REQUEST)
        error = httpx.HTTPStatusError("429", request=REQUEST, response=response)

        result = ErrorHandlingService().handle_error(error, operation="fetch", component="poller")

        assert result.message == "The API is rate limiting requests."
        assert any("--frequency" in action for action in result.suggested_actions)

    def test_unlisted_status_gets_generic_message(self) -> None:
        response = httpx.Response(418, request=REQUEST)
        error = httpx.HTTPStatusError("418", request=REQUEST, response=response)

        result = ErrorHandlingService().handle_error(error, operation="fetch", component="poller")

        assert result.message == "The API returned HTTP 418."

    def test_permission_error_is_file_system_error(self) -> None:
        error = PermissionError(errno.EACCES, "Permission denied", "/root/output.json")

        result = ErrorHandlingService().handle_error(
            error, operation="write", component="poller", context={"path": "/root/output.json"}
        )

        assert result.category is ErrorCategory.FILE_SYSTEM
        assert result.message == "Permission denied writing the output file."
        assert "Path: /root/output.json" in (result.technical_details or "")

    def test_disk_full_suggests_freeing_space(self) -> None:
        error = OSError(errno.ENOSPC, "No space left on device")

        result = ErrorHandlingService().handle_error(error, operation="write", component="poller")

        assert result.category is ErrorCategory.FILE_SYSTEM
        assert "Free up disk space" in result.suggested_actions

    def test_not_a_directory_suggests_removing_blocker(self) -> None:
        error = NotADirectoryError(errno.ENOTDIR, "Not a directory")

        result = ErrorHandlingService().handle_error(error, operation="ensure_directories", component="poller")

        assert "A file is in the way of the output directory" in result.suggested_actions

    def test_app_errors_pass_through(self) -> None:
        original = NetworkError("custom", url="https://x.example")

        app_error = ErrorHandlingService()._convert_to_app_error(original, "fetch", "poller", None)

        assert app_error is original

    @given(st.text(max_size=50))
    def test_unexpected_errors_keep_technical_details(self, text: str) -> None:
        result = ErrorHandlingService().handle_error(RuntimeError(text), operation="fetch", component="poller")

        assert result.category is ErrorCategory.UNEXPECTED
        assert result.technical_details == f"RuntimeError: {text}"


class TestErrorTypes:

    def test_fatal_file_system_error_is_critical(self) -> None:
        error = FileSystemError("cannot create", path="out", recoverable=False)

        assert error.severity is ErrorSeverity.CRITICAL
        assert not error.to_user_friendly().recoverable

    def test_configuration_error_lists_expected_values(self) -> None:
        error = ConfigurationError("bad mode", setting="output_mode", current_value="x", expected="overwrite, create, append")

        assert isinstance(error, AppError)
        assert error.category is ErrorCategory.CONFIGURATION
        assert "Expected: overwrite, create, append" in error.suggested_actions
        assert error.technical_details == "Setting: output_mode\nCurrent: x"


def test_errors_are_logged_with_details() -> None:
    with patch("api_poller.services.errors.log") as mock_logger:
        handle_error(OSError("disk on fire"), operation="write", component="poller", context={"path": "out.json"})

    assert mock_logger.error.called
    _, kwargs = mock_logger.error.call_args
    assert kwargs["operation"] == "write"
    assert kwargs["category"] == "file_system"
    assert "disk on fire" in kwargs["technical_details"]


def test_user_message_includes_up_to_three_suggestions() -> None:
    service = get_error_service()
    error = NetworkError("Unable to connect to the API server.").to_user_friendly()

    message = service.create_user_message(error)

    lines = message.splitlines()
    assert lines[0] == "Unable to connect to the API server."
    assert "Suggested actions:" in message
    assert len([line for line in lines if line.startswith("  • ")]) == 3
    assert service.create_user_message(error, include_suggestions=False) == "Unable to connect to the API server."


def test_shared_service_is_reused() -> None:
    assert get_error_service() is get_error_service()


@pytest.mark.parametrize("status,severity", [
    (None, ErrorSeverity.WARNING),
    (429, ErrorSeverity.WARNING),
    (503, ErrorSeverity.WARNING),
    (404, ErrorSeverity.ERROR),
    (401, ErrorSeverity.ERROR),
])
def test_network_error_severity(status: int | None, severity: ErrorSeverity) -> None:
    assert NetworkError("fetch failed", status_code=status).severity is severity


def test_transient_fetch_failures_are_logged_as_warnings() -> None:
    with patch("api_poller.services.errors.log") as mock_logger:
        result = handle_error(
            httpx.ConnectError("refused", request=REQUEST),
            operation="fetch",
            component="poller",
            context={"url": str(REQUEST.url)},
        )

    assert result.severity is ErrorSeverity.WARNING
    assert mock_logger.warning.called
    assert not mock_logger.error.called
    _, kwargs = mock_logger.warning.call_args
    assert kwargs["severity"] == "warning"
    assert kwargs["category"] == "network"


def test_unusable_path_value_error_is_file_system_error() -> None:
    result = ErrorHandlingService().handle_error(
        ValueError("embedded null byte"), operation="write", component="poller", context={"path": "o\x00.json"}
    )

    assert result.category is ErrorCategory.FILE_SYSTEM
    assert result.message == "The output path cannot be used: embedded null byte"
