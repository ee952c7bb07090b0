"""Tests for the command-line entry point."""

import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import structlog

from api_poller import main as entry
from api_poller.models import OutputMode, PollSummary


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_parse_arguments_leaves_unset_flags_empty() -> None:
    args = entry.parse_arguments([])

    assert all(value is None for value in args.overrides().values())
    assert args.config is None
    assert args.write_config is None


def test_parse_arguments_maps_flags_to_settings() -> None:
    args = entry.parse_arguments([
        "--frequency", "5",
        "--output", "data/out.json",
        "--output-mode", "create",
        "--api-url", "https://example.com/api",
        "--max-iterations", "2",
        "--log-level", "DEBUG",
    ])

    assert args.overrides() == {
        "frequency_seconds": 5,
        "output_path": "data/out.json",
        "output_mode": "create",
        "source_url": "https://example.com/api",
        "request_timeout": None,
        "max_iterations": 2,
        "log_level": "DEBUG",
    }


def test_unknown_output_mode_flag_is_rejected(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        entry.parse_arguments(["--output-mode", "truncate"])

    assert exc_info.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_invalid_frequency_exits_with_config_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        entry.main(["--frequency", "0"])

    assert exc_info.value.code == entry.EXIT_CONFIG_ERROR
    assert "frequency_seconds must be a positive integer" in capsys.readouterr().err


def test_directory_bootstrap_failure_exits_with_runtime_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("in the way")

    with pytest.raises(SystemExit) as exc_info:
        entry.main(["--output", str(blocker / "nested" / "out.json"), "--max-iterations", "1"])

    assert exc_info.value.code == entry.EXIT_RUNTIME_ERROR
    assert "Unable to create the output directory" in capsys.readouterr().err


def test_bounded_run_exits_cleanly(tmp_path: Path) -> None:
    summary = PollSummary(cycles=1, writes=1, fetch_failures=0, write_failures=0)

    with patch.object(entry, "run_poller", new=AsyncMock(return_value=summary)) as run_poller:
        with pytest.raises(SystemExit) as exc_info:
            entry.main([
                "--output", str(tmp_path / "out.json"),
                "--output-mode", "append",
                "--max-iterations", "1",
            ])

    assert exc_info.value.code == entry.EXIT_OK
    config = run_poller.await_args.args[0]
    assert config.output_mode is OutputMode.APPEND
    assert config.max_iterations == 1


def test_interrupt_exits_with_130(tmp_path: Path) -> None:
    with patch.object(entry, "run_poller", new=AsyncMock(side_effect=KeyboardInterrupt)):
        with pytest.raises(SystemExit) as exc_info:
            entry.main(["--output", str(tmp_path / "out.json")])

    assert exc_info.value.code == entry.EXIT_INTERRUPTED


def test_write_config_saves_effective_settings(tmp_path: Path) -> None:
    target = tmp_path / "poller.json"

    with pytest.raises(SystemExit) as exc_info:
        entry.main(["--frequency", "15", "--output-mode", "append", "--write-config", str(target)])

    assert exc_info.value.code == entry.EXIT_OK
    saved = json.loads(target.read_text())
    assert saved["frequency_seconds"] == 15
    assert saved["output_mode"] == "append"
    assert saved["output_path"] == "output/output.json"


def test_config_file_is_read(tmp_path: Path) -> None:
    config_path = tmp_path / "poller.json"
    config_path.write_text(json.dumps({"frequency_seconds": 9, "max_iterations": 1}))

    with patch.object(entry, "run_poller", new=AsyncMock()) as run_poller:
        with pytest.raises(SystemExit):
            entry.main(["--config", str(config_path), "--output", str(tmp_path / "out.json")])

    config = run_poller.await_args.args[0]
    assert config.frequency_seconds == 9
    assert config.output_path == tmp_path / "out.json"


def test_write_config_into_unwritable_location_exits_with_runtime_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("in the way")

    with pytest.raises(SystemExit) as exc_info:
        entry.main(["--write-config", str(blocker / "poller.json")])

    assert exc_info.value.code == entry.EXIT_RUNTIME_ERROR
    err = capsys.readouterr().err
    assert "Suggested actions:" in err
    assert "Traceback" not in err


def test_write_config_rejected_by_validation_exits_with_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with patch.object(
        entry.ConfigurationService,
        "save_config",
        side_effect=entry.ConfigurationError("No configuration file path given", setting="config_path"),
    ):
        with pytest.raises(SystemExit) as exc_info:
            entry.main(["--write-config", str(tmp_path / "poller.json")])

    assert exc_info.value.code == entry.EXIT_CONFIG_ERROR
    assert "No configuration file path given" in capsys.readouterr().err
