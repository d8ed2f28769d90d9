"""Tests for the notification sinks and platform strategies."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from git_autopush import system
from git_autopush.notify import (
    ConsoleNotifier,
    DesktopNotifier,
    FanoutNotifier,
    LogNotifier,
)


def test_console_notifier_escapes_markup() -> None:
    console = Console(record=True, width=120)
    notifier = ConsoleNotifier(console)

    notifier.notify_error("Auto-push failed: [rejected] main -> main")

    text = console.export_text()
    assert "ERROR:" in text
    assert "[rejected] main -> main" in text


def test_desktop_notifier_uses_strategy(tmp_path: Path) -> None:
    strategy = MagicMock()
    notifier = DesktopNotifier(strategy)

    notifier.notify_info("pushed")
    notifier.notify_error("failed")
    notifier.present_file_for_editing(tmp_path / "a.json")

    strategy.notify.assert_any_call("Auto-push", "pushed")
    strategy.notify.assert_any_call("Auto-push Error", "failed")
    strategy.open_file.assert_called_once_with(tmp_path / "a.json")


def test_log_notifier_records_levels(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LogNotifier()

    notifier.notify_info("all good")
    notifier.notify_error("went wrong")

    levels = {r.getMessage(): r.levelname for r in caplog.records}
    assert levels["NOTIFY: all good"] == "INFO"
    assert levels["NOTIFY: went wrong"] == "ERROR"


def test_fanout_continues_after_failing_sink(
    caplog: pytest.LogCaptureFixture,
) -> None:
    broken = MagicMock()
    broken.notify_info.side_effect = RuntimeError("display unavailable")
    healthy = MagicMock()

    FanoutNotifier(broken, healthy).notify_info("hello")

    healthy.notify_info.assert_called_once_with("hello")
    assert "display unavailable" in caplog.text


def test_get_system_by_platform(mocker: MagicMock) -> None:
    mocker.patch("sys.platform", "darwin")
    assert isinstance(system.get_system(), system.MacOSStrategy)
    mocker.patch("sys.platform", "linux")
    assert isinstance(system.get_system(), system.LinuxStrategy)
    mocker.patch("sys.platform", "win32")
    assert type(system.get_system()) is system.SystemStrategy


def test_open_file_prefers_editor_env(mocker: MagicMock, tmp_path: Path) -> None:
    mocker.patch.dict("os.environ", {"VISUAL": "code --wait"}, clear=False)
    mock_popen = mocker.patch("subprocess.Popen")

    assert system.SystemStrategy().open_file(tmp_path / "cfg.json") is True

    mock_popen.assert_called_once_with(["code", "--wait", str(tmp_path / "cfg.json")])


def test_open_file_without_editor(mocker: MagicMock, tmp_path: Path) -> None:
    mocker.patch.dict("os.environ", {}, clear=True)

    assert system.SystemStrategy().open_file(tmp_path / "cfg.json") is False


def test_linux_notify_tolerates_missing_binary(mocker: MagicMock) -> None:
    mocker.patch("subprocess.run", side_effect=FileNotFoundError)

    system.LinuxStrategy().notify("Auto-push", "hello")


def test_macos_open_file_falls_back_without_blocking(
    mocker: MagicMock, tmp_path: Path
) -> None:
    mocker.patch.dict("os.environ", {}, clear=True)
    mock_popen = mocker.patch("subprocess.Popen")
    mock_run = mocker.patch("subprocess.run")

    assert system.MacOSStrategy().open_file(tmp_path / "cfg.json") is True

    assert mock_popen.call_args[0][0] == ["open", "-t", str(tmp_path / "cfg.json")]
    mock_run.assert_not_called()
