"""Tests for the filesystem watch bridge."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from git_autopush.constants import CONFIG_FILE_NAME
from git_autopush.watch import ConfigFileHandler, WatchBridge


@pytest.fixture
def engine(tmp_path: Path) -> MagicMock:
    mock_engine = MagicMock(workspace_dir=tmp_path)
    mock_engine.config_path = tmp_path / CONFIG_FILE_NAME
    return mock_engine


def test_created_and_modified_trigger_reconfigure(engine: MagicMock) -> None:
    handler = ConfigFileHandler(engine)
    target = str(engine.config_path)

    handler.dispatch(FileCreatedEvent(target))
    handler.dispatch(FileModifiedEvent(target))

    assert engine.config_file_changed.call_count == 2
    engine.config_file_deleted.assert_not_called()


def test_deleted_triggers_idle(engine: MagicMock) -> None:
    handler = ConfigFileHandler(engine)

    handler.dispatch(FileDeletedEvent(str(engine.config_path)))

    engine.config_file_deleted.assert_called_once_with()


def test_other_paths_are_ignored(engine: MagicMock, tmp_path: Path) -> None:
    handler = ConfigFileHandler(engine)

    handler.dispatch(FileModifiedEvent(str(tmp_path / "main.py")))
    handler.dispatch(FileDeletedEvent(str(tmp_path / ".gitignore")))
    handler.dispatch(DirModifiedEvent(str(tmp_path)))

    assert engine.method_calls == []


def test_atomic_save_counts_as_change(engine: MagicMock, tmp_path: Path) -> None:
    """Verifies editors that rename a temp file onto the config are followed."""
    handler = ConfigFileHandler(engine)

    handler.dispatch(
        FileMovedEvent(str(tmp_path / ".autopush.json.tmp"), str(engine.config_path))
    )

    engine.config_file_changed.assert_called_once_with()


def test_moving_config_away_counts_as_delete(
    engine: MagicMock, tmp_path: Path
) -> None:
    handler = ConfigFileHandler(engine)

    handler.dispatch(
        FileMovedEvent(str(engine.config_path), str(tmp_path / "old.json"))
    )

    engine.config_file_deleted.assert_called_once_with()


def test_bridge_schedules_workspace_root(engine: MagicMock, tmp_path: Path) -> None:
    observer = MagicMock()
    bridge = WatchBridge(engine, observer_factory=lambda: observer)

    with bridge:
        assert bridge.running
        observer.schedule.assert_called_once_with(
            bridge.handler, str(tmp_path), recursive=False
        )
        observer.start.assert_called_once()

    assert not bridge.running
    observer.stop.assert_called_once()
    observer.join.assert_called_once()


def test_bridge_stop_is_idempotent(engine: MagicMock) -> None:
    observer = MagicMock()
    bridge = WatchBridge(engine, observer_factory=lambda: observer)

    bridge.stop()
    bridge.start()
    bridge.start()
    bridge.stop()
    bridge.stop()

    observer.start.assert_called_once()
    observer.stop.assert_called_once()
