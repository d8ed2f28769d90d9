import logging
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .constants import APP_NAME, CONFIG_FILE_NAME
from .engine import AutoPushEngine

logger = logging.getLogger(APP_NAME)


class ConfigFileHandler(FileSystemEventHandler):
    """Translates filesystem events on the config file into engine signals.

    Events for any other path in the workspace are ignored.
    """

    def __init__(self, engine: AutoPushEngine):
        super().__init__()
        self.engine = engine
        self.target = engine.config_path.resolve()

    def _is_target(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return Path(path).resolve() == self.target

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            logger.debug("WATCH: Config created")
            self.engine.config_file_changed()

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            logger.debug("WATCH: Config modified")
            self.engine.config_file_changed()

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            logger.debug("WATCH: Config deleted")
            self.engine.config_file_deleted()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically rename a temp file onto the target.
        if event.is_directory:
            return
        if self._is_target(event.dest_path):
            logger.debug("WATCH: Config replaced")
            self.engine.config_file_changed()
        elif self._is_target(event.src_path):
            logger.debug("WATCH: Config moved away")
            self.engine.config_file_deleted()


class WatchBridge:
    """Feeds configuration file changes for one workspace into its engine.

    Usage:
        with WatchBridge(engine):
            ...  # the engine now follows edits to .autopush.json
    """

    def __init__(
        self,
        engine: AutoPushEngine,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.engine = engine
        self.handler = ConfigFileHandler(engine)
        self._observer_factory = observer_factory
        self._observer = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Begins watching the workspace root (non-recursively)."""
        if self._observer is not None:
            return
        observer = self._observer_factory()
        observer.schedule(self.handler, str(self.engine.workspace_dir), recursive=False)
        observer.start()
        self._observer = observer
        logger.info(
            f"WATCH: Following {CONFIG_FILE_NAME} in {self.engine.workspace_dir}"
        )

    def stop(self) -> None:
        """Stops watching. Safe to call more than once."""
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        observer.join()
        logger.debug("WATCH: Stopped")

    def __enter__(self) -> "WatchBridge":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
