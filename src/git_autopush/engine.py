import enum
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from . import config as config_store
from .config import AutoPushConfig, ConfigError
from .constants import APP_NAME, DEFAULT_CONFIG
from .git_wrapper import GitError, GitRepo
from .notify import Notifier
from .remote import BindError, BoundRemote, RemoteBinder
from .scheduler import CycleOutcome, ScheduleHandle, SyncCycle, SyncCycleScheduler

logger = logging.getLogger(APP_NAME)


class EngineState(enum.Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    ACTIVE = "active"
    STOPPED = "stopped"


class AutoPushEngine:
    """Keeps one workspace synchronized with its remote.

    The engine reacts to host signals (workspace opened, configuration
    changed or deleted, shutdown) and owns the single live schedule and the
    single bound remote for its workspace. All signals and all ticks are
    serialized on one re-entrant lock, so a reconfiguration that arrives while
    a cycle is pushing is applied once that cycle has finished.

    Attributes:
        workspace_dir (Path): The repository root being synchronized.
        notifier (Notifier): Receives one message per outcome.
    """

    def __init__(
        self,
        workspace_dir: Path,
        notifier: Notifier,
        repo_factory: Callable[[Path], GitRepo] = GitRepo,
        scheduler: SyncCycleScheduler | None = None,
        binder: RemoteBinder | None = None,
    ):
        self.workspace_dir = Path(workspace_dir)
        self.notifier = notifier
        self.repo_factory = repo_factory
        self._lock = threading.RLock()
        self.scheduler = scheduler or SyncCycleScheduler(lock=self._lock)
        self.binder = binder or RemoteBinder()

        self._state = EngineState.IDLE
        self._handle: ScheduleHandle | None = None
        self._bound: BoundRemote | None = None
        self._config: AutoPushConfig | None = None
        self._cycle: SyncCycle | None = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def handle(self) -> ScheduleHandle | None:
        return self._handle

    @property
    def bound_remote(self) -> BoundRemote | None:
        return self._bound

    @property
    def config(self) -> AutoPushConfig | None:
        return self._config

    @property
    def config_path(self) -> Path:
        return config_store.config_path(self.workspace_dir)

    def _cancel_schedule(self) -> None:
        self.scheduler.stop(self._handle)
        self._handle = None
        self._cycle = None

    def initialize_configuration(self) -> Path | None:
        """Creates the workspace configuration if needed and activates it.

        A freshly written default configuration is opened for editing and
        activated once the user saves it (via `config_file_changed`). An
        existing configuration is activated immediately.

        Returns:
            Path | None: The configuration path, or None if the workspace is
            not a git repository.
        """
        with self._lock:
            if self._state is EngineState.STOPPED:
                return None

            if not (self.workspace_dir / ".git").exists():
                self.notifier.notify_error(
                    "The workspace is not a Git repository. "
                    "Please initialize Git first."
                )
                return None

            try:
                path, created = config_store.ensure_default_config(self.workspace_dir)
                ignore_change = config_store.ensure_ignored(self.workspace_dir)
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"INIT ERROR {self.workspace_dir.name}: {e}")
                self.notifier.notify_error(f"Failed to initialize auto-push: {e}")
                return None

            if ignore_change:
                self.notifier.notify_info(ignore_change)

            if created:
                self.notifier.present_file_for_editing(path)
                self.notifier.notify_info(
                    "Please configure your Git credentials in the config file"
                )
                return path

            self.reconfigure(path)
            return path

    def workspace_opened(self) -> None:
        """Activates the workspace if it already has a configuration file."""
        with self._lock:
            if self._state is EngineState.STOPPED:
                return
            if not self.config_path.exists():
                logger.debug(f"IDLE {self.workspace_dir.name}: No configuration.")
                return
            self.reconfigure(self.config_path)

    def config_file_changed(self, path: Path | None = None) -> bool:
        """Handles creation or modification of the configuration file."""
        return self.reconfigure(path or self.config_path)

    def reconfigure(self, path: Path) -> bool:
        """Replaces the active schedule with one built from `path`.

        The prior schedule is always cancelled first. On any failure the
        engine is left without a schedule and a single error is reported.

        Args:
            path (Path): The configuration file to activate.

        Returns:
            bool: True if a new schedule is running.
        """
        with self._lock:
            if self._state is EngineState.STOPPED:
                return False

            self._state = EngineState.CONFIGURING
            self._cancel_schedule()
            self._bound = None
            self._config = None

            try:
                config = config_store.load_validated(path)
            except ConfigError as e:
                logger.warning(f"CONFIG ERROR {self.workspace_dir.name}: {e}")
                self.notifier.notify_error(str(e))
                return False

            if config.to_dict() == DEFAULT_CONFIG:
                self._state = EngineState.IDLE
                logger.info(
                    f"IDLE {self.workspace_dir.name}: Configuration still has "
                    "placeholder values."
                )
                self.notifier.notify_info(
                    "Auto-push config still has placeholder values. "
                    f"Edit {path.name} to start auto-push"
                )
                return False

            try:
                repo = self.repo_factory(self.workspace_dir)
                bound = self.binder.bind(repo, config)
            except (BindError, ValueError) as e:
                logger.error(f"BIND ERROR {self.workspace_dir.name}: {e}")
                self.notifier.notify_error(
                    f"Failed to configure {config.repo_type} repository: {e}"
                )
                return False

            cycle = SyncCycle(repo, config.branch, self.notifier)
            try:
                self._handle = self.scheduler.start(config.interval_minutes, cycle)
            except ValueError as e:
                logger.error(f"SCHEDULE ERROR {self.workspace_dir.name}: {e}")
                self.notifier.notify_error(f"Failed to schedule auto-push: {e}")
                return False
            self._cycle = cycle
            self._bound = bound
            self._config = config
            self._state = EngineState.ACTIVE

            logger.info(
                f"ACTIVE {self.workspace_dir.name}: {config.branch} every "
                f"{config.interval_minutes} min via {bound.display_url}"
            )
            self.notifier.notify_info(
                f"Auto-push initialized! Will push {config.branch} every "
                f"{config.interval_minutes} minutes"
            )
            return True

    def config_file_deleted(self) -> None:
        """Stops syncing and removes the authenticated remote."""
        with self._lock:
            if self._state is EngineState.STOPPED:
                return

            self._cancel_schedule()
            # A failed reconfiguration may have left an authenticated origin.
            try:
                self.binder.unbind(self.repo_factory(self.workspace_dir))
            except (GitError, ValueError) as e:
                logger.warning(f"UNBIND ERROR {self.workspace_dir.name}: {e}")
            self._bound = None
            self._config = None
            self._state = EngineState.IDLE

            logger.info(f"IDLE {self.workspace_dir.name}: Configuration deleted.")
            self.notifier.notify_info("Auto-push config deleted, stopping auto-push")

    def sync_now(self) -> CycleOutcome | None:
        """Runs one sync cycle immediately, outside the schedule.

        Returns:
            CycleOutcome | None: The cycle outcome, or None if not active.
        """
        with self._lock:
            if self._state is not EngineState.ACTIVE or self._cycle is None:
                self.notifier.notify_error("Auto-push is not active")
                return None
            return self._cycle()

    def shutdown(self) -> None:
        """Cancels the schedule permanently. The engine ignores later signals."""
        with self._lock:
            if self._state is EngineState.STOPPED:
                return
            handle = self._handle
            self._cancel_schedule()
            self._state = EngineState.STOPPED
            logger.info(f"STOPPED {self.workspace_dir.name}")
            self.notifier.notify_info("Auto-push deactivated.")

        # The worker exits as soon as it observes the cancellation.
        if handle is not None:
            handle.join(timeout=5)
