import logging
import signal
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from types import FrameType

from .constants import APP_NAME, LOG_FILE
from .engine import AutoPushEngine
from .notify import ConsoleNotifier, DesktopNotifier, FanoutNotifier, LogNotifier
from .settings import Settings
from .watch import WatchBridge

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)


def setup_logging(interactive: bool, settings: Settings | None = None) -> None:
    """Configures the logging subsystem.

    Args:
        interactive (bool): If True, logs to stdout only. If False, logs to
                            stderr and to a rotating file in the state directory.
        settings (Settings | None): Supplies log rotation limits.
    """
    settings = settings or Settings()
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    logger.handlers.clear()

    # Always log to a stream (captured by systemd/launchd in the background).
    stream_handler = logging.StreamHandler(
        sys.stderr if not interactive else sys.stdout
    )
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if not interactive:
        try:
            LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=settings.limits.max_log_size,
                backupCount=settings.limits.log_backups,
            )
        except OSError as e:
            logger.warning(f"Could not open log file {LOG_FILE}: {e}")
            return
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def build_notifier(settings: Settings) -> FanoutNotifier:
    """Assembles the notification sinks enabled in the settings."""
    sinks = [LogNotifier()]
    if settings.notify.console:
        sinks.append(ConsoleNotifier())
    if settings.notify.desktop:
        sinks.append(DesktopNotifier())
    return FanoutNotifier(*sinks)


def run(
    workspace: Path,
    settings: Settings | None = None,
    interactive: bool = False,
    stop_event: threading.Event | None = None,
) -> None:
    """Runs the auto-push agent for one workspace until interrupted.

    Args:
        workspace (Path): The repository root to synchronize.
        settings (Settings | None): Global settings. Loaded from disk if omitted.
        interactive (bool, optional): Whether logs go to the terminal only.
        stop_event (threading.Event | None): Set to request shutdown. SIGINT and
                                             SIGTERM set it as well.
    """
    settings = settings or Settings.load()
    setup_logging(interactive, settings)
    stop_event = stop_event or threading.Event()

    def stop_handler(signum: int, _frame: FrameType | None) -> None:
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    previous_handlers = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous_handlers[signum] = signal.signal(signum, stop_handler)

    engine = AutoPushEngine(workspace.resolve(), build_notifier(settings))
    bridge = WatchBridge(engine)

    logger.info(f"Agent started for {engine.workspace_dir}")
    try:
        with bridge:
            engine.workspace_opened()
            while not stop_event.wait(1.0):
                pass
    finally:
        engine.shutdown()
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
        logger.info(f"Agent stopped for {engine.workspace_dir}")
