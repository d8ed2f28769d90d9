import logging
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from .constants import APP_NAME
from .system import SystemStrategy, get_system

logger = logging.getLogger(APP_NAME)


class Notifier(Protocol):
    """The sink the engine reports outcomes to."""

    def notify_info(self, message: str) -> None: ...

    def notify_error(self, message: str) -> None: ...

    def present_file_for_editing(self, path: Path) -> None: ...


class ConsoleNotifier:
    """Prints notifications to the terminal with rich markup."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def notify_info(self, message: str) -> None:
        self.console.print(f"[bold blue]INFO:[/bold blue] {escape(message)}")

    def notify_error(self, message: str) -> None:
        self.console.print(f"[bold red]ERROR:[/bold red] {escape(message)}")

    def present_file_for_editing(self, path: Path) -> None:
        self.console.print(
            f"[bold yellow]ACTION REQUIRED:[/bold yellow] Edit {escape(str(path))}"
        )


class DesktopNotifier:
    """Raises OS notifications and opens files in the user's editor."""

    def __init__(self, system: SystemStrategy | None = None):
        self.system = system or get_system()

    def notify_info(self, message: str) -> None:
        self.system.notify("Auto-push", message)

    def notify_error(self, message: str) -> None:
        self.system.notify("Auto-push Error", message)

    def present_file_for_editing(self, path: Path) -> None:
        if not self.system.open_file(path):
            logger.info(f"No editor available to open {path}")


class LogNotifier:
    """Records every notification in the agent log."""

    def notify_info(self, message: str) -> None:
        logger.info(f"NOTIFY: {message}")

    def notify_error(self, message: str) -> None:
        logger.error(f"NOTIFY: {message}")

    def present_file_for_editing(self, path: Path) -> None:
        logger.info(f"EDIT: {path}")


class FanoutNotifier:
    """Forwards each notification to several sinks.

    A failing sink is logged and skipped so the remaining sinks still run.
    """

    def __init__(self, *sinks: Notifier):
        self.sinks = list(sinks)

    def _each(self, method: str, arg: object) -> None:
        for sink in self.sinks:
            try:
                getattr(sink, method)(arg)
            except Exception as e:
                logger.warning(f"Notifier {type(sink).__name__} failed: {e}")

    def notify_info(self, message: str) -> None:
        self._each("notify_info", message)

    def notify_error(self, message: str) -> None:
        self._each("notify_error", message)

    def present_file_for_editing(self, path: Path) -> None:
        self._each("present_file_for_editing", path)
