import logging
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)


def _editor_command() -> list[str] | None:
    """Returns the user's preferred editor command, if one is configured."""
    for var in ("VISUAL", "EDITOR"):
        if value := os.environ.get(var):
            return shlex.split(value)
    return None


class SystemStrategy:
    """Base class defining the interface for desktop-level interactions."""

    def notify(self, title: str, message: str) -> None:
        """Sends a desktop notification.

        Args:
            title (str): The notification title.
            message (str): The notification body text.
        """
        pass

    def open_file(self, path: Path) -> bool:
        """Opens a file for the user to edit.

        The configured $VISUAL or $EDITOR is launched without waiting for it.

        Args:
            path (Path): The file to open.

        Returns:
            bool: True if an editor was launched, False otherwise.
        """
        cmd = _editor_command()
        if not cmd:
            return False
        try:
            subprocess.Popen([*cmd, str(path)])
            return True
        except OSError as e:
            logger.warning(f"Could not launch editor {cmd[0]}: {e}")
            return False


class MacOSStrategy(SystemStrategy):
    """System strategy implementation for macOS."""

    def notify(self, title: str, message: str) -> None:
        """Sends a notification using AppleScript."""
        # Sanitize quotes to prevent AppleScript syntax errors.
        clean_msg = message.replace('"', "'")
        script = f'display notification "{clean_msg}" with title "{title}"'
        try:
            subprocess.run(["osascript", "-e", script], stderr=subprocess.DEVNULL)
        except OSError as e:
            logger.debug(f"osascript unavailable: {e}")

    def open_file(self, path: Path) -> bool:
        """Falls back to `open -t` when no editor is configured."""
        if super().open_file(path):
            return True
        try:
            subprocess.Popen(["open", "-t", str(path)], stderr=subprocess.DEVNULL)
            return True
        except OSError as e:
            logger.warning(f"Could not open {path}: {e}")
            return False


class LinuxStrategy(SystemStrategy):
    """System strategy implementation for Linux."""

    def notify(self, title: str, message: str) -> None:
        """Sends a notification using `notify-send`."""
        try:
            subprocess.run(["notify-send", title, message], stderr=subprocess.DEVNULL)
        except FileNotFoundError:
            pass

    def open_file(self, path: Path) -> bool:
        """Falls back to `xdg-open` when no editor is configured."""
        if super().open_file(path):
            return True
        if not shutil.which("xdg-open"):
            return False
        try:
            subprocess.Popen(
                ["xdg-open", str(path)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return True
        except OSError as e:
            logger.warning(f"Could not open {path}: {e}")
            return False


def get_system() -> SystemStrategy:
    """Factory function to retrieve the platform-specific system strategy.

    Returns:
        SystemStrategy: An instance of MacOSStrategy, LinuxStrategy, or the base
        SystemStrategy depending on the operating system.
    """
    if sys.platform == "darwin":
        return MacOSStrategy()
    elif sys.platform.startswith("linux"):
        return LinuxStrategy()
    else:
        return SystemStrategy()
