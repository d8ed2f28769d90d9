import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import APP_NAME, SETTINGS_FILE

logger = logging.getLogger(APP_NAME)


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '5MB') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


@dataclass
class LimitsSettings:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for the log file before rotation.
        log_backups (int): Number of rotated log files to keep.
    """

    max_log_size: int = 5 * 1024 * 1024
    log_backups: int = 5


@dataclass
class NotifySettings:
    """Notification sink settings.

    Attributes:
        desktop (bool): Whether to raise desktop notifications.
        console (bool): Whether to print notifications to the terminal.
    """

    desktop: bool = True
    console: bool = True


@dataclass
class Settings:
    """User-wide settings shared by every workspace.

    Attributes:
        limits (LimitsSettings): Resource limits.
        notify (NotifySettings): Notification behaviour.
    """

    limits: LimitsSettings = field(default_factory=LimitsSettings)
    notify: NotifySettings = field(default_factory=NotifySettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Loads settings from disk, applying defaults where necessary.

        Args:
            path (Path | None): Settings file to read. Defaults to SETTINGS_FILE.

        Returns:
            Settings: The populated settings object.
        """
        instance = cls()
        path = path or SETTINGS_FILE
        if not path.exists():
            return instance

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Settings syntax error in {path}: {e}")
            return instance
        except OSError as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return instance

        if "limits" in data:
            instance.limits = cls._update_dataclass(
                "limits", instance.limits, data["limits"]
            )
        if "notify" in data:
            instance.notify = cls._update_dataclass(
                "notify", instance.notify, data["notify"]
            )
        return instance

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing sizes."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown settings keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "max_log_size":
                    filtered_updates[k] = parse_size(v)
                elif k in ("desktop", "console"):
                    if not isinstance(v, bool):
                        raise ValueError(f"Expected true or false, got '{v}'")
                    filtered_updates[k] = v
                elif k == "log_backups":
                    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                        raise ValueError(f"Expected a non-negative integer, got '{v}'")
                    filtered_updates[k] = v
                else:
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Settings error in [{section_name}].{k}: {e}. "
                    "Falling back to default."
                )

        return replace(instance, **filtered_updates)
