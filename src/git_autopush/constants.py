import os
from pathlib import Path

"""Global constants and path definitions for git-autopush.

This module defines the workspace configuration file name, the default
configuration written on first initialization, and the filesystem layout
(adhering to XDG standards where applicable) for logs and global settings.
"""

# --- Identity ---
APP_NAME = "git-autopush"
"""str: The human-readable application name."""

# --- Workspace Files ---
CONFIG_FILE_NAME = ".autopush.json"
"""str: The per-workspace configuration file, stored at the workspace root."""

IGNORE_FILE_NAME = ".gitignore"
"""str: The ignore file that must list the configuration file."""

REMOTE_NAME = "origin"
"""str: The remote that is (re)bound to the authenticated URL."""

DEFAULT_CONFIG = {
    "repoType": "local",
    "authType": "password",
    "gitToken": "",
    "username": "username",
    "password": "vcspassword",
    "remoteRepo": "http://your.local.repo/path/to/repository.git",
    "intervalMinutes": 60,
    "branch": "master",
}
"""dict: The configuration written when a workspace is first initialized."""

REPO_SCHEMES = {
    "github": "https://",
    "local": "http://",
}
"""dict[str, str]: The URL scheme each repository type substitutes credentials into."""

AUTH_TYPES = ("token", "password")
"""tuple[str, ...]: Supported authentication modes."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "git-autopush"
"""Path: The directory for runtime state data (logs)."""

LOG_FILE = STATE_DIR / "agent.log"
"""Path: The file path for the background agent logs."""

SETTINGS_DIR: Path = Path.home() / ".config/git-autopush"
"""Path: The directory for user-wide settings."""

SETTINGS_FILE: Path = SETTINGS_DIR / "config.toml"
"""Path: The global settings file path."""
