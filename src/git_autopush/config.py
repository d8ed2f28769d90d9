import enum
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    AUTH_TYPES,
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG,
    IGNORE_FILE_NAME,
    REPO_SCHEMES,
)

logger = logging.getLogger(APP_NAME)


class ConfigErrorKind(enum.Enum):
    """The reason a workspace configuration could not be activated."""

    MALFORMED = "malformed"
    INVALID_REPO_TYPE = "invalid-repo-type"
    MISSING_REMOTE = "missing-remote"
    REMOTE_SCHEME_MISMATCH = "remote-scheme-mismatch"
    INVALID_AUTH_TYPE = "invalid-auth-type"
    MISSING_TOKEN = "missing-token"
    MISSING_CREDENTIALS = "missing-credentials"
    INVALID_INTERVAL = "invalid-interval"
    MISSING_BRANCH = "missing-branch"


class ConfigError(Exception):
    """Raised when the configuration file cannot be parsed or fails validation.

    Attributes:
        kind (ConfigErrorKind): The category of the failure.
    """

    def __init__(self, kind: ConfigErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


@dataclass
class AutoPushConfig:
    """A single workspace's auto-push configuration.

    Field names are the snake_case counterparts of the camelCase keys used in
    the JSON file.

    Attributes:
        repo_type (str): Either 'github' or 'local'.
        auth_type (str): Either 'token' or 'password'.
        git_token (str): The access token, used when auth_type is 'token'.
        username (str): The account name, used when auth_type is 'password'.
        password (str): The account password, used when auth_type is 'password'.
        remote_repo (str): The remote repository URL, without credentials.
        interval_minutes (Any): Minutes between sync cycles, as read from disk.
        branch (str): The branch pushed on every cycle.
    """

    repo_type: str = ""
    auth_type: str = ""
    git_token: str = ""
    username: str = ""
    password: str = ""
    remote_repo: str = ""
    interval_minutes: Any = None
    branch: str = ""

    _KEYS = {
        "repoType": "repo_type",
        "authType": "auth_type",
        "gitToken": "git_token",
        "username": "username",
        "password": "password",
        "remoteRepo": "remote_repo",
        "intervalMinutes": "interval_minutes",
        "branch": "branch",
    }

    @classmethod
    def from_dict(cls, data: dict) -> "AutoPushConfig":
        """Builds a configuration from the decoded JSON object.

        Unknown keys are logged and ignored; missing keys keep their empty
        defaults so that `validate` can report them.
        """
        unknown = set(data) - set(cls._KEYS)
        if unknown:
            logger.warning(
                f"Unknown config keys in {CONFIG_FILE_NAME}: "
                f"{', '.join(sorted(unknown))}. Ignoring."
            )
        fields = {attr: data[key] for key, attr in cls._KEYS.items() if key in data}
        return cls(**fields)

    def to_dict(self) -> dict:
        """Returns the configuration keyed by its on-disk (camelCase) names."""
        return {key: getattr(self, attr) for key, attr in self._KEYS.items()}

    def __repr__(self) -> str:
        return (
            f"AutoPushConfig(repo_type={self.repo_type!r}, "
            f"auth_type={self.auth_type!r}, remote_repo={self.remote_repo!r}, "
            f"interval_minutes={self.interval_minutes!r}, branch={self.branch!r}, "
            f"credentials=***)"
        )


def config_path(workspace_dir: Path) -> Path:
    """Returns the canonical configuration path for a workspace."""
    return Path(workspace_dir) / CONFIG_FILE_NAME


def ensure_default_config(workspace_dir: Path) -> tuple[Path, bool]:
    """Writes the default configuration if the workspace has none.

    An existing file is never overwritten.

    Args:
        workspace_dir (Path): The workspace root.

    Returns:
        tuple[Path, bool]: The configuration path and whether it was just created.
    """
    path = config_path(workspace_dir)
    if path.exists():
        return path, False

    with open(path, "x", encoding="utf-8") as f:
        json.dump(DEFAULT_CONFIG, f, indent=2)
        f.write("\n")
    logger.info(f"CONFIG: Wrote default configuration to {path}")
    return path, True


def load(path: Path) -> AutoPushConfig:
    """Reads and decodes a configuration file.

    Args:
        path (Path): Path to the JSON configuration file.

    Returns:
        AutoPushConfig: The decoded (not yet validated) configuration.

    Raises:
        ConfigError: With kind MALFORMED if the file is unreadable, is not valid
            JSON, or does not contain a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(
            ConfigErrorKind.MALFORMED, f"Config syntax error in {path}: {e}"
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(
            ConfigErrorKind.MALFORMED, f"Could not read config {path}: {e}"
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(
            ConfigErrorKind.MALFORMED,
            f"Config {path} must contain a JSON object.",
        )
    return AutoPushConfig.from_dict(data)


def _coerce_interval(value: Any) -> int:
    """Converts an interval value to a positive integer number of minutes.

    Integers and integral strings (e.g. '60') are accepted. Booleans, floats,
    zero and negative values are not, nor intervals longer than the longest
    wait a thread timer supports.

    Raises:
        ValueError: If the value is not a positive integer.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid interval '{value}'")
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, str) and value.strip().isdigit():
        minutes = int(value.strip())
    else:
        raise ValueError(f"Invalid interval '{value}'")
    if minutes <= 0 or minutes * 60 > threading.TIMEOUT_MAX:
        raise ValueError(f"Invalid interval '{value}'")
    return minutes


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate(config: AutoPushConfig) -> AutoPushConfig:
    """Checks a configuration against the activation invariants.

    Checks run in a fixed order (repository type, remote, credentials,
    interval, branch) and the first violation is raised. No network access
    is performed.

    Args:
        config (AutoPushConfig): The configuration to check.

    Returns:
        AutoPushConfig: The same configuration, with `interval_minutes`
        normalized to an int.

    Raises:
        ConfigError: Describing the first violated invariant.
    """
    if not isinstance(config.repo_type, str) or config.repo_type not in REPO_SCHEMES:
        raise ConfigError(
            ConfigErrorKind.INVALID_REPO_TYPE,
            'Invalid repoType in configuration. Use "github" or "local".',
        )

    if _is_blank(config.remote_repo):
        raise ConfigError(
            ConfigErrorKind.MISSING_REMOTE,
            "Please set your remote repository URL in the config file",
        )

    scheme = REPO_SCHEMES[config.repo_type]
    if not config.remote_repo.startswith(scheme):
        raise ConfigError(
            ConfigErrorKind.REMOTE_SCHEME_MISMATCH,
            f'remoteRepo must start with "{scheme}" when repoType is '
            f'"{config.repo_type}"',
        )

    if not isinstance(config.auth_type, str) or config.auth_type not in AUTH_TYPES:
        raise ConfigError(
            ConfigErrorKind.INVALID_AUTH_TYPE,
            'Invalid authType in configuration. Use "token" or "password".',
        )

    if config.auth_type == "token" and _is_blank(config.git_token):
        raise ConfigError(
            ConfigErrorKind.MISSING_TOKEN,
            "Please set your Git token in the config file",
        )

    if config.auth_type == "password" and (
        _is_blank(config.username) or _is_blank(config.password)
    ):
        raise ConfigError(
            ConfigErrorKind.MISSING_CREDENTIALS,
            "Please set both username and password in the config file",
        )

    try:
        config.interval_minutes = _coerce_interval(config.interval_minutes)
    except ValueError as e:
        raise ConfigError(
            ConfigErrorKind.INVALID_INTERVAL,
            "Invalid interval value. Please set a positive number of minutes.",
        ) from e

    if _is_blank(config.branch):
        raise ConfigError(
            ConfigErrorKind.MISSING_BRANCH,
            "Please set the branch to push in the config file",
        )

    return config


def load_validated(path: Path) -> AutoPushConfig:
    """Loads a configuration file and validates it in one step."""
    return validate(load(path))


def ensure_ignored(workspace_dir: Path) -> str | None:
    """Makes sure the configuration file is listed in the workspace .gitignore.

    The entry is appended on its own line if missing; the ignore file is
    created if the workspace has none.

    Args:
        workspace_dir (Path): The workspace root.

    Returns:
        str | None: A description of the change made, or None if the entry
        was already present.
    """
    gitignore = Path(workspace_dir) / IGNORE_FILE_NAME

    if not gitignore.exists():
        gitignore.write_text(f"{CONFIG_FILE_NAME}\n", encoding="utf-8")
        logger.info(f"CONFIG: Created {gitignore} listing {CONFIG_FILE_NAME}")
        return f"{IGNORE_FILE_NAME} created and {CONFIG_FILE_NAME} added"

    content = gitignore.read_text(encoding="utf-8")
    entries = {line.strip() for line in content.splitlines()}
    if CONFIG_FILE_NAME in entries or f"/{CONFIG_FILE_NAME}" in entries:
        return None

    with open(gitignore, "a", encoding="utf-8") as f:
        prefix = "\n" if content and not content.endswith("\n") else ""
        f.write(f"{prefix}{CONFIG_FILE_NAME}\n")
    logger.info(f"CONFIG: Added {CONFIG_FILE_NAME} to {gitignore}")
    return f"{CONFIG_FILE_NAME} has been added to {IGNORE_FILE_NAME}"
