"""git-autopush: Periodic auto-commit-and-push for a git working tree.

This package provides the workspace configuration store, the authenticated
remote binder, the recurring sync scheduler, the per-workspace engine that
ties them together, and a filesystem watch bridge and CLI to host them.
"""

from . import (
    cli,
    config,
    constants,
    daemon,
    engine,
    git_wrapper,
    notify,
    remote,
    scheduler,
    settings,
    system,
    watch,
)

__all__ = [
    "cli",
    "config",
    "constants",
    "daemon",
    "engine",
    "git_wrapper",
    "notify",
    "remote",
    "scheduler",
    "settings",
    "system",
    "watch",
]
