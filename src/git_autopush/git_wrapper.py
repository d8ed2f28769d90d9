import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)

_USERINFO = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def redact(text: str) -> str:
    """Masks the userinfo part of any URL embedded in `text`.

    Example:
        'http://u:p@host/repo.git' becomes 'http://***@host/repo.git'.
    """
    return _USERINFO.sub(r"\g<scheme>***@", text)


class GitError(RuntimeError):
    """Raised when a git command exits with a non-zero status."""


@dataclass
class WorkingTreeStatus:
    """The dirty paths of a working tree.

    Attributes:
        modified (list[str]): Tracked paths with staged or unstaged changes.
        untracked (list[str]): Paths git does not track and does not ignore.
    """

    modified: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.modified and not self.untracked

    @classmethod
    def from_porcelain(cls, lines: list[str]) -> "WorkingTreeStatus":
        """Parses `git status --porcelain` (v1) output lines."""
        status = cls()
        for line in lines:
            if len(line) < 4:
                continue
            code, path = line[:2], line[3:]
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            if code == "??":
                status.untracked.append(path)
            elif code != "!!":
                status.modified.append(path)
        return status


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    Every operation the sync engine needs is exposed as a method; the engine
    never builds git command lines itself.

    Attributes:
        path (Path): The file system path to the repository root.
    """

    def __init__(self, path: Path):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.

        Raises:
            ValueError: If the specified path does not contain a .git directory.
        """
        self.path = Path(path)
        if not (self.path / ".git").exists():
            raise ValueError(f"Not a git repository: {self.path}")

    def _run(
        self, args: list[str], capture: bool = True, network: bool = False
    ) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional): Whether to return stdout. Defaults to True.
            network (bool, optional): Whether the command talks to a remote. Such
                                      commands never prompt for credentials.

        Returns:
            str: The right-stripped stdout of the command if capture is True,
                 otherwise an empty string.

        Raises:
            GitError: If the git command returns a non-zero exit code. The
                      message has any embedded URL credentials masked.
        """
        env = None
        if network:
            env = os.environ.copy()
            env["GIT_TERMINAL_PROMPT"] = "0"
            env["GIT_SSH_COMMAND"] = "ssh -o BatchMode=yes"
        try:
            res = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
            # Leading whitespace is significant in porcelain status output.
            return res.stdout.rstrip() if capture else ""
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or str(e)
            raise GitError(f"Git error: {redact(detail)}") from None
        except OSError as e:
            raise GitError(f"Git error: {e}") from e

    def status(self) -> WorkingTreeStatus:
        """Returns the modified and untracked paths of the working tree."""
        output = self._run(["status", "--porcelain", "--untracked-files=all"])
        return WorkingTreeStatus.from_porcelain(output.splitlines() if output else [])

    def add(self, paths: list[str]) -> None:
        """Stages the given paths, including deletions and untracked files.

        Args:
            paths (list[str]): Pathspecs to stage (e.g. ['.']).
        """
        self._run(["add", "--all", "--", *paths], capture=False)

    def commit(self, message: str) -> None:
        """Creates a new commit with the provided message.

        Args:
            message (str): The commit message.
        """
        self._run(["commit", "-m", message], capture=False)

    def push(self, remote: str, branch: str) -> None:
        """Pushes a local branch to a remote.

        Args:
            remote (str): The remote name.
            branch (str): The branch to push.
        """
        self._run(["push", remote, branch], capture=False, network=True)

    def list_remote_heads(self, remote: str) -> list[str]:
        """Lists branch heads on a remote without fetching any objects.

        Args:
            remote (str): The remote name.

        Returns:
            list[str]: The `<sha>\\t<ref>` lines reported by `ls-remote --heads`.
        """
        output = self._run(["ls-remote", "--heads", remote], network=True)
        return output.splitlines() if output else []

    def has_remote(self, name: str) -> bool:
        """Returns whether a remote with this name is configured."""
        output = self._run(["remote"])
        return name in output.splitlines()

    def add_remote(self, name: str, url: str) -> None:
        """Registers a new remote.

        Args:
            name (str): The remote name.
            url (str): The remote URL.
        """
        self._run(["remote", "add", name, url], capture=False)

    def remove_remote(self, name: str) -> None:
        """Removes a remote.

        Args:
            name (str): The remote name.

        Raises:
            GitError: If the remote does not exist.
        """
        self._run(["remote", "remove", name], capture=False)
