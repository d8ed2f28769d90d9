import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_autopush.git_wrapper import GitError, GitRepo, WorkingTreeStatus, redact


def test_requires_git_directory(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Not a git repository"):
        GitRepo(tmp_path)


def test_status_parses_modified_and_untracked(
    mocker: MagicMock, tmp_path: Path
) -> None:
    """Verifies porcelain lines are split into modified and untracked paths."""
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mocker.patch.object(
        repo,
        "_run",
        return_value=" M src/app.py\nA  new.txt\nR  old.md -> new.md\n?? notes.txt",
    )

    status = repo.status()

    assert status.modified == ["src/app.py", "new.txt", "new.md"]
    assert status.untracked == ["notes.txt"]
    assert not status.is_clean


def test_status_clean(mocker: MagicMock, tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mocker.patch.object(repo, "_run", return_value="")

    assert repo.status() == WorkingTreeStatus()
    assert repo.status().is_clean


def test_command_construction(mocker: MagicMock, tmp_path: Path) -> None:
    """Verifies each collaborator operation maps to the expected git command."""
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mock_run = mocker.patch.object(repo, "_run", return_value="")

    repo.add(["."])
    mock_run.assert_called_with(["add", "--all", "--", "."], capture=False)

    repo.commit("Auto-push: now")
    mock_run.assert_called_with(["commit", "-m", "Auto-push: now"], capture=False)

    repo.push("origin", "main")
    mock_run.assert_called_with(["push", "origin", "main"], capture=False, network=True)

    repo.list_remote_heads("origin")
    mock_run.assert_called_with(["ls-remote", "--heads", "origin"], network=True)

    repo.add_remote("origin", "http://u:p@x/y.git")
    mock_run.assert_called_with(
        ["remote", "add", "origin", "http://u:p@x/y.git"], capture=False
    )

    repo.remove_remote("origin")
    mock_run.assert_called_with(["remote", "remove", "origin"], capture=False)


def test_has_remote(mocker: MagicMock, tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mocker.patch.object(repo, "_run", return_value="origin\nupstream")

    assert repo.has_remote("origin")
    assert not repo.has_remote("backup")


def test_run_error_redacts_credentials(mocker: MagicMock, tmp_path: Path) -> None:
    """Verifies failures never leak credentials embedded in remote URLs."""
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mocker.patch(
        "subprocess.run",
        side_effect=subprocess.CalledProcessError(
            128,
            ["git", "ls-remote"],
            stderr="fatal: unable to access 'https://ghp_secret@github.com/a/b.git/'",
        ),
    )

    with pytest.raises(GitError) as exc:
        repo.list_remote_heads("origin")

    assert "ghp_secret" not in str(exc.value)
    assert "https://***@github.com/a/b.git/" in str(exc.value)


def test_network_commands_disable_prompts(mocker: MagicMock, tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    repo = GitRepo(tmp_path)
    mock_run = mocker.patch(
        "subprocess.run", return_value=MagicMock(stdout="", returncode=0)
    )

    repo.push("origin", "main")

    env = mock_run.call_args.kwargs["env"]
    assert env["GIT_TERMINAL_PROMPT"] == "0"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("http://u:p@x/y.git", "http://***@x/y.git"),
        ("https://TOKEN@github.com/a", "https://***@github.com/a"),
        ("http://x/y.git", "http://x/y.git"),
        ("no url here", "no url here"),
    ],
)
def test_redact(text: str, expected: str) -> None:
    assert redact(text) == expected
