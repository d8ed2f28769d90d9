"""Authenticated remote construction and binding.

The authenticated URL is derived from the workspace configuration every time
it is (re)bound. It lives only in the repository's remote configuration and in
memory; it is never written to the log.
"""

import logging
from dataclasses import dataclass, field
from urllib.parse import quote

from .config import AutoPushConfig
from .constants import APP_NAME, REMOTE_NAME, REPO_SCHEMES
from .git_wrapper import GitError, GitRepo, redact

logger = logging.getLogger(APP_NAME)


class BindError(Exception):
    """Raised when the authenticated remote cannot be registered or reached."""


def authenticated_url(config: AutoPushConfig) -> str:
    """Inserts the configured credentials into the remote URL.

    Credentials are placed directly after the scheme delimiter of the
    repository type's scheme ('https://' for github, 'http://' for local).
    Tokens are inserted verbatim; username and password are percent-encoded.

    Args:
        config (AutoPushConfig): A validated configuration.

    Returns:
        str: The URL with embedded credentials.

    Raises:
        BindError: If the remote URL does not use the repository type's scheme.
    """
    scheme = REPO_SCHEMES.get(config.repo_type)
    if scheme is None or not config.remote_repo.startswith(scheme):
        raise BindError(
            f"Remote URL does not use {scheme or 'a supported scheme'} "
            f"for repoType '{config.repo_type}'"
        )

    if config.auth_type == "token":
        userinfo = config.git_token
    else:
        user = quote(config.username, safe="")
        userinfo = f"{user}:{quote(config.password, safe='')}"

    return f"{scheme}{userinfo}@{config.remote_repo[len(scheme):]}"


@dataclass(frozen=True)
class BoundRemote:
    """A remote registered with credentials.

    Attributes:
        name (str): The remote name.
        url (str): The authenticated URL. Excluded from repr.
    """

    name: str
    url: str = field(repr=False)

    @property
    def display_url(self) -> str:
        """The URL with credentials masked, safe for logs and notifications."""
        return redact(self.url)


class RemoteBinder:
    """Replaces the sync remote with an authenticated one and probes it."""

    def __init__(self, remote_name: str = REMOTE_NAME):
        self.remote_name = remote_name

    def bind(self, repo: GitRepo, config: AutoPushConfig) -> BoundRemote:
        """Registers the authenticated remote for a repository.

        Steps:
        1. Removes the existing remote (a missing remote is not an error).
        2. Adds the remote with the authenticated URL.
        3. Lists the remote heads as a lightweight reachability probe. An
           unreachable remote is removed again before the error is raised.

        Args:
            repo (GitRepo): The repository to bind.
            config (AutoPushConfig): A validated configuration.

        Returns:
            BoundRemote: The bound remote.

        Raises:
            BindError: If any step fails. Carries the transport message.
        """
        url = authenticated_url(config)

        try:
            self.unbind(repo)
            repo.add_remote(self.remote_name, url)
        except GitError as e:
            raise BindError(str(e)) from e

        try:
            heads = repo.list_remote_heads(self.remote_name)
        except GitError as e:
            self._discard(repo)
            raise BindError(str(e)) from e

        bound = BoundRemote(self.remote_name, url)
        logger.info(
            f"BOUND {repo.path.name}: {self.remote_name} -> {bound.display_url} "
            f"({len(heads)} heads)"
        )
        return bound

    def unbind(self, repo: GitRepo) -> None:
        """Removes the sync remote if it is configured."""
        if repo.has_remote(self.remote_name):
            repo.remove_remote(self.remote_name)

    def _discard(self, repo: GitRepo) -> None:
        """Drops an unreachable remote so its credentials are not left behind."""
        try:
            self.unbind(repo)
        except GitError as e:
            logger.warning(f"UNBIND ERROR {repo.path.name}: {e}")
