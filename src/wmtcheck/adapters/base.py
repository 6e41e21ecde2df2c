"""Abstract base class for package registry adapters."""

import re
from abc import ABC, abstractmethod

from wmtcheck.errors import InvalidRepositoryUrl
from wmtcheck.models.schemas import Dependency, RepoRef

GITHUB_HOST = "github.com"

# owner/repo right after the host; query strings and fragments end a segment
_REPO_PATH_RE = re.compile(r"github\.com[:/]+([^/#?\s]+)/([^/#?\s]+)")


class BaseAdapter(ABC):
    """Base class for package registry adapters.

    An adapter turns a registry entry into a :class:`Dependency`.
    """

    @property
    @abstractmethod
    def registry(self) -> str:
        """Return the name of the registry this adapter queries."""
        ...

    @abstractmethod
    async def get_dependency(self, name: str, local_version: str | None = None) -> Dependency:
        """Fetch a package and map it onto a Dependency.

        Args:
            name: Package name.
            local_version: Version pinned by the caller, if any.

        Returns:
            Dependency populated from the registry.

        Raises:
            RegistryUnavailable: If the registry can't be reached or has no such package.
        """
        ...


def is_github_url(url: str | None) -> bool:
    return bool(url) and GITHUB_HOST in url


def parse_repo_url(url: str) -> RepoRef:
    """Parse a GitHub URL into a RepoRef.

    Accepts anything of the form ``...github.com/<owner>/<repo>[/...]``:
    https and git URLs, trailing ``.git``, deep links into the tree, and
    ``?query`` or ``#fragment`` suffixes.

    Args:
        url: Repository URL to parse.

    Returns:
        RepoRef for the owner/repo pair.

    Raises:
        InvalidRepositoryUrl: If the URL has no GitHub host or no owner/repo.
    """
    if not is_github_url(url):
        raise InvalidRepositoryUrl(url)

    match = _REPO_PATH_RE.search(url)
    if match is None:
        raise InvalidRepositoryUrl(url)

    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise InvalidRepositoryUrl(url)

    return RepoRef(owner=owner, repo=repo)
