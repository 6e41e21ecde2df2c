"""Per-dependency state shared by the checks of one run."""

from datetime import datetime, timezone

import httpx

from wmtcheck.adapters.base import is_github_url
from wmtcheck.analyzers.docs import DocsResolver
from wmtcheck.analyzers.github import GitHubFetcher
from wmtcheck.config import Settings
from wmtcheck.errors import MissingSourceUrl
from wmtcheck.models.schemas import Dependency


class EvaluationContext:
    """Owns the clients used to check one dependency.

    The GitHub fetcher and documentation resolver are built on first use and
    reused by every check, so each distinct request is made once per
    dependency. ``now`` is fixed when the context is created so every
    date-based check measures against the same instant.
    """

    def __init__(
        self,
        dependency: Dependency,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        now: datetime | None = None,
    ) -> None:
        self.dependency = dependency
        self.settings = settings
        self.client = client
        self.now = now or datetime.now(timezone.utc)
        self._github: GitHubFetcher | None = None
        self._docs: DocsResolver | None = None

    @property
    def usage_cutoff(self) -> datetime:
        """Start of the current year."""
        return datetime(self.now.year, 1, 1, tzinfo=timezone.utc)

    def github(self) -> GitHubFetcher:
        """Return the fetcher for the dependency's repository.

        Raises:
            MissingSourceUrl: If the dependency has no source URL.
            InvalidRepositoryUrl: If the source URL is not a GitHub repository.
        """
        if self._github is None:
            if not self.dependency.source_url:
                raise MissingSourceUrl(self.dependency.name)
            self._github = GitHubFetcher(
                self.dependency.source_url, settings=self.settings, client=self.client
            )
        return self._github

    def docs(self) -> DocsResolver:
        """Return the documentation resolver.

        The documentation URL falls back to the source URL. When the docs live
        in the dependency's own repository the GitHub fetcher is shared.
        """
        if self._docs is None:
            dependency = self.dependency
            doc_url = dependency.documentation_url or dependency.source_url
            github = None
            if is_github_url(doc_url) and doc_url == dependency.source_url:
                github = self.github()
            self._docs = DocsResolver(
                dependency.name,
                doc_url,
                settings=self.settings,
                client=self.client,
                github=github,
            )
        return self._docs

    async def aclose(self) -> None:
        """Cancel requests still in flight."""
        if self._github is not None:
            await self._github.aclose()
        if self._docs is not None:
            await self._docs.aclose()
