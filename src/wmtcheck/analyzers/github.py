"""GitHub data fetcher for a single repository."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from wmtcheck.adapters.base import parse_repo_url
from wmtcheck.config import Settings
from wmtcheck.errors import RepositoryUnavailable
from wmtcheck.models.schemas import (
    Commit,
    CommunityProfile,
    ContentItem,
    Issue,
    Release,
    RepoRef,
    Workflow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GitHubFetcher:
    """Fetches repository data from the GitHub API.

    One fetcher serves one repository for the duration of a check run. Every
    distinct call is made at most once: concurrent callers asking for the
    same data await the same request, and a failed request stays failed.

    Set GITHUB_TOKEN (or pass ``settings.github_token``) for higher rate limits.
    """

    def __init__(
        self,
        url: str,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            url: GitHub URL of the repository.
            settings: Run settings (API base URL, token, timeout).
            client: Optional httpx client. If not provided, one is created per request.

        Raises:
            InvalidRepositoryUrl: If ``url`` does not name a GitHub owner/repo.
        """
        self.url = url
        self.repo_ref: RepoRef = parse_repo_url(url)
        self._settings = settings or Settings()
        self._client = client
        self._calls: dict[tuple, asyncio.Task] = {}

        # Rate limit tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_reset: datetime | None = None

    @property
    def owner(self) -> str:
        return self.repo_ref.owner

    @property
    def repo(self) -> str:
        return self.repo_ref.repo

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self._settings.user_agent,
        }
        if self._settings.github_token:
            headers["Authorization"] = f"Bearer {self._settings.github_token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._settings.timeout)

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    def _rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and self.rate_limit_remaining == 0

    async def _fetch(self, path: str, params: dict | None = None) -> Any:
        """Fetch from the GitHub API.

        Returns None if 404, raises RepositoryUnavailable on any other failure.
        """
        client = await self._get_client()
        url = f"{self._settings.github_api_url}/repos/{self.owner}/{self.repo}{path}"
        logger.debug(f"GET {url} {params or ''}")

        try:
            response = await client.get(url, params=params, headers=self._headers())
            self._update_rate_limits(response)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            message = f"GitHub returned {e.response.status_code} for {self.repo_ref.slug}{path}"
            if self._rate_limited(e.response):
                message = f"{message}: rate limit exceeded"
                if self.rate_limit_reset is not None:
                    message = f"{message}, resets at {self.rate_limit_reset:%Y-%m-%d %H:%M:%S} UTC"
                if not self._settings.github_token:
                    message = f"{message} (set GITHUB_TOKEN for a higher limit)"
            raise RepositoryUnavailable(message) from e
        except (httpx.HTTPError, ValueError) as e:
            raise RepositoryUnavailable(
                f"Could not reach GitHub for {self.repo_ref.slug}{path}: {e}"
            ) from e
        finally:
            if self._client is None:
                await client.aclose()

    async def _once(self, key: tuple, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory`` once per key and share its result.

        A payload that doesn't map onto the models raises RepositoryUnavailable.
        """

        async def run() -> T:
            try:
                return await factory()
            except (KeyError, TypeError, ValidationError) as e:
                raise RepositoryUnavailable(
                    f"Unexpected response from GitHub for {self.repo_ref.slug} ({key[0]}): {e}"
                ) from e

        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(run())
            self._calls[key] = task
        # Shielded so one cancelled caller doesn't cancel the shared request
        return await asyncio.shield(task)

    async def aclose(self) -> None:
        """Cancel any request still in flight."""
        pending = [task for task in self._calls.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # --- Repository metadata ---

    async def default_branch(self) -> str:
        """Return the name of the repository's default branch."""

        async def fetch() -> str:
            data = await self._fetch("")
            if data is None:
                raise RepositoryUnavailable(f"Repository {self.repo_ref.slug} not found")
            return data.get("default_branch") or "main"

        return await self._once(("repo",), fetch)

    async def community_profile(self) -> CommunityProfile:
        """Fetch the community health profile (README, license, etc.)."""

        async def fetch() -> CommunityProfile:
            data = await self._fetch("/community/profile")
            if data is None:
                raise RepositoryUnavailable(
                    f"No community profile for {self.repo_ref.slug}"
                )
            return CommunityProfile(
                health_percentage=data.get("health_percentage") or 0,
                files=data.get("files") or {},
            )

        return await self._once(("community_profile",), fetch)

    async def latest_release(self) -> Release | None:
        """Fetch the latest release.

        Returns:
            The release, or None if the repository has never published one.
        """

        async def fetch() -> Release | None:
            data = await self._fetch("/releases/latest")
            if data is None:
                return None
            return Release(
                tag_name=data.get("tag_name"),
                body=data.get("body"),
                created_at=data.get("created_at"),
                published_at=data.get("published_at"),
            )

        return await self._once(("latest_release",), fetch)

    # --- Files ---

    async def file_exists_at_default_branch(self, filename: str) -> bool:
        """Check whether ``filename`` exists at the root of the default branch."""

        async def fetch() -> bool:
            branch = await self.default_branch()
            data = await self._fetch(f"/contents/{filename}", params={"ref": branch})
            return data is not None

        return await self._once(("file", filename), fetch)

    async def root_contents(self) -> list[ContentItem]:
        """List the entries at the repository root."""

        async def fetch() -> list[ContentItem]:
            data = await self._fetch("/contents")
            if not data or not isinstance(data, list):
                return []
            return [
                ContentItem(
                    name=item.get("name", ""),
                    path=item.get("path", ""),
                    type=item.get("type", ""),
                )
                for item in data
            ]

        return await self._once(("root_contents",), fetch)

    async def test_directories(self) -> list[ContentItem]:
        """Return root directories whose path mentions "test"."""
        contents = await self.root_contents()
        return [item for item in contents if item.type == "dir" and "test" in item.path.lower()]

    # --- Issues ---

    async def issues(self, label: str = "bug", state: str = "open") -> list[Issue]:
        """Fetch issues (not pull requests) with a label and state."""

        async def fetch() -> list[Issue]:
            data = await self._fetch(
                "/issues",
                params={"labels": label, "state": state, "per_page": 100},
            )
            if not data or not isinstance(data, list):
                return []
            return [
                Issue(
                    number=item["number"],
                    title=item.get("title") or "",
                    comments=item.get("comments") or 0,
                )
                for item in data
                if "pull_request" not in item
            ]

        return await self._once(("issues", label, state), fetch)

    # --- CI ---

    async def workflows(self) -> list[Workflow]:
        """Fetch GitHub Actions workflow definitions."""

        async def fetch() -> list[Workflow]:
            data = await self._fetch("/actions/workflows")
            if not data or not isinstance(data, dict):
                return []
            return [
                Workflow(
                    id=wf["id"],
                    name=wf.get("name") or "",
                    path=wf.get("path") or "",
                    state=wf.get("state"),
                )
                for wf in data.get("workflows", [])
            ]

        return await self._once(("workflows",), fetch)

    async def failed_runs(self, workflow_id: int) -> int:
        """Count failed, non-PR runs of a workflow on the default branch.

        Only the most recent page (up to 100 runs) is inspected.
        """

        async def fetch() -> int:
            branch = await self.default_branch()
            data = await self._fetch(
                f"/actions/workflows/{workflow_id}/runs",
                params={
                    "status": "failure",
                    "branch": branch,
                    "exclude_pull_requests": "true",
                    "per_page": 100,
                    "page": 1,
                },
            )
            if not data or not isinstance(data, dict):
                return 0
            return len(data.get("workflow_runs", []))

        return await self._once(("failed_runs", workflow_id), fetch)

    # --- Commits ---

    async def recent_commits(
        self, since: datetime | None = None, limit: int = 100
    ) -> list[Commit]:
        """Fetch commits on the default branch, most recent first.

        Args:
            since: Only return commits after this time.
            limit: Maximum number of commits (a single page, at most 100).
        """

        async def fetch() -> list[Commit]:
            params: dict[str, Any] = {"per_page": min(limit, 100), "page": 1}
            if since is not None:
                params["since"] = since.isoformat()
            data = await self._fetch("/commits", params=params)
            if not data or not isinstance(data, list):
                return []

            commits = []
            for item in data:
                commit_data = item.get("commit") or {}
                author = commit_data.get("author") or commit_data.get("committer") or {}
                date = author.get("date")
                if not date:
                    continue
                commits.append(Commit(sha=item.get("sha", ""), date=date))
            return commits

        key = ("commits", since.isoformat() if since else None, limit)
        return await self._once(key, fetch)

    async def latest_commit(self) -> Commit | None:
        """Fetch the most recent commit, if any."""
        commits = await self.recent_commits(limit=1)
        return commits[0] if commits else None
