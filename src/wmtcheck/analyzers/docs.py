"""Documentation lookup on GitHub READMEs and docs.rs."""

import asyncio
import logging
from html.parser import HTMLParser

import httpx

from wmtcheck.adapters.base import is_github_url
from wmtcheck.analyzers.github import GitHubFetcher
from wmtcheck.config import Settings
from wmtcheck.errors import CoverageUnparseable, DocumentationUnavailable
from wmtcheck.models.schemas import DocSource

logger = logging.getLogger(__name__)

BUILD_WARNING_CLASS = "warning"
COVERAGE_LINK_CLASS = "pure-menu-link"

# Elements without an end tag
_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)


class _DocPageParser(HTMLParser):
    """Collects build warnings and coverage links from a docs.rs page."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.warning_count = 0
        self.coverage_texts: list[str] = []
        self._depth = 0
        self._buffer: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        classes = set()
        for key, value in attrs:
            if key == "class" and value:
                classes.update(value.split())

        if BUILD_WARNING_CLASS in classes:
            self.warning_count += 1

        if tag in _VOID_TAGS:
            return
        if self._depth:
            self._depth += 1
        elif COVERAGE_LINK_CLASS in classes:
            self._depth = 1
            self._buffer = []

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if any(key == "class" and value and BUILD_WARNING_CLASS in value.split() for key, value in attrs):
            self.warning_count += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in _VOID_TAGS or not self._depth:
            return
        self._depth -= 1
        if not self._depth:
            text = "".join(self._buffer)
            if "%" in text:
                self.coverage_texts.append(text)

    def handle_data(self, data: str) -> None:
        if self._depth:
            self._buffer.append(data)


def parse_coverage(text: str) -> int:
    """Turn a docs.rs coverage label such as "  87%\\n of the crate" into 87.

    Raises:
        CoverageUnparseable: If the label has no integer percentage.
    """
    for token in text.split():
        if "%" in token:
            try:
                return int(token.replace("%", "").strip())
            except ValueError as e:
                raise CoverageUnparseable(f"Unreadable coverage figure '{token}'") from e
    raise CoverageUnparseable("No coverage figure found")


class DocsResolver:
    """Decides where a crate is documented and inspects that documentation.

    A documentation URL on GitHub means the README is the documentation;
    anything else is looked up on docs.rs under the crate name.
    """

    def __init__(
        self,
        crate_name: str,
        doc_url: str | None,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        github: GitHubFetcher | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            crate_name: Crate name, used to build the docs.rs URL.
            doc_url: Documentation URL from the registry (or the source URL).
            settings: Run settings (docs.rs base URL, timeout).
            client: Optional httpx client.
            github: Fetcher for the repository holding the README. Built from
                ``doc_url`` when omitted and the docs live on GitHub.
        """
        self._settings = settings or Settings()
        self._client = client
        self.crate_name = crate_name
        self._page: asyncio.Task | None = None

        if is_github_url(doc_url):
            self.doc_source = DocSource.README_ON_GITHUB
            self.doc_url = doc_url
            self._owns_github = github is None
            self._github = github or GitHubFetcher(doc_url, settings=self._settings, client=client)
        else:
            self.doc_source = DocSource.HOSTED_DOC_PAGE
            self.doc_url = f"{self._settings.docs_url}/{crate_name}"
            self._owns_github = False
            self._github = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._settings.timeout)

    async def _fetch_page(self) -> tuple[int, str]:
        client = await self._get_client()
        logger.debug(f"GET {self.doc_url}")
        try:
            response = await client.get(
                self.doc_url,
                headers={"User-Agent": self._settings.user_agent},
                follow_redirects=True,
            )
            return response.status_code, response.text
        except httpx.HTTPError as e:
            raise DocumentationUnavailable(f"Could not reach {self.doc_url}: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

    async def _get_page(self) -> tuple[int, str]:
        """Fetch the docs.rs page once and share it between checks."""
        if self._page is None:
            self._page = asyncio.ensure_future(self._fetch_page())
        return await asyncio.shield(self._page)

    async def _parsed_page(self) -> _DocPageParser:
        status_code, text = await self._get_page()
        if not httpx.codes.is_success(status_code):
            raise DocumentationUnavailable(f"{self.doc_url} returned {status_code}")
        parser = _DocPageParser()
        parser.feed(text)
        parser.close()
        return parser

    async def page_exists(self) -> bool:
        """Check that the README or the docs.rs page exists."""
        if self.doc_source == DocSource.README_ON_GITHUB:
            profile = await self._github.community_profile()
            return profile.has_readme
        status_code, _ = await self._get_page()
        return httpx.codes.is_success(status_code)

    async def build_succeeded(self) -> bool:
        """Check the docs.rs page for the absence of build warnings."""
        if self.doc_source != DocSource.HOSTED_DOC_PAGE:
            raise ValueError("Build status is only known for docs.rs pages")
        parser = await self._parsed_page()
        return parser.warning_count == 0

    async def coverage_score(self) -> int:
        """Read the documentation coverage percentage from the docs.rs page.

        Raises:
            CoverageUnparseable: If the page shows no integer coverage figure.
        """
        if self.doc_source != DocSource.HOSTED_DOC_PAGE:
            raise ValueError("Coverage is only known for docs.rs pages")
        parser = await self._parsed_page()
        if not parser.coverage_texts:
            raise CoverageUnparseable(f"No coverage information on {self.doc_url}")
        return parse_coverage(parser.coverage_texts[0])

    async def aclose(self) -> None:
        if self._page is not None and not self._page.done():
            self._page.cancel()
            await asyncio.gather(self._page, return_exceptions=True)
        if self._owns_github:
            await self._github.aclose()
