"""crates.io registry adapter."""

import logging

import httpx
from pydantic import ValidationError

from wmtcheck.adapters.base import BaseAdapter
from wmtcheck.config import Settings
from wmtcheck.errors import RegistryUnavailable
from wmtcheck.models.schemas import Dependency, DependencyVersion

logger = logging.getLogger(__name__)


class CratesAdapter(BaseAdapter):
    """Adapter for the crates.io registry.

    Data sources:
    - Crate metadata: https://crates.io/api/v1/crates/{crate}

    crates.io rejects requests without a descriptive User-Agent, so one is
    always sent.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            settings: Run settings (API base URL, user agent, timeout).
            client: Optional httpx client for making requests.
        """
        self._settings = settings or Settings()
        self._client = client

    @property
    def registry(self) -> str:
        return "crates.io"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._settings.timeout)

    async def _fetch_json(self, url: str) -> dict:
        """Fetch JSON from a URL."""
        client = await self._get_client()
        try:
            response = await client.get(url, headers={"User-Agent": self._settings.user_agent})
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    async def get_dependency(self, name: str, local_version: str | None = None) -> Dependency:
        """Fetch a crate from crates.io.

        Args:
            name: Crate name.
            local_version: Version pinned in the caller's manifest, if any.

        Returns:
            Dependency with registry metadata and the merged versions.

        Raises:
            RegistryUnavailable: If the crate doesn't exist or crates.io is unreachable.
        """
        url = f"{self._settings.crates_api_url}/crates/{name}"
        logger.debug(f"Fetching crate {name} from {url}")

        try:
            data = await self._fetch_json(url)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise RegistryUnavailable(name, "No such crate on crates.io.") from e
            raise RegistryUnavailable(name, "The crates.io API might be down.") from e
        except (httpx.HTTPError, ValueError) as e:
            raise RegistryUnavailable(name, "The crates.io API might be down.") from e

        crate = data.get("crate") if isinstance(data, dict) else None
        if not isinstance(crate, dict):
            raise RegistryUnavailable(name, "Unexpected response from crates.io.")

        try:
            return self._to_dependency(name, crate, local_version)
        except ValidationError as e:
            raise RegistryUnavailable(name, "Unexpected response from crates.io.") from e

    def _to_dependency(self, name: str, crate: dict, local_version: str | None) -> Dependency:
        return Dependency(
            name=crate.get("name") or name,
            source_url=crate.get("repository") or None,
            description=crate.get("description"),
            documentation_url=crate.get("documentation") or None,
            homepage=crate.get("homepage") or None,
            version=DependencyVersion(
                local=local_version,
                remote=crate.get("max_version"),
            ),
            created_at=crate.get("created_at"),
            updated_at=crate.get("updated_at"),
            downloads=crate.get("downloads") or 0,
        )
