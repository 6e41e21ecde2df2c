"""Turns raw command-line identifiers into dependencies."""

import logging
from collections.abc import Iterable

from wmtcheck.adapters.base import BaseAdapter
from wmtcheck.adapters.cargo_manifest import is_manifest, read_manifest
from wmtcheck.config import MISSING_FIELD_PLACEHOLDER
from wmtcheck.models.schemas import Dependency

logger = logging.getLogger(__name__)

SOURCE_URL_PREFIXES = ("https://github.com/", "http://github.com/")


class DependencyResolver:
    """Resolves identifiers into Dependency records.

    An identifier is one of:
    - a path to a Cargo manifest (``*.toml``): every entry of its
      ``[dependencies]`` table is looked up on the registry;
    - a GitHub URL: used as the source URL as-is, with no registry lookup;
    - anything else: a crate name looked up on the registry.

    Any failure aborts the whole resolution.
    """

    def __init__(self, adapter: BaseAdapter) -> None:
        self.adapter = adapter

    async def resolve(self, identifier: str) -> list[Dependency]:
        """Resolve one identifier.

        Raises:
            InvalidIdentifier: If a manifest can't be read.
            RegistryUnavailable: If a registry lookup fails.
        """
        if is_manifest(identifier):
            logger.info(f"Found manifest path {identifier}. Extracting")
            entries = read_manifest(identifier)
            dependencies = []
            for name, local_version in entries.items():
                dependency = await self.adapter.get_dependency(
                    name, local_version or MISSING_FIELD_PLACEHOLDER
                )
                dependencies.append(dependency)
            return dependencies

        if identifier.startswith(SOURCE_URL_PREFIXES):
            logger.info(f"Found source url {identifier}")
            return [Dependency(source_url=identifier)]

        logger.info(f"Found crate name {identifier}. Extracting crate information")
        return [await self.adapter.get_dependency(identifier)]

    async def resolve_all(self, identifiers: Iterable[str]) -> list[Dependency]:
        """Resolve identifiers in order, flattening manifests."""
        dependencies = []
        for identifier in identifiers:
            dependencies.extend(await self.resolve(identifier))
        return dependencies
