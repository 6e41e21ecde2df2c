"""Reader for Cargo.toml manifests."""

import tomllib
from pathlib import Path

from wmtcheck.errors import InvalidIdentifier

MANIFEST_EXTENSION = ".toml"


def is_manifest(identifier: str) -> bool:
    return identifier.endswith(MANIFEST_EXTENSION)


def _parse_version(spec: str | dict) -> str | None:
    """Extract the pinned version from a dependency spec."""
    if isinstance(spec, str):
        return spec
    if isinstance(spec, dict):
        return spec.get("version")
    return None


def read_manifest(path: str | Path) -> dict[str, str | None]:
    """Read the ``[dependencies]`` table of a Cargo manifest.

    Args:
        path: Path to a Cargo.toml file.

    Returns:
        Mapping of crate name to pinned version, ``None`` when the entry has no
        version (git or path dependencies). Order follows the manifest.

    Raises:
        InvalidIdentifier: If the file can't be read or isn't valid TOML.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
        data = tomllib.loads(content)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise InvalidIdentifier(str(path), str(e)) from e

    dependencies = data.get("dependencies", {})
    if not isinstance(dependencies, dict):
        raise InvalidIdentifier(str(path), "[dependencies] is not a table")

    return {name: _parse_version(spec) for name, spec in dependencies.items()}
