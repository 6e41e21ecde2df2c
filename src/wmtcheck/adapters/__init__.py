"""Package registry adapters."""

from wmtcheck.adapters.base import BaseAdapter, parse_repo_url
from wmtcheck.adapters.cargo_manifest import read_manifest
from wmtcheck.adapters.crates import CratesAdapter

__all__ = ["BaseAdapter", "CratesAdapter", "parse_repo_url", "read_manifest"]
