"""Check crates against the well-maintained test."""

from wmtcheck.analyzers.pipeline import CheckPipeline, evaluate, resolve_dependencies
from wmtcheck.config import Settings
from wmtcheck.models.schemas import CriterionResult, Dependency, DependencyResults, Status

__version__ = "0.1.0"

__all__ = [
    "CheckPipeline",
    "CriterionResult",
    "Dependency",
    "DependencyResults",
    "Settings",
    "Status",
    "evaluate",
    "resolve_dependencies",
]
