"""Data models and schemas."""

from wmtcheck.models.schemas import (
    CheckName,
    CheckOutcome,
    Criterion,
    CriterionResult,
    Dependency,
    DependencyResults,
    DependencyVersion,
    RepoRef,
    Status,
)
from wmtcheck.models.version import Version

__all__ = [
    "CheckName",
    "CheckOutcome",
    "Criterion",
    "CriterionResult",
    "Dependency",
    "DependencyResults",
    "DependencyVersion",
    "RepoRef",
    "Status",
    "Version",
]
