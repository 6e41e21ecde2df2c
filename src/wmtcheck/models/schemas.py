"""Pydantic models for dependencies, criteria and check results."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepoRef(BaseModel):
    """Reference to a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class DependencyVersion(BaseModel):
    """Locally pinned and remotely published versions of a dependency."""

    model_config = ConfigDict(frozen=True)

    local: str | None = None
    remote: str | None = None


class Dependency(BaseModel):
    """A crate being checked.

    ``name`` is empty when the dependency was given as a bare GitHub URL.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    source_url: str | None = None
    description: str | None = None
    documentation_url: str | None = None
    homepage: str | None = None
    version: DependencyVersion = Field(default_factory=DependencyVersion)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    downloads: int = Field(default=0, ge=0)

    @property
    def label(self) -> str:
        """Human-readable identifier (name, falling back to source URL)."""
        return self.name or self.source_url or "<unknown>"


# --- Criterion catalog ---


class CheckName(str, Enum):
    """The fixed set of checks a criterion can be bound to."""

    PRODUCTION_READINESS = "ProductionReadiness"
    DOCUMENTATION = "Documentation"
    CHANGELOG = "Changelog"
    TESTS = "Tests"
    TESTS_RUN_AGAINST_LATEST_LANGUAGE_VERSION = "TestsRunAgainstLatestLanguageVersion"
    TESTS_RUN_AGAINST_LATEST_INTEGRATION_VERSION = "TestsRunAgainstLatestIntegrationVersion"
    BUG_REPORT_RESPONSE = "BugReportResponse"
    CONTINUOUS_INTEGRATION_CONFIGURATION = "ContinuousIntegrationConfiguration"
    CONTINUOUS_INTEGRATION_PASSES = "ContinuousIntegrationPasses"
    USAGE = "Usage"
    LATEST_COMMITS = "LatestCommits"
    LATEST_RELEASE = "LatestRelease"

    @property
    def requires_source(self) -> bool:
        """Whether the check reads data from the dependency's GitHub repository."""
        return self not in _SOURCE_INDEPENDENT_CHECKS


_SOURCE_INDEPENDENT_CHECKS = frozenset(
    {
        CheckName.PRODUCTION_READINESS,
        CheckName.DOCUMENTATION,
        CheckName.TESTS_RUN_AGAINST_LATEST_INTEGRATION_VERSION,
    }
)


class Criterion(BaseModel):
    """One entry of the criterion catalog."""

    model_config = ConfigDict(frozen=True)

    number: str
    question: str
    explanation: str
    name: CheckName


class CriterionCatalog(BaseModel):
    """Shape of the questions file."""

    questions: list[Criterion]


# --- Results ---


class Status(str, Enum):
    """Verdict for one dependency/criterion pair, best first."""

    PASS = "Pass"
    PARTIAL = "Partial"
    FAIL = "Fail"
    UNSUPPORTED = "Unsupported"


class CheckOutcome(BaseModel):
    """Status and explanation produced by a single check."""

    model_config = ConfigDict(frozen=True)

    status: Status
    explanation: str


class CriterionResult(BaseModel):
    """A check outcome bound to its criterion."""

    model_config = ConfigDict(frozen=True)

    number: str
    question: str = ""
    status: Status
    explanation: str


class DependencyResults(BaseModel):
    """All criterion results for one dependency, in catalog order."""

    dependency: Dependency
    results: list[CriterionResult] = Field(default_factory=list)


# --- GitHub data ---


class CommunityProfile(BaseModel):
    """GitHub community health profile."""

    health_percentage: int = 0
    files: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_readme(self) -> bool:
        return self.files.get("readme") is not None


class Release(BaseModel):
    """Latest published release."""

    tag_name: str | None = None
    body: str | None = None
    created_at: datetime | None = None
    published_at: datetime | None = None

    @property
    def has_notes(self) -> bool:
        return bool(self.body and self.body.strip())


class Issue(BaseModel):
    """An issue and its comment count."""

    number: int
    title: str = ""
    comments: int = 0


class Workflow(BaseModel):
    """A GitHub Actions workflow definition."""

    id: int
    name: str = ""
    path: str = ""
    state: str | None = None


class Commit(BaseModel):
    """A commit and its author date."""

    sha: str
    date: datetime


class ContentItem(BaseModel):
    """An entry of a repository directory listing."""

    name: str
    path: str
    type: str


class DocSource(str, Enum):
    """Where a dependency's documentation lives."""

    README_ON_GITHUB = "Github"
    HOSTED_DOC_PAGE = "Docs.rs"
