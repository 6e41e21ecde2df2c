"""Shared fixtures: a fake crates.io / GitHub / docs.rs behind httpx.MockTransport."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from wmtcheck.analyzers.context import EvaluationContext
from wmtcheck.config import Settings
from wmtcheck.models.schemas import Dependency, DependencyVersion

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)

CRATES = "https://crates.io/api/v1/crates"
REPO_URL = "https://github.com/serde-rs/serde"
GITHUB = "https://api.github.com/repos/serde-rs/serde"
DOCS = "https://docs.rs"


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def days_ago(days: int) -> str:
    return iso(NOW - timedelta(days=days))


def docs_page(coverage: str | None = "87%", warning: bool = False) -> str:
    """A minimal docs.rs crate page."""
    warning_html = '<div class="warning">docs.rs failed to build serde-1.0.130</div>' if warning else ""
    coverage_html = ""
    if coverage is not None:
        coverage_html = (
            '<li class="pure-menu-item"><a href="/crate/serde/latest" class="pure-menu-link">'
            f"\n      <b>{coverage}</b>\n      of the crate is documented\n    </a></li>"
        )
    return (
        "<html><body><nav><ul>"
        '<li class="pure-menu-item"><a href="/serde" class="pure-menu-link">Source</a></li>'
        f"{coverage_html}</ul></nav>{warning_html}<br><img src='x.png'></body></html>"
    )


class FakeRoutes:
    """URL → canned response table; anything unknown is a 404."""

    def __init__(self) -> None:
        self.routes: dict[str, httpx.Response | Exception] = {}
        self.calls: Counter[str] = Counter()
        self.requests: list[httpx.Request] = []

    def add(self, url: str, json=None, status: int = 200, text: str | None = None) -> None:
        if text is not None:
            self.routes[url] = httpx.Response(status, text=text)
        else:
            self.routes[url] = httpx.Response(status, json=json)

    def fail(self, url: str, exc: Exception | None = None) -> None:
        self.routes[url] = exc or httpx.ConnectError("connection refused")

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        self.calls[key] += 1
        self.requests.append(request)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(route, Exception):
            raise route
        return httpx.Response(route.status_code, content=route.content, headers=route.headers)


def add_crate(routes: FakeRoutes, name: str = "serde", **overrides) -> None:
    crate = {
        "name": name,
        "description": "A generic serialization/deserialization framework",
        "documentation": f"{DOCS}/{name}",
        "homepage": "https://serde.rs",
        "repository": REPO_URL,
        "max_version": "1.0.130",
        "downloads": 50_000_000,
        "created_at": "2014-12-05T20:20:39.487502+00:00",
        "updated_at": "2021-09-28T17:03:12.104744+00:00",
    }
    crate.update(overrides)
    routes.add(f"{CRATES}/{name}", json={"crate": crate})


def add_healthy_repo(routes: FakeRoutes, base: str = GITHUB) -> None:
    """A well-kept repository: README, CI, recent release and commit."""
    routes.add(base, json={"default_branch": "master"})
    routes.add(
        f"{base}/community/profile",
        json={"health_percentage": 75, "files": {"readme": {"url": "x"}, "license": None}},
    )
    routes.add(
        f"{base}/releases/latest",
        json={
            "tag_name": "v1.0.130",
            "body": "* Fix deserialization of borrowed strings",
            "created_at": days_ago(10),
            "published_at": days_ago(10),
        },
    )
    routes.add(f"{base}/contents/CHANGELOG.md", json={"name": "CHANGELOG.md"})
    routes.add(
        f"{base}/contents",
        json=[
            {"name": "README.md", "path": "README.md", "type": "file"},
            {"name": "serde", "path": "serde", "type": "dir"},
            {"name": "test_suite", "path": "test_suite", "type": "dir"},
        ],
    )
    routes.add(f"{base}/issues", json=[])
    routes.add(
        f"{base}/actions/workflows",
        json={
            "total_count": 2,
            "workflows": [
                {"id": 1, "name": "CI", "path": ".github/workflows/ci.yml", "state": "active"},
                {"id": 2, "name": "Fuzz", "path": ".github/workflows/fuzz.yml", "state": "active"},
            ],
        },
    )
    routes.add(f"{base}/actions/workflows/1/runs", json={"total_count": 0, "workflow_runs": []})
    routes.add(f"{base}/actions/workflows/2/runs", json={"total_count": 0, "workflow_runs": []})
    routes.add(
        f"{base}/commits",
        json=[{"sha": "abc123", "commit": {"author": {"date": days_ago(1)}}}],
    )


@pytest.fixture
def routes() -> FakeRoutes:
    return FakeRoutes()


@pytest_asyncio.fixture
async def client(routes):
    async with httpx.AsyncClient(transport=httpx.MockTransport(routes.handler)) as http_client:
        yield http_client


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def serde() -> Dependency:
    return Dependency(
        name="serde",
        source_url=REPO_URL,
        documentation_url=f"{DOCS}/serde",
        version=DependencyVersion(remote="1.0.130"),
        downloads=50_000_000,
    )


@pytest.fixture
def make_context(settings, client):
    def factory(dependency: Dependency) -> EvaluationContext:
        return EvaluationContext(dependency, settings, client=client, now=NOW)

    return factory
