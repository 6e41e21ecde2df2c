"""Tests for the individual maintenance checks."""

import pytest

from tests.conftest import DOCS, GITHUB, REPO_URL, add_healthy_repo, days_ago, docs_page
from wmtcheck.analyzers.checks import CriterionEvaluator
from wmtcheck.models.schemas import (
    CheckName,
    Criterion,
    Dependency,
    DependencyVersion,
    Status,
)


def criterion(name: CheckName, number: str = "1") -> Criterion:
    return Criterion(number=number, question=f"Question about {name.value}", explanation="", name=name)


@pytest.fixture
def run(make_context):
    async def runner(dependency: Dependency, name: CheckName):
        ctx = make_context(dependency)
        try:
            return await CriterionEvaluator().evaluate(ctx, criterion(name))
        finally:
            await ctx.aclose()

    return runner


def crate(remote: str | None = "1.0.0", downloads: int = 0, **fields) -> Dependency:
    return Dependency(
        name="demo",
        source_url=REPO_URL,
        version=DependencyVersion(remote=remote),
        downloads=downloads,
        **fields,
    )


class TestProductionReadiness:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "remote,downloads,expected",
        [
            ("2.0.0", 0, Status.PASS),
            ("1.0.0-beta.1", 0, Status.PASS),
            ("0.3.0", 500, Status.PARTIAL),
            ("0.3.0", 499, Status.FAIL),
            ("0.0.5", 1_000_000, Status.FAIL),
        ],
    )
    async def test_status(self, run, remote, downloads, expected):
        result = await run(crate(remote, downloads), CheckName.PRODUCTION_READINESS)
        assert result.status == expected

    @pytest.mark.asyncio
    async def test_no_published_version(self, run):
        result = await run(crate(None), CheckName.PRODUCTION_READINESS)
        assert result.status == Status.FAIL
        assert "no published version" in result.explanation

    @pytest.mark.asyncio
    async def test_malformed_version(self, run):
        result = await run(crate("1.0"), CheckName.PRODUCTION_READINESS)
        assert result.status == Status.FAIL
        assert "1.0" in result.explanation

    @pytest.mark.asyncio
    async def test_works_without_source_url(self, run):
        dependency = Dependency(name="demo", version=DependencyVersion(remote="1.2.3"))
        result = await run(dependency, CheckName.PRODUCTION_READINESS)
        assert result.status == Status.PASS


class TestDocumentation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "coverage,expected",
        [
            ("75%", Status.PASS),
            ("50%", Status.PASS),
            ("30%", Status.PARTIAL),
            ("10%", Status.PARTIAL),
            ("5%", Status.FAIL),
        ],
    )
    async def test_coverage_grades(self, run, routes, coverage, expected):
        routes.add(f"{DOCS}/demo", text=docs_page(coverage))
        result = await run(crate(documentation_url=f"{DOCS}/demo"), CheckName.DOCUMENTATION)
        assert result.status == expected
        assert result.explanation == f"{coverage} of the crate is documented."

    @pytest.mark.asyncio
    async def test_unparseable_coverage(self, run, routes):
        routes.add(f"{DOCS}/demo", text=docs_page("87.5%"))
        result = await run(crate(documentation_url=f"{DOCS}/demo"), CheckName.DOCUMENTATION)
        assert result.status == Status.PARTIAL
        assert "coverage unknown" in result.explanation

    @pytest.mark.asyncio
    async def test_failed_build(self, run, routes):
        routes.add(f"{DOCS}/demo", text=docs_page(warning=True))
        result = await run(crate(documentation_url=f"{DOCS}/demo"), CheckName.DOCUMENTATION)
        assert result.status == Status.FAIL
        assert "failing documentation build" in result.explanation

    @pytest.mark.asyncio
    async def test_no_docs_page(self, run):
        result = await run(crate(documentation_url="https://demo.example.org"), CheckName.DOCUMENTATION)
        assert result.status == Status.FAIL
        assert "no README or docs.rs page" in result.explanation

    @pytest.mark.asyncio
    async def test_readme_on_github(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.DOCUMENTATION)
        assert result.status == Status.PASS
        assert result.explanation == "README exists, coverage unknown."

    @pytest.mark.asyncio
    async def test_readme_link_with_fragment(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(documentation_url=f"{REPO_URL}#readme"), CheckName.DOCUMENTATION)
        assert result.status == Status.PASS
        assert routes.calls[f"{GITHUB}/community/profile"] == 1

    @pytest.mark.asyncio
    async def test_source_url_with_query(self, run, routes):
        add_healthy_repo(routes)
        dependency = Dependency(name="demo", source_url=f"{REPO_URL}?tab=readme-ov-file")
        result = await run(dependency, CheckName.TESTS)
        assert result.status == Status.PASS

    @pytest.mark.asyncio
    async def test_hosted_page_without_name(self, run):
        dependency = Dependency(documentation_url="https://demo.example.org")
        result = await run(dependency, CheckName.DOCUMENTATION)
        assert result.status == Status.FAIL


class TestChangelog:
    @pytest.mark.asyncio
    async def test_changelog_file(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.CHANGELOG)
        assert result.status == Status.PASS
        assert "CHANGELOG.md" in result.explanation

    @pytest.mark.asyncio
    async def test_release_notes(self, run, routes):
        add_healthy_repo(routes)
        del routes.routes[f"{GITHUB}/contents/CHANGELOG.md"]
        result = await run(crate(), CheckName.CHANGELOG)
        assert result.status == Status.PASS
        assert "release notes" in result.explanation

    @pytest.mark.asyncio
    async def test_neither(self, run, routes):
        routes.add(GITHUB, json={"default_branch": "main"})
        routes.add(f"{GITHUB}/releases/latest", json={"tag_name": "v1", "body": ""})
        result = await run(crate(), CheckName.CHANGELOG)
        assert result.status == Status.FAIL


class TestTests:
    @pytest.mark.asyncio
    async def test_test_directory(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.TESTS)
        assert result.status == Status.PASS
        assert "test_suite" in result.explanation

    @pytest.mark.asyncio
    async def test_no_test_directory(self, run, routes):
        routes.add(f"{GITHUB}/contents", json=[{"name": "src", "path": "src", "type": "dir"}])
        result = await run(crate(), CheckName.TESTS)
        assert result.status == Status.FAIL

    @pytest.mark.asyncio
    async def test_latest_language_version(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.TESTS_RUN_AGAINST_LATEST_LANGUAGE_VERSION)
        assert result.status == Status.PASS
        assert "latest Rust version" in result.explanation

    @pytest.mark.asyncio
    async def test_integration_version_unsupported(self, run):
        result = await run(crate(), CheckName.TESTS_RUN_AGAINST_LATEST_INTEGRATION_VERSION)
        assert result.status == Status.UNSUPPORTED
        assert result.explanation == "Not currently supported."


class TestBugResponse:
    @pytest.mark.asyncio
    async def test_no_open_bugs(self, run, routes):
        routes.add(f"{GITHUB}/issues", json=[])
        result = await run(crate(), CheckName.BUG_REPORT_RESPONSE)
        assert result.status == Status.PASS
        assert result.explanation == "There are no open bugs."

    @pytest.mark.asyncio
    async def test_unanswered_bug(self, run, routes):
        routes.add(f"{GITHUB}/issues", json=[{"number": 1, "title": "Crash", "comments": 0}])
        result = await run(crate(), CheckName.BUG_REPORT_RESPONSE)
        assert result.status == Status.FAIL
        assert result.explanation == "1 open bug out of 1 without a response."

    @pytest.mark.asyncio
    async def test_single_comment_is_not_a_response(self, run, routes):
        routes.add(
            f"{GITHUB}/issues",
            json=[
                {"number": 1, "title": "Crash", "comments": 1},
                {"number": 2, "title": "Leak", "comments": 4},
            ],
        )
        result = await run(crate(), CheckName.BUG_REPORT_RESPONSE)
        assert result.status == Status.FAIL

    @pytest.mark.asyncio
    async def test_answered_bug(self, run, routes):
        routes.add(f"{GITHUB}/issues", json=[{"number": 1, "title": "Crash", "comments": 3}])
        result = await run(crate(), CheckName.BUG_REPORT_RESPONSE)
        assert result.status == Status.PASS


class TestContinuousIntegration:
    @pytest.mark.asyncio
    async def test_configured(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.CONTINUOUS_INTEGRATION_CONFIGURATION)
        assert result.status == Status.PASS
        assert result.explanation == "The project has 2 CI workflows."

    @pytest.mark.asyncio
    async def test_not_configured(self, run, routes):
        routes.add(f"{GITHUB}/actions/workflows", json={"total_count": 0, "workflows": []})
        for name in (CheckName.CONTINUOUS_INTEGRATION_CONFIGURATION, CheckName.CONTINUOUS_INTEGRATION_PASSES):
            result = await run(crate(), name)
            assert result.status == Status.FAIL

    @pytest.mark.asyncio
    async def test_all_passing(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.CONTINUOUS_INTEGRATION_PASSES)
        assert result.status == Status.PASS
        assert result.explanation == "There is no failing workflow."

    @pytest.mark.asyncio
    async def test_failing_workflow_is_reported(self, run, routes):
        add_healthy_repo(routes)
        routes.add(f"{GITHUB}/actions/workflows/2/runs", json={"total_count": 1, "workflow_runs": [{"id": 7}]})
        result = await run(crate(), CheckName.CONTINUOUS_INTEGRATION_PASSES)
        assert result.status == Status.PASS
        assert result.explanation == "1 workflow out of 2 failing on the default branch."

    @pytest.mark.asyncio
    async def test_api_error_becomes_fail(self, run, routes):
        routes.add(f"{GITHUB}/actions/workflows", json={"message": "boom"}, status=500)
        result = await run(crate(), CheckName.CONTINUOUS_INTEGRATION_CONFIGURATION)
        assert result.status == Status.FAIL
        assert "500" in result.explanation


class TestUsage:
    @pytest.mark.asyncio
    async def test_recent_commits(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.USAGE)
        assert result.status == Status.PASS
        assert result.explanation == "Found 1 commit since 2026-01-01."

        request = next(r for r in routes.requests if r.url.path.endswith("/commits"))
        assert request.url.params["since"] == "2026-01-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_no_commits(self, run, routes):
        routes.add(f"{GITHUB}/commits", json=[])
        result = await run(crate(), CheckName.USAGE)
        assert result.status == Status.FAIL


class TestLatestCommit:
    @pytest.mark.asyncio
    async def test_recent_commit_fails(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.LATEST_COMMITS)
        assert result.status == Status.FAIL
        assert result.explanation == "The latest commit was 1 day ago."

    @pytest.mark.asyncio
    async def test_old_commit_passes(self, run, routes):
        routes.add(f"{GITHUB}/commits", json=[{"sha": "a", "commit": {"author": {"date": days_ago(400)}}}])
        result = await run(crate(), CheckName.LATEST_COMMITS)
        assert result.status == Status.PASS
        assert result.explanation == "The latest commit was 400 days ago."

    @pytest.mark.asyncio
    async def test_no_commits(self, run, routes):
        routes.add(f"{GITHUB}/commits", json=[])
        result = await run(crate(), CheckName.LATEST_COMMITS)
        assert result.status == Status.FAIL


class TestLatestRelease:
    @pytest.mark.asyncio
    async def test_recent_release(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.LATEST_RELEASE)
        assert result.status == Status.PASS
        assert result.explanation == "The last release was 10 days ago."

    @pytest.mark.asyncio
    async def test_stale_release(self, run, routes):
        routes.add(f"{GITHUB}/releases/latest", json={"tag_name": "v0.1", "created_at": days_ago(400)})
        result = await run(crate(), CheckName.LATEST_RELEASE)
        assert result.status == Status.PARTIAL
        assert "over a year ago" in result.explanation

    @pytest.mark.asyncio
    async def test_falls_back_to_published_at(self, run, routes):
        routes.add(f"{GITHUB}/releases/latest", json={"tag_name": "v1", "published_at": days_ago(3)})
        result = await run(crate(), CheckName.LATEST_RELEASE)
        assert result.status == Status.PASS

    @pytest.mark.asyncio
    async def test_no_release(self, run):
        result = await run(crate(), CheckName.LATEST_RELEASE)
        assert result.status == Status.FAIL
        assert result.explanation == "The project has no releases."


class TestErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name",
        [CheckName.CHANGELOG, CheckName.TESTS, CheckName.USAGE, CheckName.LATEST_RELEASE],
    )
    async def test_missing_source_url(self, run, name):
        dependency = Dependency(name="demo", version=DependencyVersion(remote="1.0.0"))
        result = await run(dependency, name)
        assert result.status == Status.FAIL
        assert result.explanation == "demo is missing source URL."

    @pytest.mark.asyncio
    async def test_non_github_source(self, run):
        dependency = Dependency(name="demo", source_url="https://gitlab.com/demo/demo")
        result = await run(dependency, CheckName.TESTS)
        assert result.status == Status.FAIL

    @pytest.mark.asyncio
    async def test_result_carries_criterion(self, run, routes):
        add_healthy_repo(routes)
        result = await run(crate(), CheckName.TESTS)
        assert result.number == "1"
        assert result.question == "Question about Tests"
