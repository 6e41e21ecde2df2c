"""The twelve maintenance checks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from wmtcheck.analyzers.context import EvaluationContext
from wmtcheck.config import (
    DOC_COVERAGE_GOOD,
    DOC_COVERAGE_POOR,
    MIN_DOWNLOADS_FOR_MINOR_RELEASE,
    STALE_AFTER_DAYS,
)
from wmtcheck.errors import CoverageUnparseable, WmtError
from wmtcheck.models.schemas import (
    CheckName,
    CheckOutcome,
    Criterion,
    CriterionResult,
    DocSource,
    Status,
)
from wmtcheck.models.version import Version

logger = logging.getLogger(__name__)

EXPLANATION_PREFIX = "The project has"
CHANGELOG_FILE = "CHANGELOG.md"
BUG_LABEL = "bug"

Check = Callable[[EvaluationContext], Awaitable[CheckOutcome]]


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


class CriterionEvaluator:
    """Runs a criterion's check against a dependency.

    Each criterion names one of the fixed :class:`CheckName` checks; several
    criteria may share a check. Errors raised while checking (network
    failures, malformed versions, missing source URLs) become a Fail result
    carrying the error message, so one bad request only affects one cell.
    """

    def __init__(self) -> None:
        self._checks: dict[CheckName, Check] = {
            CheckName.PRODUCTION_READINESS: self.check_production_readiness,
            CheckName.DOCUMENTATION: self.check_documentation,
            CheckName.CHANGELOG: self.check_changelog,
            CheckName.TESTS: self.check_tests,
            CheckName.TESTS_RUN_AGAINST_LATEST_LANGUAGE_VERSION: self.check_tests_latest_language,
            CheckName.TESTS_RUN_AGAINST_LATEST_INTEGRATION_VERSION: self.check_tests_latest_integration,
            CheckName.BUG_REPORT_RESPONSE: self.check_bug_response,
            CheckName.CONTINUOUS_INTEGRATION_CONFIGURATION: self.check_ci_configuration,
            CheckName.CONTINUOUS_INTEGRATION_PASSES: self.check_ci_passes,
            CheckName.USAGE: self.check_usage,
            CheckName.LATEST_COMMITS: self.check_latest_commit,
            CheckName.LATEST_RELEASE: self.check_latest_release,
        }

    async def evaluate(self, ctx: EvaluationContext, criterion: Criterion) -> CriterionResult:
        """Check one criterion for the context's dependency."""
        label = ctx.dependency.label
        logger.info(f"Checking question {criterion.number} ({criterion.name.value}) for {label}")

        try:
            outcome = await self._checks[criterion.name](ctx)
        except (WmtError, httpx.HTTPError) as e:
            logger.warning(f"Question {criterion.number} failed for {label}: {e}")
            outcome = CheckOutcome(status=Status.FAIL, explanation=str(e))

        logger.info(f"Question {criterion.number} for {label}: {outcome.status.value}")
        return CriterionResult(
            number=criterion.number,
            question=criterion.question,
            status=outcome.status,
            explanation=outcome.explanation,
        )

    # --- Registry checks ---

    async def check_production_readiness(self, ctx: EvaluationContext) -> CheckOutcome:
        """A major release passes; a minor release with enough downloads partially passes."""
        dependency = ctx.dependency
        if not dependency.version.remote:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=f"{EXPLANATION_PREFIX} no published version.",
            )

        version = Version.parse(dependency.version.remote)
        if version.has_major_release():
            return CheckOutcome(
                status=Status.PASS,
                explanation=f"{EXPLANATION_PREFIX} at least one major release.",
            )

        if version.has_minor_release() and dependency.downloads >= MIN_DOWNLOADS_FOR_MINOR_RELEASE:
            return CheckOutcome(
                status=Status.PARTIAL,
                explanation=(
                    f"{EXPLANATION_PREFIX} at least one minor release and at least "
                    f"{MIN_DOWNLOADS_FOR_MINOR_RELEASE} downloads."
                ),
            )

        return CheckOutcome(
            status=Status.FAIL,
            explanation=f"{EXPLANATION_PREFIX} no major or minor release.",
        )

    async def check_documentation(self, ctx: EvaluationContext) -> CheckOutcome:
        """Grade documentation by README presence or docs.rs build and coverage."""
        docs = ctx.docs()
        logger.info(f"{ctx.dependency.label} is documented on {docs.doc_source.value}")

        if docs.doc_source == DocSource.HOSTED_DOC_PAGE and not ctx.dependency.name:
            return CheckOutcome(
                status=Status.FAIL,
                explanation="No crate name to look up on docs.rs.",
            )

        if not await docs.page_exists():
            return CheckOutcome(
                status=Status.FAIL,
                explanation="The crate has no README or docs.rs page.",
            )

        if docs.doc_source == DocSource.README_ON_GITHUB:
            return CheckOutcome(
                status=Status.PASS,
                explanation="README exists, coverage unknown.",
            )

        if not await docs.build_succeeded():
            return CheckOutcome(
                status=Status.FAIL,
                explanation="The crate has a failing documentation build.",
            )

        try:
            score = await docs.coverage_score()
        except CoverageUnparseable as e:
            logger.info(f"No coverage for {ctx.dependency.label}: {e}")
            return CheckOutcome(
                status=Status.PARTIAL,
                explanation="The crate is documented on docs.rs, coverage unknown.",
            )

        explanation = f"{score}% of the crate is documented."
        if score >= DOC_COVERAGE_GOOD:
            status = Status.PASS
        elif score >= DOC_COVERAGE_POOR:
            status = Status.PARTIAL
        else:
            status = Status.FAIL
        return CheckOutcome(status=status, explanation=explanation)

    # --- Repository checks ---

    async def check_changelog(self, ctx: EvaluationContext) -> CheckOutcome:
        """A CHANGELOG.md file or notes on the latest release."""
        github = ctx.github()

        if await github.file_exists_at_default_branch(CHANGELOG_FILE):
            return CheckOutcome(
                status=Status.PASS,
                explanation=f"The crate has a {CHANGELOG_FILE} file.",
            )

        release = await github.latest_release()
        if release is not None and release.has_notes:
            return CheckOutcome(
                status=Status.PASS,
                explanation="The crate's latest release has release notes.",
            )

        return CheckOutcome(
            status=Status.FAIL,
            explanation=f"The crate has no release notes or {CHANGELOG_FILE}.",
        )

    async def check_tests(self, ctx: EvaluationContext) -> CheckOutcome:
        """A test directory at the repository root."""
        test_dirs = await ctx.github().test_directories()
        if not test_dirs:
            return CheckOutcome(
                status=Status.FAIL,
                explanation="No test directory at the repository root.",
            )

        names = ", ".join(item.path for item in test_dirs)
        return CheckOutcome(
            status=Status.PASS,
            explanation=f"Found test directories ({names}). Coverage not guaranteed.",
        )

    async def check_tests_latest_language(self, ctx: EvaluationContext) -> CheckOutcome:
        outcome = await self.check_tests(ctx)
        return CheckOutcome(
            status=outcome.status,
            explanation=(
                f"{outcome.explanation} Can't verify that the tests run against "
                "the latest Rust version."
            ),
        )

    async def check_tests_latest_integration(self, ctx: EvaluationContext) -> CheckOutcome:
        return CheckOutcome(status=Status.UNSUPPORTED, explanation="Not currently supported.")

    async def check_bug_response(self, ctx: EvaluationContext) -> CheckOutcome:
        """Open bugs should have more than one comment."""
        bugs = await ctx.github().issues(label=BUG_LABEL, state="open")
        if not bugs:
            return CheckOutcome(status=Status.PASS, explanation="There are no open bugs.")

        unanswered = [bug for bug in bugs if bug.comments <= 1]
        if unanswered:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=(
                    f"{_plural(len(unanswered), 'open bug')} out of {len(bugs)} "
                    "without a response."
                ),
            )

        return CheckOutcome(
            status=Status.PASS,
            explanation=f"All {_plural(len(bugs), 'open bug')} have a response.",
        )

    async def check_ci_configuration(self, ctx: EvaluationContext) -> CheckOutcome:
        workflows = await ctx.github().workflows()
        if not workflows:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=f"{EXPLANATION_PREFIX} no CI workflows.",
            )
        return CheckOutcome(
            status=Status.PASS,
            explanation=f"{EXPLANATION_PREFIX} {_plural(len(workflows), 'CI workflow')}.",
        )

    async def check_ci_passes(self, ctx: EvaluationContext) -> CheckOutcome:
        """Count workflows with failed runs on the default branch.

        Failing workflows are reported but do not lower the status.
        """
        github = ctx.github()
        workflows = await github.workflows()
        if not workflows:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=f"{EXPLANATION_PREFIX} no CI workflows.",
            )

        failed_runs = await asyncio.gather(*(github.failed_runs(wf.id) for wf in workflows))
        failing = sum(1 for count in failed_runs if count >= 1)

        # TODO: confirm with product whether failing workflows should downgrade to Fail
        if failing:
            explanation = (
                f"{_plural(failing, 'workflow')} out of {len(workflows)} "
                "failing on the default branch."
            )
        else:
            explanation = "There is no failing workflow."
        return CheckOutcome(status=Status.PASS, explanation=explanation)

    async def check_usage(self, ctx: EvaluationContext) -> CheckOutcome:
        """At least one commit since the start of the year."""
        since = ctx.usage_cutoff
        commits = await ctx.github().recent_commits(since=since)
        if not commits:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=f"No commits since {since:%Y-%m-%d}.",
            )
        return CheckOutcome(
            status=Status.PASS,
            explanation=f"Found {_plural(len(commits), 'commit')} since {since:%Y-%m-%d}.",
        )

    async def check_latest_commit(self, ctx: EvaluationContext) -> CheckOutcome:
        """Age of the most recent commit.

        A commit younger than a year fails. This matches the legacy wmt
        behaviour and is pending confirmation.
        """
        commit = await ctx.github().latest_commit()
        if commit is None:
            return CheckOutcome(
                status=Status.FAIL,
                explanation="The repository has no commits.",
            )

        days = (ctx.now - commit.date).days
        explanation = f"The latest commit was {_plural(days, 'day')} ago."
        status = Status.FAIL if days < STALE_AFTER_DAYS else Status.PASS
        return CheckOutcome(status=status, explanation=explanation)

    async def check_latest_release(self, ctx: EvaluationContext) -> CheckOutcome:
        """Age of the latest GitHub release."""
        release = await ctx.github().latest_release()
        released_at = release and (release.created_at or release.published_at)
        if not released_at:
            return CheckOutcome(
                status=Status.FAIL,
                explanation=f"{EXPLANATION_PREFIX} no releases.",
            )

        days = (ctx.now - released_at).days
        if days > STALE_AFTER_DAYS:
            return CheckOutcome(
                status=Status.PARTIAL,
                explanation=f"The last release was over a year ago ({_plural(days, 'day')}).",
            )
        return CheckOutcome(
            status=Status.PASS,
            explanation=f"The last release was {_plural(days, 'day')} ago.",
        )
