"""End-to-end check pipeline: resolve dependencies, then build the result matrix."""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

import httpx

from wmtcheck import questions
from wmtcheck.adapters.base import BaseAdapter
from wmtcheck.adapters.crates import CratesAdapter
from wmtcheck.analyzers.checks import CriterionEvaluator
from wmtcheck.analyzers.context import EvaluationContext
from wmtcheck.analyzers.resolver import DependencyResolver
from wmtcheck.config import Settings
from wmtcheck.models.schemas import Criterion, Dependency, DependencyResults

logger = logging.getLogger(__name__)

SkipCallback = Callable[[Dependency, str], None]


class CheckPipeline:
    """Orchestrates a check run.

    Pipeline stages:
    1. Resolve identifiers into dependencies (fails fast)
    2. Select criteria from the catalog
    3. Check every selected criterion for every dependency

    Dependencies are checked concurrently, as are the criteria of one
    dependency; results always come back in input order, then catalog order.

    Usage:
        async with CheckPipeline() as pipeline:
            deps = await pipeline.resolve_dependencies(["serde"])
            matrix = await pipeline.evaluate(deps, "all")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        adapter: BaseAdapter | None = None,
        client: httpx.AsyncClient | None = None,
        evaluator: CriterionEvaluator | None = None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Run settings. Defaults to the environment.
            adapter: Registry adapter. Defaults to crates.io.
            client: Shared httpx client. Created on enter when omitted.
            evaluator: Criterion evaluator.
            now: Reference time for date-based checks. Defaults to the time
                each dependency's check starts.
        """
        self.settings = settings or Settings.from_env()
        self._client = client
        self._owns_client = client is None
        self._adapter = adapter
        self.evaluator = evaluator or CriterionEvaluator()
        self.now = now

    async def __aenter__(self) -> "CheckPipeline":
        """Set up shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout)
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def adapter(self) -> BaseAdapter:
        if self._adapter is None:
            self._adapter = CratesAdapter(settings=self.settings, client=self._client)
        return self._adapter

    async def resolve_dependencies(self, identifiers: Iterable[str]) -> list[Dependency]:
        """Resolve raw identifiers into dependencies.

        Raises:
            InvalidIdentifier: If a manifest can't be read.
            RegistryUnavailable: If a registry lookup fails.
        """
        logger.info("Checking dependency source")
        return await DependencyResolver(self.adapter).resolve_all(identifiers)

    def select_criteria(self, selector: str | None) -> list[Criterion]:
        """Resolve ``"all"`` or a question number into catalog entries."""
        return questions.select(selector, self.settings.questions_path)

    async def evaluate(
        self,
        dependencies: Sequence[Dependency],
        selector: str | None = "all",
        on_skip: SkipCallback | None = None,
    ) -> list[DependencyResults]:
        """Check the selected criteria for every dependency.

        A dependency without a source URL is skipped entirely when any
        selected criterion needs GitHub data; ``on_skip`` is told why.

        Args:
            dependencies: Dependencies to check.
            selector: ``"all"`` or a single question number.
            on_skip: Optional callback(dependency, reason) for skipped dependencies.

        Returns:
            One entry per checked dependency, in input order.

        Raises:
            UnknownCriterion: If the selector names no question.
        """
        criteria = self.select_criteria(selector)
        needs_source = any(criterion.name.requires_source for criterion in criteria)

        checked = []
        for dependency in dependencies:
            if needs_source and not dependency.source_url:
                reason = f"{dependency.label} has no source URL and was not checked"
                logger.warning(reason)
                if on_skip:
                    on_skip(dependency, reason)
                continue
            checked.append(dependency)

        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def run(dependency: Dependency) -> DependencyResults:
            async with semaphore:
                return await self.evaluate_dependency(dependency, criteria)

        return list(await asyncio.gather(*(run(dependency) for dependency in checked)))

    async def evaluate_dependency(
        self, dependency: Dependency, criteria: Sequence[Criterion]
    ) -> DependencyResults:
        """Check every criterion for one dependency."""
        ctx = EvaluationContext(dependency, self.settings, client=self._client, now=self.now)
        try:
            results = await asyncio.gather(
                *(self.evaluator.evaluate(ctx, criterion) for criterion in criteria)
            )
        finally:
            await ctx.aclose()
        return DependencyResults(dependency=dependency, results=list(results))


async def resolve_dependencies(
    identifiers: Iterable[str], settings: Settings | None = None
) -> list[Dependency]:
    """Resolve identifiers using a one-off pipeline."""
    async with CheckPipeline(settings=settings) as pipeline:
        return await pipeline.resolve_dependencies(identifiers)


async def evaluate(
    dependencies: Sequence[Dependency],
    selector: str | None = "all",
    settings: Settings | None = None,
    on_skip: SkipCallback | None = None,
) -> list[DependencyResults]:
    """Check dependencies using a one-off pipeline."""
    async with CheckPipeline(settings=settings) as pipeline:
        return await pipeline.evaluate(dependencies, selector, on_skip=on_skip)
