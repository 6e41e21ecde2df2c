"""Fetchers and checks for evaluating dependencies."""

from wmtcheck.analyzers.checks import CriterionEvaluator
from wmtcheck.analyzers.docs import DocsResolver
from wmtcheck.analyzers.github import GitHubFetcher
from wmtcheck.analyzers.pipeline import CheckPipeline
from wmtcheck.analyzers.resolver import DependencyResolver

__all__ = ["CheckPipeline", "CriterionEvaluator", "DependencyResolver", "DocsResolver", "GitHubFetcher"]
