"""The criterion catalog (the twelve questions of the well-maintained test)."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError

from wmtcheck.errors import UnknownCriterion, WmtError
from wmtcheck.models.schemas import Criterion, CriterionCatalog

logger = logging.getLogger(__name__)

QUESTIONS_JSON = Path(__file__).parent / "assets" / "questions.json"
ALL_QUESTIONS = ("all", "0")


def question_numbers(path: Path | None = None) -> list[str]:
    """Return the question numbers of the catalog, in catalog order."""
    return [criterion.number for criterion in load_catalog(path)]


@lru_cache(maxsize=None)
def load_catalog(path: Path | None = None) -> tuple[Criterion, ...]:
    """Read the criterion catalog.

    Args:
        path: Questions file to read. Defaults to the bundled catalog.

    Returns:
        Criteria in catalog order. The result is cached per path.

    Raises:
        WmtError: If the file is missing or malformed.
    """
    try:
        content = Path(path or QUESTIONS_JSON).read_text(encoding="utf-8")
        catalog = CriterionCatalog.model_validate(json.loads(content))
    except (OSError, ValueError, ValidationError) as e:
        raise WmtError(f"Could not load questions from {path or 'bundled catalog'}: {e}") from e

    logger.debug(f"Loaded {len(catalog.questions)} questions")
    return tuple(catalog.questions)


def list_questions(path: Path | None = None) -> list[Criterion]:
    """Return every criterion in catalog order."""
    return list(load_catalog(path))


def describe(number: str, path: Path | None = None) -> Criterion:
    """Return the criterion with the given number.

    Raises:
        UnknownCriterion: If no criterion has that number.
    """
    for criterion in load_catalog(path):
        if criterion.number == number:
            return criterion
    raise UnknownCriterion(number)


def select(selector: str | None, path: Path | None = None) -> list[Criterion]:
    """Resolve a criterion selector.

    Args:
        selector: ``None``, ``"all"`` or ``"0"`` for every criterion, otherwise
            a single criterion number.
    """
    if selector is None or selector.lower() in ALL_QUESTIONS:
        logger.info("Will check all questions")
        return list_questions(path)
    logger.info(f"Will only check for question {selector}")
    return [describe(selector, path)]
