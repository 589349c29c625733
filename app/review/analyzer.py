"""
app/review/analyzer.py — Content analysis: criteria → per-criterion scores → weighted total.

Two public functions:
  score_criterion(content, criterion_name, category) → CriterionScore
  analyze_content(content, category, lookup)         → AnalysisResult   (async)

Scoring is pure and synchronous. The only awaited step is fetching the
active criteria; a failure there propagates to the caller unchanged.
"""

import logging
from typing import Protocol, Sequence

from app.review.feedback import feedback_for
from app.review.heuristics import get_heuristic
from app.review.types import AnalysisResult, Criterion, CriterionScore, ScoreResult, round_score

logger = logging.getLogger(__name__)


class CriteriaLookup(Protocol):
    """Source of scoring criteria for a category."""

    async def get_criteria(self, category: str) -> Sequence[Criterion]:
        """Return active criteria for `category`, heaviest first."""
        ...


def _category_key(category) -> str | None:
    # Accept both plain strings and str-valued enums.
    return getattr(category, "value", category)


def score_criterion(content: str, criterion_name: str, category: str | None = None) -> CriterionScore:
    """
    Score content against a single named criterion.

    Unknown criterion names are scored by the generic heuristic.
    Feedback is chosen from the unrounded score; the returned score is
    rounded to 2 decimals.
    """
    heuristic = get_heuristic(criterion_name)
    raw = heuristic.score(content or "", _category_key(category))
    return CriterionScore(
        score=round_score(raw),
        feedback=feedback_for(heuristic.feedback_family, raw),
    )


def weighted_average(scores: Sequence[ScoreResult]) -> float:
    """Weighted mean of the scores, 0.0 when the total weight is zero."""
    total_weight = sum(s.weight for s in scores)
    if total_weight <= 0:
        return 0.0
    return sum(s.score * s.weight for s in scores) / total_weight


async def analyze_content(content: str, category: str, lookup: CriteriaLookup) -> AnalysisResult:
    """
    Run every active criterion for `category` over `content`.

    Args:
        content:  Free text to analyse.
        category: Content category (academic, business, creative, technical, other).
        lookup:   Where the criteria come from; fetched fresh on every call.

    Returns:
        AnalysisResult with one ScoreResult per criterion, in lookup order,
        and the weighted overall score rounded to 2 decimals.
    """
    criteria = await lookup.get_criteria(category)

    scores: list[ScoreResult] = []
    for criterion in criteria:
        result = score_criterion(content, criterion.name, category)
        scores.append(
            ScoreResult(
                criterion_id=criterion.id,
                score=result.score,
                feedback=result.feedback,
                weight=criterion.weight,
            )
        )

    overall = round_score(weighted_average(scores))
    logger.debug(
        "Analysed %d chars for category %s: %d criteria, overall=%.2f",
        len(content or ""), _category_key(category), len(scores), overall,
    )
    return AnalysisResult(overall_score=overall, scores=scores)
