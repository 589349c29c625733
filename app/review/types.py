"""
app/review/types.py — Data contracts for the content-scoring engine.

  Criterion       : a weighted rubric item read from the criteria store
  CriterionScore  : what a single heuristic produces (score + feedback)
  ScoreResult     : a CriterionScore bound to the criterion it came from
  AnalysisResult  : the full output of one analysis run

All of them are frozen; an analysis builds them once and never mutates them.
"""

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Criterion:
    id: int
    name: str
    weight: float                   # positive
    category: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CriterionScore:
    score: float                    # 0.0 – 1.0, rounded to 2 dp
    feedback: str


@dataclass(frozen=True)
class ScoreResult:
    criterion_id: int
    score: float                    # 0.0 – 1.0, rounded to 2 dp
    feedback: str
    weight: float


@dataclass(frozen=True)
class AnalysisResult:
    overall_score: float            # weighted mean, rounded to 2 dp
    scores: list[ScoreResult] = field(default_factory=list)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Bound a heuristic score to [low, high]."""
    return max(low, min(high, value))


def round_score(value: float) -> float:
    """Round to 2 decimals, halves going up (0.125 → 0.13, not banker's rounding)."""
    return math.floor(value * 100 + 0.5) / 100
