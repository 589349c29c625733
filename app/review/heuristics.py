"""
app/review/heuristics.py — Per-criterion scoring heuristics.

Each heuristic is a pure function `(content, category) -> float` that starts
from a fixed base score, applies fixed increments, and clamps to [0, 1].
The keyword lists and increments below ARE the behaviour: changing any of
them changes every stored review score, so treat them as a versioned table.

Keyword presence is a substring test on the lower-cased content and each
keyword counts at most once, however often it appears.

HEURISTICS maps a lower-cased criterion name to (heuristic, feedback family).
Names not in the registry are scored by `generic`.
"""

import re
from typing import Callable, NamedTuple

from app.review.types import clamp

HeuristicFn = Callable[[str, str | None], float]


# ── Text helpers ──────────────────────────────────────────────────────────────

def _words(content: str) -> list[str]:
    """Whitespace tokens; leading or trailing whitespace yields an empty token at that end."""
    if not content.strip():
        return []
    return re.split(r"\s+", content)


def _sentences(content: str) -> list[str]:
    return [s for s in re.split(r"[.!?]+", content) if s.strip()]


def _paragraphs(content: str) -> list[str]:
    return [p for p in re.split(r"\n\s*\n", content) if p.strip()]


def _count_present(content: str, terms: tuple[str, ...]) -> int:
    """How many of `terms` occur somewhere in the content (case-insensitive)."""
    lowered = content.lower()
    return sum(1 for term in terms if term in lowered)


def _keyword_heuristic(base: float, terms: tuple[str, ...], more_than: int, bonus: float) -> HeuristicFn:
    """Build a heuristic that adds `bonus` once more than `more_than` terms are present."""

    def heuristic(content: str, category: str | None = None) -> float:
        score = base
        if _count_present(content, terms) > more_than:
            score += bonus
        return clamp(score)

    return heuristic


# ── Grammar and spelling ──────────────────────────────────────────────────────

# Case-sensitive; each pattern costs at most one penalty.
GRAMMAR_CONFUSION_PATTERNS = tuple(
    re.compile(p)
    for p in (
        r"your\s+you're", r"you're\s+your",
        r"its\s+it's", r"it's\s+its",
        r"their\s+they're", r"they're\s+their",
        r"there\s+their", r"their\s+there",
    )
)
GRAMMAR_BASE = 0.8
GRAMMAR_PENALTY = 0.05


def grammar_and_spelling(content: str, category: str | None = None) -> float:
    errors = sum(1 for pattern in GRAMMAR_CONFUSION_PATTERNS if pattern.search(content))
    return clamp(GRAMMAR_BASE - errors * GRAMMAR_PENALTY)


# ── Content quality ───────────────────────────────────────────────────────────

def content_quality(content: str, category: str | None = None) -> float:
    """
    Base 0.7, then +0.1 each for:
      - more than 100 words
      - more than 500 words
      - average sentence length strictly between 5 and 25 words
      - more than 60% of words unique (case-insensitive)
    The two ratio checks are skipped when there are no sentences / no words.
    """
    words = _words(content)
    sentences = _sentences(content)
    score = 0.7

    if len(words) > 100:
        score += 0.1
    if len(words) > 500:
        score += 0.1

    if sentences:
        avg_sentence_length = len(words) / len(sentences)
        if 5 < avg_sentence_length < 25:
            score += 0.1

    if words:
        vocabulary_ratio = len({w.lower() for w in words}) / len(words)
        if vocabulary_ratio > 0.6:
            score += 0.1

    return clamp(score)


# ── Structure and organization ────────────────────────────────────────────────

TRANSITION_WORDS = ("however", "therefore", "furthermore", "moreover", "consequently", "in addition")


def structure_and_organization(content: str, category: str | None = None) -> float:
    """Base 0.6; +0.2 for >2 paragraphs, +0.1 for >5 sentences, +0.1 for >1 transition word."""
    score = 0.6
    if len(_paragraphs(content)) > 2:
        score += 0.2
    if len(_sentences(content)) > 5:
        score += 0.1
    if _count_present(content, TRANSITION_WORDS) > 1:
        score += 0.1
    return clamp(score)


# ── Originality ───────────────────────────────────────────────────────────────

STOCK_PHRASES = (
    "in conclusion", "as a result", "it is important to note",
    "furthermore", "moreover", "in addition",
)


def originality(content: str, category: str | None = None) -> float:
    """Base 0.8; leaning on more than three stock phrases costs 0.1."""
    score = 0.8
    if _count_present(content, STOCK_PHRASES) > 3:
        score -= 0.1
    return clamp(score)


# ── Technical accuracy (category aware) ──────────────────────────────────────

TECHNICAL_TERMS_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "technical": ("algorithm", "database", "api", "framework", "optimization"),
    "business": ("revenue", "profit", "market", "strategy", "analysis"),
    "academic": ("research", "methodology", "hypothesis", "conclusion", "analysis"),
}


def technical_accuracy(content: str, category: str | None = None) -> float:
    """Base 0.7; +0.2 when more than two of the category's domain terms appear."""
    terms = TECHNICAL_TERMS_BY_CATEGORY.get(category or "", ())
    score = 0.7
    if _count_present(content, terms) > 2:
        score += 0.2
    return clamp(score)


# ── Keyword-driven heuristics ────────────────────────────────────────────────

BUSINESS_CONCEPTS = ("market", "customer", "revenue", "cost", "profit", "strategy")
MARKET_TERMS = ("market", "competition", "demand", "supply", "trend", "growth")
FINANCIAL_TERMS = ("revenue", "cost", "profit", "investment", "return", "budget")
RISK_TERMS = ("risk", "challenge", "threat", "vulnerability", "mitigation")
CREATIVE_INDICATORS = ("innovative", "creative", "unique", "original", "novel")
ARTISTIC_TERMS = ("aesthetic", "beauty", "artistic", "visual", "design")
SKILL_TERMS = ("technique", "skill", "expertise", "proficiency", "mastery")
CODE_TERMS = ("function", "class", "variable", "loop", "condition")
PERFORMANCE_TERMS = ("efficiency", "optimization", "speed", "performance", "scalability")
SECURITY_TERMS = ("security", "authentication", "encryption", "vulnerability", "protection")
DOCUMENTATION_TERMS = ("comment", "documentation", "explain", "describe", "note")

business_logic = _keyword_heuristic(0.6, BUSINESS_CONCEPTS, more_than=2, bonus=0.3)
market_analysis = _keyword_heuristic(0.5, MARKET_TERMS, more_than=2, bonus=0.4)
financial_viability = _keyword_heuristic(0.5, FINANCIAL_TERMS, more_than=2, bonus=0.4)
risk_assessment = _keyword_heuristic(0.6, RISK_TERMS, more_than=1, bonus=0.3)
creativity = _keyword_heuristic(0.7, CREATIVE_INDICATORS, more_than=1, bonus=0.2)
artistic_merit = _keyword_heuristic(0.6, ARTISTIC_TERMS, more_than=1, bonus=0.3)
technical_skill = _keyword_heuristic(0.6, SKILL_TERMS, more_than=1, bonus=0.3)
code_quality = _keyword_heuristic(0.5, CODE_TERMS, more_than=2, bonus=0.4)
performance = _keyword_heuristic(0.6, PERFORMANCE_TERMS, more_than=1, bonus=0.3)
security = _keyword_heuristic(0.5, SECURITY_TERMS, more_than=1, bonus=0.4)
documentation = _keyword_heuristic(0.6, DOCUMENTATION_TERMS, more_than=1, bonus=0.3)


# ── Fallback ─────────────────────────────────────────────────────────────────

GENERIC_SCORE = 0.6


def generic(content: str, category: str | None = None) -> float:
    return GENERIC_SCORE


# ── Registry ──────────────────────────────────────────────────────────────────

class Heuristic(NamedTuple):
    score: HeuristicFn
    feedback_family: str


HEURISTICS: dict[str, Heuristic] = {
    "grammar and spelling": Heuristic(grammar_and_spelling, "grammar"),
    "content quality": Heuristic(content_quality, "content"),
    "structure and organization": Heuristic(structure_and_organization, "structure"),
    "originality": Heuristic(originality, "originality"),
    "technical accuracy": Heuristic(technical_accuracy, "technical"),
    "business logic": Heuristic(business_logic, "business"),
    "market analysis": Heuristic(market_analysis, "market"),
    "financial viability": Heuristic(financial_viability, "financial"),
    "risk assessment": Heuristic(risk_assessment, "risk"),
    "creativity": Heuristic(creativity, "creativity"),
    "artistic merit": Heuristic(artistic_merit, "artistic"),
    "technical skill": Heuristic(technical_skill, "technical_skill"),
    "code quality": Heuristic(code_quality, "code"),
    "performance": Heuristic(performance, "performance"),
    "security": Heuristic(security, "security"),
    "documentation": Heuristic(documentation, "documentation"),
}

GENERIC_HEURISTIC = Heuristic(generic, "generic")


def get_heuristic(criterion_name: str) -> Heuristic:
    """Look up the heuristic for a criterion name (case-insensitive)."""
    return HEURISTICS.get(criterion_name.strip().lower(), GENERIC_HEURISTIC)
