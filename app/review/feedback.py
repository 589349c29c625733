"""
app/review/feedback.py — Canned feedback text for each scoring heuristic.

Every family has exactly five messages, best first, matched against the
thresholds in FEEDBACK_THRESHOLDS. Scores below the last threshold get
the fifth message.
"""

FEEDBACK_THRESHOLDS = (0.9, 0.8, 0.7, 0.6)

FEEDBACK_MESSAGES: dict[str, tuple[str, str, str, str, str]] = {
    "grammar": (
        "Excellent grammar and spelling throughout.",
        "Good grammar with minor issues.",
        "Generally good grammar with some errors.",
        "Several grammar and spelling issues found.",
        "Significant grammar and spelling problems need attention.",
    ),
    "content": (
        "Outstanding content quality and depth.",
        "High-quality content with good depth.",
        "Good content quality with room for improvement.",
        "Content needs more depth and quality.",
        "Content quality requires significant improvement.",
    ),
    "structure": (
        "Excellent structure and organization.",
        "Well-structured and organized content.",
        "Good structure with minor organizational issues.",
        "Structure needs improvement.",
        "Poor structure and organization.",
    ),
    "originality": (
        "Highly original and creative content.",
        "Good originality with fresh perspectives.",
        "Generally original with some common elements.",
        "Limited originality detected.",
        "Content lacks originality and creativity.",
    ),
    "technical": (
        "Excellent technical accuracy and precision.",
        "Good technical accuracy with minor issues.",
        "Generally accurate with some technical concerns.",
        "Several technical inaccuracies found.",
        "Significant technical accuracy issues.",
    ),
    "business": (
        "Excellent business logic and reasoning.",
        "Strong business logic with good reasoning.",
        "Good business logic with room for improvement.",
        "Business logic needs strengthening.",
        "Weak business logic and reasoning.",
    ),
    "market": (
        "Comprehensive market analysis.",
        "Good market analysis with key insights.",
        "Basic market analysis provided.",
        "Limited market analysis.",
        "Insufficient market analysis.",
    ),
    "financial": (
        "Excellent financial analysis and projections.",
        "Good financial analysis with realistic projections.",
        "Basic financial analysis provided.",
        "Limited financial analysis.",
        "Insufficient financial analysis.",
    ),
    "risk": (
        "Comprehensive risk assessment and mitigation.",
        "Good risk assessment with mitigation strategies.",
        "Basic risk assessment provided.",
        "Limited risk assessment.",
        "Insufficient risk assessment.",
    ),
    "creativity": (
        "Exceptional creativity and innovation.",
        "High level of creativity demonstrated.",
        "Good creative elements present.",
        "Limited creativity shown.",
        "Lacks creative elements.",
    ),
    "artistic": (
        "Outstanding artistic merit and aesthetic appeal.",
        "High artistic merit with good aesthetics.",
        "Good artistic elements present.",
        "Limited artistic merit.",
        "Poor artistic merit and aesthetics.",
    ),
    "technical_skill": (
        "Exceptional technical skill demonstrated.",
        "High level of technical skill shown.",
        "Good technical skill level.",
        "Limited technical skill.",
        "Poor technical skill level.",
    ),
    "code": (
        "Excellent code quality and best practices.",
        "Good code quality with minor issues.",
        "Generally good code with room for improvement.",
        "Code quality needs improvement.",
        "Poor code quality and practices.",
    ),
    "performance": (
        "Excellent performance considerations.",
        "Good performance optimization.",
        "Basic performance considerations.",
        "Limited performance focus.",
        "Poor performance considerations.",
    ),
    "security": (
        "Excellent security practices and considerations.",
        "Good security awareness and practices.",
        "Basic security considerations.",
        "Limited security focus.",
        "Poor security practices and awareness.",
    ),
    "documentation": (
        "Excellent documentation and comments.",
        "Good documentation with clear explanations.",
        "Basic documentation provided.",
        "Limited documentation.",
        "Poor documentation and comments.",
    ),
    "generic": (
        "Excellent work overall.",
        "Good work with minor areas for improvement.",
        "Generally good with room for enhancement.",
        "Needs improvement in several areas.",
        "Significant improvement required.",
    ),
}


def feedback_for(family: str, score: float) -> str:
    """
    Pick the feedback message for a score within a heuristic family.

    Unknown families fall back to the generic messages.
    """
    messages = FEEDBACK_MESSAGES.get(family, FEEDBACK_MESSAGES["generic"])
    for threshold, message in zip(FEEDBACK_THRESHOLDS, messages):
        if score >= threshold:
            return message
    return messages[-1]
