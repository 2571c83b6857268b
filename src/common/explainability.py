# ABOUTME: Generates human-readable readiness explanations from a score breakdown.
# ABOUTME: Translates component sub-scores and the reliability gate into advice.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from src.prep_score.config import DEFAULT_CONFIG, ScoringConfig

from .schemas import ScoreResult

COMPONENT_LABELS = {
    "volume": "Volume",
    "accuracy": "Accuracy",
    "recency": "Recency",
    "coverage": "Coverage",
}


@dataclass
class ScoreExplanation:
    score: int
    readiness: str
    weakest_component: str
    components: Dict[str, float]
    insight: str
    recommendation: str
    confidence: str


def readiness_band(result: ScoreResult) -> str:
    if result.reliability <= 0:
        return "insufficient_data"
    if result.score < 40:
        return "low"
    if result.score < 70:
        return "medium"
    return "high"


def analyze_components(components: Dict[str, float], readiness: str, unique_needed: int) -> Tuple[str, str]:
    """
    Insight and recommendation for the weakest component.

    When the reliability gate is closed the advice is always to answer more
    distinct questions, whatever the other components say.
    """
    if readiness == "insufficient_data":
        return (
            "Not enough distinct questions answered for a reliable estimate.",
            f"Answer at least {unique_needed} more distinct questions to unlock your score.",
        )

    weakest = min(components, key=components.get)
    if weakest == "volume":
        insight = "Your score is held back by how few distinct questions you have practiced."
        rec = "Work through new questions from the bank rather than repeating old quizzes."
    elif weakest == "accuracy":
        insight = "Recent answers contain too many mistakes."
        rec = "Review your latest wrong answers before starting a new simulation."
    elif weakest == "recency":
        insight = "You have not practiced recently, so your score is decaying."
        rec = "Practice a little every day to keep your score up."
    else:
        insight = "You keep repeating the same questions."
        rec = "Explore unanswered parts of the question bank."

    if readiness == "high":
        insight = f"Strong preparation overall. {insight}"
    return insight, rec


def explain_score(result: ScoreResult, config: ScoringConfig = DEFAULT_CONFIG) -> ScoreExplanation:
    components = {
        "volume": result.volume_score,
        "accuracy": result.accuracy_score,
        "recency": result.recency_score,
        "coverage": result.coverage_score,
    }
    readiness = readiness_band(result)
    unique_needed = max(0, config.min_unique + 1 - result.unique_questions)
    insight, recommendation = analyze_components(components, readiness, unique_needed)

    if result.reliability < 0.34:
        confidence = "low"
    elif result.reliability < 1.0:
        confidence = "medium"
    else:
        confidence = "high"

    return ScoreExplanation(
        score=result.score,
        readiness=readiness,
        weakest_component=min(components, key=components.get),
        components=components,
        insight=insight,
        recommendation=recommendation,
        confidence=confidence,
    )


def format_score_explanation(explanation: ScoreExplanation) -> str:
    """Render explanation as a human-readable block."""
    lines = [
        "━" * 60,
        f"Score: {explanation.score}/100 (readiness: {explanation.readiness}, confidence: {explanation.confidence})",
        "",
        "BREAKDOWN:",
        "━" * 60,
    ]
    for key, value in explanation.components.items():
        marker = "⚠️" if key == explanation.weakest_component else "  "
        lines.append(f"  {marker} {COMPONENT_LABELS[key]:<10} {value * 100:5.1f}%")

    lines.extend(
        [
            "",
            "INSIGHT:",
            f"  {explanation.insight}",
            "",
            "RECOMMENDATION:",
            f"  {explanation.recommendation}",
            "━" * 60,
        ]
    )
    return "\n".join(lines)
