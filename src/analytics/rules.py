# ABOUTME: Declares the threshold rule tables behind progress recommendations and risk scoring.
# ABOUTME: Each rule is an independent (id, predicate, outcome) entry; every matching rule fires.

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, Tuple, TypeVar

from src.common.schemas import Intervention, LearningPatterns, ProgressMetrics, Recommendation, RiskFactor

T = TypeVar("T")
Predicate = Callable[[ProgressMetrics, LearningPatterns], bool]


class ProgressThresholds:
    EXCELLENT_PROGRESS = 0.9
    GOOD_PROGRESS = 0.7
    AVERAGE_PROGRESS = 0.5
    NEEDS_IMPROVEMENT = 0.3
    PASSING_SCORE = 70
    REGULAR_SCHEDULE = 0.6
    INCONSISTENT_STUDY = 0.4
    LOW_ENGAGEMENT = 0.6
    MAX_STRUGGLE_POINTS = 3


@dataclass(frozen=True)
class Rule(Generic[T]):
    rule_id: str
    applies: Predicate
    outcome: Callable[[ProgressMetrics, LearningPatterns], T]


@dataclass(frozen=True)
class Penalty:
    rule_id: str
    applies: Predicate
    weight: float


def fire(rules: Sequence[Rule[T]], metrics: ProgressMetrics, patterns: LearningPatterns) -> Tuple[T, ...]:
    """Evaluate every rule in table order and collect the outcomes of those that match."""

    return tuple(rule.outcome(metrics, patterns) for rule in rules if rule.applies(metrics, patterns))


def _fixed(value: T) -> Callable[[ProgressMetrics, LearningPatterns], T]:
    return lambda metrics, patterns: value


RECOMMENDATION_RULES: Tuple[Rule[Recommendation], ...] = (
    Rule(
        "slow-pacing",
        lambda m, p: m.completion_rate < ProgressThresholds.AVERAGE_PROGRESS,
        _fixed(Recommendation("pacing", "Consider reducing daily study load and focusing on consistency", "high")),
    ),
    Rule(
        "low-scores",
        lambda m, p: m.average_score < ProgressThresholds.PASSING_SCORE,
        _fixed(Recommendation("content", "Review fundamental concepts before advancing", "high")),
    ),
    Rule(
        "irregular-schedule",
        lambda m, p: m.consistency_score < ProgressThresholds.REGULAR_SCHEDULE,
        _fixed(Recommendation("schedule", "Establish a regular study schedule for better retention", "medium")),
    ),
    Rule(
        "peak-hours",
        lambda m, p: len(p.peak_performance_times) > 0,
        lambda m, p: Recommendation(
            "timing",
            f"Schedule challenging content during peak hours: {', '.join(p.peak_performance_times)}",
            "low",
        ),
    ),
)

RISK_RULES: Tuple[Rule[RiskFactor], ...] = (
    Rule(
        "low-completion",
        lambda m, p: m.completion_rate < ProgressThresholds.NEEDS_IMPROVEMENT,
        _fixed(RiskFactor("low-completion", "high")),
    ),
    Rule(
        "inconsistent-study",
        lambda m, p: m.consistency_score < ProgressThresholds.INCONSISTENT_STUDY,
        _fixed(RiskFactor("inconsistent-study", "medium")),
    ),
    Rule(
        "multiple-struggle-points",
        lambda m, p: len(p.struggle_points) > ProgressThresholds.MAX_STRUGGLE_POINTS,
        _fixed(RiskFactor("multiple-struggle-points", "medium")),
    ),
)

INTERVENTION_RULES: Tuple[Rule[Intervention], ...] = (
    Rule(
        "content-simplification",
        lambda m, p: m.completion_rate < ProgressThresholds.AVERAGE_PROGRESS,
        _fixed(Intervention("content-simplification", "Provide additional foundational content", "immediate")),
    ),
    Rule(
        "gamification",
        lambda m, p: m.engagement_level < ProgressThresholds.LOW_ENGAGEMENT,
        _fixed(Intervention("gamification", "Increase interactive elements and rewards", "soon")),
    ),
)

DROPOUT_PENALTIES: Tuple[Penalty, ...] = (
    Penalty("low-completion", lambda m, p: m.completion_rate < 0.3, 0.4),
    Penalty("inconsistent-study", lambda m, p: m.consistency_score < 0.5, 0.3),
    Penalty("struggle-points", lambda m, p: len(p.struggle_points) > 2, 0.2),
    Penalty("low-engagement", lambda m, p: m.engagement_level < 0.4, 0.1),
)


def dropout_risk(metrics: ProgressMetrics, patterns: LearningPatterns) -> float:
    """Sum of the matching penalty weights, capped at 1."""

    risk = sum(penalty.weight for penalty in DROPOUT_PENALTIES if penalty.applies(metrics, patterns))
    return min(1.0, risk)
