# ABOUTME: Computes deterministic progress metrics, learning patterns, and projections from activity data.
# ABOUTME: Feeds the rule tables in rules.py to produce recommendations, risk factors, and interventions.

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from src.common.errors import InvalidInput
from src.common.features import EXPECTED_MINUTES_PER_MODULE
from src.common.schemas import (
    ActivityData,
    Breakthrough,
    LearningPatterns,
    PerformancePredictions,
    ProgressMetrics,
    ProgressReport,
)
from .rules import INTERVENTION_RULES, RECOMMENDATION_RULES, RISK_RULES, dropout_risk, fire

ActivityInput = Union[ActivityData, Mapping[str, Any], None]

REFERENCE_INTERACTIONS_PER_HOUR = 50
PEAK_PERFORMANCE = 0.8
STRUGGLE_SCORE = 0.6
STRONG_SCORE = 0.85
BREAKTHROUGH_IMPROVEMENT = 0.3
TREND_WINDOW = 5
MIN_TREND_SCORES = 3
DEFAULT_SCORE_VARIANCE = 100.0
Z_95 = 1.96


def score_trend(average_score: float) -> float:
    """Normalized trend around the 50-point midpoint."""

    return (average_score - 50) / 50


def time_efficiency(total_time: float, completed_modules: float) -> float:
    if completed_modules <= 0:
        return 0.0
    per_module = total_time / completed_modules
    if per_module <= 0:
        return 1.0
    return min(1.0, EXPECTED_MINUTES_PER_MODULE / per_module)


def consistency(daily_activity: Tuple[float, ...]) -> float:
    if not daily_activity:
        return 0.0
    active_days = sum(1 for day in daily_activity if day > 0)
    return active_days / len(daily_activity)


def _hours(minutes: float) -> float:
    # Zero or missing time counts as one minute so rates stay finite.
    return (minutes if minutes > 0 else 1.0) / 60


def engagement(activity: ActivityData) -> float:
    rate = activity.total_interactions / _hours(activity.total_time_spent)
    return max(0.0, min(1.0, rate / REFERENCE_INTERACTIONS_PER_HOUR))


def learning_velocity(activity: ActivityData) -> float:
    """Concepts mastered per hour of study."""

    return activity.concepts_mastered / _hours(activity.total_time_spent)


def difficulty_progression(scores: Tuple[float, ...]) -> str:
    if len(scores) < MIN_TREND_SCORES:
        return "insufficient-data"
    trend = score_trend(float(np.mean(scores[-TREND_WINDOW:])))
    if trend > 0.1:
        return "improving"
    if trend < -0.1:
        return "declining"
    return "stable"


def content_preferences(activity: ActivityData, limit: int = 3) -> Tuple[str, ...]:
    if not activity.content_interactions:
        return ()
    df = pd.DataFrame(
        [(i.content_type, i.engagement_score) for i in activity.content_interactions],
        columns=["content_type", "engagement_score"],
    )
    totals = df.groupby("content_type", sort=False)["engagement_score"].sum()
    ranked = totals.sort_values(ascending=False, kind="mergesort")
    return tuple(ranked.index[:limit])


def confidence_interval(scores: Tuple[float, ...], average_score: float) -> Tuple[float, float]:
    """95% interval for the average score, clamped to [0, 100]."""

    if len(scores) >= 2:
        variance = float(np.var(scores))
    else:
        variance = DEFAULT_SCORE_VARIANCE
    margin = Z_95 * math.sqrt(variance / max(1, len(scores)))
    return max(0.0, average_score - margin), min(100.0, average_score + margin)


def project_completion_date(completion_rate: float, velocity: float, as_of: date) -> Optional[date]:
    if completion_rate >= 1:
        return as_of
    if velocity <= 0:
        return None
    days_remaining = (1 - completion_rate) / (velocity * 0.1)
    if not math.isfinite(days_remaining):
        return None
    try:
        return as_of + timedelta(days=math.ceil(days_remaining))
    except OverflowError:
        return None


class ProgressAnalyzer:
    """Rule-based progress analytics over one course's activity snapshot."""

    def calculate_progress_metrics(self, activity: ActivityData) -> ProgressMetrics:
        scores = activity.assessment_scores
        struggles = frozenset(self.identify_struggle_points(activity))
        strong = frozenset(topic for topic, score in activity.topic_scores.items() if score >= STRONG_SCORE)
        return ProgressMetrics(
            completion_rate=activity.completed_modules / max(1.0, activity.total_modules),
            average_score=float(np.mean(scores)) if scores else 0.0,
            time_efficiency=time_efficiency(activity.total_time_spent, activity.completed_modules),
            consistency_score=consistency(activity.daily_activity),
            engagement_level=engagement(activity),
            difficulty_adaptation=difficulty_progression(scores),
            struggling_topics=struggles,
            strong_topics=strong,
        )

    @staticmethod
    def identify_struggle_points(activity: ActivityData) -> Tuple[str, ...]:
        return tuple(topic for topic, score in activity.topic_scores.items() if score < STRUGGLE_SCORE)

    def identify_learning_patterns(self, activity: ActivityData) -> LearningPatterns:
        peaks = [slot.time_slot for slot in activity.time_based_performance if slot.performance > PEAK_PERFORMANCE]
        return LearningPatterns(
            peak_performance_times=tuple(peaks[:3]),
            learning_velocity=learning_velocity(activity),
            content_preferences=content_preferences(activity),
            struggle_points=self.identify_struggle_points(activity),
            breakthrough_moments=tuple(
                Breakthrough(topic, delta)
                for topic, delta in activity.score_improvements.items()
                if delta > BREAKTHROUGH_IMPROVEMENT
            ),
        )

    def predict_future_performance(
        self,
        metrics: ProgressMetrics,
        patterns: LearningPatterns,
        scores: Tuple[float, ...],
        as_of: date,
    ) -> PerformancePredictions:
        trend = score_trend(metrics.average_score)
        return PerformancePredictions(
            expected_completion_date=project_completion_date(
                metrics.completion_rate, patterns.learning_velocity, as_of
            ),
            dropout_risk=dropout_risk(metrics, patterns),
            projected_final_score=float(np.clip(metrics.average_score + trend * 20, 0, 100)),
            confidence_interval=confidence_interval(scores, metrics.average_score),
        )

    def analyze_progress(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        activity: ActivityInput = None,
        as_of: Optional[date] = None,
    ) -> ProgressReport:
        if not isinstance(student_id, str) or not student_id.strip():
            raise InvalidInput("student_id is required for progress analysis")
        if not isinstance(activity, ActivityData):
            activity = ActivityData.from_dict(activity)
        as_of = as_of or date.today()

        metrics = self.calculate_progress_metrics(activity)
        patterns = self.identify_learning_patterns(activity)
        return ProgressReport(
            student_id=student_id,
            course_id=course_id,
            current_progress=metrics,
            learning_patterns=patterns,
            recommendations=fire(RECOMMENDATION_RULES, metrics, patterns),
            predictions=self.predict_future_performance(metrics, patterns, activity.assessment_scores, as_of),
            risk_factors=fire(RISK_RULES, metrics, patterns),
            interventions=fire(INTERVENTION_RULES, metrics, patterns),
        )
