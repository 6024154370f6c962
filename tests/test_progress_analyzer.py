# ABOUTME: Tests progress metrics, learning patterns, and projections computed from activity snapshots.
# ABOUTME: Covers formula values, dropout-risk capping, graceful degradation, and idempotence.

import math
from datetime import date, timedelta

import pytest

from src.analytics.progress import ProgressAnalyzer, difficulty_progression
from src.common.errors import InvalidInput
from src.common.schemas import ActivityData

AS_OF = date(2024, 3, 1)

ACTIVITY = {
    "totalModules": 10,
    "completedModules": 4,
    "totalTimeSpent": 600,
    "totalInteractions": 200,
    "assessmentScores": [60, 70, 80],
    "dailyActivity": [1, 0, 2, 3, 0],
    "conceptsMastered": 5,
    "timeBasedPerformance": [
        {"timeSlot": "morning", "performance": 0.9},
        {"timeSlot": "evening", "performance": 0.5},
    ],
    "contentInteractions": [
        {"contentType": "video", "engagementScore": 0.5},
        {"contentType": "text", "engagementScore": 0.9},
        {"contentType": "video", "engagementScore": 0.6},
    ],
    "topicScores": {"cryptography": 0.4, "wallets": 0.9, "mining": 0.7},
    "scoreImprovements": {"wallets": 0.4, "mining": 0.1},
}


@pytest.fixture
def report():
    return ProgressAnalyzer().analyze_progress("s1", "btc-101", ACTIVITY, as_of=AS_OF)


def test_progress_metrics_follow_formulas(report):
    metrics = report.current_progress

    assert metrics.completion_rate == pytest.approx(0.4)
    assert metrics.average_score == pytest.approx(70.0)
    assert metrics.time_efficiency == pytest.approx(0.8)
    assert metrics.consistency_score == pytest.approx(0.6)
    assert metrics.engagement_level == pytest.approx(0.4)
    assert metrics.difficulty_adaptation == "improving"
    assert metrics.struggling_topics == frozenset({"cryptography"})
    assert metrics.strong_topics == frozenset({"wallets"})


def test_learning_patterns(report):
    patterns = report.learning_patterns

    assert patterns.peak_performance_times == ("morning",)
    assert patterns.learning_velocity == pytest.approx(0.5)
    assert patterns.content_preferences == ("video", "text")
    assert patterns.struggle_points == ("cryptography",)
    assert [(b.topic, b.improvement) for b in patterns.breakthrough_moments] == [("wallets", 0.4)]


def test_predictions(report):
    predictions = report.predictions
    margin = 1.96 * math.sqrt((200 / 3) / 3)

    assert predictions.projected_final_score == pytest.approx(78.0)
    assert predictions.dropout_risk == 0.0
    assert predictions.expected_completion_date == AS_OF + timedelta(days=12)
    lower, upper = predictions.confidence_interval
    assert lower == pytest.approx(70 - margin)
    assert upper == pytest.approx(70 + margin)


def test_rule_outcomes_fire_in_table_order(report):
    assert [r.type for r in report.recommendations] == ["pacing", "timing"]
    assert report.recommendations[1].message == "Schedule challenging content during peak hours: morning"
    assert report.risk_factors == ()
    assert [i.type for i in report.interventions] == ["content-simplification", "gamification"]


def test_dropout_risk_caps_at_one():
    activity = {
        "totalModules": 10,
        "completedModules": 1,
        "totalTimeSpent": 600,
        "totalInteractions": 0,
        "dailyActivity": [0, 0, 1],
        "topicScores": {"a": 0.1, "b": 0.2, "c": 0.3, "d": 0.4},
    }
    report = ProgressAnalyzer().analyze_progress("s1", "c1", activity, as_of=AS_OF)

    assert report.predictions.dropout_risk == 1.0
    assert [r.factor for r in report.risk_factors] == [
        "low-completion",
        "inconsistent-study",
        "multiple-struggle-points",
    ]


def test_zero_velocity_has_no_completion_date():
    report = ProgressAnalyzer().analyze_progress("s1", "c1", {"totalModules": 5, "completedModules": 1}, as_of=AS_OF)
    assert report.predictions.expected_completion_date is None


def test_finished_course_completes_today():
    report = ProgressAnalyzer().analyze_progress(
        "s1", "c1", ActivityData(total_modules=3, completed_modules=3), as_of=AS_OF
    )
    assert report.predictions.expected_completion_date == AS_OF


def test_single_score_uses_default_variance():
    report = ProgressAnalyzer().analyze_progress("s1", None, {"assessmentScores": [50]}, as_of=AS_OF)
    lower, upper = report.predictions.confidence_interval
    assert lower == pytest.approx(50 - 19.6)
    assert upper == pytest.approx(50 + 19.6)


def test_malformed_optional_fields_degrade_to_neutral_values():
    activity = {
        "totalModules": "many",
        "completedModules": None,
        "assessmentScores": "oops",
        "dailyActivity": None,
        "topicScores": [1, 2],
        "contentInteractions": [{"engagementScore": 1.0}, "junk"],
        "timeBasedPerformance": 7,
    }
    report = ProgressAnalyzer().analyze_progress("s1", "c1", activity, as_of=AS_OF)

    assert report.current_progress.completion_rate == 0.0
    assert report.current_progress.average_score == 0.0
    assert report.current_progress.consistency_score == 0.0
    assert report.current_progress.difficulty_adaptation == "insufficient-data"
    assert report.learning_patterns.content_preferences == ()


def test_zero_total_modules_is_floored():
    report = ProgressAnalyzer().analyze_progress(
        "s1", "c1", {"totalModules": 0, "completedModules": 0}, as_of=AS_OF
    )
    assert report.current_progress.completion_rate == 0.0


@pytest.mark.parametrize("student_id", ["", "   ", None])
def test_missing_student_id_raises(student_id):
    with pytest.raises(InvalidInput):
        ProgressAnalyzer().analyze_progress(student_id, "c1", ACTIVITY, as_of=AS_OF)


def test_repeated_analysis_is_identical():
    analyzer = ProgressAnalyzer()
    first = analyzer.analyze_progress("s1", "btc-101", ACTIVITY, as_of=AS_OF)
    second = analyzer.analyze_progress("s1", "btc-101", dict(ACTIVITY), as_of=AS_OF)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_report_serializes_camel_case(report):
    payload = report.to_dict()

    assert payload["studentId"] == "s1"
    assert payload["predictions"]["riskOfDropout"] == 0.0
    assert payload["predictions"]["expectedCompletionDate"] == "2024-03-13"
    assert set(payload["predictions"]["confidenceInterval"]) == {"lower", "upper"}


@pytest.mark.parametrize(
    "scores,trend",
    [
        ((80, 90), "insufficient-data"),
        ((40, 40, 40), "declining"),
        ((50, 52, 48), "stable"),
        ((10, 10, 90, 90, 90, 90, 90), "improving"),
    ],
)
def test_difficulty_progression_uses_recent_scores(scores, trend):
    assert difficulty_progression(tuple(float(s) for s in scores)) == trend
