# ABOUTME: Validates shared feature extraction and evaluation helpers.
# ABOUTME: Ensures style and difficulty vectors are deterministic and metrics match scikit-learn.

import numpy as np
import pytest
from sklearn.metrics import log_loss

from src.common.evaluation import evaluate_classification, evaluate_regression
from src.common.features import (
    DIFFICULTY_FEATURES,
    STYLE_FEATURES,
    build_difficulty_feature_frame,
    build_style_feature_frame,
    extract_difficulty_features,
    extract_performance_metrics,
    extract_style_features,
)
from src.common.schemas import LearningHistory, PerformanceMetrics


def _history(**overrides):
    data = {
        "completionRates": [0.5, 0.6],
        "timeSpent": [90, 40],
        "assessmentScores": [80, 85],
        "preferredContentTypes": ["video", "interactive"],
        "interactionPatterns": ["click"] * 4,
    }
    data.update(overrides)
    return LearningHistory.from_dict(data)


def test_style_features_follow_fixed_order():
    vector = extract_style_features(_history())

    assert vector.shape == (len(STYLE_FEATURES),)
    assert vector.dtype == np.float32
    expected = [0.2, 0.13, 0.2, 1.0, 0.0, 1.0, 1.0, 0.0, 0.0, 0.55]
    np.testing.assert_allclose(vector, expected, rtol=1e-6)


def test_style_features_flag_long_and_short_sessions_and_cap_totals():
    vector = extract_style_features(_history(timeSpent=[600, 600, 10], assessmentScores=[90, 95]))

    features = dict(zip(STYLE_FEATURES, vector))
    assert features["total_time"] == 1.0
    assert features["assessment_total"] == 1.0
    assert features["long_sessions"] == 1.0
    assert features["short_sessions"] == 1.0


def test_style_features_are_read_only():
    vector = extract_style_features(_history())
    with pytest.raises(ValueError):
        vector[0] = 5.0


def test_empty_history_extracts_neutral_vector():
    vector = extract_style_features(LearningHistory.from_dict(None))
    assert not vector.any()


def test_difficulty_features_are_deterministic():
    metrics = PerformanceMetrics(
        average_score=72.0,
        completion_rate=0.8,
        time_efficiency=0.6,
        struggling_topics=frozenset({"consensus"}),
        strong_topics=frozenset({"wallets", "keys"}),
    )
    first = extract_difficulty_features(metrics)
    extract_difficulty_features(PerformanceMetrics(average_score=10.0))
    second = extract_difficulty_features(metrics)

    assert first.shape == (len(DIFFICULTY_FEATURES),)
    np.testing.assert_array_equal(first, second)
    np.testing.assert_allclose(first, [1.1, 0.6666667, 0.0, -7.0, -0.6666667], rtol=1e-5)


def test_performance_metrics_derived_from_samples():
    metrics = extract_performance_metrics(_history())

    assert metrics.average_score == pytest.approx(82.5)
    assert metrics.completion_rate == pytest.approx(0.55)
    # 120/90 caps at 1, 120/40 caps at 1.
    assert metrics.time_efficiency == pytest.approx(1.0)


def test_performance_metrics_prefer_explicit_fields():
    metrics = extract_performance_metrics(
        _history(averageScore=40, completionRate=0.2, timeEfficiency=0.3, strugglingTopics=["mining"])
    )

    assert metrics.average_score == 40
    assert metrics.completion_rate == 0.2
    assert metrics.time_efficiency == 0.3
    assert metrics.struggling_topics == frozenset({"mining"})


def test_performance_metrics_missing_data_is_none():
    metrics = extract_performance_metrics(LearningHistory())
    assert metrics.average_score is None
    assert metrics.completion_rate is None
    assert metrics.time_efficiency is None


def test_feature_frames_have_named_columns():
    style_df = build_style_feature_frame([_history(), _history(timeSpent=[10])])
    difficulty_df = build_difficulty_feature_frame([PerformanceMetrics()])

    assert list(style_df.columns) == list(STYLE_FEATURES)
    assert len(style_df) == 2
    assert list(difficulty_df.columns) == list(DIFFICULTY_FEATURES)
    assert build_style_feature_frame([]).empty


def test_evaluate_regression_reports_mse_mae_and_accuracy():
    results = evaluate_regression([0.2, 0.8], [0.3, 0.6])

    assert results["loss"] == pytest.approx((0.01 + 0.04) / 2)
    assert results["mean_absolute_error"] == pytest.approx(0.15)
    assert results["accuracy"] == pytest.approx(0.85)


def test_evaluate_regression_empty_is_nan():
    assert np.isnan(evaluate_regression([], [])["loss"])


def test_evaluate_classification_matches_sklearn():
    probabilities = np.array([[0.7, 0.1, 0.1, 0.1], [0.2, 0.5, 0.2, 0.1], [0.25, 0.25, 0.25, 0.25]])
    labels = [0, 2, 3]

    results = evaluate_classification(labels, probabilities)

    assert results["loss"] == pytest.approx(log_loss(labels, probabilities, labels=[0, 1, 2, 3]))
    assert results["accuracy"] == pytest.approx(1 / 3)
