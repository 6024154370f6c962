# ABOUTME: Turns learning histories and performance metrics into model feature vectors.
# ABOUTME: Provides single-record extractors and DataFrame builders for the training pipelines.

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from .schemas import LearningHistory, PerformanceMetrics

STYLE_FEATURES = (
    "completion_sample_count",
    "total_time",
    "interaction_count",
    "prefers_video",
    "prefers_text",
    "prefers_interactive",
    "assessment_total",
    "long_sessions",
    "short_sessions",
    "mean_completion_rate",
)

DIFFICULTY_FEATURES = (
    "average_score",
    "completion_rate",
    "time_efficiency",
    "struggling_topic_count",
    "strong_topic_count",
)

DIFFICULTY_SCALER_MEAN = np.array([0.5, 0.7, 0.6, 0.8, 0.4], dtype=np.float32)
DIFFICULTY_SCALER_STD = np.array([0.2, 0.15, 0.25, 0.1, 0.3], dtype=np.float32)

EXPECTED_MINUTES_PER_MODULE = 120.0
LONG_SESSION_MINUTES = 120.0
SHORT_SESSION_MINUTES = 30.0


def _frozen(values) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float32)
    vector.flags.writeable = False
    return vector


def extract_style_features(history: LearningHistory) -> np.ndarray:
    """Encode a learning history into the 10 learning-style features."""

    completion_rates = history.completion_rates
    time_spent = history.time_spent
    content_types = set(history.preferred_content_types)

    mean_completion = sum(completion_rates) / len(completion_rates) if completion_rates else 0.0

    return _frozen(
        [
            min(1.0, len(completion_rates) / 10),
            min(1.0, sum(time_spent) / 1000),
            min(1.0, len(history.interaction_patterns) / 20),
            1.0 if "video" in content_types else 0.0,
            1.0 if "text" in content_types else 0.0,
            1.0 if "interactive" in content_types else 0.0,
            min(1.0, sum(history.assessment_scores) / 100),
            1.0 if any(t > LONG_SESSION_MINUTES for t in time_spent) else 0.0,
            1.0 if any(t < SHORT_SESSION_MINUTES for t in time_spent) else 0.0,
            mean_completion,
        ]
    )


def extract_difficulty_features(metrics: PerformanceMetrics) -> np.ndarray:
    """Encode performance metrics into the 5 standardized difficulty features."""

    raw = np.array(
        [
            (metrics.average_score or 0.0) / 100,
            metrics.completion_rate or 0.0,
            metrics.time_efficiency or 0.0,
            len(metrics.struggling_topics) / 10,
            len(metrics.strong_topics) / 10,
        ],
        dtype=np.float32,
    )
    return _frozen((raw - DIFFICULTY_SCALER_MEAN) / DIFFICULTY_SCALER_STD)


def extract_performance_metrics(history: LearningHistory) -> PerformanceMetrics:
    """
    Summarize a history into PerformanceMetrics.

    Explicit summary fields on the history win; otherwise they are derived from
    the raw samples (mean score, mean completion rate, and time efficiency
    against the expected minutes per module). A field with no data is None.
    """

    if history.average_score is not None:
        average_score = history.average_score
    elif history.assessment_scores:
        average_score = sum(history.assessment_scores) / len(history.assessment_scores)
    else:
        average_score = None

    if history.completion_rate is not None:
        completion_rate = history.completion_rate
    elif history.completion_rates:
        completion_rate = sum(history.completion_rates) / len(history.completion_rates)
    else:
        completion_rate = None

    if history.time_efficiency is not None:
        time_efficiency = history.time_efficiency
    else:
        positive = [t for t in history.time_spent if t > 0]
        time_efficiency = (
            sum(min(1.0, EXPECTED_MINUTES_PER_MODULE / t) for t in positive) / len(positive) if positive else None
        )

    return PerformanceMetrics(
        average_score=average_score,
        completion_rate=completion_rate,
        time_efficiency=time_efficiency,
        struggling_topics=frozenset(history.struggling_topics),
        strong_topics=frozenset(history.strong_topics),
    )


def build_style_feature_frame(histories: Iterable[LearningHistory]) -> pd.DataFrame:
    """Stack style feature vectors into a DataFrame with one named column per feature."""

    rows = [extract_style_features(history) for history in histories]
    if not rows:
        return pd.DataFrame(columns=list(STYLE_FEATURES), dtype=np.float32)
    return pd.DataFrame(np.vstack(rows), columns=list(STYLE_FEATURES))


def build_difficulty_feature_frame(metrics: Iterable[PerformanceMetrics]) -> pd.DataFrame:
    """Stack difficulty feature vectors into a DataFrame with one named column per feature."""

    rows = [extract_difficulty_features(m) for m in metrics]
    if not rows:
        return pd.DataFrame(columns=list(DIFFICULTY_FEATURES), dtype=np.float32)
    return pd.DataFrame(np.vstack(rows), columns=list(DIFFICULTY_FEATURES))
