# ABOUTME: Tests the difficulty regressor's level thresholds, confidence, and adaptation rate.
# ABOUTME: Also covers lazy construction, training, and evaluation on a tiny dataset.

import asyncio
from unittest.mock import patch

import pytest

from src.common.errors import InvalidInput
from src.common.schemas import DIFFICULTY_LEVELS, PerformanceMetrics
from src.difficulty.model import DifficultyModel, adaptation_rate, prediction_confidence, score_to_level

EPS = 1e-5


@pytest.mark.parametrize(
    "score,level",
    [
        (0.0, "beginner"),
        (0.25 - EPS, "beginner"),
        (0.25, "intermediate"),
        (0.5 - EPS, "intermediate"),
        (0.5, "advanced"),
        (0.75 - EPS, "advanced"),
        (0.75, "expert"),
        (1.0, "expert"),
    ],
)
def test_score_to_level_boundaries(score, level):
    assert score_to_level(score) == level


def test_confidence_floor_with_fewer_than_two_points():
    assert prediction_confidence(PerformanceMetrics()) == 0.3
    assert prediction_confidence(PerformanceMetrics(average_score=88.0)) == 0.3


def test_confidence_from_variance_is_clamped():
    agreeing = PerformanceMetrics(average_score=80.0, completion_rate=0.8, time_efficiency=0.8)
    spread = PerformanceMetrics(average_score=100.0, completion_rate=0.0)
    moderate = PerformanceMetrics(average_score=70.0, completion_rate=0.5)

    assert prediction_confidence(agreeing) == pytest.approx(0.95)
    assert prediction_confidence(spread) == pytest.approx(0.3)
    # Population variance of [70, 50] is 100.
    assert prediction_confidence(moderate) == pytest.approx(0.9)


def test_adaptation_rate_is_clamped():
    assert adaptation_rate(PerformanceMetrics(average_score=100.0, completion_rate=1.0)) == pytest.approx(0.1)
    assert adaptation_rate(PerformanceMetrics(average_score=10.0, completion_rate=0.1)) == pytest.approx(0.05)
    assert adaptation_rate(PerformanceMetrics()) == pytest.approx(0.05)


def test_predict_returns_valid_prediction(difficulty_config, capsys):
    model = DifficultyModel(difficulty_config)
    assert not model.is_ready

    prediction = model.predict(PerformanceMetrics(average_score=75.0, completion_rate=0.6, time_efficiency=0.9))

    assert model.is_ready
    assert 0.0 <= prediction.score <= 1.0
    assert prediction.level in DIFFICULTY_LEVELS
    assert prediction.level == score_to_level(prediction.score)
    assert 0.3 <= prediction.confidence <= 0.95
    assert 0.05 <= prediction.adaptation_rate <= 0.2
    assert "creating new model" in capsys.readouterr().out


def test_fresh_models_with_same_seed_agree(difficulty_config):
    metrics = PerformanceMetrics(average_score=60.0, completion_rate=0.4)
    first = DifficultyModel(difficulty_config).predict(metrics)
    second = DifficultyModel(difficulty_config).predict(metrics)
    assert first == second


def test_train_and_evaluate_on_small_dataset(difficulty_config):
    dataset = [
        (PerformanceMetrics(average_score=score, completion_rate=score / 100, time_efficiency=0.5), score)
        for score in (20.0, 35.0, 50.0, 65.0, 80.0, 95.0)
    ]
    model = DifficultyModel(difficulty_config)

    summary = model.train(dataset, epochs=2, batch_size=4)
    results = model.evaluate(dataset)

    assert summary.samples == 6
    assert summary.train_size + summary.val_size == 6
    assert summary.epochs == 2
    assert "train_loss" in summary.metrics
    assert set(results) == {"loss", "mean_absolute_error", "accuracy"}
    assert results["accuracy"] == pytest.approx(1 - results["mean_absolute_error"])


def test_train_rejects_empty_dataset(difficulty_config):
    with pytest.raises(InvalidInput):
        DifficultyModel(difficulty_config).train([])


def test_concurrent_inference_threads_share_one_module(difficulty_config):
    model = DifficultyModel(difficulty_config)
    real_build = model.build_module

    async def predict_many():
        metrics = PerformanceMetrics(average_score=70.0)
        return await asyncio.gather(*(asyncio.to_thread(model.predict, metrics) for _ in range(6)))

    with patch.object(model, "build_module", side_effect=real_build) as build:
        predictions = asyncio.run(predict_many())

    assert build.call_count == 1
    assert len({p.score for p in predictions}) == 1
    assert model.ensure_ready() is model.ensure_ready()
