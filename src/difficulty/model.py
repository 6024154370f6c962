# ABOUTME: Declares the difficulty regressor and its lazily initialized handle.
# ABOUTME: Scores performance metrics in [0, 1] and derives level, confidence, and adaptation rate.

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Tuple

import numpy as np
import pytorch_lightning as pl
import torch
from torch import nn
from torchmetrics import MeanAbsoluteError

from src.common.errors import InvalidInput
from src.common.evaluation import evaluate_regression
from src.common.features import DIFFICULTY_FEATURES, extract_difficulty_features
from src.common.model_handle import LazyModelHandle, TrainingSummary
from src.common.schemas import DifficultyPrediction, PerformanceMetrics

LEVEL_THRESHOLDS = ((0.25, "beginner"), (0.5, "intermediate"), (0.75, "advanced"))
TOP_LEVEL = "expert"

MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95
BASE_ADAPTATION_RATE = 0.1
MIN_ADAPTATION_RATE = 0.05
MAX_ADAPTATION_RATE = 0.2


class DifficultyNet(pl.LightningModule):
    """5 -> 32 (relu) -> dropout -> 16 (relu) -> 1 (sigmoid)."""

    def __init__(self, dropout: float = 0.2, learning_rate: float = 0.001) -> None:
        super().__init__()
        self.save_hyperparameters()
        self.layers = nn.Sequential(
            nn.Linear(len(DIFFICULTY_FEATURES), 32),
            nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(32, 16),
            nn.ReLU(),
            nn.Linear(16, 1),
            nn.Sigmoid(),
        )
        self.criterion = nn.MSELoss()
        self.val_mae = MeanAbsoluteError()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.layers(x)

    def training_step(self, batch, batch_idx):
        inputs, labels = batch
        loss = self.criterion(self.forward(inputs), labels)
        self.log("train_loss", loss, on_step=False, on_epoch=True)
        return loss

    def validation_step(self, batch, batch_idx):
        inputs, labels = batch
        preds = self.forward(inputs)
        loss = self.criterion(preds, labels)
        self.val_mae.update(preds, labels)
        self.log("val_loss", loss, on_step=False, on_epoch=True)
        return loss

    def on_validation_epoch_end(self):
        self.log("val_mae", self.val_mae.compute())
        self.val_mae.reset()

    def configure_optimizers(self):
        return torch.optim.Adam(self.parameters(), lr=self.hparams.learning_rate)


def score_to_level(score: float) -> str:
    for upper, level in LEVEL_THRESHOLDS:
        if score < upper:
            return level
    return TOP_LEVEL


def prediction_confidence(metrics: PerformanceMetrics) -> float:
    """
    Confidence from the spread of the available raw performance numbers.

    Uses averageScore, completionRate x 100 and timeEfficiency x 100 where
    present; fewer than two values gives the floor of 0.3.
    """

    points = [
        value
        for value in (
            metrics.average_score,
            None if metrics.completion_rate is None else metrics.completion_rate * 100,
            None if metrics.time_efficiency is None else metrics.time_efficiency * 100,
        )
        if value is not None
    ]
    if len(points) < 2:
        return MIN_CONFIDENCE

    variance = float(np.var(points))
    return float(np.clip(1 - variance / 1000, MIN_CONFIDENCE, MAX_CONFIDENCE))


def adaptation_rate(metrics: PerformanceMetrics) -> float:
    rate = BASE_ADAPTATION_RATE * (metrics.average_score or 0.0) / 100 * (metrics.completion_rate or 0.0)
    return float(np.clip(rate, MIN_ADAPTATION_RATE, MAX_ADAPTATION_RATE))


class DifficultyModel(LazyModelHandle):
    name = "difficulty"

    def build_module(self) -> DifficultyNet:
        return DifficultyNet(learning_rate=self.config.learning_rate)

    def predict(self, metrics: PerformanceMetrics) -> DifficultyPrediction:
        score = float(self.infer(extract_difficulty_features(metrics))[0, 0])
        return DifficultyPrediction(
            score=score,
            level=score_to_level(score),
            confidence=prediction_confidence(metrics),
            adaptation_rate=adaptation_rate(metrics),
        )

    @staticmethod
    def _encode(dataset: Sequence[Tuple[PerformanceMetrics, float]]):
        features = np.vstack([extract_difficulty_features(m) for m, _ in dataset])
        # Optimal difficulty labels arrive on a 0-100 scale.
        labels = np.clip(np.array([[float(label) / 100] for _, label in dataset], dtype=np.float32), 0.0, 1.0)
        return features, labels

    def train(
        self,
        dataset: Sequence[Tuple[PerformanceMetrics, float]],
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        validation_split: Optional[float] = None,
    ) -> TrainingSummary:
        if not dataset:
            raise InvalidInput("Cannot train the difficulty model on an empty dataset")
        features, labels = self._encode(dataset)
        return self.fit(features, labels, epochs=epochs, batch_size=batch_size, validation_split=validation_split)

    def evaluate(self, dataset: Sequence[Tuple[PerformanceMetrics, float]]) -> Mapping[str, float]:
        """Loss (MSE), mean absolute error, and approximate accuracy (1 - MAE)."""

        if not dataset:
            raise InvalidInput("Cannot evaluate the difficulty model on an empty dataset")
        features, labels = self._encode(dataset)
        return evaluate_regression(labels[:, 0], self.infer(features)[:, 0])
