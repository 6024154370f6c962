# ABOUTME: Declares the learning-style classifier and its lazily initialized handle.
# ABOUTME: Maps 10 behavioral features onto visual, auditory, kinesthetic, or reading-writing.

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pytorch_lightning as pl
import torch
from torch import nn
from torchmetrics.classification import MulticlassAccuracy

from src.common.errors import InvalidInput
from src.common.evaluation import evaluate_classification
from src.common.features import STYLE_FEATURES, extract_style_features
from src.common.model_handle import LazyModelHandle, TrainingSummary
from src.common.schemas import LEARNING_STYLES, LearningHistory, StylePrediction

StyleInput = Union[LearningHistory, Sequence[float], np.ndarray]

DEFAULT_STYLE = "kinesthetic"


class LearningStyleNet(pl.LightningModule):
    """10 -> 64 (relu) -> dropout -> 32 (relu) -> 4 (softmax)."""

    def __init__(self, dropout: float = 0.3, learning_rate: float = 0.001) -> None:
        super().__init__()
        self.save_hyperparameters()
        self.layers = nn.Sequential(
            nn.Linear(len(STYLE_FEATURES), 64),
            nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(64, 32),
            nn.ReLU(),
            nn.Linear(32, len(LEARNING_STYLES)),
        )
        # Cross-entropy over one-hot (probability) targets.
        self.criterion = nn.CrossEntropyLoss()
        self.val_accuracy = MulticlassAccuracy(num_classes=len(LEARNING_STYLES))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.softmax(self.layers(x), dim=-1)

    def training_step(self, batch, batch_idx):
        inputs, labels = batch
        loss = self.criterion(self.layers(inputs), labels)
        self.log("train_loss", loss, on_step=False, on_epoch=True)
        return loss

    def validation_step(self, batch, batch_idx):
        inputs, labels = batch
        logits = self.layers(inputs)
        loss = self.criterion(logits, labels)
        self.val_accuracy.update(logits.argmax(dim=-1), labels.argmax(dim=-1))
        self.log("val_loss", loss, on_step=False, on_epoch=True)
        return loss

    def on_validation_epoch_end(self):
        self.log("val_accuracy", self.val_accuracy.compute())
        self.val_accuracy.reset()

    def configure_optimizers(self):
        return torch.optim.Adam(self.parameters(), lr=self.hparams.learning_rate)


def encode_label(learning_style: str) -> np.ndarray:
    """
    One-hot encode a style label.

    Unrecognized labels are encoded as kinesthetic, matching how existing
    training data was labelled; the substitution is reported.
    """

    one_hot = np.zeros(len(LEARNING_STYLES), dtype=np.float32)
    if learning_style in LEARNING_STYLES:
        one_hot[LEARNING_STYLES.index(learning_style)] = 1.0
    else:
        print(f"[style] Unknown learning style label {learning_style!r}, encoding as {DEFAULT_STYLE}")
        one_hot[LEARNING_STYLES.index(DEFAULT_STYLE)] = 1.0
    return one_hot


def _as_vector(features: StyleInput) -> np.ndarray:
    if isinstance(features, LearningHistory):
        return extract_style_features(features)
    vector = np.asarray(features, dtype=np.float32)
    if vector.shape != (len(STYLE_FEATURES),):
        raise InvalidInput(f"Expected {len(STYLE_FEATURES)} style features, got shape {vector.shape}")
    return vector


class LearningStyleModel(LazyModelHandle):
    name = "style"

    def build_module(self) -> LearningStyleNet:
        return LearningStyleNet(learning_rate=self.config.learning_rate)

    def predict(self, features: StyleInput) -> StylePrediction:
        probabilities = self.infer(_as_vector(features))[0]
        total = float(probabilities.sum())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            probabilities = probabilities / total

        best = int(np.argmax(probabilities))
        return StylePrediction(
            primary=LEARNING_STYLES[best],
            confidence=float(probabilities[best]),
            all_scores={style: float(p) for style, p in zip(LEARNING_STYLES, probabilities)},
        )

    def train(
        self,
        dataset: Sequence[Tuple[StyleInput, str]],
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        validation_split: Optional[float] = None,
    ) -> TrainingSummary:
        if not dataset:
            raise InvalidInput("Cannot train the style model on an empty dataset")
        features = np.vstack([_as_vector(f) for f, _ in dataset])
        labels = np.vstack([encode_label(label) for _, label in dataset])
        return self.fit(features, labels, epochs=epochs, batch_size=batch_size, validation_split=validation_split)

    def evaluate(self, dataset: Sequence[Tuple[StyleInput, str]]):
        if not dataset:
            raise InvalidInput("Cannot evaluate the style model on an empty dataset")
        features = np.vstack([_as_vector(f) for f, _ in dataset])
        labels = [int(encode_label(label).argmax()) for _, label in dataset]
        return evaluate_classification(labels, self.infer(features))
