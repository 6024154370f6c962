# ABOUTME: Exposes the difficulty regressor and its training entrypoint.
# ABOUTME: Groups the network, the lazily initialized handle, and scoring helpers.

from .model import DifficultyModel, DifficultyNet, adaptation_rate, prediction_confidence, score_to_level
from .train import train_model

__all__ = [
    "DifficultyModel",
    "DifficultyNet",
    "adaptation_rate",
    "prediction_confidence",
    "score_to_level",
    "train_model",
]
