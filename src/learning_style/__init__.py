# ABOUTME: Exposes the learning-style classifier and its training entrypoint.
# ABOUTME: Groups the network, the lazily initialized handle, and label encoding.

from .model import LearningStyleModel, LearningStyleNet, encode_label
from .train import train_model

__all__ = [
    "LearningStyleModel",
    "LearningStyleNet",
    "encode_label",
    "train_model",
]
