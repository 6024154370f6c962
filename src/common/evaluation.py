# ABOUTME: Defines evaluation helpers shared by both predictive models.
# ABOUTME: Computes regression error, classification accuracy, and cross-entropy summaries.

from typing import Mapping, Sequence

import numpy as np
from sklearn.metrics import accuracy_score, log_loss, mean_absolute_error, mean_squared_error


def evaluate_regression(y_true: Sequence[float], y_pred: Sequence[float]) -> Mapping[str, float]:
    """
    Summarize regression predictions in [0, 1].

    ``accuracy`` is the approximate accuracy ``1 - MAE`` reported to callers.
    """

    if len(y_true) == 0:
        return {"loss": np.nan, "mean_absolute_error": np.nan, "accuracy": np.nan}

    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.clip(np.asarray(y_pred, dtype=float), 0.0, 1.0)
    mae = float(mean_absolute_error(y_true, y_pred))
    return {
        "loss": float(mean_squared_error(y_true, y_pred)),
        "mean_absolute_error": mae,
        "accuracy": 1.0 - mae,
    }


def evaluate_classification(y_true: Sequence[int], probabilities: np.ndarray) -> Mapping[str, float]:
    """Cross-entropy and top-1 accuracy for class-index labels against per-class probabilities."""

    if len(y_true) == 0:
        return {"loss": np.nan, "accuracy": np.nan}

    probabilities = np.asarray(probabilities, dtype=float)
    labels = list(range(probabilities.shape[1]))
    return {
        "loss": float(log_loss(y_true, probabilities, labels=labels)),
        "accuracy": float(accuracy_score(y_true, probabilities.argmax(axis=1))),
    }
