# ABOUTME: Shared lifecycle for the lazily loaded predictive models.
# ABOUTME: Loads a persisted artifact or builds a seeded network once, then trains with Lightning.

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import pytorch_lightning as pl
import torch
from sklearn.model_selection import train_test_split
from torch.utils.data import DataLoader, TensorDataset

from .config import ModelConfig
from .errors import InvalidInput, ModelUnavailable


@dataclass(frozen=True)
class TrainingSummary:
    """Outcome of one fit call."""

    samples: int
    train_size: int
    val_size: int
    epochs: int
    metrics: Dict[str, float]


class EpochPrinter(pl.Callback):
    """Prints the logged losses every ``every`` epochs."""

    def __init__(self, prefix: str, every: int = 10):
        self.prefix = prefix
        self.every = every

    def on_train_epoch_end(self, trainer: pl.Trainer, pl_module: pl.LightningModule) -> None:
        epoch = trainer.current_epoch
        if epoch % self.every != 0:
            return
        parts = [f"{name}={float(value):.4f}" for name, value in sorted(trainer.callback_metrics.items())]
        print(f"[{self.prefix}] Epoch {epoch}: {', '.join(parts)}")


class LazyModelHandle:
    """
    Initialization-guarded handle around one LightningModule.

    The first call to :meth:`ensure_ready` loads the artifact at
    ``config.artifact_path`` or, when none exists, constructs a fresh network
    seeded with ``config.seed``. Concurrent first use constructs exactly once.
    """

    name = "model"

    def __init__(self, config: ModelConfig):
        self.config = config
        self._module: Optional[pl.LightningModule] = None
        self._lock = threading.Lock()

    def build_module(self) -> pl.LightningModule:
        raise NotImplementedError

    @property
    def is_ready(self) -> bool:
        return self._module is not None

    def ensure_ready(self) -> pl.LightningModule:
        if self._module is None:
            with self._lock:
                if self._module is None:
                    self._module = self._load_or_construct()
        return self._module

    def _construct(self) -> pl.LightningModule:
        try:
            with torch.random.fork_rng(devices=[]):
                torch.manual_seed(self.config.seed)
                return self.build_module()
        except Exception as exc:
            raise ModelUnavailable(f"Could not construct {self.name} model: {exc}") from exc

    def _load_or_construct(self) -> pl.LightningModule:
        module = self._construct()
        path = Path(self.config.artifact_path)
        if path.exists():
            try:
                checkpoint = torch.load(path, map_location="cpu", weights_only=True)
                module.load_state_dict(checkpoint["state_dict"])
            except Exception as exc:
                raise ModelUnavailable(f"Could not load {self.name} model from {path}: {exc}") from exc
            print(f"[{self.name}] Loaded model from {path}")
        else:
            print(f"[{self.name}] Pre-trained model not found at {path}, creating new model")
        module.eval()
        return module

    def save(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Persist the current weights; returns False when no model exists yet."""

        if self._module is None:
            return False
        target = Path(path or self.config.artifact_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        torch.save({"model": self.name, "state_dict": self._module.state_dict()}, target)
        print(f"[{self.name}] Model saved to {target}")
        return True

    def infer(self, features: np.ndarray) -> np.ndarray:
        """Run the network in eval mode on a (batch, features) array."""

        module = self.ensure_ready()
        inputs = torch.from_numpy(np.array(np.atleast_2d(features), dtype=np.float32))
        with torch.no_grad():
            outputs = module(inputs)
        return outputs.cpu().numpy().astype(np.float64)

    def fit(
        self,
        features: np.ndarray,
        targets: np.ndarray,
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        validation_split: Optional[float] = None,
    ) -> TrainingSummary:
        if len(features) == 0:
            raise InvalidInput(f"Cannot train the {self.name} model on an empty dataset")

        epochs = epochs if epochs is not None else self.config.epochs
        batch_size = batch_size if batch_size is not None else self.config.batch_size
        validation_split = validation_split if validation_split is not None else self.config.validation_split

        features = np.asarray(features, dtype=np.float32)
        targets = np.asarray(targets, dtype=np.float32)
        if validation_split > 0 and len(features) >= 5:
            x_train, x_val, y_train, y_val = train_test_split(
                features, targets, test_size=validation_split, random_state=self.config.seed
            )
        else:
            x_train, y_train = features, targets
            x_val, y_val = features[:0], targets[:0]

        module = self.ensure_ready()
        pl.seed_everything(self.config.seed)

        generator = torch.Generator().manual_seed(self.config.seed)
        train_loader = DataLoader(
            TensorDataset(torch.from_numpy(x_train), torch.from_numpy(y_train)),
            batch_size=batch_size,
            shuffle=True,
            generator=generator,
        )
        val_loader = None
        if len(x_val):
            val_loader = DataLoader(
                TensorDataset(torch.from_numpy(x_val), torch.from_numpy(y_val)),
                batch_size=batch_size,
                shuffle=False,
            )

        print(f"[{self.name}] Training on {len(x_train)} samples ({len(x_val)} held out) for {epochs} epochs")
        trainer = pl.Trainer(
            max_epochs=epochs,
            accelerator="cpu",
            devices=1,
            logger=False,
            enable_checkpointing=False,
            enable_progress_bar=False,
            enable_model_summary=False,
            log_every_n_steps=1,
            callbacks=[EpochPrinter(self.name)],
        )
        trainer.fit(module, train_loader, val_loader)
        module.eval()

        metrics = {k: float(v) for k, v in trainer.callback_metrics.items()}
        return TrainingSummary(
            samples=len(features),
            train_size=len(x_train),
            val_size=len(x_val),
            epochs=epochs,
            metrics=metrics,
        )
