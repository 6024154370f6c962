# ABOUTME: Provides the Typer CLI for training and evaluating the difficulty regressor.
# ABOUTME: Reads performance metrics with optimal-difficulty labels and saves weights plus metrics.

import json
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import typer

from src.common.config import load_engine_config
from src.common.schemas import PerformanceMetrics
from .model import DifficultyModel

app = typer.Typer(help="Train the difficulty regressor.")


def load_difficulty_dataset(data_path: Path) -> List[Tuple[PerformanceMetrics, float]]:
    """Read rows holding PerformanceMetrics fields plus ``optimalDifficulty`` on a 0-100 scale."""

    df = pd.read_json(data_path, lines=data_path.suffix == ".jsonl")
    if "optimalDifficulty" not in df.columns:
        raise typer.BadParameter(f"{data_path} has no 'optimalDifficulty' column")
    df = df.dropna(subset=["optimalDifficulty"])
    return [
        (PerformanceMetrics.from_dict(row), float(row["optimalDifficulty"]))
        for row in df.to_dict(orient="records")
    ]


@app.command()
def train(
    data: Path = typer.Option(..., "--data", help="Labelled metrics (.jsonl or .json)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    metrics_dir: Path = typer.Option(Path("reports/metrics"), "--metrics-dir", help="Where to write metrics JSON."),
) -> None:
    train_model(data, config, metrics_dir)


@app.command()
def evaluate(
    data: Path = typer.Option(..., "--data", help="Labelled metrics (.jsonl or .json)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
) -> None:
    """Report MSE, MAE and approximate accuracy of the saved model."""
    model = DifficultyModel(load_engine_config(config).difficulty_model)
    results = model.evaluate(load_difficulty_dataset(data))
    print(
        f"[difficulty] loss={results['loss']:.4f}, mae={results['mean_absolute_error']:.4f}, "
        f"accuracy={results['accuracy']:.4f}"
    )


def train_model(data_path: Path, config_path: Optional[Path] = None, metrics_dir: Path = Path("reports/metrics")):
    """Programmatic entrypoint mirrored by the Typer CLI."""

    cfg = load_engine_config(config_path).difficulty_model
    dataset = load_difficulty_dataset(data_path)
    print(f"[difficulty] Loaded {len(dataset)} labelled samples from {data_path}")

    model = DifficultyModel(cfg)
    summary = model.train(dataset)
    model.save()

    metrics_dir.mkdir(parents=True, exist_ok=True)
    metrics_path = metrics_dir / "difficulty_metrics.json"
    metrics_path.write_text(json.dumps({"samples": summary.samples, **summary.metrics}, indent=2))
    print(f"[difficulty] Metrics saved to {metrics_path}")
    return summary


if __name__ == "__main__":
    app()
