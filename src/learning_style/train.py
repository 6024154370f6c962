# ABOUTME: Provides the Typer CLI for training and evaluating the learning-style classifier.
# ABOUTME: Reads labelled learning histories, fits the network, and saves weights plus metrics.

import json
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import typer

from src.common.config import load_engine_config
from src.common.schemas import LearningHistory
from .model import LearningStyleModel

app = typer.Typer(help="Train the learning-style classifier.")


def load_style_dataset(data_path: Path) -> List[Tuple[LearningHistory, str]]:
    """Read JSON lines rows holding history fields plus a ``learningStyle`` label."""

    df = pd.read_json(data_path, lines=data_path.suffix == ".jsonl")
    if "learningStyle" not in df.columns:
        raise typer.BadParameter(f"{data_path} has no 'learningStyle' column")
    return [(LearningHistory.from_dict(row), str(row["learningStyle"])) for row in df.to_dict(orient="records")]


@app.command()
def train(
    data: Path = typer.Option(..., "--data", help="Labelled histories (.jsonl or .json)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    metrics_dir: Path = typer.Option(Path("reports/metrics"), "--metrics-dir", help="Where to write metrics JSON."),
) -> None:
    train_model(data, config, metrics_dir)


@app.command()
def evaluate(
    data: Path = typer.Option(..., "--data", help="Labelled histories (.jsonl or .json)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
) -> None:
    """Report cross-entropy and accuracy of the saved model on a labelled set."""
    model = LearningStyleModel(load_engine_config(config).style_model)
    results = model.evaluate(load_style_dataset(data))
    print(f"[style] loss={results['loss']:.4f}, accuracy={results['accuracy']:.4f}")


def train_model(data_path: Path, config_path: Optional[Path] = None, metrics_dir: Path = Path("reports/metrics")):
    """Programmatic entrypoint mirrored by the Typer CLI."""

    cfg = load_engine_config(config_path).style_model
    dataset = load_style_dataset(data_path)
    print(f"[style] Loaded {len(dataset)} labelled histories from {data_path}")

    model = LearningStyleModel(cfg)
    summary = model.train(dataset)
    model.save()

    metrics_dir.mkdir(parents=True, exist_ok=True)
    metrics_path = metrics_dir / "learning_style_metrics.json"
    metrics_path.write_text(json.dumps({"samples": summary.samples, **summary.metrics}, indent=2))
    print(f"[style] Metrics saved to {metrics_path}")
    return summary


if __name__ == "__main__":
    app()
