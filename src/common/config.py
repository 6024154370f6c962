# ABOUTME: Loads engine configuration from YAML with environment overrides.
# ABOUTME: Provides frozen config objects for both models, the LLM client, and the curriculum.

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml


@dataclass(frozen=True)
class ModelConfig:
    """Artifact location and training schedule for one predictive model."""

    artifact_path: str
    seed: int = 42
    epochs: int = 50
    batch_size: int = 32
    validation_split: float = 0.2
    learning_rate: float = 0.001


@dataclass(frozen=True)
class LLMConfig:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 1500


@dataclass(frozen=True)
class EngineConfig:
    style_model: ModelConfig = field(
        default_factory=lambda: ModelConfig(artifact_path="models/learning_style.pt")
    )
    difficulty_model: ModelConfig = field(
        default_factory=lambda: ModelConfig(
            artifact_path="models/difficulty.pt", epochs=100, batch_size=16
        )
    )
    llm: LLMConfig = field(default_factory=LLMConfig)
    curriculum_domain: str = "bitcoin"


def _section(cls, data: Optional[Mapping[str, Any]], default):
    if not data:
        return default
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    merged = {f.name: getattr(default, f.name) for f in fields(cls)}
    merged.update(data)
    return cls(**merged)


def load_engine_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Build an EngineConfig from a YAML file (all keys optional).

    ``LLM_PROVIDER`` and ``LLM_MODEL`` environment variables override the
    ``llm`` section.
    """

    cfg = {}
    if config_path is not None:
        with open(config_path) as f:
            cfg = yaml.safe_load(f) or {}

    defaults = EngineConfig()
    llm = _section(LLMConfig, cfg.get("llm"), defaults.llm)
    llm = LLMConfig(
        provider=os.environ.get("LLM_PROVIDER", llm.provider),
        model=os.environ.get("LLM_MODEL", llm.model),
        max_tokens=llm.max_tokens,
    )

    return EngineConfig(
        style_model=_section(ModelConfig, cfg.get("style_model"), defaults.style_model),
        difficulty_model=_section(ModelConfig, cfg.get("difficulty_model"), defaults.difficulty_model),
        llm=llm,
        curriculum_domain=cfg.get("curriculum_domain", defaults.curriculum_domain),
    )
