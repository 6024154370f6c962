# ABOUTME: Makes the shared common package importable across the engine components.
# ABOUTME: Re-exports the error taxonomy, config loader, and feature extractors for convenience.

from .config import EngineConfig, load_engine_config
from .errors import (
    EngineError,
    InvalidInput,
    ModelUnavailable,
    PersonalizationFailed,
    UpstreamFormatError,
    UpstreamUnavailable,
)
from .features import extract_difficulty_features, extract_performance_metrics, extract_style_features

__all__ = [
    "EngineConfig",
    "EngineError",
    "InvalidInput",
    "ModelUnavailable",
    "PersonalizationFailed",
    "UpstreamFormatError",
    "UpstreamUnavailable",
    "extract_difficulty_features",
    "extract_performance_metrics",
    "extract_style_features",
    "load_engine_config",
]
