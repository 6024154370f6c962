# ABOUTME: Exposes the personalization engine, the single entry point for the four engine operations.

from .engine import PersonalizationEngine

__all__ = ["PersonalizationEngine"]
