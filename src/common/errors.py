# ABOUTME: Declares the typed failures raised by the personalization engine.
# ABOUTME: Every public operation either returns a full result or raises one of these.

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for all engine failures."""


class InvalidInput(EngineError, ValueError):
    """Malformed or missing required input (client error, never retried)."""


class UpstreamFormatError(EngineError):
    """The content generator returned something that does not match the expected schema."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class UpstreamUnavailable(EngineError):
    """The content generator could not be reached or rejected the request."""


class ModelUnavailable(EngineError):
    """A model could not be loaded or constructed."""


class PersonalizationFailed(EngineError):
    """Wraps the first failure raised while building a personalized path."""

    def __init__(self, message: str, cause: BaseException):
        super().__init__(f"{message}: {cause}")
        self.cause = cause
