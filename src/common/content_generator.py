# ABOUTME: Wraps the language-model service that produces knowledge gaps, modules, and exercises.
# ABOUTME: Validates every JSON response against a pydantic schema before it reaches the engine.

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar, Union

import anthropic
import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import LLMConfig
from .errors import UpstreamFormatError, UpstreamUnavailable

ContentItem = Union[str, Dict[str, Any]]
SchemaT = TypeVar("SchemaT", bound=BaseModel)


class _ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class KnowledgeGapResponse(_ResponseModel):
    gaps: List[str]
    recommendations: List[str]
    priority: Literal["high", "medium", "low"]

    @field_validator("priority", mode="before")
    @classmethod
    def _lowercase_priority(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class ModuleContentResponse(_ResponseModel):
    content_outline: List[ContentItem] = Field(alias="contentOutline")
    exercises: List[ContentItem]
    interactive_elements: List[ContentItem] = Field(default_factory=list, alias="interactiveElements")
    assessment_methods: List[ContentItem] = Field(default_factory=list, alias="assessmentMethods")


class ContextualContentResponse(_ResponseModel):
    readings: List[ContentItem]
    exercises: List[ContentItem]
    examples: List[ContentItem]
    simulations: List[ContentItem]
    assessment_questions: List[ContentItem] = Field(alias="assessmentQuestions")


class ExerciseContentResponse(_ResponseModel):
    instructions: str
    expected_outcome: str = Field(alias="expectedOutcome")
    hints: List[str] = Field(default_factory=list)
    assessment_criteria: List[ContentItem] = Field(default_factory=list, alias="assessmentCriteria")


class ContentGenerator(ABC):
    """Narrow contract to the language-model service: prompt in, raw text out."""

    @abstractmethod
    async def complete(self, prompt: str, temperature: float) -> str:
        """Return the raw model response for ``prompt``."""


class LLMContentGenerator(ContentGenerator):
    """
    OpenAI or Anthropic backed generator.

    API keys come from ``OPENAI_API_KEY`` / ``ANTHROPIC_API_KEY`` unless passed
    explicitly. Clients are created per call so no connection state is shared
    between orchestration calls.
    """

    def __init__(self, config: Optional[LLMConfig] = None, api_key: Optional[str] = None):
        self.config = config or LLMConfig()
        if self.config.provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported LLM provider '{self.config.provider}'.")
        self.api_key = api_key

    async def complete(self, prompt: str, temperature: float) -> str:
        provider = self.config.provider
        try:
            if provider == "anthropic":
                return await self._complete_anthropic(prompt, temperature)
            return await self._complete_openai(prompt, temperature)
        except (openai.APIError, anthropic.APIError, asyncio.TimeoutError, TimeoutError, OSError) as exc:
            raise UpstreamUnavailable(f"{provider} request failed: {type(exc).__name__}: {exc}") from exc

    def _key(self, env_var: str) -> str:
        api_key = self.api_key or os.environ.get(env_var)
        if not api_key:
            raise UpstreamUnavailable(f"{env_var} not set")
        return api_key

    async def _complete_anthropic(self, prompt: str, temperature: float) -> str:
        client = anthropic.AsyncAnthropic(api_key=self._key("ANTHROPIC_API_KEY"))
        response = await client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        for block in response.content or []:
            text = getattr(block, "text", None)
            if isinstance(text, str):
                return text
        raise UpstreamFormatError("Anthropic response has no text block")

    async def _complete_openai(self, prompt: str, temperature: float) -> str:
        client = openai.AsyncOpenAI(api_key=self._key("OPENAI_API_KEY"))
        response = await client.chat.completions.create(
            model=self.config.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=self.config.max_tokens,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            raise UpstreamFormatError("OpenAI response has no choices")
        return response.choices[0].message.content


def strip_code_fence(content: str) -> str:
    """Extract the JSON body when a model wraps it in a markdown code block."""

    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        content = content.split("```")[1].split("```")[0]
    return content.strip()


async def request_structured(
    generator: ContentGenerator,
    prompt: str,
    temperature: float,
    schema: Type[SchemaT],
) -> SchemaT:
    """Ask the generator for ``schema``-shaped JSON; raise UpstreamFormatError if it is not."""

    raw = await generator.complete(prompt, temperature)
    if not isinstance(raw, str):
        raise UpstreamFormatError(f"Content generator returned no text for {schema.__name__}", raw=None)
    try:
        return schema.model_validate_json(strip_code_fence(raw))
    except ValidationError as exc:
        raise UpstreamFormatError(
            f"Content generator response is not a valid {schema.__name__} ({exc.error_count()} errors)",
            raw=raw,
        ) from exc
