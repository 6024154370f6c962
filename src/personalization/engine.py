# ABOUTME: Orchestrates the models, progress analytics, and content generation into personalized paths.
# ABOUTME: Single entry point for the four engine operations; owns injected model handles and services.

from __future__ import annotations

import asyncio
import math
from datetime import date
from typing import Any, Mapping, Optional, Union

from src.analytics.progress import ActivityInput, ProgressAnalyzer
from src.common.config import EngineConfig
from src.common.content_generator import (
    ContentGenerator,
    KnowledgeGapResponse,
    LLMContentGenerator,
    ModuleContentResponse,
    request_structured,
)
from src.common.errors import InvalidInput, PersonalizationFailed
from src.common.features import extract_performance_metrics
from src.common.prompts import custom_module_prompt, knowledge_gap_prompt
from src.common.repository import InMemoryStudentRepository, StudentRepository
from src.common.schemas import (
    AdaptationDecision,
    AdaptiveSchedule,
    CompletionEstimate,
    ContentRecommendation,
    CustomModule,
    DifficultyPrediction,
    KnowledgeGaps,
    LearningHistory,
    PersonalizedPath,
    ProgressReport,
    StylePrediction,
)
from src.common.tasks import gather_or_cancel
from src.curriculum.catalog import module_time
from src.curriculum.recommender import CurriculumRecommender
from src.difficulty.model import DifficultyModel
from src.learning_style.model import LearningStyleModel

HistoryInput = Union[LearningHistory, Mapping[str, Any], None]

GAP_TEMPERATURE = 0.3
MODULE_TEMPERATURE = 0.7

LEVEL_HOURS = {"beginner": 40, "intermediate": 60, "advanced": 80, "expert": 100}
DEFAULT_LEVEL_HOURS = 60

MAX_SESSIONS_PER_WEEK = 7
MAX_SESSION_MINUTES = 120
KINESTHETIC_BREAK_MINUTES = 15
DEFAULT_BREAK_MINUTES = 30
REVIEW_SESSIONS = 2

DEFAULT_ADAPTATION_CONFIDENCE = 0.8
LOW_ACCURACY = 0.6
HIGH_ACCURACY = 0.9
FAST_COMPLETION_RATIO = 0.7


def _require_student_id(student_id: Any) -> str:
    if not isinstance(student_id, str) or not student_id.strip():
        raise InvalidInput("student_id is required")
    return student_id


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value!r}")
    return float(value)


def available_hours(preferences: Optional[Mapping[str, Any]]) -> float:
    """Declared study hours per week; must be a positive number."""

    if not isinstance(preferences, Mapping):
        raise InvalidInput("preferences must be an object with 'availableTime'")
    hours = _number(preferences.get("availableTime"), "preferences.availableTime")
    if hours <= 0:
        raise InvalidInput(f"preferences.availableTime must be positive, got {hours}")
    return hours


def estimate_completion(difficulty: DifficultyPrediction, hours_per_week: float) -> CompletionEstimate:
    total = LEVEL_HOURS.get(difficulty.level, DEFAULT_LEVEL_HOURS)
    return CompletionEstimate(
        total_hours=total,
        estimated_weeks=math.ceil(total / hours_per_week),
        weekly_commitment=hours_per_week,
    )


def build_schedule(hours_per_week: float, style: StylePrediction) -> AdaptiveSchedule:
    return AdaptiveSchedule(
        sessions_per_week=min(MAX_SESSIONS_PER_WEEK, math.ceil(hours_per_week / 2)),
        session_duration=min(MAX_SESSION_MINUTES, hours_per_week * 60),
        break_frequency=KINESTHETIC_BREAK_MINUTES if style.primary == "kinesthetic" else DEFAULT_BREAK_MINUTES,
        review_sessions=REVIEW_SESSIONS,
    )


class PersonalizationEngine:
    """
    Entry point for personalized paths, content recommendations, progress
    reports, and difficulty adaptation.

    Every collaborator is injectable; :meth:`from_config` wires the defaults.
    Model handles are shared across calls and initialize on first use.
    """

    def __init__(
        self,
        style_model: LearningStyleModel,
        difficulty_model: DifficultyModel,
        generator: ContentGenerator,
        repository: StudentRepository,
        analyzer: Optional[ProgressAnalyzer] = None,
        recommender: Optional[CurriculumRecommender] = None,
    ):
        self.style_model = style_model
        self.difficulty_model = difficulty_model
        self.generator = generator
        self.repository = repository
        self.analyzer = analyzer or ProgressAnalyzer()
        self.recommender = recommender or CurriculumRecommender(generator, repository)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        generator: Optional[ContentGenerator] = None,
        repository: Optional[StudentRepository] = None,
    ) -> "PersonalizationEngine":
        generator = generator or LLMContentGenerator(config.llm)
        repository = repository or InMemoryStudentRepository()
        return cls(
            style_model=LearningStyleModel(config.style_model),
            difficulty_model=DifficultyModel(config.difficulty_model),
            generator=generator,
            repository=repository,
            recommender=CurriculumRecommender(generator, repository, domain=config.curriculum_domain),
        )

    async def classify_learning_style(self, history: LearningHistory) -> StylePrediction:
        return await asyncio.to_thread(self.style_model.predict, history)

    async def predict_optimal_difficulty(self, history: LearningHistory) -> DifficultyPrediction:
        metrics = extract_performance_metrics(history)
        return await asyncio.to_thread(self.difficulty_model.predict, metrics)

    async def identify_knowledge_gaps(self, history: LearningHistory) -> KnowledgeGaps:
        response = await request_structured(
            self.generator, knowledge_gap_prompt(history), GAP_TEMPERATURE, KnowledgeGapResponse
        )
        return KnowledgeGaps(
            gaps=tuple(response.gaps),
            recommendations=tuple(response.recommendations),
            priority=response.priority,
        )

    async def _custom_module(self, gap: str, learning_style: str) -> CustomModule:
        content = await request_structured(
            self.generator, custom_module_prompt(gap, learning_style), MODULE_TEMPERATURE, ModuleContentResponse
        )
        return CustomModule(
            topic=gap,
            content=content.model_dump(by_alias=True),
            learning_style=learning_style,
            estimated_time=module_time(gap),
        )

    async def generate_custom_modules(self, style: StylePrediction, gaps: KnowledgeGaps):
        modules = await gather_or_cancel(*(self._custom_module(gap, style.primary) for gap in gaps.gaps))
        return tuple(modules)

    async def generate_personalized_path(
        self,
        student_id: str,
        history: HistoryInput,
        preferences: Optional[Mapping[str, Any]],
    ) -> PersonalizedPath:
        _require_student_id(student_id)
        try:
            hours_per_week = available_hours(preferences)
            if not isinstance(history, LearningHistory):
                history = LearningHistory.from_dict(history)

            style, difficulty = await gather_or_cancel(
                self.classify_learning_style(history),
                self.predict_optimal_difficulty(history),
            )
            gaps = await self.identify_knowledge_gaps(history)
            modules = await self.generate_custom_modules(style, gaps)
        except Exception as exc:
            raise PersonalizationFailed("Personalization failed", exc) from exc

        print(
            f"[engine] Path for {student_id}: style={style.primary}, level={difficulty.level}, "
            f"{len(modules)} modules"
        )
        return PersonalizedPath(
            student_id=student_id,
            learning_style=style,
            recommended_difficulty=difficulty,
            knowledge_gaps=gaps,
            customized_modules=modules,
            estimated_completion_time=estimate_completion(difficulty, hours_per_week),
            adaptive_schedule=build_schedule(hours_per_week, style),
        )

    async def recommend_next_content(
        self, student_id: str, current_topic: str, difficulty: str
    ) -> ContentRecommendation:
        return await self.recommender.recommend_next_content(student_id, current_topic, difficulty)

    def analyze_progress(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        activity: ActivityInput = None,
        as_of: Optional[date] = None,
    ) -> ProgressReport:
        """Analyze the given activity, or the stored activity for ``course_id`` when none is passed."""

        _require_student_id(student_id)
        if activity is None and course_id is not None:
            activity = self.repository.get_activity(student_id, course_id)
        return self.analyzer.analyze_progress(student_id, course_id, activity, as_of=as_of)

    def adapt_difficulty(self, student_id: str, current_performance: Mapping[str, Any]) -> AdaptationDecision:
        """
        Decide whether to raise, lower, or hold the student's difficulty.

        ``completionTime`` is a ratio of actual to expected time; lower means faster.
        """

        _require_student_id(student_id)
        if not isinstance(current_performance, Mapping):
            raise InvalidInput("current_performance must be an object with 'accuracy'")
        accuracy = _number(current_performance.get("accuracy"), "accuracy")
        completion_time = current_performance.get("completionTime")
        completion_ratio = None if completion_time is None else _number(completion_time, "completionTime")

        change, reasoning = "maintain", ""
        if accuracy < LOW_ACCURACY:
            change, reasoning = "decrease", "Low accuracy suggests content is too difficult"
        elif accuracy > HIGH_ACCURACY and completion_ratio is not None and completion_ratio < FAST_COMPLETION_RATIO:
            change, reasoning = "increase", "High accuracy and fast completion suggests ready for harder content"

        level = current_performance.get("difficulty")
        return AdaptationDecision(
            current_level=None if level is None else str(level),
            change=change,
            confidence=DEFAULT_ADAPTATION_CONFIDENCE,
            reasoning=reasoning,
        )
