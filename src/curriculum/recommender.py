# ABOUTME: Recommends the next topics, supplementary content, and style-matched exercises for a student.
# ABOUTME: Combines the static curriculum graph with structured content from the language-model service.

from __future__ import annotations

import math
from typing import Optional

from src.common.content_generator import (
    ContentGenerator,
    ContextualContentResponse,
    ExerciseContentResponse,
    request_structured,
)
from src.common.errors import InvalidInput
from src.common.prompts import contextual_content_prompt, exercise_prompt
from src.common.repository import StudentRepository
from src.common.schemas import AdaptiveExercise, ContentRecommendation, StudentProfile, TopicSequence
from src.common.tasks import gather_or_cancel
from .catalog import CURRICULA, DEFAULT_DOMAIN, curriculum_for, exercise_time, exercise_types, topic_time

CONTEXTUAL_TEMPERATURE = 0.5
EXERCISE_TEMPERATURE = 0.7


def estimate_completion_time(topic: str, learning_speed: float) -> int:
    """Minutes to finish ``topic`` at the student's pace (speed > 1 is faster)."""

    speed = learning_speed if learning_speed > 0 else 1.0
    return math.ceil(topic_time(topic) / speed)


class CurriculumRecommender:
    def __init__(
        self,
        generator: ContentGenerator,
        repository: StudentRepository,
        domain: str = DEFAULT_DOMAIN,
    ):
        if domain not in CURRICULA:
            raise InvalidInput(f"Unknown curriculum domain '{domain}'")
        self.generator = generator
        self.repository = repository
        self.domain = domain

    def get_sequential_topics(
        self, current_topic: str, difficulty: str, domain: Optional[str] = None
    ) -> TopicSequence:
        sequence = curriculum_for(domain or self.domain, difficulty)
        if current_topic not in sequence:
            return TopicSequence(current=None, next=None, upcoming=sequence[:3])

        index = sequence.index(current_topic)
        return TopicSequence(
            current=current_topic,
            next=sequence[index + 1] if index + 1 < len(sequence) else None,
            upcoming=sequence[index + 1 : index + 4],
            prerequisites=sequence[max(0, index - 2) : index],
        )

    async def generate_contextual_content(
        self, topic: str, difficulty: str, profile: StudentProfile
    ) -> ContextualContentResponse:
        return await request_structured(
            self.generator,
            contextual_content_prompt(topic, difficulty, profile),
            CONTEXTUAL_TEMPERATURE,
            ContextualContentResponse,
        )

    async def _exercise(self, exercise_type: str, topic: str, profile: StudentProfile) -> AdaptiveExercise:
        content = await request_structured(
            self.generator,
            exercise_prompt(exercise_type, topic, profile),
            EXERCISE_TEMPERATURE,
            ExerciseContentResponse,
        )
        return AdaptiveExercise(
            type=exercise_type,
            content=content.model_dump(by_alias=True),
            estimated_time=exercise_time(exercise_type),
            difficulty=profile.current_level,
        )

    async def generate_adaptive_exercises(self, topic: str, profile: StudentProfile):
        """One exercise per exercise type matching the student's learning style, requested concurrently."""

        exercises = await gather_or_cancel(
            *(self._exercise(kind, topic, profile) for kind in exercise_types(profile.learning_style))
        )
        return tuple(exercises)

    async def recommend_next_content(
        self, student_id: str, current_topic: str, difficulty: str
    ) -> ContentRecommendation:
        if not isinstance(student_id, str) or not student_id.strip():
            raise InvalidInput("student_id is required for content recommendations")

        profile = self.repository.get_profile(student_id)
        contextual, exercises = await gather_or_cancel(
            self.generate_contextual_content(current_topic, difficulty, profile),
            self.generate_adaptive_exercises(current_topic, profile),
        )
        return ContentRecommendation(
            next_topics=self.get_sequential_topics(current_topic, difficulty),
            contextual_content=contextual.model_dump(by_alias=True),
            adaptive_exercises=exercises,
            estimated_time=estimate_completion_time(current_topic, profile.learning_speed),
        )
