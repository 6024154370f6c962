# ABOUTME: Defines canonical value objects shared by every engine component.
# ABOUTME: Centralizes history, activity, prediction, report, and path record definitions.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

LEARNING_STYLES: Tuple[str, ...] = ("visual", "auditory", "kinesthetic", "reading-writing")
DIFFICULTY_LEVELS: Tuple[str, ...] = ("beginner", "intermediate", "advanced", "expert")


def _lookup(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    result = _as_float(value, default=float("nan"))
    return None if math.isnan(result) else result


def _as_float_tuple(value: Any) -> Tuple[float, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    values = []
    for item in value:
        number = _as_optional_float(item)
        if number is not None:
            values.append(number)
    return tuple(values)


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple, set, frozenset)):
        return ()
    return tuple(str(item) for item in value if item is not None)


def _as_float_mapping(value: Any) -> Dict[str, float]:
    if not isinstance(value, Mapping):
        return {}
    result = {}
    for key, raw in value.items():
        number = _as_optional_float(raw)
        if number is not None:
            result[str(key)] = number
    return result


@dataclass(frozen=True)
class LearningHistory:
    """Per-student behavioral record consumed by feature extraction."""

    completion_rates: Tuple[float, ...] = ()
    time_spent: Tuple[float, ...] = ()
    interaction_patterns: Tuple[Any, ...] = ()
    preferred_content_types: Tuple[str, ...] = ()
    assessment_scores: Tuple[float, ...] = ()
    average_score: Optional[float] = None
    completion_rate: Optional[float] = None
    time_efficiency: Optional[float] = None
    struggling_topics: Tuple[str, ...] = ()
    strong_topics: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LearningHistory":
        data = data if isinstance(data, Mapping) else {}
        patterns = _lookup(data, "interactionPatterns", "interaction_patterns")
        return cls(
            completion_rates=_as_float_tuple(_lookup(data, "completionRates", "completion_rates")),
            time_spent=_as_float_tuple(_lookup(data, "timeSpent", "time_spent")),
            interaction_patterns=tuple(patterns) if isinstance(patterns, (list, tuple)) else (),
            preferred_content_types=_as_str_tuple(_lookup(data, "preferredContentTypes", "preferred_content_types")),
            assessment_scores=_as_float_tuple(_lookup(data, "assessmentScores", "assessment_scores")),
            average_score=_as_optional_float(_lookup(data, "averageScore", "average_score")),
            completion_rate=_as_optional_float(_lookup(data, "completionRate", "completion_rate")),
            time_efficiency=_as_optional_float(_lookup(data, "timeEfficiency", "time_efficiency")),
            struggling_topics=_as_str_tuple(_lookup(data, "strugglingTopics", "struggling_topics")),
            strong_topics=_as_str_tuple(_lookup(data, "strongTopics", "strong_topics")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "completionRates": list(self.completion_rates),
            "timeSpent": list(self.time_spent),
            "interactionPatterns": list(self.interaction_patterns),
            "preferredContentTypes": list(self.preferred_content_types),
            "assessmentScores": list(self.assessment_scores),
        }
        if self.average_score is not None:
            payload["averageScore"] = self.average_score
        if self.completion_rate is not None:
            payload["completionRate"] = self.completion_rate
        if self.time_efficiency is not None:
            payload["timeEfficiency"] = self.time_efficiency
        if self.struggling_topics:
            payload["strugglingTopics"] = list(self.struggling_topics)
        if self.strong_topics:
            payload["strongTopics"] = list(self.strong_topics)
        return payload


@dataclass(frozen=True)
class PerformanceMetrics:
    """Derived performance summary fed to the difficulty model.

    A numeric field is None when the source had no data for it; feature
    extraction reads None as 0, confidence estimation skips it.
    """

    average_score: Optional[float] = None
    completion_rate: Optional[float] = None
    time_efficiency: Optional[float] = None
    struggling_topics: FrozenSet[str] = frozenset()
    strong_topics: FrozenSet[str] = frozenset()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PerformanceMetrics":
        data = data if isinstance(data, Mapping) else {}
        return cls(
            average_score=_as_optional_float(_lookup(data, "averageScore", "average_score")),
            completion_rate=_as_optional_float(_lookup(data, "completionRate", "completion_rate")),
            time_efficiency=_as_optional_float(_lookup(data, "timeEfficiency", "time_efficiency")),
            struggling_topics=frozenset(_as_str_tuple(_lookup(data, "strugglingTopics", "struggling_topics"))),
            strong_topics=frozenset(_as_str_tuple(_lookup(data, "strongTopics", "strong_topics"))),
        )


@dataclass(frozen=True)
class StylePrediction:
    primary: str
    confidence: float
    all_scores: Mapping[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary,
            "confidence": self.confidence,
            "allScores": [{"style": style, "score": score} for style, score in self.all_scores.items()],
        }


@dataclass(frozen=True)
class DifficultyPrediction:
    score: float
    level: str
    confidence: float
    adaptation_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "difficultyScore": self.score,
            "level": self.level,
            "confidence": self.confidence,
            "adaptationRate": self.adaptation_rate,
        }


@dataclass(frozen=True)
class TimeSlotPerformance:
    time_slot: str
    performance: float


@dataclass(frozen=True)
class ContentInteraction:
    content_type: str
    engagement_score: float


@dataclass(frozen=True)
class ActivityData:
    """Snapshot of a student's activity in one course."""

    total_modules: float = 1.0
    completed_modules: float = 0.0
    total_time_spent: float = 0.0
    total_interactions: float = 0.0
    assessment_scores: Tuple[float, ...] = ()
    daily_activity: Tuple[float, ...] = ()
    concepts_mastered: float = 0.0
    time_based_performance: Tuple[TimeSlotPerformance, ...] = ()
    content_interactions: Tuple[ContentInteraction, ...] = ()
    topic_scores: Mapping[str, float] = field(default_factory=dict)
    score_improvements: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ActivityData":
        data = data if isinstance(data, Mapping) else {}

        slots = []
        raw_slots = _lookup(data, "timeBasedPerformance", "time_based_performance")
        for slot in raw_slots if isinstance(raw_slots, (list, tuple)) else ():
            if isinstance(slot, Mapping):
                name = _lookup(slot, "timeSlot", "time_slot")
                if name is not None:
                    slots.append(TimeSlotPerformance(str(name), _as_float(slot.get("performance"))))

        interactions = []
        raw_interactions = _lookup(data, "contentInteractions", "content_interactions")
        for item in raw_interactions if isinstance(raw_interactions, (list, tuple)) else ():
            if isinstance(item, Mapping):
                content_type = _lookup(item, "contentType", "content_type")
                if content_type is not None:
                    interactions.append(
                        ContentInteraction(
                            str(content_type),
                            _as_float(_lookup(item, "engagementScore", "engagement_score")),
                        )
                    )

        return cls(
            total_modules=_as_float(_lookup(data, "totalModules", "total_modules"), 1.0),
            completed_modules=_as_float(_lookup(data, "completedModules", "completed_modules")),
            total_time_spent=_as_float(_lookup(data, "totalTimeSpent", "total_time_spent")),
            total_interactions=_as_float(_lookup(data, "totalInteractions", "total_interactions")),
            assessment_scores=_as_float_tuple(_lookup(data, "assessmentScores", "assessment_scores")),
            daily_activity=_as_float_tuple(_lookup(data, "dailyActivity", "daily_activity")),
            concepts_mastered=_as_float(_lookup(data, "conceptsMastered", "concepts_mastered")),
            time_based_performance=tuple(slots),
            content_interactions=tuple(interactions),
            topic_scores=_as_float_mapping(_lookup(data, "topicScores", "topic_scores")),
            score_improvements=_as_float_mapping(_lookup(data, "scoreImprovements", "score_improvements")),
        )


@dataclass(frozen=True)
class ProgressMetrics:
    completion_rate: float
    average_score: float
    time_efficiency: float
    consistency_score: float
    engagement_level: float
    difficulty_adaptation: str
    struggling_topics: FrozenSet[str] = frozenset()
    strong_topics: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completionRate": self.completion_rate,
            "averageScore": self.average_score,
            "timeEfficiency": self.time_efficiency,
            "consistencyScore": self.consistency_score,
            "engagementLevel": self.engagement_level,
            "difficultyAdaptation": self.difficulty_adaptation,
            "strugglingTopics": sorted(self.struggling_topics),
            "strongTopics": sorted(self.strong_topics),
        }


@dataclass(frozen=True)
class Breakthrough:
    topic: str
    improvement: float


@dataclass(frozen=True)
class LearningPatterns:
    peak_performance_times: Tuple[str, ...]
    learning_velocity: float
    content_preferences: Tuple[str, ...]
    struggle_points: Tuple[str, ...]
    breakthrough_moments: Tuple[Breakthrough, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "peakPerformanceTimes": list(self.peak_performance_times),
            "learningVelocity": self.learning_velocity,
            "contentPreferences": list(self.content_preferences),
            "strugglePoints": list(self.struggle_points),
            "breakthroughMoments": [
                {"topic": b.topic, "improvement": b.improvement} for b in self.breakthrough_moments
            ],
        }


@dataclass(frozen=True)
class Recommendation:
    type: str
    message: str
    priority: str


@dataclass(frozen=True)
class RiskFactor:
    factor: str
    severity: str


@dataclass(frozen=True)
class Intervention:
    type: str
    description: str
    urgency: str


@dataclass(frozen=True)
class PerformancePredictions:
    expected_completion_date: Optional[date]
    dropout_risk: float
    projected_final_score: float
    confidence_interval: Tuple[float, float]

    def to_dict(self) -> Dict[str, Any]:
        lower, upper = self.confidence_interval
        return {
            "expectedCompletionDate": (
                self.expected_completion_date.isoformat() if self.expected_completion_date else None
            ),
            "riskOfDropout": self.dropout_risk,
            "projectedFinalScore": self.projected_final_score,
            "confidenceInterval": {"lower": lower, "upper": upper},
        }


@dataclass(frozen=True)
class ProgressReport:
    student_id: str
    course_id: Optional[str]
    current_progress: ProgressMetrics
    learning_patterns: LearningPatterns
    recommendations: Tuple[Recommendation, ...]
    predictions: PerformancePredictions
    risk_factors: Tuple[RiskFactor, ...]
    interventions: Tuple[Intervention, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "courseId": self.course_id,
            "currentProgress": self.current_progress.to_dict(),
            "learningPatterns": self.learning_patterns.to_dict(),
            "recommendations": [
                {"type": r.type, "message": r.message, "priority": r.priority} for r in self.recommendations
            ],
            "predictions": self.predictions.to_dict(),
            "riskFactors": [{"factor": r.factor, "severity": r.severity} for r in self.risk_factors],
            "interventions": [
                {"type": i.type, "description": i.description, "urgency": i.urgency} for i in self.interventions
            ],
        }


@dataclass(frozen=True)
class StudentProfile:
    """Read-only profile served by the student store."""

    learning_style: str = "kinesthetic"
    current_level: str = "beginner"
    learning_speed: float = 1.0
    preferred_topics: Tuple[str, ...] = ()
    weak_areas: Tuple[str, ...] = ()
    strong_areas: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "StudentProfile":
        data = data if isinstance(data, Mapping) else {}
        speed = _as_float(_lookup(data, "learningSpeed", "learning_speed"), 1.0)
        return cls(
            learning_style=str(_lookup(data, "learningStyle", "learning_style") or "kinesthetic"),
            current_level=str(_lookup(data, "currentLevel", "current_level") or "beginner"),
            learning_speed=speed if speed > 0 else 1.0,
            preferred_topics=_as_str_tuple(_lookup(data, "preferredTopics", "preferred_topics")),
            weak_areas=_as_str_tuple(_lookup(data, "weakAreas", "weak_areas")),
            strong_areas=_as_str_tuple(_lookup(data, "strongAreas", "strong_areas")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "learningStyle": self.learning_style,
            "currentLevel": self.current_level,
            "learningSpeed": self.learning_speed,
            "preferredTopics": list(self.preferred_topics),
            "weakAreas": list(self.weak_areas),
            "strongAreas": list(self.strong_areas),
        }


@dataclass(frozen=True)
class KnowledgeGaps:
    gaps: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    priority: str

    def to_dict(self) -> Dict[str, Any]:
        return {"gaps": list(self.gaps), "recommendations": list(self.recommendations), "priority": self.priority}


@dataclass(frozen=True)
class CustomModule:
    topic: str
    content: Mapping[str, Any]
    learning_style: str
    estimated_time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "content": dict(self.content),
            "learningStyle": self.learning_style,
            "estimatedTime": self.estimated_time,
        }


@dataclass(frozen=True)
class CompletionEstimate:
    total_hours: int
    estimated_weeks: int
    weekly_commitment: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalHours": self.total_hours,
            "estimatedWeeks": self.estimated_weeks,
            "dailyCommitment": self.weekly_commitment,
        }


@dataclass(frozen=True)
class AdaptiveSchedule:
    sessions_per_week: int
    session_duration: float
    break_frequency: int
    review_sessions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionsPerWeek": self.sessions_per_week,
            "sessionDuration": self.session_duration,
            "breakFrequency": self.break_frequency,
            "reviewSessions": self.review_sessions,
        }


@dataclass(frozen=True)
class PersonalizedPath:
    student_id: str
    learning_style: StylePrediction
    recommended_difficulty: DifficultyPrediction
    knowledge_gaps: KnowledgeGaps
    customized_modules: Tuple[CustomModule, ...]
    estimated_completion_time: CompletionEstimate
    adaptive_schedule: AdaptiveSchedule

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "learningStyle": self.learning_style.to_dict(),
            "recommendedDifficulty": self.recommended_difficulty.to_dict(),
            "knowledgeGaps": self.knowledge_gaps.to_dict(),
            "customizedModules": [m.to_dict() for m in self.customized_modules],
            "estimatedCompletionTime": self.estimated_completion_time.to_dict(),
            "adaptiveSchedule": self.adaptive_schedule.to_dict(),
        }


@dataclass(frozen=True)
class AdaptationDecision:
    current_level: Optional[str]
    change: str
    confidence: float
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "recommendedChange": self.change,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class TopicSequence:
    """Position of a topic inside a curriculum sequence.

    When the topic is not part of the sequence only ``upcoming`` is filled
    (with the first three topics) and the other fields stay empty.
    """

    current: Optional[str]
    next: Optional[str]
    upcoming: Tuple[str, ...]
    prerequisites: Tuple[str, ...] = ()

    def to_dict(self) -> Any:
        if self.current is None:
            return list(self.upcoming)
        return {
            "current": self.current,
            "next": self.next,
            "upcoming": list(self.upcoming),
            "prerequisites": list(self.prerequisites),
        }


@dataclass(frozen=True)
class AdaptiveExercise:
    type: str
    content: Mapping[str, Any]
    estimated_time: int
    difficulty: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "content": dict(self.content),
            "estimatedTime": self.estimated_time,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class ContentRecommendation:
    next_topics: TopicSequence
    contextual_content: Mapping[str, List[Any]]
    adaptive_exercises: Tuple[AdaptiveExercise, ...]
    estimated_time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextTopics": self.next_topics.to_dict(),
            "contextualContent": {key: list(value) for key, value in self.contextual_content.items()},
            "adaptiveExercises": [e.to_dict() for e in self.adaptive_exercises],
            "estimatedTime": self.estimated_time,
        }
