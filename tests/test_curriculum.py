# ABOUTME: Tests curriculum sequencing and the content recommender with a scripted generator.
# ABOUTME: Verifies fallback behavior, style-matched exercises, timing, and upstream format failures.

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from src.common.config import LLMConfig
from src.common.content_generator import LLMContentGenerator
from src.common.errors import EngineError, InvalidInput, UpstreamFormatError, UpstreamUnavailable
from src.curriculum.catalog import CURRICULA, exercise_time, exercise_types, module_time, topic_time
from src.curriculum.recommender import CurriculumRecommender, estimate_completion_time
from tests.fakes import ScriptedGenerator

BEGINNER = CURRICULA["bitcoin"]["beginner"]


@pytest.fixture
def recommender(generator, repository):
    return CurriculumRecommender(generator, repository)


def test_unknown_topic_returns_first_three_topics(recommender):
    sequence = recommender.get_sequential_topics("nonexistent-topic", "beginner")

    assert sequence.upcoming == BEGINNER[:3]
    assert sequence.current is None
    assert sequence.next is None
    assert sequence.prerequisites == ()
    assert sequence.to_dict() == list(BEGINNER[:3])


def test_topic_in_middle_of_sequence(recommender):
    sequence = recommender.get_sequential_topics("wallets-and-keys", "beginner")

    assert sequence.current == "wallets-and-keys"
    assert sequence.next == "bitcoin-network"
    assert sequence.upcoming == ("bitcoin-network",)
    assert sequence.prerequisites == ("digital-signatures", "transactions-basics")


def test_first_and_last_topics(recommender):
    first = recommender.get_sequential_topics("what-is-bitcoin", "beginner")
    last = recommender.get_sequential_topics("bitcoin-network", "beginner")

    assert first.prerequisites == ()
    assert first.upcoming == BEGINNER[1:4]
    assert last.next is None
    assert last.upcoming == ()


def test_unknown_difficulty_falls_back_to_beginner(recommender):
    sequence = recommender.get_sequential_topics("digital-signatures", "grandmaster")
    assert sequence.current == "digital-signatures"


def test_stacks_domain_has_no_expert_level(recommender):
    sequence = recommender.get_sequential_topics("clarity-basics", "expert", domain="stacks")
    assert sequence.next == "smart-contracts-intro"


def test_unknown_domain_is_rejected(generator, repository):
    with pytest.raises(InvalidInput):
        CurriculumRecommender(generator, repository, domain="ethereum")


def test_timing_tables_have_defaults():
    assert exercise_types("visual") == ("diagram-creation", "flowchart-analysis", "visual-simulation")
    assert exercise_types("mixed") == exercise_types("kinesthetic")
    assert topic_time("smart-contracts") == 180
    assert topic_time("unknown") == 150
    assert exercise_time("hands-on-coding") == 45
    assert exercise_time("code-review") == 30
    assert module_time("cryptography") == 300
    assert module_time("unknown") == 240


def test_estimated_time_scales_with_learning_speed():
    assert estimate_completion_time("smart-contracts", 1.5) == 120
    assert estimate_completion_time("bitcoin-basics", 0.7) == 172
    assert estimate_completion_time("unknown", 0) == 150


def test_recommend_next_content_composes_all_parts(recommender, generator):
    result = asyncio.run(recommender.recommend_next_content("s1", "smart-contracts", "beginner"))

    assert result.next_topics.upcoming == BEGINNER[:3]
    assert set(result.contextual_content) == {
        "readings",
        "exercises",
        "examples",
        "simulations",
        "assessmentQuestions",
    }
    assert [e.type for e in result.adaptive_exercises] == list(exercise_types("visual"))
    assert all(e.difficulty == "intermediate" for e in result.adaptive_exercises)
    assert result.adaptive_exercises[0].content["expectedOutcome"] == "A valid signature."
    assert result.estimated_time == 120

    temperatures = sorted(t for _, t in generator.calls)
    assert temperatures == [0.5, 0.7, 0.7, 0.7]


def test_fenced_responses_are_accepted(repository):
    recommender = CurriculumRecommender(ScriptedGenerator(fenced=True), repository)
    result = asyncio.run(recommender.recommend_next_content("s1", "what-is-bitcoin", "beginner"))
    assert result.to_dict()["nextTopics"]["current"] == "what-is-bitcoin"


def test_unparseable_content_raises_upstream_format_error(repository):
    recommender = CurriculumRecommender(ScriptedGenerator(overrides={"contextual": "Sure! Here you go."}), repository)

    with pytest.raises(UpstreamFormatError) as excinfo:
        asyncio.run(recommender.recommend_next_content("s1", "what-is-bitcoin", "beginner"))
    assert excinfo.value.raw == "Sure! Here you go."


def test_unknown_student_is_invalid_input(recommender):
    with pytest.raises(InvalidInput):
        asyncio.run(recommender.recommend_next_content("ghost", "what-is-bitcoin", "beginner"))


def test_generator_timeout_surfaces_as_upstream_unavailable(repository, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    recommender = CurriculumRecommender(LLMContentGenerator(LLMConfig()), repository)

    with patch("src.common.content_generator.openai.AsyncOpenAI") as mock_client:
        mock_client.return_value.chat.completions.create = AsyncMock(side_effect=TimeoutError("upstream timed out"))
        with pytest.raises(UpstreamUnavailable) as excinfo:
            asyncio.run(recommender.recommend_next_content("s1", "what-is-bitcoin", "beginner"))

    assert isinstance(excinfo.value, EngineError)
    assert isinstance(excinfo.value.__cause__, TimeoutError)
