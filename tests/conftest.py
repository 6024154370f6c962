# ABOUTME: Shared fixtures for engine tests: a scripted content generator and temp-path model configs.
# ABOUTME: Keeps model artifacts under tmp_path so tests never touch the models/ directory.

import pytest

from src.common.config import ModelConfig
from src.common.repository import InMemoryStudentRepository
from src.common.schemas import ActivityData, StudentProfile
from tests.fakes import ScriptedGenerator


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def repository():
    return InMemoryStudentRepository(
        profiles={
            "s1": StudentProfile(learning_style="visual", current_level="intermediate", learning_speed=1.5),
        },
        activity={
            ("s1", "btc-101"): ActivityData(total_modules=10, completed_modules=10, concepts_mastered=3),
        },
    )


@pytest.fixture
def style_config(tmp_path):
    return ModelConfig(artifact_path=str(tmp_path / "learning_style.pt"))


@pytest.fixture
def difficulty_config(tmp_path):
    return ModelConfig(artifact_path=str(tmp_path / "difficulty.pt"), epochs=100, batch_size=16)
