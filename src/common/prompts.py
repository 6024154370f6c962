# ABOUTME: Builds the prompts sent to the content generator.
# ABOUTME: Sanitizes student-supplied text so it cannot reshape the prompt structure.

from __future__ import annotations

import json
import re

from .schemas import LearningHistory, StudentProfile

SUBJECT_AREAS = (
    "Bitcoin fundamentals, blockchain technology, cryptography, consensus mechanisms, "
    "smart contracts, DeFi concepts, and Stacks ecosystem"
)


def sanitize_for_prompt(text: str, max_length: int = 100) -> str:
    """
    Sanitize user-provided text for safe inclusion in LLM prompts.

    Removes newlines and non-printable characters, collapses whitespace, and
    truncates to ``max_length``.
    """
    if not isinstance(text, str):
        text = str(text)

    text = text.replace("\n", " ").replace("\r", " ")
    text = "".join(char for char in text if char.isprintable() or char == " ")
    text = re.sub(r"\s+", " ", text)
    return text[:max_length].strip()


def knowledge_gap_prompt(history: LearningHistory) -> str:
    return f"""Analyze the following learning history for blockchain/Bitcoin education and identify knowledge gaps:
{json.dumps(history.to_dict(), sort_keys=True)}

Identify specific areas where the student needs improvement and suggest targeted learning modules.
Focus on: {SUBJECT_AREAS}.

Respond with JSON in this format:
{{"gaps": ["topic", ...], "recommendations": ["...", ...], "priority": "high|medium|low"}}
"""


def custom_module_prompt(gap: str, learning_style: str) -> str:
    safe_gap = sanitize_for_prompt(gap)
    return f"""Create a learning module for "{safe_gap}" targeting the {learning_style} learning style.
Focus on blockchain/Bitcoin education with hands-on Stacks examples.

Respond with JSON in this format:
{{"contentOutline": ["..."], "interactiveElements": ["..."], "exercises": ["..."], "assessmentMethods": ["..."]}}
"""


def contextual_content_prompt(topic: str, difficulty: str, profile: StudentProfile) -> str:
    safe_topic = sanitize_for_prompt(topic)
    safe_difficulty = sanitize_for_prompt(difficulty, max_length=20)
    return f"""Generate personalized learning recommendations for a {safe_difficulty} level student studying "{safe_topic}" in blockchain/Bitcoin education.

Student profile: {json.dumps(profile.to_dict(), sort_keys=True)}

Provide specific recommendations for:
1. Supplementary readings
2. Practical exercises
3. Real-world examples
4. Interactive simulations
5. Assessment questions

Focus on Stacks ecosystem integration and hands-on Bitcoin concepts.
Respond with JSON in this format:
{{"readings": [], "exercises": [], "examples": [], "simulations": [], "assessmentQuestions": []}}
"""


def exercise_prompt(exercise_type: str, topic: str, profile: StudentProfile) -> str:
    safe_topic = sanitize_for_prompt(topic)
    return f"""Create a {exercise_type} exercise for learning "{safe_topic}" in blockchain education.
Difficulty should match the student's level: {sanitize_for_prompt(profile.current_level, max_length=20)}
Learning style preference: {sanitize_for_prompt(profile.learning_style, max_length=20)}

Make it practical and hands-on with Stacks/Bitcoin examples.
Respond with JSON in this format:
{{"instructions": "...", "expectedOutcome": "...", "hints": ["..."], "assessmentCriteria": ["..."]}}
"""
