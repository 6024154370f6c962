# ABOUTME: Static curriculum graphs and timing tables used by the recommender.
# ABOUTME: Topic sequences are ordered per domain and difficulty level.

from __future__ import annotations

from typing import Dict, Mapping, Tuple

from src.common.errors import InvalidInput

CURRICULA: Mapping[str, Mapping[str, Tuple[str, ...]]] = {
    "bitcoin": {
        "beginner": (
            "what-is-bitcoin",
            "digital-signatures",
            "transactions-basics",
            "wallets-and-keys",
            "bitcoin-network",
        ),
        "intermediate": (
            "mining-and-consensus",
            "script-language",
            "lightning-network",
            "privacy-concepts",
            "economic-incentives",
        ),
        "advanced": (
            "taproot-upgrade",
            "layer-2-solutions",
            "bitcoin-development",
            "security-analysis",
            "protocol-governance",
        ),
        "expert": (
            "core-development",
            "research-frontiers",
            "cryptographic-proofs",
            "consensus-improvements",
            "scaling-solutions",
        ),
    },
    "stacks": {
        "beginner": (
            "stacks-overview",
            "clarity-basics",
            "smart-contracts-intro",
            "wallet-integration",
            "simple-dapp",
        ),
        "intermediate": (
            "advanced-clarity",
            "nft-development",
            "defi-protocols",
            "testing-contracts",
            "deployment-strategies",
        ),
        "advanced": (
            "complex-defi",
            "cross-chain-interactions",
            "performance-optimization",
            "security-auditing",
            "governance-systems",
        ),
    },
}

DEFAULT_DOMAIN = "bitcoin"
FALLBACK_LEVEL = "beginner"

EXERCISE_TYPES: Mapping[str, Tuple[str, str, str]] = {
    "visual": ("diagram-creation", "flowchart-analysis", "visual-simulation"),
    "auditory": ("podcast-analysis", "discussion-questions", "verbal-explanation"),
    "kinesthetic": ("hands-on-coding", "interactive-demo", "practical-project"),
    "reading-writing": ("technical-writing", "code-review", "documentation-analysis"),
}
DEFAULT_EXERCISE_STYLE = "kinesthetic"

# Minutes.
TOPIC_BASE_TIMES: Dict[str, int] = {
    "bitcoin-basics": 120,
    "smart-contracts": 180,
    "defi-concepts": 150,
    "stacks-development": 240,
}
DEFAULT_TOPIC_TIME = 150

EXERCISE_TIMES: Dict[str, int] = {
    "hands-on-coding": 45,
    "diagram-creation": 30,
    "discussion-questions": 20,
    "technical-writing": 35,
    "interactive-demo": 25,
}
DEFAULT_EXERCISE_TIME = 30

MODULE_TIMES: Dict[str, int] = {
    "bitcoin-basics": 180,
    "blockchain-fundamentals": 240,
    "cryptography": 300,
    "smart-contracts": 360,
    "stacks-ecosystem": 240,
    "defi-concepts": 300,
}
DEFAULT_MODULE_TIME = 240


def curriculum_for(domain: str, difficulty: str) -> Tuple[str, ...]:
    """Topic sequence for ``difficulty`` in ``domain``; unknown levels fall back to beginner."""

    levels = CURRICULA.get(domain)
    if levels is None:
        raise InvalidInput(f"Unknown curriculum domain '{domain}'")
    return levels.get(difficulty, levels[FALLBACK_LEVEL])


def exercise_types(learning_style: str) -> Tuple[str, str, str]:
    return EXERCISE_TYPES.get(learning_style, EXERCISE_TYPES[DEFAULT_EXERCISE_STYLE])


def topic_time(topic: str) -> int:
    return TOPIC_BASE_TIMES.get(topic, DEFAULT_TOPIC_TIME)


def exercise_time(exercise_type: str) -> int:
    return EXERCISE_TIMES.get(exercise_type, DEFAULT_EXERCISE_TIME)


def module_time(topic: str) -> int:
    return MODULE_TIMES.get(topic, DEFAULT_MODULE_TIME)
