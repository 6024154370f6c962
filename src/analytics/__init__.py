# ABOUTME: Exposes the rule-based progress analyzer.
# ABOUTME: Groups metric computation, pattern detection, and the threshold rule tables.

from .progress import ProgressAnalyzer
from .rules import DROPOUT_PENALTIES, INTERVENTION_RULES, RECOMMENDATION_RULES, RISK_RULES, dropout_risk

__all__ = [
    "DROPOUT_PENALTIES",
    "INTERVENTION_RULES",
    "ProgressAnalyzer",
    "RECOMMENDATION_RULES",
    "RISK_RULES",
    "dropout_risk",
]
