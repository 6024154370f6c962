# ABOUTME: Exposes the curriculum recommender and its static topic graph.

from .catalog import CURRICULA, curriculum_for
from .recommender import CurriculumRecommender

__all__ = ["CURRICULA", "CurriculumRecommender", "curriculum_for"]
