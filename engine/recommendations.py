"""
Recommendation Engine: Orders analyzer output for presentation.
"""

from datetime import datetime
from typing import List, Mapping, Optional, Union
import logging

from .analyzer import (
    AnalysisResult,
    FatigueAndPatternAnalyzer,
    Priority,
    Recommendation,
)
from .logs import UserTrainingProfile, WorkoutLog
from .progression import ExerciseProgression

logger = logging.getLogger(__name__)


PRIORITY_RANK = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


def rank_recommendations(candidates: List[Recommendation]) -> List[Recommendation]:
    """
    Order recommendations by priority (high, medium, low).

    The sort is stable: recommendations of equal priority keep the order in
    which the analyzer emitted them.
    """
    return sorted(candidates, key=lambda rec: PRIORITY_RANK[rec.priority])


def filter_by_priority(
    recommendations: List[Recommendation],
    minimum: Union[Priority, str] = Priority.LOW
) -> List[Recommendation]:
    """Keep recommendations at or above a priority."""
    cutoff = PRIORITY_RANK[Priority(getattr(minimum, 'value', minimum))]
    return [rec for rec in recommendations if PRIORITY_RANK[rec.priority] <= cutoff]


class RecommendationEngine:
    """Analyzes logs and returns ranked recommendations."""

    def __init__(self, analyzer: Optional[FatigueAndPatternAnalyzer] = None):
        self.analyzer = analyzer or FatigueAndPatternAnalyzer()

    def recommend(
        self,
        logs: List[WorkoutLog],
        profile: UserTrainingProfile,
        progressions: Optional[Mapping[str, ExerciseProgression]] = None,
        now: Optional[datetime] = None
    ) -> List[Recommendation]:
        """
        Run the analyzer and rank its recommendations.

        Returns:
            Recommendations, highest priority first
        """
        return self.analyze(logs, profile, progressions, now).recommendations

    def analyze(
        self,
        logs: List[WorkoutLog],
        profile: UserTrainingProfile,
        progressions: Optional[Mapping[str, ExerciseProgression]] = None,
        now: Optional[datetime] = None
    ) -> AnalysisResult:
        """Full analysis with the recommendation list already ranked."""
        result = self.analyzer.analyze(logs, profile, progressions, now)
        result.recommendations = rank_recommendations(result.recommendations)
        logger.debug(
            "Ranked %d recommendations (%d high priority)",
            len(result.recommendations),
            sum(1 for r in result.recommendations if r.priority == Priority.HIGH),
        )
        return result
