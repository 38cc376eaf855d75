"""
Progression trend analysis.

Fits a least-squares line to the recorded weights of an exercise history
to tell whether the lift is improving, stable or declining.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np
from scipy import stats

from engine.progression import ExerciseProgression

MIN_TREND_POINTS = 3
STABLE_SLOPE_PCT = 0.5          # |weekly change| below this % of mean weight


@dataclass
class ExerciseTrend:
    """Linear trend of working weight over time."""
    slope_per_week: float       # kg per week
    intercept: float
    r_squared: float
    p_value: float
    n_points: int
    direction: str              # improving | stable | declining

    def to_dict(self) -> Dict[str, float]:
        return {
            'slope_per_week': self.slope_per_week,
            'intercept': self.intercept,
            'r_squared': self.r_squared,
            'p_value': self.p_value,
            'n_points': self.n_points,
            'direction': self.direction,
        }


def calculate_exercise_trend(progression: ExerciseProgression) -> Optional[ExerciseTrend]:
    """
    Fit weight against elapsed days for one exercise.

    Args:
        progression: Exercise progression record

    Returns:
        ExerciseTrend, or None with fewer than 3 weighted entries or when
        all entries share one date
    """
    points = [(h.date, h.weight) for h in progression.history if h.weight]
    if len(points) < MIN_TREND_POINTS:
        return None

    points.sort(key=lambda p: p[0])
    first = points[0][0]
    days = np.array([(d - first).total_seconds() / 86400 for d, _ in points])
    weights = np.array([w for _, w in points], dtype=float)

    if np.ptp(days) == 0:
        return None

    fit = stats.linregress(days, weights)
    slope_per_week = float(fit.slope * 7)

    # Flat weights leave r undefined
    r_squared = float(fit.rvalue ** 2) if np.isfinite(fit.rvalue) else 0.0

    threshold = abs(float(np.mean(weights))) * STABLE_SLOPE_PCT / 100
    if slope_per_week > threshold:
        direction = 'improving'
    elif slope_per_week < -threshold:
        direction = 'declining'
    else:
        direction = 'stable'

    return ExerciseTrend(
        slope_per_week=slope_per_week,
        intercept=float(fit.intercept),
        r_squared=r_squared,
        p_value=float(fit.pvalue) if np.isfinite(fit.pvalue) else 1.0,
        n_points=len(points),
        direction=direction,
    )


def calculate_trends(
    progressions: Mapping[str, ExerciseProgression]
) -> Dict[str, ExerciseTrend]:
    """Trends of every exercise with enough history."""
    trends = {}
    for exercise_id, progression in progressions.items():
        trend = calculate_exercise_trend(progression)
        if trend is not None:
            trends[exercise_id] = trend
    return trends
