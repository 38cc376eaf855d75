"""Analysis, reporting and visualization utilities."""

from .visualizations import (
    plot_program_multipliers,
    plot_volume_load,
    plot_consistency,
    plot_recommendation_mix,
    plot_simulation_summary,
)
from .reports import (
    generate_program_report,
    generate_recommendation_report,
    generate_goal_report,
    generate_insight_report,
    generate_simulation_report,
)
from .trends import ExerciseTrend, calculate_exercise_trend, calculate_trends

__all__ = [
    'plot_program_multipliers',
    'plot_volume_load',
    'plot_consistency',
    'plot_recommendation_mix',
    'plot_simulation_summary',
    'generate_program_report',
    'generate_recommendation_report',
    'generate_goal_report',
    'generate_insight_report',
    'generate_simulation_report',
    'ExerciseTrend',
    'calculate_exercise_trend',
    'calculate_trends',
]
