"""Data generation and loading utilities."""

from .synthetic import (
    SAMPLE_EXERCISES,
    TraineeProfile,
    generate_trainee_profiles,
    generate_week_logs,
    generate_program_logs,
)
from .loader import (
    load_workout_logs,
    save_workout_logs,
    frame_to_logs,
    logs_to_frame,
    load_profile,
    load_algorithm_data,
    save_algorithm_data,
)

__all__ = [
    # Synthetic data
    'SAMPLE_EXERCISES',
    'TraineeProfile',
    'generate_trainee_profiles',
    'generate_week_logs',
    'generate_program_logs',
    # Loading
    'load_workout_logs',
    'save_workout_logs',
    'frame_to_logs',
    'logs_to_frame',
    'load_profile',
    'load_algorithm_data',
    'save_algorithm_data',
]
