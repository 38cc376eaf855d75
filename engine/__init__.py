"""
Periodization and adaptive-programming engine.

This package provides:
- Periodization strategies and program calendar generation
- Per-exercise progression tracking and muscle-group recovery
- Fatigue, consistency, stall and preference analysis of workout logs
- Ranked training recommendations
- Goal hierarchy with progress, status and success probability

All computation is in-process and deterministic; nothing here performs I/O
beyond the optional parameter file helpers.
"""

# Errors and parameters
from .errors import (
    EngineError,
    ConfigNotFound,
    InvalidDuration,
    MalformedLog,
)
from .params import (
    EngineParams,
    PARAM_DESCRIPTIONS,
    load_params,
    save_params,
)

# Periodization catalog
from .catalog import (
    PeriodizationType,
    TrainingPhase,
    ProgressionPattern,
    TrainingLevel,
    TrainingGoal,
    PeriodizationConfig,
    PeriodizationCatalog,
    PERIODIZATION_CONFIGS,
    DEFAULT_CATALOG,
    get_config,
    recommend_periodization_type,
)

# Program structure
from .program import (
    Session,
    Microcycle,
    Mesocycle,
    ProgramStructure,
    ProgramStructureGenerator,
    calculate_volume_multiplier,
    calculate_intensity_multiplier,
    generate_program,
    replace_mesocycle_phase,
    format_program,
)

# Workout logs
from .logs import (
    ExerciseInfo,
    CompletedSet,
    WorkoutLog,
    UserTrainingProfile,
)

# Progression tracking
from .progression import (
    IntensityLevel,
    HistoryEntry,
    ExerciseProgression,
    ExerciseProgressionTracker,
    DEFAULT_MUSCLE_GROUP_RECOVERY,
    intensity_from_rir,
    update_recovery_hours,
)

# Analysis and recommendations
from .analyzer import (
    Priority,
    RecommendationType,
    Recommendation,
    TrainingPatterns,
    TrainingStyle,
    AnalysisResult,
    FatigueAndPatternAnalyzer,
    compute_training_patterns,
    compute_training_style,
)
from .recommendations import (
    RecommendationEngine,
    rank_recommendations,
    filter_by_priority,
)

# Goals
from .goals import (
    GoalType,
    GoalStatus,
    Goal,
    Milestone,
    GoalProgressModel,
    calculate_goal_progress,
    goal_status,
    calculate_success_probability,
)

# Persisted state
from .state import (
    TrainingAlgorithmData,
    ingest_log,
    refresh_algorithm_data,
)

__all__ = [
    # Errors
    'EngineError',
    'ConfigNotFound',
    'InvalidDuration',
    'MalformedLog',
    # Parameters
    'EngineParams',
    'PARAM_DESCRIPTIONS',
    'load_params',
    'save_params',
    # Catalog
    'PeriodizationType',
    'TrainingPhase',
    'ProgressionPattern',
    'TrainingLevel',
    'TrainingGoal',
    'PeriodizationConfig',
    'PeriodizationCatalog',
    'PERIODIZATION_CONFIGS',
    'DEFAULT_CATALOG',
    'get_config',
    'recommend_periodization_type',
    # Program
    'Session',
    'Microcycle',
    'Mesocycle',
    'ProgramStructure',
    'ProgramStructureGenerator',
    'calculate_volume_multiplier',
    'calculate_intensity_multiplier',
    'generate_program',
    'replace_mesocycle_phase',
    'format_program',
    # Logs
    'ExerciseInfo',
    'CompletedSet',
    'WorkoutLog',
    'UserTrainingProfile',
    # Progression
    'IntensityLevel',
    'HistoryEntry',
    'ExerciseProgression',
    'ExerciseProgressionTracker',
    'DEFAULT_MUSCLE_GROUP_RECOVERY',
    'intensity_from_rir',
    'update_recovery_hours',
    # Analyzer
    'Priority',
    'RecommendationType',
    'Recommendation',
    'TrainingPatterns',
    'TrainingStyle',
    'AnalysisResult',
    'FatigueAndPatternAnalyzer',
    'compute_training_patterns',
    'compute_training_style',
    # Recommendations
    'RecommendationEngine',
    'rank_recommendations',
    'filter_by_priority',
    # Goals
    'GoalType',
    'GoalStatus',
    'Goal',
    'Milestone',
    'GoalProgressModel',
    'calculate_goal_progress',
    'goal_status',
    'calculate_success_probability',
    # State
    'TrainingAlgorithmData',
    'ingest_log',
    'refresh_algorithm_data',
]
