"""
Training Algorithm State: Persisted per-user adaptation state and its update cycle.

TrainingAlgorithmData bundles everything the engine learns about a user:
exercise progressions, muscle-group recovery hours, inferred training style
and training patterns. It is the unit a storage layer saves and loads.

Update cycle on a new workout log:
    1. progressions   <- tracker.apply_log(latest log)
    2. recovery hours <- update_recovery_hours(latest log fatigue)
    3. patterns       <- compute_training_patterns(all logs)
    4. style          <- compute_training_style(all logs, progressions)
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
import copy
import logging

import pandas as pd

from .analyzer import (
    TrainingPatterns,
    TrainingStyle,
    compute_training_patterns,
    compute_training_style,
)
from .logs import ExerciseInfo, UserTrainingProfile, WorkoutLog, sort_most_recent_first
from .params import EngineParams
from .progression import (
    DEFAULT_MUSCLE_GROUP_RECOVERY,
    ExerciseProgression,
    ExerciseProgressionTracker,
    update_recovery_hours,
)

logger = logging.getLogger(__name__)


@dataclass
class TrainingAlgorithmData:
    """Serializable adaptation state of one user."""
    user_id: str
    exercise_progressions: Dict[str, ExerciseProgression] = field(default_factory=dict)
    muscle_group_recovery: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_MUSCLE_GROUP_RECOVERY)
    )
    overall_recovery_rate: float = 1.0
    training_age: float = 0.0            # Years of training
    adaptation_rate: float = 1.0
    preferred_training_style: TrainingStyle = field(default_factory=TrainingStyle)
    training_patterns: TrainingPatterns = field(default_factory=TrainingPatterns)
    last_updated: Optional[datetime] = None

    @classmethod
    def default(cls, user_id: str) -> 'TrainingAlgorithmData':
        """Fresh state for a user with no history."""
        return cls(user_id=user_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the app)."""
        return {
            'userId': self.user_id,
            'exerciseProgressions': {
                k: v.to_dict() for k, v in self.exercise_progressions.items()
            },
            'muscleGroupRecovery': dict(self.muscle_group_recovery),
            'overallRecoveryRate': self.overall_recovery_rate,
            'trainingAge': self.training_age,
            'adaptationRate': self.adaptation_rate,
            'preferredTrainingStyle': self.preferred_training_style.to_dict(),
            'trainingPatterns': self.training_patterns.to_dict(),
            'lastUpdated': self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainingAlgorithmData':
        """
        Create state from its dictionary form.

        Missing sections fall back to the defaults of a fresh user.
        """
        defaults = cls.default(d.get('userId', ''))
        last_updated = d.get('lastUpdated')
        return cls(
            user_id=d.get('userId', ''),
            exercise_progressions={
                k: ExerciseProgression.from_dict(v)
                for k, v in (d.get('exerciseProgressions') or {}).items()
            },
            muscle_group_recovery=dict(
                d.get('muscleGroupRecovery') or defaults.muscle_group_recovery
            ),
            overall_recovery_rate=d.get('overallRecoveryRate', defaults.overall_recovery_rate),
            training_age=d.get('trainingAge', defaults.training_age),
            adaptation_rate=d.get('adaptationRate', defaults.adaptation_rate),
            preferred_training_style=TrainingStyle.from_dict(d.get('preferredTrainingStyle') or {}),
            training_patterns=TrainingPatterns.from_dict(d.get('trainingPatterns') or {}),
            last_updated=pd.Timestamp(last_updated).to_pydatetime() if last_updated else None,
        )


def ingest_log(
    data: TrainingAlgorithmData,
    log: WorkoutLog,
    params: Optional[EngineParams] = None
) -> TrainingAlgorithmData:
    """
    Apply one workout log to progressions and recovery hours.

    Args:
        data: Current state (not modified)
        log: New workout log

    Returns:
        Updated copy of the state
    """
    params = params or EngineParams()
    tracker = ExerciseProgressionTracker(data.exercise_progressions, params=params)
    tracker.apply_log(log)

    return replace(
        data,
        exercise_progressions=tracker.progressions,
        muscle_group_recovery=update_recovery_hours(
            data.muscle_group_recovery, log.muscle_group_fatigue, params
        ),
        preferred_training_style=copy.copy(data.preferred_training_style),
        training_patterns=copy.deepcopy(data.training_patterns),
    )


def refresh_algorithm_data(
    data: TrainingAlgorithmData,
    logs: List[WorkoutLog],
    profile: UserTrainingProfile,
    exercise_catalog: Optional[Mapping[str, ExerciseInfo]] = None,
    params: Optional[EngineParams] = None,
    now: Optional[datetime] = None,
    apply_latest: bool = True
) -> TrainingAlgorithmData:
    """
    Run one full update cycle after a workout has been logged.

    Args:
        data: Current state (not modified)
        logs: All workout logs of the user, any order
        profile: Planned frequency and available time
        exercise_catalog: Exercise id -> ExerciseInfo for volume inference
        params: Thresholds (defaults if None)
        now: Reference time for the consistency window
        apply_latest: Fold the most recent log into progressions and
            recovery first; pass False when it was already ingested

    Returns:
        Updated copy of the state; an unchanged copy if there are no logs
    """
    if not logs:
        return copy.deepcopy(data)

    params = params or EngineParams()
    now = now or datetime.now()
    ordered = sort_most_recent_first(logs)

    updated = ingest_log(data, ordered[0], params) if apply_latest else copy.deepcopy(data)

    updated.training_patterns = compute_training_patterns(
        ordered, profile, now, previous=data.training_patterns
    )
    updated.preferred_training_style = compute_training_style(
        ordered,
        updated.exercise_progressions,
        exercise_catalog,
        previous=data.preferred_training_style,
        params=params,
    )
    updated.last_updated = now

    logger.debug(
        "Refreshed state of %s from %d logs: intensity=%s volume=%s consistency=%d",
        data.user_id, len(ordered),
        updated.preferred_training_style.intensity_preference,
        updated.preferred_training_style.volume_preference,
        updated.training_patterns.consistency_score,
    )
    return updated
