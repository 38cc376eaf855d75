"""
Exercise Progression Tracker: Per-exercise load history and intensity preference.

Every completed set updates the record of the exercise actually performed
(the substitute, when one was used):

    last_weight / last_reps   <- values of the set, when recorded
    best_weight / best_reps   <- running maximum (only reset() lowers them)
    preferred_intensity       <- RIR band of the set
    history                   <- newest entry first, bounded length

Muscle-group recovery hours are adjusted from the fatigue reported with the
same log (see update_recovery_hours).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional
import copy
import logging
import threading

import pandas as pd

from .logs import WorkoutLog
from .params import EngineParams

logger = logging.getLogger(__name__)


class IntensityLevel(Enum):
    """Intensity preference inferred from reps in reserve."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


DEFAULT_MUSCLE_GROUP_RECOVERY: Dict[str, float] = {
    'chest': 48.0,
    'back': 48.0,
    'legs': 72.0,
    'shoulders': 48.0,
    'arms': 24.0,
    'core': 24.0,
}


@dataclass
class HistoryEntry:
    """One set as remembered in an exercise history."""
    date: datetime
    weight: Optional[float] = None
    reps: Optional[int] = None
    rir: Optional[int] = None
    performance_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'weight': self.weight,
            'reps': self.reps,
            'rir': self.rir,
            'performance': self.performance_score,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'HistoryEntry':
        return cls(
            date=pd.Timestamp(d['date']).to_pydatetime(),
            weight=d.get('weight'),
            reps=d.get('reps'),
            rir=d.get('rir'),
            performance_score=d.get('performance', d.get('performance_score')),
        )


@dataclass
class ExerciseProgression:
    """Progression record of a single exercise."""
    last_weight: float = 0.0
    last_reps: int = 0
    best_weight: float = 0.0
    best_reps: int = 0
    preferred_intensity: IntensityLevel = IntensityLevel.MODERATE
    history: List[HistoryEntry] = field(default_factory=list)

    def recent_rirs(self, window: int = 3) -> List[int]:
        """Recorded RIR values of the newest `window` history entries."""
        return [h.rir for h in self.history[:window] if h.rir is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the app)."""
        return {
            'lastWeight': self.last_weight,
            'lastReps': self.last_reps,
            'bestWeight': self.best_weight,
            'bestReps': self.best_reps,
            'preferredIntensity': self.preferred_intensity.value,
            'history': [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ExerciseProgression':
        return cls(
            last_weight=d.get('lastWeight', 0) or 0,
            last_reps=d.get('lastReps', 0) or 0,
            best_weight=d.get('bestWeight', 0) or 0,
            best_reps=d.get('bestReps', 0) or 0,
            preferred_intensity=IntensityLevel(d.get('preferredIntensity', 'moderate')),
            history=[HistoryEntry.from_dict(h) for h in d.get('history', [])],
        )


def intensity_from_rir(rir: int, params: Optional[EngineParams] = None) -> IntensityLevel:
    """
    Classify reps in reserve into an intensity band.

    RIR <= 1 is high, RIR <= 3 is moderate, anything above is low.
    """
    params = params or EngineParams()
    if rir <= params.high_intensity_max_rir:
        return IntensityLevel.HIGH
    if rir <= params.moderate_intensity_max_rir:
        return IntensityLevel.MODERATE
    return IntensityLevel.LOW


class ExerciseProgressionTracker:
    """
    Mutable store of ExerciseProgression records keyed by exercise id.

    All mutations go through an internal lock, so one tracker can be fed
    from several threads; separate trackers share nothing.
    """

    def __init__(
        self,
        progressions: Optional[Mapping[str, ExerciseProgression]] = None,
        history_limit: Optional[int] = None,
        params: Optional[EngineParams] = None
    ):
        self.params = params or EngineParams()
        self.history_limit = history_limit or self.params.history_limit
        self._progressions: Dict[str, ExerciseProgression] = copy.deepcopy(dict(progressions or {}))
        self._lock = threading.Lock()

    def __contains__(self, exercise_id: str) -> bool:
        return exercise_id in self._progressions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._progressions))

    def __len__(self) -> int:
        return len(self._progressions)

    @property
    def progressions(self) -> Dict[str, ExerciseProgression]:
        """Snapshot copy of all records."""
        with self._lock:
            return copy.deepcopy(self._progressions)

    def get(self, exercise_id: str) -> Optional[ExerciseProgression]:
        """Copy of one record, or None if the exercise was never logged."""
        with self._lock:
            progression = self._progressions.get(exercise_id)
            return copy.deepcopy(progression) if progression else None

    def apply_log(self, log: WorkoutLog) -> List[str]:
        """
        Fold every completed set of a log into the progression records.

        Args:
            log: Completed workout

        Returns:
            Exercise ids that were updated, in set order (deduplicated)
        """
        updated = []
        with self._lock:
            for completed in log.completed_sets:
                exercise_id = completed.effective_exercise_id
                progression = self._progressions.setdefault(exercise_id, ExerciseProgression())

                if completed.weight is not None:
                    progression.last_weight = completed.weight
                    progression.best_weight = max(progression.best_weight, completed.weight)

                if completed.reps is not None:
                    progression.last_reps = completed.reps
                    progression.best_reps = max(progression.best_reps, completed.reps)

                if completed.rir is not None:
                    progression.preferred_intensity = intensity_from_rir(completed.rir, self.params)

                progression.history.insert(0, HistoryEntry(
                    date=log.date,
                    weight=completed.weight,
                    reps=completed.reps,
                    rir=completed.rir,
                    performance_score=log.performance,
                ))
                del progression.history[self.history_limit:]

                if exercise_id not in updated:
                    updated.append(exercise_id)

        logger.debug(
            "Applied log of %s (%s): %d sets across %d exercises",
            log.user_id, log.date.date(), len(log.completed_sets), len(updated),
        )
        return updated

    def reset(self, exercise_id: str) -> bool:
        """
        Discard the record of an exercise.

        This is the only operation that lowers best values.

        Returns:
            True if a record existed
        """
        with self._lock:
            existed = self._progressions.pop(exercise_id, None) is not None
        if existed:
            logger.info("Reset progression of %s", exercise_id)
        return existed

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Convert all records to dictionaries."""
        with self._lock:
            return {k: v.to_dict() for k, v in self._progressions.items()}


def update_recovery_hours(
    recovery: Mapping[str, float],
    muscle_group_fatigue: Mapping[str, float],
    params: Optional[EngineParams] = None
) -> Dict[str, float]:
    """
    Adjust muscle-group recovery hours from reported fatigue.

    High fatigue (> 7) adds 12 hours up to 96; low fatigue (< 4) removes
    6 hours down to 24; anything in between leaves the value unchanged.
    A group with no recovery value starts from 48 hours.

    Args:
        recovery: Current recovery hours per muscle group
        muscle_group_fatigue: Fatigue reported for the latest session (0-10)
        params: Thresholds (defaults if None)

    Returns:
        New recovery map; the input is not modified
    """
    params = params or EngineParams()
    updated = dict(recovery)

    for group, fatigue in muscle_group_fatigue.items():
        current = updated.get(group) or params.recovery_default_hours

        if fatigue > params.recovery_high_fatigue:
            updated[group] = min(current + params.recovery_increase_hours,
                                 params.recovery_max_hours)
        elif fatigue < params.recovery_low_fatigue:
            updated[group] = max(current - params.recovery_decrease_hours,
                                 params.recovery_min_hours)

    return updated
