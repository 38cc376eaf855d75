"""
Workout Log Shapes: Parsed inputs to the adaptive-programming pipeline.

Logs arrive as dictionaries (JSON documents from the app or rows loaded by
data.loader) with camelCase keys; snake_case keys are accepted as well.
Parsing validates the fields the engine keys on and leaves every optional
numeric field as None when it is absent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

import pandas as pd

from .errors import MalformedLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseInfo:
    """Exercise catalog entry used to resolve names and muscle groups."""
    id: str
    name: str
    muscle_groups: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {'id': self.id, 'name': self.name, 'muscle_groups': list(self.muscle_groups)}


@dataclass
class CompletedSet:
    """One performed set."""
    exercise_id: str
    weight: Optional[float] = None
    reps: Optional[int] = None
    rir: Optional[int] = None
    rest_seconds: Optional[float] = None
    alternative_exercise_id: Optional[str] = None

    @property
    def effective_exercise_id(self) -> str:
        """The substituted exercise if one was performed, else the planned one."""
        return self.alternative_exercise_id or self.exercise_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the app)."""
        return {
            'exerciseId': self.exercise_id,
            'alternativeExerciseId': self.alternative_exercise_id,
            'weight': self.weight,
            'reps': self.reps,
            'rir': self.rir,
            'restTime': self.rest_seconds,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CompletedSet':
        """
        Parse a set dictionary.

        Raises:
            MalformedLog: If the exercise id is missing
        """
        exercise_id = _pick(d, 'exerciseId', 'exercise_id')
        if not exercise_id:
            raise MalformedLog("Completed set has no exercise id", 'exerciseId')

        return cls(
            exercise_id=str(exercise_id),
            weight=_optional_number(_pick(d, 'weight'), float, 'weight'),
            reps=_optional_number(_pick(d, 'reps'), int, 'reps'),
            rir=_optional_number(_pick(d, 'rir'), int, 'rir'),
            rest_seconds=_optional_number(
                _pick(d, 'restTime', 'rest_seconds', 'rest_time'), float, 'restTime'
            ),
            alternative_exercise_id=_pick(d, 'alternativeExerciseId', 'alternative_exercise_id') or None,
        )


@dataclass
class WorkoutLog:
    """
    A completed training session.

    muscle_group_fatigue holds the self-reported fatigue (0-10) per muscle
    group; performance is an optional overall session score.
    """
    user_id: str
    date: datetime
    duration_minutes: float = 0.0
    completed_sets: List[CompletedSet] = field(default_factory=list)
    muscle_group_fatigue: Dict[str, float] = field(default_factory=dict)
    performance: Optional[float] = None

    @property
    def total_sets(self) -> int:
        return len(self.completed_sets)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the app)."""
        return {
            'userId': self.user_id,
            'date': self.date.isoformat(),
            'duration': self.duration_minutes,
            'completedSets': [s.to_dict() for s in self.completed_sets],
            'muscleGroupFatigue': dict(self.muscle_group_fatigue),
            'performance': self.performance,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'WorkoutLog':
        """
        Parse a workout log dictionary.

        Args:
            d: Log with camelCase or snake_case keys

        Returns:
            WorkoutLog

        Raises:
            MalformedLog: If the user id or date is missing or unparseable,
                or a set has no exercise id
        """
        user_id = _pick(d, 'userId', 'user_id')
        if not user_id:
            raise MalformedLog("Workout log has no user id", 'userId')

        raw_date = _pick(d, 'date')
        if raw_date is None or raw_date == "":
            raise MalformedLog("Workout log has no date", 'date')
        try:
            timestamp = pd.Timestamp(raw_date)
        except (TypeError, ValueError) as e:
            raise MalformedLog(f"Unparseable log date {raw_date!r}: {e}", 'date') from e
        if pd.isna(timestamp):
            raise MalformedLog(f"Unparseable log date {raw_date!r}", 'date')
        # Offsets are normalised to naive UTC so all logs compare
        if timestamp.tzinfo is not None:
            timestamp = timestamp.tz_convert(None)
        log_date = timestamp.to_pydatetime()

        fatigue = _pick(d, 'muscleGroupFatigue', 'muscle_group_fatigue') or {}
        try:
            fatigue = {str(group): float(value) for group, value in fatigue.items()}
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedLog(f"Invalid muscle group fatigue: {e}", 'muscleGroupFatigue') from e

        return cls(
            user_id=str(user_id),
            date=log_date,
            duration_minutes=_optional_number(
                _pick(d, 'duration', 'duration_minutes'), float, 'duration'
            ) or 0.0,
            completed_sets=[
                CompletedSet.from_dict(s)
                for s in (_pick(d, 'completedSets', 'completed_sets') or [])
            ],
            muscle_group_fatigue=fatigue,
            performance=_optional_number(_pick(d, 'performance'), float, 'performance'),
        )


@dataclass
class UserTrainingProfile:
    """Training availability of a user."""
    frequency: int = 3              # Planned sessions per week
    available_time: float = 60.0    # Minutes per session

    def to_dict(self) -> Dict[str, Any]:
        return {'frequency': self.frequency, 'availableTime': self.available_time}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'UserTrainingProfile':
        defaults = cls()
        frequency = _pick(d, 'frequency')
        available = _pick(d, 'availableTime', 'available_time')
        return cls(
            frequency=int(frequency) if frequency is not None else defaults.frequency,
            available_time=float(available) if available is not None else defaults.available_time,
        )


def sort_most_recent_first(logs: List[WorkoutLog]) -> List[WorkoutLog]:
    """Return logs ordered newest first (stable for equal dates)."""
    return sorted(logs, key=lambda log: log.date, reverse=True)


def _pick(d: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in d:
            return d[key]
    return None


def _optional_number(value, cast, field_name: str):
    if value is None or value == "":
        return None
    # pandas rows carry NaN for empty cells
    if isinstance(value, float) and value != value:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise MalformedLog(f"Invalid {field_name}: {value!r}", field_name) from e
