"""
Fatigue and Pattern Analyzer: Derives recommendations from workout history.

Checks run in a fixed order, each contributing at most one recommendation:

    1. fatigue       summed muscle-group fatigue over the recent logs
    2. consistency   sessions in the trailing week vs planned frequency
    3. progression   exercises without any improving set
    4. duration      average recent session length vs available time
    5. intensity     aggregate intensity preference, plus one adjustment
                     naming exercises whose recent RIR contradicts it
    6. timing        preferred time of day
    7. schedule      preferred days of the week

The analyzer also derives the user's training patterns and training style,
which the update cycle in engine.state persists.

Analysis is read-only: neither the logs nor the progression records passed
in are modified.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging
import math

import numpy as np
import pandas as pd

from .logs import ExerciseInfo, UserTrainingProfile, WorkoutLog, sort_most_recent_first
from .params import EngineParams
from .progression import ExerciseProgression, IntensityLevel

logger = logging.getLogger(__name__)


class Priority(Enum):
    """Recommendation priority, highest first."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationType(Enum):
    RECOVERY = "recovery"
    CONSISTENCY = "consistency"
    PROGRESSION = "progression"
    TIME = "time"
    INTENSITY = "intensity"
    INTENSITY_ADJUSTMENT = "intensity_adjustment"
    TIMING = "timing"
    SCHEDULE = "schedule"


@dataclass
class Recommendation:
    """A single actionable suggestion."""
    type: RecommendationType
    title: str
    description: str
    priority: Priority

    def to_dict(self) -> Dict[str, str]:
        return {
            'type': self.type.value,
            'title': self.title,
            'description': self.description,
            'priority': self.priority.value,
        }


TIMES_OF_DAY = ('morning', 'afternoon', 'evening')
DAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')
PREFERRED_DAY_COUNT = 3
WEEKS_PER_MONTH = 4


@dataclass
class TrainingPatterns:
    """When and how long the user trains."""
    preferred_time_of_day: str = 'afternoon'
    average_session_duration: int = 60
    consistency_score: int = 50
    preferred_days_of_week: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'preferredTimeOfDay': self.preferred_time_of_day,
            'averageSessionDuration': self.average_session_duration,
            'consistencyScore': self.consistency_score,
            'preferredDaysOfWeek': list(self.preferred_days_of_week),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainingPatterns':
        defaults = cls()
        return cls(
            preferred_time_of_day=d.get('preferredTimeOfDay', defaults.preferred_time_of_day),
            average_session_duration=d.get('averageSessionDuration', defaults.average_session_duration),
            consistency_score=d.get('consistencyScore', defaults.consistency_score),
            preferred_days_of_week=list(d.get('preferredDaysOfWeek', [])),
        )


@dataclass
class TrainingStyle:
    """Inferred training preferences (low/moderate/high, short/moderate/long)."""
    intensity_preference: str = 'moderate'
    volume_preference: str = 'moderate'
    frequency_preference: str = 'moderate'
    rest_period_preference: str = 'moderate'
    exercise_variety_preference: str = 'moderate'

    def to_dict(self) -> Dict[str, str]:
        return {
            'intensityPreference': self.intensity_preference,
            'volumePreference': self.volume_preference,
            'frequencyPreference': self.frequency_preference,
            'restPeriodPreference': self.rest_period_preference,
            'exerciseVarietyPreference': self.exercise_variety_preference,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainingStyle':
        defaults = cls()
        return cls(
            intensity_preference=d.get('intensityPreference', defaults.intensity_preference),
            volume_preference=d.get('volumePreference', defaults.volume_preference),
            frequency_preference=d.get('frequencyPreference', defaults.frequency_preference),
            rest_period_preference=d.get('restPeriodPreference', defaults.rest_period_preference),
            exercise_variety_preference=d.get(
                'exerciseVarietyPreference', defaults.exercise_variety_preference
            ),
        )


@dataclass
class AnalysisResult:
    """Everything one analysis pass derives from the logs."""
    recommendations: List[Recommendation] = field(default_factory=list)
    muscle_group_fatigue: Dict[str, float] = field(default_factory=dict)
    high_fatigue_groups: List[str] = field(default_factory=list)
    sessions_last_week: int = 0
    stalled_exercises: List[str] = field(default_factory=list)
    average_recent_duration: float = 0.0
    flagged_exercises: List[str] = field(default_factory=list)
    patterns: TrainingPatterns = field(default_factory=TrainingPatterns)
    style: TrainingStyle = field(default_factory=TrainingStyle)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'recommendations': [r.to_dict() for r in self.recommendations],
            'muscle_group_fatigue': dict(self.muscle_group_fatigue),
            'high_fatigue_groups': list(self.high_fatigue_groups),
            'sessions_last_week': self.sessions_last_week,
            'stalled_exercises': list(self.stalled_exercises),
            'average_recent_duration': self.average_recent_duration,
            'flagged_exercises': list(self.flagged_exercises),
            'patterns': self.patterns.to_dict(),
            'style': self.style.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def time_of_day(moment: datetime) -> str:
    """Bucket a timestamp: before 12 morning, before 18 afternoon, else evening."""
    if moment.hour < 12:
        return 'morning'
    if moment.hour < 18:
        return 'afternoon'
    return 'evening'


def _majority(counts: Dict[str, int]) -> str:
    # max() keeps the first key among equal counts, so dict order breaks ties
    return max(counts, key=counts.get)


def _as_catalog(exercise_catalog) -> Dict[str, ExerciseInfo]:
    if exercise_catalog is None:
        return {}
    if isinstance(exercise_catalog, Mapping):
        return dict(exercise_catalog)
    return {info.id: info for info in exercise_catalog}


def aggregate_intensity_preference(
    progressions: Mapping[str, ExerciseProgression]
) -> IntensityLevel:
    """
    Majority vote of per-exercise intensity preferences.

    Ties resolve in the order low, moderate, high. With no progressions the
    preference is moderate.
    """
    if not progressions:
        return IntensityLevel.MODERATE

    counts = {level.value: 0 for level in
              (IntensityLevel.LOW, IntensityLevel.MODERATE, IntensityLevel.HIGH)}
    for progression in progressions.values():
        counts[progression.preferred_intensity.value] += 1
    return IntensityLevel(_majority(counts))


def calculate_consistency_score(
    logs: List[WorkoutLog],
    frequency: int,
    now: datetime
) -> int:
    """
    Share of planned sessions completed in the last calendar month, 0-100.

    score = min(100, round(logs since now-1month / (frequency * 4) * 100))
    """
    if frequency <= 0:
        return 0
    month_ago = (pd.Timestamp(now) - pd.DateOffset(months=1)).to_pydatetime()
    recent = sum(1 for log in logs if log.date >= month_ago)
    return min(100, round_half_up(recent / (frequency * WEEKS_PER_MONTH) * 100))


def compute_training_patterns(
    logs: List[WorkoutLog],
    profile: UserTrainingProfile,
    now: Optional[datetime] = None,
    previous: Optional[TrainingPatterns] = None
) -> TrainingPatterns:
    """
    Derive time-of-day, duration, day-of-week and consistency patterns.

    Args:
        logs: Workout logs, most recent first
        profile: Training profile (planned frequency)
        now: Reference time (current time if None)
        previous: Patterns returned unchanged when there are no logs

    Returns:
        TrainingPatterns
    """
    if not logs:
        return previous or TrainingPatterns()
    now = now or datetime.now()

    time_counts = {bucket: 0 for bucket in TIMES_OF_DAY}
    for log in logs:
        time_counts[time_of_day(log.date)] += 1

    day_counts: Dict[str, int] = {}
    for log in logs:
        day = DAY_NAMES[log.date.weekday()]
        day_counts[day] = day_counts.get(day, 0) + 1
    ranked_days = sorted(day_counts.items(), key=lambda kv: kv[1], reverse=True)

    return TrainingPatterns(
        preferred_time_of_day=_majority(time_counts),
        average_session_duration=round_half_up(
            float(np.mean([log.duration_minutes for log in logs]))
        ),
        consistency_score=calculate_consistency_score(logs, profile.frequency, now),
        preferred_days_of_week=[day for day, _ in ranked_days[:PREFERRED_DAY_COUNT]],
    )


def average_sets_per_muscle_group(
    logs: List[WorkoutLog],
    exercise_catalog: Mapping[str, ExerciseInfo]
) -> Optional[float]:
    """
    Mean over logs of the average set count per trained muscle group.

    Returns:
        The mean, or None if no set maps to a catalogued muscle group
    """
    per_log = []
    resolved_any = False
    for log in logs:
        group_sets: Dict[str, int] = {}
        for completed in log.completed_sets:
            info = exercise_catalog.get(completed.effective_exercise_id)
            if info is None:
                continue
            for group in info.muscle_groups:
                group_sets[group] = group_sets.get(group, 0) + 1
        if group_sets:
            resolved_any = True
        per_log.append(sum(group_sets.values()) / max(1, len(group_sets)))

    if not resolved_any:
        return None
    return float(np.mean(per_log))


def compute_training_style(
    logs: List[WorkoutLog],
    progressions: Mapping[str, ExerciseProgression],
    exercise_catalog: Optional[Mapping[str, ExerciseInfo]] = None,
    previous: Optional[TrainingStyle] = None,
    params: Optional[EngineParams] = None
) -> TrainingStyle:
    """
    Infer intensity, volume and rest preferences.

    Volume and rest keep their previous values when the logs carry no
    usable information (no catalogued exercises, no recorded rest).
    """
    params = params or EngineParams()
    style = TrainingStyle(**vars(previous)) if previous else TrainingStyle()
    catalog = _as_catalog(exercise_catalog)

    style.intensity_preference = aggregate_intensity_preference(progressions).value

    avg_sets = average_sets_per_muscle_group(logs, catalog) if logs else None
    if avg_sets is not None:
        if avg_sets < params.low_volume_sets:
            style.volume_preference = 'low'
        elif avg_sets > params.high_volume_sets:
            style.volume_preference = 'high'
        else:
            style.volume_preference = 'moderate'

    rest_times = [s.rest_seconds for log in logs for s in log.completed_sets if s.rest_seconds]
    if rest_times:
        avg_rest = float(np.mean(rest_times))
        if avg_rest < params.short_rest_seconds:
            style.rest_period_preference = 'short'
        elif avg_rest > params.long_rest_seconds:
            style.rest_period_preference = 'long'
        else:
            style.rest_period_preference = 'moderate'

    return style


# ═══════════════════════════════════════════════════════════════════════════════
# ANALYZER
# ═══════════════════════════════════════════════════════════════════════════════

class FatigueAndPatternAnalyzer:
    """
    Runs the recommendation checks over a user's logs.

    Args:
        params: Thresholds (defaults if None)
        exercise_catalog: Exercise id -> ExerciseInfo, or an iterable of
            ExerciseInfo; used for display names and muscle groups
    """

    def __init__(
        self,
        params: Optional[EngineParams] = None,
        exercise_catalog: Optional[Union[Mapping[str, ExerciseInfo], Iterable[ExerciseInfo]]] = None
    ):
        self.params = params or EngineParams()
        self.exercise_catalog = _as_catalog(exercise_catalog)

    def exercise_name(self, exercise_id: str) -> str:
        info = self.exercise_catalog.get(exercise_id)
        return info.name if info else exercise_id

    def analyze(
        self,
        logs: List[WorkoutLog],
        profile: UserTrainingProfile,
        progressions: Optional[Mapping[str, ExerciseProgression]] = None,
        now: Optional[datetime] = None
    ) -> AnalysisResult:
        """
        Analyze workout logs.

        Args:
            logs: Workout logs in any order
            profile: Planned frequency and available time
            progressions: Current progression records by exercise id
            now: Reference time for the weekly and monthly windows

        Returns:
            AnalysisResult with recommendations in emission order
        """
        progressions = progressions or {}
        if not logs:
            return AnalysisResult(
                style=compute_training_style([], progressions, self.exercise_catalog,
                                             params=self.params),
            )

        now = now or datetime.now()
        ordered = sort_most_recent_first(logs)
        recent = ordered[:self.params.recent_log_window]
        result = AnalysisResult()

        self._check_fatigue(recent, result)
        self._check_consistency(ordered, profile, now, result)
        self._check_progression(ordered, progressions, result)
        self._check_duration(recent, profile, result)

        result.patterns = compute_training_patterns(ordered, profile, now)
        result.style = compute_training_style(
            ordered, progressions, self.exercise_catalog, params=self.params
        )

        self._check_intensity(result.style.intensity_preference, progressions, result)
        self._check_timing(result.patterns, result)
        self._check_schedule(result.patterns, result)

        logger.debug(
            "Analyzed %d logs: %d recommendations, %d stalled exercises",
            len(ordered), len(result.recommendations), len(result.stalled_exercises),
        )
        return result

    def _check_fatigue(self, recent: List[WorkoutLog], result: AnalysisResult):
        totals: Dict[str, float] = {}
        for log in recent:
            for group, fatigue in log.muscle_group_fatigue.items():
                totals[group] = totals.get(group, 0.0) + fatigue

        result.muscle_group_fatigue = totals
        result.high_fatigue_groups = [
            group for group, total in totals.items()
            if total > self.params.high_fatigue_threshold
        ]

        if result.high_fatigue_groups:
            result.recommendations.append(Recommendation(
                type=RecommendationType.RECOVERY,
                title="Recovery needed",
                description=f"Consider more rest for: {', '.join(result.high_fatigue_groups)}",
                priority=Priority.HIGH,
            ))

    def _check_consistency(
        self,
        logs: List[WorkoutLog],
        profile: UserTrainingProfile,
        now: datetime,
        result: AnalysisResult
    ):
        week_ago = now - timedelta(days=self.params.consistency_window_days)
        result.sessions_last_week = sum(1 for log in logs if log.date >= week_ago)

        if result.sessions_last_week < profile.frequency:
            result.recommendations.append(Recommendation(
                type=RecommendationType.CONSISTENCY,
                title="Consistency",
                description=(
                    f"You trained {result.sessions_last_week} of "
                    f"{profile.frequency} planned days this week"
                ),
                priority=Priority.MEDIUM,
            ))

    def _check_progression(
        self,
        logs: List[WorkoutLog],
        progressions: Mapping[str, ExerciseProgression],
        result: AnalysisResult
    ):
        improved: Dict[str, bool] = {}
        for log in logs:
            for completed in log.completed_sets:
                exercise_id = completed.effective_exercise_id
                improved.setdefault(exercise_id, False)

                progression = progressions.get(exercise_id)
                if progression is None:
                    continue

                # Zero or missing values never count as an improvement
                heavier = (completed.weight and progression.last_weight
                           and completed.weight > progression.last_weight)
                more_reps = (completed.reps and progression.last_reps
                             and completed.reps > progression.last_reps)
                if heavier or more_reps:
                    improved[exercise_id] = True

        result.stalled_exercises = [ex for ex, ok in improved.items() if not ok]

        if result.stalled_exercises:
            result.recommendations.append(Recommendation(
                type=RecommendationType.PROGRESSION,
                title="Progression stalled",
                description=(
                    f"Consider changing the strategy for "
                    f"{len(result.stalled_exercises)} exercises"
                ),
                priority=Priority.MEDIUM,
            ))

    def _check_duration(
        self,
        recent: List[WorkoutLog],
        profile: UserTrainingProfile,
        result: AnalysisResult
    ):
        result.average_recent_duration = float(np.mean([log.duration_minutes for log in recent]))

        if result.average_recent_duration > profile.available_time * self.params.long_session_factor:
            result.recommendations.append(Recommendation(
                type=RecommendationType.TIME,
                title="Long sessions",
                description=(
                    f"Your sessions last {round_half_up(result.average_recent_duration)} "
                    f"minutes on average"
                ),
                priority=Priority.LOW,
            ))

    def _check_intensity(
        self,
        preference: str,
        progressions: Mapping[str, ExerciseProgression],
        result: AnalysisResult
    ):
        threshold = self.params.intensity_rir_threshold

        if preference == IntensityLevel.HIGH.value:
            result.recommendations.append(Recommendation(
                type=RecommendationType.INTENSITY,
                title="High intensity preference",
                description=(
                    "You tend to train close to failure. Consider low RIR targets (0-1) "
                    "and longer rest periods."
                ),
                priority=Priority.MEDIUM,
            ))
            flagged = self._flag_exercises(progressions, lambda avg: avg > threshold)
            verb = "increasing"
        elif preference == IntensityLevel.LOW.value:
            result.recommendations.append(Recommendation(
                type=RecommendationType.INTENSITY,
                title="Low intensity preference",
                description=(
                    "You tend to train with reps in reserve and more volume. Consider "
                    "higher RIR targets (3-5) and shorter rest periods."
                ),
                priority=Priority.MEDIUM,
            ))
            flagged = self._flag_exercises(progressions, lambda avg: avg < threshold)
            verb = "reducing"
        else:
            return

        result.flagged_exercises = flagged
        if flagged:
            result.recommendations.append(Recommendation(
                type=RecommendationType.INTENSITY_ADJUSTMENT,
                title="Intensity adjustment",
                description=f"Consider {verb} the intensity of: {', '.join(flagged)}",
                priority=Priority.MEDIUM,
            ))

    def _flag_exercises(self, progressions: Mapping[str, ExerciseProgression], predicate) -> List[str]:
        flagged = []
        for exercise_id, progression in progressions.items():
            rirs = progression.recent_rirs(self.params.rir_history_window)
            if rirs and predicate(float(np.mean(rirs))):
                flagged.append(self.exercise_name(exercise_id))
        return flagged[:self.params.max_flagged_exercises]

    def _check_timing(self, patterns: TrainingPatterns, result: AnalysisResult):
        result.recommendations.append(Recommendation(
            type=RecommendationType.TIMING,
            title="Time pattern detected",
            description=(
                f"You usually train in the {patterns.preferred_time_of_day}. "
                f"Scheduling sessions then may help performance."
            ),
            priority=Priority.LOW,
        ))

    def _check_schedule(self, patterns: TrainingPatterns, result: AnalysisResult):
        if not patterns.preferred_days_of_week:
            return
        days = ", ".join(day.capitalize() for day in patterns.preferred_days_of_week)
        result.recommendations.append(Recommendation(
            type=RecommendationType.SCHEDULE,
            title="Preferred days detected",
            description=f"Your preferred training days are: {days}",
            priority=Priority.LOW,
        ))
