"""
Tests for the fatigue/pattern analyzer and recommendation ranking.

Tests cover:
1. Each recommendation check (fatigue, consistency, progression, duration,
   intensity, timing, schedule)
2. Training pattern and training style inference
3. Priority ranking and filtering

Run with: python -m pytest tests/test_analyzer.py -v
"""

import copy
import pytest
from datetime import datetime, timedelta

from engine.analyzer import (
    FatigueAndPatternAnalyzer,
    Priority,
    Recommendation,
    RecommendationType,
    TrainingPatterns,
    TrainingStyle,
    aggregate_intensity_preference,
    calculate_consistency_score,
    compute_training_patterns,
    compute_training_style,
    round_half_up,
    time_of_day,
)
from engine.logs import CompletedSet, ExerciseInfo, UserTrainingProfile, WorkoutLog
from engine.progression import ExerciseProgression, HistoryEntry, IntensityLevel
from engine.recommendations import (
    RecommendationEngine,
    filter_by_priority,
    rank_recommendations,
)


NOW = datetime(2024, 3, 15, 20, 0)   # a Friday

CATALOG = {
    'bench_press': ExerciseInfo('bench_press', 'Bench Press', ('chest',)),
    'squat': ExerciseInfo('squat', 'Back Squat', ('legs', 'core')),
}


def make_log(when, sets=None, fatigue=None, duration=60):
    return WorkoutLog(
        user_id='u1',
        date=when,
        duration_minutes=duration,
        completed_sets=sets or [],
        muscle_group_fatigue=fatigue or {},
    )


def progression_with_rirs(rirs, preference=IntensityLevel.HIGH, weight=100):
    history = [HistoryEntry(date=NOW - timedelta(days=i), weight=weight, reps=5, rir=rir)
               for i, rir in enumerate(rirs)]
    return ExerciseProgression(last_weight=weight, last_reps=5, best_weight=weight,
                               best_reps=5, preferred_intensity=preference, history=history)


def types_of(recommendations):
    return [r.type for r in recommendations]


@pytest.fixture
def analyzer():
    return FatigueAndPatternAnalyzer(exercise_catalog=CATALOG)


@pytest.fixture
def profile():
    return UserTrainingProfile(frequency=3, available_time=60)


# =============================================================================
# Helper Tests
# =============================================================================

class TestHelpers:
    """Tests for rounding and bucketing helpers."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (2.4, 2), (60.5, 61)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("hour,expected", [
        (0, 'morning'), (11, 'morning'), (12, 'afternoon'),
        (17, 'afternoon'), (18, 'evening'), (23, 'evening'),
    ])
    def test_time_of_day(self, hour, expected):
        assert time_of_day(datetime(2024, 3, 1, hour, 30)) == expected


# =============================================================================
# Recommendation Checks
# =============================================================================

class TestEmptyHistory:
    def test_no_logs_no_recommendations(self, analyzer, profile):
        result = analyzer.analyze([], profile, now=NOW)
        assert result.recommendations == []
        assert result.patterns == TrainingPatterns()


class TestFatigueCheck:
    """Summed fatigue over the recent logs."""

    def test_high_fatigue_flags_recovery(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d), fatigue={'chest': 8, 'back': 6})
                for d in (1, 2, 3)]
        result = analyzer.analyze(logs, profile, now=NOW)

        assert result.high_fatigue_groups == ['chest']
        assert result.muscle_group_fatigue == {'chest': 24.0, 'back': 18.0}
        rec = result.recommendations[0]
        assert rec.type == RecommendationType.RECOVERY
        assert rec.priority == Priority.HIGH
        assert rec.description == "Consider more rest for: chest"

    def test_threshold_is_strict(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d), fatigue={'legs': 10}) for d in (1, 2)]
        result = analyzer.analyze(logs, profile, now=NOW)
        assert RecommendationType.RECOVERY not in types_of(result.recommendations)

    def test_only_recent_logs_counted(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d), fatigue={'chest': 2}) for d in range(10)]
        logs += [make_log(NOW - timedelta(days=d), fatigue={'chest': 9}) for d in (20, 21)]
        result = analyzer.analyze(logs, profile, now=NOW)
        assert result.muscle_group_fatigue['chest'] == 20.0
        assert result.high_fatigue_groups == []


class TestConsistencyCheck:
    """Sessions in the trailing week against planned frequency."""

    def test_missed_sessions(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d)) for d in (1, 3, 10)]
        result = analyzer.analyze(logs, profile, now=NOW)
        rec = next(r for r in result.recommendations
                   if r.type == RecommendationType.CONSISTENCY)
        assert result.sessions_last_week == 2
        assert rec.description == "You trained 2 of 3 planned days this week"
        assert rec.priority == Priority.MEDIUM

    def test_on_track(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d)) for d in (1, 3, 7)]
        result = analyzer.analyze(logs, profile, now=NOW)
        assert result.sessions_last_week == 3
        assert RecommendationType.CONSISTENCY not in types_of(result.recommendations)


class TestProgressionCheck:
    """Exercises with no improving set are reported as stalled."""

    @pytest.fixture
    def progressions(self):
        return {
            'bench_press': ExerciseProgression(last_weight=100, last_reps=8),
            'squat': ExerciseProgression(last_weight=100, last_reps=5),
        }

    def test_stalled_exercises(self, analyzer, profile, progressions):
        logs = [make_log(NOW - timedelta(days=1), sets=[
            CompletedSet('bench_press', 105, 8),
            CompletedSet('squat', 100, 5),
            CompletedSet('row', 60, 10),
        ])]
        result = analyzer.analyze(logs, profile, progressions, now=NOW)

        assert result.stalled_exercises == ['squat', 'row']
        rec = next(r for r in result.recommendations
                   if r.type == RecommendationType.PROGRESSION)
        assert rec.description == "Consider changing the strategy for 2 exercises"

    def test_more_reps_counts(self, analyzer, profile, progressions):
        logs = [make_log(NOW, sets=[CompletedSet('squat', 100, 6)])]
        result = analyzer.analyze(logs, profile, progressions, now=NOW)
        assert result.stalled_exercises == []

    def test_improvement_in_any_log(self, analyzer, profile, progressions):
        logs = [
            make_log(NOW - timedelta(days=1), sets=[CompletedSet('squat', 90, 5)]),
            make_log(NOW - timedelta(days=4), sets=[CompletedSet('squat', 110, 5)]),
        ]
        result = analyzer.analyze(logs, profile, progressions, now=NOW)
        assert 'squat' not in result.stalled_exercises

    def test_zero_baseline_is_never_improvement(self, analyzer, profile):
        progressions = {'squat': ExerciseProgression()}
        logs = [make_log(NOW, sets=[CompletedSet('squat', 50, 10)])]
        result = analyzer.analyze(logs, profile, progressions, now=NOW)
        assert result.stalled_exercises == ['squat']


class TestDurationCheck:
    def test_long_sessions(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d), duration=80) for d in (1, 2, 3)]
        result = analyzer.analyze(logs, profile, now=NOW)
        rec = next(r for r in result.recommendations if r.type == RecommendationType.TIME)
        assert rec.description == "Your sessions last 80 minutes on average"
        assert rec.priority == Priority.LOW

    def test_within_allowance(self, analyzer, profile):
        logs = [make_log(NOW - timedelta(days=d), duration=72) for d in (1, 2, 3)]
        result = analyzer.analyze(logs, profile, now=NOW)
        assert RecommendationType.TIME not in types_of(result.recommendations)


class TestIntensityCheck:
    """Intensity preference and the per-exercise adjustment."""

    def test_high_preference_flags_easy_exercises(self, analyzer, profile):
        progressions = {
            'bench_press': progression_with_rirs([3, 3, 3]),
            'squat': progression_with_rirs([1, 0, 1]),
            'curl': progression_with_rirs([2, 2, 2], IntensityLevel.MODERATE),
        }
        result = analyzer.analyze([make_log(NOW)], profile, progressions, now=NOW)
        types = types_of(result.recommendations)

        assert RecommendationType.INTENSITY in types
        assert result.flagged_exercises == ['Bench Press']
        adjustment = next(r for r in result.recommendations
                          if r.type == RecommendationType.INTENSITY_ADJUSTMENT)
        assert adjustment.description == "Consider increasing the intensity of: Bench Press"

    def test_flagged_names_limited(self, analyzer, profile):
        progressions = {f'ex{i}': progression_with_rirs([4]) for i in range(5)}
        result = analyzer.analyze([make_log(NOW)], profile, progressions, now=NOW)
        assert result.flagged_exercises == ['ex0', 'ex1', 'ex2']

    def test_low_preference_counts_zero_rir(self, analyzer, profile):
        progressions = {
            'squat': progression_with_rirs([0, 0, 5], IntensityLevel.LOW),
        }
        result = analyzer.analyze([make_log(NOW)], profile, progressions, now=NOW)
        assert result.flagged_exercises == ['Back Squat']
        adjustment = next(r for r in result.recommendations
                          if r.type == RecommendationType.INTENSITY_ADJUSTMENT)
        assert adjustment.description.startswith("Consider reducing")

    def test_only_latest_history_window(self, analyzer, profile):
        progressions = {'squat': progression_with_rirs([1, 1, 1, 5, 5, 5])}
        result = analyzer.analyze([make_log(NOW)], profile, progressions, now=NOW)
        assert result.flagged_exercises == []
        assert RecommendationType.INTENSITY_ADJUSTMENT not in types_of(result.recommendations)

    def test_moderate_preference_silent(self, analyzer, profile):
        progressions = {'squat': progression_with_rirs([5, 5, 5], IntensityLevel.MODERATE)}
        result = analyzer.analyze([make_log(NOW)], profile, progressions, now=NOW)
        assert RecommendationType.INTENSITY not in types_of(result.recommendations)

    def test_aggregate_ties_prefer_low(self):
        progressions = {
            'a': ExerciseProgression(preferred_intensity=IntensityLevel.HIGH),
            'b': ExerciseProgression(preferred_intensity=IntensityLevel.LOW),
        }
        assert aggregate_intensity_preference(progressions) == IntensityLevel.LOW

    def test_aggregate_without_records(self):
        assert aggregate_intensity_preference({}) == IntensityLevel.MODERATE


class TestTimingAndSchedule:
    def test_preferred_time(self, analyzer, profile):
        logs = [make_log(datetime(2024, 3, d, 7, 0)) for d in (11, 12, 13)]
        result = analyzer.analyze(logs, profile, now=NOW)
        timing = next(r for r in result.recommendations if r.type == RecommendationType.TIMING)
        assert "morning" in timing.description
        assert result.patterns.preferred_time_of_day == 'morning'

    def test_time_tie_prefers_earlier_bucket(self, profile):
        logs = [make_log(datetime(2024, 3, 14, 19, 0)), make_log(datetime(2024, 3, 13, 7, 0))]
        patterns = compute_training_patterns(logs, profile, NOW)
        assert patterns.preferred_time_of_day == 'morning'

    def test_preferred_days(self, analyzer, profile):
        logs = [
            make_log(datetime(2024, 3, 15, 10, 0)),   # Friday
            make_log(datetime(2024, 3, 13, 10, 0)),   # Wednesday
            make_log(datetime(2024, 3, 11, 10, 0)),   # Monday
            make_log(datetime(2024, 3, 4, 10, 0)),    # Monday
        ]
        result = analyzer.analyze(logs, profile, now=NOW)
        assert result.patterns.preferred_days_of_week == ['monday', 'friday', 'wednesday']
        schedule = next(r for r in result.recommendations
                        if r.type == RecommendationType.SCHEDULE)
        assert schedule.description == "Your preferred training days are: Monday, Friday, Wednesday"


class TestEmissionOrder:
    """Every check fires in a fixed order."""

    @pytest.fixture
    def logs(self):
        return [
            make_log(NOW - timedelta(days=d), duration=90, fatigue={'legs': 9},
                     sets=[CompletedSet('squat', 100, 5)])
            for d in (1, 2, 3)
        ]

    @pytest.fixture
    def progressions(self):
        return {'squat': progression_with_rirs([4, 4, 4])}

    def test_emission_order(self, analyzer, logs, progressions):
        profile = UserTrainingProfile(frequency=5, available_time=60)
        result = analyzer.analyze(logs, profile, progressions, now=NOW)
        assert types_of(result.recommendations) == [
            RecommendationType.RECOVERY,
            RecommendationType.CONSISTENCY,
            RecommendationType.PROGRESSION,
            RecommendationType.TIME,
            RecommendationType.INTENSITY,
            RecommendationType.INTENSITY_ADJUSTMENT,
            RecommendationType.TIMING,
            RecommendationType.SCHEDULE,
        ]

    def test_engine_ranks_by_priority(self, analyzer, logs, progressions):
        profile = UserTrainingProfile(frequency=5, available_time=60)
        recs = RecommendationEngine(analyzer).recommend(logs, profile, progressions, now=NOW)
        assert types_of(recs) == [
            RecommendationType.RECOVERY,
            RecommendationType.CONSISTENCY,
            RecommendationType.PROGRESSION,
            RecommendationType.INTENSITY,
            RecommendationType.INTENSITY_ADJUSTMENT,
            RecommendationType.TIME,
            RecommendationType.TIMING,
            RecommendationType.SCHEDULE,
        ]

    def test_inputs_not_modified(self, analyzer, logs, progressions):
        before_logs = [log.to_dict() for log in logs]
        before_progressions = copy.deepcopy(progressions)
        analyzer.analyze(logs, UserTrainingProfile(), progressions, now=NOW)
        assert [log.to_dict() for log in logs] == before_logs
        assert progressions == before_progressions


# =============================================================================
# Pattern and Style Inference
# =============================================================================

class TestTrainingPatterns:
    """Tests for compute_training_patterns and the consistency score."""

    def test_average_duration_rounds_half_up(self, profile):
        logs = [make_log(NOW - timedelta(days=1), duration=60),
                make_log(NOW - timedelta(days=2), duration=61)]
        assert compute_training_patterns(logs, profile, NOW).average_session_duration == 61

    def test_consistency_score(self):
        logs = [make_log(NOW - timedelta(days=d)) for d in range(6)]
        logs += [make_log(NOW - timedelta(days=40)), make_log(NOW - timedelta(days=45))]
        assert calculate_consistency_score(logs, 3, NOW) == 50

    def test_consistency_month_boundary(self):
        logs = [make_log(datetime(2024, 2, 15, 20, 0))]
        assert calculate_consistency_score(logs, 1, NOW) == 25

    def test_consistency_capped(self):
        logs = [make_log(NOW - timedelta(days=d)) for d in range(6)]
        assert calculate_consistency_score(logs, 1, NOW) == 100

    def test_consistency_without_plan(self):
        assert calculate_consistency_score([make_log(NOW)], 0, NOW) == 0

    def test_previous_kept_without_logs(self, profile):
        previous = TrainingPatterns('evening', 45, 80, ['monday'])
        assert compute_training_patterns([], profile, NOW, previous) is previous


class TestTrainingStyle:
    """Tests for compute_training_style."""

    @pytest.mark.parametrize("n_sets,expected", [(4, 'low'), (10, 'moderate'), (14, 'high')])
    def test_volume_from_sets_per_group(self, n_sets, expected):
        logs = [make_log(NOW, sets=[CompletedSet('bench_press', 80, 8)] * n_sets)]
        assert compute_training_style(logs, {}, CATALOG).volume_preference == expected

    def test_volume_averaged_over_groups(self):
        logs = [make_log(NOW, sets=[CompletedSet('squat', 100, 5)] * 6)]
        assert compute_training_style(logs, {}, CATALOG).volume_preference == 'low'

    def test_volume_unchanged_without_catalog_match(self):
        logs = [make_log(NOW, sets=[CompletedSet('unknown', 80, 8)] * 2)]
        previous = TrainingStyle(volume_preference='high')
        assert compute_training_style(logs, {}, CATALOG, previous).volume_preference == 'high'

    @pytest.mark.parametrize("rest,expected", [(45, 'short'), (90, 'moderate'), (150, 'long')])
    def test_rest_preference(self, rest, expected):
        logs = [make_log(NOW, sets=[CompletedSet('squat', 100, 5, rest_seconds=rest)])]
        assert compute_training_style(logs, {}).rest_period_preference == expected

    def test_rest_unchanged_without_data(self):
        previous = TrainingStyle(rest_period_preference='long')
        logs = [make_log(NOW, sets=[CompletedSet('squat', 100, 5)])]
        assert compute_training_style(logs, {}, previous=previous).rest_period_preference == 'long'

    def test_previous_not_modified(self):
        previous = TrainingStyle()
        logs = [make_log(NOW, sets=[CompletedSet('squat', 100, 5, rest_seconds=30)])]
        compute_training_style(logs, {}, previous=previous)
        assert previous.rest_period_preference == 'moderate'


# =============================================================================
# Ranking
# =============================================================================

class TestRanking:
    """Tests for rank_recommendations and filter_by_priority."""

    @pytest.fixture
    def recommendations(self):
        return [
            Recommendation(RecommendationType.TIMING, 'A', '', Priority.LOW),
            Recommendation(RecommendationType.RECOVERY, 'B', '', Priority.HIGH),
            Recommendation(RecommendationType.CONSISTENCY, 'C', '', Priority.MEDIUM),
            Recommendation(RecommendationType.RECOVERY, 'D', '', Priority.HIGH),
        ]

    def test_stable_priority_order(self, recommendations):
        ranked = rank_recommendations(recommendations)
        assert [r.title for r in ranked] == ['B', 'D', 'C', 'A']

    def test_input_order_untouched(self, recommendations):
        rank_recommendations(recommendations)
        assert [r.title for r in recommendations] == ['A', 'B', 'C', 'D']

    def test_filter_by_priority(self, recommendations):
        kept = filter_by_priority(recommendations, 'medium')
        assert [r.title for r in kept] == ['B', 'C', 'D']
        assert len(filter_by_priority(recommendations)) == 4
        assert [r.title for r in filter_by_priority(recommendations, Priority.HIGH)] == ['B', 'D']

    def test_to_dict(self, recommendations):
        assert recommendations[1].to_dict() == {
            'type': 'recovery', 'title': 'B', 'description': '', 'priority': 'high',
        }
