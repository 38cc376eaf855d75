"""
Tests for periodization strategies and program generation.

Tests cover:
1. Catalog lookup and immutability
2. Strategy recommendation decision table
3. Program structure (mesocycle split, deload placement)
4. Volume/intensity multipliers
5. Session split, targets and dates
6. Mesocycle patching and formatting

Run with: python -m pytest tests/test_periodization.py -v
"""

import math
import pytest
from datetime import date

from engine.catalog import (
    PeriodizationCatalog,
    PeriodizationConfig,
    PeriodizationType,
    ProgressionPattern,
    TrainingGoal,
    TrainingLevel,
    TrainingPhase,
    PERIODIZATION_CONFIGS,
    DEFAULT_CATALOG,
    get_config,
    recommend_periodization_type,
)
from engine.errors import ConfigNotFound, InvalidDuration
from engine.program import (
    ProgramStructure,
    ProgramStructureGenerator,
    calculate_intensity_multiplier,
    calculate_pattern_multiplier,
    calculate_volume_multiplier,
    format_program,
    generate_program,
    replace_mesocycle_phase,
)


# =============================================================================
# Catalog Tests
# =============================================================================

class TestCatalog:
    """Tests for the periodization strategy table."""

    def test_all_strategies_present(self):
        assert len(DEFAULT_CATALOG) == 6
        for ptype in PeriodizationType:
            assert ptype in DEFAULT_CATALOG

    def test_lookup_by_string(self):
        config = get_config('linear')
        assert config.type == PeriodizationType.LINEAR
        assert config.phases_sequence == (
            TrainingPhase.HYPERTROPHY, TrainingPhase.STRENGTH,
            TrainingPhase.POWER, TrainingPhase.DELOAD,
        )

    def test_lookup_by_hyphenated_value(self):
        assert get_config('daily-undulating').type == PeriodizationType.DAILY_UNDULATING

    def test_unknown_type_raises(self):
        with pytest.raises(ConfigNotFound) as exc:
            get_config('zigzag')
        assert exc.value.periodization_type == 'zigzag'

    def test_config_not_found_is_value_error(self):
        with pytest.raises(ValueError):
            get_config('zigzag')

    def test_unknown_type_not_contained(self):
        assert 'zigzag' not in DEFAULT_CATALOG

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            PERIODIZATION_CONFIGS[PeriodizationType.LINEAR] = None

    def test_empty_phase_sequence_rejected(self):
        with pytest.raises(ValueError):
            PeriodizationConfig(
                type=PeriodizationType.LINEAR, name="Empty", phases_sequence=(),
                volume_pattern=ProgressionPattern.CONSTANT,
                intensity_pattern=ProgressionPattern.CONSTANT,
                deload_frequency_weeks=4,
            )

    def test_non_positive_deload_frequency_rejected(self):
        with pytest.raises(ValueError):
            PeriodizationConfig(
                type=PeriodizationType.LINEAR, name="Bad",
                phases_sequence=(TrainingPhase.STRENGTH,),
                volume_pattern=ProgressionPattern.CONSTANT,
                intensity_pattern=ProgressionPattern.CONSTANT,
                deload_frequency_weeks=0,
            )

    def test_every_config_valid(self):
        for config in DEFAULT_CATALOG:
            assert config.phases_sequence
            assert config.deload_frequency_weeks > 0

    def test_configs_for_level(self):
        types = {c.type for c in DEFAULT_CATALOG.configs_for_level('elite')}
        assert PeriodizationType.CONJUGATE in types
        assert PeriodizationType.LINEAR not in types

    def test_configs_for_goal(self):
        types = {c.type for c in DEFAULT_CATALOG.configs_for_goal(TrainingGoal.STRENGTH)}
        assert PeriodizationType.LINEAR in types
        assert PeriodizationType.CONJUGATE in types

    def test_injected_catalog_is_isolated(self):
        custom = PeriodizationCatalog({
            PeriodizationType.LINEAR: PERIODIZATION_CONFIGS[PeriodizationType.LINEAR],
        })
        assert len(custom) == 1
        with pytest.raises(ConfigNotFound):
            custom.get_config('block')


class TestRecommendation:
    """Tests for the strategy decision table."""

    @pytest.mark.parametrize("level,goal,expected", [
        ('elite', 'strength', PeriodizationType.CONJUGATE),
        ('elite', 'power', PeriodizationType.CONJUGATE),
        ('elite', 'hypertrophy', PeriodizationType.DAILY_UNDULATING),
        ('advanced', 'hypertrophy', PeriodizationType.BLOCK),
        ('advanced', 'strength', PeriodizationType.DAILY_UNDULATING),
        ('advanced', 'endurance', PeriodizationType.UNDULATING),
        ('intermediate', 'hypertrophy', PeriodizationType.LINEAR),
        ('intermediate', 'strength', PeriodizationType.LINEAR),
        ('intermediate', 'weight_loss', PeriodizationType.WEEKLY_UNDULATING),
        ('beginner', 'strength', PeriodizationType.LINEAR),
        ('beginner', 'endurance', PeriodizationType.WEEKLY_UNDULATING),
    ])
    def test_decision_table(self, level, goal, expected):
        assert recommend_periodization_type(level, goal) == expected

    def test_accepts_enums(self):
        rec = recommend_periodization_type(TrainingLevel.ELITE, TrainingGoal.POWER)
        assert rec == PeriodizationType.CONJUGATE


# =============================================================================
# Multiplier Tests
# =============================================================================

class TestMultipliers:
    """Tests for weekly load multipliers."""

    def test_ascending(self):
        assert calculate_pattern_multiplier(1, 4, ProgressionPattern.ASCENDING) == pytest.approx(0.9)
        assert calculate_pattern_multiplier(4, 4, ProgressionPattern.ASCENDING) == pytest.approx(1.2)

    def test_descending(self):
        assert calculate_pattern_multiplier(1, 4, ProgressionPattern.DESCENDING) == pytest.approx(1.1)
        assert calculate_pattern_multiplier(4, 4, ProgressionPattern.DESCENDING) == pytest.approx(0.8)

    def test_wave_peaks_mid_block(self):
        assert calculate_pattern_multiplier(2, 4, ProgressionPattern.WAVE) == pytest.approx(1.2)
        expected = 0.9 + math.sin(0.25 * math.pi) * 0.3
        assert calculate_pattern_multiplier(1, 4, ProgressionPattern.WAVE) == pytest.approx(expected)

    def test_step_alternates(self):
        assert calculate_pattern_multiplier(1, 4, ProgressionPattern.STEP) == 1.1
        assert calculate_pattern_multiplier(2, 4, ProgressionPattern.STEP) == 0.9

    def test_constant(self):
        assert calculate_pattern_multiplier(3, 4, ProgressionPattern.CONSTANT) == 1.0

    def test_deload_overrides_pattern(self):
        for pattern in ProgressionPattern:
            assert calculate_volume_multiplier(4, 4, pattern, True) == 0.6
            assert calculate_intensity_multiplier(4, 4, pattern, True) == 0.7


# =============================================================================
# Program Generation Tests
# =============================================================================

class TestProgramGeneration:
    """Tests for program calendar generation."""

    @pytest.fixture
    def linear_program(self):
        return generate_program('linear', 'intermediate', 'hypertrophy', 12, 4)

    def test_linear_twelve_weeks(self, linear_program):
        assert len(linear_program.mesocycles) == 3
        assert [m.phase for m in linear_program.mesocycles] == [
            TrainingPhase.HYPERTROPHY, TrainingPhase.STRENGTH, TrainingPhase.POWER,
        ]
        assert [m.duration_weeks for m in linear_program.mesocycles] == [4, 4, 4]
        assert all(m.includes_deload for m in linear_program.mesocycles)
        assert linear_program.deload_weeks == [4, 8, 12]

    def test_first_week_multipliers(self, linear_program):
        week1 = linear_program.mesocycles[0].microcycles[0]
        assert week1.volume_multiplier == pytest.approx(1.1)
        assert week1.intensity_multiplier == pytest.approx(0.9)

    def test_deload_week_multipliers(self, linear_program):
        for meso in linear_program.mesocycles:
            deload = meso.microcycles[-1]
            assert deload.is_deload
            assert deload.volume_multiplier == 0.6
            assert deload.intensity_multiplier == 0.7

    def test_phase_levels(self, linear_program):
        levels = [(m.volume_level, m.intensity_level) for m in linear_program.mesocycles]
        assert levels == [(8, 6), (6, 8), (4, 9)]

    @pytest.mark.parametrize("weeks", [1, 3, 4, 5, 7, 10, 13, 26])
    def test_durations_sum_to_program_length(self, weeks):
        program = generate_program('undulating', 'advanced', 'endurance', weeks, 3)
        assert sum(m.duration_weeks for m in program.mesocycles) == weeks
        assert sum(len(m.microcycles) for m in program.mesocycles) == weeks

    def test_last_mesocycle_absorbs_remainder(self):
        program = generate_program('linear', 'beginner', 'strength', 10, 3)
        assert [m.duration_weeks for m in program.mesocycles] == [4, 6]

    def test_short_program_single_mesocycle(self):
        program = generate_program('linear', 'beginner', 'strength', 3, 3)
        assert len(program.mesocycles) == 1
        assert program.mesocycles[0].duration_weeks == 3

    def test_single_trailing_deload(self):
        for ptype in PeriodizationType:
            program = generate_program(ptype, 'advanced', 'strength', 24, 4)
            for meso in program.mesocycles:
                flags = [m.is_deload for m in meso.microcycles]
                if meso.includes_deload:
                    assert flags.count(True) == 1
                    assert flags[-1]
                else:
                    assert not any(flags)

    def test_undulating_deload_cadence(self):
        # deload every 8 weeks -> every second mesocycle
        program = generate_program('undulating', 'advanced', 'endurance', 16, 3)
        assert [m.includes_deload for m in program.mesocycles] == [False, True, False, True]
        assert program.deload_weeks == [8, 16]

    def test_block_deload_cadence_and_deload_phase(self):
        program = generate_program('block', 'advanced', 'hypertrophy', 16, 4)
        assert program.mesocycles[3].phase == TrainingPhase.DELOAD
        assert [m.includes_deload for m in program.mesocycles] == [False, False, True, True]

    def test_phases_cycle(self):
        program = generate_program('linear', 'intermediate', 'strength', 24, 3)
        phases = [m.phase for m in program.mesocycles]
        assert phases[4] == TrainingPhase.HYPERTROPHY
        assert phases[3] == TrainingPhase.DELOAD

    def test_cadence_below_one_mesocycle_never_deloads(self):
        config = PeriodizationConfig(
            type=PeriodizationType.LINEAR, name="Short cadence",
            phases_sequence=(TrainingPhase.HYPERTROPHY, TrainingPhase.STRENGTH),
            volume_pattern=ProgressionPattern.CONSTANT,
            intensity_pattern=ProgressionPattern.CONSTANT,
            deload_frequency_weeks=2,
        )
        catalog = PeriodizationCatalog({PeriodizationType.LINEAR: config})
        program = generate_program('linear', 'beginner', 'strength', 8, 3, catalog=catalog)
        assert program.deload_weeks == []

    def test_cadence_floors_to_whole_mesocycles(self):
        # 6-week and 5-week frequencies both floor to every mesocycle
        program = generate_program('daily-undulating', 'elite', 'hypertrophy', 12, 4)
        assert [m.includes_deload for m in program.mesocycles] == [True, True, True]
        assert program.deload_weeks == [4, 8, 12]

        program = generate_program('weekly-undulating', 'advanced', 'strength', 8, 4)
        assert [m.includes_deload for m in program.mesocycles] == [True, True]
        assert program.deload_weeks == [4, 8]

    def test_wave_and_step_patterns(self):
        program = generate_program('conjugate', 'elite', 'power', 4, 4)
        micros = program.mesocycles[0].microcycles
        assert [m.volume_multiplier for m in micros[:3]] == [1.0, 1.0, 1.0]
        assert [m.intensity_multiplier for m in micros[:3]] == [1.1, 0.9, 1.1]

    def test_deterministic(self):
        a = generate_program('block', 'elite', 'hypertrophy', 20, 5)
        b = generate_program('block', 'elite', 'hypertrophy', 20, 5)
        assert a.to_dict() == b.to_dict()

    def test_stores_request(self, linear_program):
        assert linear_program.type == PeriodizationType.LINEAR
        assert linear_program.level == 'intermediate'
        assert linear_program.goal == 'hypertrophy'
        assert linear_program.frequency_per_week == 4

    @pytest.mark.parametrize("weeks,frequency", [(0, 3), (-4, 3), (12, 0), (12, 8)])
    def test_invalid_requests(self, weeks, frequency):
        with pytest.raises(InvalidDuration):
            generate_program('linear', 'beginner', 'strength', weeks, frequency)

    def test_unknown_type(self):
        with pytest.raises(ConfigNotFound):
            generate_program('zigzag', 'beginner', 'strength', 12, 3)

    def test_dict_round_trip(self, linear_program):
        restored = ProgramStructure.from_dict(linear_program.to_dict())
        assert restored == linear_program


class TestSessions:
    """Tests for the weekly session split."""

    def test_three_day_split(self):
        program = generate_program('linear', 'beginner', 'strength', 4, 3)
        sessions = program.mesocycles[0].microcycles[0].sessions
        assert [s.day_of_week for s in sessions] == [1, 2, 3]
        assert [s.focus for s in sessions] == [
            ('chest', 'shoulders', 'arms'), ('back', 'arms'), ('legs', 'core'),
        ]

    def test_six_day_split_repeats(self):
        program = generate_program('linear', 'advanced', 'strength', 4, 6)
        focus = [s.focus for s in program.mesocycles[0].microcycles[0].sessions]
        assert focus[:3] == focus[3:]

    @pytest.mark.parametrize("frequency", [1, 2, 7])
    def test_other_frequencies_full_body(self, frequency):
        program = generate_program('linear', 'beginner', 'strength', 4, frequency)
        sessions = program.mesocycles[0].microcycles[0].sessions
        assert len(sessions) == frequency
        assert all(s.focus == ('full_body',) for s in sessions)

    def test_targets(self):
        program = generate_program('linear', 'beginner', 'strength', 4, 3)
        micros = program.mesocycles[0].microcycles
        assert all((s.rpe_target, s.rir_target) == (8, 1) for s in micros[0].sessions)
        assert all((s.rpe_target, s.rir_target) == (6, 3) for s in micros[-1].sessions)

    def test_no_dates_without_start(self):
        program = generate_program('linear', 'beginner', 'strength', 4, 3)
        assert all(s.date is None for _, _, m in program.iter_weeks() for s in m.sessions)

    def test_dates_from_start(self):
        program = generate_program('linear', 'beginner', 'strength', 8, 3,
                                   start_date=date(2024, 1, 1))
        assert program.mesocycles[0].microcycles[1].sessions[2].date == date(2024, 1, 10)
        # Week 5 opens the second mesocycle
        assert program.mesocycles[1].microcycles[0].sessions[0].date == date(2024, 1, 29)

    def test_total_sessions(self):
        program = generate_program('linear', 'beginner', 'strength', 10, 3)
        assert program.total_sessions == 30


# =============================================================================
# Patching and Formatting
# =============================================================================

class TestReplaceMesocyclePhase:
    """Tests for patching one mesocycle."""

    @pytest.fixture
    def program(self):
        return generate_program('undulating', 'advanced', 'endurance', 16, 3,
                                start_date=date(2024, 1, 1))

    def test_replaces_phase_and_levels(self, program):
        patched = replace_mesocycle_phase(program, 2, 'power')
        meso = patched.mesocycles[1]
        assert meso.phase == TrainingPhase.POWER
        assert (meso.volume_level, meso.intensity_level) == (4, 9)

    def test_original_untouched(self, program):
        before = program.to_dict()
        replace_mesocycle_phase(program, 2, TrainingPhase.POWER)
        assert program.to_dict() == before

    def test_other_mesocycles_unchanged(self, program):
        patched = replace_mesocycle_phase(program, 2, 'power')
        for i in (0, 2, 3):
            assert patched.mesocycles[i].to_dict() == program.mesocycles[i].to_dict()

    def test_deload_phase_forces_deload_week(self, program):
        assert not program.mesocycles[0].includes_deload
        patched = replace_mesocycle_phase(program, 1, 'deload')
        meso = patched.mesocycles[0]
        assert meso.includes_deload
        assert meso.microcycles[-1].is_deload

    def test_dates_preserved(self, program):
        patched = replace_mesocycle_phase(program, 3, 'strength')
        assert patched.mesocycles[2].microcycles[0].sessions[0].date == date(2024, 2, 26)

    @pytest.mark.parametrize("position", [0, 5])
    def test_unknown_position(self, program, position):
        with pytest.raises(InvalidDuration):
            replace_mesocycle_phase(program, position, 'power')

    def test_generator_method(self, program):
        patched = ProgramStructureGenerator().replace_mesocycle_phase(program, 1, 'strength')
        assert patched.mesocycles[0].phase == TrainingPhase.STRENGTH


class TestFormatProgram:
    def test_contains_calendar(self):
        text = format_program(generate_program('linear', 'intermediate', 'hypertrophy', 8, 4))
        assert "Mesocycle 1: hypertrophy" in text
        assert "Mesocycle 2: strength" in text
        assert "DELOAD" in text
        assert "Week  8" in text
