"""
Program Structure Generator: Expands a periodization strategy into a calendar.

A program is a macrocycle split into mesocycles (nominally 4 weeks each),
each mesocycle into weekly microcycles, and each microcycle into sessions.
Every week carries volume and intensity multipliers derived from the
strategy's progression patterns; the final week of a deload-flagged
mesocycle is the deload week.

Generation is deterministic: identical arguments always produce an
identical structure. No wall-clock time is read; session dates are only
filled in when the caller supplies a start date.
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import copy
import logging
import math

from .catalog import (
    DEFAULT_CATALOG,
    PeriodizationCatalog,
    PeriodizationConfig,
    PeriodizationType,
    ProgressionPattern,
    TrainingGoal,
    TrainingLevel,
    TrainingPhase,
    _enum_value,
    coerce_periodization_type,
)
from .errors import InvalidDuration

logger = logging.getLogger(__name__)


WEEKS_PER_MESOCYCLE = 4

# (volume level, intensity level) on a 0-10 scale
PHASE_LEVELS: Dict[TrainingPhase, Tuple[int, int]] = {
    TrainingPhase.HYPERTROPHY: (8, 6),
    TrainingPhase.STRENGTH: (6, 8),
    TrainingPhase.POWER: (4, 9),
    TrainingPhase.ENDURANCE: (7, 5),
    TrainingPhase.DELOAD: (3, 4),
}
DEFAULT_PHASE_LEVELS = (5, 5)

DELOAD_VOLUME_MULTIPLIER = 0.6
DELOAD_INTENSITY_MULTIPLIER = 0.7

FULL_BODY_FOCUS = ("full_body",)

# Muscle-group focus per session, keyed by sessions per week
SPLIT_FOCUS: Dict[int, List[Tuple[str, ...]]] = {
    3: [
        ("chest", "shoulders", "arms"),
        ("back", "arms"),
        ("legs", "core"),
    ],
    4: [
        ("chest", "back", "shoulders"),
        ("legs", "core"),
        ("chest", "back", "arms"),
        ("legs", "core"),
    ],
    5: [
        ("chest",),
        ("back",),
        ("legs",),
        ("shoulders",),
        ("arms", "core"),
    ],
    6: [
        ("chest", "shoulders", "arms"),
        ("back", "arms"),
        ("legs", "core"),
        ("chest", "shoulders", "arms"),
        ("back", "arms"),
        ("legs", "core"),
    ],
}

STANDARD_RPE_TARGET = 8
STANDARD_RIR_TARGET = 1
DELOAD_RPE_TARGET = 6
DELOAD_RIR_TARGET = 3


@dataclass
class Session:
    """A single training day within a microcycle."""
    day_of_week: int                 # 1-7
    focus: Tuple[str, ...]           # Muscle-group tags
    rpe_target: int
    rir_target: int
    date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'day_of_week': self.day_of_week,
            'focus': list(self.focus),
            'rpe_target': self.rpe_target,
            'rir_target': self.rir_target,
            'date': self.date.isoformat() if self.date else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Session':
        return cls(
            day_of_week=d['day_of_week'],
            focus=tuple(d['focus']),
            rpe_target=d['rpe_target'],
            rir_target=d['rir_target'],
            date=date.fromisoformat(d['date']) if d.get('date') else None,
        )


@dataclass
class Microcycle:
    """One training week."""
    week_number: int                 # 1-based within its mesocycle
    is_deload: bool
    volume_multiplier: float
    intensity_multiplier: float
    sessions: List[Session] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'week_number': self.week_number,
            'is_deload': self.is_deload,
            'volume_multiplier': self.volume_multiplier,
            'intensity_multiplier': self.intensity_multiplier,
            'sessions': [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Microcycle':
        return cls(
            week_number=d['week_number'],
            is_deload=d['is_deload'],
            volume_multiplier=d['volume_multiplier'],
            intensity_multiplier=d['intensity_multiplier'],
            sessions=[Session.from_dict(s) for s in d.get('sessions', [])],
        )


@dataclass
class Mesocycle:
    """A block of weeks sharing one training phase."""
    phase: TrainingPhase
    position: int                    # 1-based
    duration_weeks: int
    includes_deload: bool
    volume_level: int                # 0-10
    intensity_level: int             # 0-10
    microcycles: List[Microcycle] = field(default_factory=list)

    @property
    def deload_week(self) -> Optional[Microcycle]:
        """The deload microcycle, if any."""
        for micro in self.microcycles:
            if micro.is_deload:
                return micro
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'phase': self.phase.value,
            'position': self.position,
            'duration_weeks': self.duration_weeks,
            'includes_deload': self.includes_deload,
            'volume_level': self.volume_level,
            'intensity_level': self.intensity_level,
            'microcycles': [m.to_dict() for m in self.microcycles],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Mesocycle':
        return cls(
            phase=TrainingPhase(d['phase']),
            position=d['position'],
            duration_weeks=d['duration_weeks'],
            includes_deload=d['includes_deload'],
            volume_level=d['volume_level'],
            intensity_level=d['intensity_level'],
            microcycles=[Microcycle.from_dict(m) for m in d.get('microcycles', [])],
        )


@dataclass
class ProgramStructure:
    """
    Root of a generated training calendar (the macrocycle).

    A value object: edits produce a new structure rather than mutating
    this one (see replace_mesocycle_phase).
    """
    type: PeriodizationType
    level: str
    goal: str
    duration_weeks: int
    frequency_per_week: int
    mesocycles: List[Mesocycle] = field(default_factory=list)
    start_date: Optional[date] = None

    @property
    def total_sessions(self) -> int:
        return sum(len(micro.sessions) for _, _, micro in self.iter_weeks())

    @property
    def deload_weeks(self) -> List[int]:
        """Program-wide week numbers (1-based) that are deload weeks."""
        return [week for week, _, micro in self.iter_weeks() if micro.is_deload]

    def iter_weeks(self) -> Iterator[Tuple[int, Mesocycle, Microcycle]]:
        """Yield (program week number, mesocycle, microcycle) in calendar order."""
        week = 0
        for meso in self.mesocycles:
            for micro in meso.microcycles:
                week += 1
                yield week, meso, micro

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'type': self.type.value,
            'level': self.level,
            'goal': self.goal,
            'duration_weeks': self.duration_weeks,
            'frequency_per_week': self.frequency_per_week,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'mesocycles': [m.to_dict() for m in self.mesocycles],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ProgramStructure':
        """Create a program from its dictionary form."""
        return cls(
            type=PeriodizationType(d['type']),
            level=d['level'],
            goal=d['goal'],
            duration_weeks=d['duration_weeks'],
            frequency_per_week=d['frequency_per_week'],
            mesocycles=[Mesocycle.from_dict(m) for m in d.get('mesocycles', [])],
            start_date=date.fromisoformat(d['start_date']) if d.get('start_date') else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# MULTIPLIERS
# ═══════════════════════════════════════════════════════════════════════════════

def calculate_pattern_multiplier(
    week: int,
    total_weeks: int,
    pattern: ProgressionPattern
) -> float:
    """
    Calculate the load multiplier for a week from a progression pattern.

    Formulas (w = week, t = total weeks):
        ascending:  0.8 + (w/t) * 0.4
        descending: 1.2 - (w/t) * 0.4
        wave:       0.9 + sin((w/t) * pi) * 0.3
        step:       0.9 if w is even else 1.1
        constant:   1.0

    Args:
        week: 1-based week number within the mesocycle
        total_weeks: Weeks in the mesocycle
        pattern: Progression pattern

    Returns:
        Multiplier applied to baseline volume or intensity
    """
    position = week / total_weeks

    if pattern == ProgressionPattern.ASCENDING:
        return 0.8 + position * 0.4
    if pattern == ProgressionPattern.DESCENDING:
        return 1.2 - position * 0.4
    if pattern == ProgressionPattern.WAVE:
        return 0.9 + math.sin(position * math.pi) * 0.3
    if pattern == ProgressionPattern.STEP:
        return 0.9 if week % 2 == 0 else 1.1
    return 1.0


def calculate_volume_multiplier(
    week: int,
    total_weeks: int,
    pattern: ProgressionPattern,
    is_deload: bool
) -> float:
    """Volume multiplier for a week; deload weeks are fixed at 0.6."""
    if is_deload:
        return DELOAD_VOLUME_MULTIPLIER
    return calculate_pattern_multiplier(week, total_weeks, pattern)


def calculate_intensity_multiplier(
    week: int,
    total_weeks: int,
    pattern: ProgressionPattern,
    is_deload: bool
) -> float:
    """Intensity multiplier for a week; deload weeks are fixed at 0.7."""
    if is_deload:
        return DELOAD_INTENSITY_MULTIPLIER
    return calculate_pattern_multiplier(week, total_weeks, pattern)


# ═══════════════════════════════════════════════════════════════════════════════
# STRUCTURE BUILDING
# ═══════════════════════════════════════════════════════════════════════════════

def get_session_focus(frequency_per_week: int, session_index: int) -> Tuple[str, ...]:
    """Muscle-group focus for the n-th session of the week (0-based)."""
    split = SPLIT_FOCUS.get(frequency_per_week)
    if split is None:
        return FULL_BODY_FOCUS
    return split[session_index]


def mesocycle_includes_deload(
    index: int,
    phase: TrainingPhase,
    config: PeriodizationConfig
) -> bool:
    """
    Whether the mesocycle at a 0-based index carries a deload week.

    The deload cadence is the strategy's deload frequency floor-divided by
    the nominal mesocycle length. A cadence of zero never matches.
    """
    if phase == TrainingPhase.DELOAD:
        return True
    cadence = config.deload_frequency_weeks // WEEKS_PER_MESOCYCLE
    if cadence == 0:
        return False
    return (index + 1) % cadence == 0


def _build_sessions(
    frequency_per_week: int,
    is_deload: bool,
    week_start: Optional[date]
) -> List[Session]:
    sessions = []
    for k in range(frequency_per_week):
        day = k + 1
        sessions.append(Session(
            day_of_week=day,
            focus=get_session_focus(frequency_per_week, k),
            rpe_target=DELOAD_RPE_TARGET if is_deload else STANDARD_RPE_TARGET,
            rir_target=DELOAD_RIR_TARGET if is_deload else STANDARD_RIR_TARGET,
            date=week_start + timedelta(days=day - 1) if week_start else None,
        ))
    return sessions


def _build_mesocycle(
    index: int,
    phase: TrainingPhase,
    duration_weeks: int,
    config: PeriodizationConfig,
    frequency_per_week: int,
    first_week_start: Optional[date]
) -> Mesocycle:
    volume_level, intensity_level = PHASE_LEVELS.get(phase, DEFAULT_PHASE_LEVELS)
    includes_deload = mesocycle_includes_deload(index, phase, config)

    microcycles = []
    for j in range(duration_weeks):
        week = j + 1
        is_deload = (j == duration_weeks - 1) and includes_deload
        week_start = first_week_start + timedelta(weeks=j) if first_week_start else None

        microcycles.append(Microcycle(
            week_number=week,
            is_deload=is_deload,
            volume_multiplier=calculate_volume_multiplier(
                week, duration_weeks, config.volume_pattern, is_deload
            ),
            intensity_multiplier=calculate_intensity_multiplier(
                week, duration_weeks, config.intensity_pattern, is_deload
            ),
            sessions=_build_sessions(frequency_per_week, is_deload, week_start),
        ))

    return Mesocycle(
        phase=phase,
        position=index + 1,
        duration_weeks=duration_weeks,
        includes_deload=includes_deload,
        volume_level=volume_level,
        intensity_level=intensity_level,
        microcycles=microcycles,
    )


def _validate_request(duration_weeks: int, frequency_per_week: int):
    if duration_weeks < 1:
        raise InvalidDuration(f"duration_weeks must be >= 1, got {duration_weeks}")
    if frequency_per_week < 1:
        raise InvalidDuration(f"frequency_per_week must be >= 1, got {frequency_per_week}")
    if frequency_per_week > 7:
        raise InvalidDuration(f"frequency_per_week must be <= 7, got {frequency_per_week}")


class ProgramStructureGenerator:
    """
    Builds ProgramStructure calendars from catalog strategies.

    The catalog is injected so alternative strategy tables can be used
    without touching the default one.
    """

    def __init__(self, catalog: Optional[PeriodizationCatalog] = None):
        self.catalog = catalog or DEFAULT_CATALOG

    def generate(
        self,
        periodization_type: Union[PeriodizationType, str],
        level: Union[TrainingLevel, str],
        goal: Union[TrainingGoal, str],
        duration_weeks: int,
        frequency_per_week: int,
        start_date: Optional[date] = None
    ) -> ProgramStructure:
        """
        Generate a complete program.

        Args:
            periodization_type: Strategy to expand
            level: Trainee level (stored on the program)
            goal: Training goal (stored on the program)
            duration_weeks: Total program length in weeks (>= 1)
            frequency_per_week: Sessions per week (1-7)
            start_date: Date of the first session (optional)

        Returns:
            ProgramStructure

        Raises:
            ConfigNotFound: Unknown strategy
            InvalidDuration: Duration or frequency out of range
        """
        _validate_request(duration_weeks, frequency_per_week)
        config = self.catalog.get_config(periodization_type)

        if frequency_per_week not in SPLIT_FOCUS:
            logger.warning(
                "No split table for %d sessions/week, using full-body sessions",
                frequency_per_week,
            )

        mesocycle_count = max(1, duration_weeks // WEEKS_PER_MESOCYCLE)
        phases = config.phases_sequence

        mesocycles = []
        weeks_so_far = 0
        for i in range(mesocycle_count):
            phase = phases[i % len(phases)]
            if i == mesocycle_count - 1:
                meso_weeks = duration_weeks - WEEKS_PER_MESOCYCLE * (mesocycle_count - 1)
            else:
                meso_weeks = WEEKS_PER_MESOCYCLE

            first_week_start = (
                start_date + timedelta(weeks=weeks_so_far) if start_date else None
            )
            mesocycles.append(_build_mesocycle(
                i, phase, meso_weeks, config, frequency_per_week, first_week_start
            ))
            weeks_so_far += meso_weeks

        program = ProgramStructure(
            type=config.type,
            level=_enum_value(level),
            goal=_enum_value(goal),
            duration_weeks=duration_weeks,
            frequency_per_week=frequency_per_week,
            mesocycles=mesocycles,
            start_date=start_date,
        )

        logger.debug(
            "Generated %s program: %d weeks, %d mesocycles, deload weeks %s",
            config.type.value, duration_weeks, mesocycle_count, program.deload_weeks,
        )
        return program

    def replace_mesocycle_phase(
        self,
        program: ProgramStructure,
        position: int,
        phase: Union[TrainingPhase, str]
    ) -> ProgramStructure:
        """
        Rebuild one mesocycle with a different phase.

        The other mesocycles are copied unchanged; the original program is
        not modified.

        Args:
            program: Program to patch
            position: 1-based mesocycle position
            phase: New phase for that mesocycle

        Returns:
            New ProgramStructure

        Raises:
            InvalidDuration: If no mesocycle has that position
        """
        if not 1 <= position <= len(program.mesocycles):
            raise InvalidDuration(
                f"Mesocycle position {position} outside 1..{len(program.mesocycles)}"
            )

        phase = TrainingPhase(_enum_value(phase))
        config = self.catalog.get_config(program.type)
        old = program.mesocycles[position - 1]

        first_week_start = None
        if program.start_date:
            weeks_before = sum(m.duration_weeks for m in program.mesocycles[:position - 1])
            first_week_start = program.start_date + timedelta(weeks=weeks_before)

        rebuilt = _build_mesocycle(
            position - 1, phase, old.duration_weeks, config,
            program.frequency_per_week, first_week_start,
        )

        mesocycles = copy.deepcopy(program.mesocycles)
        mesocycles[position - 1] = rebuilt
        return replace(program, mesocycles=mesocycles)


def generate_program(
    periodization_type: Union[PeriodizationType, str],
    level: Union[TrainingLevel, str],
    goal: Union[TrainingGoal, str],
    duration_weeks: int,
    frequency_per_week: int,
    start_date: Optional[date] = None,
    catalog: Optional[PeriodizationCatalog] = None
) -> ProgramStructure:
    """Generate a program with the given (or default) catalog."""
    return ProgramStructureGenerator(catalog).generate(
        coerce_periodization_type(periodization_type),
        level, goal, duration_weeks, frequency_per_week, start_date,
    )


def replace_mesocycle_phase(
    program: ProgramStructure,
    position: int,
    phase: Union[TrainingPhase, str],
    catalog: Optional[PeriodizationCatalog] = None
) -> ProgramStructure:
    """Patch one mesocycle of a program; see ProgramStructureGenerator."""
    return ProgramStructureGenerator(catalog).replace_mesocycle_phase(program, position, phase)


def format_program(program: ProgramStructure) -> str:
    """
    Format a program as readable text.

    Args:
        program: Generated program

    Returns:
        Formatted string
    """
    lines = [
        f"{program.type.value.replace('-', ' ').title()} program - "
        f"{program.level} / {program.goal}",
        "=" * 60,
        f"Duration: {program.duration_weeks} weeks, "
        f"{program.frequency_per_week} sessions/week",
        "",
    ]

    for week, meso, micro in program.iter_weeks():
        if micro.week_number == 1:
            deload = " (includes deload)" if meso.includes_deload else ""
            lines.append(
                f"Mesocycle {meso.position}: {meso.phase.value} - "
                f"{meso.duration_weeks} wk, vol {meso.volume_level}/10, "
                f"int {meso.intensity_level}/10{deload}"
            )
        tag = "  DELOAD" if micro.is_deload else ""
        lines.append(
            f"  Week {week:2d}: volume x{micro.volume_multiplier:.2f}, "
            f"intensity x{micro.intensity_multiplier:.2f}{tag}"
        )

    return "\n".join(lines)


if __name__ == '__main__':
    program = generate_program(
        PeriodizationType.LINEAR, 'intermediate', 'hypertrophy',
        duration_weeks=12, frequency_per_week=4,
    )
    print(format_program(program))
