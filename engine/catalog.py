"""
Periodization Catalog: Static knowledge base of periodization strategies.

Each strategy describes the order of training phases within a macrocycle,
how volume and intensity move across the weeks of a mesocycle, and how
often a deload week is scheduled.

The table is immutable and loaded once at import; consumers receive it
through a PeriodizationCatalog instance rather than reaching for a global.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Union
import logging

from .errors import ConfigNotFound

logger = logging.getLogger(__name__)


class PeriodizationType(Enum):
    """Named periodization strategies."""
    LINEAR = "linear"
    UNDULATING = "undulating"
    BLOCK = "block"
    CONJUGATE = "conjugate"
    DAILY_UNDULATING = "daily-undulating"
    WEEKLY_UNDULATING = "weekly-undulating"


class TrainingPhase(Enum):
    """Phase tag of a mesocycle."""
    HYPERTROPHY = "hypertrophy"
    STRENGTH = "strength"
    POWER = "power"
    ENDURANCE = "endurance"
    DELOAD = "deload"


class ProgressionPattern(Enum):
    """Shape of the week-to-week volume or intensity curve."""
    ASCENDING = "ascending"
    DESCENDING = "descending"
    WAVE = "wave"
    STEP = "step"
    CONSTANT = "constant"


class TrainingLevel(Enum):
    """Trainee experience classification."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ELITE = "elite"


class TrainingGoal(Enum):
    """Primary training goal."""
    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
    POWER = "power"
    ENDURANCE = "endurance"
    WEIGHT_LOSS = "weight_loss"
    GENERAL_FITNESS = "general_fitness"


@dataclass(frozen=True)
class PeriodizationConfig:
    """
    Shape parameters of one periodization strategy.

    phases_sequence is cycled over the mesocycles of a program;
    deload_frequency_weeks is interpreted against 4-week mesocycles.
    """
    type: PeriodizationType
    name: str
    phases_sequence: Tuple[TrainingPhase, ...]
    volume_pattern: ProgressionPattern
    intensity_pattern: ProgressionPattern
    deload_frequency_weeks: int
    recommended_levels: FrozenSet[TrainingLevel] = field(default_factory=frozenset)
    best_suited_goals: FrozenSet[TrainingGoal] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self):
        if not self.phases_sequence:
            raise ValueError(f"{self.type.value}: phases_sequence must not be empty")
        if self.deload_frequency_weeks < 1:
            raise ValueError(
                f"{self.type.value}: deload_frequency_weeks must be >= 1, "
                f"got {self.deload_frequency_weeks}"
            )

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            'type': self.type.value,
            'name': self.name,
            'phases_sequence': [p.value for p in self.phases_sequence],
            'volume_pattern': self.volume_pattern.value,
            'intensity_pattern': self.intensity_pattern.value,
            'deload_frequency_weeks': self.deload_frequency_weeks,
            'recommended_levels': sorted(l.value for l in self.recommended_levels),
            'best_suited_goals': sorted(g.value for g in self.best_suited_goals),
            'description': self.description,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# STRATEGY TABLE
# ═══════════════════════════════════════════════════════════════════════════════

_H = TrainingPhase.HYPERTROPHY
_S = TrainingPhase.STRENGTH
_P = TrainingPhase.POWER
_E = TrainingPhase.ENDURANCE
_D = TrainingPhase.DELOAD

PERIODIZATION_CONFIGS: Mapping[PeriodizationType, PeriodizationConfig] = MappingProxyType({
    PeriodizationType.LINEAR: PeriodizationConfig(
        type=PeriodizationType.LINEAR,
        name="Linear",
        phases_sequence=(_H, _S, _P, _D),
        volume_pattern=ProgressionPattern.DESCENDING,
        intensity_pattern=ProgressionPattern.ASCENDING,
        deload_frequency_weeks=4,
        recommended_levels=frozenset({TrainingLevel.BEGINNER, TrainingLevel.INTERMEDIATE}),
        best_suited_goals=frozenset({TrainingGoal.HYPERTROPHY, TrainingGoal.STRENGTH}),
        description="Volume falls while intensity rises from phase to phase",
    ),
    PeriodizationType.UNDULATING: PeriodizationConfig(
        type=PeriodizationType.UNDULATING,
        name="Undulating",
        phases_sequence=(_H, _S, _H, _P, _D),
        volume_pattern=ProgressionPattern.WAVE,
        intensity_pattern=ProgressionPattern.WAVE,
        deload_frequency_weeks=8,
        recommended_levels=frozenset({TrainingLevel.INTERMEDIATE, TrainingLevel.ADVANCED}),
        best_suited_goals=frozenset({
            TrainingGoal.GENERAL_FITNESS, TrainingGoal.WEIGHT_LOSS, TrainingGoal.POWER,
        }),
        description="Volume and intensity oscillate within each mesocycle",
    ),
    PeriodizationType.BLOCK: PeriodizationConfig(
        type=PeriodizationType.BLOCK,
        name="Block",
        phases_sequence=(_H, _S, _P, _D),
        volume_pattern=ProgressionPattern.DESCENDING,
        intensity_pattern=ProgressionPattern.ASCENDING,
        deload_frequency_weeks=12,
        recommended_levels=frozenset({TrainingLevel.ADVANCED, TrainingLevel.ELITE}),
        best_suited_goals=frozenset({TrainingGoal.HYPERTROPHY, TrainingGoal.POWER}),
        description="Concentrated blocks of one quality, deload every third block",
    ),
    PeriodizationType.CONJUGATE: PeriodizationConfig(
        type=PeriodizationType.CONJUGATE,
        name="Conjugate",
        phases_sequence=(_S, _P, _H, _D),
        volume_pattern=ProgressionPattern.CONSTANT,
        intensity_pattern=ProgressionPattern.STEP,
        deload_frequency_weeks=4,
        recommended_levels=frozenset({TrainingLevel.ELITE}),
        best_suited_goals=frozenset({TrainingGoal.STRENGTH, TrainingGoal.POWER}),
        description="Max-effort and dynamic-effort work trained concurrently",
    ),
    PeriodizationType.DAILY_UNDULATING: PeriodizationConfig(
        type=PeriodizationType.DAILY_UNDULATING,
        name="Daily Undulating",
        phases_sequence=(_H, _S, _P, _D),
        volume_pattern=ProgressionPattern.WAVE,
        intensity_pattern=ProgressionPattern.STEP,
        deload_frequency_weeks=6,
        recommended_levels=frozenset({TrainingLevel.ADVANCED, TrainingLevel.ELITE}),
        best_suited_goals=frozenset({
            TrainingGoal.STRENGTH, TrainingGoal.HYPERTROPHY, TrainingGoal.ENDURANCE,
        }),
        description="Loading targets change from session to session",
    ),
    PeriodizationType.WEEKLY_UNDULATING: PeriodizationConfig(
        type=PeriodizationType.WEEKLY_UNDULATING,
        name="Weekly Undulating",
        phases_sequence=(_H, _E, _S, _D),
        volume_pattern=ProgressionPattern.STEP,
        intensity_pattern=ProgressionPattern.STEP,
        deload_frequency_weeks=5,
        recommended_levels=frozenset({TrainingLevel.BEGINNER, TrainingLevel.INTERMEDIATE}),
        best_suited_goals=frozenset({
            TrainingGoal.ENDURANCE, TrainingGoal.WEIGHT_LOSS, TrainingGoal.GENERAL_FITNESS,
        }),
        description="Loading targets alternate from week to week",
    ),
})


def _enum_value(value) -> str:
    """Return the string value of an Enum member or plain string."""
    return value.value if isinstance(value, Enum) else str(value)


def coerce_periodization_type(value: Union[PeriodizationType, str]) -> PeriodizationType:
    """
    Convert a string to a PeriodizationType.

    Raises:
        ConfigNotFound: If the value names no known strategy
    """
    if isinstance(value, PeriodizationType):
        return value
    try:
        return PeriodizationType(value)
    except ValueError:
        raise ConfigNotFound(value) from None


class PeriodizationCatalog:
    """
    Read-only lookup over periodization strategies.

    Wraps PERIODIZATION_CONFIGS by default; a custom mapping can be injected
    for experiments or tests.
    """

    def __init__(self, configs: Optional[Mapping[PeriodizationType, PeriodizationConfig]] = None):
        self._configs = MappingProxyType(dict(configs if configs is not None else PERIODIZATION_CONFIGS))

    def __contains__(self, periodization_type) -> bool:
        try:
            return coerce_periodization_type(periodization_type) in self._configs
        except ConfigNotFound:
            return False

    def __iter__(self):
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)

    def get_config(self, periodization_type: Union[PeriodizationType, str]) -> PeriodizationConfig:
        """
        Get the configuration for a strategy.

        Args:
            periodization_type: Strategy enum member or its string value

        Returns:
            PeriodizationConfig

        Raises:
            ConfigNotFound: If the strategy is not in this catalog
        """
        key = coerce_periodization_type(periodization_type)
        if key not in self._configs:
            raise ConfigNotFound(key.value)
        return self._configs[key]

    def configs_for_level(self, level: Union[TrainingLevel, str]) -> List[PeriodizationConfig]:
        """Strategies that list the level among their recommended levels."""
        value = _enum_value(level)
        return [
            c for c in self._configs.values()
            if value in {l.value for l in c.recommended_levels}
        ]

    def configs_for_goal(self, goal: Union[TrainingGoal, str]) -> List[PeriodizationConfig]:
        """Strategies that list the goal among their best-suited goals."""
        value = _enum_value(goal)
        return [
            c for c in self._configs.values()
            if value in {g.value for g in c.best_suited_goals}
        ]


DEFAULT_CATALOG = PeriodizationCatalog()


def get_config(
    periodization_type: Union[PeriodizationType, str],
    catalog: Optional[PeriodizationCatalog] = None
) -> PeriodizationConfig:
    """Look up a strategy in the given catalog (default catalog if None)."""
    return (catalog or DEFAULT_CATALOG).get_config(periodization_type)


def recommend_periodization_type(
    level: Union[TrainingLevel, str],
    goal: Union[TrainingGoal, str]
) -> PeriodizationType:
    """
    Recommend a periodization strategy for a trainee.

    Decision table (first matching branch wins):
        elite:        strength/power -> conjugate, else daily-undulating
        advanced:     hypertrophy -> block, strength -> daily-undulating,
                      else undulating
        intermediate: hypertrophy/strength -> linear, else weekly-undulating
    Any other level is treated as intermediate.

    Args:
        level: Training level (enum or string)
        goal: Training goal (enum or string)

    Returns:
        Recommended PeriodizationType
    """
    level_value = _enum_value(level)
    goal_value = _enum_value(goal)

    if level_value == TrainingLevel.ELITE.value:
        if goal_value in (TrainingGoal.STRENGTH.value, TrainingGoal.POWER.value):
            return PeriodizationType.CONJUGATE
        return PeriodizationType.DAILY_UNDULATING

    if level_value == TrainingLevel.ADVANCED.value:
        if goal_value == TrainingGoal.HYPERTROPHY.value:
            return PeriodizationType.BLOCK
        if goal_value == TrainingGoal.STRENGTH.value:
            return PeriodizationType.DAILY_UNDULATING
        return PeriodizationType.UNDULATING

    # Intermediate and fallback for any other level
    if goal_value in (TrainingGoal.HYPERTROPHY.value, TrainingGoal.STRENGTH.value):
        return PeriodizationType.LINEAR
    return PeriodizationType.WEEKLY_UNDULATING


if __name__ == '__main__':
    print("Periodization catalog")
    print("-" * 60)
    for config in DEFAULT_CATALOG:
        phases = " -> ".join(p.value for p in config.phases_sequence)
        print(f"{config.name:18s} deload/{config.deload_frequency_weeks}wk  {phases}")

    print("\nRecommendations:")
    for level in TrainingLevel:
        for goal in (TrainingGoal.STRENGTH, TrainingGoal.HYPERTROPHY, TrainingGoal.ENDURANCE):
            rec = recommend_periodization_type(level, goal)
            print(f"  {level.value:12s} {goal.value:12s} -> {rec.value}")
