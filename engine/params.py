"""
Engine Parameters: Tunable thresholds for adaptive programming.

Every threshold used by the progression tracker, the fatigue/pattern analyzer
and the goal model lives here so a deployment can override them from a JSON
file without touching code.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class EngineParams:
    """
    Tunable parameters for log analysis and state updates.

    Durations are in minutes unless noted, rest times in seconds,
    recovery values in hours.
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # WINDOWS
    # ═══════════════════════════════════════════════════════════════════════════

    recent_log_window: int = 10          # Logs used for fatigue and duration checks
    consistency_window_days: int = 7     # Trailing window for the weekly count
    history_limit: int = 10              # Max history entries per exercise
    rir_history_window: int = 3          # History entries averaged for RIR checks

    # ═══════════════════════════════════════════════════════════════════════════
    # FATIGUE AND SESSION LENGTH
    # ═══════════════════════════════════════════════════════════════════════════

    high_fatigue_threshold: float = 20.0   # Summed fatigue above this: recover
    long_session_factor: float = 1.2       # Avg duration > available * factor

    # ═══════════════════════════════════════════════════════════════════════════
    # INTENSITY PREFERENCE
    # ═══════════════════════════════════════════════════════════════════════════

    high_intensity_max_rir: int = 1        # RIR <= this: high intensity
    moderate_intensity_max_rir: int = 3    # RIR <= this: moderate, else low
    intensity_rir_threshold: float = 2.0   # Avg RIR compared against preference
    max_flagged_exercises: int = 3         # Exercises named per adjustment

    # ═══════════════════════════════════════════════════════════════════════════
    # MUSCLE GROUP RECOVERY (hours)
    # ═══════════════════════════════════════════════════════════════════════════

    recovery_default_hours: float = 48.0
    recovery_min_hours: float = 24.0
    recovery_max_hours: float = 96.0
    recovery_increase_hours: float = 12.0  # Applied when fatigue is high
    recovery_decrease_hours: float = 6.0   # Applied when fatigue is low
    recovery_high_fatigue: float = 7.0     # Reported fatigue above this
    recovery_low_fatigue: float = 4.0      # Reported fatigue below this

    # ═══════════════════════════════════════════════════════════════════════════
    # STYLE INFERENCE
    # ═══════════════════════════════════════════════════════════════════════════

    low_volume_sets: float = 8.0       # Avg sets per muscle group below: low
    high_volume_sets: float = 12.0     # Avg sets per muscle group above: high
    short_rest_seconds: float = 60.0
    long_rest_seconds: float = 120.0

    # ═══════════════════════════════════════════════════════════════════════════
    # GOALS
    # ═══════════════════════════════════════════════════════════════════════════

    urgent_goal_days: int = 7

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EngineParams':
        """Create parameters from dictionary."""
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if min(self.recent_log_window, self.consistency_window_days,
               self.history_limit, self.rir_history_window) < 1:
            issues.append("Windows and limits must be >= 1")

        if self.high_fatigue_threshold < 0:
            issues.append("Fatigue threshold must be non-negative")

        if self.long_session_factor < 1.0:
            issues.append("Long session factor must be >= 1.0")

        if not (0 <= self.high_intensity_max_rir < self.moderate_intensity_max_rir):
            issues.append("RIR bands: 0 <= high max < moderate max")

        if not (0 < self.recovery_min_hours <= self.recovery_default_hours
                <= self.recovery_max_hours):
            issues.append("Recovery hours: 0 < min <= default <= max")

        if self.recovery_low_fatigue > self.recovery_high_fatigue:
            issues.append("Recovery fatigue levels: low <= high")

        if self.low_volume_sets > self.high_volume_sets:
            issues.append("Volume sets: low <= high")

        if self.short_rest_seconds > self.long_rest_seconds:
            issues.append("Rest seconds: short <= long")

        if self.max_flagged_exercises < 1:
            issues.append("Max flagged exercises must be >= 1")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


PARAM_DESCRIPTIONS = {
    'recent_log_window': "Most recent logs used for fatigue and duration checks",
    'consistency_window_days': "Days counted for the weekly consistency check",
    'history_limit': "History entries kept per exercise",
    'rir_history_window': "Latest history entries averaged for RIR alignment",
    'high_fatigue_threshold': "Summed muscle-group fatigue that triggers recovery",
    'long_session_factor': "Multiplier on available time before sessions count as long",
    'high_intensity_max_rir': "Highest RIR classified as high intensity",
    'moderate_intensity_max_rir': "Highest RIR classified as moderate intensity",
    'intensity_rir_threshold': "Average RIR compared against the intensity preference",
    'max_flagged_exercises': "Exercises named in one intensity adjustment",
    'recovery_default_hours': "Recovery hours for a muscle group seen for the first time",
    'recovery_min_hours': "Lower bound for muscle-group recovery hours",
    'recovery_max_hours': "Upper bound for muscle-group recovery hours",
    'recovery_increase_hours': "Hours added after a high-fatigue session",
    'recovery_decrease_hours': "Hours removed after a low-fatigue session",
    'recovery_high_fatigue': "Reported fatigue above which recovery grows",
    'recovery_low_fatigue': "Reported fatigue below which recovery shrinks",
    'low_volume_sets': "Average sets per muscle group below which volume is low",
    'high_volume_sets': "Average sets per muscle group above which volume is high",
    'short_rest_seconds': "Mean rest below which rest preference is short",
    'long_rest_seconds': "Mean rest above which rest preference is long",
    'urgent_goal_days': "Days before a deadline at which a goal becomes urgent",
}


def load_params(path) -> EngineParams:
    """
    Load parameters from a JSON file.

    Keys missing from the file keep their defaults.

    Args:
        path: Path to a JSON object of parameter overrides

    Returns:
        EngineParams

    Raises:
        ValueError: If the loaded parameters fail validation
    """
    with open(path) as f:
        overrides = json.load(f)

    params = EngineParams.from_dict({**EngineParams().to_dict(), **overrides})
    valid, message = params.validate()
    if not valid:
        raise ValueError(f"Invalid engine parameters in {path}: {message}")

    logger.debug("Loaded %d parameter overrides from %s", len(overrides), path)
    return params


def save_params(params: EngineParams, path) -> Path:
    """Write parameters to a JSON file."""
    path = Path(path)
    with open(path, 'w') as f:
        json.dump(params.to_dict(), f, indent=2)
    return path
