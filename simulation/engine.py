"""
Simulation Engine: Week-by-week execution of a training program.

Simulates a trainee following a generated program, feeding every logged
session through the adaptive update cycle and analysing the accumulated
history at the end of each week.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Dict, Any
import logging
import numpy as np
from copy import deepcopy

from engine.analyzer import FatigueAndPatternAnalyzer, Priority, RecommendationType
from engine.catalog import DEFAULT_CATALOG, PeriodizationCatalog
from engine.logs import WorkoutLog
from engine.params import EngineParams
from engine.program import ProgramStructure, generate_program
from engine.recommendations import RecommendationEngine
from engine.state import TrainingAlgorithmData, ingest_log, refresh_algorithm_data
from data.synthetic import SAMPLE_EXERCISES, TraineeProfile, generate_week_logs

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = date(2024, 1, 1)


@dataclass
class WeeklySnapshot:
    """Snapshot of training state at the end of one week."""
    week: int
    phase: str
    is_deload: bool
    volume_multiplier: float
    intensity_multiplier: float
    sessions_planned: int
    sessions_completed: int
    volume_load: float                # Sum of weight x reps
    mean_rir: float
    consistency_score: int
    stalled_exercises: int
    high_fatigue_groups: List[str] = field(default_factory=list)
    recommendation_types: List[str] = field(default_factory=list)
    high_priority_count: int = 0


@dataclass
class SimulationResult:
    """Complete results from one simulation run."""
    profile_id: str
    profile_name: str
    params: EngineParams
    program: ProgramStructure
    weeks: List[WeeklySnapshot]
    final_state: TrainingAlgorithmData

    # Adherence metrics
    total_sessions_planned: int
    total_sessions_completed: int
    compliance: float
    mean_consistency_score: float

    # Adaptation metrics
    strength_gain_ratio: float        # Mean best / first logged weight
    recovery_flag_weeks: int          # Weeks with a recovery recommendation
    final_intensity_preference: str
    final_volume_preference: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for analysis."""
        return {
            'profile_id': self.profile_id,
            'profile_name': self.profile_name,
            'program_type': self.program.type.value,
            'sessions_planned': self.total_sessions_planned,
            'sessions_completed': self.total_sessions_completed,
            'compliance': self.compliance,
            'mean_consistency_score': self.mean_consistency_score,
            'strength_gain_ratio': self.strength_gain_ratio,
            'recovery_flag_weeks': self.recovery_flag_weeks,
            'final_intensity_preference': self.final_intensity_preference,
            'final_volume_preference': self.final_volume_preference,
            'weeks_simulated': len(self.weeks),
        }

    def get_volume_load_trajectory(self) -> np.ndarray:
        """Get array of weekly volume load."""
        return np.array([w.volume_load for w in self.weeks])

    def get_consistency_trajectory(self) -> np.ndarray:
        """Get array of end-of-week consistency scores."""
        return np.array([w.consistency_score for w in self.weeks])

    def get_recommendation_counts(self) -> np.ndarray:
        """Get array of recommendation counts per week."""
        return np.array([len(w.recommendation_types) for w in self.weeks])


def _strength_gain_ratio(logs: List[WorkoutLog], state: TrainingAlgorithmData) -> float:
    first_weights: Dict[str, float] = {}
    for log in sorted(logs, key=lambda l: l.date):
        for s in log.completed_sets:
            if s.weight and s.effective_exercise_id not in first_weights:
                first_weights[s.effective_exercise_id] = s.weight

    ratios = [
        state.exercise_progressions[ex].best_weight / w
        for ex, w in first_weights.items()
        if ex in state.exercise_progressions
    ]
    return float(np.mean(ratios)) if ratios else 1.0


class SimulationEngine:
    """
    Engine for running programs against synthetic trainees.

    Every logged session goes through ingest_log; at the end of each week
    the state is refreshed and the full history analysed.
    """

    def __init__(
        self,
        params: Optional[EngineParams] = None,
        catalog: Optional[PeriodizationCatalog] = None,
        verbose: bool = False
    ):
        """
        Initialize simulation engine.

        Args:
            params: Engine parameters (uses defaults if None)
            catalog: Periodization catalog for generated programs
            verbose: Print progress during simulation
        """
        self.params = params or EngineParams()
        self.catalog = catalog or DEFAULT_CATALOG
        self.verbose = verbose
        self.recommender = RecommendationEngine(
            FatigueAndPatternAnalyzer(self.params, SAMPLE_EXERCISES)
        )

    def run_simulation(
        self,
        program: ProgramStructure,
        profile: TraineeProfile,
        start_date: Optional[date] = None,
        seed: Optional[int] = None,
        compliance_rate: Optional[float] = None
    ) -> SimulationResult:
        """
        Run a full program for a trainee.

        Args:
            program: Program to follow
            profile: Trainee profile to simulate
            start_date: First day of the program if it carries no dates
            seed: Random seed for reproducibility
            compliance_rate: Overrides the trainee's compliance if given

        Returns:
            SimulationResult with complete data
        """
        if seed is not None:
            np.random.seed(seed)

        # Make a copy to avoid mutating original
        profile = deepcopy(profile)
        profile.loads = profile.starting_loads()
        first_day = program.start_date or start_date or DEFAULT_START_DATE

        state = TrainingAlgorithmData.default(profile.id)
        all_logs: List[WorkoutLog] = []
        weekly_snapshots = []

        if self.verbose:
            print(f"Simulating {profile.name}: {program.type.value}, "
                  f"{program.duration_weeks} weeks x {program.frequency_per_week}/week")

        for week, meso, micro in program.iter_weeks():
            week_logs = generate_week_logs(program, week, profile, first_day, compliance_rate)

            for log in week_logs:
                state = ingest_log(state, log, self.params)
            all_logs.extend(week_logs)

            week_end = datetime.combine(first_day + timedelta(weeks=week, days=-1), time(23, 59))
            if all_logs:
                state = refresh_algorithm_data(
                    state, all_logs, profile.training, SAMPLE_EXERCISES,
                    self.params, now=week_end, apply_latest=False,
                )

            analysis = self.recommender.analyze(
                all_logs, profile.training, state.exercise_progressions, now=week_end
            )

            rirs = [s.rir for log in week_logs for s in log.completed_sets if s.rir is not None]
            snapshot = WeeklySnapshot(
                week=week,
                phase=meso.phase.value,
                is_deload=micro.is_deload,
                volume_multiplier=micro.volume_multiplier,
                intensity_multiplier=micro.intensity_multiplier,
                sessions_planned=len(micro.sessions),
                sessions_completed=len(week_logs),
                volume_load=float(sum(
                    (s.weight or 0) * (s.reps or 0)
                    for log in week_logs for s in log.completed_sets
                )),
                mean_rir=float(np.mean(rirs)) if rirs else 0.0,
                consistency_score=analysis.patterns.consistency_score,
                stalled_exercises=len(analysis.stalled_exercises),
                high_fatigue_groups=list(analysis.high_fatigue_groups),
                recommendation_types=[r.type.value for r in analysis.recommendations],
                high_priority_count=sum(
                    1 for r in analysis.recommendations if r.priority == Priority.HIGH
                ),
            )
            weekly_snapshots.append(snapshot)

            if self.verbose and week % 4 == 1:
                print(f"  Week {week}: {snapshot.sessions_completed}/{snapshot.sessions_planned} "
                      f"sessions, consistency={snapshot.consistency_score}, "
                      f"recs={len(snapshot.recommendation_types)}")

        logger.debug("Simulated %s: %d logs over %d weeks",
                     profile.id, len(all_logs), len(weekly_snapshots))
        return self._calculate_summary(profile, program, weekly_snapshots, state, all_logs)

    def _calculate_summary(
        self,
        profile: TraineeProfile,
        program: ProgramStructure,
        weeks: List[WeeklySnapshot],
        state: TrainingAlgorithmData,
        logs: List[WorkoutLog]
    ) -> SimulationResult:
        """Calculate summary metrics from weekly data."""
        planned = sum(w.sessions_planned for w in weeks)
        completed = sum(w.sessions_completed for w in weeks)
        recovery_weeks = sum(
            1 for w in weeks if RecommendationType.RECOVERY.value in w.recommendation_types
        )

        return SimulationResult(
            profile_id=profile.id,
            profile_name=profile.name,
            params=self.params,
            program=program,
            weeks=weeks,
            final_state=state,
            total_sessions_planned=planned,
            total_sessions_completed=completed,
            compliance=completed / planned if planned else 0.0,
            mean_consistency_score=float(np.mean([w.consistency_score for w in weeks])),
            strength_gain_ratio=_strength_gain_ratio(logs, state),
            recovery_flag_weeks=recovery_weeks,
            final_intensity_preference=state.preferred_training_style.intensity_preference,
            final_volume_preference=state.preferred_training_style.volume_preference,
        )

    def run_for_profile(
        self,
        profile: TraineeProfile,
        goal: str = 'hypertrophy',
        duration_weeks: int = 12,
        start_date: Optional[date] = None,
        seed: Optional[int] = None
    ) -> SimulationResult:
        """Generate the recommended program for a trainee and simulate it."""
        from engine.catalog import recommend_periodization_type

        program = generate_program(
            recommend_periodization_type(profile.level, goal),
            profile.level, goal, duration_weeks, profile.training.frequency,
            start_date=start_date, catalog=self.catalog,
        )
        return self.run_simulation(program, profile, start_date, seed)

    def run_batch(
        self,
        profiles: List[TraineeProfile],
        goal: str = 'hypertrophy',
        duration_weeks: int = 12,
        seed: Optional[int] = None
    ) -> List[SimulationResult]:
        """
        Run simulations for multiple profiles.

        Args:
            profiles: List of trainee profiles
            goal: Training goal used to pick each program
            duration_weeks: Program length
            seed: Base random seed

        Returns:
            List of SimulationResult objects
        """
        results = []
        for i, profile in enumerate(profiles):
            profile_seed = seed + i if seed is not None else None
            results.append(self.run_for_profile(
                profile, goal, duration_weeks, seed=profile_seed
            ))
        return results


def aggregate_results(results: List[SimulationResult]) -> Dict[str, Any]:
    """
    Aggregate metrics across multiple simulation results.

    Args:
        results: List of SimulationResult objects

    Returns:
        Dictionary of aggregated metrics
    """
    if not results:
        return {}

    n = len(results)
    compliance = [r.compliance for r in results]
    consistency = [r.mean_consistency_score for r in results]
    gains = [r.strength_gain_ratio for r in results]
    recovery = [r.recovery_flag_weeks for r in results]

    return {
        'n_simulations': n,

        # Adherence
        'mean_compliance': float(np.mean(compliance)),
        'min_compliance': float(np.min(compliance)),
        'mean_consistency_score': float(np.mean(consistency)),

        # Adaptation
        'mean_strength_gain': float(np.mean(gains)),
        'std_strength_gain': float(np.std(gains)),

        # Fatigue
        'mean_recovery_flag_weeks': float(np.mean(recovery)),
        'pct_with_recovery_flag': sum(1 for r in recovery if r > 0) / n * 100,
    }


if __name__ == '__main__':
    print("Testing simulation engine...")

    from data.synthetic import generate_trainee_profiles

    profiles = generate_trainee_profiles(5, seed=42)
    engine = SimulationEngine(verbose=True)

    print("\n" + "=" * 60)
    result = engine.run_for_profile(profiles[0], duration_weeks=8, seed=42)

    print(f"\nResults for {result.profile_name}:")
    print(f"  Compliance: {result.compliance:.0%}")
    print(f"  Mean consistency: {result.mean_consistency_score:.0f}")
    print(f"  Strength gain: {result.strength_gain_ratio:.2f}x")
    print(f"  Recovery flags: {result.recovery_flag_weeks} weeks")

    print("\n" + "=" * 60)
    print("Running batch simulation...")
    batch_results = engine.run_batch(profiles, duration_weeks=8, seed=42)

    agg = aggregate_results(batch_results)
    print("\nAggregate Results:")
    for key, value in agg.items():
        if isinstance(value, float):
            print(f"  {key}: {value:.2f}")
        else:
            print(f"  {key}: {value}")
