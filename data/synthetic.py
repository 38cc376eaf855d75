"""
Synthetic workout log generation for simulation.

Generates trainee profiles and program-following workout logs with:
- Trainee archetypes (novice, time-crunched, overreacher, plateaued, ...)
- Session compliance (missed sessions)
- Load progression that follows the program's multipliers
- RIR drift around the program's targets
- Self-reported muscle-group fatigue
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple
import numpy as np

from engine.catalog import TrainingLevel, TrainingPhase
from engine.logs import CompletedSet, ExerciseInfo, UserTrainingProfile, WorkoutLog
from engine.program import Microcycle, ProgramStructure, Session


# ═══════════════════════════════════════════════════════════════════════════════
# EXERCISE LIBRARY
# ═══════════════════════════════════════════════════════════════════════════════

SAMPLE_EXERCISES: Dict[str, ExerciseInfo] = {
    info.id: info for info in [
        ExerciseInfo('bench_press', 'Bench Press', ('chest', 'shoulders', 'arms')),
        ExerciseInfo('incline_db_press', 'Incline Dumbbell Press', ('chest', 'shoulders')),
        ExerciseInfo('barbell_row', 'Barbell Row', ('back', 'arms')),
        ExerciseInfo('pull_up', 'Pull-up', ('back', 'arms')),
        ExerciseInfo('back_squat', 'Back Squat', ('legs', 'core')),
        ExerciseInfo('romanian_deadlift', 'Romanian Deadlift', ('legs', 'back')),
        ExerciseInfo('overhead_press', 'Overhead Press', ('shoulders', 'arms')),
        ExerciseInfo('lateral_raise', 'Lateral Raise', ('shoulders',)),
        ExerciseInfo('barbell_curl', 'Barbell Curl', ('arms',)),
        ExerciseInfo('triceps_pushdown', 'Triceps Pushdown', ('arms',)),
        ExerciseInfo('plank', 'Plank', ('core',)),
        ExerciseInfo('hanging_leg_raise', 'Hanging Leg Raise', ('core',)),
    ]
}

# Exercises trained for each session focus tag, in prescription order
FOCUS_EXERCISES: Dict[str, Tuple[str, ...]] = {
    'chest': ('bench_press', 'incline_db_press'),
    'back': ('barbell_row', 'pull_up'),
    'legs': ('back_squat', 'romanian_deadlift'),
    'shoulders': ('overhead_press', 'lateral_raise'),
    'arms': ('barbell_curl', 'triceps_pushdown'),
    'core': ('plank', 'hanging_leg_raise'),
    'full_body': ('back_squat', 'bench_press', 'barbell_row', 'overhead_press'),
}

# Starting working weight (kg) for an intermediate trainee
BASE_LOADS: Dict[str, float] = {
    'bench_press': 70.0,
    'incline_db_press': 24.0,
    'barbell_row': 60.0,
    'pull_up': 0.0,
    'back_squat': 90.0,
    'romanian_deadlift': 80.0,
    'overhead_press': 40.0,
    'lateral_raise': 8.0,
    'barbell_curl': 30.0,
    'triceps_pushdown': 25.0,
    'plank': 0.0,
    'hanging_leg_raise': 0.0,
}

# (sets per exercise, reps per set, load factor) by phase
PHASE_PRESCRIPTION: Dict[TrainingPhase, Tuple[int, int, float]] = {
    TrainingPhase.HYPERTROPHY: (4, 10, 0.75),
    TrainingPhase.STRENGTH: (5, 5, 0.85),
    TrainingPhase.POWER: (5, 3, 0.80),
    TrainingPhase.ENDURANCE: (3, 15, 0.60),
    TrainingPhase.DELOAD: (2, 8, 0.60),
}


class TraineeArchetype:
    NOVICE = "novice"
    CONSISTENT = "consistent"
    TIME_CRUNCHED = "time_crunched"
    OVERREACHER = "overreacher"
    PLATEAUED = "plateaued"


@dataclass
class TraineeProfile:
    """
    Trainee profile for simulation.

    Combines the planning inputs the engine sees (training profile, level)
    with behavioural traits that drive the synthetic logs.
    """
    id: str
    name: str
    archetype: str
    level: TrainingLevel
    training: UserTrainingProfile

    # Behavioural characteristics
    compliance_rate: float       # 0-1, probability of completing a session
    rir_bias: float              # Added to the prescribed RIR (+ = sandbagging)
    fatigue_sensitivity: float   # 0-1, scales reported fatigue
    progression_rate: float      # Weekly fractional load increase
    preferred_hour: int          # Typical session start hour
    rest_seconds: float          # Typical rest between sets
    load_scale: float = 1.0      # Strength relative to BASE_LOADS

    loads: Dict[str, float] = field(default_factory=dict)

    def starting_loads(self) -> Dict[str, float]:
        return {ex: round(w * self.load_scale, 1) for ex, w in BASE_LOADS.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert profile to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'archetype': self.archetype,
            'level': self.level.value,
            'frequency': self.training.frequency,
            'available_time': self.training.available_time,
            'compliance_rate': self.compliance_rate,
            'rir_bias': self.rir_bias,
            'fatigue_sensitivity': self.fatigue_sensitivity,
            'progression_rate': self.progression_rate,
            'preferred_hour': self.preferred_hour,
            'rest_seconds': self.rest_seconds,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# TRAINEE ARCHETYPES
# ═══════════════════════════════════════════════════════════════════════════════

def create_novice(id_num: int) -> TraineeProfile:
    """New lifter: quick gains, leaves reps in reserve, misses sessions."""
    return TraineeProfile(
        id=f"novice_{id_num}",
        name=f"Novice {id_num}",
        archetype=TraineeArchetype.NOVICE,
        level=TrainingLevel.BEGINNER,
        training=UserTrainingProfile(frequency=3, available_time=60),
        compliance_rate=np.random.uniform(0.70, 0.85),
        rir_bias=np.random.uniform(1.0, 2.5),
        fatigue_sensitivity=np.random.uniform(0.5, 0.8),
        progression_rate=np.random.uniform(0.02, 0.04),
        preferred_hour=int(np.random.choice([7, 18, 19])),
        rest_seconds=np.random.uniform(60, 100),
        load_scale=np.random.uniform(0.5, 0.7),
    )


def create_consistent(id_num: int) -> TraineeProfile:
    """Reliable intermediate lifter who trains close to the prescription."""
    return TraineeProfile(
        id=f"consistent_{id_num}",
        name=f"Consistent Lifter {id_num}",
        archetype=TraineeArchetype.CONSISTENT,
        level=TrainingLevel.INTERMEDIATE,
        training=UserTrainingProfile(frequency=4, available_time=75),
        compliance_rate=np.random.uniform(0.90, 0.98),
        rir_bias=np.random.uniform(-0.3, 0.3),
        fatigue_sensitivity=np.random.uniform(0.3, 0.5),
        progression_rate=np.random.uniform(0.01, 0.02),
        preferred_hour=int(np.random.choice([6, 7, 17])),
        rest_seconds=np.random.uniform(90, 150),
        load_scale=np.random.uniform(0.9, 1.1),
    )


def create_time_crunched(id_num: int) -> TraineeProfile:
    """Busy trainee whose sessions overrun a short time budget."""
    return TraineeProfile(
        id=f"time_crunched_{id_num}",
        name=f"Time Crunched {id_num}",
        archetype=TraineeArchetype.TIME_CRUNCHED,
        level=TrainingLevel.INTERMEDIATE,
        training=UserTrainingProfile(frequency=3, available_time=40),
        compliance_rate=np.random.uniform(0.75, 0.90),
        rir_bias=np.random.uniform(0.0, 1.0),
        fatigue_sensitivity=np.random.uniform(0.4, 0.6),
        progression_rate=np.random.uniform(0.005, 0.015),
        preferred_hour=int(np.random.choice([12, 20, 21])),
        rest_seconds=np.random.uniform(100, 160),
        load_scale=np.random.uniform(0.8, 1.0),
    )


def create_overreacher(id_num: int) -> TraineeProfile:
    """Trains to failure every session and accumulates fatigue."""
    return TraineeProfile(
        id=f"overreacher_{id_num}",
        name=f"Overreacher {id_num}",
        archetype=TraineeArchetype.OVERREACHER,
        level=TrainingLevel.ADVANCED,
        training=UserTrainingProfile(frequency=5, available_time=90),
        compliance_rate=np.random.uniform(0.95, 1.0),
        rir_bias=np.random.uniform(-1.5, -0.8),
        fatigue_sensitivity=np.random.uniform(0.8, 1.0),
        progression_rate=np.random.uniform(0.01, 0.025),
        preferred_hour=int(np.random.choice([17, 18, 19])),
        rest_seconds=np.random.uniform(150, 210),
        load_scale=np.random.uniform(1.1, 1.4),
    )


def create_plateaued(id_num: int) -> TraineeProfile:
    """Experienced lifter whose loads no longer move."""
    return TraineeProfile(
        id=f"plateaued_{id_num}",
        name=f"Plateaued Veteran {id_num}",
        archetype=TraineeArchetype.PLATEAUED,
        level=TrainingLevel.ADVANCED,
        training=UserTrainingProfile(frequency=4, available_time=70),
        compliance_rate=np.random.uniform(0.85, 0.95),
        rir_bias=np.random.uniform(0.5, 1.5),
        fatigue_sensitivity=np.random.uniform(0.4, 0.6),
        progression_rate=0.0,
        preferred_hour=int(np.random.choice([6, 7, 8])),
        rest_seconds=np.random.uniform(45, 75),
        load_scale=np.random.uniform(1.0, 1.3),
    )


ARCHETYPE_CREATORS = [
    (create_novice, 2),
    (create_consistent, 2),
    (create_time_crunched, 2),
    (create_overreacher, 2),
    (create_plateaued, 2),
]


def generate_trainee_profiles(
    n_profiles: int = 10,
    seed: Optional[int] = None
) -> List[TraineeProfile]:
    """
    Generate diverse trainee profiles.

    Args:
        n_profiles: Number of profiles to generate
        seed: Random seed for reproducibility

    Returns:
        List of TraineeProfile objects
    """
    if seed is not None:
        np.random.seed(seed)

    profiles = []

    for creator, default_count in ARCHETYPE_CREATORS:
        for i in range(default_count):
            if len(profiles) >= n_profiles:
                break
            profiles.append(creator(i + 1))

    while len(profiles) < n_profiles:
        creator, _ = ARCHETYPE_CREATORS[np.random.randint(len(ARCHETYPE_CREATORS))]
        profiles.append(creator(len(profiles) + 1))

    return profiles[:n_profiles]


# ═══════════════════════════════════════════════════════════════════════════════
# WORKOUT LOG GENERATION
# ═══════════════════════════════════════════════════════════════════════════════

def session_exercises(session: Session) -> List[str]:
    """Exercise ids prescribed for a session, without duplicates."""
    exercises = []
    for focus in session.focus:
        for exercise_id in FOCUS_EXERCISES.get(focus, FOCUS_EXERCISES['full_body']):
            if exercise_id not in exercises:
                exercises.append(exercise_id)
    return exercises


def generate_session_log(
    trainee: TraineeProfile,
    session: Session,
    microcycle: Microcycle,
    phase: TrainingPhase,
    session_date: date,
    compliance_rate: Optional[float] = None,
) -> Optional[WorkoutLog]:
    """
    Generate the log of one prescribed session.

    Args:
        trainee: Trainee profile (its loads are read, not changed)
        session: Prescribed session
        microcycle: Week the session belongs to (multipliers)
        phase: Phase of the enclosing mesocycle
        session_date: Calendar date of the session
        compliance_rate: Overrides the trainee's compliance if given

    Returns:
        WorkoutLog, or None if the session was skipped
    """
    compliance = trainee.compliance_rate if compliance_rate is None else compliance_rate
    if np.random.random() > compliance:
        return None

    base_sets, base_reps, load_factor = PHASE_PRESCRIPTION.get(
        phase, PHASE_PRESCRIPTION[TrainingPhase.HYPERTROPHY]
    )
    n_sets = max(1, int(round(base_sets * microcycle.volume_multiplier)))

    completed_sets = []
    for exercise_id in session_exercises(session):
        working_weight = trainee.loads.get(exercise_id, 0.0) * load_factor \
            * microcycle.intensity_multiplier
        for _ in range(n_sets):
            rir = int(np.clip(
                round(session.rir_target + trainee.rir_bias + np.random.normal(0, 0.7)), 0, 6
            ))
            reps = max(1, base_reps + int(np.random.randint(-1, 2)))
            completed_sets.append(CompletedSet(
                exercise_id=exercise_id,
                weight=round(working_weight / 2.5) * 2.5 if working_weight > 0 else None,
                reps=reps,
                rir=rir,
                rest_seconds=round(max(20.0, np.random.normal(trainee.rest_seconds, 15)), 0),
            ))

    # Work time per set plus rest, with +/-10% day-to-day variance
    minutes = len(completed_sets) * (45 + trainee.rest_seconds) / 60
    duration = max(10.0, minutes * (1 + np.random.normal(0, 0.10)))

    load_stress = microcycle.volume_multiplier * microcycle.intensity_multiplier
    muscle_group_fatigue = {}
    for focus in session.focus:
        fatigue = 3 + 6 * trainee.fatigue_sensitivity * load_stress + np.random.normal(0, 1)
        muscle_group_fatigue[focus] = round(float(np.clip(fatigue, 0, 10)), 1)

    hour = int(np.clip(trainee.preferred_hour + np.random.randint(-1, 2), 5, 22))

    return WorkoutLog(
        user_id=trainee.id,
        date=datetime.combine(session_date, time(hour=hour)),
        duration_minutes=round(duration, 1),
        completed_sets=completed_sets,
        muscle_group_fatigue=muscle_group_fatigue,
        performance=round(float(np.clip(np.random.normal(7, 1.2), 1, 10)), 1),
    )


def _week_start(program: ProgramStructure, week: int, start_date: Optional[date]) -> date:
    first = program.start_date or start_date
    if first is None:
        raise ValueError("A start date is required when the program has none")
    return first + timedelta(weeks=week - 1)


def generate_week_logs(
    program: ProgramStructure,
    week: int,
    trainee: TraineeProfile,
    start_date: Optional[date] = None,
    compliance_rate: Optional[float] = None,
) -> List[WorkoutLog]:
    """
    Generate the logs of one program week and progress the trainee's loads.

    Args:
        program: Generated program
        week: 1-based program week
        trainee: Trainee profile (loads are updated in place)
        start_date: Program start date, if the program carries none
        compliance_rate: Overrides the trainee's compliance if given

    Returns:
        Logs of the completed sessions, oldest first
    """
    if not trainee.loads:
        trainee.loads = trainee.starting_loads()

    for week_number, meso, micro in program.iter_weeks():
        if week_number != week:
            continue

        first_day = _week_start(program, week, start_date)
        logs = []
        for session in micro.sessions:
            session_date = session.date or first_day + timedelta(days=session.day_of_week - 1)
            log = generate_session_log(
                trainee, session, micro, meso.phase, session_date, compliance_rate
            )
            if log is not None:
                logs.append(log)

        if not micro.is_deload and logs:
            for exercise_id in trainee.loads:
                trainee.loads[exercise_id] *= 1 + trainee.progression_rate

        return logs

    raise ValueError(f"Week {week} outside program of {program.duration_weeks} weeks")


def generate_program_logs(
    program: ProgramStructure,
    trainee: TraineeProfile,
    start_date: Optional[date] = None,
    seed: Optional[int] = None,
    compliance_rate: Optional[float] = None,
) -> List[WorkoutLog]:
    """
    Generate logs for every week of a program.

    Args:
        program: Generated program
        trainee: Trainee profile
        start_date: Program start date, if the program carries none
        seed: Random seed for reproducibility
        compliance_rate: Overrides the trainee's compliance if given

    Returns:
        All logs, oldest first
    """
    if seed is not None:
        np.random.seed(seed)

    trainee.loads = trainee.starting_loads()
    logs = []
    for week in range(1, program.duration_weeks + 1):
        logs.extend(generate_week_logs(program, week, trainee, start_date, compliance_rate))
    return logs


if __name__ == '__main__':
    from engine.program import generate_program

    profiles = generate_trainee_profiles(5, seed=42)
    program = generate_program('linear', 'intermediate', 'hypertrophy', 8, 4,
                               start_date=date(2024, 1, 1))

    print("Generated Trainee Profiles:")
    print("-" * 60)
    for p in profiles:
        logs = generate_program_logs(program, p, seed=42)
        print(f"{p.name:24s} | {p.training.frequency}x/week | "
              f"compliance={p.compliance_rate:.0%} | logs={len(logs)}")
