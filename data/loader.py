"""
Workout Log and State Loader.

Reads workout logs, training profiles and persisted algorithm state from
disk for use with the adaptive-programming engine.

Supported log formats:
1. JSON: a list of log objects as stored by the app
   ({"userId", "date", "duration", "completedSets": [...], "muscleGroupFatigue"})
2. CSV: one row per completed set with the columns

       user_id, date, duration, exercise_id, alternative_exercise_id,
       weight, reps, rir, rest_time, performance, fatigue_<muscle group>...

   Rows sharing (user_id, date) form one workout log.
"""

from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging

import pandas as pd

from engine.errors import MalformedLog
from engine.logs import UserTrainingProfile, WorkoutLog
from engine.state import TrainingAlgorithmData

logger = logging.getLogger(__name__)


# ===============================================================================
# CONFIGURATION
# ===============================================================================

FATIGUE_PREFIX = 'fatigue_'

SET_COLUMNS = [
    'user_id', 'date', 'duration', 'exercise_id', 'alternative_exercise_id',
    'weight', 'reps', 'rir', 'rest_time', 'performance',
]

PathLike = Union[str, Path]


# ===============================================================================
# WORKOUT LOGS
# ===============================================================================

def load_workout_logs(path: PathLike) -> List[WorkoutLog]:
    """
    Load workout logs from a JSON or CSV file.

    Args:
        path: .json or .csv file

    Returns:
        Logs, most recent first

    Raises:
        MalformedLog: If a log lacks a user id, date or exercise id
        ValueError: If the file extension is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.json':
        with open(path) as f:
            raw = json.load(f)
        if isinstance(raw, dict):
            raw = raw.get('logs', [])
        logs = [WorkoutLog.from_dict(d) for d in raw]
    elif suffix == '.csv':
        logs = frame_to_logs(pd.read_csv(path))
    else:
        raise ValueError(f"Unsupported log file type: {path.suffix}")

    logger.info("Loaded %d workout logs from %s", len(logs), path)
    return sorted(logs, key=lambda log: log.date, reverse=True)


def frame_to_logs(df: 'pd.DataFrame') -> List[WorkoutLog]:
    """
    Group a one-row-per-set DataFrame into workout logs.

    Args:
        df: DataFrame with SET_COLUMNS and optional fatigue_<group> columns

    Returns:
        Logs in order of first appearance

    Raises:
        MalformedLog: If a required column is missing or a row has no date
    """
    missing = [c for c in ('user_id', 'date', 'exercise_id') if c not in df.columns]
    if missing:
        raise MalformedLog(f"CSV is missing columns: {', '.join(missing)}", missing[0])

    df = df.copy()
    if df['date'].isna().any():
        raise MalformedLog("CSV row without a date", 'date')
    fatigue_columns = [c for c in df.columns if c.startswith(FATIGUE_PREFIX)]

    logs = []
    for (user_id, log_date), group in df.groupby(['user_id', 'date'], sort=False):
        first = group.iloc[0]
        fatigue = {
            c[len(FATIGUE_PREFIX):]: first[c]
            for c in fatigue_columns if pd.notna(first[c])
        }
        sets = [
            {
                'exerciseId': _cell(row, 'exercise_id'),
                'alternativeExerciseId': _cell(row, 'alternative_exercise_id'),
                'weight': _cell(row, 'weight'),
                'reps': _cell(row, 'reps'),
                'rir': _cell(row, 'rir'),
                'restTime': _cell(row, 'rest_time'),
            }
            for _, row in group.iterrows()
            # Session-only rows (no sets) carry no exercise id
            if pd.notna(row['exercise_id'])
        ]
        logs.append(WorkoutLog.from_dict({
            'userId': user_id,
            'date': log_date,
            'duration': _cell(first, 'duration'),
            'completedSets': sets,
            'muscleGroupFatigue': fatigue,
            'performance': _cell(first, 'performance'),
        }))
    return logs


def _cell(row: 'pd.Series', column: str) -> Any:
    if column not in row.index or pd.isna(row[column]):
        return None
    return row[column]


def logs_to_frame(logs: List[WorkoutLog]) -> 'pd.DataFrame':
    """
    Flatten workout logs into a DataFrame with one row per completed set.

    Logs without sets contribute one row with empty set columns, so session
    duration and fatigue are not lost.
    """
    rows = []
    for log in logs:
        base = {
            'user_id': log.user_id,
            'date': log.date,
            'duration': log.duration_minutes,
            'performance': log.performance,
        }
        base.update({
            f"{FATIGUE_PREFIX}{group}": value
            for group, value in log.muscle_group_fatigue.items()
        })
        if not log.completed_sets:
            rows.append(base)
            continue
        for completed in log.completed_sets:
            rows.append({
                **base,
                'exercise_id': completed.exercise_id,
                'alternative_exercise_id': completed.alternative_exercise_id,
                'weight': completed.weight,
                'reps': completed.reps,
                'rir': completed.rir,
                'rest_time': completed.rest_seconds,
            })

    df = pd.DataFrame(rows)
    ordered = [c for c in SET_COLUMNS if c in df.columns]
    return df[ordered + [c for c in df.columns if c not in ordered]]


def save_workout_logs(logs: List[WorkoutLog], path: PathLike) -> Path:
    """Write logs as JSON or CSV depending on the file extension."""
    path = Path(path)
    if path.suffix.lower() == '.csv':
        logs_to_frame(logs).to_csv(path, index=False)
    else:
        with open(path, 'w') as f:
            json.dump([log.to_dict() for log in logs], f, indent=2)
    return path


# ===============================================================================
# PROFILE AND STATE
# ===============================================================================

def load_profile(path: PathLike) -> UserTrainingProfile:
    """Load a training profile from a JSON object ({"frequency", "availableTime"})."""
    with open(path) as f:
        return UserTrainingProfile.from_dict(json.load(f))


def load_algorithm_data(path: PathLike) -> TrainingAlgorithmData:
    """Load persisted TrainingAlgorithmData from JSON."""
    with open(path) as f:
        data = TrainingAlgorithmData.from_dict(json.load(f))
    logger.debug("Loaded algorithm state of %s (%d exercises)",
                 data.user_id, len(data.exercise_progressions))
    return data


def save_algorithm_data(data: TrainingAlgorithmData, path: PathLike) -> Path:
    """Write TrainingAlgorithmData to JSON."""
    path = Path(path)
    with open(path, 'w') as f:
        json.dump(data.to_dict(), f, indent=2)
    return path


def get_summary_stats(logs: List[WorkoutLog]) -> Dict[str, Any]:
    """Summary statistics of a log collection."""
    if not logs:
        return {'n_logs': 0}

    df = logs_to_frame(logs)
    sessions = df.drop_duplicates(['user_id', 'date'])
    return {
        'n_logs': len(sessions),
        'n_sets': int(df['exercise_id'].notna().sum()) if 'exercise_id' in df else 0,
        'date_range': (sessions['date'].min(), sessions['date'].max()),
        'mean_duration_min': float(sessions['duration'].mean()),
        'n_exercises': int(df['exercise_id'].nunique()) if 'exercise_id' in df else 0,
    }
