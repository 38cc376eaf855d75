#!/usr/bin/env python3
"""
Periodization Engine - CLI Entry Point

Usage:
    python main.py plan --level L --goal G [--type T] [--weeks W] [--frequency F]
    python main.py analyze --logs FILE [--profile FILE] [--state FILE] [--save-state FILE]
    python main.py simulate [--profiles N] [--weeks W] [--goal G] [--seed S]
    python main.py test
"""

import argparse
import logging
from datetime import date, datetime

from engine.catalog import recommend_periodization_type
from engine.errors import EngineError
from engine.logs import UserTrainingProfile
from engine.params import EngineParams, load_params
from engine.program import generate_program
from engine.recommendations import RecommendationEngine
from engine.analyzer import FatigueAndPatternAnalyzer
from engine.state import TrainingAlgorithmData, refresh_algorithm_data
from data.loader import (
    load_workout_logs, load_profile, load_algorithm_data, save_algorithm_data,
)
from data.synthetic import SAMPLE_EXERCISES, generate_trainee_profiles
from simulation.engine import SimulationEngine
from analysis.reports import (
    generate_program_report, generate_insight_report, generate_simulation_report,
)

logger = logging.getLogger(__name__)


def _params(path):
    return load_params(path) if path else EngineParams()


def run_plan(level: str, goal: str, periodization_type=None, weeks: int = 12,
             frequency: int = 4, start=None):
    """Generate and print a program."""
    ptype = periodization_type or recommend_periodization_type(level, goal)
    start_date = date.fromisoformat(start) if start else None

    program = generate_program(ptype, level, goal, weeks, frequency, start_date=start_date)
    print(generate_program_report(program))
    return program


def run_analyze(logs_path: str, profile_path=None, state_path=None, save_state=None,
                params_path=None, now=None):
    """Run the update cycle over a log file and print insights."""
    params = _params(params_path)
    logs = load_workout_logs(logs_path)
    profile = load_profile(profile_path) if profile_path else UserTrainingProfile()
    reference = datetime.fromisoformat(now) if now else datetime.now()

    if state_path:
        state = load_algorithm_data(state_path)
    else:
        state = TrainingAlgorithmData.default(logs[0].user_id if logs else '')

    state = refresh_algorithm_data(state, logs, profile, SAMPLE_EXERCISES, params, now=reference)

    recommender = RecommendationEngine(FatigueAndPatternAnalyzer(params, SAMPLE_EXERCISES))
    analysis = recommender.analyze(logs, profile, state.exercise_progressions, now=reference)

    print(generate_insight_report(analysis, progressions=state.exercise_progressions,
                                  now=reference))

    if save_state:
        path = save_algorithm_data(state, save_state)
        print(f"State saved to: {path}")

    return analysis


def run_simulation(n_profiles: int = 10, n_weeks: int = 12, goal: str = 'hypertrophy',
                   seed: int = 42, params_path=None):
    """Simulate recommended programs for synthetic trainees."""
    print(f"Simulating {n_profiles} trainees over {n_weeks} weeks (goal: {goal})...")

    profiles = generate_trainee_profiles(n_profiles, seed=seed)
    engine = SimulationEngine(_params(params_path), verbose=True)
    results = engine.run_batch(profiles, goal, n_weeks, seed=seed)

    print(generate_simulation_report(results))
    return results


def run_tests():
    """Run quick smoke checks of every module."""
    print("Running tests...\n")

    print("Testing program generation...")
    program = generate_program('linear', 'intermediate', 'hypertrophy', 12, 4)
    assert sum(m.duration_weeks for m in program.mesocycles) == 12
    assert program.deload_weeks == [4, 8, 12], program.deload_weeks
    print(f"  Program test passed: deload weeks {program.deload_weeks}")

    print("\nTesting recommendation...")
    rec = recommend_periodization_type('elite', 'power')
    assert rec.value == 'conjugate', rec
    print(f"  Recommendation test passed: {rec.value}")

    print("\nTesting simulation engine...")
    profiles = generate_trainee_profiles(3, seed=42)
    results = SimulationEngine().run_batch(profiles, duration_weeks=4, seed=42)
    assert len(results) == 3, "Should have 3 results"
    assert all(len(r.weeks) == 4 for r in results)
    print(f"  Simulation test passed: {len(results)} trainees simulated")

    print("\n" + "=" * 50)
    print("ALL TESTS PASSED!")
    print("=" * 50)


def main():
    parser = argparse.ArgumentParser(description='Periodization and adaptive programming engine')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Plan command
    plan_parser = subparsers.add_parser('plan', help='Generate a training program')
    plan_parser.add_argument('--level', default='intermediate', help='Training level')
    plan_parser.add_argument('--goal', default='hypertrophy', help='Training goal')
    plan_parser.add_argument('--type', dest='ptype', default=None,
                             help='Periodization type (recommended if omitted)')
    plan_parser.add_argument('--weeks', type=int, default=12, help='Program weeks')
    plan_parser.add_argument('--frequency', type=int, default=4, help='Sessions per week')
    plan_parser.add_argument('--start', default=None, help='Start date (YYYY-MM-DD)')

    # Analyze command
    an_parser = subparsers.add_parser('analyze', help='Analyze workout logs')
    an_parser.add_argument('--logs', required=True, help='Workout logs (.json or .csv)')
    an_parser.add_argument('--profile', default=None, help='Training profile JSON')
    an_parser.add_argument('--state', default=None, help='Saved algorithm state JSON')
    an_parser.add_argument('--save-state', default=None, help='Write updated state here')
    an_parser.add_argument('--params', default=None, help='Engine parameter overrides JSON')
    an_parser.add_argument('--now', default=None, help='Reference time (ISO format)')

    # Simulate command
    sim_parser = subparsers.add_parser('simulate', help='Simulate programs')
    sim_parser.add_argument('--profiles', type=int, default=10, help='Number of trainees')
    sim_parser.add_argument('--weeks', type=int, default=12, help='Program weeks')
    sim_parser.add_argument('--goal', default='hypertrophy', help='Training goal')
    sim_parser.add_argument('--seed', type=int, default=42, help='Random seed')
    sim_parser.add_argument('--params', default=None, help='Engine parameter overrides JSON')

    # Test command
    subparsers.add_parser('test', help='Run tests')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        if args.command == 'plan':
            run_plan(args.level, args.goal, args.ptype, args.weeks, args.frequency, args.start)
        elif args.command == 'analyze':
            run_analyze(args.logs, args.profile, args.state, args.save_state,
                        args.params, args.now)
        elif args.command == 'simulate':
            run_simulation(args.profiles, args.weeks, args.goal, args.seed, args.params)
        elif args.command == 'test':
            run_tests()
        else:
            parser.print_help()
    except EngineError as e:
        logger.error("%s", e)
        parser.exit(2, f"error: {e}\n")


if __name__ == '__main__':
    main()
