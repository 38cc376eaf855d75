"""Simulation engine for running programs against synthetic trainees."""

from .engine import SimulationEngine, SimulationResult, WeeklySnapshot, aggregate_results

__all__ = [
    'SimulationEngine',
    'SimulationResult',
    'WeeklySnapshot',
    'aggregate_results',
]
