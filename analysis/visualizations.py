"""
Visualization utilities for programs and simulations.

Provides charts for:
- Weekly volume/intensity multipliers of a program
- Weekly volume load across simulated trainees
- End-of-week consistency scores
- Recommendation mix per week
"""

from typing import List, Optional, Tuple
import numpy as np

import matplotlib.pyplot as plt
from matplotlib.patches import Patch

from engine.analyzer import RecommendationType
from engine.program import ProgramStructure
from simulation.engine import SimulationResult


PHASE_COLORS = {
    'hypertrophy': '#4C72B0',
    'strength': '#C44E52',
    'power': '#DD8452',
    'endurance': '#55A868',
    'deload': '#8C8C8C',
}


def plot_program_multipliers(
    program: ProgramStructure,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 5),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot weekly volume and intensity multipliers of a program.

    The background of each week is shaded by its mesocycle phase and
    deload weeks are hatched.

    Args:
        program: Generated program
        title: Plot title
        figsize: Figure size
        ax: Optional existing axes

    Returns:
        Matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    weeks, volume, intensity = [], [], []
    for week, meso, micro in program.iter_weeks():
        weeks.append(week)
        volume.append(micro.volume_multiplier)
        intensity.append(micro.intensity_multiplier)
        ax.axvspan(week - 0.5, week + 0.5,
                   color=PHASE_COLORS.get(meso.phase.value, '#CCCCCC'), alpha=0.12,
                   hatch='//' if micro.is_deload else None, linewidth=0)

    ax.plot(weeks, volume, 'o-', linewidth=2, label='Volume multiplier')
    ax.plot(weeks, intensity, 's--', linewidth=2, label='Intensity multiplier')
    ax.axhline(1.0, color='black', linewidth=0.8, alpha=0.5)

    phases = []
    for meso in program.mesocycles:
        if meso.phase.value not in phases:
            phases.append(meso.phase.value)
    handles, _ = ax.get_legend_handles_labels()
    handles += [Patch(color=PHASE_COLORS.get(p, '#CCCCCC'), alpha=0.3, label=p) for p in phases]

    ax.set_xlabel('Week')
    ax.set_ylabel('Multiplier')
    ax.set_xticks(weeks)
    ax.set_title(title or f"{program.type.value} program: weekly multipliers")
    ax.legend(handles=handles, loc='upper right', fontsize=8)
    ax.grid(True, alpha=0.3)

    return fig


def _pad(trajectories: List[np.ndarray]) -> np.ndarray:
    max_weeks = max(len(t) for t in trajectories)
    padded = []
    for t in trajectories:
        t = t.astype(float)
        if len(t) < max_weeks:
            t = np.pad(t, (0, max_weeks - len(t)), constant_values=np.nan)
        padded.append(t)
    return np.array(padded)


def plot_volume_load(
    results: List[SimulationResult],
    title: str = "Weekly Volume Load",
    figsize: Tuple[int, int] = (12, 6),
    show_mean: bool = True,
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot weekly volume load (sum of weight x reps) per trainee.

    Args:
        results: Simulation results
        title: Plot title
        figsize: Figure size
        show_mean: Show mean trajectory
        ax: Optional existing axes

    Returns:
        Matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    trajectories = _pad([r.get_volume_load_trajectory() for r in results])
    weeks = np.arange(1, trajectories.shape[1] + 1)

    for i, result in enumerate(results):
        alpha = 0.3 if len(results) > 5 else 0.6
        ax.plot(weeks, trajectories[i], alpha=alpha, linewidth=1,
                label=result.profile_name if len(results) <= 5 else None)

    if show_mean:
        ax.plot(weeks, np.nanmean(trajectories, axis=0), 'b-', linewidth=2, label='Mean')

    ax.set_xlabel('Week')
    ax.set_ylabel('Volume load (kg x reps)')
    ax.set_title(title)
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)

    return fig


def plot_consistency(
    results: List[SimulationResult],
    title: str = "Consistency Score",
    figsize: Tuple[int, int] = (12, 6),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """Plot end-of-week consistency scores (0-100) per trainee."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    trajectories = _pad([r.get_consistency_trajectory() for r in results])
    weeks = np.arange(1, trajectories.shape[1] + 1)

    for i, result in enumerate(results):
        ax.plot(weeks, trajectories[i], alpha=0.5, linewidth=1,
                label=result.profile_name if len(results) <= 5 else None)

    ax.axhspan(80, 100, alpha=0.1, color='green')
    ax.set_ylim(0, 105)
    ax.set_xlabel('Week')
    ax.set_ylabel('Consistency score')
    ax.set_title(title)
    if len(results) <= 5:
        ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)

    return fig


def plot_recommendation_mix(
    result: SimulationResult,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 5),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """Stacked bar chart of recommendation types per week of one simulation."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    weeks = np.array([w.week for w in result.weeks])
    bottom = np.zeros(len(weeks))
    for rec_type in RecommendationType:
        counts = np.array([w.recommendation_types.count(rec_type.value) for w in result.weeks])
        if counts.sum() == 0:
            continue
        ax.bar(weeks, counts, bottom=bottom, label=rec_type.value)
        bottom += counts

    ax.set_xlabel('Week')
    ax.set_ylabel('Recommendations')
    ax.set_title(title or f"Recommendations: {result.profile_name}")
    ax.legend(loc='upper right', fontsize=8)
    ax.grid(True, axis='y', alpha=0.3)

    return fig


def plot_simulation_summary(
    results: List[SimulationResult],
    title: str = "Simulation Summary Dashboard",
    figsize: Tuple[int, int] = (16, 10),
) -> plt.Figure:
    """
    Create a summary dashboard of a simulation batch.

    Args:
        results: Simulation results
        title: Dashboard title
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    fig = plt.figure(figsize=figsize)

    ax1 = fig.add_subplot(2, 2, 1)
    ax2 = fig.add_subplot(2, 2, 2)
    ax3 = fig.add_subplot(2, 2, 3)
    ax4 = fig.add_subplot(2, 2, 4)

    plot_program_multipliers(results[0].program, ax=ax1, title="Program multipliers")
    plot_volume_load(results, ax=ax2, title="Volume load")
    plot_consistency(results, ax=ax3, title="Consistency")

    gains = [r.strength_gain_ratio for r in results]
    ax4.hist(gains, bins=10, edgecolor='black', alpha=0.7)
    ax4.axvline(np.mean(gains), color='r', linestyle='--',
                label=f'Mean: {np.mean(gains):.2f}x')
    ax4.set_xlabel('Strength gain (best / first weight)')
    ax4.set_ylabel('Count')
    ax4.set_title('Strength Gain Distribution')
    ax4.legend()

    plt.suptitle(title, fontsize=14, fontweight='bold')
    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("Testing visualizations...")

    from data.synthetic import generate_trainee_profiles
    from simulation.engine import SimulationEngine

    profiles = generate_trainee_profiles(5, seed=42)
    results = SimulationEngine().run_batch(profiles, duration_weeks=12, seed=42)

    fig = plot_simulation_summary(results)
    fig.savefig('simulation_summary.png', dpi=100)
    print("Saved simulation_summary.png")

    plt.close('all')
