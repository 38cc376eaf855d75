"""
Report generation utilities.

Formats programs, recommendations, goals and simulation batches as plain
text for the command line.
"""

from typing import List, Dict, Any, Optional
import numpy as np
from datetime import datetime

from engine.analyzer import AnalysisResult, Recommendation
from engine.goals import Goal, calculate_goal_progress, goal_status
from engine.params import EngineParams
from engine.program import ProgramStructure, format_program
from engine.progression import ExerciseProgression
from simulation.engine import SimulationResult, aggregate_results
from .trends import calculate_trends


PRIORITY_MARKERS = {
    'high': '!!!',
    'medium': ' !!',
    'low': '  !',
}


def generate_program_report(program: ProgramStructure, title: str = "Training Program") -> str:
    """
    Generate a program report with the calendar and session split.

    Args:
        program: Generated program
        title: Report title

    Returns:
        Formatted report string
    """
    report = f"""
{'='*70}
{title}
{'='*70}
Total sessions:  {program.total_sessions}
Deload weeks:    {', '.join(str(w) for w in program.deload_weeks) or 'none'}

{format_program(program)}

WEEKLY SPLIT
------------
"""
    first_week = program.mesocycles[0].microcycles[0]
    for session in first_week.sessions:
        report += f"Day {session.day_of_week}: {', '.join(session.focus)}\n"

    report += "\n" + "=" * 70 + "\n"
    return report


def generate_recommendation_report(
    recommendations: List[Recommendation],
    title: str = "Training Recommendations"
) -> str:
    """
    Generate a report listing recommendations in the given order.

    Args:
        recommendations: Ranked recommendations
        title: Report title

    Returns:
        Formatted report string
    """
    report = f"\n{'='*70}\n{title}\n{'='*70}\n"
    if not recommendations:
        return report + "No recommendations.\n"

    for rec in recommendations:
        marker = PRIORITY_MARKERS.get(rec.priority.value, '   ')
        report += f"{marker} [{rec.type.value}] {rec.title}\n"
        report += f"      {rec.description}\n"
    return report


def generate_goal_report(
    goals: List[Goal],
    now: Optional[datetime] = None,
    params: Optional[EngineParams] = None,
    title: str = "Goals"
) -> str:
    """
    Generate a goal report, sub-goals indented under their parent.

    Args:
        goals: Goals to report
        now: Reference time for status (current time if None)
        params: Thresholds (urgent-goal days)
        title: Report title

    Returns:
        Formatted report string
    """
    now = now or datetime.now()
    by_id = {g.id: g for g in goals}

    report = f"\n{'='*70}\n{title}\n{'='*70}\n"
    report += f"{'Goal':<34} {'Type':<10} {'Progress':>8} {'Status':>10} {'Odds':>6}\n"
    report += "-" * 70 + "\n"

    def add(goal: Goal, depth: int):
        nonlocal report
        odds = f"{goal.success_probability:.0f}%" if goal.success_probability is not None else "-"
        name = ("  " * depth + goal.title)[:34]
        report += (f"{name:<34} {goal.type.value:<10} "
                   f"{calculate_goal_progress(goal):>7.1f}% "
                   f"{goal_status(goal, now, params).value:>10} {odds:>6}\n")
        for child_id in goal.sub_goal_ids:
            if child_id in by_id:
                add(by_id[child_id], depth + 1)

    for goal in goals:
        if goal.parent_id is None or goal.parent_id not in by_id:
            add(goal, 0)

    return report


def generate_insight_report(
    analysis: AnalysisResult,
    goals: Optional[List[Goal]] = None,
    progressions: Optional[Dict[str, ExerciseProgression]] = None,
    now: Optional[datetime] = None,
    title: str = "Training Insights"
) -> str:
    """
    Combine recommendations, patterns, exercise trends and goals in one report.

    Args:
        analysis: Analysis with ranked recommendations
        goals: Goals to include
        progressions: Progression records for the trend section
        now: Reference time for goal status
        title: Report title

    Returns:
        Formatted report string
    """
    patterns = analysis.patterns
    style = analysis.style

    report = f"""
{'='*70}
{title}
{'='*70}

PATTERNS
--------
Preferred time:        {patterns.preferred_time_of_day}
Average session:       {patterns.average_session_duration} min
Consistency score:     {patterns.consistency_score}/100
Preferred days:        {', '.join(patterns.preferred_days_of_week) or '-'}

STYLE
-----
Intensity:             {style.intensity_preference}
Volume:                {style.volume_preference}
Rest periods:          {style.rest_period_preference}
"""

    report += generate_recommendation_report(analysis.recommendations, "Recommendations")

    if progressions:
        trends = calculate_trends(progressions)
        report += f"\n{'='*70}\nExercise Trends\n{'='*70}\n"
        if not trends:
            report += "Not enough history for trends.\n"
        for exercise_id, trend in sorted(trends.items()):
            report += (f"{exercise_id:<24} {trend.slope_per_week:>+7.2f} kg/wk "
                       f"r2={trend.r_squared:.2f}  {trend.direction}\n")

    if goals:
        report += generate_goal_report(goals, now)

    return report + "\n" + "=" * 70 + "\n"


def generate_simulation_report(
    results: List[SimulationResult],
    title: str = "Program Simulation Report"
) -> str:
    """
    Generate a text report from simulation results.

    Args:
        results: Simulation results
        title: Report title

    Returns:
        Formatted report string
    """
    agg = aggregate_results(results)
    if not agg:
        return f"\n{'='*70}\n{title}\n{'='*70}\nNo simulations.\n"

    report = f"""
{'='*70}
{title}
{'='*70}
Simulations: {agg['n_simulations']}
Weeks per simulation: {len(results[0].weeks)}

ADHERENCE
---------
Compliance (mean):          {agg['mean_compliance']*100:>7.1f}%
Compliance (min):           {agg['min_compliance']*100:>7.1f}%
Consistency score (mean):   {agg['mean_consistency_score']:>7.1f}

ADAPTATION
----------
Strength gain (mean):       {agg['mean_strength_gain']:>7.2f}x
Strength gain (std):        {agg['std_strength_gain']:>7.2f}

FATIGUE
-------
Recovery-flag weeks (mean): {agg['mean_recovery_flag_weeks']:>7.2f}
Trainees with a flag:       {agg['pct_with_recovery_flag']:>7.1f}%

PER-TRAINEE BREAKDOWN
---------------------
"""
    report += (f"{'Trainee':<24} {'Program':<18} {'Done':>6} {'Consist':>8} "
               f"{'Gain':>6} {'Recov':>6}\n")
    report += "-" * 70 + "\n"

    for r in results:
        report += (f"{r.profile_name[:24]:<24} "
                   f"{r.program.type.value:<18} "
                   f"{r.compliance*100:>5.0f}% "
                   f"{r.mean_consistency_score:>8.1f} "
                   f"{r.strength_gain_ratio:>5.2f}x "
                   f"{r.recovery_flag_weeks:>6d}\n")

    report += "\n" + "=" * 70 + "\n"
    return report


def summarize_results(results: List[SimulationResult]) -> Dict[str, Any]:
    """Per-type means of the main simulation metrics."""
    by_type: Dict[str, List[SimulationResult]] = {}
    for r in results:
        by_type.setdefault(r.program.type.value, []).append(r)

    return {
        ptype: {
            'n': len(rs),
            'compliance': float(np.mean([r.compliance for r in rs])),
            'strength_gain': float(np.mean([r.strength_gain_ratio for r in rs])),
        }
        for ptype, rs in by_type.items()
    }
