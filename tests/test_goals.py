"""
Tests for the goal progress model.

Tests cover:
1. Progress percentage and clamping
2. Deadline status
3. Success probability heuristic
4. Goal hierarchy (create, update, delete) and milestones

Run with: python -m pytest tests/test_goals.py -v
"""

import pytest
from datetime import datetime, timedelta

from engine.goals import (
    Goal,
    GoalProgressModel,
    GoalStatus,
    GoalType,
    Milestone,
    calculate_goal_progress,
    calculate_success_probability,
    days_until,
    goal_status,
)
from engine.params import EngineParams


NOW = datetime(2024, 6, 1, 12, 0)


def make_goal(current=0.0, target=100.0, deadline=None, created=None, **kwargs):
    return Goal(
        id=kwargs.pop('id', 'g1'),
        type=kwargs.pop('type', GoalType.PRIMARY),
        title=kwargs.pop('title', 'Squat 100 kg'),
        target_value=target,
        current_value=current,
        unit='kg',
        deadline=deadline or NOW + timedelta(days=30),
        created_at=created or NOW - timedelta(days=30),
        **kwargs,
    )


# =============================================================================
# Derived Values
# =============================================================================

class TestGoalProgress:
    @pytest.mark.parametrize("current,target,expected", [
        (50, 100, 50.0),
        (150, 100, 100.0),
        (-10, 100, 0.0),
        (5, 0, 0.0),
        (0, 100, 0.0),
    ])
    def test_progress(self, current, target, expected):
        assert calculate_goal_progress(make_goal(current, target)) == expected


class TestGoalStatus:
    """Status derivation against a fixed reference time."""

    def test_completed_wins_over_overdue(self):
        goal = make_goal(100, deadline=NOW - timedelta(days=5))
        assert goal_status(goal, NOW) == GoalStatus.COMPLETED

    def test_overdue(self):
        goal = make_goal(10, deadline=NOW - timedelta(days=2))
        assert goal_status(goal, NOW) == GoalStatus.OVERDUE

    def test_hours_past_deadline_is_overdue(self):
        goal = make_goal(10, deadline=NOW - timedelta(hours=2))
        assert days_until(goal.deadline, NOW) == 0
        assert goal_status(goal, NOW) == GoalStatus.OVERDUE

    def test_deadline_later_today_is_urgent(self):
        goal = make_goal(10, deadline=NOW + timedelta(hours=2))
        assert goal_status(goal, NOW) == GoalStatus.URGENT

    @pytest.mark.parametrize("days_left,expected", [
        (0, GoalStatus.URGENT),
        (7, GoalStatus.URGENT),
        (8, GoalStatus.ACTIVE),
        (60, GoalStatus.ACTIVE),
    ])
    def test_deadline_window(self, days_left, expected):
        goal = make_goal(10, deadline=NOW + timedelta(days=days_left))
        assert goal_status(goal, NOW) == expected

    def test_partial_days_truncate(self):
        assert days_until(NOW + timedelta(days=7, hours=23), NOW) == 7

    def test_urgent_window_configurable(self):
        goal = make_goal(10, deadline=NOW + timedelta(days=10))
        assert goal_status(goal, NOW, EngineParams(urgent_goal_days=14)) == GoalStatus.URGENT


class TestSuccessProbability:
    """Success heuristic: 70 baseline, bounded to 10-95."""

    @pytest.fixture
    def halfway(self):
        return dict(created=NOW - timedelta(days=50), deadline=NOW + timedelta(days=50))

    def test_ahead_of_schedule(self, halfway):
        assert calculate_success_probability(make_goal(80, **halfway), NOW) == pytest.approx(85.0)

    def test_behind_schedule(self, halfway):
        assert calculate_success_probability(make_goal(20, **halfway), NOW) == pytest.approx(58.0)

    def test_on_schedule(self, halfway):
        assert calculate_success_probability(make_goal(50, **halfway), NOW) == pytest.approx(70.0)

    def test_capped_high(self):
        goal = make_goal(100, created=NOW, deadline=NOW + timedelta(days=30))
        assert calculate_success_probability(goal, NOW) == 95.0

    def test_at_deadline_without_progress(self):
        goal = make_goal(0, created=NOW - timedelta(days=30), deadline=NOW)
        assert calculate_success_probability(goal, NOW) == pytest.approx(30.0)

    def test_floored_low(self):
        goal = make_goal(0, created=NOW - timedelta(days=200), deadline=NOW - timedelta(days=100))
        assert calculate_success_probability(goal, NOW) == 10.0

    def test_deadline_at_creation(self):
        goal = make_goal(50, created=NOW, deadline=NOW)
        assert calculate_success_probability(goal, NOW) == pytest.approx(50.0)

    def test_zero_target(self, halfway):
        goal = make_goal(5, target=0, **halfway)
        assert calculate_success_probability(goal, NOW) == pytest.approx(50.0)


# =============================================================================
# Model
# =============================================================================

class TestGoalProgressModel:
    """Tests for the goal hierarchy store."""

    @pytest.fixture
    def model(self):
        model = GoalProgressModel()
        model.create_goal('Squat 140 kg', 'primary', 140, NOW + timedelta(days=90),
                          unit='kg', current_value=100, goal_id='squat', now=NOW)
        model.create_goal('Squat 120 kg', GoalType.SECONDARY, 120, NOW + timedelta(days=30),
                          unit='kg', current_value=100, parent_id='squat',
                          goal_id='squat-120', now=NOW)
        model.create_goal('Pause squats', 'micro', 12, NOW + timedelta(days=7),
                          unit='sessions', parent_id='squat-120', goal_id='pause', now=NOW)
        return model

    def test_hierarchy_links(self, model):
        assert model.get('squat').sub_goal_ids == ['squat-120']
        assert model.get('squat-120').parent_id == 'squat'
        assert [g.id for g in model.children('squat-120')] == ['pause']

    def test_initial_success_probability(self, model):
        # Created now: no time has elapsed, so any value progress is ahead
        assert model.get('pause').success_probability == 70.0
        assert model.get('squat').success_probability == pytest.approx(95.0)

    def test_generated_ids_unique(self):
        model = GoalProgressModel()
        a = model.create_goal('A', 'primary', 10, NOW + timedelta(days=10), now=NOW)
        b = model.create_goal('B', 'primary', 10, NOW + timedelta(days=10), now=NOW)
        assert a.id != b.id
        assert len(model) == 2

    def test_unknown_parent(self, model):
        with pytest.raises(KeyError):
            model.create_goal('Orphan', 'micro', 1, NOW, parent_id='missing', now=NOW)

    def test_duplicate_id(self, model):
        with pytest.raises(ValueError):
            model.create_goal('Again', 'primary', 1, NOW, goal_id='squat', now=NOW)

    def test_unknown_goal_type(self, model):
        with pytest.raises(ValueError):
            model.create_goal('Odd', 'tertiary', 1, NOW, now=NOW)

    def test_update_does_not_roll_up(self, model):
        model.update_progress('squat-120', 120, now=NOW)
        assert calculate_goal_progress(model.get('squat-120')) == 100.0
        assert model.get('squat').current_value == 100

    def test_update_recomputes_probability(self, model):
        later = NOW + timedelta(days=15)
        goal = model.update_progress('squat-120', 100, now=later)
        # half the time gone, 100/120 of the value reached
        expected = 70 + (100 / 120 - 0.5) * 50
        assert goal.success_probability == pytest.approx(expected)

    def test_delete_leaf_unlinks_parent(self, model):
        model.delete_goal('pause')
        assert 'pause' not in model
        assert model.get('squat-120').sub_goal_ids == []

    def test_delete_parent_detaches_children(self, model):
        model.delete_goal('squat-120')
        assert model.get('pause').parent_id is None
        assert model.get('squat').sub_goal_ids == []
        assert len(model) == 2

    def test_delete_unknown(self, model):
        with pytest.raises(KeyError):
            model.delete_goal('missing')

    def test_filters(self, model):
        assert [g.id for g in model.goals_by_type('micro')] == ['pause']
        assert [g.id for g in model.goals_by_status('urgent', now=NOW)] == ['pause']
        assert {g.id for g in model.goals_by_status(GoalStatus.ACTIVE, now=NOW)} == {
            'squat', 'squat-120',
        }

    def test_milestones(self):
        model = GoalProgressModel()
        model.create_goal(
            'Bench 100 kg', 'primary', 100, NOW + timedelta(days=60), unit='kg',
            current_value=70, goal_id='bench', now=NOW,
            milestones=[Milestone('m1', '80 kg', 80), Milestone('m2', '90 kg', 90)],
        )
        later = NOW + timedelta(days=10)
        model.update_progress('bench', 85, now=later)
        m1, m2 = model.get('bench').milestones
        assert m1.completed and m1.completed_date == later
        assert not m2.completed

    def test_dict_round_trip(self, model):
        for data in model.to_dict():
            goal = Goal.from_dict(data)
            assert goal == model.get(goal.id)
