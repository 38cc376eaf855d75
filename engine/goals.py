"""
Goal Progress Model: Goal hierarchy, progress, deadline status and success odds.

Goals form a forest: a primary goal may own secondary and micro sub-goals,
and every goal has at most one parent. Progress and status are derived from
the stored values on demand; a child's progress never rolls up into its
parent automatically.

Success probability heuristic:
    time_progress  = 1 - remaining / total      (total measured from creation)
    value_progress = current / target

    value ahead of time:  min(95, 70 + (value - time) * 50)
    otherwise:            max(10, 70 - (time - value) * 40)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging
import uuid

import pandas as pd

from .params import EngineParams

logger = logging.getLogger(__name__)


class GoalType(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    MICRO = "micro"


class GoalStatus(Enum):
    ACTIVE = "active"
    URGENT = "urgent"
    OVERDUE = "overdue"
    COMPLETED = "completed"


GOAL_CATEGORIES = ('performance', 'body_composition', 'skill', 'competitive')

SECONDS_PER_DAY = 86400


@dataclass
class Milestone:
    """Intermediate checkpoint of a goal."""
    id: str
    title: str
    target_value: float
    target_date: Optional[datetime] = None
    completed: bool = False
    completed_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'targetValue': self.target_value,
            'targetDate': self.target_date.isoformat() if self.target_date else None,
            'completed': self.completed,
            'completedDate': self.completed_date.isoformat() if self.completed_date else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Milestone':
        return cls(
            id=d['id'],
            title=d.get('title', ''),
            target_value=d['targetValue'],
            target_date=_parse_datetime(d.get('targetDate')),
            completed=d.get('completed', False),
            completed_date=_parse_datetime(d.get('completedDate')),
        )


@dataclass
class Goal:
    """A measurable training goal."""
    id: str
    type: GoalType
    title: str
    target_value: float
    current_value: float
    unit: str
    deadline: datetime
    created_at: datetime
    category: str = 'performance'
    priority: int = 1
    parent_id: Optional[str] = None
    sub_goal_ids: List[str] = field(default_factory=list)
    milestones: List[Milestone] = field(default_factory=list)
    success_probability: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the app)."""
        return {
            'id': self.id,
            'type': self.type.value,
            'category': self.category,
            'title': self.title,
            'description': self.description,
            'targetValue': self.target_value,
            'currentValue': self.current_value,
            'unit': self.unit,
            'deadline': self.deadline.isoformat(),
            'priority': self.priority,
            'parentGoalId': self.parent_id,
            'subGoals': list(self.sub_goal_ids),
            'milestones': [m.to_dict() for m in self.milestones],
            'successProbability': self.success_probability,
            'createdAt': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Goal':
        return cls(
            id=d['id'],
            type=GoalType(d['type']),
            title=d.get('title', ''),
            target_value=d['targetValue'],
            current_value=d.get('currentValue', 0),
            unit=d.get('unit', ''),
            deadline=_parse_datetime(d['deadline']),
            created_at=_parse_datetime(d['createdAt']),
            category=d.get('category', 'performance'),
            priority=d.get('priority', 1),
            parent_id=d.get('parentGoalId'),
            sub_goal_ids=list(d.get('subGoals', [])),
            milestones=[Milestone.from_dict(m) for m in d.get('milestones', [])],
            success_probability=d.get('successProbability'),
            description=d.get('description', ''),
        )


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


# ═══════════════════════════════════════════════════════════════════════════════
# DERIVED VALUES
# ═══════════════════════════════════════════════════════════════════════════════

def calculate_goal_progress(goal: Goal) -> float:
    """
    Percent progress toward the target, clamped to [0, 100].

    A target of 0 is defined as 0% progress.
    """
    if goal.target_value == 0:
        return 0.0
    return max(0.0, min(goal.current_value / goal.target_value * 100, 100.0))


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days until a deadline, truncated toward zero."""
    return int((deadline - now).total_seconds() / SECONDS_PER_DAY)


def goal_status(
    goal: Goal,
    now: Optional[datetime] = None,
    params: Optional[EngineParams] = None
) -> GoalStatus:
    """
    Derive the status of a goal.

    completed  progress >= 100
    overdue    deadline passed
    urgent     at most 7 whole days left
    active     otherwise
    """
    params = params or EngineParams()
    now = now or datetime.now()

    if calculate_goal_progress(goal) >= 100:
        return GoalStatus.COMPLETED
    if goal.deadline < now:
        return GoalStatus.OVERDUE
    if days_until(goal.deadline, now) <= params.urgent_goal_days:
        return GoalStatus.URGENT
    return GoalStatus.ACTIVE


def calculate_success_probability(goal: Goal, now: Optional[datetime] = None) -> float:
    """
    Estimate the chance (10-95) of reaching a goal by its deadline.

    Args:
        goal: Goal with created_at and deadline set
        now: Reference time (current time if None)

    Returns:
        Probability in percent
    """
    now = now or datetime.now()

    total = (goal.deadline - goal.created_at).total_seconds()
    remaining = (goal.deadline - now).total_seconds()
    time_progress = 1.0 - remaining / total if total > 0 else 1.0

    value_progress = goal.current_value / goal.target_value if goal.target_value else 0.0

    if value_progress > time_progress:
        return min(95.0, 70.0 + (value_progress - time_progress) * 50)
    return max(10.0, 70.0 - (time_progress - value_progress) * 40)


# ═══════════════════════════════════════════════════════════════════════════════
# MODEL
# ═══════════════════════════════════════════════════════════════════════════════

class GoalProgressModel:
    """
    In-memory store of a user's goal forest.

    Goals are created, updated and deleted only through explicit calls.
    """

    def __init__(self, goals: Optional[List[Goal]] = None, params: Optional[EngineParams] = None):
        self.params = params or EngineParams()
        self._goals: Dict[str, Goal] = {g.id: g for g in (goals or [])}

    def __contains__(self, goal_id: str) -> bool:
        return goal_id in self._goals

    def __len__(self) -> int:
        return len(self._goals)

    @property
    def goals(self) -> List[Goal]:
        return list(self._goals.values())

    def get(self, goal_id: str) -> Goal:
        """
        Raises:
            KeyError: If no goal has that id
        """
        if goal_id not in self._goals:
            raise KeyError(f"Unknown goal '{goal_id}'")
        return self._goals[goal_id]

    def create_goal(
        self,
        title: str,
        goal_type: Union[GoalType, str],
        target_value: float,
        deadline: datetime,
        unit: str = "",
        current_value: float = 0.0,
        category: str = 'performance',
        priority: int = 1,
        parent_id: Optional[str] = None,
        milestones: Optional[List[Milestone]] = None,
        goal_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Goal:
        """
        Create a goal, optionally as a sub-goal of an existing one.

        Args:
            title: Display title
            goal_type: primary, secondary or micro
            target_value: Value at which the goal is reached
            deadline: Target date
            unit: Unit of the values (kg, reps, %)
            current_value: Starting value
            category: Goal category
            priority: 1 is the highest
            parent_id: Id of the parent goal
            milestones: Intermediate checkpoints
            goal_id: Explicit id (a random one otherwise)
            now: Creation time (current time if None)

        Returns:
            The new Goal, with its initial success probability

        Raises:
            KeyError: If the parent does not exist
            ValueError: If the id is already in use
        """
        now = now or datetime.now()
        goal_id = goal_id or uuid.uuid4().hex
        if goal_id in self._goals:
            raise ValueError(f"Goal id '{goal_id}' already exists")
        if parent_id is not None and parent_id not in self._goals:
            raise KeyError(f"Unknown parent goal '{parent_id}'")

        goal = Goal(
            id=goal_id,
            type=GoalType(getattr(goal_type, 'value', goal_type)),
            title=title,
            target_value=target_value,
            current_value=current_value,
            unit=unit,
            deadline=deadline,
            created_at=now,
            category=category,
            priority=priority,
            parent_id=parent_id,
            milestones=list(milestones or []),
        )
        goal.success_probability = calculate_success_probability(goal, now)

        self._goals[goal_id] = goal
        if parent_id is not None:
            self._goals[parent_id].sub_goal_ids.append(goal_id)

        logger.debug("Created %s goal %s (%s)", goal.type.value, goal_id, title)
        return goal

    def update_progress(
        self,
        goal_id: str,
        current_value: float,
        now: Optional[datetime] = None
    ) -> Goal:
        """
        Record a new current value.

        Recomputes the goal's success probability and milestones; the parent
        goal is left untouched.
        """
        now = now or datetime.now()
        goal = self.get(goal_id)
        goal.current_value = current_value
        goal.success_probability = calculate_success_probability(goal, now)
        self.update_milestones(goal_id, now)
        return goal

    def update_milestones(self, goal_id: str, now: Optional[datetime] = None) -> List[Milestone]:
        """
        Mark milestones whose target the current value has reached.

        Returns:
            Milestones completed by this call
        """
        now = now or datetime.now()
        goal = self.get(goal_id)
        reached = []
        for milestone in goal.milestones:
            if not milestone.completed and goal.current_value >= milestone.target_value:
                milestone.completed = True
                milestone.completed_date = now
                reached.append(milestone)
        return reached

    def delete_goal(self, goal_id: str) -> Goal:
        """
        Remove a goal.

        The goal is unlinked from its parent; its sub-goals are kept and
        become top-level goals.
        """
        goal = self._goals.pop(goal_id, None)
        if goal is None:
            raise KeyError(f"Unknown goal '{goal_id}'")

        if goal.parent_id is not None and goal.parent_id in self._goals:
            parent = self._goals[goal.parent_id]
            parent.sub_goal_ids = [g for g in parent.sub_goal_ids if g != goal_id]

        for child_id in goal.sub_goal_ids:
            if child_id in self._goals:
                self._goals[child_id].parent_id = None

        logger.debug("Deleted goal %s, detached %d sub-goals", goal_id, len(goal.sub_goal_ids))
        return goal

    def children(self, goal_id: str) -> List[Goal]:
        """Direct sub-goals of a goal."""
        return [self._goals[g] for g in self.get(goal_id).sub_goal_ids if g in self._goals]

    def goals_by_type(self, goal_type: Union[GoalType, str]) -> List[Goal]:
        goal_type = GoalType(getattr(goal_type, 'value', goal_type))
        return [g for g in self._goals.values() if g.type == goal_type]

    def goals_by_status(
        self,
        status: Union[GoalStatus, str],
        now: Optional[datetime] = None
    ) -> List[Goal]:
        status = GoalStatus(getattr(status, 'value', status))
        now = now or datetime.now()
        return [g for g in self._goals.values() if goal_status(g, now, self.params) == status]

    def to_dict(self) -> List[Dict[str, Any]]:
        return [g.to_dict() for g in self._goals.values()]
