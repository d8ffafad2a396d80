"""Planning Package

자동 계획, 과부하 판정, 블로커 그래프, Auto/Manual 전환
"""

from .auto_plan import AutoPlanController
from .calendar import sprint_for_week, sprints_between, week_zero
from .confirmation import ConfirmationManager
from .dependency import DependencyGraphManager
from .scheduler import (
    AutoPlanResult,
    Scheduler,
    compute_auto_plan,
    compute_overload,
    compute_overload_map,
    match_resource,
    week_bounds,
)

__all__ = [
    "AutoPlanController",
    "AutoPlanResult",
    "ConfirmationManager",
    "DependencyGraphManager",
    "Scheduler",
    "compute_auto_plan",
    "compute_overload",
    "compute_overload_map",
    "match_resource",
    "sprint_for_week",
    "sprints_between",
    "week_bounds",
    "week_zero",
]
