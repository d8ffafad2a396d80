"""Scheduler

작업의 planEmpl/planWeeks로 주차별 배정(auto-plan)을 계산하고 리소스 과부하를 판정한다.

배정 규칙: 스캔 시작점부터 주차를 순서대로 보며, 매칭되는 리소스의 가용량 합이 0보다 큰
주차 중 처음 planWeeks개에 planEmpl을 넣는다. 가용량으로 잘라내지 않는다(과부하는 표시용).
"""

from typing import Optional, Sequence

from pydantic import BaseModel, Field

from backend.app.core.config import settings
from backend.app.core.decorators import log_execution_time
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import ResourceRow, TaskRow
from backend.app.roadmap.planning.calendar import sprints_between
from backend.app.roadmap.planning.dependency import DependencyGraphManager
from backend.app.roadmap.store.row_model import RowModel

logger = get_logger(__name__)

OVERLOAD_EPSILON = 1e-9


class AutoPlanResult(BaseModel):
    """자동 계획 결과"""

    weeks: list[float] = Field(default_factory=list)
    start_week: Optional[int] = None  # 1-based
    end_week: Optional[int] = None  # 1-based
    fact: float = 0

    @property
    def is_empty(self) -> bool:
        return self.start_week is None


def week_bounds(weeks: Sequence[float]) -> tuple[Optional[int], Optional[int], float]:
    """0이 아닌 주차의 1-based (처음, 끝)과 합계"""
    nonzero = [index + 1 for index, value in enumerate(weeks) if value > 0]
    if not nonzero:
        return None, None, float(sum(weeks))
    return min(nonzero), max(nonzero), float(sum(weeks))


def match_resource(resource: ResourceRow, task: TaskRow) -> bool:
    """리소스가 작업을 맡을 수 있는지

    직무(fn)가 같아야 하고, 작업에 팀이 있으면 리소스 팀 목록에 포함돼야 한다.
    특정 직원에게 묶인 작업은 같은 직원의 리소스만 매칭된다.
    """
    if resource.fn != task.fn:
        return False
    team = (task.team or "").strip()
    if team and team not in resource.team:
        return False
    if task.empl and resource.empl != task.empl:
        return False
    return True


def compute_auto_plan(
    task: TaskRow,
    resources: Sequence[ResourceRow],
    start_week: int = 0,
    week_count: Optional[int] = None,
) -> AutoPlanResult:
    """작업의 자동 계획 계산

    Args:
        task: 대상 작업
        resources: 전체 리소스 행
        start_week: 0-based 스캔 시작 주차
        week_count: 주차 수 (기본값: 작업 weeks 길이)

    Returns:
        AutoPlanResult. planEmpl/planWeeks가 0이거나 매칭 리소스나 주차가 모자라면 빈 계획
    """
    week_count = week_count or len(task.weeks) or settings.WEEK_COUNT
    empty = AutoPlanResult(weeks=[0.0] * week_count)

    need = max(0.0, task.plan_empl)
    duration = max(0, task.plan_weeks)
    if need <= 0 or duration <= 0:
        return empty

    matched = [r for r in resources if match_resource(r, task)]
    if not matched:
        logger.debug("No matching resource", task_id=task.id, fn=task.fn, team=task.team)
        return empty

    chosen: list[int] = []
    for week in range(max(0, start_week), week_count):
        capacity = sum(r.weeks[week] for r in matched if week < len(r.weeks))
        if capacity > 0:
            chosen.append(week)
            if len(chosen) == duration:
                break

    if len(chosen) < duration:
        logger.debug(
            "Not enough available weeks",
            task_id=task.id,
            needed=duration,
            found=len(chosen),
        )
        return empty

    weeks = [0.0] * week_count
    for week in chosen:
        weeks[week] = need
    start, end, fact = week_bounds(weeks)
    return AutoPlanResult(weeks=weeks, start_week=start, end_week=end, fact=fact)


def compute_overload(resource: ResourceRow, tasks: Sequence[TaskRow], week: int) -> bool:
    """같은 직무 작업들의 배정 합이 리소스 가용량을 넘는지 (표시용)"""
    demand = sum(t.weeks[week] for t in tasks if t.fn == resource.fn and week < len(t.weeks))
    capacity = resource.weeks[week] if week < len(resource.weeks) else 0.0
    return demand > capacity + OVERLOAD_EPSILON


def compute_overload_map(resource: ResourceRow, tasks: Sequence[TaskRow]) -> list[bool]:
    return [compute_overload(resource, tasks, week) for week in range(len(resource.weeks))]


def weeks_equal(left: Sequence[float], right: Sequence[float], tolerance: float) -> bool:
    if len(left) != len(right):
        return False
    return all(abs(a - b) <= tolerance for a, b in zip(left, right))


class Scheduler:
    """전체 재계획기"""

    def __init__(
        self,
        row_model: RowModel,
        dependency: DependencyGraphManager,
        start_week: Optional[int] = None,
    ):
        self._rows = row_model
        self._dependency = dependency
        self.start_week = settings.PLAN_START_WEEK if start_week is None else start_week

    def scan_origin(self, task: TaskRow, end_weeks: dict[str, Optional[int]]) -> int:
        """0-based 스캔 시작 주차

        블로커의 endWeek와 블로킹 주차는 1-based라 그 값이 곧 다음 주의 0-based 인덱스다.
        """
        blocker_end = max((end_weeks.get(b) or 0 for b in task.blocker_ids), default=0)
        week_blocker = max(task.week_blockers, default=0)
        return max(self.start_week, blocker_end, week_blocker)

    def plan_for(self, task: TaskRow) -> AutoPlanResult:
        """현재 블로커 상태 기준으로 작업의 자동 계획만 계산 (적용하지 않음)"""
        end_weeks: dict[str, Optional[int]] = {}
        for blocker_id in task.blocker_ids:
            blocker = self._rows.find(blocker_id)
            if isinstance(blocker, TaskRow):
                end_weeks[blocker_id] = blocker.end_week
        return compute_auto_plan(
            task,
            self._rows.resources(),
            self.scan_origin(task, end_weeks),
            self._rows.week_count,
        )

    @log_execution_time("Full re-plan")
    def schedule_all(self) -> dict[str, AutoPlanResult]:
        """모든 작업을 블로커 순서대로 다시 계산해 반영

        Auto 작업은 weeks까지, Manual 작업은 startWeek/endWeek/fact/sprintsAuto만 갱신한다.
        값이 바뀐 필드만 변경으로 기록된다.
        """
        resources = self._rows.resources()
        sprints = self._rows.sprints
        end_weeks: dict[str, Optional[int]] = {}
        results: dict[str, AutoPlanResult] = {}

        for task in self._dependency.topological_order():
            if task.auto_plan_enabled:
                result = compute_auto_plan(
                    task,
                    resources,
                    self.scan_origin(task, end_weeks),
                    self._rows.week_count,
                )
                self._rows.set_field(task.id, "weeks", result.weeks)
            else:
                start, end, fact = week_bounds(task.weeks)
                result = AutoPlanResult(
                    weeks=list(task.weeks), start_week=start, end_week=end, fact=fact
                )

            self._rows.set_field(task.id, "start_week", result.start_week)
            self._rows.set_field(task.id, "end_week", result.end_week)
            self._rows.set_field(task.id, "fact", result.fact)
            self._rows.set_field(
                task.id,
                "sprints_auto",
                sprints_between(result.start_week, result.end_week, sprints),
            )
            end_weeks[task.id] = result.end_week
            results[task.id] = result

        return results
