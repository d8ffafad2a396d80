"""Scheduler 테스트

위치: backend.app.roadmap.planning.scheduler
"""

from backend.app.roadmap.models import ResourceRow, TaskRow
from backend.app.roadmap.planning import (
    compute_auto_plan,
    compute_overload,
    compute_overload_map,
    match_resource,
    week_bounds,
)

WEEKS = 8


def _resource(**kwargs):
    data = {"id": "r", "team": ["Core"], "fn": "BE", "weeks": [1.0] * WEEKS}
    data.update(kwargs)
    return ResourceRow(**data)


def _task(**kwargs):
    data = {
        "id": "t",
        "team": "Core",
        "fn": "BE",
        "plan_empl": 1,
        "plan_weeks": 3,
        "weeks": [0.0] * WEEKS,
    }
    data.update(kwargs)
    return TaskRow(**data)


class TestMatchResource:
    """리소스 매칭"""

    def test_same_fn_and_team(self):
        assert match_resource(_resource(), _task())

    def test_fn_mismatch(self):
        assert not match_resource(_resource(fn="FE"), _task())

    def test_team_not_in_resource(self):
        assert not match_resource(_resource(team=["Platform"]), _task())

    def test_task_without_team_matches_any_team(self):
        assert match_resource(_resource(team=["Platform"]), _task(team=""))

    def test_employee_binding(self):
        task = _task(empl="kim")

        assert match_resource(_resource(empl="kim"), task)
        assert not match_resource(_resource(empl="lee"), task)
        assert not match_resource(_resource(empl=None), task)


class TestComputeAutoPlan:
    """자동 계획 계산"""

    def test_first_weeks(self):
        result = compute_auto_plan(_task(), [_resource()])

        assert result.weeks == [1.0, 1.0, 1.0, 0, 0, 0, 0, 0]
        assert (result.start_week, result.end_week, result.fact) == (1, 3, 3.0)

    def test_plan_weeks_three_to_five(self):
        result = compute_auto_plan(_task(plan_weeks=5), [_resource()])
        assert result.weeks == [1.0] * 5 + [0.0] * 3

    def test_plan_empl_half(self):
        result = compute_auto_plan(_task(plan_empl=0.5), [_resource()])

        assert result.weeks[:3] == [0.5, 0.5, 0.5]
        assert result.fact == 1.5

    def test_skips_weeks_without_capacity(self):
        resource = _resource(weeks=[1.0, 0.0, 0.0, 1.0, 1.0, 0.0, 0.0, 0.0])
        result = compute_auto_plan(_task(), [resource])

        assert result.weeks == [1.0, 0, 0, 1.0, 1.0, 0, 0, 0]
        assert (result.start_week, result.end_week) == (1, 5)

    def test_demand_not_clamped_to_capacity(self):
        result = compute_auto_plan(_task(plan_empl=3), [_resource()])
        assert result.weeks[0] == 3.0

    def test_start_week(self):
        result = compute_auto_plan(_task(), [_resource()], start_week=4)

        assert result.weeks == [0, 0, 0, 0, 1.0, 1.0, 1.0, 0]
        assert result.start_week == 5

    def test_not_enough_weeks_gives_empty_plan(self):
        result = compute_auto_plan(_task(), [_resource()], start_week=6)

        assert result.is_empty
        assert result.weeks == [0.0] * WEEKS

    def test_no_matching_resource(self):
        assert compute_auto_plan(_task(fn="PO"), [_resource()]).is_empty

    def test_zero_parameters(self):
        assert compute_auto_plan(_task(plan_empl=0), [_resource()]).is_empty
        assert compute_auto_plan(_task(plan_weeks=0), [_resource()]).is_empty

    def test_capacity_summed_across_resources(self):
        first = _resource(id="r1", weeks=[1.0, 0, 0, 0, 0, 0, 0, 0])
        second = _resource(id="r2", weeks=[0, 1.0, 1.0, 0, 0, 0, 0, 0])

        result = compute_auto_plan(_task(), [first, second])
        assert result.weeks[:3] == [1.0, 1.0, 1.0]


class TestOverload:
    """과부하 판정"""

    def test_overloaded_week(self):
        resource = _resource(weeks=[1.0] * WEEKS)
        tasks = [
            _task(id="a", weeks=[1.0, 0.5] + [0.0] * 6),
            _task(id="b", weeks=[0.5, 0.5] + [0.0] * 6),
            _task(id="c", fn="FE", weeks=[5.0] * WEEKS),
        ]

        assert compute_overload(resource, tasks, 0) is True
        assert compute_overload(resource, tasks, 1) is False
        assert compute_overload_map(resource, tasks)[:3] == [True, False, False]

    def test_float_noise_not_overloaded(self):
        resource = _resource(weeks=[0.3] + [0.0] * 7)
        tasks = [_task(id="a", weeks=[0.1] + [0.0] * 7), _task(id="b", weeks=[0.2] + [0.0] * 7)]

        assert compute_overload(resource, tasks, 0) is False


class TestWeekBounds:
    def test_bounds(self):
        assert week_bounds([0, 1.0, 0, 2.0]) == (2, 4, 3.0)
        assert week_bounds([0, 0]) == (None, None, 0.0)


class TestSchedulerInSession:
    """세션에서 전체 재계획"""

    def test_loaded_tasks_planned(self, session):
        first = session.rows.get_task("t-1")

        assert first.weeks[:4] == [1.0, 1.0, 1.0, 0.0]
        assert (first.start_week, first.end_week, first.fact) == (1, 3, 3.0)
        assert first.sprints_auto == ["Q3S1", "Q3S2"]

    def test_plan_weeks_edit_replans(self, session):
        session.update_field("t-1", "planWeeks", 5)

        task = session.rows.get_task("t-1")
        assert task.weeks[:6] == [1.0] * 5 + [0.0]
        assert task.end_week == 5

    def test_plan_empl_edit_replans(self, session):
        session.update_field("t-1", "planEmpl", 0.5)

        task = session.rows.get_task("t-1")
        assert task.weeks[:4] == [0.5, 0.5, 0.5, 0.0]
        assert task.fact == 1.5

    def test_resource_capacity_change_replans(self, session):
        weeks = [0.0, 0.0] + [1.0] * 6
        session.update_field("r-be", "weeks", weeks)

        assert session.rows.get_task("t-1").start_week == 3

    def test_overload_in_session(self, session):
        """t-1과 t-2가 첫 두 주에 겹친다"""
        overload = session.overload("r-be")

        assert overload[:3] == [True, True, False]
        assert session.is_overloaded("r-be", 0)

    def test_start_week_mismatch_follows_plan(self, session):
        """기대 시작 주차는 재계획 결과와 비교된다"""
        session.update_field("t-1", "expectedStartWeek", 2)
        assert session.start_week_mismatches() == ["t-1"]

        session.add_week_blocker("t-1", 1)

        assert session.rows.get_task("t-1").start_week == 2
        assert session.start_week_mismatches() == []
