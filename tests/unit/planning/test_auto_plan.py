"""Auto/Manual 전환 테스트

위치: backend.app.roadmap.planning.auto_plan, confirmation
"""

import pytest

from backend.app.core.errors import ConfirmationError, ErrorCode, ValidationError
from backend.app.roadmap.models import PlanMode
from backend.app.roadmap.planning import ConfirmationManager


def _manual(session, task_id="t-1", week=5, value=2.0):
    """셀 편집으로 Manual 전환"""
    session.edit_task_week(task_id, week, value)
    return session.rows.get_task(task_id)


class TestManualEdit:
    """주차 셀 편집"""

    def test_edit_switches_to_manual(self, session):
        task = _manual(session)

        assert task.auto_plan_enabled is False
        assert task.manual_edited is True
        assert task.weeks[:6] == [1.0, 1.0, 1.0, 0.0, 0.0, 2.0]
        assert session.auto_plan.mode("t-1") == PlanMode.MANUAL

    def test_edit_recorded_together(self, session):
        """autoPlanEnabled와 weeks가 같은 저장 묶음에 들어간다"""
        _manual(session)

        tasks = session.tracker.build_change_log().to_payload()["tasks"]
        entry = next(item for item in tasks if item["id"] == "t-1")
        assert entry["autoPlanEnabled"] is False
        assert entry["weeks"][5] == 2.0
        assert entry["endWeek"] == 6

    def test_manual_task_not_replanned(self, session):
        _manual(session)
        session.update_field("t-1", "planWeeks", 5)

        task = session.rows.get_task("t-1")
        assert task.plan_weeks == 5
        assert task.weeks[3:5] == [0.0, 0.0]

    def test_week_out_of_range(self, session):
        with pytest.raises(ValidationError) as exc_info:
            session.edit_task_week("t-1", session.rows.week_count, 1)
        assert exc_info.value.code == ErrorCode.WEEK_OUT_OF_RANGE

    def test_task_weeks_not_editable_as_field(self, session):
        with pytest.raises(ValidationError) as exc_info:
            session.update_field("t-1", "weeks", [0.0] * session.rows.week_count)
        assert exc_info.value.code == ErrorCode.INVALID_FIELD

    @pytest.mark.parametrize("field", ["autoPlanEnabled", "blockerIds", "prevId", "endWeek"])
    def test_guarded_fields(self, session, field):
        with pytest.raises(ValidationError):
            session.update_field("t-1", field, None)


class TestEnableAutoPlan:
    """Manual → Auto 확인"""

    def test_confirmation_requested(self, session):
        _manual(session)

        request = session.set_auto_plan("t-1", True)

        assert request is not None
        assert request.task_id == "t-1"
        assert request.current_weeks[5] == 2.0
        assert request.proposed_weeks[:4] == [1.0, 1.0, 1.0, 0.0]
        assert session.rows.get_task("t-1").auto_plan_enabled is False

    def test_decline_keeps_manual_plan(self, session):
        _manual(session)
        request = session.set_auto_plan("t-1", True)

        assert session.resolve_confirmation(request.request_id, False) is False

        task = session.rows.get_task("t-1")
        assert task.auto_plan_enabled is False
        assert task.weeks[5] == 2.0

    def test_accept_restores_auto_plan(self, session):
        _manual(session)
        request = session.set_auto_plan("t-1", True)

        assert session.resolve_confirmation(request.request_id, True) is True

        task = session.rows.get_task("t-1")
        assert task.auto_plan_enabled is True
        assert task.manual_edited is False
        assert task.weeks[:6] == [1.0, 1.0, 1.0, 0.0, 0.0, 0.0]

    def test_request_consumed(self, session):
        _manual(session)
        request = session.set_auto_plan("t-1", True)
        session.resolve_confirmation(request.request_id, False)

        with pytest.raises(ConfirmationError) as exc_info:
            session.resolve_confirmation(request.request_id, True)
        assert exc_info.value.code == ErrorCode.CONFIRMATION_NOT_FOUND

    def test_no_confirmation_when_plan_matches(self, session):
        session.set_auto_plan("t-1", False)

        assert session.set_auto_plan("t-1", True) is None
        assert session.rows.get_task("t-1").auto_plan_enabled is True

    def test_no_confirmation_when_manual_plan_empty(self, session):
        for week in range(3):
            session.edit_task_week("t-1", week, 0)

        assert session.set_auto_plan("t-1", True) is None
        assert session.rows.get_task("t-1").weeks[:3] == [1.0, 1.0, 1.0]

    def test_callback_variant(self, session):
        _manual(session)
        asked = []

        def confirm(request):
            asked.append(request.task_id)
            return True

        assert session.auto_plan.enable_auto_plan("t-1", confirm=confirm) is True
        assert asked == ["t-1"]
        assert session.auto_plan.mode("t-1") == PlanMode.AUTO

    def test_callback_missing_leaves_request(self, session):
        _manual(session)

        assert session.auto_plan.enable_auto_plan("t-1") is False
        assert session.confirmations.get_pending_for_task("t-1") is not None

    def test_delete_task_cancels_request(self, session):
        _manual(session)
        session.set_auto_plan("t-1", True)
        session.delete_row("t-1")

        assert session.confirmations.pending_requests() == []


class TestConfirmationManager:
    """확인 요청 관리"""

    def test_new_request_replaces_previous(self):
        manager = ConfirmationManager(timeout_sec=60)
        first = manager.create_request("t-1", "?", [1.0], [0.0])
        second = manager.create_request("t-1", "?", [2.0], [0.0])

        assert [r.request_id for r in manager.pending_requests()] == [second.request_id]
        with pytest.raises(ConfirmationError):
            manager.get_request(first.request_id)

    def test_expired(self):
        manager = ConfirmationManager(timeout_sec=-1)
        request = manager.create_request("t-1", "?", [1.0], [0.0])

        with pytest.raises(ConfirmationError) as exc_info:
            manager.submit_response(request.request_id, True)
        assert exc_info.value.code == ErrorCode.CONFIRMATION_EXPIRED

    def test_submit_response(self):
        manager = ConfirmationManager(timeout_sec=60)
        request = manager.create_request("t-1", "?", [1.0], [0.0])

        response = manager.submit_response(request.request_id, True)

        assert response.task_id == "t-1"
        assert response.accepted is True
        assert manager.pending_requests() == []
