"""Auto Plan Controller

작업별 Auto/Manual 상태 전환.

- Auto에서 주차 셀을 직접 고치면 같은 변경 묶음 안에서 autoPlanEnabled가 꺼진다.
- Manual에서 Auto로 돌아갈 때 수동 계획이 버려지면 확인을 받는다. 거절하면 Manual 유지.
- Auto 상태의 파라미터 변경은 확인 없이 다시 계산한다.
"""

from typing import Callable, Optional

from backend.app.core.config import settings
from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import ConfirmationRequest, PlanMode
from backend.app.roadmap.planning.confirmation import ConfirmationManager
from backend.app.roadmap.planning.scheduler import Scheduler, weeks_equal
from backend.app.roadmap.store.row_model import RowModel

logger = get_logger(__name__)

DISCARD_MANUAL_PLAN_MESSAGE = (
    "자동 계획을 켜면 직접 입력한 주차 배정이 새로 계산된 계획으로 바뀝니다. 계속할까요?"
)

ConfirmCallback = Callable[[ConfirmationRequest], bool]


class AutoPlanController:
    """Auto/Manual 상태 머신"""

    def __init__(
        self,
        row_model: RowModel,
        scheduler: Scheduler,
        confirmations: ConfirmationManager,
        tolerance: Optional[float] = None,
    ):
        self._rows = row_model
        self._scheduler = scheduler
        self._confirmations = confirmations
        self.tolerance = settings.AUTO_PLAN_TOLERANCE if tolerance is None else tolerance

    def mode(self, task_id: str) -> PlanMode:
        task = self._rows.get_task(task_id)
        return PlanMode.AUTO if task.auto_plan_enabled else PlanMode.MANUAL

    def edit_week(self, task_id: str, week: int, value: float) -> None:
        """주차 셀 직접 수정 (Auto → Manual)

        Args:
            task_id: 작업 id
            week: 0-based 주차
            value: 배정 인원 (0 이상)
        """
        task = self._rows.get_task(task_id)
        if not 0 <= week < self._rows.week_count:
            raise ValidationError(
                ErrorCode.WEEK_OUT_OF_RANGE,
                details={"task_id": task_id, "week": week},
            )
        if value < 0:
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                details={"task_id": task_id, "week": week, "value": value},
            )

        if task.auto_plan_enabled:
            self._rows.set_field(task_id, "auto_plan_enabled", False)
            logger.info("Auto plan switched to manual by cell edit", task_id=task_id, week=week)
        self._rows.set_field(task_id, "manual_edited", True)

        weeks = list(task.weeks)
        weeks[week] = float(value)
        self._rows.set_field(task_id, "weeks", weeks)
        self._scheduler.schedule_all()

    def set_plan_params(
        self,
        task_id: str,
        plan_empl: Optional[float] = None,
        plan_weeks: Optional[int] = None,
        fn: Optional[str] = None,
    ) -> None:
        """planEmpl/planWeeks/fn 변경, Auto면 다시 계산"""
        task = self._rows.get_task(task_id)
        if plan_empl is not None:
            self._rows.set_field(task_id, "plan_empl", plan_empl)
        if plan_weeks is not None:
            self._rows.set_field(task_id, "plan_weeks", plan_weeks)
        if fn is not None:
            self._rows.set_field(task_id, "fn", fn)

        if task.auto_plan_enabled:
            self._scheduler.schedule_all()

    def disable_auto_plan(self, task_id: str) -> None:
        """Auto 끄기 (현재 weeks는 그대로 수동 계획이 됨)"""
        task = self._rows.get_task(task_id)
        if not task.auto_plan_enabled:
            return
        self._rows.set_field(task_id, "auto_plan_enabled", False)
        self._rows.set_field(task_id, "manual_edited", True)
        logger.info("Auto plan disabled", task_id=task_id)

    def needs_confirmation(self, task_id: str) -> bool:
        """Auto를 켜면 수동 계획이 사라지는지"""
        task = self._rows.get_task(task_id)
        if task.auto_plan_enabled:
            return False
        if not any(value > 0 for value in task.weeks):
            return False
        proposed = self._scheduler.plan_for(task)
        return not weeks_equal(task.weeks, proposed.weeks, self.tolerance)

    def request_enable(self, task_id: str) -> Optional[ConfirmationRequest]:
        """Auto 켜기 요청

        Returns:
            확인이 필요하면 ConfirmationRequest, 바로 켰으면 None
        """
        task = self._rows.get_task(task_id)
        if task.auto_plan_enabled:
            return None

        if not self.needs_confirmation(task_id):
            self._enable(task_id)
            return None

        proposed = self._scheduler.plan_for(task)
        return self._confirmations.create_request(
            task_id=task_id,
            message=DISCARD_MANUAL_PLAN_MESSAGE,
            current_weeks=list(task.weeks),
            proposed_weeks=proposed.weeks,
        )

    def resolve(self, request_id: str, accepted: bool) -> bool:
        """확인 응답 처리

        Returns:
            Auto가 켜졌으면 True
        """
        response = self._confirmations.submit_response(request_id, accepted)
        if not response.accepted:
            logger.info("Manual plan kept", task_id=response.task_id)
            return False
        self._enable(response.task_id)
        return True

    def enable_auto_plan(
        self,
        task_id: str,
        confirm: Optional[ConfirmCallback] = None,
    ) -> bool:
        """Auto 켜기 (동기 확인 콜백 버전)

        Args:
            task_id: 작업 id
            confirm: 확인 요청을 받아 승인 여부를 돌려주는 콜백.
                없으면 확인이 필요한 경우 요청만 남기고 False를 반환한다.

        Returns:
            Auto가 켜졌으면 True
        """
        request = self.request_enable(task_id)
        if request is None:
            return self._rows.get_task(task_id).auto_plan_enabled
        if confirm is None:
            return False
        return self.resolve(request.request_id, confirm(request))

    def _enable(self, task_id: str) -> None:
        self._rows.set_field(task_id, "auto_plan_enabled", True)
        self._rows.set_field(task_id, "manual_edited", False)
        self._scheduler.schedule_all()
        logger.info("Auto plan enabled", task_id=task_id)
