"""Roadmap Session

RowModel, ChangeTracker, 스케줄러, 블로커 그래프, 순서 유지, 확인 요청, 자동 저장을
하나로 묶은 파사드. UI/API는 이 객체만 호출한다.
"""

from typing import Any, Callable, Optional

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import (
    AutoSaveState,
    ConfirmationRequest,
    DropSide,
    EntityKind,
    RoadmapModel,
    RoadmapSnapshot,
    Row,
    RowKind,
    TaskRow,
)
from backend.app.roadmap.ordering import LinkChange, OrderMaintainer
from backend.app.roadmap.persistence import PersistenceCoordinator, RoadmapTransport
from backend.app.roadmap.planning import (
    AutoPlanController,
    ConfirmationManager,
    DependencyGraphManager,
    Scheduler,
    compute_overload,
    compute_overload_map,
)
from backend.app.roadmap.store import LINK_FIELDS, RowModel
from backend.app.roadmap.tracking import ChangeTracker, calculate_data_changes

logger = get_logger(__name__)

# 전용 연산으로만 바꾸는 필드
PLAN_PARAM_FIELDS = ("plan_empl", "plan_weeks", "fn")
GUARDED_FIELDS = (
    "blocker_ids",
    "week_blockers",
    "auto_plan_enabled",
    "manual_edited",
    "start_week",
    "end_week",
    "fact",
    "sprints_auto",
) + LINK_FIELDS
# 자동 계획 결과에 영향을 주는 리소스/작업 필드
REPLAN_FIELDS = ("team", "empl", "weeks", "fn")


class RoadmapSession:
    """로드맵 편집 세션"""

    def __init__(
        self,
        transport: RoadmapTransport,
        week_count: Optional[int] = None,
        user_id: Optional[str] = None,
        autosave_delay_ms: Optional[int] = None,
        autosave_enabled: Optional[bool] = None,
        on_save_success: Optional[Callable[[int], None]] = None,
        on_save_error: Optional[Callable[[str], None]] = None,
    ):
        self.rows = RowModel(week_count=week_count)
        self.tracker = ChangeTracker(resolver=self.rows.resolve)
        self.rows.add_listener(self.tracker.listener())

        self.dependency = DependencyGraphManager(self.rows)
        self.scheduler = Scheduler(self.rows, self.dependency)
        self.ordering = OrderMaintainer(self.rows)
        self.confirmations = ConfirmationManager()
        self.auto_plan = AutoPlanController(self.rows, self.scheduler, self.confirmations)

        self.transport = transport
        self.coordinator = PersistenceCoordinator(
            tracker=self.tracker,
            transport=transport,
            user_id=user_id,
            delay_ms=autosave_delay_ms,
            enabled=autosave_enabled,
            on_save_success=on_save_success,
            on_save_error=on_save_error,
        )
        self.tracker.set_on_change(self.coordinator.notify_change)

    # === Load ===

    def load(self, snapshot: RoadmapSnapshot) -> None:
        """서버 데이터 적재 (추적 초기화, 버전 채택)"""
        self.rows.load(snapshot)
        self.tracker.reset()
        self.coordinator.version = snapshot.version

    async def load_from_server(self) -> RoadmapSnapshot:
        snapshot = await self.transport.fetch_data()
        self.load(snapshot)
        return snapshot

    def snapshot(self) -> RoadmapSnapshot:
        snapshot = self.rows.snapshot()
        snapshot.version = self.coordinator.version
        return snapshot

    async def import_snapshot(self, snapshot: RoadmapSnapshot) -> AutoSaveState:
        """전체 스냅샷으로 교체하고 diff로 계산한 변경을 저장"""
        change_log = calculate_data_changes(self.snapshot(), snapshot)
        self.rows.load(snapshot)
        self.tracker.reset()
        logger.info("Snapshot imported", kinds=sorted(change_log.to_payload()))
        return await self.coordinator.save_change_log(change_log)

    # === Rows ===

    def add_row(
        self,
        kind: RowKind,
        anchor_id: Optional[str] = None,
        side: DropSide = DropSide.BOTTOM,
        **fields: Any,
    ) -> Row:
        """행 추가 (기준 행 위/아래 또는 맨 끝)"""
        row = self.rows.add_row(self.rows.new_row(kind, **fields), anchor_id=anchor_id, side=side)
        self.scheduler.schedule_all()
        return row

    def duplicate_row(self, row_id: str) -> Row:
        row = self.rows.duplicate_row(row_id)
        self.scheduler.schedule_all()
        return row

    def delete_row(self, row_id: str) -> Row:
        row = self.rows.get(row_id)
        if isinstance(row, TaskRow):
            self.dependency.detach(row_id)
            self.confirmations.cancel_for_task(row_id)
        deleted = self.rows.delete_row(row_id)
        self.scheduler.schedule_all()
        return deleted

    def update_field(self, row_id: str, field: str, value: Any) -> Row:
        """일반 필드 편집

        주차 벡터, 계획 파라미터, 블로커, 순서 필드는 전용 경로로 보낸다.
        """
        row = self.rows.get(row_id)
        name = type(row).resolve_field(field)
        if name is None or name in GUARDED_FIELDS:
            raise ValidationError(
                ErrorCode.INVALID_FIELD,
                details={"row_id": row_id, "field": field},
            )

        if isinstance(row, TaskRow) and name in PLAN_PARAM_FIELDS:
            self.auto_plan.set_plan_params(row_id, **{name: value})
            return row
        if isinstance(row, TaskRow) and name == "weeks":
            raise ValidationError(
                ErrorCode.INVALID_FIELD,
                message="작업 주차는 셀 단위로 수정합니다.",
                details={"row_id": row_id, "field": field},
            )

        changed = self.rows.set_field(row_id, name, value)
        if changed and name in REPLAN_FIELDS:
            self.scheduler.schedule_all()
        return row

    def edit_task_week(self, task_id: str, week: int, value: float) -> TaskRow:
        self.auto_plan.edit_week(task_id, week, value)
        return self.rows.get_task(task_id)

    def edit_resource_week(self, resource_id: str, week: int, value: float) -> Row:
        resource = self.rows.get_resource(resource_id)
        if not 0 <= week < self.rows.week_count:
            raise ValidationError(
                ErrorCode.WEEK_OUT_OF_RANGE,
                details={"resource_id": resource_id, "week": week},
            )
        weeks = list(resource.weeks)
        weeks[week] = float(value)
        if self.rows.set_field(resource_id, "weeks", weeks):
            self.scheduler.schedule_all()
        return resource

    def reorder(self, dragged_id: str, target_id: str, side: DropSide) -> list[LinkChange]:
        return self.ordering.reorder(dragged_id, target_id, side)

    # === Reference data ===

    def upsert_reference(self, kind: EntityKind, record: RoadmapModel) -> None:
        self.rows.upsert_reference(kind, record)
        if kind == EntityKind.SPRINT:
            self.scheduler.schedule_all()

    def delete_reference(self, kind: EntityKind, key: str) -> None:
        self.rows.delete_reference(kind, key)
        if kind == EntityKind.SPRINT:
            self.scheduler.schedule_all()

    # === Blockers ===

    def can_set_blocker(self, task_id: str, blocker_id: str) -> bool:
        return self.dependency.can_set_blocker(task_id, blocker_id)

    def add_blocker(self, task_id: str, blocker_id: str) -> TaskRow:
        if self.dependency.add_blocker(task_id, blocker_id):
            self.scheduler.schedule_all()
        return self.rows.get_task(task_id)

    def remove_blocker(self, task_id: str, blocker_id: str) -> TaskRow:
        if self.dependency.remove_blocker(task_id, blocker_id):
            self.scheduler.schedule_all()
        return self.rows.get_task(task_id)

    def add_week_blocker(self, task_id: str, week: int) -> TaskRow:
        if self.dependency.add_week_blocker(task_id, week):
            self.scheduler.schedule_all()
        return self.rows.get_task(task_id)

    def remove_week_blocker(self, task_id: str, week: int) -> TaskRow:
        if self.dependency.remove_week_blocker(task_id, week):
            self.scheduler.schedule_all()
        return self.rows.get_task(task_id)

    # === Auto plan ===

    def set_auto_plan(self, task_id: str, enabled: bool) -> Optional[ConfirmationRequest]:
        """Auto 토글

        Returns:
            켜기에 확인이 필요하면 ConfirmationRequest
        """
        if not enabled:
            self.auto_plan.disable_auto_plan(task_id)
            return None
        return self.auto_plan.request_enable(task_id)

    def resolve_confirmation(self, request_id: str, accepted: bool) -> bool:
        return self.auto_plan.resolve(request_id, accepted)

    # === Overload ===

    def overload(self, resource_id: str) -> list[bool]:
        return compute_overload_map(self.rows.get_resource(resource_id), self.rows.tasks())

    def is_overloaded(self, resource_id: str, week: int) -> bool:
        return compute_overload(self.rows.get_resource(resource_id), self.rows.tasks(), week)

    def start_week_mismatches(self) -> list[str]:
        """기대 시작 주차와 계획이 어긋난 작업 id (행 순서)"""
        return [task.id for task in self.rows.tasks() if task.start_week_mismatch]

    # === Persistence ===

    @property
    def save_state(self) -> AutoSaveState:
        return self.coordinator.state

    async def force_save(self) -> AutoSaveState:
        return await self.coordinator.force_save()

    async def close(self) -> None:
        await self.coordinator.close()


# 싱글톤
_session: Optional[RoadmapSession] = None


def get_roadmap_session() -> RoadmapSession:
    """RoadmapSession 싱글톤 반환 (lifespan에서 set_roadmap_session으로 설정)"""
    if _session is None:
        raise RuntimeError("Roadmap session is not initialized")
    return _session


def set_roadmap_session(session: Optional[RoadmapSession]) -> None:
    global _session
    _session = session
