"""Row Model

리소스/작업 행과 참조 데이터(팀, 스프린트, 직무, 직원)를 소유하는 인메모리 저장소.
모든 변경은 이 클래스의 메서드를 거치고, 등록된 리스너에게
on_cell_change / on_row_add / on_row_delete / on_reorder 로 알린다.
"""

import copy
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from backend.app.core.config import settings
from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import (
    ROW_TYPES,
    DropSide,
    EntityKind,
    ResourceRow,
    RoadmapModel,
    RoadmapSnapshot,
    Row,
    RowKind,
    Sprint,
    TaskRow,
    new_id,
)
from backend.app.roadmap.ordering.order_maintainer import (
    LinkChange,
    compute_links,
    order_from_links,
)

logger = get_logger(__name__)

REFERENCE_KINDS = (
    EntityKind.TEAM,
    EntityKind.SPRINT,
    EntityKind.FUNCTION,
    EntityKind.EMPLOYEE,
)

# 순서 필드는 OrderMaintainer/RowModel만 바꾼다
LINK_FIELDS = ("prev_id", "next_id")


class RowModelListener:
    """RowModel 변경 리스너 (필요한 메서드만 override)"""

    def on_cell_change(
        self,
        kind: EntityKind,
        row_id: str,
        field: str,
        old_value: Any,
        new_value: Any,
    ) -> None:
        pass

    def on_row_add(self, kind: EntityKind, row_id: str) -> None:
        pass

    def on_row_delete(self, kind: EntityKind, row_id: str) -> None:
        pass

    def on_reorder(self, kind: RowKind, changes: list[LinkChange]) -> None:
        pass


def normalize_weeks(weeks: list[float], week_count: int) -> list[float]:
    """weeks 길이를 week_count에 맞춘다 (0으로 채우거나 자름)"""
    if len(weeks) >= week_count:
        return list(weeks[:week_count])
    return list(weeks) + [0.0] * (week_count - len(weeks))


class RowModel:
    """그리드 행 저장소"""

    def __init__(self, week_count: Optional[int] = None):
        self.week_count = week_count or settings.WEEK_COUNT
        self.version = 0
        self._rows: dict[str, Row] = {}
        self._order: dict[RowKind, list[str]] = {kind: [] for kind in RowKind}
        self._reference: dict[EntityKind, dict[str, RoadmapModel]] = {
            kind: {} for kind in REFERENCE_KINDS
        }
        self._listeners: list[RowModelListener] = []

    # === Listeners ===

    def add_listener(self, listener: RowModelListener) -> None:
        self._listeners.append(listener)

    def _emit_cell(
        self, kind: EntityKind, row_id: str, field: str, old: Any, new: Any
    ) -> None:
        for listener in self._listeners:
            listener.on_cell_change(kind, row_id, field, copy.deepcopy(old), copy.deepcopy(new))

    def _emit_add(self, kind: EntityKind, row_id: str) -> None:
        for listener in self._listeners:
            listener.on_row_add(kind, row_id)

    def _emit_delete(self, kind: EntityKind, row_id: str) -> None:
        for listener in self._listeners:
            listener.on_row_delete(kind, row_id)

    def _emit_reorder(self, kind: RowKind, changes: list[LinkChange]) -> None:
        for listener in self._listeners:
            listener.on_reorder(kind, changes)

    # === Load / Snapshot ===

    def load(self, snapshot: RoadmapSnapshot) -> None:
        """전체 데이터 적재 (리스너에 알리지 않음)"""
        self._rows.clear()
        self._order = {kind: [] for kind in RowKind}

        for kind, rows in (
            (RowKind.RESOURCE, snapshot.resources),
            (RowKind.TASK, snapshot.tasks),
        ):
            loaded: list[Row] = []
            for row in rows:
                row = row.model_copy(deep=True)
                if len(row.weeks) != self.week_count:
                    logger.warning(
                        "Weeks vector resized",
                        row_id=row.id,
                        length=len(row.weeks),
                        week_count=self.week_count,
                    )
                    row.weeks = normalize_weeks(row.weeks, self.week_count)
                self._rows[row.id] = row
                loaded.append(row)
            self._order[kind] = order_from_links(loaded)

        self._reference = {kind: {} for kind in REFERENCE_KINDS}
        for kind, records in (
            (EntityKind.TEAM, snapshot.teams),
            (EntityKind.SPRINT, snapshot.sprints),
            (EntityKind.FUNCTION, snapshot.functions),
            (EntityKind.EMPLOYEE, snapshot.employees),
        ):
            for record in records:
                self._reference[kind][record.key] = record.model_copy(deep=True)

        self.version = snapshot.version
        logger.info(
            "Roadmap loaded",
            version=self.version,
            resources=len(self._order[RowKind.RESOURCE]),
            tasks=len(self._order[RowKind.TASK]),
        )

    def snapshot(self) -> RoadmapSnapshot:
        """현재 상태의 깊은 복사본"""
        return RoadmapSnapshot(
            version=self.version,
            teams=[r.model_copy(deep=True) for r in self.references(EntityKind.TEAM)],
            sprints=[r.model_copy(deep=True) for r in self.references(EntityKind.SPRINT)],
            functions=[r.model_copy(deep=True) for r in self.references(EntityKind.FUNCTION)],
            employees=[r.model_copy(deep=True) for r in self.references(EntityKind.EMPLOYEE)],
            resources=[r.model_copy(deep=True) for r in self.rows(RowKind.RESOURCE)],
            tasks=[r.model_copy(deep=True) for r in self.rows(RowKind.TASK)],
        )

    # === Queries ===

    def rows(self, kind: RowKind) -> list[Row]:
        return [self._rows[row_id] for row_id in self._order[kind]]

    def tasks(self) -> list[TaskRow]:
        return self.rows(RowKind.TASK)  # type: ignore[return-value]

    def resources(self) -> list[ResourceRow]:
        return self.rows(RowKind.RESOURCE)  # type: ignore[return-value]

    def order(self, kind: RowKind) -> list[str]:
        return list(self._order[kind])

    def find(self, row_id: str) -> Optional[Row]:
        return self._rows.get(row_id)

    def get(self, row_id: str) -> Row:
        row = self._rows.get(row_id)
        if row is None:
            raise ValidationError(ErrorCode.ROW_NOT_FOUND, details={"row_id": row_id})
        return row

    def get_task(self, task_id: str) -> TaskRow:
        row = self.get(task_id)
        if not isinstance(row, TaskRow):
            raise ValidationError(
                ErrorCode.ROW_NOT_FOUND,
                message="작업 행이 아닙니다.",
                details={"row_id": task_id},
            )
        return row

    def get_resource(self, resource_id: str) -> ResourceRow:
        row = self.get(resource_id)
        if not isinstance(row, ResourceRow):
            raise ValidationError(
                ErrorCode.ROW_NOT_FOUND,
                message="리소스 행이 아닙니다.",
                details={"row_id": resource_id},
            )
        return row

    def references(self, kind: EntityKind) -> list[RoadmapModel]:
        return list(self._reference[kind].values())

    @property
    def sprints(self) -> list[Sprint]:
        return self.references(EntityKind.SPRINT)  # type: ignore[return-value]

    def resolve(self, kind: EntityKind, key: str) -> Optional[dict[str, Any]]:
        """현재 레코드의 와이어 표현 (없으면 None)"""
        if kind in REFERENCE_KINDS:
            record = self._reference[kind].get(key)
        else:
            record = self._rows.get(key)
            if record is not None and record.kind != kind.value:
                record = None
        return record.to_wire() if record is not None else None

    # === Mutations ===

    def set_field(self, row_id: str, field: str, value: Any) -> bool:
        """필드 값 변경

        Args:
            row_id: 행 id
            field: 파이썬 필드명 또는 camelCase 별칭
            value: 새 값 (리스트는 새 객체로 전달)

        Returns:
            실제로 값이 바뀌었으면 True

        Raises:
            ValidationError: 알 수 없는 행/필드 또는 검증 실패
        """
        row = self.get(row_id)
        name = type(row).resolve_field(field)
        if name is None or name in ("id", "kind"):
            raise ValidationError(
                ErrorCode.INVALID_FIELD,
                details={"row_id": row_id, "field": field},
            )
        if name == "weeks" and (not isinstance(value, list) or len(value) != self.week_count):
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                message=f"weeks must have {self.week_count} entries",
                details={"row_id": row_id},
            )

        old = getattr(row, name)
        if old == value:
            return False

        try:
            setattr(row, name, copy.deepcopy(value))
        except PydanticValidationError as e:
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                details={"row_id": row_id, "field": name, "error": str(e)},
            ) from e

        new = getattr(row, name)
        if old == new:
            return False

        logger.debug("Cell changed", row_id=row_id, field=name)
        self._emit_cell(EntityKind.for_row(row.row_kind), row_id, name, old, new)
        return True

    def new_row(self, kind: RowKind, **fields: Any) -> Row:
        """기본값으로 채운 행 생성 (저장소에는 넣지 않음)"""
        row_type = ROW_TYPES[kind]
        fields.setdefault("weeks", [0.0] * self.week_count)
        try:
            return row_type(**fields)  # type: ignore[return-value]
        except PydanticValidationError as e:
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                details={"kind": kind.value, "error": str(e)},
            ) from e

    def add_row(
        self,
        row: Row,
        anchor_id: Optional[str] = None,
        side: DropSide = DropSide.BOTTOM,
    ) -> Row:
        """행 추가

        Args:
            row: 추가할 행
            anchor_id: 기준 행 (없으면 맨 끝)
            side: 기준 행 위(top)/아래(bottom)

        Returns:
            추가된 행
        """
        kind = row.row_kind
        if row.id in self._rows:
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                message="이미 존재하는 id입니다.",
                details={"row_id": row.id},
            )

        ids = self._order[kind]
        if anchor_id is None:
            index = len(ids)
        else:
            anchor = self.get(anchor_id)
            if anchor.row_kind != kind:
                raise ValidationError(
                    ErrorCode.REORDER_KIND_MISMATCH,
                    details={"row_id": row.id, "anchor_id": anchor_id},
                )
            index = ids.index(anchor_id) + (1 if side == DropSide.BOTTOM else 0)

        row.weeks = normalize_weeks(row.weeks, self.week_count)
        row.prev_id = None
        row.next_id = None
        self._rows[row.id] = row
        ids.insert(index, row.id)

        logger.info("Row added", kind=kind.value, row_id=row.id, index=index)
        self._emit_add(EntityKind.for_row(kind), row.id)
        self._relink(kind)
        return row

    def duplicate_row(self, row_id: str) -> Row:
        """행 복제 (새 id로 바로 아래에 삽입)"""
        source = self.get(row_id)
        duplicate = source.model_copy(
            deep=True,
            update={"id": new_id(), "prev_id": None, "next_id": None, "display_order": None},
        )
        return self.add_row(duplicate, anchor_id=row_id, side=DropSide.BOTTOM)

    def delete_row(self, row_id: str) -> Row:
        """행 삭제

        작업 행을 다른 작업의 blockerIds에서 떼어내는 일은
        DependencyGraphManager.detach가 먼저 처리한다.
        """
        row = self.get(row_id)
        kind = row.row_kind
        del self._rows[row_id]
        self._order[kind].remove(row_id)

        logger.info("Row deleted", kind=kind.value, row_id=row_id)
        self._emit_delete(EntityKind.for_row(kind), row_id)
        self._relink(kind)
        return row

    def apply_order(self, kind: RowKind, ids: list[str]) -> list[LinkChange]:
        """새 순서를 적용하고 바뀐 링크를 반환"""
        if sorted(ids) != sorted(self._order[kind]):
            raise ValidationError(
                ErrorCode.INVALID_VALUE,
                message="순서 목록이 현재 행 집합과 다릅니다.",
                details={"kind": kind.value},
            )
        self._order[kind] = list(ids)
        changes = self._relink(kind)
        if changes:
            self._emit_reorder(kind, changes)
        return changes

    def _relink(self, kind: RowKind) -> list[LinkChange]:
        """prevId/nextId를 전체 순서에서 다시 계산하고 바뀐 값만 반영"""
        changes: list[LinkChange] = []
        for row_id, (prev_id, next_id) in compute_links(self._order[kind]).items():
            row = self._rows[row_id]
            for field, value in (("prev_id", prev_id), ("next_id", next_id)):
                old = getattr(row, field)
                if old != value:
                    changes.append(
                        LinkChange(row_id=row_id, field=field, old_value=old, new_value=value)
                    )
                    self.set_field(row_id, field, value)
        return changes

    # === Reference data ===

    def upsert_reference(self, kind: EntityKind, record: RoadmapModel) -> None:
        """팀/스프린트/직무/직원 추가 또는 갱신"""
        if kind not in REFERENCE_KINDS:
            raise ValidationError(ErrorCode.INVALID_VALUE, details={"kind": kind.value})

        key = record.key
        existing = self._reference[kind].get(key)
        self._reference[kind][key] = record.model_copy(deep=True)

        if existing is None:
            logger.info("Reference added", kind=kind.value, key=key)
            self._emit_add(kind, key)
            return

        old_values = existing.model_dump()
        for name, value in record.model_dump().items():
            if old_values.get(name) != value:
                self._emit_cell(kind, key, name, old_values.get(name), value)

    def delete_reference(self, kind: EntityKind, key: str) -> None:
        if key not in self._reference.get(kind, {}):
            raise ValidationError(
                ErrorCode.ROW_NOT_FOUND,
                details={"kind": kind.value, "key": key},
            )
        del self._reference[kind][key]
        logger.info("Reference deleted", kind=kind.value, key=key)
        self._emit_delete(kind, key)

