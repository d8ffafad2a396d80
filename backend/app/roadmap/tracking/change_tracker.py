"""Change Tracker

필드/행 단위 변경을 기록하고 저장용 변경 로그를 만든다.

- 같은 (엔티티, id, 필드)의 변경은 마지막 값만 남긴다.
- 삭제된 행의 셀 변경은 로그에 나오지 않는다. 저장 전에 추가 후 삭제된 행은 흔적이 없다.
- 모든 항목은 증가하는 seq를 가진다. clear_changes(watermark)는 스냅샷 이후에
  들어온 변경을 남겨 다음 저장으로 넘긴다.

추가된 행의 본문은 resolver를 통해 로그를 만드는 시점의 RowModel에서 읽는다.
"""

from typing import Any, Callable, Optional

from pydantic_core import to_jsonable_python

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import (
    ENTITY_TYPES,
    CellChange,
    ChangeLog,
    ChangeSnapshot,
    DeletedIds,
    EntityKind,
    RowAction,
    RowChange,
)
from backend.app.roadmap.store.row_model import RowModelListener

logger = get_logger(__name__)

Resolver = Callable[[EntityKind, str], Optional[dict[str, Any]]]

# 안정적인 id가 없어 항상 전체 레코드로 보내는 종류
WHOLE_RECORD_KINDS = (EntityKind.TEAM, EntityKind.SPRINT)
KEY_FIELDS: dict[EntityKind, str] = {
    EntityKind.TEAM: "name",
    EntityKind.SPRINT: "code",
}


class ChangeTracker:
    """변경 추적기"""

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._resolver = resolver
        self._on_change = on_change
        self._cells: dict[tuple[EntityKind, str, str], CellChange] = {}
        self._rows: dict[tuple[EntityKind, str], RowChange] = {}
        self._seq = 0
        self._in_flight: Optional[int] = None  # 진행 중인 저장 스냅샷의 seq

    def set_on_change(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_change = callback

    @property
    def has_unsaved_changes(self) -> bool:
        if self._cells:
            return True
        return any(not self._is_ghost(entry) for entry in self._rows.values())

    @property
    def watermark(self) -> int:
        return self._seq

    def add_cell_change(
        self,
        kind: EntityKind,
        row_id: str,
        field: str,
        old_value: Any,
        new_value: Any,
    ) -> bool:
        """필드 변경 기록

        아직 보내지 않은 변경이 원래 값으로 돌아오면 기록에서 뺀다.
        진행 중인 저장에 실린 변경은 서버 값이 바뀌므로 그대로 덮어쓴다.

        Args:
            kind: 엔티티 종류
            row_id: 행 id (팀은 id 또는 이름, 스프린트는 code)
            field: 파이썬 필드명 또는 camelCase 별칭
            old_value: 이전 값
            new_value: 새 값

        Returns:
            기록했으면 True (값이 같거나, 원래 값으로 돌아왔거나, 삭제된 행이면 False)
        """
        if old_value == new_value:
            return False

        name = ENTITY_TYPES[kind].resolve_field(field)
        if name is None:
            raise ValidationError(
                ErrorCode.INVALID_FIELD,
                details={"kind": kind.value, "field": field},
            )

        row_entry = self._rows.get((kind, row_id))
        if row_entry is not None and row_entry.action == RowAction.DELETED:
            logger.debug("Cell change on deleted row ignored", row_id=row_id, field=name)
            return False

        key = (kind, row_id, name)
        # 재삽입해서 dict 순서를 최근 변경 순으로 유지
        previous = self._cells.pop(key, None)
        if previous is not None and not self._is_in_flight(previous):
            if new_value == previous.old_value:
                logger.debug("Cell change reverted", row_id=row_id, field=name)
                self._notify()
                return False
            old_value = previous.old_value

        self._seq += 1
        self._cells[key] = CellChange(
            entity_kind=kind,
            id=row_id,
            field=name,
            old_value=old_value,
            new_value=new_value,
            seq=self._seq,
        )
        self._notify()
        return True

    def add_row_change(
        self,
        kind: EntityKind,
        row_id: str,
        action: RowAction,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        """행 추가/삭제 기록

        Args:
            kind: 엔티티 종류
            row_id: 행 id
            action: added 또는 deleted
            data: 추가된 행의 본문 (resolver가 없을 때 사용)
        """
        self._seq += 1
        key = (kind, row_id)
        previous = self._rows.pop(key, None)

        entry = RowChange(
            entity_kind=kind,
            id=row_id,
            action=action,
            data=data,
            seq=self._seq,
        )
        if action == RowAction.ADDED:
            entry.added_seq = self._seq
        else:
            if previous is not None:
                entry.added_seq = previous.added_seq
            for cell_key in [k for k in self._cells if k[0] == kind and k[1] == row_id]:
                del self._cells[cell_key]

        self._rows[key] = entry
        self._notify()

    def build_change_log(self) -> ChangeLog:
        """현재 누적된 변경으로 와이어 페이로드 생성"""
        payload: dict[str, Any] = {}
        deleted: dict[str, list[str]] = {}

        for kind in EntityKind:
            model = ENTITY_TYPES[kind]
            added: dict[str, dict[str, Any]] = {}
            deleted_ids: list[str] = []

            for (entry_kind, row_id), entry in self._rows.items():
                if entry_kind != kind:
                    continue
                if entry.action == RowAction.ADDED:
                    added[row_id] = self._added_record(entry)
                elif entry.added_seq is None:
                    deleted_ids.append(row_id)

            updated: dict[str, dict[str, Any]] = {}
            for (entry_kind, row_id, name), cell in self._cells.items():
                if entry_kind != kind:
                    continue
                value = to_jsonable_python(cell.new_value)
                alias = model.alias_of(name)
                if row_id in added:
                    added[row_id][alias] = value
                    continue
                if row_id not in updated:
                    updated[row_id] = self._update_base(kind, row_id)
                updated[row_id][alias] = value

            items = list(added.values()) + list(updated.values())
            if items:
                payload[kind.plural] = items
            if deleted_ids:
                deleted[kind.plural] = deleted_ids

        if deleted:
            payload["deleted"] = DeletedIds(**deleted)
        return ChangeLog(**payload)

    def snapshot(self) -> ChangeSnapshot:
        """저장 직전의 변경 로그와 기준 seq"""
        self._in_flight = self._seq
        return ChangeSnapshot(change_log=self.build_change_log(), watermark=self._seq)

    def release_snapshot(self) -> None:
        """저장 실패 시 스냅샷 표시 해제 (변경은 그대로 남는다)"""
        self._in_flight = None

    def clear_changes(self, watermark: Optional[int] = None) -> None:
        """저장 성공 후 정리

        Args:
            watermark: 보낸 스냅샷의 seq. None이면 전부 비운다.
                그 이후의 변경은 다음 저장을 위해 남는다.
        """
        if watermark is None:
            self.reset()
            return

        self._in_flight = None
        self._cells = {k: c for k, c in self._cells.items() if c.seq > watermark}

        remaining: dict[tuple[EntityKind, str], RowChange] = {}
        for key, entry in self._rows.items():
            if entry.seq <= watermark:
                continue
            if (
                entry.action == RowAction.DELETED
                and entry.added_seq is not None
                and entry.added_seq <= watermark
            ):
                # 추가는 이미 서버에 갔으므로 삭제를 보내야 한다
                entry.added_seq = None
            remaining[key] = entry
        self._rows = remaining

        logger.debug(
            "Changes cleared",
            watermark=watermark,
            remaining_cells=len(self._cells),
            remaining_rows=len(self._rows),
        )

    def reset(self) -> None:
        self._cells.clear()
        self._rows.clear()
        self._in_flight = None

    def listener(self) -> "ChangeTrackerListener":
        return ChangeTrackerListener(self)

    # === Internal ===

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _is_in_flight(self, entry: CellChange) -> bool:
        return self._in_flight is not None and entry.seq <= self._in_flight

    @staticmethod
    def _is_ghost(entry: RowChange) -> bool:
        """저장되기 전에 추가 후 삭제된 행"""
        return entry.action == RowAction.DELETED and entry.added_seq is not None

    def _resolve(self, kind: EntityKind, row_id: str) -> Optional[dict[str, Any]]:
        if self._resolver is None:
            return None
        return self._resolver(kind, row_id)

    def _added_record(self, entry: RowChange) -> dict[str, Any]:
        record = self._resolve(entry.entity_kind, entry.id)
        if record is None and entry.data is not None:
            record = to_jsonable_python(entry.data)
        if record is None:
            record = {KEY_FIELDS.get(entry.entity_kind, "id"): entry.id}
        return dict(record)

    def _update_base(self, kind: EntityKind, row_id: str) -> dict[str, Any]:
        if kind in WHOLE_RECORD_KINDS:
            record = self._resolve(kind, row_id)
            if record is not None:
                return dict(record)
        return {KEY_FIELDS.get(kind, "id"): row_id}


class ChangeTrackerListener(RowModelListener):
    """RowModel 이벤트를 ChangeTracker로 전달"""

    def __init__(self, tracker: ChangeTracker):
        self._tracker = tracker

    def on_cell_change(
        self,
        kind: EntityKind,
        row_id: str,
        field: str,
        old_value: Any,
        new_value: Any,
    ) -> None:
        self._tracker.add_cell_change(kind, row_id, field, old_value, new_value)

    def on_row_add(self, kind: EntityKind, row_id: str) -> None:
        self._tracker.add_row_change(kind, row_id, RowAction.ADDED)

    def on_row_delete(self, kind: EntityKind, row_id: str) -> None:
        self._tracker.add_row_change(kind, row_id, RowAction.DELETED)
