"""Diff Engine

두 전체 스냅샷을 비교해 ChangeTracker와 같은 모양의 변경 로그를 만든다.
전체 재적재처럼 증분 추적을 믿을 수 없을 때 쓰는 대체 경로.

- tasks/resources/functions/employees: id 기준, 수정은 {id, 바뀐 필드...}
- teams: id 또는 name 기준, sprints: code 기준, 수정도 전체 레코드
"""

from typing import Any, Callable, Optional, Sequence

from backend.app.core.logging import get_logger
from backend.app.roadmap.models import (
    ChangeLog,
    DeletedIds,
    EntityKind,
    RoadmapModel,
    RoadmapSnapshot,
)
from backend.app.roadmap.tracking.change_tracker import WHOLE_RECORD_KINDS

logger = get_logger(__name__)

KeyFunc = Callable[[RoadmapModel], str]


def deep_equal(left: Any, right: Any) -> bool:
    """JSON 호환 값의 구조적 비교 (bool과 숫자는 구분)"""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(deep_equal(left[k], right[k]) for k in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    return left == right


def compare_records(
    old_records: Sequence[RoadmapModel],
    new_records: Sequence[RoadmapModel],
    key: KeyFunc,
) -> tuple[list[dict[str, Any]], list[tuple[dict[str, Any], dict[str, Any]]], list[str]]:
    """키 기준 비교

    Returns:
        (added, updated(old, new) 쌍, deleted 키) - 레코드는 와이어 dict
    """
    old_map = {key(r): r.to_wire() for r in old_records}
    new_map = {key(r): r.to_wire() for r in new_records}

    added: list[dict[str, Any]] = []
    updated: list[tuple[dict[str, Any], dict[str, Any]]] = []
    for record_key, new_item in new_map.items():
        old_item = old_map.get(record_key)
        if old_item is None:
            added.append(new_item)
        elif not deep_equal(old_item, new_item):
            updated.append((old_item, new_item))

    deleted = [record_key for record_key in old_map if record_key not in new_map]
    return added, updated, deleted


def _partial_update(old_item: dict[str, Any], new_item: dict[str, Any]) -> dict[str, Any]:
    """바뀐 필드만 담은 {id, ...}"""
    partial: dict[str, Any] = {"id": new_item["id"]}
    for field, value in new_item.items():
        if field not in old_item or not deep_equal(old_item[field], value):
            partial[field] = value
    return partial


_COLLECTIONS: tuple[tuple[EntityKind, str], ...] = (
    (EntityKind.TASK, "tasks"),
    (EntityKind.RESOURCE, "resources"),
    (EntityKind.TEAM, "teams"),
    (EntityKind.SPRINT, "sprints"),
    (EntityKind.FUNCTION, "functions"),
    (EntityKind.EMPLOYEE, "employees"),
)


def calculate_data_changes(
    old_snapshot: Optional[RoadmapSnapshot],
    new_snapshot: Optional[RoadmapSnapshot],
) -> ChangeLog:
    """두 스냅샷의 차이

    Args:
        old_snapshot: 이전 상태 (None이면 빈 로그)
        new_snapshot: 새 상태 (None이면 빈 로그)

    Returns:
        ChangeLog
    """
    if old_snapshot is None or new_snapshot is None:
        return ChangeLog()

    payload: dict[str, Any] = {}
    deleted: dict[str, list[str]] = {}

    for kind, attr in _COLLECTIONS:
        added, updated, deleted_keys = compare_records(
            getattr(old_snapshot, attr),
            getattr(new_snapshot, attr),
            key=lambda record: record.key,
        )
        if kind in WHOLE_RECORD_KINDS:
            updated_items = [new_item for _, new_item in updated]
        else:
            updated_items = [_partial_update(old, new) for old, new in updated]

        items = added + updated_items
        if items:
            payload[kind.plural] = items
        if deleted_keys:
            deleted[kind.plural] = deleted_keys

    if deleted:
        payload["deleted"] = DeletedIds(**deleted)

    change_log = ChangeLog(**payload)
    logger.debug("Snapshot diff calculated", kinds=sorted(change_log.to_payload()))
    return change_log


def has_changes(change_log: ChangeLog) -> bool:
    return not change_log.is_empty
