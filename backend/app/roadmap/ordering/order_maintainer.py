"""Ordered-Collection Maintainer

같은 종류의 행(리소스끼리, 작업끼리)에 대해 prevId/nextId 이중 연결 순서를 유지한다.
드래그 앤 드롭으로 행을 옮긴 뒤 전체 체인을 다시 계산하고, 실제로 값이 바뀐 링크만 보고한다.
"""

from typing import TYPE_CHECKING, Optional, Sequence

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import DropSide, RoadmapModel, Row

if TYPE_CHECKING:
    from backend.app.roadmap.store.row_model import RowModel

logger = get_logger(__name__)


class LinkChange(RoadmapModel):
    """prevId/nextId 한 칸의 변경"""

    row_id: str
    field: str  # prev_id, next_id
    old_value: Optional[str] = None
    new_value: Optional[str] = None


def compute_links(ids: Sequence[str]) -> dict[str, tuple[Optional[str], Optional[str]]]:
    """순서 목록에서 (prev_id, next_id) 계산

    Args:
        ids: 위에서 아래 순서의 행 id

    Returns:
        id → (prev_id, next_id). 머리는 prev가, 꼬리는 next가 None
    """
    links: dict[str, tuple[Optional[str], Optional[str]]] = {}
    for index, row_id in enumerate(ids):
        prev_id = ids[index - 1] if index > 0 else None
        next_id = ids[index + 1] if index < len(ids) - 1 else None
        links[row_id] = (prev_id, next_id)
    return links


def move_id(
    ids: Sequence[str],
    dragged_id: str,
    target_id: str,
    side: DropSide,
) -> list[str]:
    """dragged를 빼낸 뒤 target 위(top) 또는 아래(bottom)에 다시 넣는다"""
    remaining = [row_id for row_id in ids if row_id != dragged_id]
    index = remaining.index(target_id)
    if side == DropSide.BOTTOM:
        index += 1
    remaining.insert(index, dragged_id)
    return remaining


def order_from_links(rows: Sequence[Row]) -> list[str]:
    """저장된 prevId/nextId 체인에서 순서 복원

    머리(prev가 없거나 존재하지 않는 행)부터 next를 따라간다. 체인에서 떨어진 행과
    순환에 갇힌 행은 입력 순서대로 뒤에 붙인다. 링크 정보가 전혀 없으면 displayOrder,
    그다음 입력 순서를 따른다.
    """
    if not rows:
        return []

    if all(row.prev_id is None and row.next_id is None for row in rows):
        indexed = list(enumerate(rows))
        indexed.sort(
            key=lambda item: (
                item[1].display_order is None,
                item[1].display_order or 0,
                item[0],
            )
        )
        return [row.id for _, row in indexed]

    by_id = {row.id: row for row in rows}
    order: list[str] = []
    visited: set[str] = set()

    heads = [row for row in rows if row.prev_id is None or row.prev_id not in by_id]
    for head in heads:
        current: Optional[Row] = head
        while current is not None and current.id not in visited:
            visited.add(current.id)
            order.append(current.id)
            current = by_id.get(current.next_id) if current.next_id else None

    orphans = [row.id for row in rows if row.id not in visited]
    if orphans or len(heads) > 1:
        logger.warning(
            "Row order chain repaired",
            heads=len(heads),
            orphans=len(orphans),
        )
    order.extend(orphans)
    return order


class OrderMaintainer:
    """드래그 재정렬 처리기"""

    def __init__(self, row_model: "RowModel"):
        self._rows = row_model

    def reorder(
        self,
        dragged_id: str,
        target_id: str,
        side: DropSide,
    ) -> list[LinkChange]:
        """행 재정렬

        Args:
            dragged_id: 끌어온 행
            target_id: 놓은 위치의 행
            side: target 위(top)/아래(bottom)

        Returns:
            값이 바뀐 링크 목록 (제자리 드롭이면 빈 목록)

        Raises:
            ValidationError: 행이 없거나 종류가 다를 때
        """
        if dragged_id == target_id:
            return []

        dragged = self._rows.get(dragged_id)
        target = self._rows.get(target_id)
        if dragged.row_kind != target.row_kind:
            logger.warning(
                "Cross-kind drag rejected",
                dragged_id=dragged_id,
                target_id=target_id,
            )
            raise ValidationError(
                ErrorCode.REORDER_KIND_MISMATCH,
                details={"dragged_id": dragged_id, "target_id": target_id},
            )

        kind = dragged.row_kind
        ids = self._rows.order(kind)
        new_ids = move_id(ids, dragged_id, target_id, side)
        if new_ids == ids:
            return []

        changes = self._rows.apply_order(kind, new_ids)
        logger.info(
            "Rows reordered",
            kind=kind.value,
            dragged_id=dragged_id,
            target_id=target_id,
            side=side.value,
            changed_links=len(changes),
        )
        return changes
