"""Change Tracking and Persistence Models

변경 이벤트, 변경 로그(와이어 페이로드), 저장 요청/응답, 자동 저장 상태
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from backend.app.roadmap.models.enums import EntityKind, RowAction, SaveStatus
from backend.app.roadmap.models.rows import RoadmapModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# === Tracker entries ===


class CellChange(RoadmapModel):
    """필드 단위 변경"""

    entity_kind: EntityKind
    id: str
    field: str  # 파이썬 필드명
    old_value: Any = None
    new_value: Any = None
    timestamp: datetime = Field(default_factory=utcnow)
    seq: int = 0


class RowChange(RoadmapModel):
    """행 단위 변경 (추가/삭제)"""

    entity_kind: EntityKind
    id: str
    action: RowAction
    data: Optional[dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)
    seq: int = 0
    # 아직 저장되지 않은 추가 이벤트의 seq (추가 후 삭제 시 흔적 제거용)
    added_seq: Optional[int] = None


# === Wire payload ===


class DeletedIds(RoadmapModel):
    """엔티티 종류별 삭제 id"""

    tasks: Optional[list[str]] = None
    resources: Optional[list[str]] = None
    teams: Optional[list[str]] = None
    sprints: Optional[list[str]] = None
    functions: Optional[list[str]] = None
    employees: Optional[list[str]] = None


class ChangeLog(RoadmapModel):
    """마지막 저장 이후의 변경 (추가∪수정 목록 + 삭제 id)

    변경이 있는 종류의 키만 채워진다.
    """

    tasks: Optional[list[dict[str, Any]]] = None
    resources: Optional[list[dict[str, Any]]] = None
    teams: Optional[list[dict[str, Any]]] = None
    sprints: Optional[list[dict[str, Any]]] = None
    functions: Optional[list[dict[str, Any]]] = None
    employees: Optional[list[dict[str, Any]]] = None
    deleted: Optional[DeletedIds] = None

    @property
    def is_empty(self) -> bool:
        return not self.to_payload()

    def items(self, kind: EntityKind) -> list[dict[str, Any]]:
        return getattr(self, kind.plural) or []

    def deleted_ids(self, kind: EntityKind) -> list[str]:
        if self.deleted is None:
            return []
        return getattr(self.deleted, kind.plural) or []

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChangeSnapshot(RoadmapModel):
    """저장 시점에 잘라낸 변경 로그와 그 기준 seq"""

    change_log: ChangeLog
    watermark: int


class SaveRequest(ChangeLog):
    """PUT /api/v1/data 요청 본문"""

    version: int
    user_id: str

    @classmethod
    def from_change_log(
        cls, change_log: ChangeLog, version: int, user_id: str
    ) -> "SaveRequest":
        return cls(
            version=version,
            user_id=user_id,
            **change_log.model_dump(exclude_none=True),
        )


class SaveResponse(RoadmapModel):
    """저장 응답"""

    version: int = 0
    success: bool
    error: Optional[str] = None


class AutoSaveState(RoadmapModel):
    """UI에 노출하는 자동 저장 상태"""

    is_saving: bool = False
    last_saved: Optional[datetime] = None
    error: Optional[str] = None
    has_unsaved_changes: bool = False
    status: SaveStatus = SaveStatus.IDLE
    version: int = 0
