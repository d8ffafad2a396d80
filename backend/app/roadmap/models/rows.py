"""Grid Row Models

리소스 행과 작업 행. 와이어 포맷은 camelCase(planEmpl, blockerIds, prevId ...)이고
파이썬 코드에서는 snake_case 필드명을 사용한다.
"""

import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.app.roadmap.models.enums import RowKind, TaskStatus


def new_id() -> str:
    return str(uuid.uuid4())


class RoadmapModel(BaseModel):
    """camelCase 별칭을 쓰는 공통 베이스"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    @property
    def key(self) -> str:
        """변경 로그/diff에서 쓰는 식별 키"""
        return getattr(self, "id")

    @classmethod
    def resolve_field(cls, name: str) -> Optional[str]:
        """파이썬 필드명 또는 별칭을 파이썬 필드명으로 변환

        Returns:
            필드명, 알 수 없는 필드면 None
        """
        if name in cls.model_fields:
            return name
        for field_name, info in cls.model_fields.items():
            if info.alias == name:
                return field_name
        return None

    @classmethod
    def alias_of(cls, field_name: str) -> str:
        info = cls.model_fields[field_name]
        return info.alias or field_name

    def to_wire(self) -> dict[str, Any]:
        """서버 전송용 dict (camelCase)"""
        return self.model_dump(by_alias=True, mode="json")


class ResourceRow(RoadmapModel):
    """리소스 행 (주차별 가용 인원)"""

    id: str = Field(default_factory=new_id)
    kind: Literal["resource"] = "resource"

    # === Matching ===
    team: list[str] = Field(default_factory=list)
    fn: str = ""
    empl: Optional[str] = None

    # === Capacity ===
    weeks: list[float] = Field(default_factory=list)

    # === Order ===
    display_order: Optional[int] = None
    prev_id: Optional[str] = None
    next_id: Optional[str] = None

    @property
    def row_kind(self) -> RowKind:
        return RowKind.RESOURCE

    @field_validator("weeks")
    @classmethod
    def validate_capacity(cls, v: list[float]) -> list[float]:
        if any(w < 0 for w in v):
            raise ValueError("Weekly capacity cannot be negative")
        return v


class TaskRow(RoadmapModel):
    """작업 행

    weeks는 주차별 배정 인원. autoPlanEnabled가 켜져 있으면 스케줄러가,
    꺼져 있으면 사용자가 weeks의 소유자다.
    """

    id: str = Field(default_factory=new_id)
    kind: Literal["task"] = "task"

    # === Basic Info ===
    status: TaskStatus = TaskStatus.TODO
    epic: Optional[str] = None
    task: str = ""

    # === Matching ===
    team: str = ""
    fn: str = ""
    empl: Optional[str] = None

    # === Plan Parameters ===
    plan_empl: float = Field(default=0, ge=0)
    plan_weeks: int = Field(default=0, ge=0)
    auto_plan_enabled: bool = True
    manual_edited: bool = False

    # === Dependencies ===
    blocker_ids: list[str] = Field(default_factory=list)
    week_blockers: list[int] = Field(default_factory=list)  # 1-based

    # === Allocation ===
    weeks: list[float] = Field(default_factory=list)

    # === Computed ===
    fact: float = 0
    start_week: Optional[int] = None  # 1-based
    end_week: Optional[int] = None  # 1-based
    expected_start_week: Optional[int] = None
    sprints_auto: list[str] = Field(default_factory=list)

    # === Order ===
    display_order: Optional[int] = None
    prev_id: Optional[str] = None
    next_id: Optional[str] = None

    @property
    def row_kind(self) -> RowKind:
        return RowKind.TASK

    @property
    def start_week_mismatch(self) -> bool:
        """기대 시작 주차가 있고 계획된 시작 주차와 다른지 (행 강조용)"""
        return (
            self.expected_start_week is not None
            and self.start_week is not None
            and self.expected_start_week != self.start_week
        )

    @field_validator("weeks")
    @classmethod
    def validate_allocation(cls, v: list[float]) -> list[float]:
        if any(w < 0 for w in v):
            raise ValueError("Weekly allocation cannot be negative")
        return v

    @field_validator("week_blockers")
    @classmethod
    def validate_week_blockers(cls, v: list[int]) -> list[int]:
        if any(w < 1 for w in v):
            raise ValueError("Week blockers are 1-based")
        return v


Row = ResourceRow | TaskRow

ROW_TYPES: dict[RowKind, type[RoadmapModel]] = {
    RowKind.RESOURCE: ResourceRow,
    RowKind.TASK: TaskRow,
}
