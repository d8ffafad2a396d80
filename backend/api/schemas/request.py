"""API Request Schemas"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from backend.app.roadmap.models import DropSide, RowKind


class AddRowRequest(BaseModel):
    """행 추가 요청"""

    kind: RowKind = Field(..., description="resource 또는 task")
    anchor_id: Optional[str] = Field(None, description="기준 행 (없으면 맨 끝)")
    side: DropSide = Field(DropSide.BOTTOM, description="기준 행 위(top)/아래(bottom)")
    fields: dict[str, Any] = Field(default_factory=dict, description="초기 필드 값")


class UpdateFieldRequest(BaseModel):
    """필드 편집 요청"""

    field: str = Field(..., description="필드명 (camelCase 또는 snake_case)")
    value: Any = Field(None, description="새 값")


class WeekValueRequest(BaseModel):
    """주차 셀 편집 요청"""

    value: float = Field(..., ge=0, description="배정/가용 인원")


class ReorderRequest(BaseModel):
    """드래그 재정렬 요청"""

    dragged_id: str = Field(..., description="끌어온 행")
    target_id: str = Field(..., description="놓은 위치의 행")
    side: DropSide = Field(..., description="target 위(top)/아래(bottom)")


class AutoPlanToggleRequest(BaseModel):
    """Auto 토글 요청"""

    enabled: bool


class ConfirmationAnswerRequest(BaseModel):
    """확인 응답"""

    accepted: bool
