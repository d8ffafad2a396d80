"""API Response Schemas"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(BaseModel):
    """헬스체크 응답"""

    status: str = Field("ok", description="상태")
    version: str = Field(..., description="버전")
    timestamp: datetime = Field(default_factory=_utcnow)


class RowResponse(BaseModel):
    """행 단건 응답 (camelCase 와이어 포맷)"""

    success: bool = True
    row: dict[str, Any]


class ReorderResponse(BaseModel):
    """재정렬 응답"""

    success: bool = True
    changes: list[dict[str, Any]] = Field(default_factory=list, description="바뀐 링크")


class AutoPlanToggleResponse(BaseModel):
    """Auto 토글 응답"""

    success: bool = True
    task_id: str
    auto_plan_enabled: bool
    confirmation: Optional[dict[str, Any]] = Field(None, description="확인이 필요하면 요청")


class ConfirmationAnswerResponse(BaseModel):
    """확인 응답 처리 결과"""

    success: bool = True
    request_id: str
    accepted: bool
    row: dict[str, Any]


class OverloadResponse(BaseModel):
    """리소스 주차별 과부하"""

    resource_id: str
    weeks: list[bool]


class ErrorResponse(BaseModel):
    """에러 응답"""

    success: bool = False
    error: dict[str, Any] = Field(..., description="에러 정보")
