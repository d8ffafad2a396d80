"""Confirmation Models

수동 계획을 버리는 동작(Auto 재활성화) 전에 사용자에게 묻는 요청/응답
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from pydantic import Field, model_validator

from backend.app.roadmap.models.changes import utcnow
from backend.app.roadmap.models.rows import RoadmapModel


class ConfirmationRequest(RoadmapModel):
    """확인 요청"""

    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_id: str
    message: str

    # 승인 시 적용될 계획
    current_weeks: list[float] = Field(default_factory=list)
    proposed_weeks: list[float] = Field(default_factory=list)

    # Timing
    created_at: datetime = Field(default_factory=utcnow)
    timeout_sec: int = 300
    timeout_at: Optional[datetime] = None

    @model_validator(mode="after")
    def set_timeout(self) -> "ConfirmationRequest":
        if self.timeout_at is None:
            object.__setattr__(
                self,
                "timeout_at",
                self.created_at + timedelta(seconds=self.timeout_sec),
            )
        return self

    def is_expired(self) -> bool:
        """요청 만료 여부 확인"""
        if self.timeout_at is None:
            return False
        return utcnow() > self.timeout_at


class ConfirmationResponse(RoadmapModel):
    """확인 응답"""

    request_id: str
    task_id: str
    accepted: bool
    responded_at: datetime = Field(default_factory=utcnow)
