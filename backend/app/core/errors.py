"""Error Codes and Exceptions"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """에러 카테고리"""
    VALIDATION = "VALIDATION"      # E1xxx: 입력/그래프 검증
    CONCURRENCY = "CONCURRENCY"    # E2xxx: 버전 충돌
    TRANSPORT = "TRANSPORT"        # E3xxx: 저장 서버 통신
    CONFIRMATION = "CONFIRMATION"  # E4xxx: 사용자 확인
    SYSTEM = "SYSTEM"              # E5xxx: 시스템


class ErrorCode(str, Enum):
    """에러 코드"""

    # === E1xxx: Validation ===
    ROW_NOT_FOUND = "E1001"
    INVALID_FIELD = "E1002"
    INVALID_VALUE = "E1003"
    BLOCKER_SELF = "E1101"
    BLOCKER_CYCLE = "E1102"
    BLOCKER_NOT_TASK = "E1103"
    WEEK_OUT_OF_RANGE = "E1104"
    REORDER_KIND_MISMATCH = "E1201"

    # === E2xxx: Concurrency ===
    VERSION_CONFLICT = "E2001"

    # === E3xxx: Transport ===
    TRANSPORT_FAILED = "E3001"
    SAVE_REJECTED = "E3002"

    # === E4xxx: Confirmation ===
    CONFIRMATION_NOT_FOUND = "E4001"
    CONFIRMATION_EXPIRED = "E4002"

    # === E5xxx: System ===
    INTERNAL_ERROR = "E5001"


# Error Code -> Message mapping
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Validation
    ErrorCode.ROW_NOT_FOUND: "행을 찾을 수 없습니다.",
    ErrorCode.INVALID_FIELD: "수정할 수 없는 필드입니다.",
    ErrorCode.INVALID_VALUE: "값이 올바르지 않습니다.",
    ErrorCode.BLOCKER_SELF: "작업은 자기 자신을 블로커로 지정할 수 없습니다.",
    ErrorCode.BLOCKER_CYCLE: "블로커를 추가하면 순환 의존성이 생깁니다.",
    ErrorCode.BLOCKER_NOT_TASK: "블로커는 작업 행만 지정할 수 있습니다.",
    ErrorCode.WEEK_OUT_OF_RANGE: "주차 범위를 벗어났습니다.",
    ErrorCode.REORDER_KIND_MISMATCH: "리소스와 작업 행은 서로 섞어 이동할 수 없습니다.",

    # Concurrency
    ErrorCode.VERSION_CONFLICT: "서버 버전과 충돌했습니다. 다시 저장하세요.",

    # Transport
    ErrorCode.TRANSPORT_FAILED: "저장 서버와 통신하지 못했습니다.",
    ErrorCode.SAVE_REJECTED: "저장 서버가 변경을 거부했습니다.",

    # Confirmation
    ErrorCode.CONFIRMATION_NOT_FOUND: "확인 요청을 찾을 수 없습니다.",
    ErrorCode.CONFIRMATION_EXPIRED: "확인 요청이 만료되었습니다.",

    # System
    ErrorCode.INTERNAL_ERROR: "내부 서버 오류가 발생했습니다.",
}


class ErrorDetail(BaseModel):
    """API 에러 응답 상세"""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class PlannerError(Exception):
    """Base Planner Exception"""

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.details = details
        super().__init__(self.message)

    def to_detail(self) -> ErrorDetail:
        """Convert to API response format"""
        return ErrorDetail(
            code=self.code.value,
            message=self.message,
            details=self.details,
        )


class ValidationError(PlannerError):
    """Rejected edits (cycle, cross-kind drag, unknown row)"""
    pass


class ConcurrencyError(PlannerError):
    """Stale client version"""

    def __init__(
        self,
        message: Optional[str] = None,
        server_version: Optional[int] = None,
    ):
        details = {"server_version": server_version} if server_version is not None else None
        super().__init__(ErrorCode.VERSION_CONFLICT, message, details)
        self.server_version = server_version


class TransportError(PlannerError):
    """Network failure or non-2xx answer"""
    pass


class ConfirmationError(PlannerError):
    """Confirmation request errors"""
    pass


class SystemError(PlannerError):
    """System level errors"""
    pass
